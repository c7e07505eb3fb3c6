"""Parse Claude Code session transcripts and derive session status.

Session files are JSONL: one JSON object per line, appended as the session
progresses. Entries of type "user" and "assistant" carry a "message" with
either a string or a list of content blocks; assistant tool calls are
"tool_use" blocks and their outcomes come back as "tool_result" blocks inside
later user entries. "summary" entries carry a short description of the
conversation.

Everything here is pure: the same text (and the same `now`) always yields the
same result.
"""

import json
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from session_daemon.models.session import OutputRole, PendingTool, RecentOutput, SessionStatus

GOAL_MAX_CHARS = 200
OUTPUT_MAX_CHARS = 500
DEFAULT_RECENT_OUTPUT_LIMIT = 8

# Tools Claude Code runs without asking; an unresolved call to one of these
# means the tool is still executing, not that the session awaits approval.
AUTO_APPROVED_TOOLS = frozenset(
    {
        "Read",
        "Glob",
        "Grep",
        "LS",
        "TodoWrite",
        "Task",
        "WebSearch",
        "WebFetch",
        "NotebookRead",
    }
)


class TranscriptError(ValueError):
    """Raised when transcript text is not a usable session."""


@dataclass(frozen=True)
class Transcript:
    """Facts extracted from one session file."""

    cwd: str
    git_branch: str | None
    original_prompt: str
    last_activity_at: datetime
    message_count: int
    pending_tool: PendingTool | None
    tool_running: bool
    last_speaker: OutputRole | None
    summary: str | None
    last_assistant_text: str | None
    recent_output: tuple[RecentOutput, ...]


def _truncate(text: str, limit: int) -> str:
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


def _first_line(text: str) -> str:
    for line in text.strip().splitlines():
        if line.strip():
            return line.strip()
    return ""


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    try:
        return parsed.astimezone(UTC)
    except OverflowError:
        return None


def _content_blocks(message: Any) -> list[dict[str, Any]]:
    """Normalize message content to a list of blocks."""
    if not isinstance(message, dict):
        return []
    content = message.get("content")
    if isinstance(content, str):
        return [{"type": "text", "text": content}]
    if isinstance(content, list):
        blocks: list[dict[str, Any]] = []
        for block in content:
            if isinstance(block, dict):
                blocks.append(block)
            elif isinstance(block, str):
                blocks.append({"type": "text", "text": block})
        return blocks
    return []


def _block_text(blocks: list[dict[str, Any]]) -> str:
    parts = [str(block.get("text", "")) for block in blocks if block.get("type") == "text"]
    return "\n".join(part for part in parts if part.strip())


def tool_target(name: str, input_data: Any) -> str:
    """Pick the most telling argument of a tool call."""
    if not isinstance(input_data, dict):
        return ""
    for key in ("file_path", "notebook_path", "command", "pattern", "url", "query", "path"):
        value = input_data.get(key)
        if value:
            return _truncate(str(value), GOAL_MAX_CHARS)
    return ""


def summarize_tool_use(name: str, input_data: Any) -> str:
    """Create a human-readable summary of a tool invocation."""
    data = input_data if isinstance(input_data, dict) else {}
    if name == "Edit" or name == "MultiEdit":
        return f"Editing {data.get('file_path', 'unknown file')}"
    elif name == "Write":
        return f"Writing {data.get('file_path', 'unknown file')}"
    elif name == "Read":
        return f"Reading {data.get('file_path', 'unknown file')}"
    elif name == "Bash":
        command = str(data.get("command", ""))[:50]
        return f"Running: {command}..."
    elif name == "Glob":
        return f"Searching for {data.get('pattern', '')}"
    elif name == "Grep":
        return f"Searching for '{data.get('pattern', '')}'"
    else:
        return f"Using {name}"


def _load_entries(text: str) -> list[dict[str, Any]]:
    lines = [line for line in text.splitlines() if line.strip()]
    entries: list[dict[str, Any]] = []
    for index, line in enumerate(lines):
        try:
            entry = json.loads(line)
        except (ValueError, RecursionError) as err:
            # The writer may be midway through the last line.
            if index == len(lines) - 1:
                break
            raise TranscriptError(f"malformed JSON on line {index + 1}: {err}") from err
        if isinstance(entry, dict):
            entries.append(entry)
    return entries


def parse_transcript(text: str, recent_output_limit: int = DEFAULT_RECENT_OUTPUT_LIMIT) -> Transcript:
    """Parse session file content.

    Args:
        text: Full JSONL content of a session file
        recent_output_limit: Maximum number of recent output entries to keep

    Returns:
        Transcript with the derived facts

    Raises:
        TranscriptError: If a non-final line is malformed, or no entry carries
            a working directory and a timestamp
    """
    cwd: str | None = None
    git_branch: str | None = None
    original_prompt: str | None = None
    last_activity_at: datetime | None = None
    message_count = 0
    summary: str | None = None
    last_assistant_text: str | None = None
    last_speaker: OutputRole | None = None
    output: list[RecentOutput] = []
    # Unresolved tool calls of the latest assistant turn, in call order.
    open_tool_uses: dict[str, PendingTool] = {}

    for entry in _load_entries(text):
        entry_type = entry.get("type")

        if entry_type == "summary":
            if entry.get("summary"):
                summary = str(entry["summary"])
            continue

        if isinstance(entry.get("cwd"), str) and entry["cwd"]:
            cwd = entry["cwd"]
        branch = entry.get("gitBranch")
        if isinstance(branch, str) and branch and branch != "HEAD":
            git_branch = branch
        timestamp = _parse_timestamp(entry.get("timestamp"))
        if timestamp is not None and (last_activity_at is None or timestamp > last_activity_at):
            last_activity_at = timestamp

        if entry_type not in ("user", "assistant") or entry.get("isSidechain"):
            continue
        message_count += 1
        blocks = _content_blocks(entry.get("message"))

        if entry_type == "user":
            for block in blocks:
                if block.get("type") == "tool_result":
                    open_tool_uses.pop(str(block.get("tool_use_id", "")), None)
            text_content = _block_text(blocks)
            if text_content and not entry.get("isMeta"):
                if original_prompt is None:
                    original_prompt = text_content
                output.append(RecentOutput(OutputRole.USER, _truncate(text_content, OUTPUT_MAX_CHARS)))
                open_tool_uses.clear()
                last_speaker = OutputRole.USER
            elif any(block.get("type") == "tool_result" for block in blocks):
                last_speaker = OutputRole.TOOL
            continue

        text_content = _block_text(blocks)
        if text_content:
            last_assistant_text = text_content
            output.append(
                RecentOutput(OutputRole.ASSISTANT, _truncate(text_content, OUTPUT_MAX_CHARS))
            )
        for block in blocks:
            if block.get("type") != "tool_use":
                continue
            name = str(block.get("name", ""))
            tool_input = block.get("input")
            output.append(RecentOutput(OutputRole.TOOL, summarize_tool_use(name, tool_input)))
            open_tool_uses[str(block.get("id", ""))] = PendingTool(
                tool=name, target=tool_target(name, tool_input)
            )
        last_speaker = OutputRole.ASSISTANT

    if cwd is None or last_activity_at is None:
        raise TranscriptError("no entry with a working directory and timestamp")

    pending_tool = None
    tool_running = last_speaker == OutputRole.ASSISTANT and bool(open_tool_uses)
    if tool_running:
        for candidate in open_tool_uses.values():
            if candidate.tool not in AUTO_APPROVED_TOOLS:
                pending_tool = candidate
                break

    return Transcript(
        cwd=cwd,
        git_branch=git_branch,
        original_prompt=original_prompt or "",
        last_activity_at=last_activity_at,
        message_count=message_count,
        pending_tool=pending_tool,
        tool_running=tool_running,
        last_speaker=last_speaker,
        summary=summary,
        last_assistant_text=last_assistant_text,
        recent_output=tuple(output[-recent_output_limit:]) if recent_output_limit > 0 else (),
    )


def derive_status(transcript: Transcript, now: datetime, idle_after: timedelta) -> SessionStatus:
    """Classify a session.

    - idle: no activity for longer than idle_after
    - waiting: blocked on a tool call needing approval, or the assistant
      finished its turn and the user has not replied
    - working: anything else (the assistant or a tool is mid-turn)
    """
    if now - transcript.last_activity_at > idle_after:
        return SessionStatus.IDLE
    if transcript.pending_tool is not None:
        return SessionStatus.WAITING
    if transcript.last_speaker == OutputRole.ASSISTANT and not transcript.tool_running:
        return SessionStatus.WAITING
    return SessionStatus.WORKING


def derive_goal(transcript: Transcript) -> str:
    return _truncate(_first_line(transcript.original_prompt), GOAL_MAX_CHARS)


def derive_summary(transcript: Transcript) -> str:
    if transcript.summary:
        return _truncate(transcript.summary, GOAL_MAX_CHARS)
    if transcript.last_assistant_text:
        return _truncate(_first_line(transcript.last_assistant_text), GOAL_MAX_CHARS)
    return ""
