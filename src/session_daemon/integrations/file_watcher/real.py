"""Real file watcher backed by watchfiles."""

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path

from watchfiles import awatch

from session_daemon.integrations.file_watcher.abc import FileWatcher

# Short grouping window; coalescing proper is done per path by the detector.
_WATCHFILES_DEBOUNCE_MS = 50
_WATCHFILES_STEP_MS = 25


class RealFileWatcher(FileWatcher):
    """Production implementation using native OS notifications via watchfiles."""

    async def watch(self, root: Path, stop_event: asyncio.Event) -> AsyncIterator[set[Path]]:
        async for changes in awatch(
            root,
            stop_event=stop_event,
            debounce=_WATCHFILES_DEBOUNCE_MS,
            step=_WATCHFILES_STEP_MS,
            recursive=True,
        ):
            yield {Path(path) for _, path in changes}
