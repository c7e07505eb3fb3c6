"""In-memory fake implementation of FileWatcher for testing."""

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path

from session_daemon.integrations.file_watcher.abc import FileWatcher


class FakeFileWatcher(FileWatcher):
    """Fake watcher driven by the test through emit().

    Nothing touches the real filesystem notification machinery; tests write
    files themselves and then emit the paths they touched.
    """

    def __init__(self) -> None:
        self._batches: asyncio.Queue[set[Path]] = asyncio.Queue()
        self._watched_roots: list[Path] = []

    @property
    def watched_roots(self) -> list[Path]:
        """Roots passed to watch(), for test assertions."""
        return self._watched_roots.copy()

    def emit(self, *paths: Path) -> None:
        """Deliver one batch of change notifications."""
        self._batches.put_nowait(set(paths))

    async def watch(self, root: Path, stop_event: asyncio.Event) -> AsyncIterator[set[Path]]:
        self._watched_roots.append(root)
        stop_waiter = asyncio.ensure_future(stop_event.wait())
        try:
            while not stop_event.is_set():
                batch_getter = asyncio.ensure_future(self._batches.get())
                done, _ = await asyncio.wait(
                    {batch_getter, stop_waiter}, return_when=asyncio.FIRST_COMPLETED
                )
                if batch_getter not in done:
                    batch_getter.cancel()
                    return
                yield batch_getter.result()
        finally:
            stop_waiter.cancel()
