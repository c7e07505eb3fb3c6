"""Abstract interface for filesystem change notifications."""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from pathlib import Path


class FileWatcher(ABC):
    """Abstract source of raw filesystem notifications.

    Implementations report which paths changed, not how; the change detector
    re-reads every reported path, so creations, modifications and deletions
    need no distinction here.
    """

    @abstractmethod
    def watch(self, root: Path, stop_event: asyncio.Event) -> AsyncIterator[set[Path]]:
        """Yield batches of changed paths under root until stop_event is set.

        Args:
            root: Directory to watch recursively
            stop_event: Ends the iteration once set

        Yields:
            Sets of paths that changed since the previous batch
        """
        ...
