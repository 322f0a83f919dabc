"""Debounced recursive directory watcher.

A watchdog observer thread reports raw filesystem events. Each event is
handed to the asyncio loop, where it (re)arms a quiet-period timer keyed
by ``(directory, changed entry)``. When a timer elapses without being
reset, the synchronize callback runs once for the directory.
"""

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..constants import DEBOUNCE_MS

logger = logging.getLogger(__name__)

SyncCallback = Callable[[Path], Awaitable[object]]

# Access events, produced among others by the sync action reading sources
IGNORED_EVENT_TYPES = frozenset({"opened", "closed", "closed_no_write"})
IGNORED_PARTS = frozenset({"node_modules", ".git"})


class _ChangeHandler(FileSystemEventHandler):
    """Forwards relevant watchdog events to a DebouncedWatcher."""

    def __init__(self, watcher: "DebouncedWatcher") -> None:
        super().__init__()
        self._watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in IGNORED_EVENT_TYPES:
            return
        if event.is_directory and event.event_type == "modified":
            # Parent of a created, deleted or moved entry; the entry reports itself
            return
        path = os.fsdecode(event.src_path)
        if path:
            self._watcher.notify_threadsafe(path)


class DebouncedWatcher:
    """Watch one directory tree and debounce changes into sync calls."""

    def __init__(
        self,
        directory: Path,
        on_change: SyncCallback,
        debounce_ms: int = DEBOUNCE_MS,
        label: str | None = None,
    ) -> None:
        self.directory = directory
        self.label = label or str(directory)
        self._on_change = on_change
        self._delay = debounce_ms / 1000
        self._timers: dict[tuple[Path, str], asyncio.TimerHandle] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        self._observer: Observer | None = None
        self._stopping: Observer | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stopped = False

    @property
    def pending(self) -> int:
        """Number of armed debounce timers."""
        return len(self._timers)

    def start(self) -> None:
        """Begin observing the directory. Must run inside the event loop."""
        self._loop = asyncio.get_running_loop()
        observer = Observer()
        observer.schedule(_ChangeHandler(self), str(self.directory), recursive=True)
        observer.daemon = True
        observer.start()
        self._observer = observer
        logger.info(f"Watching {self.label}...")

    def notify_threadsafe(self, entry: str) -> None:
        """Report a change from a foreign thread (the observer)."""
        loop = self._loop
        if loop is None or self._stopped:
            return
        try:
            loop.call_soon_threadsafe(self.notify, entry)
        except RuntimeError:
            logger.debug(f"Dropped change to {entry}: event loop closed")

    def notify(self, entry: str) -> None:
        """Report a change to entry and (re)arm its debounce timer."""
        if self._stopped or self._is_ignored(entry):
            return
        loop = self._loop or asyncio.get_running_loop()
        self._loop = loop

        key = (self.directory, entry)
        timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()
        self._timers[key] = loop.call_later(self._delay, self._fire, key)

    def _is_ignored(self, entry: str) -> bool:
        try:
            relative = Path(entry).relative_to(self.directory)
        except ValueError:
            return False
        return any(part in IGNORED_PARTS for part in relative.parts)

    def _fire(self, key: tuple[Path, str]) -> None:
        self._timers.pop(key, None)
        if self._stopped:
            return
        _, entry = key
        logger.info(f"File changed: {self._display(entry)}")
        task = asyncio.get_running_loop().create_task(self._run_sync())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _display(self, entry: str) -> str:
        try:
            return str(Path(self.label) / Path(entry).relative_to(self.directory))
        except ValueError:
            return entry

    async def _run_sync(self) -> None:
        try:
            await self._on_change(self.directory)
        except Exception:
            logger.exception(f"Sync of {self.label} failed")

    def stop(self, wait: bool = True) -> None:
        """Cancel pending timers and release the OS watch. Safe to repeat.

        Args:
            wait: Join the observer thread before returning. Callers stopping
                several watchers pass False and call join() on each afterwards.
        """
        self._stopped = True
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

        observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            self._stopping = observer
        if wait:
            self.join()

    def join(self, timeout: float = 2.0) -> None:
        """Wait for a stopped observer thread to finish."""
        observer, self._stopping = self._stopping, None
        if observer is not None and observer.is_alive():
            observer.join(timeout=timeout)
