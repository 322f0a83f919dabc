"""Leader-only watcher runtime.

Once an invocation holds the lock it runs one initial sync pass, watches
every tracked directory, and periodically reaps dead clients. When the
invocation's own child has exited and no live clients remain, the runtime
tears itself down and releases leadership.
"""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from ..constants import DEBOUNCE_MS, REAPER_INTERVAL
from .client_registry import ClientRegistry
from .debounce import DebouncedWatcher
from .liveness import is_pid_alive
from .lock_store import LockStore

logger = logging.getLogger(__name__)

ResolveDirectories = Callable[[], list[Path]]
Synchronize = Callable[[Path], Awaitable[bool]]


class WatcherError(Exception):
    """Watcher runtime could not start."""


class NothingToWatchError(WatcherError):
    """No tracked directories were found."""


class WatcherRuntime:
    """Watchers, debounce timers and reaper owned by the current leader."""

    def __init__(
        self,
        lock_store: LockStore,
        registry: ClientRegistry,
        *,
        pid: int,
        resolve_directories: ResolveDirectories,
        synchronize: Synchronize,
        child_exited: Callable[[], bool],
        on_idle: Callable[[], None],
        debounce_ms: int = DEBOUNCE_MS,
        reaper_interval: float = REAPER_INTERVAL,
        is_alive: Callable[[int], bool] = is_pid_alive,
        label_for: Callable[[Path], str] = str,
    ) -> None:
        self.lock_store = lock_store
        self.registry = registry
        self.pid = pid
        self.watchers: dict[Path, DebouncedWatcher] = {}
        self._resolve_directories = resolve_directories
        self._synchronize = synchronize
        self._child_exited = child_exited
        self._on_idle = on_idle
        self._debounce_ms = debounce_ms
        self._reaper_interval = reaper_interval
        self._is_alive = is_alive
        self._label_for = label_for
        self._reaper_task: asyncio.Task[None] | None = None
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    async def start(self) -> None:
        """Sync everything once, then start watchers and the reaper.

        Raises:
            NothingToWatchError: If there are no tracked directories
            WatcherError: If the tracked directories cannot be resolved
        """
        logger.info(f"Starting watcher process (PID: {self.pid})")
        try:
            directories = self._resolve_directories()
        except WatcherError:
            raise
        except Exception as e:
            raise WatcherError(f"Could not resolve tracked directories: {e}") from e

        if not directories:
            logger.info("No injected dependencies found.")
            raise NothingToWatchError("No injected dependencies found")
        logger.info(f"Found {len(directories)} injected dependencies")

        for directory in directories:
            await self._synchronize(directory)
            if self._stopped:
                return

        # The leader is a client of itself; see reap()
        self.registry.register(self.pid)

        for directory in directories:
            self._watch(directory)

        self._reaper_task = asyncio.create_task(self._reap_loop())
        logger.info("Watcher running in background")

    def _watch(self, directory: Path) -> None:
        if directory in self.watchers:
            return
        watcher = DebouncedWatcher(
            directory,
            self._synchronize,
            debounce_ms=self._debounce_ms,
            label=self._label_for(directory),
        )
        watcher.start()
        self.watchers[directory] = watcher

    async def _reap_loop(self) -> None:
        while not self._stopped:
            await asyncio.sleep(self._reaper_interval)
            try:
                if self.reap():
                    return
            except Exception:
                logger.exception("Client reaping failed, retrying on next tick")

    def reap(self) -> bool:
        """Prune dead clients and shut down if nobody needs the watcher.

        The invocation's own child keeps the watcher alive no matter what
        the registry says.

        Returns:
            True if the runtime shut down
        """
        alive = self.registry.prune_dead(self._is_alive)
        if not self._child_exited():
            return False
        if alive:
            return False

        logger.info("No clients remaining, shutting down watcher...")
        self.stop()
        self._on_idle()
        return True

    def stop(self) -> None:
        """Tear down watchers, timers and coordination files. Idempotent."""
        if self._stopped:
            return
        self._stopped = True

        task, self._reaper_task = self._reaper_task, None
        if task is not None and task is not _current_task():
            task.cancel()

        watchers = list(self.watchers.values())
        for watcher in watchers:
            watcher.stop(wait=False)
        for watcher in watchers:
            watcher.join()
        self.watchers.clear()

        self.registry.clear()
        self.lock_store.release(self.pid)
        logger.debug("Watcher runtime stopped")


def _current_task() -> asyncio.Task[object] | None:
    with contextlib.suppress(RuntimeError):
        return asyncio.current_task()
    return None
