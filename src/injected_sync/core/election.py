"""Leader election and promotion.

Every invocation tries to take the workspace lock once at startup. The
winner runs the watcher runtime; everyone else registers as a client and
polls the lock, taking over when the recorded leader process is gone.

Exclusive lock creation is the only arbiter: two clients may both see a
dead leader and both try to take over, but exactly one acquire succeeds
and the loser simply checks again on its next tick.
"""

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from ..config import TimingConfig
from ..models import Role
from .client_registry import ClientRegistry
from .liveness import is_pid_alive
from .lock_store import LockStore
from .watcher_runtime import ResolveDirectories, Synchronize, WatcherError, WatcherRuntime

logger = logging.getLogger(__name__)


class RoleTransitionError(Exception):
    """Illegal role change."""


class Coordinator:
    """Holds one invocation's role and the state that role owns."""

    def __init__(
        self,
        lock_path: Path,
        *,
        pid: int,
        resolve_directories: ResolveDirectories,
        synchronize: Synchronize,
        child_exited: Callable[[], bool] = lambda: True,
        on_idle: Callable[[], None] = lambda: None,
        timing: TimingConfig | None = None,
        is_alive: Callable[[int], bool] = is_pid_alive,
        label_for: Callable[[Path], str] = str,
    ) -> None:
        self.pid = pid
        self.lock_store = LockStore(lock_path)
        self.registry = ClientRegistry(lock_path)
        self.timing = timing or TimingConfig()
        self.runtime: WatcherRuntime | None = None
        self._role = Role.UNDETERMINED
        self._resolve_directories = resolve_directories
        self._synchronize = synchronize
        self._child_exited = child_exited
        self._on_idle = on_idle
        self._is_alive = is_alive
        self._label_for = label_for
        self._promotion_task: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def role(self) -> Role:
        return self._role

    @property
    def is_leader(self) -> bool:
        return self._role is Role.LEADER

    def _become(self, role: Role) -> None:
        if not self._role.can_become(role):
            raise RoleTransitionError(f"Cannot change role from {self._role.value} to {role.value}")
        self._role = role

    def _new_runtime(self) -> WatcherRuntime:
        return WatcherRuntime(
            self.lock_store,
            self.registry,
            pid=self.pid,
            resolve_directories=self._resolve_directories,
            synchronize=self._synchronize,
            child_exited=self._child_exited,
            on_idle=self._on_idle,
            debounce_ms=self.timing.debounce_ms,
            reaper_interval=self.timing.reaper_interval,
            is_alive=self._is_alive,
            label_for=self._label_for,
        )

    async def _start_runtime(self) -> bool:
        """Start the watcher runtime while holding the lock.

        On failure the lock is handed back so another invocation can try.

        Returns:
            True if the runtime is running
        """
        runtime = self._new_runtime()
        self.runtime = runtime
        try:
            await runtime.start()
        except WatcherError as e:
            logger.warning(f"Cannot run watcher: {e}")
            self.runtime = None
            self.lock_store.release(self.pid)
            return False
        return True

    async def start(self) -> Role:
        """Become leader if the lock is free, otherwise register as client.

        Returns:
            The settled role
        """
        if self.lock_store.acquire(self.pid):
            if await self._start_runtime():
                self._become(Role.LEADER)
                return self._role

        self._become(Role.CLIENT)
        if self._closed:
            return self._role

        logger.info(f"Connecting to existing watcher (PID: {self.pid})")
        self.registry.register(self.pid)
        self._promotion_task = asyncio.create_task(self._promotion_loop())
        return self._role

    async def _promotion_loop(self) -> None:
        while True:
            await asyncio.sleep(self.timing.promotion_interval)
            try:
                if await self.try_promote():
                    return
            except Exception:
                logger.exception("Promotion check failed, retrying on next tick")

    async def try_promote(self) -> bool:
        """Take over the lock if its recorded owner is gone.

        Returns:
            True if this invocation is now the leader
        """
        if self._closed or self._role is not Role.CLIENT:
            return False

        record = self.lock_store.read_owner()
        if record is not None and self._is_alive(record.pid):
            # Leader is fine; make sure it still knows about us
            self.registry.register(self.pid)
            return False

        self.lock_store.release_stale(record)
        if not self.lock_store.acquire(self.pid):
            return False

        logger.info(f"Promoted to watcher (PID: {self.pid})")
        self._become(Role.LEADER)
        if not await self._start_runtime():
            logger.error("Failed to start watcher after promotion")
        return True

    def stop_promotion(self) -> None:
        """Cancel the promotion-check task if one is pending."""
        task, self._promotion_task = self._promotion_task, None
        if task is not None and not task.done():
            task.cancel()

    def shutdown(self) -> list[int]:
        """Give up whatever the current role holds. Idempotent.

        A leader tears down its watcher runtime, which also deletes the lock
        and client list. A client (or undecided invocation) unregisters.

        Returns:
            Client PIDs still registered afterwards
        """
        self._closed = True
        self.stop_promotion()
        if self.runtime is not None:
            self.runtime.stop()
            return []
        return self.registry.unregister(self.pid)
