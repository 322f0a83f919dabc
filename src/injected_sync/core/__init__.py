"""Shared-watcher coordination core.

- liveness: process existence probe
- lock_store: exclusive leader lock file
- client_registry: PIDs subscribed to the current leader
- debounce: debounced recursive directory watcher
- watcher_runtime: leader-only watchers and client reaper
- election: leader election and client promotion
- supervisor: wrapped-command supervision and signal forwarding
"""

from .client_registry import ClientRegistry, clients_path_for
from .debounce import DebouncedWatcher
from .election import Coordinator, RoleTransitionError
from .liveness import is_pid_alive
from .lock_store import LockError, LockStore
from .supervisor import ProcessSupervisor, SupervisorState, normalize_returncode, signal_exit_code
from .watcher_runtime import NothingToWatchError, WatcherError, WatcherRuntime

__all__ = [
    "ClientRegistry",
    "Coordinator",
    "DebouncedWatcher",
    "LockError",
    "LockStore",
    "NothingToWatchError",
    "ProcessSupervisor",
    "RoleTransitionError",
    "SupervisorState",
    "WatcherError",
    "WatcherRuntime",
    "clients_path_for",
    "is_pid_alive",
    "normalize_returncode",
    "signal_exit_code",
]
