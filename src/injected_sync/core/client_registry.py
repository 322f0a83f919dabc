"""Filesystem-backed set of invocations subscribed to the current leader.

Stored next to the lock file as ``<lock>.clients``: a JSON array of PIDs.
Reads tolerate missing or corrupt content by treating it as empty, and
every write replaces the whole file, so a concurrent reader sees either
the old or the new list.
"""

import logging
import os
import uuid
from collections.abc import Callable
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from ..constants import CLIENTS_SUFFIX
from .liveness import is_pid_alive

logger = logging.getLogger(__name__)

_CLIENT_LIST = TypeAdapter(list[int])


def clients_path_for(lock_path: Path) -> Path:
    """Get path to the client list that belongs to a lock file."""
    return lock_path.with_name(lock_path.name + CLIENTS_SUFFIX)


class ClientRegistry:
    """Ordered, duplicate-free set of client PIDs."""

    def __init__(self, lock_path: Path) -> None:
        self.path = clients_path_for(lock_path)

    def load(self) -> list[int]:
        """Read the client list, treating missing or corrupt data as empty."""
        try:
            content = self.path.read_bytes()
        except OSError:
            return []

        try:
            clients = _CLIENT_LIST.validate_json(content)
        except ValidationError:
            return []
        return list(dict.fromkeys(clients))

    def _save(self, clients: list[int]) -> None:
        """Replace the client list, deleting the file when it is empty."""
        if not clients:
            self.path.unlink(missing_ok=True)
            return

        tmp_path = self.path.with_name(f".{self.path.name}.{uuid.uuid4().hex}.tmp")
        try:
            tmp_path.write_bytes(_CLIENT_LIST.dump_json(clients))
            os.replace(tmp_path, self.path)
        finally:
            tmp_path.unlink(missing_ok=True)

    def register(self, pid: int) -> bool:
        """Add pid to the client list if absent.

        Returns:
            True if the list was changed
        """
        clients = self.load()
        if pid in clients:
            return False
        clients.append(pid)
        self._save(clients)
        logger.debug(f"Registered client {pid}")
        return True

    def unregister(self, pid: int) -> list[int]:
        """Remove pid from the client list.

        Returns:
            Remaining client PIDs (the file is deleted when none remain)
        """
        clients = [p for p in self.load() if p != pid]
        self._save(clients)
        logger.debug(f"Unregistered client {pid}, {len(clients)} remaining")
        return clients

    def prune_dead(self, is_alive: Callable[[int], bool] = is_pid_alive) -> list[int]:
        """Drop clients whose process no longer exists.

        Args:
            is_alive: Liveness predicate

        Returns:
            Surviving client PIDs (the file is deleted when none survive)
        """
        clients = self.load()
        alive = [p for p in clients if is_alive(p)]
        if len(alive) != len(clients) or not alive:
            self._save(alive)
        if len(alive) != len(clients):
            logger.debug(f"Pruned {len(clients) - len(alive)} dead client(s)")
        return alive

    def clear(self) -> None:
        """Delete the client list."""
        self.path.unlink(missing_ok=True)
