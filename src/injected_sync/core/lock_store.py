"""Filesystem lock deciding which invocation leads a workspace.

Leadership is won by whichever process first publishes a lock record at a
well-known path. Publication is atomic and exclusive: the record is fully
written to a private temp file, then hard-linked into place, which fails
if the lock already exists. Readers therefore never see a half-written
record, and an existing lock is never overwritten.
"""

import logging
import os
import uuid
from pathlib import Path

from pydantic import ValidationError

from ..models import LockRecord

logger = logging.getLogger(__name__)


class LockError(Exception):
    """Error creating or removing the leader lock."""


class LockStore:
    """Leader lock stored as a single JSON file ``{"pid", "timestamp"}``."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def acquire(self, pid: int) -> bool:
        """Try to become the lock owner.

        Args:
            pid: Process ID to record as owner

        Returns:
            True if this call created the lock, False if it already exists

        Raises:
            LockError: On any filesystem error other than "already exists"
        """
        record = LockRecord(pid=pid)
        tmp_path = self.path.with_name(f".{self.path.name}.{pid}.{uuid.uuid4().hex}.tmp")
        try:
            tmp_path.write_text(record.model_dump_json())
            os.link(tmp_path, self.path)
        except FileExistsError:
            return False
        except OSError as e:
            raise LockError(f"Failed to create lock file {self.path}: {e}") from e
        finally:
            tmp_path.unlink(missing_ok=True)

        logger.debug(f"Acquired lock {self.path} for PID {pid}")
        return True

    def read_owner(self) -> LockRecord | None:
        """Get the current lock record.

        Returns:
            LockRecord if a valid lock exists, None if absent or unreadable
        """
        try:
            content = self.path.read_bytes()
        except OSError:
            return None

        try:
            return LockRecord.model_validate_json(content)
        except ValidationError:
            # Corrupted lock file - treat as no lock
            return None

    def release(self, pid: int | None = None) -> None:
        """Remove the lock file.

        Idempotent: a missing file is not an error.

        Args:
            pid: If given, only remove the lock when it is owned by this PID
        """
        if pid is not None:
            existing = self.read_owner()
            if existing is None or existing.pid != pid:
                return
        self.path.unlink(missing_ok=True)

    def release_stale(self, stale: LockRecord | None) -> None:
        """Remove the lock only if it still holds the given stale record.

        Guards against deleting a fresh lock that another promoter
        published after ``stale`` was read.

        Args:
            stale: Record previously read via read_owner (None if it was
                absent or unparsable)
        """
        if self.read_owner() == stale:
            self.path.unlink(missing_ok=True)
