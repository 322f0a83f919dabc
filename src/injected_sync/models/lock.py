"""Lock record model for shared-watcher leadership.

The lock file's presence is the sole source of truth for which process
currently runs the watchers for a workspace.
"""

import time

from pydantic import BaseModel, Field


def _now_ms() -> int:
    return int(time.time() * 1000)


class LockRecord(BaseModel):
    """Leader lock written to <workspace>/.pnpm-injected-sync.lock.

    Attributes:
        pid: Process ID of the leader.
        timestamp: When the lock was created, in milliseconds since the epoch.
    """

    pid: int = Field(description="Process ID holding the lock")
    timestamp: int = Field(default_factory=_now_ms, description="Creation time (epoch ms)")
