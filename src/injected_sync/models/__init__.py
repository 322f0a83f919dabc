"""Pydantic and enum models shared by the coordination core.

- LockRecord: content of the leader lock file
- Role: per-invocation role (undetermined, client, leader)
"""

from .lock import LockRecord
from .role import Role

__all__ = [
    "LockRecord",
    "Role",
]
