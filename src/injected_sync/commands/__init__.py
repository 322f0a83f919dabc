"""CLI command implementations for pnpm-injected-sync.

This package contains the implementation of each CLI command,
separated from the CLI framework setup in cli.py.
"""

from .run import build_supervisor, run
from .sync import sync
from .watch import watch

__all__ = [
    "build_supervisor",
    "run",
    "sync",
    "watch",
]
