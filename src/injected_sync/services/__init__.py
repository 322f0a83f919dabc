"""Workspace integrations for pnpm-injected-sync.

- workspace: pnpm workspace discovery and modules manifest reading
- syncer: copying injected package files into their installed copies
"""

from .syncer import patch_directory, sync_package, synchronize
from .workspace import (
    WorkspaceError,
    find_workspace_root,
    package_label,
    read_injected_deps,
    resolve_tracked_directories,
)

__all__ = [
    "WorkspaceError",
    "find_workspace_root",
    "package_label",
    "patch_directory",
    "read_injected_deps",
    "resolve_tracked_directories",
    "sync_package",
    "synchronize",
]
