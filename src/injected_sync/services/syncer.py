"""Copy injected package files into the places pnpm injected them.

pnpm installs an injected workspace package as a hard copy rather than a
symlink, so edits to the source package are invisible to dependents until
the copies are refreshed. A sync patches each copy in place: changed files
are copied over, files deleted from the source are deleted from the copy.
"""

import asyncio
import logging
import os
import shutil
from collections.abc import Iterator
from pathlib import Path

from .workspace import WorkspaceError, package_label, read_injected_deps

logger = logging.getLogger(__name__)

# Never copied, never pruned from a target
EXCLUDED_DIRS = frozenset({"node_modules", ".git"})


def iter_package_files(root: Path) -> Iterator[Path]:
    """Yield package files under root, relative to root."""
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in EXCLUDED_DIRS]
        base = Path(dirpath)
        for filename in filenames:
            yield (base / filename).relative_to(root)


def _is_current(source: Path, target: Path) -> bool:
    try:
        src_stat = source.stat()
        dst_stat = target.stat()
    except OSError:
        return False
    return src_stat.st_size == dst_stat.st_size and src_stat.st_mtime_ns == dst_stat.st_mtime_ns


def patch_directory(source: Path, target: Path) -> tuple[int, int]:
    """Make target's package files match source's.

    Args:
        source: Package source directory
        target: Injected copy to update

    Returns:
        Tuple of (files copied, files removed)
    """
    source_files = set(iter_package_files(source))
    target.mkdir(parents=True, exist_ok=True)

    copied = 0
    for rel in sorted(source_files):
        src = source / rel
        dst = target / rel
        if _is_current(src, dst):
            continue
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dst)
        copied += 1

    removed = 0
    for rel in list(iter_package_files(target)):
        if rel not in source_files:
            (target / rel).unlink(missing_ok=True)
            removed += 1

    return copied, removed


def injected_targets(pkg_dir: Path, workspace_dir: Path) -> list[Path]:
    """Get the directories pkg_dir is injected into."""
    pkg_dir = pkg_dir.resolve()
    for rel, targets in read_injected_deps(workspace_dir).items():
        if (workspace_dir / rel).resolve() == pkg_dir:
            return [(workspace_dir / t).resolve() for t in targets]
    return []


def sync_package(pkg_dir: Path, workspace_dir: Path) -> bool:
    """Synchronize one injected package into all of its copies.

    Failures are logged, never raised.

    Args:
        pkg_dir: Package source directory
        workspace_dir: Workspace root

    Returns:
        True if every copy was updated
    """
    label = package_label(pkg_dir, workspace_dir)
    logger.info(f"Syncing {label}...")
    try:
        targets = injected_targets(pkg_dir, workspace_dir)
        for target in targets:
            copied, removed = patch_directory(pkg_dir, target)
            logger.debug(f"{target}: {copied} copied, {removed} removed")
    except (OSError, WorkspaceError) as e:
        logger.error(f"✗ Failed to sync {label}: {e}")
        return False

    logger.info(f"✓ Synced {label}")
    return True


async def synchronize(pkg_dir: Path, workspace_dir: Path) -> bool:
    """Run sync_package in a worker thread."""
    return await asyncio.to_thread(sync_package, pkg_dir, workspace_dir)
