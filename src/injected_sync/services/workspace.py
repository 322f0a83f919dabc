"""pnpm workspace discovery and modules manifest reading."""

import json
from pathlib import Path
from typing import Any

import yaml

WORKSPACE_FILE = "pnpm-workspace.yaml"
MODULES_DIR = "node_modules"
MODULES_MANIFEST = ".modules.yaml"


class WorkspaceError(Exception):
    """Error reading workspace metadata."""


def find_workspace_root(start: Path) -> Path | None:
    """Find the pnpm workspace containing start.

    The workspace root is the nearest directory (start included) holding
    both pnpm-workspace.yaml and an installed node_modules directory.

    Args:
        start: Directory to search upward from

    Returns:
        Workspace root, or None if not inside an installed pnpm workspace
    """
    start = start.resolve()
    for directory in (start, *start.parents):
        if (directory / WORKSPACE_FILE).is_file() and (directory / MODULES_DIR).is_dir():
            return directory
    return None


def read_modules_manifest(workspace_dir: Path) -> dict[str, Any] | None:
    """Read node_modules/.modules.yaml.

    Returns:
        Parsed manifest, or None if it doesn't exist

    Raises:
        WorkspaceError: If the manifest is not valid YAML mapping
    """
    manifest_path = workspace_dir / MODULES_DIR / MODULES_MANIFEST
    if not manifest_path.exists():
        return None

    try:
        data = yaml.safe_load(manifest_path.read_text())
    except yaml.YAMLError as e:
        raise WorkspaceError(f"Invalid modules manifest {manifest_path}: {e}") from e

    if data is None:
        return None
    if not isinstance(data, dict):
        raise WorkspaceError(f"Invalid modules manifest {manifest_path}: expected a mapping")
    return data


def read_injected_deps(workspace_dir: Path) -> dict[str, list[str]]:
    """Get injected dependencies from the modules manifest.

    Returns:
        Mapping of package dir (relative to the workspace) to the directories
        the package is injected into. Empty if pnpm recorded none.
    """
    manifest = read_modules_manifest(workspace_dir)
    if not manifest:
        return {}

    injected = manifest.get("injectedDeps") or {}
    if not isinstance(injected, dict):
        raise WorkspaceError("Invalid modules manifest: injectedDeps must be a mapping")
    return {str(pkg): [str(t) for t in (targets or [])] for pkg, targets in injected.items()}


def resolve_tracked_directories(workspace_dir: Path) -> list[Path]:
    """Get absolute paths of every injected package directory."""
    return [(workspace_dir / rel).resolve() for rel in read_injected_deps(workspace_dir)]


def read_package_name(pkg_dir: Path) -> str | None:
    """Get the "name" field of pkg_dir/package.json, if readable."""
    try:
        data = json.loads((pkg_dir / "package.json").read_text())
    except (OSError, ValueError):
        return None
    name = data.get("name") if isinstance(data, dict) else None
    return name if isinstance(name, str) and name else None


def package_label(pkg_dir: Path, workspace_dir: Path) -> str:
    """Get a display name for a package: its name, else its relative path."""
    name = read_package_name(pkg_dir)
    if name:
        return name
    try:
        return str(pkg_dir.relative_to(workspace_dir))
    except ValueError:
        return str(pkg_dir)
