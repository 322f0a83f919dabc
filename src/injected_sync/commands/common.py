"""Helpers shared by CLI commands."""

from pathlib import Path

import typer

from ..output import OutputContext
from ..services import find_workspace_root


def require_workspace(ctx: OutputContext) -> Path:
    """Find the workspace around the current directory or exit with code 1."""
    workspace_dir = find_workspace_root(Path.cwd())
    if workspace_dir is None:
        ctx.error("No pnpm workspace found. Please run this from within a pnpm workspace.")
        raise typer.Exit(1)
    return workspace_dir


def list_directories(ctx: OutputContext, directories: list[Path], workspace_dir: Path) -> None:
    """Print the tracked directories relative to the workspace."""
    ctx.print(f"Found {len(directories)} injected dependencies:")
    for directory in directories:
        try:
            shown = directory.relative_to(workspace_dir)
        except ValueError:
            shown = directory
        ctx.print(f"  - {shown}")
