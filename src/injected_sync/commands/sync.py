"""Sync command implementation."""

import typer

from ..config import load_config
from ..constants import DISABLE_ENV_VAR
from ..output import get_output_context
from ..services import WorkspaceError, resolve_tracked_directories, sync_package
from .common import list_directories, require_workspace


def sync() -> None:
    """Sync injected dependencies once and exit."""
    ctx = get_output_context()

    workspace_dir = require_workspace(ctx)
    config = load_config(workspace_dir)
    if config.disabled:
        ctx.print(f"Sync disabled via {DISABLE_ENV_VAR}")
        return

    ctx.print(f"Found workspace at: {workspace_dir}")
    try:
        directories = resolve_tracked_directories(workspace_dir)
    except WorkspaceError as e:
        ctx.error(str(e))
        raise typer.Exit(1) from None

    if not directories:
        ctx.print("No injected dependencies found.")
        return

    list_directories(ctx, directories, workspace_dir)
    ctx.print("\nSyncing...")
    failures = [d for d in directories if not sync_package(d, workspace_dir)]

    if failures:
        ctx.error(f"{len(failures)} of {len(directories)} dependencies failed to sync")
        raise typer.Exit(1)
    ctx.success("\nSync complete!")
