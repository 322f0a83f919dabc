"""Watch command implementation."""

import asyncio
import signal
from functools import partial
from pathlib import Path

import typer

from ..config import SyncConfig, load_config
from ..constants import DISABLE_ENV_VAR
from ..core import DebouncedWatcher
from ..output import OutputContext, get_output_context
from ..services import WorkspaceError, package_label, resolve_tracked_directories, synchronize
from .common import list_directories, require_workspace


async def watch_until_signalled(
    ctx: OutputContext,
    directories: list[Path],
    workspace_dir: Path,
    config: SyncConfig,
) -> None:
    """Initial sync, then watch every directory until SIGINT or SIGTERM."""
    sync_dir = partial(synchronize, workspace_dir=workspace_dir)

    ctx.print("\nPerforming initial sync...")
    for directory in directories:
        await sync_dir(directory)

    ctx.print("\nSetting up file watchers...")
    watchers = [
        DebouncedWatcher(
            directory,
            sync_dir,
            debounce_ms=config.timing.debounce_ms,
            label=package_label(directory, workspace_dir),
        )
        for directory in directories
    ]

    loop = asyncio.get_running_loop()
    stop = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    try:
        for watcher in watchers:
            watcher.start()
        ctx.print("\nWatching for changes... (Press Ctrl+C to stop)")
        await stop.wait()
        ctx.print("\nShutting down watchers...")
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        for watcher in watchers:
            watcher.stop(wait=False)
        for watcher in watchers:
            watcher.join()


def watch() -> None:
    """Watch and sync injected dependencies continuously."""
    ctx = get_output_context()

    workspace_dir = require_workspace(ctx)
    config = load_config(workspace_dir)
    if config.disabled:
        ctx.print(f"Watch disabled via {DISABLE_ENV_VAR}")
        return

    ctx.print(f"Found workspace at: {workspace_dir}")
    try:
        directories = resolve_tracked_directories(workspace_dir)
    except WorkspaceError as e:
        ctx.error(str(e))
        raise typer.Exit(1) from None

    if not directories:
        ctx.print("No injected dependencies found. Nothing to watch.")
        return

    list_directories(ctx, directories, workspace_dir)
    asyncio.run(watch_until_signalled(ctx, directories, workspace_dir, config))
    ctx.success("Goodbye!")
