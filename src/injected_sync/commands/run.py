"""Run command: wrap a dev command with a shared dependency watcher."""

import asyncio
import logging
import os
from functools import partial
from pathlib import Path

import typer

from ..config import SyncConfig, load_config
from ..constants import DISABLE_ENV_VAR
from ..core import Coordinator, LockError, ProcessSupervisor
from ..output import get_output_context
from ..services import package_label, resolve_tracked_directories, synchronize
from .common import require_workspace

logger = logging.getLogger(__name__)


def build_supervisor(
    command: str,
    workspace_dir: Path,
    config: SyncConfig,
    pid: int | None = None,
) -> ProcessSupervisor:
    """Create the supervisor for command, coordinated unless sync is disabled.

    Args:
        command: Shell command to run
        workspace_dir: Workspace root
        config: Loaded configuration
        pid: Identity to coordinate under, defaults to this process

    Returns:
        Supervisor ready to run
    """
    supervisor = ProcessSupervisor(
        command,
        force_exit_timeout=config.timing.force_exit_timeout,
    )
    if config.disabled:
        logger.info(f"Sync disabled via {DISABLE_ENV_VAR}")
        return supervisor

    supervisor.coordinator = Coordinator(
        config.lock_path(workspace_dir),
        pid=os.getpid() if pid is None else pid,
        resolve_directories=partial(resolve_tracked_directories, workspace_dir),
        synchronize=partial(synchronize, workspace_dir=workspace_dir),
        child_exited=lambda: supervisor.child_exited,
        on_idle=supervisor.request_exit,
        timing=config.timing,
        label_for=partial(package_label, workspace_dir=workspace_dir),
    )
    return supervisor


def run(
    command: list[str] = typer.Argument(
        ...,
        help="Command to run (quote it or pass it after --)",
        metavar="COMMAND...",
    ),
) -> None:
    """Run a command with automatic dependency syncing.

    Starts or connects to the workspace's shared watcher, runs the command,
    and keeps watching until every command using the watcher has exited.
    """
    ctx = get_output_context()

    workspace_dir = require_workspace(ctx)
    config = load_config(workspace_dir)
    supervisor = build_supervisor(" ".join(command), workspace_dir, config)

    try:
        exit_code = asyncio.run(supervisor.run())
    except LockError as e:
        ctx.error(str(e))
        raise typer.Exit(1) from None
    raise typer.Exit(exit_code)
