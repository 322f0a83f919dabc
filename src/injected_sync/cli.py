"""pnpm-injected-sync CLI: keep injected workspace dependencies in sync."""

import typer

from injected_sync import __version__

from .commands import run, sync, watch
from .logging import configure_logging
from .output import OutputContext, set_output_context


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"pnpm-injected-sync {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="pnpm-injected-sync",
    help="Sync PNPM injected dependencies",
    no_args_is_help=True,
    epilog=(
        "The 'run' command starts or connects to a shared watcher, executes your "
        "command, and keeps watching until all commands exit."
    ),
)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v, -vv)",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only show warnings and errors",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
) -> None:
    """pnpm-injected-sync - Sync PNPM injected dependencies."""
    console = configure_logging(
        verbosity=verbose,
        quiet=quiet,
        no_color=no_color,
    )
    set_output_context(OutputContext(console=console))


app.command()(sync)
app.command()(watch)
app.command(
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)(run)
