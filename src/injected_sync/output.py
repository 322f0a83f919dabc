"""Output formatting for pnpm-injected-sync."""

from dataclasses import dataclass

from rich.console import Console


@dataclass
class OutputContext:
    """Context for user-facing output."""

    console: Console

    def print(self, message: str, style: str | None = None) -> None:
        """Print a plain message."""
        self.console.print(message, style=style, highlight=False)

    def error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]Error: {message}[/red]", highlight=False)

    def success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]{message}[/green]", highlight=False)


# Global output context (set by cli.py main callback)
_ctx: OutputContext | None = None


def get_output_context() -> OutputContext:
    """Get the current output context.

    Returns a default OutputContext if not yet initialized by CLI.
    """
    if _ctx is None:
        return OutputContext(Console(stderr=True))
    return _ctx


def set_output_context(ctx: OutputContext) -> None:
    """Set the global output context. Called by CLI main callback."""
    global _ctx
    _ctx = ctx
