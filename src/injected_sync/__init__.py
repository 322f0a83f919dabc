"""pnpm-injected-sync: keep injected workspace dependencies in sync."""

__version__ = "0.1.0"
