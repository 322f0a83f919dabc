"""Constants for pnpm-injected-sync."""

import signal

# Environment flag that turns off all lock, registry and watch activity
DISABLE_ENV_VAR = "PNPM_INJECTED_SYNC_DISABLED"
TRUTHY_VALUES = frozenset({"true", "1", "yes", "on"})

# Coordination files, co-located in the workspace root
LOCK_FILE_NAME = ".pnpm-injected-sync.lock"
CLIENTS_SUFFIX = ".clients"
CONFIG_FILE_NAME = ".pnpm-injected-sync.toml"

# Timings
DEBOUNCE_MS = 100
PROMOTION_INTERVAL = 2.0  # seconds
REAPER_INTERVAL = 5.0  # seconds
FORCE_EXIT_TIMEOUT = 5.0  # seconds

# Signals forwarded to the wrapped command, with the exit code used when the
# child never reports its own (128 + signal number)
FORWARDED_SIGNALS = (signal.SIGINT, signal.SIGTERM, signal.SIGHUP)
SIGNAL_EXIT_CODES = {
    signal.SIGINT: 130,
    signal.SIGTERM: 143,
    signal.SIGHUP: 129,
}
