"""Process liveness probe."""

import os


def is_pid_alive(pid: int) -> bool:
    """Check if a process with given PID exists.

    Sends signal 0, which performs the existence and permission checks
    without delivering anything to the target. Non-positive PIDs address
    process groups rather than a single process, so they count as dead.

    Args:
        pid: Process ID to check

    Returns:
        True if the process exists
    """
    if isinstance(pid, bool) or not isinstance(pid, int) or pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except PermissionError:
        # Exists, but owned by another user
        return True
    except (OSError, OverflowError):
        return False
    return True
