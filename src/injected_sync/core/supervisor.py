"""Supervision of the wrapped command.

One supervisor per ``run`` invocation: it settles the coordination role,
spawns the command through the shell with inherited stdio, forwards
termination signals, and propagates the child's exit code. Whichever of
"child exited" and "signal received" comes first drives teardown; the
other becomes a no-op.
"""

import asyncio
import logging
import signal
from enum import Enum
from pathlib import Path

from ..constants import FORCE_EXIT_TIMEOUT, FORWARDED_SIGNALS, SIGNAL_EXIT_CODES
from .election import Coordinator

logger = logging.getLogger(__name__)

SPAWN_FAILURE_EXIT_CODE = 1


class SupervisorState(str, Enum):
    """Lifecycle of one supervised invocation."""

    STARTING = "starting"
    RUNNING = "running"
    EXITING = "exiting"
    EXITED = "exited"


def signal_exit_code(sig: signal.Signals) -> int:
    """Exit code conventionally reported for death by signal."""
    return SIGNAL_EXIT_CODES.get(sig, 128 + int(sig))


def normalize_returncode(returncode: int | None) -> int:
    """Map an asyncio returncode to a process exit code.

    asyncio reports death by signal N as -N; shells report it as 128 + N.
    """
    if returncode is None:
        return 0
    if returncode < 0:
        return 128 - returncode
    return returncode


class ProcessSupervisor:
    """Run one shell command under shared-watcher coordination."""

    def __init__(
        self,
        command: str,
        coordinator: Coordinator | None = None,
        *,
        cwd: Path | None = None,
        force_exit_timeout: float = FORCE_EXIT_TIMEOUT,
        signals: tuple[signal.Signals, ...] = FORWARDED_SIGNALS,
    ) -> None:
        self.command = command
        self.coordinator = coordinator
        self.cwd = cwd
        self.force_exit_timeout = force_exit_timeout
        self.state = SupervisorState.STARTING
        self.child_exited = False
        self.child_exit_code: int | None = None
        self._signals = signals
        self._proc: asyncio.subprocess.Process | None = None
        self._exiting = False
        self._exit: asyncio.Future[int] | None = None
        self._child_task: asyncio.Task[None] | None = None
        self._force_exit_handle: asyncio.TimerHandle | None = None
        self._installed_signals: list[signal.Signals] = []

    async def run(self) -> int:
        """Supervise the command until it (or this invocation) exits.

        Returns:
            Exit code for this invocation
        """
        loop = asyncio.get_running_loop()
        self._exit = loop.create_future()
        self._install_signal_handlers(loop)
        try:
            if self.coordinator is not None:
                await self.coordinator.start()

            if not self._exiting:
                await self._spawn()

            return await self._exit
        finally:
            self._cleanup()

    async def _spawn(self) -> None:
        logger.info(f"Running: {self.command}")
        try:
            self._proc = await asyncio.create_subprocess_shell(self.command, cwd=self.cwd)
        except OSError as e:
            logger.error(f"Failed to start child process: {e}")
            self._exiting = True
            self.state = SupervisorState.EXITING
            if self.coordinator is not None:
                self.coordinator.shutdown()
            self._finish(SPAWN_FAILURE_EXIT_CODE)
            return

        self.state = SupervisorState.RUNNING
        logger.debug(f"Child process started with PID {self._proc.pid}")
        self._child_task = asyncio.create_task(self._wait_child(self._proc))

    async def _wait_child(self, proc: asyncio.subprocess.Process) -> None:
        returncode = await proc.wait()
        self.on_child_exit(returncode)

    def on_child_exit(self, returncode: int | None) -> None:
        """Handle the child's natural exit."""
        self.child_exited = True
        self.child_exit_code = normalize_returncode(returncode)

        if self._exiting:
            # Teardown already ran for the signal
            self._finish(self.child_exit_code)
            return

        self._exiting = True
        self.state = SupervisorState.EXITING
        logger.info(f"Child process exited with code {returncode}")

        if self.coordinator is not None:
            was_leader = self.coordinator.is_leader
            remaining = self.coordinator.shutdown()
            if not was_leader and not remaining:
                logger.info("Last client exiting")

        self._finish(self.child_exit_code)

    def on_signal(self, sig: signal.Signals) -> None:
        """Handle a termination signal received by this invocation."""
        if self._exiting:
            return
        self._exiting = True
        self.state = SupervisorState.EXITING
        logger.info(f"Received {sig.name}, forwarding to child...")

        proc = self._proc
        if proc is not None and proc.returncode is None:
            try:
                proc.send_signal(sig)
            except ProcessLookupError:
                logger.debug("Child already gone, nothing to forward")

        if self.coordinator is not None:
            self.coordinator.shutdown()

        if proc is None:
            # Signal arrived before the command was spawned
            self._finish(signal_exit_code(sig))
            return

        loop = asyncio.get_running_loop()
        self._force_exit_handle = loop.call_later(self.force_exit_timeout, self._force_exit, sig)

    def _force_exit(self, sig: signal.Signals) -> None:
        self._force_exit_handle = None
        logger.warning("Force exit after signal")
        if self.child_exit_code is not None:
            self._finish(self.child_exit_code)
        else:
            self._finish(signal_exit_code(sig))

    def request_exit(self, code: int = 0) -> None:
        """Exit this invocation with code (used when the watcher goes idle)."""
        self._exiting = True
        self._finish(code)

    def _finish(self, code: int) -> None:
        if self._exit is not None and not self._exit.done():
            self._exit.set_result(code)

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in self._signals:
            try:
                loop.add_signal_handler(sig, self.on_signal, sig)
            except (NotImplementedError, RuntimeError, ValueError):
                # Not the main thread, or platform without signal support
                logger.debug(f"Cannot install handler for {sig.name}")
                continue
            self._installed_signals.append(sig)

    def _cleanup(self) -> None:
        self.state = SupervisorState.EXITED
        if self._force_exit_handle is not None:
            self._force_exit_handle.cancel()
            self._force_exit_handle = None

        loop = asyncio.get_running_loop()
        for sig in self._installed_signals:
            loop.remove_signal_handler(sig)
        self._installed_signals.clear()

        task, self._child_task = self._child_task, None
        if task is not None and not task.done():
            task.cancel()
