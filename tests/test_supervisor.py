"""Tests for the wrapped-command supervisor."""

import asyncio
import signal
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from injected_sync.config import TimingConfig
from injected_sync.core.client_registry import ClientRegistry
from injected_sync.core.election import Coordinator
from injected_sync.core.supervisor import (
    ProcessSupervisor,
    SupervisorState,
    normalize_returncode,
    signal_exit_code,
)
from injected_sync.models import Role


def fake_coordinator(is_leader: bool = False, remaining: list[int] | None = None) -> MagicMock:
    coordinator = MagicMock(spec=Coordinator)
    coordinator.start = AsyncMock(return_value=Role.LEADER if is_leader else Role.CLIENT)
    coordinator.is_leader = is_leader
    coordinator.shutdown.return_value = remaining or []
    return coordinator


async def wait_until_running(supervisor: ProcessSupervisor) -> None:
    for _ in range(200):
        if supervisor.state is SupervisorState.RUNNING:
            return
        await asyncio.sleep(0.01)
    raise AssertionError("child never started")


class TestExitCodes:
    """Tests for exit code helpers."""

    @pytest.mark.parametrize(
        ("sig", "code"),
        [(signal.SIGINT, 130), (signal.SIGTERM, 143), (signal.SIGHUP, 129)],
    )
    def test_signal_exit_codes(self, sig: signal.Signals, code: int) -> None:
        assert signal_exit_code(sig) == code

    def test_other_signals_use_128_plus_number(self) -> None:
        assert signal_exit_code(signal.SIGUSR1) == 128 + signal.SIGUSR1

    @pytest.mark.parametrize(("returncode", "code"), [(0, 0), (3, 3), (None, 0), (-15, 143)])
    def test_normalize_returncode(self, returncode: int | None, code: int) -> None:
        """Negative asyncio return codes (death by signal) map to 128 + N."""
        assert normalize_returncode(returncode) == code


@pytest.mark.asyncio
class TestChildExit:
    """The child exits on its own."""

    async def test_exit_code_is_propagated(self) -> None:
        supervisor = ProcessSupervisor("exit 3")
        assert await supervisor.run() == 3
        assert supervisor.child_exited
        assert supervisor.state is SupervisorState.EXITED

    async def test_shell_features_work(self, tmp_path: Path) -> None:
        """Commands run through a shell, so compound commands work."""
        marker = tmp_path / "marker"
        supervisor = ProcessSupervisor(f"echo hi > {marker} && exit 0")
        assert await supervisor.run() == 0
        assert marker.read_text().strip() == "hi"

    async def test_spawn_failure_exits_1(self, tmp_path: Path) -> None:
        """A command that cannot be spawned is fatal and releases coordination."""
        coordinator = fake_coordinator()
        supervisor = ProcessSupervisor("true", coordinator, cwd=tmp_path / "missing")

        assert await supervisor.run() == 1
        coordinator.shutdown.assert_called_once()

    async def test_client_shuts_down_on_child_exit(self) -> None:
        coordinator = fake_coordinator(is_leader=False, remaining=[])
        supervisor = ProcessSupervisor("exit 0", coordinator)

        assert await supervisor.run() == 0
        coordinator.start.assert_awaited_once()
        coordinator.shutdown.assert_called_once()

    async def test_leader_tears_down_for_real(self, lock_path: Path, tmp_path: Path) -> None:
        """A real leader leaves no lock or client list behind."""
        pkg = tmp_path / "pkg"
        pkg.mkdir()
        synced: list[Path] = []

        async def sync(directory: Path) -> bool:
            synced.append(directory)
            return True

        supervisor = ProcessSupervisor("exit 5")
        supervisor.coordinator = Coordinator(
            lock_path,
            pid=4_300_001,
            resolve_directories=lambda: [pkg],
            synchronize=sync,
            child_exited=lambda: supervisor.child_exited,
            on_idle=supervisor.request_exit,
            timing=TimingConfig(promotion_interval=0.05, reaper_interval=0.05),
            is_alive=lambda pid: True,
        )

        assert await supervisor.run() == 5
        assert supervisor.coordinator.role is Role.LEADER
        assert synced == [pkg]
        assert not lock_path.exists()
        assert not ClientRegistry(lock_path).path.exists()


@pytest.mark.asyncio
class TestSignals:
    """This invocation receives a termination signal."""

    async def test_signal_is_forwarded_to_child(self) -> None:
        supervisor = ProcessSupervisor("exec sleep 30")
        task = asyncio.create_task(supervisor.run())
        await wait_until_running(supervisor)

        supervisor.on_signal(signal.SIGTERM)

        assert await asyncio.wait_for(task, timeout=5) == 143
        assert supervisor.child_exited

    async def test_signal_runs_shutdown_once(self) -> None:
        """Repeated signals are no-ops."""
        coordinator = fake_coordinator()
        supervisor = ProcessSupervisor("exec sleep 30", coordinator)
        task = asyncio.create_task(supervisor.run())
        await wait_until_running(supervisor)

        supervisor.on_signal(signal.SIGINT)
        supervisor.on_signal(signal.SIGTERM)

        assert await asyncio.wait_for(task, timeout=5) == 130
        coordinator.shutdown.assert_called_once()

    @pytest.mark.slow
    async def test_forced_exit_when_child_ignores_signal(self) -> None:
        """The grace period bounds how long a stubborn child can hold us."""
        supervisor = ProcessSupervisor("trap '' TERM; exec sleep 30", force_exit_timeout=0.3)
        task = asyncio.create_task(supervisor.run())
        await wait_until_running(supervisor)
        proc = supervisor._proc
        try:
            await asyncio.sleep(0.1)
            supervisor.on_signal(signal.SIGTERM)
            assert await asyncio.wait_for(task, timeout=5) == 143
            assert not supervisor.child_exited
        finally:
            assert proc is not None
            proc.kill()
            await proc.wait()

    async def test_signal_before_spawn_skips_command(self, tmp_path: Path) -> None:
        """A signal during startup exits without running the command."""
        marker = tmp_path / "ran"
        coordinator = fake_coordinator()
        supervisor = ProcessSupervisor(f"touch {marker}", coordinator)

        async def interrupted_start() -> Role:
            supervisor.on_signal(signal.SIGINT)
            return Role.CLIENT

        coordinator.start.side_effect = interrupted_start

        assert await supervisor.run() == 130
        assert not marker.exists()
        coordinator.shutdown.assert_called_once()

    async def test_idle_watcher_requests_exit(self) -> None:
        supervisor = ProcessSupervisor("exec sleep 30")
        task = asyncio.create_task(supervisor.run())
        await wait_until_running(supervisor)
        proc = supervisor._proc

        supervisor.request_exit(0)

        assert await asyncio.wait_for(task, timeout=5) == 0
        assert proc is not None
        proc.kill()
        await proc.wait()
