"""Tests for the injected package sync action."""

import os
from pathlib import Path

import pytest

from injected_sync.services.syncer import (
    injected_targets,
    iter_package_files,
    patch_directory,
    sync_package,
    synchronize,
)


@pytest.fixture
def pkg(workspace: Path) -> Path:
    return workspace / "packages" / "lib"


@pytest.fixture
def target(workspace: Path, injected_target: str) -> Path:
    return workspace / injected_target


class TestPatchDirectory:
    """Tests for patch_directory."""

    def test_copies_new_files(self, pkg: Path, target: Path) -> None:
        (pkg / "src").mkdir()
        (pkg / "src" / "util.js").write_text("export {};\n")

        copied, removed = patch_directory(pkg, target)

        assert (copied, removed) == (3, 0)
        assert (target / "src" / "util.js").read_text() == "export {};\n"

    def test_skips_unchanged_files(self, pkg: Path, target: Path) -> None:
        patch_directory(pkg, target)
        assert patch_directory(pkg, target) == (0, 0)

    def test_updates_changed_files(self, pkg: Path, target: Path) -> None:
        patch_directory(pkg, target)
        (pkg / "index.js").write_text("export const answer = 43;\n")

        copied, _ = patch_directory(pkg, target)

        assert copied == 1
        assert "43" in (target / "index.js").read_text()

    def test_removes_deleted_files(self, pkg: Path, target: Path) -> None:
        patch_directory(pkg, target)
        (pkg / "index.js").unlink()

        _, removed = patch_directory(pkg, target)

        assert removed == 1
        assert not (target / "index.js").exists()

    def test_leaves_node_modules_alone(self, pkg: Path, target: Path) -> None:
        """Nested dependencies are neither copied nor pruned."""
        (pkg / "node_modules" / "dep").mkdir(parents=True)
        (pkg / "node_modules" / "dep" / "index.js").write_text("")
        (target / "node_modules" / "other").mkdir(parents=True)
        (target / "node_modules" / "other" / "index.js").write_text("")

        patch_directory(pkg, target)

        assert not (target / "node_modules" / "dep").exists()
        assert (target / "node_modules" / "other" / "index.js").exists()

    def test_iter_package_files_is_relative(self, pkg: Path) -> None:
        assert sorted(iter_package_files(pkg)) == [Path("index.js"), Path("package.json")]


class TestSyncPackage:
    """Tests for sync_package and synchronize."""

    def test_targets_come_from_manifest(self, workspace: Path, pkg: Path, target: Path) -> None:
        assert injected_targets(pkg, workspace) == [target]

    def test_unknown_package_has_no_targets(self, workspace: Path, tmp_path: Path) -> None:
        assert injected_targets(tmp_path, workspace) == []

    def test_sync_package_updates_copy(self, workspace: Path, pkg: Path, target: Path) -> None:
        assert sync_package(pkg, workspace) is True
        assert (target / "index.js").read_text() == (pkg / "index.js").read_text()

    def test_sync_preserves_mtime(self, workspace: Path, pkg: Path, target: Path) -> None:
        sync_package(pkg, workspace)
        assert os.stat(target / "index.js").st_mtime_ns == os.stat(pkg / "index.js").st_mtime_ns

    def test_sync_failure_returns_false(
        self, workspace: Path, pkg: Path, target: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A target that is a file cannot be patched; the error is logged."""
        target.parent.mkdir(parents=True)
        target.write_text("in the way")

        assert sync_package(pkg, workspace) is False
        assert "Failed to sync @demo/lib" in caplog.text

    @pytest.mark.asyncio
    async def test_synchronize_runs_in_thread(
        self, workspace: Path, pkg: Path, target: Path
    ) -> None:
        assert await synchronize(pkg, workspace) is True
        assert (target / "package.json").exists()
