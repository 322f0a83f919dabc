"""Shared test fixtures for pnpm-injected-sync tests."""

import json
from collections.abc import Generator
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from injected_sync.constants import DISABLE_ENV_VAR, LOCK_FILE_NAME

INJECTED_TARGET = "node_modules/.pnpm/@demo+lib@file+packages+lib/node_modules/@demo/lib"


@pytest.fixture(autouse=True)
def sync_enabled(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make sure the developer's environment cannot disable syncing."""
    monkeypatch.delenv(DISABLE_ENV_VAR, raising=False)


@pytest.fixture
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create an installed pnpm workspace with one injected package.

    Layout:
        pnpm-workspace.yaml
        node_modules/.modules.yaml   (injectedDeps: packages/lib -> INJECTED_TARGET)
        packages/lib/{package.json,index.js}
    """
    root = (tmp_path / "ws").resolve()
    (root / "node_modules").mkdir(parents=True)
    (root / "pnpm-workspace.yaml").write_text("packages:\n  - packages/*\n")

    pkg = root / "packages" / "lib"
    pkg.mkdir(parents=True)
    (pkg / "package.json").write_text(json.dumps({"name": "@demo/lib", "version": "1.0.0"}))
    (pkg / "index.js").write_text("export const answer = 42;\n")

    manifest = {"layoutVersion": 5, "injectedDeps": {"packages/lib": [INJECTED_TARGET]}}
    (root / "node_modules" / ".modules.yaml").write_text(yaml.safe_dump(manifest))
    return root


@pytest.fixture
def in_workspace(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Change cwd to the workspace for the duration of the test."""
    monkeypatch.chdir(workspace)
    yield workspace


@pytest.fixture
def injected_target() -> str:
    """Workspace-relative directory the demo package is injected into."""
    return INJECTED_TARGET


@pytest.fixture
def lock_path(tmp_path: Path) -> Path:
    """Lock file path inside an empty directory."""
    d = tmp_path / "locks"
    d.mkdir()
    return d / LOCK_FILE_NAME
