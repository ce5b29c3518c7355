"""Shared fixtures for agntc tests."""

import json
import shutil
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from agntc.config.schemas import ManifestEntry
from agntc.drivers import get_driver
from agntc.drivers.base import AgentWithDriver


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory."""
    path = Path(tempfile.mkdtemp(prefix="agntc_test_"))
    yield path
    if path.exists():
        shutil.rmtree(path)


@pytest.fixture
def temp_project(temp_dir: Path) -> Path:
    """Create a temporary project directory."""
    project_dir = temp_dir / "test-project"
    project_dir.mkdir()
    return project_dir


@pytest.fixture
def sources_dir(temp_dir: Path) -> Path:
    """Directory holding bundle sources, outside the project."""
    path = temp_dir / "sources"
    path.mkdir()
    return path


def write_config(bundle_dir: Path, agents: list[str]) -> None:
    """Write an agntc.json declaring ``agents``."""
    bundle_dir.mkdir(parents=True, exist_ok=True)
    (bundle_dir / "agntc.json").write_text(json.dumps({"agents": agents}))


@pytest.fixture
def make_bare_skill(sources_dir: Path) -> Callable[..., Path]:
    """Factory for bare skill bundles."""

    def _make(
        name: str = "my-skill",
        agents: list[str] | None = None,
        extra_files: dict[str, str] | None = None,
        parent: Path | None = None,
    ) -> Path:
        bundle_dir = (parent or sources_dir) / name
        write_config(bundle_dir, agents if agents is not None else ["claude", "codex"])
        (bundle_dir / "SKILL.md").write_text(f"# {name}\n")
        for rel_path, content in (extra_files or {}).items():
            file_path = bundle_dir / rel_path
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content)
        return bundle_dir

    return _make


@pytest.fixture
def make_plugin(sources_dir: Path) -> Callable[..., Path]:
    """Factory for plugin bundles.

    ``assets`` maps an asset dir to ``{relative path: content}``; a path
    containing ``/`` creates a nested directory.
    """

    def _make(
        name: str = "my-plugin",
        agents: list[str] | None = None,
        assets: dict[str, dict[str, str]] | None = None,
        parent: Path | None = None,
    ) -> Path:
        bundle_dir = (parent or sources_dir) / name
        write_config(bundle_dir, agents if agents is not None else ["claude", "codex"])
        if assets is None:
            assets = {
                "skills": {"planning/SKILL.md": "# planning\n"},
                "agents": {"reviewer.md": "# reviewer\n"},
            }
        for asset_dir, files in assets.items():
            (bundle_dir / asset_dir).mkdir(parents=True, exist_ok=True)
            for rel_path, content in files.items():
                file_path = bundle_dir / asset_dir / rel_path
                file_path.parent.mkdir(parents=True, exist_ok=True)
                file_path.write_text(content)
        return bundle_dir

    return _make


@pytest.fixture
def make_entry() -> Callable[..., ManifestEntry]:
    """Factory for manifest entries with sensible defaults."""

    def _make(**overrides: object) -> ManifestEntry:
        data: dict[str, object] = {
            "ref": None,
            "commit": "a" * 40,
            "installed_at": "2026-01-01T00:00:00.000Z",
            "agents": ["claude"],
            "files": [],
            "clone_url": None,
        }
        data.update(overrides)
        return ManifestEntry(**data)

    return _make


@pytest.fixture
def claude_agent() -> AgentWithDriver:
    return AgentWithDriver(id="claude", driver=get_driver("claude"))


@pytest.fixture
def codex_agent() -> AgentWithDriver:
    return AgentWithDriver(id="codex", driver=get_driver("codex"))


@pytest.fixture
def both_agents(claude_agent: AgentWithDriver, codex_agent: AgentWithDriver) -> list[AgentWithDriver]:
    return [claude_agent, codex_agent]
