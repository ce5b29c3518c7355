"""Tests for agntc.drivers package."""

from pathlib import Path
from unittest.mock import patch

import pytest

from agntc.drivers import get_driver, list_drivers
from agntc.drivers.claude import ClaudeDriver
from agntc.drivers.codex import CodexDriver


class TestRegistry:
    """Tests for driver registration."""

    def test_builtin_drivers_registered(self):
        """claude and codex are registered in that order."""
        assert list_drivers() == ["claude", "codex"]

    def test_get_driver_returns_instance(self):
        """Registered ids map to driver instances."""
        assert isinstance(get_driver("claude"), ClaudeDriver)
        assert isinstance(get_driver("codex"), CodexDriver)

    def test_get_unknown_driver(self):
        """Unknown ids raise ValueError naming the available ones."""
        with pytest.raises(ValueError, match="No driver registered for agent: cursor"):
            get_driver("cursor")


class TestClaudeDriver:
    """Tests for ClaudeDriver."""

    def test_target_dirs(self):
        """Claude supports all three asset types."""
        driver = ClaudeDriver()

        assert driver.get_target_dir("skills") == ".claude/skills"
        assert driver.get_target_dir("agents") == ".claude/agents"
        assert driver.get_target_dir("hooks") == ".claude/hooks"

    def test_detect_project_dir(self, temp_project: Path):
        """A project .claude directory is enough."""
        (temp_project / ".claude").mkdir()

        with patch("agntc.drivers.base.shutil.which", return_value=None):
            assert ClaudeDriver().detect(temp_project)

    def test_detect_executable(self, temp_project: Path):
        """A claude executable on PATH counts."""
        with patch("agntc.drivers.base.shutil.which", return_value="/usr/bin/claude"):
            assert ClaudeDriver().detect(temp_project)

    def test_detect_home_dir(self, temp_project: Path, temp_dir: Path):
        """A ~/.claude directory counts."""
        home = temp_dir / "home"
        (home / ".claude").mkdir(parents=True)

        with (
            patch("agntc.drivers.base.shutil.which", return_value=None),
            patch("agntc.drivers.claude.Path.home", return_value=home),
        ):
            assert ClaudeDriver().detect(temp_project)

    def test_not_detected(self, temp_project: Path, temp_dir: Path):
        """No signal means not detected."""
        with (
            patch("agntc.drivers.base.shutil.which", return_value=None),
            patch("agntc.drivers.claude.Path.home", return_value=temp_dir / "empty-home"),
        ):
            assert not ClaudeDriver().detect(temp_project)


class TestCodexDriver:
    """Tests for CodexDriver."""

    def test_only_skills_supported(self):
        """Codex has no agents or hooks directory."""
        driver = CodexDriver()

        assert driver.get_target_dir("skills") == ".agents/skills"
        assert driver.get_target_dir("agents") is None
        assert driver.get_target_dir("hooks") is None

    def test_detect_project_dir(self, temp_project: Path):
        """A project .agents directory is enough."""
        (temp_project / ".agents").mkdir()

        with patch("agntc.drivers.base.shutil.which", return_value=None):
            assert CodexDriver().detect(temp_project)

    def test_detect_executable(self, temp_project: Path):
        """A codex executable on PATH counts."""
        with patch("agntc.drivers.base.shutil.which", return_value="/usr/local/bin/codex") as which:
            assert CodexDriver().detect(temp_project)
        which.assert_called_with("codex")

    def test_not_detected(self, temp_project: Path):
        """No signal means not detected."""
        with patch("agntc.drivers.base.shutil.which", return_value=None):
            assert not CodexDriver().detect(temp_project)
