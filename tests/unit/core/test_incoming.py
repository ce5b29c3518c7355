"""Tests for agntc.core.incoming module."""

from pathlib import Path

from agntc.core.detection import BareSkill, Plugin
from agntc.core.incoming import compute_incoming_files


class TestBareSkillIncoming:
    """Incoming paths for bare skills."""

    def test_one_entry_per_agent(self, make_bare_skill, both_agents):
        """Each agent's skills dir gets a directory named after the bundle."""
        bundle = make_bare_skill("go-dev")

        files = compute_incoming_files(BareSkill(), bundle, both_agents)

        assert files == [".claude/skills/go-dev/", ".agents/skills/go-dev/"]

    def test_no_agents(self, make_bare_skill):
        """No agents means no paths."""
        assert compute_incoming_files(BareSkill(), make_bare_skill(), []) == []


class TestPluginIncoming:
    """Incoming paths for plugins."""

    def test_immediate_children_only(self, make_plugin, claude_agent):
        """Directories get a marker; nested files are not listed."""
        bundle = make_plugin(
            assets={
                "skills": {"planning/SKILL.md": "", "planning/refs/a.md": ""},
                "agents": {"reviewer.md": ""},
            }
        )

        files = compute_incoming_files(
            Plugin(asset_dirs=("skills", "agents")), bundle, [claude_agent]
        )

        assert files == [".claude/skills/planning/", ".claude/agents/reviewer.md"]

    def test_unsupported_asset_types_skipped(self, make_plugin, codex_agent):
        """Codex contributes only skills."""
        bundle = make_plugin(
            assets={"skills": {"planning/SKILL.md": ""}, "hooks": {"pre.sh": ""}}
        )

        files = compute_incoming_files(
            Plugin(asset_dirs=("skills", "hooks")), bundle, [codex_agent]
        )

        assert files == [".agents/skills/planning/"]

    def test_missing_asset_dir_tolerated(self, sources_dir: Path, both_agents):
        """A listed asset dir that does not exist contributes nothing."""
        files = compute_incoming_files(Plugin(asset_dirs=("skills",)), sources_dir, both_agents)

        assert files == []

    def test_shared_targets_deduplicated(self, make_plugin, claude_agent):
        """Agents sharing a target dir do not produce duplicates."""
        bundle = make_plugin(assets={"skills": {"one/SKILL.md": ""}})

        files = compute_incoming_files(
            Plugin(asset_dirs=("skills",)), bundle, [claude_agent, claude_agent]
        )

        assert files == [".claude/skills/one/"]

    def test_nothing_written(self, make_plugin, temp_project: Path, both_agents):
        """Projection never touches the filesystem."""
        bundle = make_plugin()
        before = sorted(p.name for p in bundle.rglob("*"))

        compute_incoming_files(Plugin(asset_dirs=("skills", "agents")), bundle, both_agents)

        assert sorted(p.name for p in bundle.rglob("*")) == before
        assert list(temp_project.iterdir()) == []
