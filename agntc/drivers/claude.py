"""Claude Code agent driver.

Directory structure:
.claude/
├── skills/
│   └── {skill-name}/
│       └── SKILL.md
├── agents/
│   └── {agent-name}.md
└── hooks/
    └── {hook files}
"""

from pathlib import Path

from agntc.config.schemas import AssetType
from agntc.drivers import register_driver
from agntc.drivers.base import AgentDriver

TARGET_DIRS: dict[str, str] = {
    "skills": ".claude/skills",
    "agents": ".claude/agents",
    "hooks": ".claude/hooks",
}


@register_driver("claude")
class ClaudeDriver(AgentDriver):
    """Driver for Claude Code.

    Detected by a project-level .claude directory, a ``claude`` executable
    on PATH, or a ~/.claude directory, checked in that order.
    """

    def detect(self, project_root: Path) -> bool:
        if (project_root / ".claude").exists():
            return True
        if self._executable_on_path("claude"):
            return True
        return (Path.home() / ".claude").exists()

    def get_target_dir(self, asset_type: AssetType) -> str | None:
        return TARGET_DIRS.get(asset_type)
