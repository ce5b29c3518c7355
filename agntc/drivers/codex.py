"""Codex agent driver.

Codex only reads skills, from .agents/skills/{skill-name}/.
"""

from pathlib import Path

from agntc.config.schemas import AssetType
from agntc.drivers import register_driver
from agntc.drivers.base import AgentDriver

TARGET_DIRS: dict[str, str] = {
    "skills": ".agents/skills",
}


@register_driver("codex")
class CodexDriver(AgentDriver):
    """Driver for OpenAI Codex."""

    def detect(self, project_root: Path) -> bool:
        if (project_root / ".agents").exists():
            return True
        return self._executable_on_path("codex")

    def get_target_dir(self, asset_type: AssetType) -> str | None:
        return TARGET_DIRS.get(asset_type)
