"""Abstract base class for agent drivers.

A driver answers two questions about one coding agent: is it in use for a
project, and where does each asset type live inside the project. Core code
never hard-codes agent directories; it asks the driver.
"""

import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from agntc.config.schemas import AssetType


class AgentDriver(ABC):
    """Capability interface for a single coding agent."""

    @abstractmethod
    def detect(self, project_root: Path) -> bool:
        """Check whether the agent appears to be in use.

        Args:
            project_root: Path to the project root

        Returns:
            True if the agent was detected
        """
        ...

    @abstractmethod
    def get_target_dir(self, asset_type: AssetType) -> str | None:
        """Get the project-relative directory for an asset type.

        Args:
            asset_type: One of "skills", "agents", "hooks"

        Returns:
            Relative directory (no trailing slash), or None if the agent
            does not support this asset type
        """
        ...

    @staticmethod
    def _executable_on_path(name: str) -> bool:
        return shutil.which(name) is not None


@dataclass(frozen=True)
class AgentWithDriver:
    """An agent id paired with its driver."""

    id: str
    driver: AgentDriver
