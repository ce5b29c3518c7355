"""Agent detection and compatibility helpers."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from agntc.config.schemas import ASSET_DIRS, AssetType
from agntc.drivers import get_driver, list_drivers
from agntc.drivers.base import AgentWithDriver

logger = logging.getLogger(__name__)


def _probe(agent_id: str, project_root: Path) -> bool:
    try:
        return get_driver(agent_id).detect(project_root)
    except Exception as e:
        logger.debug("Detection for %s failed: %s", agent_id, e)
        return False


def detect_agents(project_root: Path) -> list[str]:
    """Detect which registered agents are in use for a project.

    Every driver is probed concurrently. A probe that raises counts as
    not detected.

    Returns:
        Detected agent ids, in registry order
    """
    agent_ids = list_drivers()
    if not agent_ids:
        return []

    with ThreadPoolExecutor(max_workers=len(agent_ids), thread_name_prefix="agntc-detect") as pool:
        results = list(pool.map(lambda agent_id: _probe(agent_id, project_root), agent_ids))

    detected = [agent_id for agent_id, found in zip(agent_ids, results, strict=True) if found]
    logger.debug("Detected agents: %s", ", ".join(detected) or "none")
    return detected


def compute_effective_agents(entry_agents: list[str], new_config_agents: list[str]) -> list[str]:
    """Agents installed before that the new version still supports."""
    supported = set(new_config_agents)
    return [a for a in entry_agents if a in supported]


def find_dropped_agents(entry_agents: list[str], new_config_agents: list[str]) -> list[str]:
    """Agents installed before that the new version no longer supports."""
    supported = set(new_config_agents)
    return [a for a in entry_agents if a not in supported]


def with_drivers(agent_ids: list[str]) -> list[AgentWithDriver]:
    """Pair agent ids with their registered drivers."""
    return [AgentWithDriver(id=agent_id, driver=get_driver(agent_id)) for agent_id in agent_ids]


@dataclass(frozen=True)
class FileOwnership:
    """Which agent and asset type an installed path belongs to."""

    agent_id: str
    asset_type: AssetType


def identify_file_ownership(file_path: str) -> FileOwnership | None:
    """Map an installed path to the agent directory it lives in."""
    for agent_id in list_drivers():
        driver = get_driver(agent_id)
        for asset_type in ASSET_DIRS:
            target_dir = driver.get_target_dir(asset_type)
            if target_dir is not None and file_path.startswith(f"{target_dir}/"):
                return FileOwnership(agent_id=agent_id, asset_type=asset_type)
    return None
