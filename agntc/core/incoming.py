"""Predict the paths a copy would produce, without copying.

The result feeds the collision and unmanaged-file checks that run before
anything is written. Paths are project-relative; directories end with ``/``.
"""

from collections.abc import Sequence
from pathlib import Path

from agntc.core.detection import BareSkill, Plugin
from agntc.drivers.base import AgentWithDriver
from agntc.utils.filesystem import read_dir_entries


def compute_incoming_files(
    detected: BareSkill | Plugin,
    source_dir: Path,
    agents: Sequence[AgentWithDriver],
) -> list[str]:
    """Compute the install paths for a bundle.

    Bare skill: ``<skills-target>/<source-dir-name>/`` per agent.
    Plugin: one entry per immediate child of each asset dir, ``<target>/<child>/``
    for directories and ``<target>/<child>`` for files. Agents without a target
    for an asset type contribute nothing. Duplicates across agents sharing a
    target are dropped, first occurrence wins.

    Args:
        detected: Detected bundle type
        source_dir: Bundle root directory
        agents: Agents to install for, in order

    Returns:
        Ordered, de-duplicated list of relative paths
    """
    seen: set[str] = set()
    files: list[str] = []

    def add(path: str) -> None:
        if path not in seen:
            seen.add(path)
            files.append(path)

    if isinstance(detected, BareSkill):
        skill_name = source_dir.name
        for agent in agents:
            target_dir = agent.driver.get_target_dir("skills")
            if target_dir is not None:
                add(f"{target_dir}/{skill_name}/")
        return files

    for agent in agents:
        for asset_dir in detected.asset_dirs:
            target_dir = agent.driver.get_target_dir(asset_dir)
            if target_dir is None:
                continue
            for entry in read_dir_entries(source_dir / asset_dir):
                suffix = "/" if entry.is_directory else ""
                add(f"{target_dir}/{entry.name}{suffix}")

    return files
