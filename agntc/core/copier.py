"""Copy bundle files into agent directories.

Bare skill: the whole bundle directory goes to ``<skills-target>/<name>/``
for each agent (minus agntc.json and .git).

Plugin: each immediate child of skills/, agents/ and hooks/ goes to the
agent's target directory for that asset type.

If a copy fails part-way, whatever this call already placed is removed
before the error propagates.
"""

import logging
import shutil
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from agntc.config.parser import CONFIG_FILE
from agntc.config.schemas import AssetType
from agntc.drivers.base import AgentWithDriver
from agntc.utils.filesystem import copy_file, read_dir_entries

logger = logging.getLogger(__name__)


@dataclass
class CopyResult:
    """Paths written by a copy, project-relative; directories end with ``/``."""

    copied_files: list[str] = field(default_factory=list)
    asset_counts_by_agent: dict[str, dict[str, int]] = field(default_factory=dict)


def rollback_copied_files(
    files: list[str],
    project_root: Path,
    on_warn: Callable[[str], None] | None = None,
) -> None:
    """Best-effort removal of paths placed by a failed copy."""
    for rel_path in files:
        full_path = project_root / rel_path
        try:
            if full_path.is_dir() and not full_path.is_symlink():
                shutil.rmtree(full_path)
            else:
                full_path.unlink(missing_ok=True)
        except OSError as e:
            message = f"Rollback: failed to delete {rel_path}: {e}"
            logger.warning(message)
            if on_warn:
                on_warn(message)


def copy_bare_skill(
    source_dir: Path,
    project_root: Path,
    agents: Sequence[AgentWithDriver],
    on_warn: Callable[[str], None] | None = None,
) -> CopyResult:
    """Copy a bare skill for each agent that supports skills.

    Args:
        source_dir: Bundle root (its name becomes the skill directory name)
        project_root: Path to the project root
        agents: Agents to install for

    Returns:
        CopyResult with one ``<target>/<name>/`` entry per agent
    """
    skill_name = source_dir.name
    result = CopyResult()
    placed: list[str] = []

    try:
        for agent in agents:
            target_dir = agent.driver.get_target_dir("skills")
            if target_dir is None:
                continue

            rel_path = f"{target_dir}/{skill_name}/"
            dest_dir = project_root / target_dir / skill_name
            placed.append(rel_path)

            shutil.copytree(
                source_dir,
                dest_dir,
                dirs_exist_ok=True,
                ignore=shutil.ignore_patterns(".git"),
            )
            (dest_dir / CONFIG_FILE).unlink(missing_ok=True)

            result.copied_files.append(rel_path)
            result.asset_counts_by_agent[agent.id] = {"skills": 1}
            logger.debug("Copied skill %s for %s to %s", skill_name, agent.id, rel_path)
    except Exception:
        rollback_copied_files(placed, project_root, on_warn)
        raise

    return result


def copy_plugin_assets(
    source_dir: Path,
    asset_dirs: Sequence[AssetType],
    project_root: Path,
    agents: Sequence[AgentWithDriver],
    on_warn: Callable[[str], None] | None = None,
) -> CopyResult:
    """Copy plugin assets for each agent.

    Every nested file and directory is recorded, so the manifest entry owns
    exactly what was written.

    Args:
        source_dir: Plugin root directory
        asset_dirs: Asset directories present in the plugin
        project_root: Path to the project root
        agents: Agents to install for

    Returns:
        CopyResult with all written paths and per-agent asset counts
    """
    copied: dict[str, None] = {}
    placed: list[str] = []
    counts_by_agent: dict[str, dict[str, int]] = {}

    try:
        for agent in agents:
            counts: dict[str, int] = {}
            for asset_dir in asset_dirs:
                target_dir = agent.driver.get_target_dir(asset_dir)
                if target_dir is None:
                    continue
                counts[asset_dir] = _copy_asset_dir(
                    source_dir / asset_dir, project_root, target_dir, copied, placed
                )
            counts_by_agent[agent.id] = counts
    except Exception:
        rollback_copied_files(placed, project_root, on_warn)
        raise

    return CopyResult(copied_files=list(copied), asset_counts_by_agent=counts_by_agent)


def _copy_asset_dir(
    asset_source_dir: Path,
    project_root: Path,
    target_dir: str,
    copied: dict[str, None],
    placed: list[str],
) -> int:
    entries = read_dir_entries(asset_source_dir)

    for entry in entries:
        src = asset_source_dir / entry.name
        rel_path = f"{target_dir}/{entry.name}"
        dest = project_root / rel_path

        if entry.is_directory:
            placed.append(f"{rel_path}/")
            shutil.copytree(src, dest, dirs_exist_ok=True)
            _collect_paths(dest, rel_path, copied)
        else:
            placed.append(rel_path)
            copy_file(src, dest)
            copied[rel_path] = None

    return len(entries)


def _collect_paths(directory: Path, rel_prefix: str, copied: dict[str, None]) -> None:
    copied[f"{rel_prefix}/"] = None
    for entry in read_dir_entries(directory):
        entry_rel = f"{rel_prefix}/{entry.name}"
        if entry.is_directory:
            _collect_paths(directory / entry.name, entry_rel, copied)
        else:
            copied[entry_rel] = None
