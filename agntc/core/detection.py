"""Bundle type detection.

Classifies a directory as one of:
- bare skill: agntc.json + SKILL.md, no asset directories
- plugin: agntc.json + any of skills/, agents/, hooks/
- collection: no agntc.json, but immediate subdirectories that have one
- not agntc: anything else

The type is recomputed on every operation and never cached.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from agntc.config.parser import CONFIG_FILE
from agntc.config.schemas import ASSET_DIRS, AssetType
from agntc.utils.filesystem import path_exists, read_dir_entries

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BareSkill:
    type: Literal["bare-skill"] = "bare-skill"


@dataclass(frozen=True)
class Plugin:
    asset_dirs: tuple[AssetType, ...]
    type: Literal["plugin"] = "plugin"


@dataclass(frozen=True)
class Collection:
    plugins: tuple[str, ...]
    type: Literal["collection"] = "collection"


@dataclass(frozen=True)
class NotAgntc:
    type: Literal["not-agntc"] = "not-agntc"


BundleType = BareSkill | Plugin | Collection | NotAgntc


def detect_type(
    directory: Path,
    has_config: bool,
    on_warn: Callable[[str], None] | None = None,
) -> BundleType:
    """Detect the bundle type of a directory.

    Args:
        directory: Directory to classify
        has_config: Whether agntc.json is present in ``directory``
        on_warn: Optional callback for non-fatal warnings

    Returns:
        The detected BundleType
    """
    if has_config:
        return _detect_with_config(directory, on_warn)
    return _detect_without_config(directory)


def _warn(message: str, on_warn: Callable[[str], None] | None) -> None:
    if on_warn:
        on_warn(message)
    else:
        logger.warning(message)


def _detect_with_config(
    directory: Path, on_warn: Callable[[str], None] | None
) -> BundleType:
    found = tuple(d for d in ASSET_DIRS if path_exists(directory / d))
    has_skill_md = path_exists(directory / "SKILL.md")

    if found:
        if has_skill_md:
            _warn(
                "SKILL.md found alongside asset dirs - treating as plugin, "
                "SKILL.md will be ignored",
                on_warn,
            )
        logger.debug("Detected plugin in %s with asset dirs %s", directory, found)
        return Plugin(asset_dirs=found)

    if has_skill_md:
        logger.debug("Detected bare skill in %s", directory)
        return BareSkill()

    _warn(f"{CONFIG_FILE} present but no SKILL.md or asset dirs found", on_warn)
    return NotAgntc()


def _detect_without_config(directory: Path) -> BundleType:
    plugins = tuple(
        entry.name
        for entry in read_dir_entries(directory)
        if entry.is_directory and (directory / entry.name / CONFIG_FILE).exists()
    )

    if plugins:
        logger.debug("Detected collection in %s: %s", directory, ", ".join(plugins))
        return Collection(plugins=plugins)

    return NotAgntc()
