"""Nuke-and-reinstall pipeline.

Replaces an installed bundle with the contents of ``source_dir``. The caller
has already obtained the source (cloned or local), so a bad ref or an auth
failure never reaches this point and never touches installed files.

Stages run strictly in order and each gate returns before anything is
deleted:

    read-config -> detect-type -> resolve-agents -> nuke -> copy -> build-entry

Only a failure in the copy stage happens after files were removed. That case
has its own result, ``CopyFailed``, and the caller should drop the manifest
entry since the bundle is then installed nowhere.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import ClassVar, Literal

from agntc.config.parser import read_bundle_config
from agntc.config.schemas import ManifestEntry
from agntc.core.agents import compute_effective_agents, find_dropped_agents, with_drivers
from agntc.core.copier import CopyResult, copy_bare_skill, copy_plugin_assets
from agntc.core.detection import BareSkill, BundleType, Plugin, detect_type
from agntc.core.manifest import now_timestamp
from agntc.core.nuke import nuke_manifest_files

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    """Pipeline stages, in execution order."""

    READ_CONFIG = "read-config"
    DETECT_TYPE = "detect-type"
    RESOLVE_AGENTS = "resolve-agents"
    NUKE = "nuke"
    COPY = "copy"
    BUILD_ENTRY = "build-entry"


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class NoConfig:
    """The new source has no agntc.json. Nothing was touched."""

    status: Literal["no-config"] = "no-config"
    stage: ClassVar[PipelineStage] = PipelineStage.READ_CONFIG
    files_removed: ClassVar[bool] = False


@dataclass(frozen=True)
class InvalidType:
    """The new source is not a bare skill or plugin. Nothing was touched."""

    detected: BundleType
    status: Literal["invalid-type"] = "invalid-type"
    stage: ClassVar[PipelineStage] = PipelineStage.DETECT_TYPE
    files_removed: ClassVar[bool] = False


@dataclass(frozen=True)
class NoAgents:
    """None of the installed agents is supported any more.

    The old files are left in place.
    """

    installed_agents: list[str]
    new_config_agents: list[str]
    status: Literal["no-agents"] = "no-agents"
    stage: ClassVar[PipelineStage] = PipelineStage.RESOLVE_AGENTS
    files_removed: ClassVar[bool] = False


@dataclass(frozen=True)
class CopyFailed:
    """Old files were removed but the new copy failed."""

    key: str
    error: Exception
    recovery_hint: str
    status: Literal["copy-failed"] = "copy-failed"
    stage: ClassVar[PipelineStage] = PipelineStage.COPY
    files_removed: ClassVar[bool] = True

    @property
    def error_message(self) -> str:
        return str(self.error)


@dataclass(frozen=True)
class ReinstallSuccess:
    """The bundle was replaced; ``entry`` is the new manifest entry."""

    entry: ManifestEntry
    copied_files: list[str]
    dropped_agents: list[str] = field(default_factory=list)
    status: Literal["success"] = "success"
    stage: ClassVar[PipelineStage] = PipelineStage.BUILD_ENTRY
    files_removed: ClassVar[bool] = True


PipelineResult = NoConfig | InvalidType | NoAgents | CopyFailed | ReinstallSuccess


def recovery_hint(key: str) -> str:
    """Tell the user how to recover from a copy failure."""
    return (
        f"Update failed for {key} after removing old files. "
        f"The plugin is currently uninstalled. "
        f"Run `agntc update {key}` to retry installation."
    )


# =============================================================================
# Pipeline
# =============================================================================


def execute_nuke_and_reinstall(
    key: str,
    source_dir: Path,
    existing_entry: ManifestEntry,
    project_root: Path,
    new_ref: str | None = None,
    new_commit: str | None = None,
    on_agents_dropped: Callable[[list[str], list[str]], None] | None = None,
    on_warn: Callable[[str], None] | None = None,
) -> PipelineResult:
    """Replace an installed bundle with a new version.

    Args:
        key: Manifest key of the bundle
        source_dir: Directory holding the new version
        existing_entry: Current manifest entry for ``key``
        project_root: Path to the project root
        new_ref: Ref for the new entry (defaults to the existing ref)
        new_commit: Commit for the new entry (defaults to the existing commit)
        on_agents_dropped: Called with (dropped, new_config_agents) before any
            file is removed, when the new version drops installed agents
        on_warn: Optional callback for non-fatal warnings

    Returns:
        One of NoConfig, InvalidType, NoAgents, CopyFailed, ReinstallSuccess

    Raises:
        ConfigError: If the new agntc.json is malformed
        OSError: If removing old files fails for a reason other than absence
    """
    logger.debug("[%s] %s", key, PipelineStage.READ_CONFIG.value)
    config = read_bundle_config(source_dir, on_warn=on_warn)
    if config is None:
        logger.info("%s: new version has no agntc.json", key)
        return NoConfig()

    logger.debug("[%s] %s", key, PipelineStage.DETECT_TYPE.value)
    detected = detect_type(source_dir, has_config=True, on_warn=on_warn)
    if not isinstance(detected, BareSkill | Plugin):
        logger.info("%s: new version is %s, not installable", key, detected.type)
        return InvalidType(detected=detected)

    logger.debug("[%s] %s", key, PipelineStage.RESOLVE_AGENTS.value)
    effective_agents = compute_effective_agents(existing_entry.agents, config.agents)
    dropped_agents = find_dropped_agents(existing_entry.agents, config.agents)
    if not effective_agents:
        logger.info("%s: no installed agent is supported by the new version", key)
        return NoAgents(
            installed_agents=list(existing_entry.agents),
            new_config_agents=list(config.agents),
        )
    if dropped_agents and on_agents_dropped:
        on_agents_dropped(dropped_agents, list(config.agents))

    agents = with_drivers(effective_agents)

    logger.debug("[%s] %s", key, PipelineStage.NUKE.value)
    nuke_manifest_files(project_root, existing_entry.files)

    logger.debug("[%s] %s", key, PipelineStage.COPY.value)
    try:
        copy_result: CopyResult
        if isinstance(detected, Plugin):
            copy_result = copy_plugin_assets(
                source_dir, detected.asset_dirs, project_root, agents, on_warn=on_warn
            )
        else:
            copy_result = copy_bare_skill(source_dir, project_root, agents, on_warn=on_warn)
    except Exception as e:
        logger.error("%s: copy failed after removing old files: %s", key, e)
        return CopyFailed(key=key, error=e, recovery_hint=recovery_hint(key))

    logger.debug("[%s] %s", key, PipelineStage.BUILD_ENTRY.value)
    entry = ManifestEntry(
        ref=new_ref if new_ref is not None else existing_entry.ref,
        commit=new_commit if new_commit is not None else existing_entry.commit,
        installed_at=now_timestamp(),
        agents=effective_agents,
        files=copy_result.copied_files,
        clone_url=existing_entry.clone_url,
    )

    logger.info(
        "Reinstalled %s: %d file(s) for %s",
        key,
        len(copy_result.copied_files),
        ", ".join(effective_agents),
    )
    return ReinstallSuccess(
        entry=entry,
        copied_files=copy_result.copied_files,
        dropped_agents=dropped_agents,
    )
