"""Fetch a bundle's source and run the nuke-and-reinstall pipeline on it.

Remote bundles are cloned into a temp directory that is removed afterwards
whatever the outcome; local bundles are reinstalled straight from their path.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from agntc.config.parser import ConfigError
from agntc.config.schemas import Manifest, ManifestEntry
from agntc.core.manifest import ManifestStore, remove_entry
from agntc.core.pipeline import (
    CopyFailed,
    InvalidType,
    NoAgents,
    NoConfig,
    PipelineResult,
    execute_nuke_and_reinstall,
)
from agntc.sources.git import GitError, cloned_source
from agntc.sources.parser import build_source_from_key, source_dir_from_key

logger = logging.getLogger(__name__)

FailureReason = Literal[
    "clone-failed", "no-config", "invalid-config", "no-agents", "invalid-type", "copy-failed"
]


@dataclass(frozen=True)
class ReinstallSucceeded:
    manifest_entry: ManifestEntry
    copied_files: list[str]
    dropped_agents: list[str] = field(default_factory=list)
    status: Literal["success"] = "success"


@dataclass(frozen=True)
class ReinstallFailed:
    reason: FailureReason
    message: str
    status: Literal["failed"] = "failed"


ReinstallResult = ReinstallSucceeded | ReinstallFailed


def format_agents_dropped_warning(
    key: str,
    dropped: list[str],
    installed_agents: list[str],
    new_config_agents: list[str],
) -> str:
    """Warning shown when a new version stops supporting installed agents."""
    return (
        f"Plugin {key} no longer declares support for {', '.join(dropped)}. "
        f"Currently installed for: {', '.join(installed_agents)}. "
        f"New version supports: {', '.join(new_config_agents)}."
    )


def build_failure_message(result: ReinstallFailed, key: str, change_version: bool = False) -> str:
    """User-facing message for a failed reinstall.

    Args:
        result: The failure
        key: Manifest key
        change_version: Word the message for a version change
    """
    prefix = f"New version of {key}" if change_version else key
    if result.reason == "no-config":
        return f"{prefix} has no agntc.json"
    if result.reason == "no-agents":
        return f"Plugin {key} no longer supports any of your installed agents"
    if result.reason == "invalid-type":
        return f"{prefix} is not a valid plugin"
    return result.message


def clone_and_reinstall(
    key: str,
    entry: ManifestEntry,
    project_root: Path,
    new_ref: str | None = None,
    new_commit: str | None = None,
    source_dir: Path | None = None,
    manifest: Manifest | None = None,
    on_warn: Callable[[str], None] | None = None,
) -> ReinstallResult:
    """Reinstall a bundle from a fresh copy of its source.

    Args:
        key: Manifest key
        entry: Current manifest entry
        project_root: Path to the project root
        new_ref: Ref to install (defaults to the entry's ref)
        new_commit: Commit to record (defaults to the cloned commit)
        source_dir: Reinstall from this directory instead of cloning
        manifest: When given, a copy failure drops ``key`` from it and the
            result is written to disk
        on_warn: Callback for warnings, including dropped agents

    Returns:
        ReinstallSucceeded or ReinstallFailed
    """
    if source_dir is not None:
        try:
            result = _run_pipeline(key, entry, project_root, source_dir, new_ref, new_commit, on_warn)
        except ConfigError as e:
            logger.error("Invalid config for %s: %s", key, e)
            return ReinstallFailed(reason="invalid-config", message=str(e))
        return _handle_copy_failed(result, key, project_root, manifest)

    source = build_source_from_key(key, new_ref if new_ref is not None else entry.ref, entry.clone_url)

    try:
        with cloned_source(source) as clone:
            commit = new_commit if new_commit is not None else clone.commit
            result = _run_pipeline(
                key,
                entry,
                project_root,
                source_dir_from_key(clone.checkout_dir, key),
                new_ref,
                commit,
                on_warn,
            )
    except GitError as e:
        logger.error("Clone of %s failed: %s", key, e)
        return ReinstallFailed(reason="clone-failed", message=str(e))
    except ConfigError as e:
        logger.error("Invalid config for %s: %s", key, e)
        return ReinstallFailed(reason="invalid-config", message=str(e))

    return _handle_copy_failed(result, key, project_root, manifest)


def _handle_copy_failed(
    result: ReinstallResult,
    key: str,
    project_root: Path,
    manifest: Manifest | None,
) -> ReinstallResult:
    if isinstance(result, ReinstallFailed) and result.reason == "copy-failed" and manifest is not None:
        logger.info("Dropping %s from manifest after failed copy", key)
        ManifestStore(project_root).write(remove_entry(manifest, key))
    return result


def _run_pipeline(
    key: str,
    entry: ManifestEntry,
    project_root: Path,
    source_dir: Path,
    new_ref: str | None,
    new_commit: str | None,
    on_warn: Callable[[str], None] | None,
) -> ReinstallResult:
    def on_agents_dropped(dropped: list[str], new_config_agents: list[str]) -> None:
        message = format_agents_dropped_warning(key, dropped, entry.agents, new_config_agents)
        if on_warn:
            on_warn(message)
        else:
            logger.warning(message)

    result: PipelineResult = execute_nuke_and_reinstall(
        key,
        source_dir,
        entry,
        project_root,
        new_ref=new_ref,
        new_commit=new_commit,
        on_agents_dropped=on_agents_dropped,
        on_warn=on_warn,
    )

    if isinstance(result, NoConfig):
        return ReinstallFailed(reason="no-config", message=f"{key} has no agntc.json")
    if isinstance(result, NoAgents):
        return ReinstallFailed(
            reason="no-agents",
            message=f"Plugin {key} no longer supports any of your installed agents",
        )
    if isinstance(result, InvalidType):
        return ReinstallFailed(reason="invalid-type", message=f"{key} is not a valid plugin")
    if isinstance(result, CopyFailed):
        return ReinstallFailed(reason="copy-failed", message=result.recovery_hint)

    return ReinstallSucceeded(
        manifest_entry=result.entry,
        copied_files=result.copied_files,
        dropped_agents=result.dropped_agents,
    )
