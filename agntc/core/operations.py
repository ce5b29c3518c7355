"""Update and remove operations on installed bundles.

These read the manifest, act on one or more entries and write the manifest
back. Each bundle is handled on its own: a failure for one key is reported in
that key's outcome and never stops the others.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from agntc.config.schemas import Manifest, ManifestEntry
from agntc.core.manifest import ManifestStore, add_entry, remove_entries
from agntc.core.nuke import nuke_manifest_files
from agntc.core.reinstall import (
    ReinstallFailed,
    build_failure_message,
    clone_and_reinstall,
)
from agntc.core.updates import (
    CheckFailed,
    Local,
    NewerTags,
    UpdateAvailable,
    UpdateCheckResult,
    UpToDate,
    check_all_for_updates,
    check_for_update,
)

logger = logging.getLogger(__name__)


class NotInstalledError(Exception):
    """No manifest entry matches the requested key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Plugin {key} is not installed.")


# =============================================================================
# Outcomes
# =============================================================================


@dataclass(frozen=True)
class Updated:
    key: str
    entry: ManifestEntry
    previous_commit: str | None
    dropped_agents: list[str] = field(default_factory=list)
    status: Literal["updated"] = "updated"

    @property
    def message(self) -> str:
        agents = ", ".join(self.entry.agents)
        count = len(self.entry.files)
        if self.entry.is_local:
            return f"Refreshed {self.key} - {count} file(s) for {agents}"
        old_short = self.previous_commit[:7] if self.previous_commit else "unknown"
        new_short = (self.entry.commit or "")[:7]
        return f"Updated {self.key}: {old_short} -> {new_short} - {count} file(s) for {agents}"


@dataclass(frozen=True)
class AlreadyUpToDate:
    key: str
    newer_tags: list[str] = field(default_factory=list)
    status: Literal["up-to-date"] = "up-to-date"

    @property
    def message(self) -> str:
        if self.newer_tags:
            return (
                f"{self.key} is pinned to a tag; newer tags available: "
                f"{', '.join(self.newer_tags)}"
            )
        return f"{self.key} is already up to date."


@dataclass(frozen=True)
class UpdateFailed:
    key: str
    message: str
    reason: str
    status: Literal["failed"] = "failed"


UpdateOutcome = Updated | AlreadyUpToDate | UpdateFailed


# =============================================================================
# Remove
# =============================================================================


def resolve_target_keys(key: str, manifest: Manifest) -> list[str]:
    """Expand a key to the manifest entries it names.

    An exact match wins; otherwise every collection member under ``key/``.

    Raises:
        NotInstalledError: If nothing matches
    """
    if key in manifest:
        return [key]

    prefix = f"{key}/"
    keys = [k for k in manifest if k.startswith(prefix)]
    if not keys:
        raise NotInstalledError(key)
    return keys


def remove_bundles(project_root: Path, keys: list[str]) -> list[str]:
    """Delete the files of the given entries and drop them from the manifest.

    The manifest is written once, after all files are gone.

    Returns:
        All paths that were tracked by the removed entries
    """
    store = ManifestStore(project_root)
    manifest = store.read()

    removed_files: list[str] = []
    for key in keys:
        entry = manifest.get(key)
        if entry is None:
            logger.debug("%s not in manifest, nothing to remove", key)
            continue
        nuke_manifest_files(project_root, entry.files)
        removed_files.extend(entry.files)
        logger.info("Removed %s (%d path(s))", key, len(entry.files))

    store.write(remove_entries(manifest, keys))
    return removed_files


# =============================================================================
# Update
# =============================================================================


def update_bundle(
    project_root: Path,
    key: str,
    on_warn: Callable[[str], None] | None = None,
) -> UpdateOutcome:
    """Check one bundle and reinstall it if its remote moved.

    Raises:
        NotInstalledError: If ``key`` is not in the manifest
    """
    store = ManifestStore(project_root)
    manifest = store.read()
    entry = manifest.get(key)
    if entry is None:
        raise NotInstalledError(key)

    return _apply_check(store, manifest, key, check_for_update(key, entry), on_warn)


def update_all(
    project_root: Path,
    on_warn: Callable[[str], None] | None = None,
) -> dict[str, UpdateOutcome]:
    """Check every bundle concurrently, then update the stale ones in turn.

    Returns:
        Mapping of manifest key -> outcome, in manifest order
    """
    store = ManifestStore(project_root)
    manifest = store.read()
    checks = check_all_for_updates(manifest)

    outcomes: dict[str, UpdateOutcome] = {}
    for key, check in checks.items():
        # Re-read so each update starts from what the previous one wrote
        manifest = store.read()
        if key not in manifest:
            continue
        outcomes[key] = _apply_check(store, manifest, key, check, on_warn)
    return outcomes


def change_version(
    project_root: Path,
    key: str,
    new_ref: str,
    on_warn: Callable[[str], None] | None = None,
) -> UpdateOutcome:
    """Reinstall a remote bundle at a different ref.

    Raises:
        NotInstalledError: If ``key`` is not in the manifest
    """
    store = ManifestStore(project_root)
    manifest = store.read()
    entry = manifest.get(key)
    if entry is None:
        raise NotInstalledError(key)

    if entry.is_local:
        return UpdateFailed(key=key, message=f"{key} is a local bundle and has no versions", reason="local")
    if new_ref == entry.ref:
        return AlreadyUpToDate(key=key)

    return _reinstall(store, manifest, key, entry, on_warn, new_ref=new_ref, change_version=True)


def _apply_check(
    store: ManifestStore,
    manifest: Manifest,
    key: str,
    check: UpdateCheckResult,
    on_warn: Callable[[str], None] | None,
) -> UpdateOutcome:
    entry = manifest[key]

    if isinstance(check, UpToDate):
        return AlreadyUpToDate(key=key)
    if isinstance(check, NewerTags):
        return AlreadyUpToDate(key=key, newer_tags=check.tags)
    if isinstance(check, CheckFailed):
        return UpdateFailed(
            key=key, message=f"Update check failed for {key}: {check.reason}", reason="check-failed"
        )
    if isinstance(check, Local):
        source_dir = Path(key)
        if not source_dir.is_dir():
            return UpdateFailed(
                key=key,
                message=f"Path {key} does not exist or is not a directory.",
                reason="path-not-found",
            )
        return _reinstall(store, manifest, key, entry, on_warn, source_dir=source_dir)
    if isinstance(check, UpdateAvailable):
        return _reinstall(store, manifest, key, entry, on_warn)

    raise TypeError(f"Unexpected update check result: {check!r}")


def _reinstall(
    store: ManifestStore,
    manifest: Manifest,
    key: str,
    entry: ManifestEntry,
    on_warn: Callable[[str], None] | None,
    new_ref: str | None = None,
    source_dir: Path | None = None,
    change_version: bool = False,
) -> UpdateOutcome:
    try:
        result = clone_and_reinstall(
            key,
            entry,
            store.project_root,
            new_ref=new_ref,
            source_dir=source_dir,
            manifest=manifest,
            on_warn=on_warn,
        )
    except OSError as e:
        logger.error("Reinstall of %s failed: %s", key, e)
        return UpdateFailed(key=key, message=f"Failed to update {key}: {e}", reason="os-error")

    if isinstance(result, ReinstallFailed):
        return UpdateFailed(
            key=key,
            message=build_failure_message(result, key, change_version=change_version),
            reason=result.reason,
        )

    store.write(add_entry(manifest, key, result.manifest_entry))
    return Updated(
        key=key,
        entry=result.manifest_entry,
        previous_commit=entry.commit,
        dropped_agents=result.dropped_agents,
    )
