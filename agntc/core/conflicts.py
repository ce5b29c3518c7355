"""Conflict checks run before any bundle files are copied.

Two kinds of conflict:
- collision: an incoming path is already tracked by a different manifest entry
- unmanaged: an incoming path exists on disk but no manifest entry tracks it

Both checks are read-only. Deciding what to do about a conflict is left to
a ``ConflictResolver`` supplied by the caller; nothing here overwrites files
on its own.
"""

import logging
from pathlib import Path
from typing import Protocol

from agntc.config.schemas import Manifest
from agntc.core.manifest import remove_entries
from agntc.core.nuke import nuke_manifest_files
from agntc.utils.filesystem import path_exists

logger = logging.getLogger(__name__)


def check_file_collisions(
    incoming_files: list[str],
    manifest: Manifest,
    exclude_key: str | None = None,
) -> dict[str, list[str]]:
    """Find manifest entries that already own incoming paths.

    Paths are compared by exact string equality: ``a/skill/`` does not
    collide with ``a/skill-extended/``.

    Args:
        incoming_files: Paths about to be installed
        manifest: Current manifest
        exclude_key: Manifest key to ignore (the bundle being reinstalled)

    Returns:
        Mapping of colliding manifest key -> overlapping paths, in the
        entry's own order. Empty if nothing collides.
    """
    collisions: dict[str, list[str]] = {}
    if not incoming_files:
        return collisions

    incoming = set(incoming_files)

    for key, entry in manifest.items():
        if key == exclude_key:
            continue
        overlapping = [f for f in entry.files if f in incoming]
        if overlapping:
            collisions[key] = overlapping

    if collisions:
        logger.debug("Collisions with %s", ", ".join(collisions))
    return collisions


def check_unmanaged_conflicts(
    incoming_files: list[str],
    manifest: Manifest,
    project_root: Path,
) -> list[str]:
    """Find incoming paths that exist on disk but are not tracked.

    Anything at the path counts, including an empty directory.

    Args:
        incoming_files: Project-relative paths about to be installed
        manifest: Current manifest
        project_root: Path to the project root

    Returns:
        Conflicting paths, in incoming order
    """
    if not incoming_files:
        return []

    tracked: set[str] = set()
    for entry in manifest.values():
        tracked.update(entry.files)

    return [
        f for f in incoming_files if f not in tracked and path_exists(project_root / f)
    ]


def remove_colliding_entries(
    keys: list[str],
    manifest: Manifest,
    project_root: Path,
) -> Manifest:
    """Uninstall the given entries so an incoming bundle can take their paths.

    Deletes every file the entries own and returns a manifest copy without
    them. The manifest on disk is not written.
    """
    for key in keys:
        entry = manifest.get(key)
        if entry is None:
            continue
        logger.info("Removing %s to resolve collision", key)
        nuke_manifest_files(project_root, entry.files)
    return remove_entries(manifest, keys)


class ConflictResolver(Protocol):
    """Decides how to handle conflicts and choices during an install.

    Implemented by the interactive shell; tests supply scripted versions.
    """

    def select_collection_bundles(self, key: str, bundles: list[str]) -> list[str]:
        """Choose which bundles of a collection to install."""
        ...

    def select_agents(self, declared: list[str], detected: list[str]) -> list[str]:
        """Choose agents to install for from those the bundle declares."""
        ...

    def resolve_collision(self, key: str, files: list[str]) -> bool:
        """Return True to uninstall entry ``key`` and continue, False to cancel."""
        ...

    def resolve_unmanaged(self, bundle_key: str, files: list[str]) -> bool:
        """Return True to overwrite unmanaged ``files``, False to skip the bundle."""
        ...
