"""Bundle installation orchestrator.

``BundleInstaller.add`` takes a source string through parse, fetch, type
detection, agent selection, conflict checks and copy, then records the
result in the manifest. Every choice that needs a human (which collection
members, which agents, what to do about conflicts) is delegated to a
``ConflictResolver``.
"""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from agntc.config.parser import ConfigError, has_config, read_bundle_config
from agntc.config.schemas import Manifest, ManifestEntry
from agntc.core.agents import detect_agents, with_drivers
from agntc.core.conflicts import (
    ConflictResolver,
    check_file_collisions,
    check_unmanaged_conflicts,
    remove_colliding_entries,
)
from agntc.core.copier import CopyResult, copy_bare_skill, copy_plugin_assets
from agntc.core.detection import BareSkill, Collection, NotAgntc, Plugin, detect_type
from agntc.core.incoming import compute_incoming_files
from agntc.core.manifest import ManifestStore, add_entry, now_timestamp, remove_entry
from agntc.core.nuke import nuke_manifest_files
from agntc.drivers.base import AgentWithDriver
from agntc.sources.git import cloned_source
from agntc.sources.parser import SourceDescriptor, parse_source

logger = logging.getLogger(__name__)


class InstallCancelled(Exception):
    """The user declined to resolve a collision."""

    def __init__(self, key: str, colliding_key: str):
        self.key = key
        self.colliding_key = colliding_key
        super().__init__(f"Installation of {key} cancelled (collision with {colliding_key})")


@dataclass
class InstallResult:
    """Outcome for one bundle."""

    key: str
    success: bool
    message: str = ""
    entry: ManifestEntry | None = None
    asset_counts_by_agent: dict[str, dict[str, int]] = field(default_factory=dict)


@dataclass
class AddSummary:
    """Summary of an ``add`` operation."""

    source_key: str
    results: list[InstallResult] = field(default_factory=list)
    cancelled: bool = False

    @property
    def installed(self) -> list[InstallResult]:
        return [r for r in self.results if r.success]

    @property
    def skipped(self) -> list[InstallResult]:
        return [r for r in self.results if not r.success]

    @property
    def all_successful(self) -> bool:
        return bool(self.results) and all(r.success for r in self.results)


@dataclass(frozen=True)
class _Fetched:
    root: Path
    commit: str | None


class BundleInstaller:
    """Installs bundles into a project.

    The manifest is read once at the start of ``add`` and written once when
    it returns or raises, so files already removed or copied stay tracked.
    """

    def __init__(
        self,
        project_root: Path,
        resolver: ConflictResolver,
        on_warn: Callable[[str], None] | None = None,
    ):
        """Initialize the installer.

        Args:
            project_root: Path to the project root
            resolver: Makes the interactive decisions
            on_warn: Optional callback for non-fatal warnings
        """
        self.project_root = project_root
        self.resolver = resolver
        self.on_warn = on_warn
        self.store = ManifestStore(project_root)
        self._detected_agents: list[str] | None = None
        self._manifest: Manifest = {}

    def add(self, source: str | SourceDescriptor, base_dir: Path | None = None) -> AddSummary:
        """Install everything a source provides.

        Bundles are handled one at a time. A bundle with an invalid agntc.json
        is skipped and the others still install. Whatever was installed or
        removed is written to the manifest even if a later bundle raises.

        Args:
            source: Source string or an already parsed descriptor
            base_dir: Directory relative local paths are resolved against

        Returns:
            AddSummary with one result per bundle considered

        Raises:
            SourceError: If the source string is malformed
            GitError: If the source cannot be cloned
            ManifestError: If the existing manifest is corrupt
        """
        descriptor = source if isinstance(source, SourceDescriptor) else parse_source(source, base_dir)
        original = self.store.read()
        self._manifest = original
        summary = AddSummary(source_key=descriptor.manifest_key)

        try:
            with self._fetch(descriptor) as fetched:
                root = fetched.root
                if descriptor.target_plugin:
                    root = root / descriptor.target_plugin

                for key, bundle_dir in self._select_bundles(descriptor.manifest_key, root, summary):
                    try:
                        self._install_bundle(key, bundle_dir, descriptor, fetched.commit, summary)
                    except ConfigError as e:
                        logger.error("Invalid config for %s: %s", key, e)
                        summary.results.append(InstallResult(key=key, success=False, message=str(e)))
                    except InstallCancelled as e:
                        logger.info("%s", e)
                        summary.cancelled = True
                        summary.results.append(InstallResult(key=key, success=False, message=str(e)))
                        break
        finally:
            if self._manifest != original:
                self.store.write(self._manifest)
        return summary

    @contextmanager
    def _fetch(self, descriptor: SourceDescriptor) -> Iterator[_Fetched]:
        if descriptor.resolved_path is not None:
            yield _Fetched(root=descriptor.resolved_path, commit=None)
            return

        with cloned_source(descriptor) as clone:
            yield _Fetched(root=clone.checkout_dir, commit=clone.commit)

    def _select_bundles(
        self,
        source_key: str,
        root: Path,
        summary: AddSummary,
    ) -> list[tuple[str, Path]]:
        if has_config(root):
            return [(source_key, root)]

        detected = detect_type(root, has_config=False, on_warn=self.on_warn)
        if isinstance(detected, Collection):
            chosen = self.resolver.select_collection_bundles(source_key, list(detected.plugins))
            if not chosen:
                logger.info("No bundles selected from %s", source_key)
            return [(f"{source_key}/{name}", root / name) for name in chosen if name in detected.plugins]

        summary.results.append(
            InstallResult(key=source_key, success=False, message=f"{source_key} is not an agntc bundle")
        )
        return []

    def _agents_in_use(self) -> list[str]:
        if self._detected_agents is None:
            self._detected_agents = detect_agents(self.project_root)
        return self._detected_agents

    def _install_bundle(
        self,
        key: str,
        bundle_dir: Path,
        descriptor: SourceDescriptor,
        commit: str | None,
        summary: AddSummary,
    ) -> None:
        def skip(message: str) -> None:
            logger.info("Skipping %s: %s", key, message)
            summary.results.append(InstallResult(key=key, success=False, message=message))

        config = read_bundle_config(bundle_dir, on_warn=self.on_warn)
        if config is None:
            return skip(f"{key} has no agntc.json")

        detected = detect_type(bundle_dir, has_config=True, on_warn=self.on_warn)
        if isinstance(detected, NotAgntc | Collection):
            return skip(f"{key} is not a valid plugin")

        if not config.agents:
            return skip(f"{key} declares no supported agents")

        chosen = self.resolver.select_agents(list(config.agents), self._agents_in_use())
        agent_ids = [a for a in chosen if a in config.agents]
        if not agent_ids:
            return skip("No agents selected")
        agents = with_drivers(agent_ids)

        incoming = compute_incoming_files(detected, bundle_dir, agents)

        # self._manifest must match the disk after every removal
        collisions = check_file_collisions(incoming, self._manifest, exclude_key=key)
        for other_key, files in collisions.items():
            if not self.resolver.resolve_collision(other_key, files):
                raise InstallCancelled(key, other_key)
            self._manifest = remove_colliding_entries([other_key], self._manifest, self.project_root)

        unmanaged = check_unmanaged_conflicts(incoming, self._manifest, self.project_root)
        if unmanaged and not self.resolver.resolve_unmanaged(key, unmanaged):
            return skip(f"Unmanaged files in the way of {key}")

        existing = self._manifest.get(key)
        if existing is not None:
            logger.info("Replacing existing install of %s", key)
            nuke_manifest_files(self.project_root, existing.files)
            self._manifest = remove_entry(self._manifest, key)

        try:
            copy_result = self._copy(detected, bundle_dir, agents)
        except Exception as e:
            logger.error("Copy of %s failed: %s", key, e)
            return skip(f"Failed to copy {key}: {e}")

        entry = ManifestEntry(
            ref=descriptor.ref,
            commit=commit,
            installed_at=now_timestamp(),
            agents=agent_ids,
            files=copy_result.copied_files,
            clone_url=descriptor.clone_url,
        )
        summary.results.append(
            InstallResult(
                key=key,
                success=True,
                message=f"Installed {key}",
                entry=entry,
                asset_counts_by_agent=copy_result.asset_counts_by_agent,
            )
        )
        logger.info("Installed %s: %d path(s)", key, len(copy_result.copied_files))
        self._manifest = add_entry(self._manifest, key, entry)

    def _copy(
        self,
        detected: BareSkill | Plugin,
        bundle_dir: Path,
        agents: list[AgentWithDriver],
    ) -> CopyResult:
        if isinstance(detected, Plugin):
            return copy_plugin_assets(
                bundle_dir, detected.asset_dirs, self.project_root, agents, on_warn=self.on_warn
            )
        return copy_bare_skill(bundle_dir, self.project_root, agents, on_warn=self.on_warn)
