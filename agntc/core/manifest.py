"""agntc manifest store for tracking installed bundles.

The manifest maps a manifest key (``owner/repo``, ``owner/repo/bundle`` or an
absolute local path) to the entry describing what was installed. It is the
only record of which files agntc owns, so it is always written as a whole
document and never patched in place.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from agntc.config.schemas import MANIFEST_ADAPTER, Manifest, ManifestEntry

logger = logging.getLogger(__name__)


class ManifestError(Exception):
    """The manifest file exists but cannot be parsed."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        super().__init__(message)


class ManifestStore:
    """Reads and writes the manifest file.

    The manifest is stored at .agntc/manifest.json in the project root.
    """

    MANIFEST_DIR = ".agntc"
    MANIFEST_FILE = "manifest.json"

    def __init__(self, project_root: Path) -> None:
        """Initialize the manifest store.

        Args:
            project_root: Path to the project root directory
        """
        self.project_root = project_root

    @property
    def manifest_dir(self) -> Path:
        """Get the manifest directory path."""
        return self.project_root / self.MANIFEST_DIR

    @property
    def manifest_path(self) -> Path:
        """Get the manifest file path."""
        return self.manifest_dir / self.MANIFEST_FILE

    def read(self) -> Manifest:
        """Load the manifest from disk.

        Returns:
            The manifest; empty if the file (or its directory) is missing

        Raises:
            ManifestError: If the file exists but is not a valid manifest
            OSError: If the file exists but cannot be read
        """
        try:
            raw = self.manifest_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ManifestError(f"Invalid JSON in {self.manifest_path}: {e}", self.manifest_path) from e

        try:
            return MANIFEST_ADAPTER.validate_python(data)
        except ValidationError as e:
            raise ManifestError(f"Invalid manifest {self.manifest_path}: {e}", self.manifest_path) from e

    def write(self, manifest: Manifest) -> None:
        """Replace the manifest on disk.

        The document is written to a temp file in the same directory and
        moved into place, so readers never see a partial file.
        """
        self.manifest_dir.mkdir(parents=True, exist_ok=True)
        content = serialize_manifest(manifest)

        fd, temp_name = tempfile.mkstemp(
            prefix=".manifest-", suffix=".tmp", dir=self.manifest_dir
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
                f.write(content)
            os.replace(temp_name, self.manifest_path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise

        logger.debug("Wrote manifest with %d entries to %s", len(manifest), self.manifest_path)


def serialize_manifest(manifest: Manifest) -> str:
    """Render a manifest as 2-space indented JSON with a trailing newline."""
    data = {key: entry.model_dump(by_alias=True) for key, entry in manifest.items()}
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def add_entry(manifest: Manifest, key: str, entry: ManifestEntry) -> Manifest:
    """Return a copy of the manifest with ``key`` set to ``entry``."""
    return {**manifest, key: entry}


def remove_entry(manifest: Manifest, key: str) -> Manifest:
    """Return a copy of the manifest without ``key``."""
    return {k: v for k, v in manifest.items() if k != key}


def remove_entries(manifest: Manifest, keys: list[str]) -> Manifest:
    """Return a copy of the manifest without any of ``keys``."""
    drop = set(keys)
    return {k: v for k, v in manifest.items() if k not in drop}


def now_timestamp() -> str:
    """Current UTC time as an ISO 8601 string with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
