"""Delete tracked files and directories."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from agntc.utils.filesystem import remove_path

logger = logging.getLogger(__name__)


@dataclass
class NukeResult:
    """Outcome of deleting a list of tracked paths."""

    removed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def nuke_manifest_files(project_root: Path, files: list[str]) -> NukeResult:
    """Delete every tracked path under the project root.

    Paths ending with ``/`` are removed recursively. Paths that are already
    gone are recorded as skipped; any other error propagates.

    Args:
        project_root: Path to the project root
        files: Project-relative paths from a manifest entry

    Returns:
        NukeResult listing removed and skipped paths
    """
    result = NukeResult()

    for entry in files:
        full_path = project_root / entry
        if remove_path(full_path, recursive=entry.endswith("/")):
            result.removed.append(entry)
        else:
            result.skipped.append(entry)

    logger.debug("Removed %d path(s), %d already missing", len(result.removed), len(result.skipped))
    return result
