"""Parse free-form source strings into structured descriptors.

Accepted forms, checked in this order:
- local path: /abs, ./rel, ../rel, ~/rel, ".", ".."
- HTTPS tree URL: https://github.com/owner/repo/tree/<ref>/<bundle-path>
- HTTPS URL: https://host/[group/]owner/repo[.git][@ref]
- SSH URL: git@host:owner/repo[.git][@ref]
- GitHub shorthand: owner/repo[@ref]

The manifest key never depends on the host or protocol, so the SSH and
HTTPS forms of one repository share a manifest slot.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

logger = logging.getLogger(__name__)

SourceKind = Literal["shorthand", "https", "ssh", "direct-path", "local-path"]


class SourceError(Exception):
    """Malformed source string."""

    def __init__(self, message: str, source: str | None = None):
        self.source = source
        super().__init__(message)


class PathNotFoundError(SourceError):
    """Local source path does not exist or is not a directory."""


@dataclass(frozen=True)
class SourceDescriptor:
    """Structured form of a bundle source."""

    kind: SourceKind
    manifest_key: str
    owner: str | None = None
    repo: str | None = None
    ref: str | None = None
    clone_url: str | None = None
    target_plugin: str | None = None
    resolved_path: Path | None = None

    @property
    def is_local(self) -> bool:
        return self.kind == "local-path"


def github_clone_url(owner: str, repo: str) -> str:
    """Build the HTTPS clone URL for a GitHub repository."""
    return f"https://github.com/{owner}/{repo}.git"


def _is_local_path(value: str) -> bool:
    return value.startswith(("./", "../", "/", "~")) or value in (".", "..")


def parse_source(raw: str, base_dir: Path | None = None) -> SourceDescriptor:
    """Parse a source string.

    Args:
        raw: Source as typed by the user
        base_dir: Directory that relative local paths are resolved against
            (defaults to the current directory)

    Returns:
        SourceDescriptor for the source

    Raises:
        SourceError: If the source is malformed
        PathNotFoundError: If a local path does not exist or is not a directory
    """
    value = raw.strip()
    if value == "":
        raise SourceError("source cannot be empty", raw)

    if _is_local_path(value):
        return _parse_local_path(value, base_dir)

    if value.startswith("https://"):
        without_protocol = value[len("https://") :]
        if _has_tree_path(without_protocol):
            return _parse_tree_url(value)
        return _parse_https_url(value)

    if value.startswith("git@"):
        return _parse_ssh_url(value)

    return _parse_shorthand(value)


def _parse_local_path(value: str, base_dir: Path | None) -> SourceDescriptor:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = (base_dir or Path.cwd()) / path
    resolved = path.resolve()

    if not resolved.is_dir():
        raise PathNotFoundError(
            f"Path {resolved} does not exist or is not a directory", value
        )

    logger.debug("Resolved local source %s -> %s", value, resolved)
    return SourceDescriptor(
        kind="local-path",
        manifest_key=str(resolved),
        resolved_path=resolved,
    )


def _has_tree_path(without_protocol: str) -> bool:
    slash_index = without_protocol.find("/")
    if slash_index == -1:
        return False
    return "/tree/" in without_protocol[slash_index:]


def _parse_tree_url(value: str) -> SourceDescriptor:
    if "@" in value:
        raise SourceError("tree URLs cannot have @ref suffix", value)

    without_protocol = value[len("https://") :]
    host, _, raw_path = without_protocol.partition("/")

    owner_repo_path, _, after_tree = raw_path.partition("/tree/")
    owner_repo = [s for s in owner_repo_path.split("/") if s]
    if len(owner_repo) < 2:
        raise SourceError(
            f'invalid tree URL: expected owner/repo before /tree/, got "{owner_repo_path}"',
            value,
        )
    owner, repo = owner_repo[0], owner_repo[1]

    segments = [s for s in after_tree.rstrip("/").split("/") if s]
    if not segments:
        raise SourceError("invalid tree URL: missing ref and plugin path", value)
    if len(segments) == 1:
        raise SourceError("invalid tree URL: missing plugin path after ref", value)

    ref = segments[0]
    target_plugin = "/".join(segments[1:])

    return SourceDescriptor(
        kind="direct-path",
        manifest_key=f"{owner}/{repo}/{target_plugin}",
        owner=owner,
        repo=repo,
        ref=ref,
        clone_url=f"https://{host}/{owner}/{repo}.git",
        target_plugin=target_plugin,
    )


def _parse_https_url(value: str) -> SourceDescriptor:
    without_protocol = value[len("https://") :]
    url_part, ref = _split_ref(without_protocol, value)
    url_part = url_part.rstrip("/")

    host, sep, path_part = url_part.partition("/")
    if not sep:
        raise SourceError(f'invalid HTTPS URL: no path segments in "https://{url_part}"', value)

    path_part = re.sub(r"\.git$", "", path_part)
    segments = [s for s in path_part.split("/") if s]
    if len(segments) < 2:
        raise SourceError(f'invalid HTTPS URL: expected owner/repo path, got "{path_part}"', value)

    # Last two segments, so nested groups (GitLab) keep a two-part key
    owner, repo = segments[-2], segments[-1]

    return SourceDescriptor(
        kind="https",
        manifest_key=f"{owner}/{repo}",
        owner=owner,
        repo=repo,
        ref=ref,
        clone_url=f"https://{host}/{owner}/{repo}.git",
    )


def _parse_ssh_url(value: str) -> SourceDescriptor:
    without_prefix = value[len("git@") :]

    host, sep, after_colon = without_prefix.partition(":")
    if not sep:
        raise SourceError(
            f'invalid SSH URL: expected git@host:owner/repo format, got "{value}"', value
        )
    if after_colon == "":
        raise SourceError(f'invalid SSH URL: missing owner/repo path in "{value}"', value)

    ref: str | None = None
    dot_git = after_colon.find(".git")
    if dot_git != -1:
        path_part = after_colon[:dot_git]
        remainder = after_colon[dot_git + len(".git") :]
        if remainder.startswith("@"):
            ref = remainder[1:]
            if ref == "":
                raise SourceError("ref cannot be empty when @ is present", value)
    else:
        path_part, ref = _split_ref(after_colon, value)

    segments = [s for s in path_part.split("/") if s]
    if len(segments) < 2:
        raise SourceError(f'invalid SSH URL: expected owner/repo path, got "{path_part}"', value)

    owner, repo = segments[0], segments[1]

    return SourceDescriptor(
        kind="ssh",
        manifest_key=f"{owner}/{repo}",
        owner=owner,
        repo=repo,
        ref=ref,
        clone_url=f"git@{host}:{owner}/{repo}.git",
    )


def _parse_shorthand(value: str) -> SourceDescriptor:
    path_part, ref = _split_ref(value, value)

    segments = path_part.split("/")
    if len(segments) == 1:
        raise SourceError(f'source must be in owner/repo format, got "{path_part}"', value)
    if len(segments) > 2:
        raise SourceError(f'too many slashes in source "{path_part}" - expected owner/repo', value)

    owner, repo = segments
    if owner == "":
        raise SourceError("owner cannot be empty", value)
    if repo == "":
        raise SourceError("repo cannot be empty", value)

    return SourceDescriptor(
        kind="shorthand",
        manifest_key=f"{owner}/{repo}",
        owner=owner,
        repo=repo,
        ref=ref,
        clone_url=github_clone_url(owner, repo),
    )


def _split_ref(value: str, source: str) -> tuple[str, str | None]:
    """Split ``path@ref`` on the first ``@``; the ref may contain more."""
    path_part, sep, ref = value.partition("@")
    if not sep:
        return value, None
    if ref == "":
        raise SourceError("ref cannot be empty when @ is present", source)
    return path_part, ref


# =============================================================================
# Manifest key helpers
# =============================================================================


def build_source_from_key(
    key: str, ref: str | None, clone_url: str | None = None
) -> SourceDescriptor:
    """Rebuild a remote descriptor from a manifest key.

    Args:
        key: ``owner/repo`` or ``owner/repo/bundle-path``
        ref: Ref to check out, or None for the default branch
        clone_url: Stored clone URL; GitHub is assumed when missing

    Returns:
        SourceDescriptor pointing at the same repository
    """
    parts = key.split("/")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise SourceError(f'manifest key is not in owner/repo form: "{key}"', key)

    owner, repo = parts[0], parts[1]
    target_plugin = "/".join(parts[2:]) or None

    kind: SourceKind
    if clone_url is None:
        kind = "shorthand"
        clone_url = github_clone_url(owner, repo)
    elif clone_url.startswith("git@"):
        kind = "ssh"
    else:
        kind = "https"

    return SourceDescriptor(
        kind=kind,
        manifest_key=key,
        owner=owner,
        repo=repo,
        ref=ref,
        clone_url=clone_url,
        target_plugin=target_plugin,
    )


def source_dir_from_key(clone_dir: Path, key: str) -> Path:
    """Locate a bundle inside a clone.

    Collection members (``owner/repo/name``) live in a subdirectory; plain
    ``owner/repo`` bundles are the clone root.
    """
    parts = key.split("/")
    if len(parts) > 2:
        return clone_dir.joinpath(*parts[2:])
    return clone_dir
