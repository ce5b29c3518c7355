"""Remote update checks for installed bundles.

Each check runs exactly one ``git ls-remote`` and classifies the entry as
up to date, stale, or pinned to a tag with newer tags available. Locally
sourced entries never touch the network. Failures are reported as a
``CheckFailed`` result; nothing here raises for a git problem.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Literal

from agntc.config.schemas import Manifest, ManifestEntry
from agntc.sources.git import GitError, ls_remote
from agntc.sources.parser import github_clone_url
from agntc.utils.version import is_tag_ref, newer_tags

logger = logging.getLogger(__name__)

MAX_CHECK_WORKERS = 8

TAG_REF_PREFIX = "refs/tags/"
PEELED_SUFFIX = "^{}"


@dataclass(frozen=True)
class Local:
    status: Literal["local"] = "local"


@dataclass(frozen=True)
class UpToDate:
    status: Literal["up-to-date"] = "up-to-date"


@dataclass(frozen=True)
class UpdateAvailable:
    remote_commit: str
    status: Literal["update-available"] = "update-available"


@dataclass(frozen=True)
class NewerTags:
    tags: list[str]
    status: Literal["newer-tags"] = "newer-tags"


@dataclass(frozen=True)
class CheckFailed:
    reason: str
    status: Literal["check-failed"] = "check-failed"


UpdateCheckResult = Local | UpToDate | UpdateAvailable | NewerTags | CheckFailed


def clone_url_for(key: str, entry: ManifestEntry) -> str:
    """URL to query for an entry: the stored one, else GitHub from the key."""
    if entry.clone_url:
        return entry.clone_url
    owner, repo = key.split("/")[:2]
    return github_clone_url(owner, repo)


def check_for_update(key: str, entry: ManifestEntry) -> UpdateCheckResult:
    """Classify how an installed entry compares to its remote.

    Args:
        key: Manifest key
        entry: Installed manifest entry

    Returns:
        One of Local, UpToDate, UpdateAvailable, NewerTags, CheckFailed
    """
    if entry.is_local:
        return Local()

    url = clone_url_for(key, entry)
    try:
        if entry.ref is None:
            return _check_head(url, entry)
        if is_tag_ref(entry.ref):
            return _check_tag(url, entry.ref)
        return _check_branch(url, entry.ref, entry)
    except GitError as e:
        logger.warning("Update check for %s failed: %s", key, e)
        return CheckFailed(reason=str(e))


def _first_sha(output: str) -> str | None:
    for line in output.splitlines():
        sha, _, _ = line.strip().partition("\t")
        if sha:
            return sha
    return None


def _compare(remote_sha: str, entry: ManifestEntry) -> UpdateCheckResult:
    if remote_sha == entry.commit:
        return UpToDate()
    return UpdateAvailable(remote_commit=remote_sha)


def _check_head(url: str, entry: ManifestEntry) -> UpdateCheckResult:
    sha = _first_sha(ls_remote(url, "HEAD"))
    if sha is None:
        return CheckFailed(reason="No HEAD ref found on remote")
    return _compare(sha, entry)


def _check_branch(url: str, ref: str, entry: ManifestEntry) -> UpdateCheckResult:
    sha = _first_sha(ls_remote(url, f"refs/heads/{ref}"))
    if sha is None:
        return CheckFailed(reason=f"Branch '{ref}' not found on remote")
    return _compare(sha, entry)


def parse_tag_names(output: str) -> list[str]:
    """Extract tag names from ``ls-remote --tags`` output, in listing order.

    Peeled ``^{}`` lines for annotated tags are skipped.
    """
    tags: list[str] = []
    for line in output.splitlines():
        _, sep, ref_name = line.strip().partition("\t")
        if not sep or not ref_name.startswith(TAG_REF_PREFIX):
            continue
        if ref_name.endswith(PEELED_SUFFIX):
            continue
        tags.append(ref_name[len(TAG_REF_PREFIX) :])
    return tags


def _check_tag(url: str, ref: str) -> UpdateCheckResult:
    tags = parse_tag_names(ls_remote(url, tags=True))
    if ref not in tags:
        return CheckFailed(reason=f"Tag '{ref}' not found on remote")

    newer = newer_tags(ref, tags)
    if newer:
        return NewerTags(tags=newer)
    return UpToDate()


def check_all_for_updates(manifest: Manifest) -> dict[str, UpdateCheckResult]:
    """Check every manifest entry concurrently.

    A failure for one key is reported as CheckFailed for that key and does
    not affect the others.

    Returns:
        Mapping of manifest key -> result, in manifest order
    """
    if not manifest:
        return {}

    keys = list(manifest)
    workers = min(MAX_CHECK_WORKERS, len(keys))

    results: dict[str, UpdateCheckResult] = {}
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="agntc-check") as pool:
        futures = {key: pool.submit(check_for_update, key, manifest[key]) for key in keys}
        for key in keys:
            try:
                results[key] = futures[key].result()
            except Exception as e:
                logger.error("Update check for %s raised: %s", key, e)
                results[key] = CheckFailed(reason=str(e))

    return results
