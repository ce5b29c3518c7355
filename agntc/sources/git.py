"""Git operations for remote bundle sources.

Uses the system ``git`` command for all operations (no gitpython dependency).
Clones are shallow (--depth 1) into a fresh temp directory owned by the
caller, who must remove it with ``cleanup_temp_dir`` or use the
``cloned_source`` context manager.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from agntc.sources.parser import SourceDescriptor

logger = logging.getLogger(__name__)

CLONE_TIMEOUT = 60
LS_REMOTE_TIMEOUT = 15
DEFAULT_TIMEOUT = 30
MAX_CLONE_ATTEMPTS = 3

AUTH_ERROR_PATTERNS = (
    "Authentication",
    "Permission denied",
    "could not read Username",
    "could not read Password",
)


class GitError(Exception):
    """Error running a git command."""

    def __init__(self, message: str, url: str | None = None, stderr: str = ""):
        self.url = url
        self.stderr = stderr
        super().__init__(message)


class GitAuthError(GitError):
    """Git rejected the credentials (or had none). Never retried."""


@dataclass(frozen=True)
class CloneResult:
    """A finished shallow clone.

    ``checkout_dir`` is named after the repository and lives inside
    ``temp_dir``, which is what the caller removes.
    """

    temp_dir: Path
    commit: str
    checkout_dir: Path


def run_git(
    args: list[str],
    cwd: Path | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> subprocess.CompletedProcess[str]:
    """Run a git command.

    Args:
        args: Git command arguments (without 'git')
        cwd: Working directory
        timeout: Seconds before the command is killed

    Returns:
        Completed process

    Raises:
        GitError: If the command fails, times out, or git cannot be run
    """
    cmd = ["git"] + args
    logger.debug("Running git command: %s", " ".join(cmd))
    try:
        return subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
            timeout=timeout,
        )
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or "").strip()
        logger.debug("Git command failed: %s - %s", " ".join(cmd), stderr)
        raise GitError(stderr or f"git exited with status {e.returncode}", stderr=stderr) from e
    except subprocess.TimeoutExpired as e:
        raise GitError(f"Git command timed out after {timeout}s: {' '.join(cmd)}") from e
    except FileNotFoundError as e:
        logger.error("Git is not installed or not in PATH")
        raise GitError("Git is not installed or not in PATH") from e
    except OSError as e:
        logger.error("Failed to run git: %s", e)
        raise GitError(f"Failed to run git: {e}") from e


def is_auth_error(stderr: str) -> bool:
    """Check whether git stderr reports an authentication failure."""
    return any(pattern in stderr for pattern in AUTH_ERROR_PATTERNS)


def clone_source(source: SourceDescriptor) -> CloneResult:
    """Shallow-clone a remote source into a new temp directory.

    Transient failures are retried up to ``MAX_CLONE_ATTEMPTS`` times;
    authentication failures fail immediately. On failure the temp
    directory is removed before the error is raised.

    Args:
        source: Remote source descriptor

    Returns:
        CloneResult with the temp directory and checked-out commit

    Raises:
        GitAuthError: If git reports an authentication failure
        GitError: If every attempt fails
    """
    if source.is_local or source.clone_url is None:
        raise ValueError(f"Cannot clone a local source: {source.manifest_key}")

    url = source.clone_url
    temp_dir = Path(tempfile.mkdtemp(prefix="agntc-"))
    checkout_dir = temp_dir / (source.repo or "repo")

    clone_args = ["clone", "--depth", "1"]
    if source.ref is not None:
        clone_args.extend(["--branch", source.ref])
    clone_args.extend([url, str(checkout_dir)])

    logger.info("Cloning %s%s", url, f" at {source.ref}" if source.ref else "")

    last_error = GitError(f"git clone of {url} was not attempted", url=url)
    for attempt in range(1, MAX_CLONE_ATTEMPTS + 1):
        try:
            run_git(clone_args, timeout=CLONE_TIMEOUT)
            result = run_git(["-C", str(checkout_dir), "rev-parse", "HEAD"])
            commit = result.stdout.strip()
            logger.debug("Cloned %s at %s", url, commit)
            return CloneResult(temp_dir=temp_dir, commit=commit, checkout_dir=checkout_dir)
        except GitError as e:
            last_error = e
            if is_auth_error(e.stderr):
                cleanup_temp_dir(temp_dir)
                raise GitAuthError(f"git clone failed: {e}", url=url, stderr=e.stderr) from e

            logger.warning(
                "Clone attempt %d/%d for %s failed: %s", attempt, MAX_CLONE_ATTEMPTS, url, e
            )
            shutil.rmtree(checkout_dir, ignore_errors=True)

    cleanup_temp_dir(temp_dir)
    raise GitError(
        f"git clone failed after {MAX_CLONE_ATTEMPTS} attempts: {last_error}",
        url=url,
        stderr=last_error.stderr,
    ) from last_error


def cleanup_temp_dir(path: Path) -> None:
    """Remove a clone directory, ignoring any error."""
    try:
        shutil.rmtree(path)
    except OSError as e:
        logger.debug("Failed to remove temp dir %s: %s", path, e)


@contextmanager
def cloned_source(source: SourceDescriptor) -> Iterator[CloneResult]:
    """Clone a source for the duration of a ``with`` block."""
    result = clone_source(source)
    try:
        yield result
    finally:
        cleanup_temp_dir(result.temp_dir)


def ls_remote(url: str, *patterns: str, tags: bool = False) -> str:
    """Run ``git ls-remote`` once and return its stdout.

    Args:
        url: Repository URL
        *patterns: Ref patterns to query (e.g. "HEAD", "refs/heads/main")
        tags: Pass --tags

    Raises:
        GitError: If the command fails or times out
    """
    args = ["ls-remote"]
    if tags:
        args.append("--tags")
    args.append(url)
    args.extend(patterns)
    return run_git(args, timeout=LS_REMOTE_TIMEOUT).stdout

