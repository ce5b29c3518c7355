"""Main CLI application for agntc."""

import logging
from collections import Counter
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from agntc import __version__
from agntc.cli.prompts import PromptResolver, parse_selection
from agntc.config.parser import ConfigError
from agntc.config.schemas import ManifestEntry
from agntc.core.agents import identify_file_ownership
from agntc.core.installer import BundleInstaller
from agntc.core.manifest import ManifestError, ManifestStore
from agntc.core.operations import (
    AlreadyUpToDate,
    NotInstalledError,
    Updated,
    UpdateFailed,
    UpdateOutcome,
    change_version,
    remove_bundles,
    resolve_target_keys,
    update_all,
    update_bundle,
)
from agntc.core.updates import (
    CheckFailed,
    Local,
    NewerTags,
    UpdateAvailable,
    UpdateCheckResult,
    check_all_for_updates,
)
from agntc.drivers import get_driver
from agntc.sources.git import GitError
from agntc.sources.parser import SourceError

# Create the main Typer app
app = typer.Typer(
    name="agntc",
    help="Install and update agent skills and plugins from git or local paths",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)

# Set up logger for the agntc package
logger = logging.getLogger("agntc")

PathOption = Annotated[
    Path | None,
    typer.Option(
        "--path",
        "-p",
        help="Project directory (defaults to current directory)",
    ),
]


def setup_logging(verbosity: int) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbosity: 0=WARNING, 1=INFO, 2+=DEBUG
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logger.setLevel(level)

    # Only add handler if not already configured
    if not logger.handlers:
        handler = RichHandler(
            console=error_console,
            show_time=verbosity >= 2,
            show_path=verbosity >= 3,
            rich_tracebacks=True,
        )
        handler.setLevel(level)
        logger.addHandler(handler)
    else:
        for h in logger.handlers:
            h.setLevel(level)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]Error:[/red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]⚠[/yellow] {message}")


def get_project_root(path: Path | None) -> Path:
    """Resolve the project directory, failing if it does not exist."""
    root = Path.cwd() if path is None else path.resolve()
    if not root.is_dir():
        print_error(f"Directory does not exist: {root}")
        raise typer.Exit(1)
    return root


def read_manifest(project_root: Path) -> dict[str, ManifestEntry]:
    """Read the manifest, exiting on a corrupt file."""
    try:
        return ManifestStore(project_root).read()
    except ManifestError as e:
        print_error(f"Failed to read manifest: {e}")
        raise typer.Exit(1) from e


@app.callback()
def callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Increase verbosity (-v info, -vv debug)",
        ),
    ] = 0,
) -> None:
    """agntc - install agent skills and plugins into a project."""
    setup_logging(verbose)


@app.command()
def version() -> None:
    """Show the agntc version."""
    console.print(f"agntc {__version__}")


@app.command()
def add(
    source: Annotated[
        str,
        typer.Argument(help="Git repo (owner/repo[@ref], HTTPS or SSH URL) or local path"),
    ],
    path: PathOption = None,
) -> None:
    """Install a bundle from a git repo or local path."""
    project_root = get_project_root(path)
    installer = BundleInstaller(project_root, PromptResolver(console), on_warn=print_warning)

    try:
        summary = installer.add(source)
    except (SourceError, GitError, ManifestError) as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    for result in summary.installed:
        print_success(result.message)
        for agent_id, counts in result.asset_counts_by_agent.items():
            detail = ", ".join(f"{n} {asset}" for asset, n in counts.items())
            console.print(f"  {agent_id}: {detail}")
    for result in summary.skipped:
        print_warning(result.message)

    if summary.cancelled:
        console.print("Cancelled")
        raise typer.Exit(1)
    if not summary.installed:
        raise typer.Exit(1)


def _report_update(outcome: UpdateOutcome) -> bool:
    if isinstance(outcome, Updated):
        print_success(outcome.message)
        return True
    if isinstance(outcome, AlreadyUpToDate):
        console.print(outcome.message)
        return True
    print_error(outcome.message)
    return False


def _update_one(project_root: Path, key: str, ref: str | None) -> UpdateOutcome:
    """Update or re-pin one bundle, turning its errors into a failed outcome."""
    try:
        if ref is not None:
            return change_version(project_root, key, ref, on_warn=print_warning)
        return update_bundle(project_root, key, on_warn=print_warning)
    except (NotInstalledError, ConfigError, OSError) as e:
        return UpdateFailed(key=key, message=f"Failed to update {key}: {e}", reason="error")


@app.command()
def update(
    key: Annotated[
        str | None,
        typer.Argument(help="Bundle key to update (owner/repo or owner/repo/bundle)"),
    ] = None,
    ref: Annotated[
        str | None,
        typer.Option("--ref", "-r", help="Reinstall the bundle at this tag or branch"),
    ] = None,
    path: PathOption = None,
) -> None:
    """Update installed bundles (all of them when no key is given)."""
    project_root = get_project_root(path)
    manifest = read_manifest(project_root)

    if not manifest:
        console.print("No plugins installed.")
        return

    if ref is not None and key is None:
        print_error("--ref requires a bundle key")
        raise typer.Exit(1)

    try:
        if key is None:
            outcomes = list(update_all(project_root, on_warn=print_warning).values())
        else:
            outcomes = [
                _update_one(project_root, k, ref) for k in resolve_target_keys(key, manifest)
            ]
    except (NotInstalledError, ManifestError) as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    ok = [_report_update(outcome) for outcome in outcomes]
    if not all(ok):
        raise typer.Exit(1)


@app.command()
def remove(
    key: Annotated[
        str | None,
        typer.Argument(help="Bundle key to remove (owner/repo or owner/repo/bundle)"),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Do not ask for confirmation"),
    ] = False,
    path: PathOption = None,
) -> None:
    """Remove installed bundles and delete their files."""
    project_root = get_project_root(path)
    manifest = read_manifest(project_root)

    if not manifest:
        console.print("No plugins installed.")
        return

    if key is not None:
        try:
            target_keys = resolve_target_keys(key, manifest)
        except NotInstalledError as e:
            print_error(str(e))
            raise typer.Exit(1) from e
        label = target_keys[0] if len(target_keys) == 1 else key
    else:
        keys = list(manifest)
        for i, k in enumerate(keys, start=1):
            console.print(f"  {i}. {k} [dim]({manifest[k].ref or 'HEAD'})[/dim]")
        answer = typer.prompt("Select bundles to remove (numbers or keys)", default="")
        target_keys = parse_selection(answer, keys)
        if not target_keys:
            console.print("Cancelled")
            raise typer.Exit(0)
        label = target_keys[0] if len(target_keys) == 1 else f"{len(target_keys)} plugin(s)"

    files = [f for k in target_keys for f in manifest[k].files]
    for f in files:
        console.print(f"  {f}", style="dim")

    if not yes and not typer.confirm(f"Remove {label}? {len(files)} file(s) will be deleted."):
        console.print("Cancelled")
        raise typer.Exit(0)

    try:
        remove_bundles(project_root, target_keys)
    except (ManifestError, OSError) as e:
        print_error(f"Failed to remove {label}: {e}")
        raise typer.Exit(1) from e

    print_success(f"Removed {label} - {len(files)} file(s)")


def _describe_assets(entry: ManifestEntry) -> str:
    counts: Counter[tuple[str, str]] = Counter()
    for f in entry.files:
        owner = identify_file_ownership(f)
        if owner is None:
            continue
        target_dir = get_driver(owner.agent_id).get_target_dir(owner.asset_type) or ""
        # Only count top-level items, not the files inside them
        if "/" in f[len(target_dir) + 1 :].rstrip("/"):
            continue
        counts[(owner.agent_id, owner.asset_type)] += 1
    return ", ".join(f"{agent}: {n} {asset}" for (agent, asset), n in counts.items())


def _describe_check(result: UpdateCheckResult) -> str:
    if isinstance(result, Local):
        return "[dim]local[/dim]"
    if isinstance(result, UpdateAvailable):
        return f"[yellow]update available ({result.remote_commit[:7]})[/yellow]"
    if isinstance(result, NewerTags):
        return f"[yellow]newer tags: {', '.join(result.tags)}[/yellow]"
    if isinstance(result, CheckFailed):
        return f"[red]check failed: {result.reason}[/red]"
    return "[green]up to date[/green]"


@app.command("list")
def list_bundles(
    check: Annotated[
        bool,
        typer.Option("--check", "-c", help="Check remotes for updates"),
    ] = False,
    path: PathOption = None,
) -> None:
    """List installed bundles."""
    project_root = get_project_root(path)
    manifest = read_manifest(project_root)

    if not manifest:
        console.print("No plugins installed.")
        return

    checks = check_all_for_updates(manifest) if check else {}

    table = Table(title="Installed Plugins")
    table.add_column("Plugin", style="cyan")
    table.add_column("Ref", style="green")
    table.add_column("Commit", style="dim")
    table.add_column("Agents")
    table.add_column("Assets", style="dim")
    if check:
        table.add_column("Status")

    for key, entry in manifest.items():
        row = [
            key,
            entry.ref or ("local" if entry.is_local else "HEAD"),
            (entry.commit or "")[:7],
            ", ".join(entry.agents),
            _describe_assets(entry),
        ]
        if check:
            row.append(_describe_check(checks[key]))
        table.add_row(*row)

    console.print(table)


if __name__ == "__main__":
    app()
