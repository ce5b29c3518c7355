"""Interactive prompts for the CLI.

``PromptResolver`` answers the installer's questions on the terminal using
typer prompts. Empty answers take the shown default.
"""

import typer
from rich.console import Console

from agntc.drivers import list_drivers


def parse_selection(answer: str, options: list[str]) -> list[str]:
    """Turn a comma-separated answer into option values.

    Accepts option names, 1-based numbers, or ``all``. Unknown items are
    ignored; order follows ``options`` and duplicates are dropped.
    """
    answer = answer.strip()
    if answer.lower() == "all":
        return list(options)

    picked: set[str] = set()
    for item in answer.split(","):
        item = item.strip()
        if not item:
            continue
        if item.isdigit() and 1 <= int(item) <= len(options):
            picked.add(options[int(item) - 1])
        elif item in options:
            picked.add(item)

    return [o for o in options if o in picked]


class PromptResolver:
    """Asks the user how to proceed at each decision point of an install."""

    def __init__(self, console: Console):
        self.console = console

    def _show_options(self, options: list[str], hints: dict[str, str] | None = None) -> None:
        hints = hints or {}
        for i, option in enumerate(options, start=1):
            hint = f" [dim]({hints[option]})[/dim]" if option in hints else ""
            self.console.print(f"  {i}. {option}{hint}")

    def _show_files(self, files: list[str]) -> None:
        for f in files:
            self.console.print(f"  - {f}")

    def select_collection_bundles(self, key: str, bundles: list[str]) -> list[str]:
        self.console.print(f"[bold]{key}[/bold] is a collection:")
        self._show_options(bundles)
        answer = typer.prompt("Select bundles to install (numbers or names, 'all')", default="all")
        selected = parse_selection(answer, bundles)
        if not selected:
            self.console.print("No bundles selected - skipping")
        return selected

    def select_agents(self, declared: list[str], detected: list[str]) -> list[str]:
        all_agents = list_drivers()
        hints = {a: "not declared by bundle" for a in all_agents if a not in declared}
        defaults = [a for a in all_agents if a in declared and a in detected]
        if not defaults:
            defaults = [a for a in all_agents if a in declared]

        self.console.print("Agents:")
        self._show_options(all_agents, hints)
        answer = typer.prompt("Select agents to install for", default=", ".join(defaults))
        selected = parse_selection(answer, all_agents)
        if not selected:
            self.console.print("No agents selected - skipping")
        return selected

    def resolve_collision(self, key: str, files: list[str]) -> bool:
        self.console.print(f'[yellow]File collision with "{key}":[/yellow]')
        self._show_files(files)
        return typer.confirm(f"Remove {key} and continue?", default=False)

    def resolve_unmanaged(self, bundle_key: str, files: list[str]) -> bool:
        self.console.print(f'[yellow]Unmanaged files found for "{bundle_key}":[/yellow]')
        self._show_files(files)
        if not typer.confirm("Overwrite these files?", default=False):
            return False
        return typer.confirm("Are you sure? These files will be permanently replaced.", default=False)
