"""Main CLI entry point using Typer."""

import typer
from rich.console import Console

from chambermerge import __version__
from chambermerge.cli.commands import conflicts_app, consolidate_app
from chambermerge.core.config import get_settings
from chambermerge.core.log import configure_logging

app = typer.Typer(
    name="chambermerge",
    help="Consolidate the results of parallel coding agents",
    add_completion=True,
    rich_markup_mode="rich",
)
app.add_typer(consolidate_app, name="consolidate")
app.add_typer(conflicts_app, name="conflicts")

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]chambermerge[/bold blue] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Also log to the console.",
    ),
) -> None:
    """
    Consolidate the results of parallel coding agents.

    Detects conflicts between agents' diffs, scores each proposed change and
    merges the chosen files back into the project.
    """
    configure_logging(get_settings(), console=verbose)


if __name__ == "__main__":
    app()
