"""CLI entry point: registers all subcommands."""

import typer

from .. import __version__
from ._common import console

app = typer.Typer(
    name="git-vitals",
    help="git-vitals - Streaming git history risk, governance and team health analytics",
    add_completion=False,
    rich_markup_mode="rich",
)


@app.command()
def version():
    """Show the version and exit."""
    console.print(f"[bold cyan]git-vitals[/bold cyan] version [green]{__version__}[/green]")


# Import subcommands to register them
from .analyze import analyze as _analyze  # noqa: F401, E402


def main() -> None:
    app()
