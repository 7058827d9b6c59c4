"""The analyze command."""

import signal
from pathlib import Path
from typing import Optional

import typer

from ..exceptions import GitVitalsError
from ..logging_config import setup_logging
from ..pipeline import AnalysisPipeline
from ..report import AnalysisReport
from ..runtime import NullProgress, RunContext
from . import app
from ._common import ExitCode, console, err_console, resolve_options
from ._display import render_report
from .progress import RichProgress


def _write_json(report: AnalysisReport, output: Path, include_runtime: bool) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(report.to_json(include_runtime=include_runtime) + "\n", encoding="utf-8")


@app.command()
def analyze(
    path: Path = typer.Argument(
        Path("."),
        help="Repository to analyze (default: current directory)",
        file_okay=False,
        dir_okay=True,
    ),
    since: Optional[str] = typer.Option(
        None, "--since", help="Only commits after this date (anything git accepts)"
    ),
    until: Optional[str] = typer.Option(None, "--until", help="Only commits before this date"),
    days: Optional[int] = typer.Option(
        None, "--days", "-d", min=1, help="Only the last N days (ignored with --since)"
    ),
    branch: Optional[list[str]] = typer.Option(
        None, "--branch", "-b", help="Ref to walk; repeat for several (default: HEAD)"
    ),
    author: Optional[str] = typer.Option(None, "--author", help="Only commits by matching authors"),
    paths: Optional[list[str]] = typer.Option(
        None, "--path", "-p", help="Limit history to a path; repeat for several"
    ),
    max_count: Optional[int] = typer.Option(
        None, "--max-count", "-n", min=1, help="Read at most N commits"
    ),
    no_merges: bool = typer.Option(False, "--no-merges", help="Skip merge commits"),
    heavy: bool = typer.Option(
        False, "--heavy", help="Also compute pairwise file co-change coupling"
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Seconds before git is killed and a partial report is returned"
    ),
    json_output: bool = typer.Option(False, "--json", help="Print the report as JSON"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Also write the JSON report to this file", dir_okay=False
    ),
    include_commits: bool = typer.Option(
        False, "--include-commits", help="Add per-commit records to the JSON report"
    ),
    no_timestamps: bool = typer.Option(
        False,
        "--no-timestamps",
        help="Leave generation time and duration out of the JSON (byte-stable output)",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging, full tables"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Errors only, no progress"),
    log_file: Optional[Path] = typer.Option(
        None, "--log-file", help="Also append log records to this file", dir_okay=False
    ),
):
    """
    Stream a repository's history and score it.

    Reports per-file risk, commit message governance, ownership
    concentration (bus factor), team health and per-author profiles.

    [bold cyan]Examples:[/bold cyan]

      git-vitals analyze

      git-vitals analyze ~/src/project --days 90 --json

      git-vitals analyze -b main -b release --heavy -o vitals.json
    """
    logger = setup_logging(
        verbose=verbose,
        quiet=quiet,
        log_file=str(log_file) if log_file else None,
        console=err_console,
    )
    include_runtime = not no_timestamps

    try:
        options = resolve_options(
            path,
            config=config,
            since=since,
            until=until,
            days=days,
            branch=branch,
            author=author,
            paths=paths,
            max_count=max_count,
            no_merges=no_merges,
            heavy=heavy,
            timeout=timeout,
            include_commits=include_commits,
        )

        show_progress = not (quiet or json_output) and err_console.is_terminal
        context = RunContext(
            logger=logger,
            progress=RichProgress(err_console) if show_progress else NullProgress(),
        )
        previous = signal.signal(
            signal.SIGTERM, lambda signum, frame: context.cancel_token.cancel("terminated")
        )
        try:
            report = AnalysisPipeline(options, context).run()
        finally:
            signal.signal(signal.SIGTERM, previous)

        if output is not None:
            _write_json(report, output, include_runtime)
            logger.info("Report written to %s", output)

        if json_output:
            print(report.to_json(include_runtime=include_runtime))
        else:
            render_report(report, console, verbose=verbose)

        if report.canceled:
            raise typer.Exit(ExitCode.INTERRUPTED)

    except typer.Exit:
        raise

    except GitVitalsError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(ExitCode.ERROR)

    except KeyboardInterrupt:
        err_console.print("\n[yellow]Analysis interrupted[/yellow]")
        raise typer.Exit(ExitCode.INTERRUPTED)

    except OSError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(ExitCode.ERROR)
