"""Rich terminal rendering of an AnalysisReport."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..report import AnalysisReport
from ._common import score_color

MAX_ROWS = 10


def _summary_table(report: AnalysisReport) -> Table:
    repo = report.repository
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="dim")
    table.add_column(style="bold")

    table.add_row("Commits", str(repo["total_commits"]))
    table.add_row("Authors", str(repo["total_authors"]))
    table.add_row("Files", str(repo["total_files"]))
    table.add_row("Churn", f"+{repo['insertions']} / -{repo['deletions']}")
    if repo["first_commit"]:
        table.add_row("Range", f"{repo['first_commit'][:10]} .. {repo['last_commit'][:10]}")
    health = repo["health_score"]
    table.add_row("Health", f"[{score_color(health)}]{health:.2f}[/] ({repo['health_rating']})")
    governance = repo["governance_score"]
    table.add_row("Governance", f"[{score_color(governance)}]{governance:.2f}[/]")
    team = repo["team_score"]
    table.add_row("Team", f"[{score_color(team / 100)}]{team:.0f}/100[/]")
    bus = repo["bus_factor"]
    table.add_row("Bus factor", f"[{'red' if bus <= 2 else 'green'}]{bus}[/]")
    return table


def _hotspot_table(report: AnalysisReport) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=True)
    table.add_column("File", min_width=30, overflow="fold")
    table.add_column("Risk", justify="right")
    table.add_column("Commits", justify="right")
    table.add_column("Churn", justify="right")
    table.add_column("Authors", justify="right")

    for entry in report.files[:MAX_ROWS]:
        risk = entry["risk"]
        score = risk["score"]
        color = "red" if risk["hotspot"] else score_color(1 - score)
        table.add_row(
            escape(entry["path"]),
            f"[{color}]{score:.2f}[/]",
            str(entry["commits"]),
            str(entry["churn"]),
            str(entry["authors"]),
        )
    return table


def _author_table(report: AnalysisReport, verbose: bool) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=True)
    table.add_column("Author", min_width=24, overflow="fold")
    table.add_column("Commits", justify="right")
    table.add_column("Share", justify="right")
    table.add_column("+/-", justify="right")
    table.add_column("Files", justify="right")
    if verbose:
        table.add_column("Pattern")
        table.add_column("Style")

    for author in report.authors[: None if verbose else MAX_ROWS]:
        comparative = author["comparative"]
        row = [
            f"{escape(author['name'])} [dim]<{escape(author['email'])}>[/]",
            str(author["commits"]),
            f"{comparative['relative_contribution']:.1f}%",
            f"+{author['insertions']}/-{author['deletions']}",
            str(author["files"]),
        ]
        if verbose:
            row.append(author["work_pattern"]["pattern"])
            row.append(author["collaboration"]["ownership_style"])
        table.add_row(*row)
    return table


def _team_table(report: AnalysisReport) -> Table:
    team = report.team
    table = Table(show_header=True, show_lines=False, pad_edge=True)
    table.add_column("Dimension", min_width=20)
    table.add_column("Score", justify="right")
    for label, key in (
        ("Collaboration", "collaboration"),
        ("Consistency", "consistency"),
        ("Quality", "quality"),
        ("Work-life balance*", "work_life_balance"),
    ):
        score = team[key]["score"]
        table.add_row(label, f"[{score_color(score / 100)}]{score:.0f}[/]")
    return table


def render_report(report: AnalysisReport, console: Console, verbose: bool = False) -> None:
    """Print the terminal view of a report."""
    console.print()
    title = "[bold cyan]GIT VITALS[/bold cyan]"
    repo_path = report.repository.get("path")
    if repo_path:
        title += f" -- {escape(repo_path)}"
    if report.repository.get("branch"):
        title += f" [dim]({report.repository['branch']})[/dim]"
    console.print(title)
    if report.partial:
        reason = "canceled" if report.canceled else "timed out" if report.timed_out else "stopped early"
        console.print(f"[yellow]Partial result: history {reason}[/yellow]")
    console.print()
    console.print(_summary_table(report))

    if report.total_commits == 0:
        console.print()
        console.print("[dim]No commits in scope.[/dim]")
        return

    if report.files:
        console.print()
        console.print("[bold]Riskiest files[/bold]")
        console.print(_hotspot_table(report))

    console.print()
    console.print("[bold]Contributors[/bold]")
    console.print(_author_table(report, verbose))

    console.print()
    console.print("[bold]Team health[/bold]")
    console.print(_team_table(report))
    console.print("[dim]* estimated from commit timestamps[/dim]")

    if verbose and report.coupling:
        console.print()
        console.print("[bold]Co-changed files[/bold]")
        for pair in report.coupling[:MAX_ROWS]:
            console.print(
                f"  {escape(pair['file_a'])} <-> {escape(pair['file_b'])} "
                f"[dim]({pair['support']} co-changes, lift {pair['lift']:.1f})[/dim]"
            )

    notes = report.insights + report.action_items
    if notes:
        console.print()
        console.print("[bold]Insights[/bold]")
        for note in notes:
            console.print(f"  - {escape(note)}")

    if report.warnings:
        console.print()
        console.print(f"[yellow]{report.warning_count} warning(s)[/yellow]")
        for warning in report.warnings[: None if verbose else 5]:
            console.print(f"  [dim][{warning['code']}][/dim] {escape(warning['message'])}")
        if not verbose and report.warning_count > 5:
            console.print("  [dim]... use --verbose to list all[/dim]")
    console.print()
