"""Rich terminal formatting for a11yfix output."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn

from a11yfix.core.models import FileFixResult, Issue
from a11yfix.fix.diff import generate_colored_diff, generate_patch_diff

console = Console()
error_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Route a11yfix logs to stderr; DEBUG when verbose, WARNING otherwise."""
    logger = logging.getLogger("a11yfix")
    logger.handlers.clear()
    logger.addHandler(RichHandler(console=error_console, show_path=False))
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def file_label(file: str) -> str:
    return f"[cyan]{escape(file)}[/cyan]"


def print_scan_result(file: str, issues: list[Issue], skipped: bool = False) -> None:
    """Print the issues found in one file."""
    if skipped:
        console.print(f"[dim]{escape(file)}[/dim]: skipped (cannot scan for issues in non-HTML files)")
        return
    if not issues:
        console.print(f"{escape(file)}: [green]no issues[/green]")
        return

    console.print(f"{escape(file)}: {len(issues)} issues")
    for issue in issues:
        console.print(f"  - [red]{escape(issue.help)}[/red]")


def print_issues_to_fix(result: FileFixResult) -> None:
    """Print the issue list shown before an interactive fix."""
    issues = result.issues
    if result.scanned or issues:
        plural = "s" if len(issues) > 1 else ""
        verb = "found" if result.scanned else "to fix"
        console.print(f"{len(issues)} issue{plural} {verb} in {file_label(result.file)}:")
        for issue in issues:
            console.print(f"  - [red]{escape(issue)}[/red]")
    else:
        console.print(
            f"Skipped scan for {file_label(result.file)} (not an HTML file), but found potential fixes:"
        )
    console.print()


def print_fix_diff(file: str, content: str, suggestion: str, patch_diff: bool = False) -> None:
    """Print the changes suggested for a file."""
    console.print(f"Changes suggested for {file_label(file)}:\n[dim]---[/dim]")
    if patch_diff:
        console.print(generate_patch_diff(file, content, suggestion), highlight=False)
    else:
        console.print(generate_colored_diff(content, suggestion), highlight=False)
    console.print("[dim]---[/dim]")


def print_fix_summary(results: list[FileFixResult]) -> None:
    """Print one line per file after a batch fix: fixed files bright, others dim."""
    for result in results:
        if result.fixed:
            console.print(escape(result.file))
        else:
            console.print(f"[dim]{escape(result.file)}[/dim]")


def get_progress() -> Progress:
    """Create a spinner for long-running scans and fixes."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    )
