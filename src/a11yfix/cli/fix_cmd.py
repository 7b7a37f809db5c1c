"""a11yfix fix command."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click
from rich.markup import escape
from rich.prompt import Confirm

from a11yfix.core.config import A11yFixConfig, load_config
from a11yfix.core.errors import FixError
from a11yfix.core.input_resolver import resolve_files_or_urls
from a11yfix.core.models import FixSettings
from a11yfix.core.output import (
    console,
    error_console,
    file_label,
    get_progress,
    print_fix_diff,
    print_fix_summary,
    print_issues_to_fix,
)
from a11yfix.fix.engine import FixEngine


def make_engine(config: A11yFixConfig) -> FixEngine:
    return FixEngine(config)


@click.command()
@click.argument("targets", nargs=-1)
@click.option("--yes", "-y", is_flag=True, help="Apply all fixes without asking")
@click.option("--patch-diff", "-l", is_flag=True, help="Show a patch-like diff instead of a character diff")
@click.option("--issue", "issues", multiple=True, help="Issue to fix (skips the scan, repeatable)")
@click.option("--context", type=str, default=None, help="Extra instructions for the fix service")
@click.option("--output-diff", is_flag=True, help="Ask the fix service for patches instead of full text")
@click.option("--chunk-size", type=click.IntRange(min=1), default=None, help="Max tokens per request")
def fix(
    targets: tuple[str, ...],
    yes: bool,
    patch_diff: bool,
    issues: tuple[str, ...],
    context: str | None,
    output_diff: bool,
    chunk_size: int | None,
):
    """Fix accessibility issues in TARGETS (files, globs or URLs).

    Without TARGETS, every HTML file under the current directory is fixed.
    """
    project_path = Path.cwd()
    config = load_config(project_path)
    files = resolve_files_or_urls(targets, project_path, config.exclude)
    if not files:
        error_console.print("No files found")
        sys.exit(1)

    settings = FixSettings(context=context, output_diff=output_diff, chunk_size=chunk_size)

    try:
        if yes:
            asyncio.run(_fix_all(config, files, settings, list(issues)))
        else:
            asyncio.run(_fix_interactive(config, files, settings, list(issues), patch_diff))
    except FixError as exc:
        error_console.print(f"[red]{escape(str(exc))}[/red]")
        sys.exit(1)


async def _fix_all(config: A11yFixConfig, files: list[str], settings: FixSettings, issues: list[str]):
    """Fix every file concurrently and write the results."""
    async with make_engine(config) as engine:
        with get_progress() as progress:
            progress.add_task("Automatically fixing files...", total=None)
            results = await engine.fix_files(files, settings, issues, write=True)
    print_fix_summary(results)


async def _fix_interactive(
    config: A11yFixConfig,
    files: list[str],
    settings: FixSettings,
    issues: list[str],
    patch_diff: bool,
):
    """Fix files one at a time, asking before each write."""
    async with make_engine(config) as engine:
        for file in files:
            with get_progress() as progress:
                progress.add_task(f"Fixing accessibility issues in {file_label(file)}...", total=None)
                outcome = await engine.fix_file(file, settings, issues)

            if outcome.scanned and not outcome.issues:
                console.print(f"[green]✔[/green] No issues found in {file_label(file)}")
                continue
            if not outcome.fixed or outcome.result is None:
                console.print(f"[dim]No fix suggestion for {escape(file)}[/dim]")
                continue

            print_issues_to_fix(outcome)
            print_fix_diff(file, outcome.result.code, outcome.result.suggestion, patch_diff)

            if Confirm.ask("Apply changes?", default=True):
                if engine.write_fix(file, outcome.content or "", outcome.result):
                    console.print(f"[green]✔[/green] Fixes applied to {file_label(file)}")
                else:
                    console.print(f"[yellow]Cannot write fixes to {file_label(file)}[/yellow]")
            else:
                console.print(f"[red]✖[/red] Fixes rejected for {file_label(file)}")
