"""a11yfix scan command."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click
from rich.markup import escape

from a11yfix.core.config import ScanConfig, load_config
from a11yfix.core.errors import ScanError
from a11yfix.core.input_resolver import is_html_file, is_url, resolve_files_or_urls
from a11yfix.core.models import Issue
from a11yfix.core.output import error_console, get_progress, print_scan_result
from a11yfix.scanner.axe import AxeScanner


def make_scanner(config: ScanConfig) -> AxeScanner:
    return AxeScanner(config)


@click.command()
@click.argument("targets", nargs=-1)
def scan(targets: tuple[str, ...]):
    """Scan TARGETS (files, globs or URLs) for accessibility issues."""
    project_path = Path.cwd()
    config = load_config(project_path)
    files = resolve_files_or_urls(targets, project_path, config.exclude)
    if not files:
        error_console.print("No files found")
        sys.exit(1)

    scanner = make_scanner(config.scan)
    try:
        with get_progress() as progress:
            progress.add_task("Scanning files for issues...", total=None)
            results = asyncio.run(_scan_all(scanner, files))
    except ScanError as exc:
        error_console.print(f"[red]{escape(str(exc))}[/red]")
        sys.exit(1)

    for file, issues in results:
        print_scan_result(file, issues or [], skipped=issues is None)


async def _scan_all(scanner: AxeScanner, files: list[str]) -> list[tuple[str, list[Issue] | None]]:
    async def scan_file(file: str) -> tuple[str, list[Issue] | None]:
        if not is_url(file) and not is_html_file(file):
            return file, None
        try:
            return file, await scanner.scan(file)
        except ScanError as exc:
            raise ScanError(f"Could not scan issues for '{file}': {exc}") from exc

    return list(await asyncio.gather(*(scan_file(file) for file in files)))
