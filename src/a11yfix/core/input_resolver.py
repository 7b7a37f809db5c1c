"""Resolves fix/scan targets: files, glob patterns, or page URLs."""

from __future__ import annotations

import fnmatch
import re
from pathlib import Path

import httpx

DEFAULT_PATTERNS = ["**/*.html"]
HTML_SUFFIXES = (".html", ".htm")


def is_url(target: str) -> bool:
    """Check if target looks like a web page URL."""
    return bool(re.match(r"https?:", target))


def is_html_file(target: str) -> bool:
    return Path(target).suffix.lower() in HTML_SUFFIXES


def _is_excluded(relative: str, exclude: list[str]) -> bool:
    for pattern in exclude:
        if pattern.endswith("/"):
            name = pattern.rstrip("/")
            if name in Path(relative).parts:
                return True
        elif fnmatch.fnmatch(Path(relative).name, pattern) or fnmatch.fnmatch(relative, pattern):
            return True
    return False


def resolve_files_or_urls(
    targets: list[str] | tuple[str, ...],
    root: Path | None = None,
    exclude: list[str] | None = None,
) -> list[str]:
    """Expand targets into a sorted list of files, or return URLs untouched.

    With no targets, every HTML file under ``root`` is used. Existing paths are
    kept as given; anything else is treated as a glob pattern relative to
    ``root``.
    """
    targets = list(targets) or DEFAULT_PATTERNS
    if is_url(targets[0]):
        return targets

    root = root or Path.cwd()
    exclude = exclude or []
    resolved: list[str] = []

    for target in targets:
        path = Path(target)
        if (root / path).is_file():
            candidates = [target]
        elif path.is_absolute():
            candidates = [str(p) for p in Path(path.anchor).glob(str(path.relative_to(path.anchor)))]
        else:
            candidates = [str(p.relative_to(root)) for p in root.glob(target)]

        for candidate in candidates:
            if (root / candidate).is_dir():
                continue
            if _is_excluded(candidate, exclude):
                continue
            if candidate not in resolved:
                resolved.append(candidate)

    return sorted(resolved)


async def download_page(url: str, client: httpx.AsyncClient | None = None) -> str:
    """Fetch the HTML of a page."""
    if client is not None:
        response = await client.get(url, follow_redirects=True)
        response.raise_for_status()
        return response.text

    async with httpx.AsyncClient(follow_redirects=True) as http:
        response = await http.get(url)
        response.raise_for_status()
        return response.text
