"""Human-readable diffs between a document and its suggested fix."""

from __future__ import annotations

import difflib
import re

from rich.markup import escape

NO_NEWLINE_MARKER = "\\ No newline at end of file"
_HEADER_SEPARATOR = "=" * 67
_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+$")


def _split_lines(text: str) -> list[str]:
    return _LINE_RE.findall(text)


def create_patch(file_name: str, old: str, new: str, context: int = 4) -> str:
    """Create a unified patch turning ``old`` into ``new``.

    The patch starts with an ``Index:`` block and marks missing final
    newlines, so it can be fed back to :func:`a11yfix.fix.patch.apply_patch_diff`.
    """
    out = [f"Index: {file_name}\n", f"{_HEADER_SEPARATOR}\n"]
    body = difflib.unified_diff(
        _split_lines(old),
        _split_lines(new),
        fromfile=file_name,
        tofile=file_name,
        n=context,
    )
    for line in body:
        if line.endswith("\n"):
            out.append(line)
        else:
            out.append(f"{line}\n{NO_NEWLINE_MARKER}\n")
    return "".join(out)


def generate_colored_diff(content: str, suggestion: str) -> str:
    """Character-level diff as Rich markup: insertions green, deletions red."""
    matcher = difflib.SequenceMatcher(None, content, suggestion, autojunk=False)
    parts = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            parts.append(escape(content[i1:i2]))
            continue
        if tag in ("delete", "replace"):
            parts.append(f"[red]{escape(content[i1:i2])}[/red]")
        if tag in ("insert", "replace"):
            parts.append(f"[green]{escape(suggestion[j1:j2])}[/green]")
    return "".join(parts).strip()


def generate_patch_diff(
    file_name: str,
    content: str,
    suggestion: str,
    colors: bool = True,
    strip_header: bool = True,
) -> str:
    """Unified diff for display, optionally without the Index block and uncolored."""
    diff = create_patch(file_name, content, suggestion)
    if strip_header:
        diff = diff.split(f"{_HEADER_SEPARATOR}\n", 1)[1]
    diff = diff.strip()

    if not colors:
        return diff

    colored = []
    for line in diff.split("\n"):
        first = line[:1]
        if first == "+" and not line.startswith("+++"):
            colored.append(f"[green]{escape(line)}[/green]")
        elif first == "-" and not line.startswith("---"):
            colored.append(f"[red]{escape(line)}[/red]")
        elif first == "@":
            colored.append(f"[cyan]{escape(line)}[/cyan]")
        elif first == "\\":
            colored.append(f"[dim]{escape(line)}[/dim]")
        else:
            colored.append(escape(line))
    return "\n".join(colored).strip()
