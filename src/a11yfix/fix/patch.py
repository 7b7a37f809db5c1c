"""Parsing and application of unified diffs returned by the fix service.

The service may answer with a patch instead of the full rewritten chunk.
Patches follow the unified format written by ``diff -u`` and jsdiff::

    Index: index.html
    ===================================================================
    --- index.html
    +++ index.html
    @@ -1,3 +1,3 @@
     <main>
    -<img src="a.png">
    +<img src="a.png" alt="Logo">
     </main>
    \\ No newline at end of file

Hunks are matched exactly (no fuzz). When a hunk's context is not found at
the stated line, the nearest matching position is used instead.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from a11yfix.core.errors import PatchApplyError, PatchParseError

logger = logging.getLogger(__name__)

PATCH_START = "---"

_HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
_INDEX_RE = re.compile(r"^(?:Index:|diff(?: -r \w+)+)\s+(.+?)\s*$")
_FILE_HEADER_RE = re.compile(r"^(---|\+\+\+)\s+(.*?)\r?$")
_HEADER_END_RE = re.compile(r"^(---|\+\+\+|@@)\s")
_NEXT_FILE_RE = re.compile(r"^(Index:\s|diff\s|---\s|\+\+\+\s|={67})")


@dataclass
class Hunk:
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    lines: list[str] = field(default_factory=list)


@dataclass
class FilePatch:
    """All hunks for one file of a patch."""

    index: str = ""
    old_file_name: str = ""
    new_file_name: str = ""
    hunks: list[Hunk] = field(default_factory=list)


def parse_patch(text: str) -> list[FilePatch]:
    """Parse ``text`` into file patches.

    Lines outside file headers and hunks are skipped. A file patch with no
    hunks is still returned; callers decide whether that counts.
    """
    lines = text.split("\n")
    patches: list[FilePatch] = []
    i = 0

    while i < len(lines):
        patch = FilePatch()
        patches.append(patch)

        while i < len(lines):
            line = lines[i]
            if _HEADER_END_RE.match(line):
                break
            index_match = _INDEX_RE.match(line)
            if index_match:
                patch.index = index_match.group(1)
            i += 1

        i = _parse_file_header(lines, i, patch)
        i = _parse_file_header(lines, i, patch)

        while i < len(lines):
            line = lines[i]
            if _NEXT_FILE_RE.match(line):
                break
            if line.startswith("@@"):
                hunk, i = _parse_hunk(lines, i)
                patch.hunks.append(hunk)
            else:
                i += 1

    return patches


def _parse_file_header(lines: list[str], i: int, patch: FilePatch) -> int:
    if i >= len(lines):
        return i
    match = _FILE_HEADER_RE.match(lines[i])
    if not match:
        return i
    name = match.group(2).split("\t", 1)[0].strip()
    if match.group(1) == "---":
        patch.old_file_name = name
    else:
        patch.new_file_name = name
    return i + 1


def _parse_hunk(lines: list[str], i: int) -> tuple[Hunk, int]:
    header = lines[i]
    match = _HUNK_HEADER_RE.match(header)
    if not match:
        raise PatchParseError(f"Could not parse patch suggestion: bad hunk header {header!r}")

    hunk = Hunk(
        old_start=int(match.group(1)),
        old_lines=1 if match.group(2) is None else int(match.group(2)),
        new_start=int(match.group(3)),
        new_lines=1 if match.group(4) is None else int(match.group(4)),
    )
    i += 1

    removed = 0
    added = 0
    while i < len(lines) and (
        removed < hunk.old_lines or added < hunk.new_lines or lines[i].startswith("\\")
    ):
        line = lines[i]
        if (
            line.startswith("--- ")
            and i + 2 < len(lines)
            and lines[i + 1].startswith("+++ ")
            and lines[i + 2].startswith("@@")
        ):
            break

        # Models often drop the leading space of blank context lines.
        if line == "" and i != len(lines) - 1:
            line = " "
        operation = line[:1]
        if operation not in (" ", "-", "+", "\\"):
            break

        hunk.lines.append(line)
        if operation in (" ", "-"):
            removed += 1
        if operation in (" ", "+"):
            added += 1
        i += 1

    if not hunk.lines:
        raise PatchParseError(f"Could not parse patch suggestion: empty hunk {header!r}")

    return hunk, i


def apply_patch(source: str, patch: FilePatch) -> str | None:
    """Apply every hunk of ``patch`` to ``source``.

    Returns ``None`` when a hunk's context and removed lines cannot be found.
    """
    has_eol = source.endswith("\n")
    if source:
        lines = (source[:-1] if has_eol else source).split("\n")
    else:
        lines = []
    source_empty = not lines

    offset = 0
    min_line = 0
    for hunk in patch.hunks:
        old, new, old_no_eol, new_no_eol = _split_hunk(hunk)

        expected = hunk.old_start - 1 + offset
        if not old:
            expected += 1

        position = _find_position(lines, old, expected, min_line)
        if position is None:
            logger.debug(
                "Hunk @@ -%d,%d +%d,%d @@ does not match the source",
                hunk.old_start, hunk.old_lines, hunk.new_start, hunk.new_lines,
            )
            return None

        lines[position:position + len(old)] = new
        offset += (position - expected) + len(new) - len(old)
        min_line = position + len(new)

        if min_line == len(lines):
            if new_no_eol:
                has_eol = False
            elif old_no_eol or source_empty:
                has_eol = True

    if not lines:
        return ""
    return "\n".join(lines) + ("\n" if has_eol else "")


def _split_hunk(hunk: Hunk) -> tuple[list[str], list[str], bool, bool]:
    old: list[str] = []
    new: list[str] = []
    old_no_eol = False
    new_no_eol = False
    previous = ""

    for line in hunk.lines:
        operation, content = line[:1], line[1:]
        if operation == "\\":
            if previous in (" ", "-"):
                old_no_eol = True
            if previous in (" ", "+"):
                new_no_eol = True
            continue
        if operation in (" ", "-"):
            old.append(content)
        if operation in (" ", "+"):
            new.append(content)
        previous = operation

    return old, new, old_no_eol, new_no_eol


def _find_position(lines: list[str], old: list[str], expected: int, min_line: int) -> int | None:
    """Search outward from ``expected`` for where ``old`` occurs in ``lines``."""
    max_line = len(lines) - len(old)
    if max_line < min_line:
        return None

    limit = max(expected - min_line, max_line - expected, 0)
    for distance in range(limit + 1):
        candidates = (expected,) if distance == 0 else (expected + distance, expected - distance)
        for position in candidates:
            if min_line <= position <= max_line and lines[position:position + len(old)] == old:
                return position
    return None


def apply_patch_diff(original: str, response: str, is_diff: bool = False) -> str:
    """Turn a fix response for ``original`` into the final text.

    A full rewrite is returned as is. A diff is cleaned of any text the model
    wrote before the first ``---``, parsed and applied hunk by hunk.

    A patch with file headers but no hunks means the chunk needs no change
    and leaves the text as is.

    Raises :class:`PatchParseError` when no patch can be parsed and
    :class:`PatchApplyError` when a parsed patch does not apply.
    """
    if not is_diff:
        return response

    if not response.startswith(PATCH_START):
        logger.debug("Received patch needs fixing")
        start = response.find(PATCH_START)
        if start == -1:
            raise PatchParseError("Could not parse patch suggestion: no patch header found")
        response = response[start:]

    patches = [
        patch
        for patch in parse_patch(response)
        if patch.hunks or patch.index or patch.old_file_name or patch.new_file_name
    ]
    logger.debug("Found %d patch(es) to apply", len(patches))
    if not patches:
        raise PatchParseError("Could not parse patch suggestion")

    result = original
    for patch in patches:
        applied = apply_patch(result, patch)
        if applied is None:
            raise PatchApplyError("Could not apply patch suggestion: invalid format")
        result = applied
        logger.debug("Applied patch")

    return result
