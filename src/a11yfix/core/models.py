"""Shared data models used across a11yfix modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class InputChunk:
    """One contiguous slice of a document, submitted on its own."""

    code: str
    tokens: int


@dataclass
class FixSettings:
    """Settings for a single fix request."""

    context: str | None = None
    output_diff: bool = False
    chunk_size: int | None = None


@dataclass(frozen=True)
class FixResult:
    """Reassembled outcome of fixing one document.

    ``code`` is the text actually sent (script blocks stripped), ``suggestion``
    the text after applying every chunk response. ``patches`` is only set when
    diff output was requested and holds the original chunk texts, aligned with
    the diffs received for them.
    """

    code: str
    suggestion: str
    patches: list[str] | None = None


@dataclass
class Issue:
    """An accessibility issue reported by the scanner."""

    id: str
    impact: str = ""
    tags: list[str] = field(default_factory=list)
    description: str = ""
    help: str = ""
    help_url: str = ""
    nodes: list[Any] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Issue:
        return cls(
            id=str(data.get("id", "")),
            impact=data.get("impact") or "",
            tags=list(data.get("tags") or []),
            description=data.get("description") or "",
            help=data.get("help") or "",
            help_url=data.get("helpUrl") or "",
            nodes=list(data.get("nodes") or []),
        )


@dataclass
class FileFixResult:
    """Result of fixing one file or URL.

    ``content`` is the document as loaded, before scripts were stripped.
    ``accepted`` is only set once a write was attempted.
    """

    file: str
    scanned: bool
    issues: list[str] = field(default_factory=list)
    fixed: bool = False
    accepted: bool | None = None
    result: FixResult | None = None
    content: str | None = None
