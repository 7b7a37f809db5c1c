"""Input preprocessing and token-bounded chunking of HTML documents."""

from __future__ import annotations

import logging
import math
import re

from a11yfix.core.config import DEFAULT_CHUNK_TOKENS
from a11yfix.core.errors import UnsplittableInputError
from a11yfix.core.models import InputChunk
from a11yfix.fix.tokenizer import TokenCounter, count_tokens

logger = logging.getLogger(__name__)

SCRIPT_PLACEHOLDER = "<!-- script removed -->"
SCRIPT_BLOCK_RE = re.compile(r"<script[\s\S]*?</script>", re.IGNORECASE)


def remove_script_tags(content: str) -> str:
    """Replace every script block with a placeholder comment."""
    return SCRIPT_BLOCK_RE.sub(SCRIPT_PLACEHOLDER, content)


def restore_script_blocks(original: str, code: str, suggestion: str) -> str:
    """Put the script blocks of ``original`` back into ``suggestion``.

    ``code`` is the script-stripped text that was sent for fixing. The blocks
    are restored in order at the placeholders left in ``suggestion``; if the
    fix dropped or added placeholders, ``suggestion`` is returned unchanged.
    """
    if original == code:
        return suggestion

    scripts = SCRIPT_BLOCK_RE.findall(original)
    parts = suggestion.split(SCRIPT_PLACEHOLDER)
    if len(parts) - 1 != len(scripts):
        logger.warning(
            "Cannot restore %d script block(s): suggestion has %d placeholder(s)",
            len(scripts), len(parts) - 1,
        )
        return suggestion

    restored = [parts[0]]
    for script, part in zip(scripts, parts[1:]):
        restored.append(script)
        restored.append(part)
    return "".join(restored)


def preprocess_input(
    identifier: str,
    code: str,
    max_tokens: int = DEFAULT_CHUNK_TOKENS,
    count: TokenCounter = count_tokens,
) -> list[InputChunk]:
    """Strip scripts from ``code`` and chunk it only if it exceeds ``max_tokens``."""
    tokens = count(code)
    logger.debug(
        "%s: input tokens before preprocessing: %d (max chunk size: %d)",
        identifier, tokens, max_tokens,
    )

    new_code = remove_script_tags(code)
    tokens = count(new_code)
    logger.debug("%s: input tokens after removing scripts: %d", identifier, tokens)

    if tokens <= max_tokens:
        return [InputChunk(code=new_code, tokens=tokens)]

    chunks = [
        InputChunk(code=chunk, tokens=count(chunk))
        for chunk in split_input(new_code, max_tokens, count)
    ]
    logger.debug(
        "%s: input split into %d chunks with token lengths: %s",
        identifier,
        len(chunks),
        ", ".join(str(chunk.tokens) for chunk in chunks),
    )
    return chunks


def split_input(text: str, max_tokens: int, count: TokenCounter = count_tokens) -> list[str]:
    """Split ``text`` into pieces of at most ``max_tokens`` tokens.

    Pieces are cut right before a ``<`` so no tag is severed. The cut point
    for each piece is the last ``<`` at or before an even share of the
    remaining text, moved further back while the piece is still over
    budget. Concatenating the result gives back ``text``.

    Raises :class:`UnsplittableInputError` when a leading run of the
    remaining text is too large and holds no ``<`` to cut at.
    """
    if max_tokens <= 0:
        raise ValueError(f"max_tokens must be positive, got {max_tokens}")

    remaining = text
    chunks: list[str] = []

    while remaining:
        tokens = count(remaining)
        remaining_chunks = math.ceil(tokens / max_tokens)

        if remaining_chunks <= 1:
            chunks.append(remaining)
            break

        max_index = len(remaining) // remaining_chunks
        split_index = remaining.rfind("<", 0, max_index + 1)
        # Token density is uneven, so an even share can still be over budget.
        while split_index > 0 and count(remaining[:split_index]) > max_tokens:
            split_index = remaining.rfind("<", 0, split_index)

        if split_index <= 0:
            message = "Could not split input into chunks: HTML contains elements with too many tokens"
            logger.debug(message)
            raise UnsplittableInputError(message)

        chunks.append(remaining[:split_index])
        remaining = remaining[split_index:]

    return chunks
