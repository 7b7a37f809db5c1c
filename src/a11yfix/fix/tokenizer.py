"""Token counting backed by tiktoken."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Callable

import tiktoken

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4"

TokenCounter = Callable[[str], int]


@contextmanager
def open_encoding(model: str = DEFAULT_MODEL) -> Iterator[tiktoken.Encoding]:
    """Acquire the encoding for ``model`` for the duration of a ``with`` block.

    tiktoken caches encodings per process and has no release call, so
    nothing is torn down when the block exits.
    """
    yield tiktoken.encoding_for_model(model)


def count_tokens(text: str, model: str = DEFAULT_MODEL) -> int:
    """Count the model tokens ``text`` occupies.

    Special-token markers that happen to appear in a document are encoded as
    ordinary text rather than rejected.
    """
    with open_encoding(model) as encoding:
        return len(encoding.encode(text, disallowed_special=()))


def token_counter(model: str = DEFAULT_MODEL) -> TokenCounter:
    """Return a counter bound to ``model``."""
    if model == DEFAULT_MODEL:
        return count_tokens

    def count(text: str) -> int:
        return count_tokens(text, model)

    return count
