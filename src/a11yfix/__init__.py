"""a11yfix — chunked accessibility fixes for HTML documents."""

from a11yfix._version import __version__
from a11yfix.core.models import FixResult, FixSettings, InputChunk
from a11yfix.fix.chunker import preprocess_input, split_input
from a11yfix.fix.engine import FixEngine
from a11yfix.fix.patch import apply_patch_diff

__all__ = [
    "__version__",
    "FixEngine",
    "FixResult",
    "FixSettings",
    "InputChunk",
    "apply_patch_diff",
    "preprocess_input",
    "split_input",
]
