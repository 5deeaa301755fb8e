"""
Fetch package: extraction pipeline and located-item retrieval.

Re-exports the public symbols so `from tools.fetch import X` works.
"""

from .pipeline import (
    Extractors, FetchMode, FETCH_MODES, default_extractors, extract_content,
)
from .content import fetch_located

__all__ = [
    "Extractors", "FetchMode", "FETCH_MODES", "default_extractors",
    "extract_content", "fetch_located",
]
