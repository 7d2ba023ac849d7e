"""Text processing helpers."""

from __future__ import annotations

import re
import unicodedata
from functools import lru_cache

from pyuca import Collator


WHITESPACE_RE = re.compile(r"\s+")


def normalize(text: str) -> str:
    """Collapse whitespace and strip."""
    return WHITESPACE_RE.sub(" ", text).strip()


def fold(text: str | None) -> str:
    """Case-insensitive comparison form used by substring search."""
    return unicodedata.normalize("NFC", text or "").casefold()


@lru_cache(maxsize=1)
def _collator() -> Collator:
    # Loading the DUCET table is slow; share one instance.
    return Collator()


def collation_key(text: str | None) -> tuple[int, ...]:
    """Unicode Collation Algorithm sort key, case-insensitive.

    The default table already carries Thai dictionary rules: a leading vowel
    (เ แ โ ใ ไ) sorts after the consonant it precedes, and tone marks only
    break ties between otherwise equal words.
    """
    return _collator().sort_key(fold(text))
