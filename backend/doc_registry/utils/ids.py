"""ID helpers."""

from __future__ import annotations

from typing import Container

from doc_registry.utils.time import now_ms


def new_document_id(taken: Container[str] = (), prefix: str = "doc") -> str:
    """Return a time-based ``<prefix>_<epoch-ms>`` token not present in ``taken``."""
    base = f"{prefix}_{now_ms()}"
    candidate = base
    suffix = 1
    while candidate in taken:
        candidate = f"{base}_{suffix}"
        suffix += 1
    return candidate
