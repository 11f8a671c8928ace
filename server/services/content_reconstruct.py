"""Rebuild a page's text from its stored chunks."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from rag.types import Chunk
from server.services.summary_errors import InsufficientContent

logger = logging.getLogger("sitebrief.summary")

CHUNK_SEPARATOR = "\n\n"


def order_chunks(chunks: Iterable[Chunk]) -> List[Chunk]:
    """Sort by chunk_index ascending. Stable for duplicate indices."""
    return sorted(chunks, key=lambda c: c.chunk_index)


def assemble_chunks(chunks: Iterable[Chunk]) -> str:
    """Join chunk text in index order, skipping empty or non-string text."""
    parts = [
        c.text for c in order_chunks(chunks)
        if isinstance(c.text, str) and c.text
    ]
    return CHUNK_SEPARATOR.join(parts)


def reconstruct_content(
    chunks: Iterable[Chunk],
    raw_text: Optional[str] = None,
    *,
    min_chars: int = 50,
) -> str:
    """
    Return the page document for summarization.

    A persisted raw-text copy longer than min_chars wins over the assembled
    chunks since it keeps the [SECTION n] markers intact.
    Raises InsufficientContent when the result is shorter than min_chars.
    """
    content = assemble_chunks(chunks)
    if isinstance(raw_text, str) and len(raw_text) > min_chars:
        logger.info(
            "Using stored raw text (%d chars) over %d assembled chars",
            len(raw_text), len(content),
        )
        content = raw_text
    if not content or len(content) < min_chars:
        raise InsufficientContent(
            "Insufficient content in chunks to generate summary",
            details={"length": len(content or "")},
        )
    return content
