"""
Attach verbatim page text to the sections a model declared.

Precedence per section, first non-empty wins:

  1. sectionContent already set (sectioned strategy)
  2. startSubstring .. endSubstring located in the document (inclusive)
  3. chunkIndices -> referenced chunks' text (chunked strategy)
  4. source block: by echoed blockId, else positional when counts match
  5. the section's own summary, else CONTENT_NOT_AVAILABLE
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from rag.types import Chunk, SectionBlock
from server.services.content_reconstruct import CHUNK_SEPARATOR

logger = logging.getLogger("sitebrief.summary")

CONTENT_NOT_AVAILABLE = "Content not available"


def _text(value: Any) -> str:
    return value if isinstance(value, str) and value.strip() else ""


def slice_between(document: str, start: Any, end: Any) -> str:
    """
    Document slice from start through end (inclusive), end searched after start.
    Returns "" when either anchor is missing or out of order.
    """
    if not _text(start) or not _text(end) or not document:
        return ""
    i = document.find(start)
    if i < 0:
        return ""
    j = document.find(end, i + len(start))
    if j < 0:
        return ""
    return document[i:j + len(end)]


def _from_chunks(indices: Any, chunk_map: Dict[int, Chunk]) -> str:
    if not isinstance(indices, list):
        return ""
    parts = []
    for idx in indices:
        if isinstance(idx, bool) or not isinstance(idx, int):
            continue
        chunk = chunk_map.get(idx)
        if chunk is not None and _text(chunk.text):
            parts.append(chunk.text)
    return CHUNK_SEPARATOR.join(parts)


def _from_blocks(
    section: Dict[str, Any],
    position: int,
    blocks: Sequence[SectionBlock],
    positional: bool,
) -> str:
    block_id = section.get("blockId")
    if isinstance(block_id, int) and not isinstance(block_id, bool):
        if 0 <= block_id < len(blocks):
            return _text(blocks[block_id].body)
        return ""
    if positional and position < len(blocks):
        return _text(blocks[position].body)
    return ""


def _coerce_sections(raw: Any) -> List[Dict[str, Any]]:
    if isinstance(raw, dict):
        raw = [raw]
    if not isinstance(raw, list):
        return []
    return [s for s in raw if isinstance(s, dict)]


def reconcile_sections(
    summary: Dict[str, Any],
    document: str,
    *,
    chunks: Sequence[Chunk] = (),
    blocks: Sequence[SectionBlock] = (),
) -> Dict[str, Any]:
    """
    Return a new summary whose every section has non-empty sectionContent.

    Positional block mapping is only trusted when the model returned exactly
    as many sections as there are blocks; otherwise sections must echo a
    blockId to be matched to a block.
    """
    sections = _coerce_sections(summary.get("sections"))
    chunk_map = {c.chunk_index: c for c in chunks}
    positional = bool(blocks) and len(sections) == len(blocks)
    if blocks and not positional:
        logger.info(
            "Section count %d differs from block count %d; positional mapping disabled",
            len(sections), len(blocks),
        )

    out: List[Dict[str, Any]] = []
    for position, section in enumerate(sections):
        s = dict(section)
        content: Optional[str] = _text(s.get("sectionContent"))
        rule = "existing"
        if not content:
            content = slice_between(document, s.get("startSubstring"), s.get("endSubstring"))
            rule = "substring"
        if not content:
            content = _from_chunks(s.get("chunkIndices"), chunk_map)
            rule = "chunks"
        if not content:
            content = _from_blocks(s, position, blocks, positional)
            rule = "block"
        if not content:
            content = _text(s.get("sectionSummary")) or CONTENT_NOT_AVAILABLE
            rule = "fallback"
        if rule != "existing":
            logger.debug("Section %d '%s' content from %s", position, s.get("sectionName"), rule)
        s["sectionContent"] = content
        out.append(s)
    return {**summary, "sections": out}
