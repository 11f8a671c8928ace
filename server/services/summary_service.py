"""
Per-page structured summary generation.

Pipeline: stored chunks -> reconstructed text -> section blocks -> merged
blocks -> strategy -> raw summary -> reconciled sections -> normalized summary
-> persisted. At most one generation runs per (admin_id, url) at a time.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional, Tuple

from sqlalchemy.orm import Session as DBSession

from rag.vector_store import VectorStore
from server.config import PipelineConfig
from server.services import chunk_repository, page_store
from server.services.content_reconstruct import reconstruct_content
from server.services.llm.provider import LLMProvider
from server.services.reconcile import reconcile_sections
from server.services.section_parse import merge_small_blocks, parse_section_blocks
from server.services.summary_errors import NoVectorsFound
from server.services.summary_normalize import normalize_structured_summary
from server.services.summary_strategy import run_strategy

logger = logging.getLogger("sitebrief.summary")

SOURCE_CHUNKS = "pinecone_chunks"
SOURCE_CACHED = "cached"


@dataclass
class _PageLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


_page_locks: Dict[Tuple[str, str], _PageLock] = {}


@asynccontextmanager
async def page_generation_lock(admin_id: str, url: str) -> AsyncIterator[None]:
    """Serialize generations for one page. Entries are dropped once unused."""
    key = (admin_id, url)
    entry = _page_locks.get(key)
    if entry is None:
        entry = _page_locks[key] = _PageLock()
    entry.users += 1
    try:
        async with entry.lock:
            yield
    finally:
        entry.users -= 1
        if entry.users == 0:
            _page_locks.pop(key, None)


def _response(summary: Dict[str, Any], record) -> Dict[str, Any]:
    return {
        "success": True,
        "summary": summary,
        "source": SOURCE_CHUNKS,
        "cached": False,
        "strategy": record.strategy,
        "summary_generated_at": (
            record.summary_generated_at.isoformat() if record.summary_generated_at else None
        ),
    }


async def generate_page_summary(
    db: DBSession,
    admin_id: str,
    url: str,
    *,
    provider: LLMProvider,
    vector_store: Optional[VectorStore],
    config: PipelineConfig,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Dict[str, Any]:
    """
    Build the structured summary for one page from its stored chunks.

    Raises NoVectorsFound, InsufficientContent or GenerationFailure.
    """
    async with page_generation_lock(admin_id, url):
        chunks = await chunk_repository.load_page_chunks(db, admin_id, url, vector_store)
        if not chunks:
            raise NoVectorsFound("Page not found", details={"url": url})
        logger.info("Reconstructing %s from %d chunks", url, len(chunks))

        raw_text = page_store.load_raw_text(db, admin_id, url)
        content = reconstruct_content(chunks, raw_text, min_chars=config.min_content_chars)

        raw_blocks = parse_section_blocks(content)
        blocks = merge_small_blocks(raw_blocks, config.min_block_chars) if raw_blocks else []
        if raw_blocks:
            logger.info("Parsed %d section blocks, %d after merging", len(raw_blocks), len(blocks))

        strategy, raw = await run_strategy(provider, content, blocks, chunks, config, sleep=sleep)
        reconciled = reconcile_sections(raw, content, chunks=chunks, blocks=blocks)
        summary = normalize_structured_summary(reconciled)

        page_id = page_store.save_page_text(db, admin_id, url, content)
        record = page_store.save_structured_summary(
            db, admin_id, page_id, url, summary, strategy=strategy.value,
        )
        db.commit()
        logger.info(
            "Stored %s summary for %s (%d sections)",
            strategy.value, url, len(summary["sections"]),
        )
        return _response(summary, record)


async def delete_page_summary(
    db: DBSession,
    admin_id: str,
    url: str,
    vector_store: Optional[VectorStore],
) -> bool:
    """
    Remove a page, its summary and its tracked vectors.

    Vector store failures are logged; the database rows are removed regardless.
    """
    async with page_generation_lock(admin_id, url):
        if not page_store.delete_page(db, admin_id, url):
            return False
        vector_ids = chunk_repository.delete_page_chunks(db, admin_id, url)
        db.commit()
    if vector_ids and vector_store is not None:
        try:
            await vector_store.delete(vector_ids)
        except Exception:
            logger.exception("Deleting %d vectors for %s failed", len(vector_ids), url)
    return True
