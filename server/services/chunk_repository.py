"""Stored chunks per page: tracking rows in the database, text in the vector store."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session as DBSession

from rag.types import Chunk
from rag.vector_store import VectorStore
from server.db.models import PageVector

logger = logging.getLogger("sitebrief.summary")


def _rows_for_url(db: DBSession, admin_id: str, url: str) -> List[PageVector]:
    rows = db.scalars(
        select(PageVector).where(PageVector.admin_id == admin_id, PageVector.url == url)
    ).all()
    if rows:
        return list(rows)
    rows = db.scalars(
        select(PageVector).where(
            PageVector.admin_id == admin_id,
            func.lower(PageVector.url) == url.lower(),
        )
    ).all()
    if rows:
        logger.info("Found URL with case-insensitive match: %s (requested %s)", rows[0].url, url)
    return list(rows)


async def load_page_chunks(
    db: DBSession,
    admin_id: str,
    url: str,
    vector_store: Optional[VectorStore] = None,
) -> List[Chunk]:
    """
    Chunks for one page, ordered by chunk_index. [] when the page has none.

    Rows without stored text are filled from vector metadata["chunk"].
    """
    rows = _rows_for_url(db, admin_id, url)
    if not rows:
        return []
    missing = [r.vector_id for r in rows if not r.text]
    fetched = {}
    if missing and vector_store is not None:
        fetched = await vector_store.fetch(missing)
        logger.info("Fetched %d/%d chunk texts from vector store", len(fetched), len(missing))
    chunks = []
    for r in rows:
        text = r.text
        if not text:
            text = (fetched.get(r.vector_id) or {}).get("metadata", {}).get("chunk")
        chunks.append(Chunk(vector_id=r.vector_id, chunk_index=r.chunk_index or 0, text=text))
    return sorted(chunks, key=lambda c: c.chunk_index)


def record_chunks(
    db: DBSession,
    admin_id: str,
    url: str,
    chunks: Iterable[Tuple[str, int, Optional[str]]],
) -> int:
    """Track (vector_id, chunk_index, text) rows for a page. Existing vector ids are updated."""
    count = 0
    for vector_id, chunk_index, text in chunks:
        row = db.scalars(
            select(PageVector).where(PageVector.admin_id == admin_id, PageVector.vector_id == vector_id)
        ).first()
        if row is None:
            row = PageVector(admin_id=admin_id, vector_id=vector_id)
            db.add(row)
        row.url = url
        row.chunk_index = chunk_index
        row.text = text
        count += 1
    db.flush()
    return count


def delete_page_chunks(db: DBSession, admin_id: str, url: str) -> List[str]:
    """Remove tracking rows for a page. Returns the vector ids that were tracked."""
    rows = _rows_for_url(db, admin_id, url)
    ids = [r.vector_id for r in rows]
    for r in rows:
        db.delete(r)
    db.flush()
    return ids
