"""Durable page text and structured summaries. Upserts are last-writer-wins."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session as DBSession

from server.db.models import CrawledPage, StructuredSummaryRecord

SOURCE_RECONSTRUCTED = "reconstructed_from_chunks"


def get_page(db: DBSession, admin_id: str, url: str) -> Optional[CrawledPage]:
    return db.scalars(
        select(CrawledPage).where(CrawledPage.admin_id == admin_id, CrawledPage.url == url)
    ).first()


def load_raw_text(db: DBSession, admin_id: str, url: str) -> Optional[str]:
    """Previously stored page text, if any."""
    page = get_page(db, admin_id, url)
    return page.text if page is not None else None


def save_page_text(
    db: DBSession,
    admin_id: str,
    url: str,
    text: str,
    *,
    source: str = SOURCE_RECONSTRUCTED,
) -> int:
    """Upsert page text keyed by (admin_id, url). Returns the page id."""
    page = get_page(db, admin_id, url)
    if page is None:
        page = CrawledPage(admin_id=admin_id, url=url)
        db.add(page)
    page.text = text
    page.source = source
    db.flush()
    return page.id


def save_structured_summary(
    db: DBSession,
    admin_id: str,
    page_id: int,
    url: str,
    summary: Dict[str, Any],
    *,
    strategy: Optional[str] = None,
) -> StructuredSummaryRecord:
    """Upsert the summary keyed by (admin_id, page_id), replacing any previous one."""
    record = db.scalars(
        select(StructuredSummaryRecord).where(
            StructuredSummaryRecord.admin_id == admin_id,
            StructuredSummaryRecord.page_id == page_id,
        )
    ).first()
    if record is None:
        record = StructuredSummaryRecord(admin_id=admin_id, page_id=page_id)
        db.add(record)
    record.url = url
    record.summary = summary
    record.strategy = strategy
    record.summary_generated_at = datetime.now(timezone.utc)
    db.flush()
    return record


def get_structured_summary(db: DBSession, admin_id: str, url: str) -> Optional[StructuredSummaryRecord]:
    page = get_page(db, admin_id, url)
    if page is None:
        return None
    return db.scalars(
        select(StructuredSummaryRecord).where(
            StructuredSummaryRecord.admin_id == admin_id,
            StructuredSummaryRecord.page_id == page.id,
        )
    ).first()


def list_pages(db: DBSession, admin_id: str) -> List[Dict[str, Any]]:
    """Pages for one admin, newest first, with summary status."""
    pages = db.scalars(
        select(CrawledPage)
        .where(CrawledPage.admin_id == admin_id)
        .order_by(CrawledPage.created_at.desc(), CrawledPage.id.desc())
    ).all()
    records = {
        r.page_id: r
        for r in db.scalars(
            select(StructuredSummaryRecord).where(StructuredSummaryRecord.admin_id == admin_id)
        ).all()
    }
    out = []
    for p in pages:
        record = records.get(p.id)
        out.append({
            "page_id": p.id,
            "url": p.url,
            "has_structured_summary": record is not None,
            "summary_generated_at": record.summary_generated_at.isoformat() if record else None,
        })
    return out


def delete_page(db: DBSession, admin_id: str, url: str) -> bool:
    """Delete a page and its summary. False if the page is unknown."""
    page = get_page(db, admin_id, url)
    if page is None:
        return False
    for record in db.scalars(
        select(StructuredSummaryRecord).where(StructuredSummaryRecord.page_id == page.id)
    ).all():
        db.delete(record)
    db.delete(page)
    db.flush()
    return True
