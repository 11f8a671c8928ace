#!/usr/bin/env python3
"""
Print the sections of the most recent stored structured summary.

Usage: python scripts/check_summary.py [--url URL] [--admin-id ID]
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from sqlalchemy import select
from sqlalchemy.orm import Session as DBSession

from server.config import Settings
from server.db.models import StructuredSummaryRecord
from server.db.session import get_db, init_db


def latest_summary(
    db: DBSession,
    url: Optional[str] = None,
    admin_id: Optional[str] = None,
) -> Optional[StructuredSummaryRecord]:
    stmt = select(StructuredSummaryRecord)
    if url:
        stmt = stmt.where(StructuredSummaryRecord.url == url)
    if admin_id:
        stmt = stmt.where(StructuredSummaryRecord.admin_id == admin_id)
    stmt = stmt.order_by(StructuredSummaryRecord.summary_generated_at.desc(), StructuredSummaryRecord.id.desc())
    return db.scalars(stmt).first()


def format_sections(summary: Dict[str, Any]) -> List[str]:
    lines = [f"pageType: {summary.get('pageType')}  businessVertical: {summary.get('businessVertical')}"]
    for i, sec in enumerate(summary.get("sections") or []):
        content = sec.get("sectionContent") or ""
        lines.append(f"Section {i}: {sec.get('sectionName')}")
        lines.append(f"  content: {len(content)} chars, starts {content[:60]!r}")
        lines.append(
            f"  questions: {len(sec.get('leadQuestions') or [])} lead, "
            f"{len(sec.get('salesQuestions') or [])} sales"
        )
    return lines


def main() -> int:
    parser = argparse.ArgumentParser(description="Show the latest stored structured summary")
    parser.add_argument("--url", default=None)
    parser.add_argument("--admin-id", default=None)
    parser.add_argument("--database-url", default=None, help="Overrides DATABASE_URL")
    args = parser.parse_args()

    settings = Settings(database_url=args.database_url)
    init_db(settings)
    with get_db(settings) as db:
        record = latest_summary(db, url=args.url, admin_id=args.admin_id)
        if record is None:
            print("No structured summary found.")
            return 1
        print(f"Found summary for URL: {record.url} ({record.strategy}, {record.summary_generated_at})")
        for line in format_sections(record.summary):
            print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
