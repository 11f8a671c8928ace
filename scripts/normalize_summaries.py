#!/usr/bin/env python3
"""
Re-normalize every stored structured summary in place.

Upgrades summaries written before the list-based question format
(leadQuestion/leadOptions/... fields) and fills missing defaults.
Prints {"processed": N, "updated": M}.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Tuple

REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from sqlalchemy import select
from sqlalchemy.orm import Session as DBSession

from server.config import Settings
from server.db.models import StructuredSummaryRecord
from server.db.session import get_db, init_db
from server.services.summary_normalize import normalize_structured_summary

logger = logging.getLogger("sitebrief.scripts")


def normalize_stored_summaries(db: DBSession, *, dry_run: bool = False) -> Tuple[int, int]:
    """Returns (processed, updated)."""
    processed = 0
    updated = 0
    for record in db.scalars(select(StructuredSummaryRecord)).all():
        processed += 1
        normalized = normalize_structured_summary(record.summary)
        if json.dumps(normalized, sort_keys=True) == json.dumps(record.summary, sort_keys=True):
            continue
        updated += 1
        logger.info("Normalizing summary for %s", record.url)
        if not dry_run:
            record.summary = normalized
    if not dry_run:
        db.flush()
    return processed, updated


def main() -> int:
    parser = argparse.ArgumentParser(description="Re-normalize stored structured summaries")
    parser.add_argument("--database-url", default=None, help="Overrides DATABASE_URL")
    parser.add_argument("--dry-run", action="store_true", help="Report without writing")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    settings = Settings(database_url=args.database_url)
    init_db(settings)
    with get_db(settings) as db:
        processed, updated = normalize_stored_summaries(db, dry_run=args.dry_run)
    print(json.dumps({"processed": processed, "updated": updated}))
    return 0


if __name__ == "__main__":
    sys.exit(main())
