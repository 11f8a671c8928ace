#!/usr/bin/env python3
"""
Backfill chunk tracking rows from a JSONL export.

Each line: {"adminId": ..., "url": ..., "vectorId": ..., "chunkIndex": 0, "text": "..."}
"text" is optional; rows without it read chunk text from the vector store.
"""
from __future__ import annotations

import argparse
import json
import sys
from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from sqlalchemy.orm import Session as DBSession

from server.config import Settings
from server.db.session import get_db, init_db
from server.services.chunk_repository import record_chunks


def group_records(lines: Iterable[str]) -> Dict[Tuple[str, str], List[Tuple[str, int, Optional[str]]]]:
    """Group JSONL records by (adminId, url). Blank and incomplete lines are skipped."""
    grouped: Dict[Tuple[str, str], List[Tuple[str, int, Optional[str]]]] = defaultdict(list)
    for line in lines:
        line = line.strip()
        if not line:
            continue
        rec = json.loads(line)
        admin_id = rec.get("adminId")
        url = rec.get("url") or rec.get("filename")
        vector_id = rec.get("vectorId")
        if not admin_id or not url or not vector_id:
            continue
        text = rec.get("text") or rec.get("content") or None
        grouped[(admin_id, url)].append((vector_id, int(rec.get("chunkIndex") or 0), text))
    return grouped


def import_chunks(db: DBSession, lines: Iterable[str]) -> int:
    total = 0
    for (admin_id, url), rows in group_records(lines).items():
        total += record_chunks(db, admin_id, url, rows)
    return total


def main() -> int:
    parser = argparse.ArgumentParser(description="Import chunk tracking rows from JSONL")
    parser.add_argument("path", type=Path, help="JSONL file")
    parser.add_argument("--database-url", default=None, help="Overrides DATABASE_URL")
    args = parser.parse_args()

    settings = Settings(database_url=args.database_url)
    init_db(settings)
    with open(args.path, "r", encoding="utf-8") as f, get_db(settings) as db:
        count = import_chunks(db, f)
    print(f"Imported {count} chunk rows")
    return 0


if __name__ == "__main__":
    sys.exit(main())
