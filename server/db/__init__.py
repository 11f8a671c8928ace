"""Database layer: SQLAlchemy models and session."""

from server.db.models import Base, CrawledPage, PageVector, StructuredSummaryRecord
from server.db.session import get_db, init_db

__all__ = [
    "Base",
    "CrawledPage",
    "PageVector",
    "StructuredSummaryRecord",
    "get_db",
    "init_db",
]
