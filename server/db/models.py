"""SQLAlchemy models for crawled pages, their chunk vectors and structured summaries."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, JSON, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class PageVector(Base):
    """Tracking row for one chunk vector stored in the vector index."""

    __tablename__ = "page_vectors"
    __table_args__ = (UniqueConstraint("admin_id", "vector_id", name="uq_page_vectors_admin_vector"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    admin_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    url: Mapped[str] = mapped_column(String(2048), index=True, nullable=False)
    vector_id: Mapped[str] = mapped_column(String(255), nullable=False)
    chunk_index: Mapped[int] = mapped_column(Integer, default=0)
    text: Mapped[str | None] = mapped_column(Text, nullable=True)  # null: read from vector metadata
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class CrawledPage(Base):
    __tablename__ = "crawled_pages"
    __table_args__ = (UniqueConstraint("admin_id", "url", name="uq_crawled_pages_admin_url"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    admin_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    text: Mapped[str | None] = mapped_column(Text, nullable=True)
    source: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class StructuredSummaryRecord(Base):
    """Latest structured summary for a page. Overwritten on regeneration."""

    __tablename__ = "structured_summaries"
    __table_args__ = (UniqueConstraint("admin_id", "page_id", name="uq_structured_summaries_admin_page"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    admin_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    page_id: Mapped[int] = mapped_column(Integer, ForeignKey("crawled_pages.id", ondelete="CASCADE"), nullable=False)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    strategy: Mapped[str | None] = mapped_column(String(32), nullable=True)
    summary: Mapped[dict] = mapped_column(JSON, nullable=False)
    summary_generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
