"""Document variant model."""

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, Index, Integer, String, DateTime, JSON, UniqueConstraint
from ..database import Base


class DocumentStatus(str, Enum):
    """Lifecycle state of one locale variant."""
    DRAFT = "draft"
    PUBLISHED = "published"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContentVariant(Base):
    """One stored record per (collection, document_id, locale, status)."""

    __tablename__ = "content_variants"
    __table_args__ = (
        # At most one draft and one published row per document and locale.
        UniqueConstraint(
            "collection", "document_id", "locale", "status",
            name="uq_content_variants_document_locale_status",
        ),
        Index("ix_content_variants_document_locale", "document_id", "locale"),
        Index("ix_content_variants_status_locale", "status", "locale"),
        Index("ix_content_variants_collection", "collection"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Content type owning this variant ("post", "page", ...)
    collection = Column(String(100), nullable=False)

    # Stable identifier shared by every locale/status of one logical item
    document_id = Column(String(50), nullable=False)
    locale = Column(String(35), nullable=False)
    status = Column(String(16), nullable=False, default=DocumentStatus.DRAFT.value)
    published_at = Column(DateTime(timezone=True), nullable=True, default=None)

    # Schema-validated payload
    data = Column(JSON, nullable=False, default=dict)

    # Optimistic locking: incremented on every write to this row.
    version = Column(Integer, default=1, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    created_by = Column(String(255), nullable=True)
    updated_by = Column(String(255), nullable=True)

    @property
    def is_draft(self) -> bool:
        return self.status == DocumentStatus.DRAFT.value

    @property
    def is_published(self) -> bool:
        return self.status == DocumentStatus.PUBLISHED.value

    def __repr__(self) -> str:
        return (
            f"<ContentVariant {self.collection}/{self.document_id} "
            f"locale={self.locale} status={self.status} v{self.version}>"
        )
