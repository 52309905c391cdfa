"""History entry model."""

import json
from typing import Any

from sqlalchemy import Column, Index, Integer, String, Text, DateTime, UniqueConstraint
from ..database import Base
from .variant import utcnow


class HistoryEntry(Base):
    """Immutable snapshot of a variant payload.

    The payload is stored as a tagged blob: canonical JSON text plus the
    schema version of the content type at write time, so a restore can
    detect snapshots written against an older schema.
    """

    __tablename__ = "content_history"
    __table_args__ = (
        UniqueConstraint(
            "collection", "document_id", "locale", "version_id",
            name="uq_content_history_document_locale_version",
        ),
        Index("ix_content_history_document", "document_id", "collection"),
        Index("ix_content_history_created_at", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    document_id = Column(String(50), nullable=False)
    collection = Column(String(100), nullable=False)
    locale = Column(String(35), nullable=False)

    # Strictly increasing per (collection, document_id, locale)
    version_id = Column(Integer, nullable=False)

    # Status the snapshot was taken as
    status = Column(String(16), nullable=False)

    data_blob = Column(Text, nullable=False)
    schema_version = Column(Integer, nullable=False, default=1)
    content_hash = Column(String(64), nullable=False)  # SHA256 of data_blob

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    created_by = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    @property
    def data(self) -> dict[str, Any]:
        """Decoded snapshot payload."""
        return json.loads(self.data_blob)
