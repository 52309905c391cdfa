"""History store: append-only snapshots with bounded retention.

Version numbers are allocated as ``max + 1`` per (collection, document,
locale).  The unique constraint on that key turns a concurrent allocation
into a ConflictError, which is retried with a fresh number.

Retention is housekeeping: after each append, the oldest entries beyond
``max_versions`` are evicted (FIFO by version number).  Eviction runs in
its own savepoint and never fails the append.
"""

import hashlib
import json
import logging
from typing import TYPE_CHECKING, Any, Optional

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..exceptions import ConflictError, LecternException
from ..models import DocumentStatus, HistoryEntry
from ..models.variant import utcnow
from .base import Model

if TYPE_CHECKING:
    from ..services.policy_service import VersioningPolicyProvider

logger = logging.getLogger(__name__)

# Retries when two writers race for the same version number.
VERSION_ALLOCATION_ATTEMPTS = 3


def encode_snapshot(data: Any) -> tuple[str, str]:
    """Serialize a payload to canonical JSON and hash it.

    Returns:
        (blob, sha256 hex digest)
    """
    blob = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return blob, hashlib.sha256(blob.encode()).hexdigest()


class HistoryStore:
    """Repository for history snapshots."""

    def __init__(self, db: Session, policy: "VersioningPolicyProvider"):
        self.db = db
        self.model: Model[HistoryEntry] = Model(db, HistoryEntry)
        self.policy = policy

    def _next_version_id(self, document_id: str, collection: str, locale: str) -> int:
        latest = self.find_latest_version(document_id, collection, locale)
        return (latest.version_id if latest else 0) + 1

    def create_version(
        self,
        document_id: str,
        collection: str,
        data: Any,
        status: str = DocumentStatus.DRAFT.value,
        created_by: Optional[str] = None,
        notes: Optional[str] = None,
        locale: str = "en",
        schema_version: int = 1,
    ) -> HistoryEntry:
        """Append a snapshot, then evict entries beyond the retention limit."""
        blob, content_hash = encode_snapshot(data)

        entry: Optional[HistoryEntry] = None
        for attempt in range(1, VERSION_ALLOCATION_ATTEMPTS + 1):
            version_id = self._next_version_id(document_id, collection, locale)
            try:
                entry = self.model.create({
                    "document_id": document_id,
                    "collection": collection,
                    "locale": locale,
                    "version_id": version_id,
                    "status": status,
                    "data_blob": blob,
                    "schema_version": schema_version,
                    "content_hash": content_hash,
                    "created_at": utcnow(),
                    "created_by": created_by,
                    "notes": notes,
                })
                break
            except ConflictError:
                if attempt == VERSION_ALLOCATION_ATTEMPTS:
                    raise
                logger.info(
                    "Version number %d taken concurrently, retrying", version_id,
                    extra={"document_id": document_id, "locale": locale, "attempt": attempt},
                )

        self._evict_old_versions(document_id, collection, locale)
        return entry

    def _evict_old_versions(self, document_id: str, collection: str, locale: str) -> int:
        """Delete the oldest entries beyond max_versions. Never raises."""
        try:
            # The policy read shares the savepoint so a failed SELECT cannot
            # leave the outer transaction aborted.
            with self.db.begin_nested():
                max_versions = self.policy.get_max_versions()
                if max_versions <= 0:
                    return 0
                base = self.db.query(HistoryEntry).filter(
                    HistoryEntry.document_id == document_id,
                    HistoryEntry.collection == collection,
                    HistoryEntry.locale == locale,
                )
                excess = base.count() - max_versions
                if excess <= 0:
                    return 0
                stale_ids = [
                    row.id for row in base.with_entities(HistoryEntry.id)
                    .order_by(HistoryEntry.version_id.asc())
                    .limit(excess)
                ]
                removed = self.db.query(HistoryEntry).filter(
                    HistoryEntry.id.in_(stale_ids)
                ).delete(synchronize_session="fetch")

            logger.debug(
                "Evicted %d old versions", removed,
                extra={"document_id": document_id, "locale": locale, "max_versions": max_versions},
            )
            return removed
        except (sqlalchemy.exc.SQLAlchemyError, LecternException) as e:
            logger.warning(
                "Version eviction failed for %s/%s: %s", document_id, locale, e,
                extra={"collection": collection},
            )
            return 0

    def find_versions(
        self,
        document_id: str,
        collection: str,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> list[HistoryEntry]:
        """All snapshots of a document across locales, newest first."""
        return (
            self.model.query()
            .where("document_id", document_id)
            .where("collection", collection)
            .sort("created_at", "desc")
            .sort("id", "desc")
            .skip(skip)
            .limit(limit)
            .exec()
        )

    def find_versions_by_locale(
        self,
        document_id: str,
        collection: str,
        locale: str,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> list[HistoryEntry]:
        """Snapshots of one locale, newest (highest version_id) first."""
        return (
            self.model.query()
            .where("document_id", document_id)
            .where("collection", collection)
            .where("locale", locale)
            .sort("version_id", "desc")
            .skip(skip)
            .limit(limit)
            .exec()
        )

    def find_version_by_number(
        self,
        document_id: str,
        collection: str,
        locale: str,
        version_id: int,
    ) -> Optional[HistoryEntry]:
        return self.model.find_one({
            "document_id": document_id,
            "collection": collection,
            "locale": locale,
            "version_id": version_id,
        })

    def find_latest_version(
        self,
        document_id: str,
        collection: str,
        locale: str,
        status: Optional[str] = None,
    ) -> Optional[HistoryEntry]:
        query = (
            self.model.query()
            .where("document_id", document_id)
            .where("collection", collection)
            .where("locale", locale)
        )
        if status:
            query = query.where("status", status)
        latest = query.sort("version_id", "desc").limit(1).exec()
        return latest[0] if latest else None

    def get_versioned_locales(self, document_id: str, collection: str) -> list[str]:
        """Locales with at least one snapshot, including locales since deleted."""
        entries = self.model.find({"document_id": document_id, "collection": collection})
        return sorted({entry.locale for entry in entries})

    def has_document(self, document_id: str) -> bool:
        """Whether any snapshot, in any collection, uses this document ID."""
        return self.model.count({"document_id": document_id}) > 0
