"""Content service, the deep module for the document lifecycle.

Owns every public content operation: create, update, publish, unpublish,
locale management, deletion and restore.  Each state-changing call:

1. holds the per-document lock for the locale it touches,
2. writes the variant through VariantStore,
3. appends a snapshot through HistoryStore,
4. commits both in one transaction (or rolls both back).

Callers never coordinate the stores themselves.  Errors from the stores
propagate unchanged; nothing is retried at this layer.
"""

import logging
from contextlib import ExitStack, contextmanager
from typing import Iterator, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.content_utils import validate_locale
from ..core.locks import KeyedLock
from ..exceptions import (
    ApprovalRequiredError,
    SnapshotSchemaError,
    VersionNotFoundError,
    VariantNotFoundError,
)
from ..models import ContentVariant, DocumentStatus, HistoryEntry
from ..registry import ContentType, ContentTypeRegistry
from ..repositories import HistoryStore, VariantStore
from ..schemas.content import LocaleStatus, VariantPage
from .policy_service import VersioningPolicyProvider

logger = logging.getLogger(__name__)

DRAFT = DocumentStatus.DRAFT.value
PUBLISHED = DocumentStatus.PUBLISHED.value

# Process-wide lock registry shared by every ContentService instance.
document_locks = KeyedLock(timeout=settings.lock_timeout_seconds)


class ContentService:
    """Public contract of the versioning and localization engine.

    Args:
        db: Request-scoped session; both stores write through it.
        registry: Content types known to the application.
        policy: Versioning policy provider (defaults to one over *db*).
        locks: Lock registry (defaults to the process-wide one).
    """

    def __init__(
        self,
        db: Session,
        registry: ContentTypeRegistry,
        policy: Optional[VersioningPolicyProvider] = None,
        locks: Optional[KeyedLock] = None,
    ):
        self.db = db
        self.registry = registry
        self.policy = policy or VersioningPolicyProvider(db)
        self.history = HistoryStore(db, self.policy)
        self.locks = locks or document_locks

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _stores(self, collection: str) -> tuple[ContentType, VariantStore]:
        content_type = self.registry.get(collection)
        return content_type, VariantStore(content_type.model(self.db), content_type)

    def _locale(self, locale: Optional[str]) -> str:
        if locale:
            return validate_locale(locale)
        return self.policy.get_default_locale()

    @contextmanager
    def _locked(self, operation: str, collection: str, document_id: str, *locales: str) -> Iterator[None]:
        """Hold the document lock of each locale, then run one transaction."""
        # End the read snapshot taken while resolving locale and policy so the
        # locked section starts from committed state.
        if self.db.in_transaction():
            self.db.commit()
        with ExitStack() as stack:
            # Sorted acquisition keeps multi-locale holders from deadlocking.
            for locale in sorted(set(locales)):
                stack.enter_context(self.locks.hold(collection, document_id, locale))
            with self._transaction(operation, collection=collection, document_id=document_id):
                yield

    @contextmanager
    def _transaction(self, operation: str, **context) -> Iterator[None]:
        """Commit on success, roll back and re-raise on any error."""
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.info("Content operation rolled back", extra={"operation": operation, **context})
            raise

    def _snapshot(
        self,
        content_type: ContentType,
        variant: ContentVariant,
        status: str,
        created_by: Optional[str],
        notes: Optional[str] = None,
    ) -> HistoryEntry:
        return self.history.create_version(
            variant.document_id,
            content_type.name,
            variant.data,
            status=status,
            created_by=created_by,
            notes=notes,
            locale=variant.locale,
            schema_version=content_type.schema_version,
        )

    def _publish(
        self,
        content_type: ContentType,
        store: VariantStore,
        document_id: str,
        locale: str,
        published_by: Optional[str],
    ) -> ContentVariant:
        published = store.publish(document_id, locale, published_by=published_by)
        self._snapshot(content_type, published, PUBLISHED, published_by, f"Published {locale} locale")
        return published

    def _publish_on_save(
        self,
        content_type: ContentType,
        store: VariantStore,
        document_id: str,
        locale: str,
        actor: Optional[str],
    ) -> None:
        policy = self.policy.get_policy()
        if policy.publish_on_save:
            self._publish(content_type, store, document_id, locale, actor)
        elif (policy.auto_publish or not policy.drafts_enabled) and policy.require_approval:
            logger.info(
                "Skipping publish-on-save: approval required",
                extra={"collection": content_type.name, "document_id": document_id, "locale": locale},
            )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list(
        self,
        collection: str,
        locale: Optional[str] = None,
        status: Optional[str] = None,
        filters: Optional[dict] = None,
        sort: Optional[list[tuple[str, str]]] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> VariantPage:
        """Paginated variants of a collection."""
        _, store = self._stores(collection)
        return store.list(locale=locale, status=status, filters=filters, sort=sort, skip=skip, limit=limit)

    def find_by_document_id(
        self,
        collection: str,
        document_id: str,
        locale: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[ContentVariant]:
        _, store = self._stores(collection)
        return store.find_by_document_id(document_id, locale=locale, status=status)

    def find_draft(self, collection: str, document_id: str, locale: Optional[str] = None) -> Optional[ContentVariant]:
        _, store = self._stores(collection)
        return store.find_draft(document_id, self._locale(locale))

    def find_published(self, collection: str, document_id: str, locale: Optional[str] = None) -> Optional[ContentVariant]:
        _, store = self._stores(collection)
        return store.find_published(document_id, self._locale(locale))

    def get_document_locales(self, collection: str, document_id: str) -> List[str]:
        _, store = self._stores(collection)
        return store.get_document_locales(document_id)

    def get_locale_statuses(self, collection: str, document_id: str) -> dict[str, LocaleStatus]:
        _, store = self._stores(collection)
        return store.get_locale_statuses(document_id)

    def get_versions(
        self,
        collection: str,
        document_id: str,
        locale: Optional[str] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[HistoryEntry]:
        """History of a document, newest first; all locales unless *locale* is given."""
        self.registry.get(collection)
        if locale:
            locale = validate_locale(locale)
            return self.history.find_versions_by_locale(document_id, collection, locale, skip, limit)
        return self.history.find_versions(document_id, collection, skip, limit)

    def get_version(self, collection: str, document_id: str, locale: str, version_id: int) -> Optional[HistoryEntry]:
        """Specific snapshot. Returns None if not found (caller decides on 404)."""
        self.registry.get(collection)
        locale = validate_locale(locale)
        return self.history.find_version_by_number(document_id, collection, locale, version_id)

    def get_latest_version(
        self,
        collection: str,
        document_id: str,
        locale: str,
        status: Optional[str] = None,
    ) -> Optional[HistoryEntry]:
        self.registry.get(collection)
        locale = validate_locale(locale)
        return self.history.find_latest_version(document_id, collection, locale, status)

    def get_versioned_locales(self, collection: str, document_id: str) -> List[str]:
        """Locales with recorded history, including ones whose variants were deleted."""
        self.registry.get(collection)
        return self.history.get_versioned_locales(document_id, collection)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(
        self,
        collection: str,
        data: dict,
        locale: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> ContentVariant:
        """Create a document as a draft in one locale and record version 1."""
        content_type, store = self._stores(collection)
        locale = self._locale(locale)

        with self._transaction("create", collection=collection, locale=locale):
            variant = store.create(data, locale, created_by=created_by, id_in_use=self.history.has_document)
            self._snapshot(content_type, variant, DRAFT, created_by)
            self._publish_on_save(content_type, store, variant.document_id, locale, created_by)
        return variant

    def update(
        self,
        collection: str,
        document_id: str,
        data: dict,
        locale: Optional[str] = None,
        status: str = DRAFT,
        updated_by: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> ContentVariant:
        """Patch one variant in place and snapshot it with the same status."""
        content_type, store = self._stores(collection)
        locale = self._locale(locale)

        with self._locked("update", collection, document_id, locale):
            variant = store.update(
                document_id, data, locale,
                status=status, updated_by=updated_by, expected_version=expected_version,
            )
            self._snapshot(content_type, variant, status, updated_by)
            if status == DRAFT:
                self._publish_on_save(content_type, store, document_id, locale, updated_by)
        return variant

    def publish(
        self,
        collection: str,
        document_id: str,
        locale: Optional[str] = None,
        published_by: Optional[str] = None,
        approved_by: Optional[str] = None,
    ) -> ContentVariant:
        """Copy the locale's draft to its published slot.

        Raises:
            ApprovalRequiredError: If the policy requires approval and none was given.
            VariantNotFoundError: If the locale has no draft.
        """
        content_type, store = self._stores(collection)
        locale = self._locale(locale)

        if self.policy.is_approval_required() and not approved_by:
            raise ApprovalRequiredError(document_id, locale)

        with self._locked("publish", collection, document_id, locale):
            published = self._publish(content_type, store, document_id, locale, published_by or approved_by)

        logger.info(
            "Published document",
            extra={"collection": collection, "document_id": document_id, "locale": locale},
        )
        return published

    def unpublish(self, collection: str, document_id: str, locale: Optional[str] = None) -> None:
        """Remove the published slot of a locale. No snapshot is recorded."""
        _, store = self._stores(collection)
        locale = self._locale(locale)

        with self._locked("unpublish", collection, document_id, locale):
            store.unpublish(document_id, locale)

        logger.info(
            "Unpublished document",
            extra={"collection": collection, "document_id": document_id, "locale": locale},
        )

    def add_locale(
        self,
        collection: str,
        document_id: str,
        locale: str,
        data: dict,
        created_by: Optional[str] = None,
    ) -> ContentVariant:
        """Create the draft of a new locale from caller-supplied content."""
        content_type, store = self._stores(collection)
        locale = validate_locale(locale)

        with self._locked("add_locale", collection, document_id, locale):
            variant = store.add_locale(document_id, locale, data, created_by=created_by)
            self._snapshot(content_type, variant, DRAFT, created_by)
            self._publish_on_save(content_type, store, document_id, locale, created_by)
        return variant

    def delete_locale(self, collection: str, document_id: str, locale: str) -> bool:
        """Remove both variants of a locale. History is kept. Idempotent."""
        _, store = self._stores(collection)
        locale = validate_locale(locale)

        with self._locked("delete_locale", collection, document_id, locale):
            removed = store.delete_locale(document_id, locale)
        return removed

    def delete(self, collection: str, document_id: str) -> bool:
        """Remove every variant of a document. History is kept. Idempotent."""
        _, store = self._stores(collection)

        locales = store.get_document_locales(document_id)
        with self._locked("delete", collection, document_id, *locales):
            removed = store.delete(document_id)

        if removed:
            logger.info("Deleted document", extra={"collection": collection, "document_id": document_id})
        return removed

    def restore_version(
        self,
        collection: str,
        document_id: str,
        locale: str,
        version_id: int,
        restored_by: Optional[str] = None,
    ) -> ContentVariant:
        """Reinstate a snapshot's payload into the draft slot.

        The published variant is never touched, whatever status the
        snapshot was taken as; publishing the restored draft is a separate
        call.

        Raises:
            VersionNotFoundError: If the snapshot does not exist.
            VariantNotFoundError: If the locale has no draft to restore into.
            SnapshotSchemaError: If the snapshot predates a schema change and no longer validates.
        """
        content_type, store = self._stores(collection)
        locale = validate_locale(locale)

        with self._locked("restore_version", collection, document_id, locale):
            entry = self.history.find_version_by_number(document_id, collection, locale, version_id)
            if entry is None:
                raise VersionNotFoundError(document_id, locale, version_id)

            data = entry.data
            if entry.schema_version != content_type.schema_version:
                errors = content_type.check(data)
                if errors:
                    raise SnapshotSchemaError(collection, entry.schema_version, content_type.schema_version, errors)
                logger.warning(
                    "Restoring snapshot written with an older schema",
                    extra={
                        "document_id": document_id,
                        "version_id": version_id,
                        "snapshot_schema_version": entry.schema_version,
                        "current_schema_version": content_type.schema_version,
                    },
                )

            if store.find_draft(document_id, locale) is None:
                raise VariantNotFoundError(document_id, locale, DRAFT)

            restored = store.replace_draft(
                document_id, content_type.validate(data), locale, updated_by=restored_by
            )
            self._snapshot(content_type, restored, DRAFT, restored_by, f"Restored from version {version_id}")
        return restored
