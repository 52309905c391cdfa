"""Variant store: CRUD over document variants of one collection.

Every logical document exists as up to two rows per locale, one draft and
one published.  The (collection, document_id, locale, status) unique
constraint guarantees there is never a second row of either kind; this
module keeps the operations consistent with it:

- publish copies the draft into the published slot and keeps the draft
- unpublish removes only the published slot
- add_locale refuses to create a second draft for a locale
"""

import logging
from typing import TYPE_CHECKING, Callable, Optional

from ..exceptions import ConflictError, DocumentNotFoundError, VariantNotFoundError, ValidationError
from ..models import ContentVariant, DocumentStatus
from ..models.variant import utcnow
from ..schemas.content import LocaleStatus, VariantPage, VariantResponse
from ..core.content_utils import generate_document_id, validate_locale
from .base import Model

if TYPE_CHECKING:
    from ..registry import ContentType

logger = logging.getLogger(__name__)

# Attempts at drawing an unused document ID before giving up.
MAX_ID_ATTEMPTS = 5

DRAFT = DocumentStatus.DRAFT.value
PUBLISHED = DocumentStatus.PUBLISHED.value


class VariantStore:
    """Variant CRUD for one content type.

    Args:
        model: Persistence driver scoped to the collection.
        content_type: Registered content type, used for payload validation.
    """

    def __init__(self, model: Model[ContentVariant], content_type: "ContentType"):
        self.model = model
        self.content_type = content_type

    @property
    def collection(self) -> str:
        return self.content_type.name

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_variant(self, document_id: str, locale: str, status: str) -> Optional[ContentVariant]:
        return self.model.find_one({"document_id": document_id, "locale": locale, "status": status})

    def find_draft(self, document_id: str, locale: str) -> Optional[ContentVariant]:
        return self.find_variant(document_id, locale, DRAFT)

    def find_published(self, document_id: str, locale: str) -> Optional[ContentVariant]:
        return self.find_variant(document_id, locale, PUBLISHED)

    def find_by_document_id(
        self,
        document_id: str,
        locale: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[ContentVariant]:
        """All variants of a document, optionally narrowed to a locale and/or status."""
        query = self.model.query().where("document_id", document_id)
        if locale:
            query = query.where("locale", locale)
        if status:
            query = query.where("status", status)
        return query.sort("locale").sort("status").exec()

    def exists(self, document_id: str) -> bool:
        return self.model.count({"document_id": document_id}) > 0

    def get_document_locales(self, document_id: str) -> list[str]:
        """Distinct locales that have at least one variant, in first-seen order."""
        locales: list[str] = []
        for variant in self.find_by_document_id(document_id):
            if variant.locale not in locales:
                locales.append(variant.locale)
        return locales

    def get_locale_statuses(self, document_id: str) -> dict[str, LocaleStatus]:
        """One query answering which slots exist for every locale of a document."""
        statuses: dict[str, LocaleStatus] = {}
        for variant in self.model.find({"document_id": document_id}):
            entry = statuses.setdefault(variant.locale, LocaleStatus())
            if variant.status == DRAFT:
                entry.has_draft = True
            elif variant.status == PUBLISHED:
                entry.has_published = True
        return statuses

    def list(
        self,
        locale: Optional[str] = None,
        status: Optional[str] = None,
        filters: Optional[dict] = None,
        sort: Optional[list[tuple[str, str]]] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> VariantPage:
        """Paginated listing; filtering and sorting are delegated to the driver."""
        query = self.model.query()
        if locale:
            query = query.where("locale", locale)
        if status:
            query = query.where("status", status)
        for field, value in (filters or {}).items():
            query = query.where(field, value)

        total = query.count()

        for field, direction in sort or [("updated_at", "desc")]:
            query = query.sort(field, direction)
        items = query.sort("id").skip(skip).limit(limit).exec()
        return VariantPage(
            items=[VariantResponse.model_validate(v) for v in items],
            total=total,
            skip=skip,
            limit=limit,
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _allocate_document_id(self, id_in_use: Optional[Callable[[str], bool]]) -> str:
        # Uniqueness is global, not per collection.
        all_variants: Model[ContentVariant] = Model(self.model.db, ContentVariant)
        for _ in range(MAX_ID_ATTEMPTS):
            candidate = generate_document_id()
            taken = all_variants.count({"document_id": candidate}) > 0
            if not taken and not (id_in_use and id_in_use(candidate)):
                return candidate
            logger.warning("Document ID collision on %s, drawing again", candidate)
        raise ConflictError("Could not allocate a unique document ID", operation="create")

    def create(
        self,
        data: dict,
        locale: str,
        created_by: Optional[str] = None,
        id_in_use: Optional[Callable[[str], bool]] = None,
    ) -> ContentVariant:
        """Create a new document as a single draft variant.

        Args:
            data: Payload, validated against the content type schema.
            locale: Locale of the first variant.
            created_by: Actor recorded on the row.
            id_in_use: Extra predicate rejecting IDs known elsewhere (e.g. history).

        Raises:
            ValidationError: If the payload or locale is invalid.
        """
        locale = validate_locale(locale)
        payload = self.content_type.validate(data)
        document_id = self._allocate_document_id(id_in_use)
        now = utcnow()
        variant = self.model.create({
            "document_id": document_id,
            "locale": locale,
            "status": DRAFT,
            "published_at": None,
            "data": payload,
            "version": 1,
            "created_at": now,
            "updated_at": now,
            "created_by": created_by,
            "updated_by": created_by,
        })
        logger.info(
            "Created document",
            extra={"collection": self.collection, "document_id": document_id, "locale": locale},
        )
        return variant

    def update(
        self,
        document_id: str,
        data: dict,
        locale: str,
        status: str = DRAFT,
        updated_by: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> ContentVariant:
        """Patch the payload of one variant.

        Given fields are merged into the stored payload and the result is
        validated as a whole.

        Raises:
            VariantNotFoundError: If the (document, locale, status) row is missing.
            ConflictError: If *expected_version* does not match the row.
            ValidationError: If the merged payload is invalid.
        """
        if status not in (DRAFT, PUBLISHED):
            raise ValidationError(f"Unknown status: {status}", field="status")
        existing = self.find_variant(document_id, locale, status)
        if existing is None:
            raise VariantNotFoundError(document_id, locale, status)
        if expected_version is not None and expected_version != existing.version:
            raise ConflictError(
                f"Variant {document_id}/{locale}/{status} was modified by another writer",
                document_id=document_id,
                expected_version=expected_version,
                current_version=existing.version,
            )

        payload = self.content_type.validate({**(existing.data or {}), **data})
        key = {"document_id": document_id, "locale": locale, "status": status}
        if expected_version is not None:
            key["version"] = expected_version
        updated = self.model.update(key, {
            "data": payload,
            "version": existing.version + 1,
            "updated_at": utcnow(),
            "updated_by": updated_by,
        })
        if updated is None:
            # Row changed between read and write.
            raise ConflictError(
                f"Variant {document_id}/{locale}/{status} was modified by another writer",
                document_id=document_id,
            )
        return updated

    def replace_draft(
        self,
        document_id: str,
        data: dict,
        locale: str,
        updated_by: Optional[str] = None,
    ) -> ContentVariant:
        """Overwrite the whole draft payload (no merge). Used by restore."""
        existing = self.find_draft(document_id, locale)
        if existing is None:
            raise VariantNotFoundError(document_id, locale, DRAFT)
        return self.model.update(
            {"document_id": document_id, "locale": locale, "status": DRAFT},
            {
                "data": data,
                "version": existing.version + 1,
                "updated_at": utcnow(),
                "updated_by": updated_by,
            },
        )

    def publish(self, document_id: str, locale: str, published_by: Optional[str] = None) -> ContentVariant:
        """Copy the draft into the published slot (create or overwrite).

        The draft stays in place so editing can continue while the
        published copy is live.

        Raises:
            VariantNotFoundError: If the locale has no draft.
        """
        draft = self.find_draft(document_id, locale)
        if draft is None:
            raise VariantNotFoundError(document_id, locale, DRAFT)

        now = utcnow()
        key = {"document_id": document_id, "locale": locale, "status": PUBLISHED}
        existing = self.find_published(document_id, locale)
        if existing is None:
            try:
                return self.model.create({
                    **key,
                    "data": dict(draft.data or {}),
                    "published_at": now,
                    "version": 1,
                    "created_at": now,
                    "updated_at": now,
                    "created_by": published_by or draft.created_by,
                    "updated_by": published_by,
                })
            except ConflictError:
                # Another writer created the published row first; overwrite it.
                logger.info(
                    "Published slot appeared concurrently, overwriting",
                    extra={"document_id": document_id, "locale": locale},
                )
                existing = self.find_published(document_id, locale)
                if existing is None:
                    raise

        return self.model.update(key, {
            "data": dict(draft.data or {}),
            "published_at": now,
            "version": existing.version + 1,
            "updated_at": now,
            "updated_by": published_by,
        })

    def unpublish(self, document_id: str, locale: str) -> None:
        """Remove the published variant of a locale; the draft is untouched.

        Raises:
            VariantNotFoundError: If the locale is not published.
        """
        removed = self.model.delete({"document_id": document_id, "locale": locale, "status": PUBLISHED})
        if not removed:
            raise VariantNotFoundError(document_id, locale, PUBLISHED)

    def add_locale(
        self,
        document_id: str,
        locale: str,
        data: dict,
        created_by: Optional[str] = None,
    ) -> ContentVariant:
        """Create the draft for a locale the document does not have yet.

        The payload is supplied by the caller; nothing is copied from
        other locales.

        Raises:
            DocumentNotFoundError: If the document has no variants at all.
            ConflictError: If the locale already has a draft.
        """
        locale = validate_locale(locale)
        if not self.exists(document_id):
            raise DocumentNotFoundError(document_id)
        if self.find_draft(document_id, locale) is not None:
            raise ConflictError(
                f"Locale '{locale}' already exists for document '{document_id}'",
                document_id=document_id,
                locale=locale,
            )
        payload = self.content_type.validate(data)
        now = utcnow()
        return self.model.create({
            "document_id": document_id,
            "locale": locale,
            "status": DRAFT,
            "published_at": None,
            "data": payload,
            "version": 1,
            "created_at": now,
            "updated_at": now,
            "created_by": created_by,
            "updated_by": created_by,
        })

    def delete_locale(self, document_id: str, locale: str) -> bool:
        """Remove both variants of a locale. Returns False if the locale had none."""
        removed = self.model.delete({"document_id": document_id, "locale": locale})
        if removed and not self.exists(document_id):
            logger.info(
                "Last locale removed, document retired",
                extra={"collection": self.collection, "document_id": document_id},
            )
        return removed

    def delete(self, document_id: str) -> bool:
        """Remove every variant of a document. Returns False if none existed."""
        return self.model.delete({"document_id": document_id})
