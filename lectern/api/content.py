"""Content API endpoints.

Endpoints are thin; ContentService handles the full lifecycle
(variants, publishing, locales, history) as a deep module.
"""

from fastapi import APIRouter, Depends, Query, Response
from typing import Dict, List, Literal, Optional

from ..exceptions import DocumentNotFoundError, VariantNotFoundError
from ..registry import ContentTypeRegistry, get_registry
from ..schemas.content import (
    ContentCreate,
    ContentUpdate,
    LocaleCreate,
    LocaleStatus,
    PublishRequest,
    VariantPage,
    VariantResponse,
)
from ..services import ContentService
from .deps import get_content_service

router = APIRouter(prefix="/api/content", tags=["content"])

StatusParam = Optional[Literal["draft", "published"]]


@router.get("", response_model=List[str])
def list_collections(registry: ContentTypeRegistry = Depends(get_registry)):
    """Names of the registered content types."""
    return registry.names()


@router.get("/{collection}", response_model=VariantPage)
def list_content(
    collection: str,
    locale: Optional[str] = None,
    status: StatusParam = None,
    sort: str = Query("updated_at", description="Field to sort by"),
    order: Literal["asc", "desc"] = "desc",
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    service: ContentService = Depends(get_content_service),
):
    """List variants of a collection, newest first by default."""
    return service.list(collection, locale=locale, status=status, sort=[(sort, order)], skip=skip, limit=limit)


@router.post("/{collection}", response_model=VariantResponse, status_code=201)
def create_content(
    collection: str,
    body: ContentCreate,
    service: ContentService = Depends(get_content_service),
):
    """Create a document as a draft in one locale."""
    return service.create(collection, body.data, locale=body.locale, created_by=body.created_by)


@router.get("/{collection}/{document_id}", response_model=List[VariantResponse])
def get_content(
    collection: str,
    document_id: str,
    locale: Optional[str] = None,
    status: StatusParam = None,
    service: ContentService = Depends(get_content_service),
):
    """All variants of a document, optionally narrowed by locale and status."""
    variants = service.find_by_document_id(collection, document_id, locale=locale, status=status)
    if not variants:
        raise DocumentNotFoundError(document_id)
    return variants


@router.get("/{collection}/{document_id}/draft", response_model=VariantResponse)
def get_draft(
    collection: str,
    document_id: str,
    locale: Optional[str] = None,
    service: ContentService = Depends(get_content_service),
):
    draft = service.find_draft(collection, document_id, locale)
    if draft is None:
        raise VariantNotFoundError(document_id, locale or service.policy.get_default_locale(), "draft")
    return draft


@router.get("/{collection}/{document_id}/published", response_model=VariantResponse)
def get_published(
    collection: str,
    document_id: str,
    locale: Optional[str] = None,
    service: ContentService = Depends(get_content_service),
):
    published = service.find_published(collection, document_id, locale)
    if published is None:
        raise VariantNotFoundError(document_id, locale or service.policy.get_default_locale(), "published")
    return published


@router.put("/{collection}/{document_id}", response_model=VariantResponse)
def update_content(
    collection: str,
    document_id: str,
    body: ContentUpdate,
    locale: Optional[str] = None,
    status: Literal["draft", "published"] = "draft",
    service: ContentService = Depends(get_content_service),
):
    """Patch one variant. Pass expected_version to reject stale writes."""
    return service.update(
        collection, document_id, body.data,
        locale=locale, status=status,
        updated_by=body.updated_by, expected_version=body.expected_version,
    )


@router.delete("/{collection}/{document_id}", status_code=204)
def delete_content(
    collection: str,
    document_id: str,
    service: ContentService = Depends(get_content_service),
):
    """Delete every variant of a document. History is kept."""
    if not service.delete(collection, document_id):
        raise DocumentNotFoundError(document_id)
    return Response(status_code=204)


@router.post("/{collection}/{document_id}/publish", response_model=VariantResponse)
def publish_content(
    collection: str,
    document_id: str,
    locale: Optional[str] = None,
    body: Optional[PublishRequest] = None,
    service: ContentService = Depends(get_content_service),
):
    """Publish the draft of one locale."""
    body = body or PublishRequest()
    return service.publish(
        collection, document_id, locale,
        published_by=body.published_by, approved_by=body.approved_by,
    )


@router.post("/{collection}/{document_id}/unpublish", status_code=204)
def unpublish_content(
    collection: str,
    document_id: str,
    locale: Optional[str] = None,
    service: ContentService = Depends(get_content_service),
):
    service.unpublish(collection, document_id, locale)
    return Response(status_code=204)


# --- Locales ---


@router.get("/{collection}/{document_id}/locales", response_model=List[str])
def get_locales(
    collection: str,
    document_id: str,
    service: ContentService = Depends(get_content_service),
):
    return service.get_document_locales(collection, document_id)


@router.get("/{collection}/{document_id}/locales/status", response_model=Dict[str, LocaleStatus])
def get_locale_statuses(
    collection: str,
    document_id: str,
    service: ContentService = Depends(get_content_service),
):
    """Draft/published presence per locale."""
    return service.get_locale_statuses(collection, document_id)


@router.post("/{collection}/{document_id}/locales", response_model=VariantResponse, status_code=201)
def add_locale(
    collection: str,
    document_id: str,
    body: LocaleCreate,
    service: ContentService = Depends(get_content_service),
):
    """Add a locale draft with caller-supplied content."""
    return service.add_locale(collection, document_id, body.locale, body.data, created_by=body.created_by)


@router.delete("/{collection}/{document_id}/locales/{locale}", status_code=204)
def delete_locale(
    collection: str,
    document_id: str,
    locale: str,
    service: ContentService = Depends(get_content_service),
):
    if not service.delete_locale(collection, document_id, locale):
        raise VariantNotFoundError(document_id, locale)
    return Response(status_code=204)
