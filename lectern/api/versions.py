"""Version history API endpoints."""

from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from ..exceptions import VersionNotFoundError
from ..schemas.content import VariantResponse
from ..schemas.history import HistoryEntryResponse
from ..services import ContentService
from .deps import get_content_service

router = APIRouter(prefix="/api/content/{collection}/{document_id}", tags=["versions"])


@router.get("/versions", response_model=List[HistoryEntryResponse])
def list_versions(
    collection: str,
    document_id: str,
    locale: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    service: ContentService = Depends(get_content_service),
):
    """List snapshots of a document, newest first."""
    return service.get_versions(collection, document_id, locale=locale, skip=skip, limit=limit)


@router.get("/versions/locales", response_model=List[str])
def list_versioned_locales(
    collection: str,
    document_id: str,
    service: ContentService = Depends(get_content_service),
):
    """Locales that have history, including deleted ones that can still be inspected."""
    return service.get_versioned_locales(collection, document_id)


@router.get("/versions/{locale}/latest", response_model=HistoryEntryResponse)
def get_latest_version(
    collection: str,
    document_id: str,
    locale: str,
    status: Optional[str] = None,
    service: ContentService = Depends(get_content_service),
):
    """Get the latest snapshot of a locale."""
    version = service.get_latest_version(collection, document_id, locale, status=status)
    if version is None:
        raise VersionNotFoundError(document_id, locale)
    return version


@router.get("/versions/{locale}/{version_id}", response_model=HistoryEntryResponse)
def get_version(
    collection: str,
    document_id: str,
    locale: str,
    version_id: int,
    service: ContentService = Depends(get_content_service),
):
    """Get a specific snapshot."""
    version = service.get_version(collection, document_id, locale, version_id)
    if version is None:
        raise VersionNotFoundError(document_id, locale, version_id)
    return version


@router.post("/restore", response_model=VariantResponse)
def restore_version(
    collection: str,
    document_id: str,
    locale: str = Query(...),
    version: int = Query(..., ge=1),
    restored_by: Optional[str] = None,
    service: ContentService = Depends(get_content_service),
):
    """Copy a snapshot back into the draft of its locale."""
    return service.restore_version(collection, document_id, locale, version, restored_by=restored_by)
