"""Shared FastAPI dependencies for the content routers."""

from fastapi import Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..registry import ContentTypeRegistry, get_registry
from ..services import ContentService


def get_content_service(
    db: Session = Depends(get_db),
    registry: ContentTypeRegistry = Depends(get_registry),
) -> ContentService:
    """Request-scoped ContentService over the application registry."""
    return ContentService(db, registry)
