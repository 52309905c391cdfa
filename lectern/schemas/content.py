"""Content variant schemas."""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..models.variant import DocumentStatus


class VariantResponse(BaseModel):
    """One stored variant of a document."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    collection: str
    document_id: str
    locale: str
    status: DocumentStatus
    published_at: Optional[datetime] = None
    data: Dict[str, Any]
    version: int
    created_at: datetime
    updated_at: datetime
    created_by: Optional[str] = None
    updated_by: Optional[str] = None


class VariantPage(BaseModel):
    """Paginated list of variants."""
    items: List[VariantResponse]
    total: int
    skip: int
    limit: int


class LocaleStatus(BaseModel):
    """What exists for one locale of a document."""
    has_draft: bool = False
    has_published: bool = False


class ContentCreate(BaseModel):
    """Schema for creating a document."""
    data: Dict[str, Any]
    locale: Optional[str] = None
    created_by: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"data": {"title": "Hello"}, "locale": "en", "created_by": "editor-1"}
            ]
        }
    }


class ContentUpdate(BaseModel):
    """Schema for patching a variant payload."""
    data: Dict[str, Any]
    updated_by: Optional[str] = None
    expected_version: Optional[int] = Field(
        default=None,
        description="Row version the client last saw; omit to skip the conflict check",
    )


class PublishRequest(BaseModel):
    """Optional actors recorded on publish."""
    published_by: Optional[str] = None
    approved_by: Optional[str] = None


class LocaleCreate(BaseModel):
    """Schema for adding a locale to an existing document."""
    locale: str
    data: Dict[str, Any]
    created_by: Optional[str] = None
