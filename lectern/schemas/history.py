"""History entry schemas."""

from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Any, Dict, Optional

from ..models.variant import DocumentStatus


class HistoryEntryResponse(BaseModel):
    """Schema for a history snapshot."""
    model_config = ConfigDict(from_attributes=True)

    document_id: str
    collection: str
    locale: str
    version_id: int
    status: DocumentStatus
    data: Dict[str, Any]
    schema_version: int
    content_hash: str
    created_at: datetime
    created_by: Optional[str] = None
    notes: Optional[str] = None
