"""Pydantic schemas for API validation."""

from .content import (
    VariantResponse,
    VariantPage,
    LocaleStatus,
    ContentCreate,
    ContentUpdate,
    PublishRequest,
    LocaleCreate,
)
from .history import HistoryEntryResponse
from .settings import (
    SettingValue,
    VersioningPolicy,
    VersioningPolicyUpdate,
    LocalePolicy,
)

__all__ = [
    "VariantResponse",
    "VariantPage",
    "LocaleStatus",
    "ContentCreate",
    "ContentUpdate",
    "PublishRequest",
    "LocaleCreate",
    "HistoryEntryResponse",
    "SettingValue",
    "VersioningPolicy",
    "VersioningPolicyUpdate",
    "LocalePolicy",
]
