"""Settings schemas."""

from pydantic import BaseModel, Field, field_validator
from typing import Any, List, Optional


class SettingValue(BaseModel):
    """A single (key, value) pair as returned by the settings store."""
    key: str
    value: Any


def _as_bool(value: Any) -> bool:
    # Stored either as JSON booleans or as "true"/"false" strings.
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


class VersioningPolicy(BaseModel):
    """Versioning behaviour consumed by ContentService."""
    max_versions: int = Field(default=10, ge=0, description="0 = keep every version")
    drafts_enabled: bool = True
    require_approval: bool = False
    auto_publish: bool = False

    @field_validator("drafts_enabled", "require_approval", "auto_publish", mode="before")
    @classmethod
    def coerce_flag(cls, v: Any) -> bool:
        return _as_bool(v)

    @property
    def publish_on_save(self) -> bool:
        """Whether saves should be published in the same operation."""
        return (self.auto_publish or not self.drafts_enabled) and not self.require_approval


class VersioningPolicyUpdate(BaseModel):
    """Partial update of the versioning policy."""
    max_versions: Optional[int] = Field(default=None, ge=0)
    drafts_enabled: Optional[bool] = None
    require_approval: Optional[bool] = None
    auto_publish: Optional[bool] = None


class LocalePolicy(BaseModel):
    """Internationalization settings."""
    default_locale: str = "en"
    locales: List[str] = Field(default_factory=lambda: ["en"])
