"""Versioning and locale policy, read from the settings store."""

import logging
from typing import Optional

import pydantic
from sqlalchemy.orm import Session

from ..core.config import settings
from ..schemas.settings import LocalePolicy, VersioningPolicy, VersioningPolicyUpdate
from .settings_service import SettingsService

logger = logging.getLogger(__name__)

VERSIONING_GROUP = "versioning"
I18N_GROUP = "internationalization"


def default_versioning_settings() -> dict:
    """Seed values for the versioning group, taken from process config."""
    return {
        "max_versions": settings.max_versions,
        "drafts_enabled": settings.drafts_enabled,
        "require_approval": settings.require_approval,
        "auto_publish": settings.auto_publish,
    }


def default_i18n_settings() -> dict:
    return {
        "default_locale": settings.default_locale,
        "locales": settings.get_locales(),
    }


class VersioningPolicyProvider:
    """Typed view over the versioning and internationalization setting groups.

    Values are re-read on every call so that edits made through the
    settings API apply to the next request without a restart.
    """

    def __init__(self, db: Session, settings_service: Optional[SettingsService] = None):
        self.db = db
        self.settings_service = settings_service or SettingsService(db)

    def _group(self, group: str) -> dict:
        return {s.key: s.value for s in self.settings_service.get_settings_by_group(group)}

    def get_policy(self) -> VersioningPolicy:
        raw = {k: v for k, v in self._group(VERSIONING_GROUP).items() if v is not None}
        try:
            return VersioningPolicy(**raw)
        except pydantic.ValidationError as e:
            logger.warning("Invalid versioning settings, using defaults: %s", e)
            return VersioningPolicy()

    def get_max_versions(self) -> int:
        return self.get_policy().max_versions

    def are_drafts_enabled(self) -> bool:
        return self.get_policy().drafts_enabled

    def is_approval_required(self) -> bool:
        return self.get_policy().require_approval

    def is_auto_publish_enabled(self) -> bool:
        return self.get_policy().auto_publish

    def get_locale_policy(self) -> LocalePolicy:
        raw = self._group(I18N_GROUP)
        default_locale = raw.get("default_locale") or settings.default_locale
        locales = raw.get("locales") or settings.get_locales()
        if default_locale not in locales:
            locales = [default_locale, *locales]
        return LocalePolicy(default_locale=default_locale, locales=locales)

    def get_default_locale(self) -> str:
        return self.get_locale_policy().default_locale

    def get_locales(self) -> list[str]:
        return self.get_locale_policy().locales

    def update_policy(self, update: VersioningPolicyUpdate) -> VersioningPolicy:
        """Write the given fields back to the settings store and return the new policy."""
        changes = update.model_dump(exclude_none=True)
        self.settings_service.register_settings(VERSIONING_GROUP, default_versioning_settings(), commit=False)
        for key, value in changes.items():
            self.settings_service.update_setting(VERSIONING_GROUP, key, value, commit=False)
        self.db.commit()
        return self.get_policy()


def register_default_settings(db: Session) -> int:
    """Seed the versioning and i18n groups. Idempotent."""
    service = SettingsService(db)
    added = service.register_settings(VERSIONING_GROUP, default_versioning_settings(), commit=False)
    added += service.register_settings(I18N_GROUP, default_i18n_settings(), commit=False)
    db.commit()
    return added
