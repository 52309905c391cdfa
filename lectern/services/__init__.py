"""Business logic services."""

from .content_service import ContentService
from .policy_service import VersioningPolicyProvider
from .settings_service import SettingsService

__all__ = ["ContentService", "SettingsService", "VersioningPolicyProvider"]
