"""Settings store: grouped, runtime-editable key/value settings.

Groups are registered with their defaults at startup (register_settings is
idempotent and never overwrites a value an operator already changed).
Readers fetch a whole group at once with get_settings_by_group.
"""

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from ..exceptions import SettingNotFoundError
from ..models import Setting
from ..repositories.base import Model
from ..schemas.settings import SettingValue

logger = logging.getLogger(__name__)


def _type_name(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return "string"


class SettingsService:
    """Read/write access to the settings table."""

    def __init__(self, db: Session):
        self.db = db
        self.model: Model[Setting] = Model(db, Setting)

    def get_settings_by_group(self, group: str) -> list[SettingValue]:
        """All settings of a group as (key, value) pairs."""
        return [
            SettingValue(key=s.key, value=s.value)
            for s in self.model.query().where("group", group).sort("key").exec()
        ]

    def get_setting(self, group: str, key: str) -> Optional[Setting]:
        return self.model.find_one({"group": group, "key": key})

    def register_settings(self, group: str, defaults: dict[str, Any], commit: bool = True) -> int:
        """Insert missing keys of *group* with their default values.

        Existing keys are left untouched. Returns the number of keys added.
        """
        existing = {s.key for s in self.model.find({"group": group})}
        added = 0
        for key, value in defaults.items():
            if key in existing:
                continue
            self.model.create({"group": group, "key": key, "type": _type_name(value), "value": value})
            added += 1
        if added:
            logger.info("Registered %d settings in group %s", added, group)
        if commit:
            self.db.commit()
        return added

    def update_setting(self, group: str, key: str, value: Any, commit: bool = True) -> Setting:
        """Change the value of an existing setting.

        Raises:
            SettingNotFoundError: If the key was never registered.
        """
        updated = self.model.update(
            {"group": group, "key": key},
            {"value": value, "type": _type_name(value)},
        )
        if updated is None:
            raise SettingNotFoundError(group, key)
        if commit:
            self.db.commit()
        logger.info("Setting updated", extra={"group": group, "key": key})
        return updated
