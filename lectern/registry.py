"""Content-type registry.

Maps a collection name ("post", "page", ...) to its pydantic schema and
schema version.  The registry is populated once at startup and handed to
ContentService explicitly; nothing is discovered by scanning modules.

Usage:
    from lectern.registry import registry

    class Post(BaseModel):
        title: str
        body: str = ""

    registry.register("post", Post)
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Optional, Type

import pydantic
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .exceptions import ContentTypeNotFoundError, ValidationError
from .models import ContentVariant
from .repositories.base import Model

logger = logging.getLogger(__name__)


def _format_errors(exc: pydantic.ValidationError) -> list[dict]:
    return [
        {"loc": ".".join(str(p) for p in err["loc"]), "msg": err["msg"], "type": err["type"]}
        for err in exc.errors()
    ]


@dataclass(frozen=True)
class ContentType:
    """A registered collection: its name, payload schema and schema version.

    Bump ``schema_version`` whenever the schema changes shape; history
    snapshots record the version they were written with.
    """

    name: str
    schema: Type[BaseModel]
    schema_version: int = 1

    def validate(self, data: Any) -> dict:
        """Validate a payload and return its JSON-safe form.

        Raises:
            ValidationError: If the payload does not match the schema.
        """
        if not isinstance(data, dict):
            raise ValidationError(f"Payload for '{self.name}' must be an object", field="data")
        try:
            return self.schema.model_validate(data).model_dump(mode="json")
        except pydantic.ValidationError as e:
            errors = _format_errors(e)
            field = errors[0]["loc"] if errors else None
            raise ValidationError(
                f"Invalid payload for '{self.name}'", field=field, errors=errors
            ) from e

    def check(self, data: Any) -> Optional[list[dict]]:
        """Return validation errors for *data*, or None when it is valid."""
        try:
            self.schema.model_validate(data)
        except pydantic.ValidationError as e:
            return _format_errors(e)
        return None

    def model(self, db: Session) -> Model[ContentVariant]:
        """Persistence driver for this collection's variants, bound to a session."""
        return Model(db, ContentVariant, scope={"collection": self.name})


class ContentTypeRegistry:
    """Explicit name → ContentType mapping."""

    def __init__(self):
        self._types: dict[str, ContentType] = {}
        self._lock = threading.Lock()

    def register(self, name: str, schema: Type[BaseModel], schema_version: int = 1) -> ContentType:
        """Register (or replace) a content type."""
        if not name or not name.strip():
            raise ValueError("Content type name cannot be empty")
        if schema_version < 1:
            raise ValueError("schema_version must be >= 1")
        content_type = ContentType(name=name.strip(), schema=schema, schema_version=schema_version)
        with self._lock:
            previous = self._types.get(content_type.name)
            self._types[content_type.name] = content_type
        if previous is not None:
            logger.info(
                "Replaced content type %s (schema v%d -> v%d)",
                content_type.name, previous.schema_version, schema_version,
            )
        else:
            logger.debug("Registered content type %s", content_type.name)
        return content_type

    def unregister(self, name: str) -> None:
        with self._lock:
            self._types.pop(name, None)

    def get(self, name: str) -> ContentType:
        content_type = self._types.get(name)
        if content_type is None:
            raise ContentTypeNotFoundError(name)
        return content_type

    def names(self) -> list[str]:
        return sorted(self._types)

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __len__(self) -> int:
        return len(self._types)


# Application-wide registry, populated at startup.
registry = ContentTypeRegistry()


def get_registry() -> ContentTypeRegistry:
    """FastAPI dependency returning the application registry."""
    return registry
