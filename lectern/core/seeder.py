"""Startup seeding: default settings and content-type modules.

Both steps are idempotent and safe to run on every startup.
"""

import importlib
import logging

from sqlalchemy.orm import Session

from ..registry import ContentTypeRegistry

logger = logging.getLogger(__name__)


def seed_default_settings(db: Session) -> int:
    """Register the versioning and i18n setting groups.

    Args:
        db: An open SQLAlchemy session.

    Returns:
        Number of settings added (0 when all were already present).
    """
    from ..services.policy_service import register_default_settings

    added = register_default_settings(db)
    if added:
        logger.info("Seeded %d default settings", added)
    else:
        logger.debug("Default settings already present")
    return added


def load_content_types(modules: list[str], registry: ContentTypeRegistry) -> int:
    """Import each module so it can call ``registry.register``.

    Returns:
        Number of content types registered after loading.

    Raises:
        ImportError: If a configured module cannot be imported.
    """
    for name in modules:
        importlib.import_module(name)
        logger.debug("Loaded content type module %s", name)
    if not len(registry):
        logger.warning("No content types registered; every /api/content call will return 404")
    return len(registry)
