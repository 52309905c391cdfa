"""Content identifier and locale helpers - deep helper module."""

import re
import secrets

from ..exceptions import ValidationError

DOCUMENT_ID_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"
DOCUMENT_ID_LENGTH = 24
"""
Length of generated document IDs.

24 chars over a 36-symbol alphabet is ~124 bits of entropy; collisions
are still checked at allocation time because history outlives documents.
"""

DEFAULT_LOCALE_TAG = "default"

# "en", "fr-CA", "zh_Hant", "es-419"
_LOCALE_PATTERN = re.compile(r"^[A-Za-z]{2,3}([-_][A-Za-z0-9]{2,8})*$")


def generate_document_id(length: int = DOCUMENT_ID_LENGTH) -> str:
    """Generate a random lowercase alphanumeric document ID."""
    return "".join(secrets.choice(DOCUMENT_ID_ALPHABET) for _ in range(length))


def is_valid_document_id(document_id: str) -> bool:
    """Check that *document_id* has the generated format."""
    if not document_id or not isinstance(document_id, str):
        return False
    if len(document_id) != DOCUMENT_ID_LENGTH:
        return False
    return all(ch in DOCUMENT_ID_ALPHABET for ch in document_id)


def validate_locale(locale: str) -> str:
    """Return *locale* stripped, or raise ValidationError for malformed tags."""
    if not isinstance(locale, str):
        raise ValidationError("Locale must be a string", field="locale")
    tag = locale.strip()
    if tag == DEFAULT_LOCALE_TAG or _LOCALE_PATTERN.match(tag):
        return tag
    raise ValidationError(f"Invalid locale tag: {locale!r}", field="locale")
