"""Database models."""

from .variant import ContentVariant, DocumentStatus
from .history import HistoryEntry
from .setting import Setting

__all__ = [
    "ContentVariant", "DocumentStatus",
    "HistoryEntry",
    "Setting",
]
