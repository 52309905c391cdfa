"""Data access repositories."""

from .base import Model, QueryBuilder
from .variant_store import VariantStore
from .history_store import HistoryStore

__all__ = [
    "Model",
    "QueryBuilder",
    "VariantStore",
    "HistoryStore",
]
