"""Persistence driver shared by the variant, history and settings stores.

``Model`` wraps one SQLAlchemy mapped class behind a small, dict-based
interface (create / find_one / find / update / delete / query) so the
stores above it never build SQL themselves.  An optional *scope* is
merged into every filter and every created row; the variant store uses
it to pin a driver to one collection.

Driver failures are translated here and nowhere else:
- unique-constraint violations become ConflictError
- any other SQLAlchemy error becomes DriverError with the operation name
"""

from typing import Any, Generic, Optional, Type, TypeVar

import sqlalchemy.exc
from sqlalchemy import and_, or_
from sqlalchemy.orm import Query, Session

from ..database import Base
from ..exceptions import ConflictError, DriverError, ValidationError

ModelT = TypeVar("ModelT", bound=Base)

_OPERATORS = {
    "eq": lambda col, v: col == v,
    "ne": lambda col, v: col != v,
    "lt": lambda col, v: col < v,
    "lte": lambda col, v: col <= v,
    "gt": lambda col, v: col > v,
    "gte": lambda col, v: col >= v,
    "in": lambda col, v: col.in_(list(v)),
    "like": lambda col, v: col.like(v),
}


class QueryBuilder(Generic[ModelT]):
    """Chainable filter / sort / pagination over one model.

    Clauses added with where() are AND-ed; or_where() adds a clause that
    is OR-ed with everything before it.
    """

    def __init__(self, model: "Model[ModelT]"):
        self._model = model
        self._clause = None
        self._order: list = []
        self._skip = 0
        self._limit: Optional[int] = None
        self._document_id: Optional[str] = None

    def _condition(self, field: str, op_or_value: Any, value: Any, has_op: bool):
        column = self._model.column(field)
        if not has_op:
            return column.is_(None) if op_or_value is None else column == op_or_value
        op = str(op_or_value).lower()
        if op not in _OPERATORS:
            raise ValidationError(f"Unsupported query operator: {op_or_value}", field=field)
        return _OPERATORS[op](column, value)

    def where(self, field: str, op_or_value: Any, *value: Any) -> "QueryBuilder[ModelT]":
        cond = self._condition(field, op_or_value, value[0] if value else None, bool(value))
        if field == "document_id" and not value:
            self._document_id = op_or_value
        self._clause = cond if self._clause is None else and_(self._clause, cond)
        return self

    and_where = where

    def or_where(self, field: str, op_or_value: Any, *value: Any) -> "QueryBuilder[ModelT]":
        cond = self._condition(field, op_or_value, value[0] if value else None, bool(value))
        self._clause = cond if self._clause is None else or_(self._clause, cond)
        return self

    def sort(self, field: str, direction: str = "asc") -> "QueryBuilder[ModelT]":
        column = self._model.column(field)
        if direction.lower() not in ("asc", "desc"):
            raise ValidationError(f"Sort direction must be 'asc' or 'desc', got {direction!r}", field=field)
        self._order.append(column.desc() if direction.lower() == "desc" else column.asc())
        return self

    def skip(self, n: int) -> "QueryBuilder[ModelT]":
        self._skip = max(0, n)
        return self

    def limit(self, n: Optional[int]) -> "QueryBuilder[ModelT]":
        self._limit = n
        return self

    def _filtered(self) -> Query:
        query = self._model._base_query()
        if self._clause is not None:
            query = query.filter(self._clause)
        return query

    def count(self) -> int:
        try:
            return self._filtered().count()
        except sqlalchemy.exc.SQLAlchemyError as e:
            raise DriverError(f"{self._model.name}.query.count", self._document_id, e) from e

    def exec(self) -> list[ModelT]:
        try:
            query = self._filtered()
            if self._order:
                query = query.order_by(*self._order)
            if self._skip:
                query = query.offset(self._skip)
            if self._limit is not None:
                query = query.limit(self._limit)
            return query.all()
        except sqlalchemy.exc.SQLAlchemyError as e:
            raise DriverError(f"{self._model.name}.query.exec", self._document_id, e) from e


class Model(Generic[ModelT]):
    """Dict-filter driver over one SQLAlchemy model.

    Filters are ``{column_name: value}`` mappings combined with AND; a
    value of None matches NULL.  Writes are flushed inside a savepoint
    so that a constraint violation leaves the surrounding transaction
    usable and the caller can retry.
    """

    def __init__(self, db: Session, model_class: Type[ModelT], scope: Optional[dict] = None):
        self.db = db
        self.model_class = model_class
        self.scope = dict(scope or {})

    @property
    def name(self) -> str:
        return self.model_class.__tablename__

    def column(self, field: str):
        """Resolve a column attribute by name, rejecting unknown fields."""
        columns = self.model_class.__table__.columns
        if field not in columns:
            raise ValidationError(f"Unknown field for {self.name}: {field}", field=field)
        return getattr(self.model_class, field)

    def _base_query(self) -> Query:
        query = self.db.query(self.model_class)
        for field, value in self.scope.items():
            query = query.filter(self.column(field) == value)
        return query

    def _filtered(self, filter: Optional[dict]) -> Query:
        query = self._base_query()
        for field, value in (filter or {}).items():
            column = self.column(field)
            query = query.filter(column.is_(None) if value is None else column == value)
        return query

    def create(self, data: dict) -> ModelT:
        values = {**data, **self.scope}
        for field in values:
            self.column(field)
        entity = self.model_class(**values)
        try:
            with self.db.begin_nested():
                self.db.add(entity)
                self.db.flush()
        except sqlalchemy.exc.IntegrityError as e:
            raise ConflictError(
                f"Duplicate {self.name} record",
                operation="create",
                key={k: v for k, v in values.items() if isinstance(v, (str, int))},
            ) from e
        except sqlalchemy.exc.SQLAlchemyError as e:
            raise DriverError(f"{self.name}.create", values.get("document_id"), e) from e
        self.db.refresh(entity)
        return entity

    def find_one(self, filter: dict) -> Optional[ModelT]:
        try:
            return self._filtered(filter).first()
        except sqlalchemy.exc.SQLAlchemyError as e:
            raise DriverError(f"{self.name}.find_one", filter.get("document_id"), e) from e

    def find(self, filter: Optional[dict] = None) -> list[ModelT]:
        try:
            return self._filtered(filter).all()
        except sqlalchemy.exc.SQLAlchemyError as e:
            raise DriverError(f"{self.name}.find", (filter or {}).get("document_id"), e) from e

    def count(self, filter: Optional[dict] = None) -> int:
        try:
            return self._filtered(filter).count()
        except sqlalchemy.exc.SQLAlchemyError as e:
            raise DriverError(f"{self.name}.count", (filter or {}).get("document_id"), e) from e

    def update(self, filter: dict, patch: dict) -> Optional[ModelT]:
        """Apply *patch* to the first row matching *filter*. Returns None if nothing matched."""
        entity = self.find_one(filter)
        if entity is None:
            return None
        for field in patch:
            self.column(field)
        try:
            with self.db.begin_nested():
                for field, value in patch.items():
                    setattr(entity, field, value)
                self.db.flush()
        except sqlalchemy.exc.IntegrityError as e:
            raise ConflictError(f"Update violates a unique constraint on {self.name}", operation="update") from e
        except sqlalchemy.exc.SQLAlchemyError as e:
            raise DriverError(f"{self.name}.update", filter.get("document_id"), e) from e
        self.db.refresh(entity)
        return entity

    def delete(self, filter: dict) -> bool:
        """Delete every row matching *filter*. Returns True if any row was removed."""
        try:
            with self.db.begin_nested():
                removed = self._filtered(filter).delete(synchronize_session="fetch")
        except sqlalchemy.exc.SQLAlchemyError as e:
            raise DriverError(f"{self.name}.delete", filter.get("document_id"), e) from e
        return removed > 0

    def query(self) -> QueryBuilder[ModelT]:
        return QueryBuilder(self)
