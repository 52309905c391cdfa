"""Tests for the Model persistence driver and its QueryBuilder."""

import pytest
import sqlalchemy.exc

from lectern.exceptions import ConflictError, DriverError, ValidationError
from lectern.models import ContentVariant
from lectern.repositories import Model

# (document_id, locale, version)
_ROWS = [("doc-x", "en", 0), ("doc-y", "en", 1), ("doc-x", "fr", 2), ("doc-z", "fr", 3)]


@pytest.fixture()
def variants(db):
    model = Model(db, ContentVariant, scope={"collection": "post"})
    for document_id, locale, version in _ROWS:
        model.create({"document_id": document_id, "locale": locale, "status": "draft",
                      "data": {}, "version": version})
    return model


class TestModel:

    def test_find_and_count(self, variants):
        assert variants.count({"locale": "en"}) == 2
        assert variants.find_one({"locale": "fr", "document_id": "doc-z"}).version == 3
        assert len(variants.find()) == 4

    def test_none_matches_null(self, variants):
        assert variants.count({"published_at": None}) == 4

    def test_duplicate_create_is_conflict(self, variants):
        with pytest.raises(ConflictError):
            variants.create({"document_id": "doc-x", "locale": "en", "status": "draft", "data": {}})
        # The savepoint keeps the session usable.
        assert variants.count() == 4

    def test_update_returns_none_when_nothing_matches(self, variants):
        assert variants.update({"locale": "de"}, {"version": 1}) is None
        updated = variants.update({"document_id": "doc-x", "locale": "en"}, {"version": 42})
        assert updated.version == 42

    def test_delete_reports_whether_rows_were_removed(self, variants):
        assert variants.delete({"locale": "en"}) is True
        assert variants.delete({"locale": "en"}) is False
        assert variants.count() == 2

    def test_unknown_field(self, variants):
        with pytest.raises(ValidationError):
            variants.find({"colour": "red"})

    def test_scope_is_applied(self, db, variants):
        other = Model(db, ContentVariant, scope={"collection": "page"})
        assert other.count() == 0
        created = other.create({"document_id": "doc-x", "locale": "en", "status": "draft", "data": {}})
        assert created.collection == "page"
        assert variants.count() == 4

    def test_driver_errors_are_wrapped(self, db, variants, monkeypatch):
        def broken(*args, **kwargs):
            raise sqlalchemy.exc.OperationalError("SELECT", {}, Exception("gone"))

        monkeypatch.setattr(db, "query", broken)
        with pytest.raises(DriverError) as exc_info:
            variants.find({"document_id": "doc-x"})
        assert exc_info.value.details["operation"] == "content_variants.find"
        assert exc_info.value.details["document_id"] == "doc-x"
        assert "gone" in exc_info.value.details["original_error"]


class TestQueryBuilder:

    def test_operators(self, variants):
        q = variants.query
        assert len(q().where("version", "gte", 2).exec()) == 2
        assert len(q().where("version", "lt", 1).exec()) == 1
        assert len(q().where("version", "ne", 0).exec()) == 3
        assert len(q().where("document_id", "in", ["doc-x", "doc-z"]).exec()) == 3
        assert len(q().where("document_id", "like", "%-y").exec()) == 1

    def test_and_or(self, variants):
        both = variants.query().where("document_id", "doc-x").and_where("locale", "fr").exec()
        assert len(both) == 1
        either = variants.query().where("document_id", "doc-y").or_where("document_id", "doc-z").exec()
        assert sorted(v.document_id for v in either) == ["doc-y", "doc-z"]

    def test_sort_skip_limit(self, variants):
        rows = variants.query().sort("version", "desc").skip(1).limit(2).exec()
        assert [r.version for r in rows] == [2, 1]

    def test_count_ignores_pagination(self, variants):
        assert variants.query().where("locale", "fr").limit(1).count() == 2

    def test_unknown_operator(self, variants):
        with pytest.raises(ValidationError):
            variants.query().where("version", "between", 1)

    def test_bad_sort_direction(self, variants):
        with pytest.raises(ValidationError):
            variants.query().sort("version", "sideways")
