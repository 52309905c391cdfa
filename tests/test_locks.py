"""Tests for per-document locking."""

import threading
import time

import pytest

from lectern.core.locks import KeyedLock
from lectern.database import SessionLocal
from lectern.exceptions import ConflictError
from lectern.models import ContentVariant
from lectern.registry import registry
from lectern.services import ContentService
from tests.conftest import make_post


class TestKeyedLock:

    def test_released_keys_are_dropped(self):
        locks = KeyedLock()
        with locks.hold("post", "doc", "en"):
            assert locks.active_keys() == 1
        assert locks.active_keys() == 0

    def test_distinct_keys_do_not_block(self):
        locks = KeyedLock(timeout=0.1)
        with locks.hold("post", "doc", "en"):
            with locks.hold("post", "doc", "fr"):
                assert locks.active_keys() == 2

    def test_timeout_raises_conflict(self):
        locks = KeyedLock(timeout=0.05)
        held = threading.Event()
        release = threading.Event()

        def holder():
            with locks.hold("post", "doc", "en"):
                held.set()
                release.wait(2)

        t = threading.Thread(target=holder)
        t.start()
        held.wait(2)
        try:
            with pytest.raises(ConflictError):
                with locks.hold("post", "doc", "en"):
                    pass
        finally:
            release.set()
            t.join()
        assert locks.active_keys() == 0

    def test_lock_is_released_on_error(self):
        locks = KeyedLock(timeout=0.05)
        with pytest.raises(RuntimeError):
            with locks.hold("k"):
                raise RuntimeError("boom")
        with locks.hold("k"):
            pass

    def test_serializes_holders(self):
        locks = KeyedLock()
        inside = []
        overlaps = []

        def worker():
            with locks.hold("same"):
                inside.append(1)
                if len(inside) > 1:
                    overlaps.append(True)
                time.sleep(0.01)
                inside.pop()

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert overlaps == []


class TestConcurrentPublish:

    def test_parallel_publishes_leave_one_published_row(self, db, service):
        doc_id = service.create("post", make_post()).document_id
        # End the read transaction so the worker sessions can write.
        db.commit()
        errors = []

        def publish():
            db = SessionLocal()
            try:
                ContentService(db, registry).publish("post", doc_id, "en")
            except Exception as e:  # collected and asserted below
                errors.append(e)
            finally:
                db.close()

        threads = [threading.Thread(target=publish) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        db = SessionLocal()
        try:
            published = db.query(ContentVariant).filter_by(document_id=doc_id, status="published").all()
            assert len(published) == 1
            assert published[0].version == 4
        finally:
            db.close()
