"""Tests for the version history and restore endpoints."""

import sqlalchemy.exc

from tests.conftest import make_post


def _create_with_edits(client, *titles):
    doc_id = client.post("/api/content/post", json={"data": make_post(title=titles[0])}).json()["document_id"]
    for title in titles[1:]:
        client.put(f"/api/content/post/{doc_id}", json={"data": {"title": title}})
    return doc_id


class TestVersions:

    def test_list_versions_newest_first(self, client):
        doc_id = _create_with_edits(client, "v1", "v2", "v3")
        resp = client.get(f"/api/content/post/{doc_id}/versions", params={"locale": "en"})
        assert resp.status_code == 200
        assert [v["version_id"] for v in resp.json()] == [3, 2, 1]
        assert resp.json()[0]["data"]["title"] == "v3"
        assert len(resp.json()[0]["content_hash"]) == 64

    def test_get_latest_version(self, client):
        doc_id = _create_with_edits(client, "v1", "v2")
        resp = client.get(f"/api/content/post/{doc_id}/versions/en/latest")
        assert resp.status_code == 200
        assert resp.json()["version_id"] == 2

    def test_get_specific_version(self, client):
        doc_id = _create_with_edits(client, "v1", "v2")
        resp = client.get(f"/api/content/post/{doc_id}/versions/en/1")
        assert resp.status_code == 200
        assert resp.json()["data"]["title"] == "v1"
        assert resp.json()["status"] == "draft"

    def test_missing_version_is_404(self, client):
        doc_id = _create_with_edits(client, "v1")
        resp = client.get(f"/api/content/post/{doc_id}/versions/en/7")
        assert resp.status_code == 404
        assert resp.json()["error"] == "VERSION_NOT_FOUND"

    def test_retention_follows_settings(self, client):
        client.put("/api/settings/versioning", json={"max_versions": 3})
        doc_id = _create_with_edits(client, "t0", "t1", "t2", "t3", "t4")
        versions = client.get(f"/api/content/post/{doc_id}/versions").json()
        assert [v["version_id"] for v in versions] == [5, 4, 3]

    def test_versioned_locales(self, client):
        doc_id = _create_with_edits(client, "v1")
        client.post(f"/api/content/post/{doc_id}/locales", json={"locale": "fr", "data": make_post(title="fr")})
        client.delete(f"/api/content/post/{doc_id}/locales/fr")
        resp = client.get(f"/api/content/post/{doc_id}/versions/locales")
        assert resp.status_code == 200
        assert resp.json() == ["en", "fr"]

    def test_driver_failure_is_structured_500(self, client, db, monkeypatch):
        doc_id = _create_with_edits(client, "v1")

        def broken(*args, **kwargs):
            raise sqlalchemy.exc.OperationalError("SELECT", {}, Exception("no such table"))

        monkeypatch.setattr(db, "query", broken)
        resp = client.get(f"/api/content/post/{doc_id}/versions", params={"locale": "en"})
        assert resp.status_code == 500
        assert resp.json()["error"] == "DRIVER_ERROR"
        assert resp.json()["details"]["document_id"] == doc_id


class TestRestore:

    def test_restore_into_draft_only(self, client):
        doc_id = _create_with_edits(client, "Hello")
        client.post(f"/api/content/post/{doc_id}/publish")
        client.put(f"/api/content/post/{doc_id}", json={"data": {"title": "Changed"}})

        resp = client.post(f"/api/content/post/{doc_id}/restore", params={"locale": "en", "version": 1})
        assert resp.status_code == 200
        assert resp.json()["status"] == "draft"
        assert resp.json()["data"]["title"] == "Hello"

        published = client.get(f"/api/content/post/{doc_id}/published").json()
        assert published["data"]["title"] == "Hello"
        latest = client.get(f"/api/content/post/{doc_id}/versions/en/latest").json()
        assert latest["notes"] == "Restored from version 1"

    def test_restore_missing_version(self, client):
        doc_id = _create_with_edits(client, "Hello")
        resp = client.post(f"/api/content/post/{doc_id}/restore", params={"locale": "en", "version": 5})
        assert resp.status_code == 404


class TestSettingsApi:

    def test_get_and_update_policy(self, client):
        assert client.get("/api/settings/versioning").json()["max_versions"] == 10
        resp = client.put("/api/settings/versioning", json={"auto_publish": True})
        assert resp.status_code == 200
        assert resp.json()["auto_publish"] is True

    def test_negative_retention_rejected(self, client):
        assert client.put("/api/settings/versioning", json={"max_versions": -1}).status_code == 422

    def test_locale_policy(self, client):
        body = client.get("/api/settings/locales").json()
        assert body["default_locale"] == "en"
