"""Tests for the /api/content endpoints."""

from tests.conftest import make_post


def _create(client, **overrides):
    resp = client.post("/api/content/post", json={"data": make_post(**overrides), "locale": "en"})
    assert resp.status_code == 201
    return resp.json()["document_id"]


class TestCreateAndRead:

    def test_create_returns_draft(self, client):
        resp = client.post("/api/content/post", json={"data": {"title": "Hello"}, "created_by": "alice"})
        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "draft"
        assert body["locale"] == "en"
        assert body["data"]["title"] == "Hello"
        assert body["created_by"] == "alice"
        assert len(body["document_id"]) == 24

    def test_get_draft_and_missing_published(self, client):
        doc_id = _create(client, title="Hello")
        assert client.get(f"/api/content/post/{doc_id}/draft").json()["data"]["title"] == "Hello"

        resp = client.get(f"/api/content/post/{doc_id}/published", params={"locale": "en"})
        assert resp.status_code == 404
        assert resp.json()["error"] == "VARIANT_NOT_FOUND"

    def test_get_document_variants(self, client):
        doc_id = _create(client)
        resp = client.get(f"/api/content/post/{doc_id}")
        assert resp.status_code == 200
        assert [v["status"] for v in resp.json()] == ["draft"]

    def test_get_unknown_document(self, client):
        resp = client.get("/api/content/post/" + "z" * 24)
        assert resp.status_code == 404
        assert resp.json()["error"] == "DOCUMENT_NOT_FOUND"

    def test_invalid_payload_is_400(self, client):
        resp = client.post("/api/content/post", json={"data": {"body": "no title"}})
        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "VALIDATION_ERROR"
        assert body["details"]["errors"][0]["loc"] == "title"

    def test_unknown_collection_is_404(self, client):
        resp = client.post("/api/content/nope", json={"data": {"title": "x"}})
        assert resp.status_code == 404
        assert resp.json()["error"] == "CONTENT_TYPE_NOT_FOUND"

    def test_list_collections(self, client):
        assert "post" in client.get("/api/content").json()

    def test_list_paginates_and_sorts(self, client):
        for title in ("a", "b", "c"):
            _create(client, title=title)
        resp = client.get("/api/content/post", params={"limit": 2, "sort": "id", "order": "asc"})
        assert resp.status_code == 200
        page = resp.json()
        assert page["total"] == 3
        assert [item["data"]["title"] for item in page["items"]] == ["a", "b"]


class TestUpdate:

    def test_update_draft(self, client):
        doc_id = _create(client, title="Old")
        resp = client.put(f"/api/content/post/{doc_id}", json={"data": {"title": "New"}, "updated_by": "bob"})
        assert resp.status_code == 200
        assert resp.json()["data"]["title"] == "New"
        assert resp.json()["version"] == 2

    def test_stale_expected_version_is_409(self, client):
        doc_id = _create(client)
        client.put(f"/api/content/post/{doc_id}", json={"data": {"title": "A"}, "expected_version": 1})
        resp = client.put(f"/api/content/post/{doc_id}", json={"data": {"title": "B"}, "expected_version": 1})
        assert resp.status_code == 409
        assert resp.json()["error"] == "CONFLICT"


class TestPublishing:

    def test_publish_and_unpublish(self, client):
        doc_id = _create(client, title="Live")

        resp = client.post(f"/api/content/post/{doc_id}/publish", params={"locale": "en"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "published"
        assert resp.json()["published_at"] is not None

        assert client.get(f"/api/content/post/{doc_id}/published").status_code == 200
        assert client.post(f"/api/content/post/{doc_id}/unpublish").status_code == 204
        assert client.get(f"/api/content/post/{doc_id}/published").status_code == 404
        assert client.get(f"/api/content/post/{doc_id}/draft").json()["data"]["title"] == "Live"

    def test_unpublish_when_not_published(self, client):
        doc_id = _create(client)
        assert client.post(f"/api/content/post/{doc_id}/unpublish").status_code == 404

    def test_approval_required(self, client):
        client.put("/api/settings/versioning", json={"require_approval": True})
        doc_id = _create(client)

        resp = client.post(f"/api/content/post/{doc_id}/publish", json={"published_by": "writer"})
        assert resp.status_code == 403
        assert resp.json()["error"] == "APPROVAL_REQUIRED"

        resp = client.post(f"/api/content/post/{doc_id}/publish", json={"approved_by": "chief"})
        assert resp.status_code == 200


class TestLocales:

    def test_add_locale_and_statuses(self, client):
        doc_id = _create(client, title="Hello")
        client.post(f"/api/content/post/{doc_id}/publish")

        resp = client.post(
            f"/api/content/post/{doc_id}/locales",
            json={"locale": "fr", "data": {"title": "Bonjour"}},
        )
        assert resp.status_code == 201

        statuses = client.get(f"/api/content/post/{doc_id}/locales/status").json()
        assert statuses == {
            "en": {"has_draft": True, "has_published": True},
            "fr": {"has_draft": True, "has_published": False},
        }
        assert sorted(client.get(f"/api/content/post/{doc_id}/locales").json()) == ["en", "fr"]

    def test_add_duplicate_locale_is_409(self, client):
        doc_id = _create(client)
        resp = client.post(f"/api/content/post/{doc_id}/locales", json={"locale": "en", "data": {"title": "x"}})
        assert resp.status_code == 409

    def test_delete_locale(self, client):
        doc_id = _create(client)
        client.post(f"/api/content/post/{doc_id}/locales", json={"locale": "fr", "data": {"title": "Bonjour"}})
        assert client.delete(f"/api/content/post/{doc_id}/locales/fr").status_code == 204
        assert client.delete(f"/api/content/post/{doc_id}/locales/fr").status_code == 404


class TestDelete:

    def test_delete_document(self, client):
        doc_id = _create(client)
        assert client.delete(f"/api/content/post/{doc_id}").status_code == 204
        assert client.get(f"/api/content/post/{doc_id}").status_code == 404
        assert client.delete(f"/api/content/post/{doc_id}").status_code == 404

    def test_history_survives_delete(self, client):
        doc_id = _create(client)
        client.delete(f"/api/content/post/{doc_id}")
        assert len(client.get(f"/api/content/post/{doc_id}/versions").json()) == 1
