"""Tests for the HTTP API.

Each test gets a workspace under ``tmp_path``: the lifespan opens a fresh
SQLite file there and stores document bodies next to it.
"""

from __future__ import annotations

import importlib

import pytest
from fastapi.testclient import TestClient

from docgraph.api.app import create_app

# ``docgraph.api.app`` as a dotted attribute is the FastAPI instance re-exported
# by the package, so patch the module object itself.
app_module = importlib.import_module("docgraph.api.app")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setattr("docgraph.config.settings.workspace_dir", tmp_path)
    monkeypatch.setattr(app_module, "setup_logging", lambda *args: None)
    with TestClient(create_app()) as c:
        yield c


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _create_document(client, title: str = "Quickstart", content: str = "Install the package.") -> dict:
    resp = client.post(
        "/documents",
        json={"title": title, "type": "tutorial", "content": content, "lang": "en"},
    )
    assert resp.status_code == 201
    return resp.json()


def _create_concept(client, term: str, lang: str = "en") -> dict:
    resp = client.post("/concepts", json={"term": term, "description": f"{term}.", "lang": lang})
    assert resp.status_code == 201
    return resp.json()


def _create_version(client, version: str = "v1.0.0", is_main: bool = False) -> dict:
    resp = client.post(
        "/versions",
        json={"version": version, "name": version, "is_public": True, "is_main": is_main},
    )
    assert resp.status_code == 201
    return resp.json()


def _create_page(client, version_id: str, slug: str, **extra) -> dict:
    resp = client.post(
        "/pages", json={"slug": slug, "title": slug.title(), "version_id": version_id, **extra}
    )
    assert resp.status_code == 201
    return resp.json()


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "database": "ok", "schema_version": 0}


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

class TestDocuments:
    def test_create_and_get(self, client, tmp_path):
        doc = _create_document(client)
        assert doc["status"] == "draft"
        assert doc["revision"] == 1

        resp = client.get(f"/documents/{doc['id']}")
        assert resp.status_code == 200
        assert resp.json()["content"] == "Install the package."
        assert (tmp_path / "content" / "documents" / doc["id"] / "content.md").is_file()

    def test_missing_document(self, client):
        resp = client.get("/documents/nope")
        assert resp.status_code == 404
        error = resp.json()["error"]
        assert error["code"] == "NOT_FOUND"
        assert "nope" in error["message"]

    def test_request_validation(self, client):
        resp = client.post(
            "/documents", json={"title": "x", "type": "tutorial", "content": "x", "lang": "english"}
        )
        assert resp.status_code == 422

    def test_status_workflow(self, client):
        doc = _create_document(client)
        resp = client.put(f"/documents/{doc['id']}", json={"status": "in_review"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "in_review"

        resp = client.put(f"/documents/{doc['id']}", json={"status": "publish"})
        assert resp.status_code == 400
        error = resp.json()["error"]
        assert error["code"] == "INVALID_STATUS_TRANSITION"
        assert error["details"] == {"current": "in_review", "requested": "publish"}

    def test_stale_revision(self, client):
        doc = _create_document(client)
        client.put(f"/documents/{doc['id']}", json={"title": "New"})
        resp = client.put(f"/documents/{doc['id']}", json={"title": "Late", "expected_revision": 1})
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "CONFLICT"

    def test_empty_update(self, client):
        doc = _create_document(client)
        resp = client.put(f"/documents/{doc['id']}", json={})
        assert resp.status_code == 400

    def test_list(self, client):
        _create_document(client, "one")
        _create_document(client, "two")
        resp = client.get("/documents", params={"limit": 1})
        body = resp.json()
        assert body["total"] == 2
        assert len(body["items"]) == 1
        assert body["limit"] == 1

    def test_delete(self, client):
        doc = _create_document(client)
        assert client.delete(f"/documents/{doc['id']}").status_code == 204
        assert client.get(f"/documents/{doc['id']}").status_code == 404
        assert client.delete(f"/documents/{doc['id']}").status_code == 404

    def test_links(self, client):
        a = _create_document(client, "a")
        b = _create_document(client, "b")
        resp = client.post(f"/documents/{a['id']}/links", json={"target_id": b["id"]})
        assert resp.status_code == 201
        assert [d["id"] for d in client.get(f"/documents/{b['id']}/backlinks").json()] == [a["id"]]
        assert client.delete(f"/documents/{a['id']}/links/{b['id']}").status_code == 204

    def test_working_copy(self, client):
        original = _create_document(client)
        resp = client.post(f"/documents/{original['id']}/working-copy")
        assert resp.status_code == 201
        copy = resp.json()
        assert copy["content"] == original["content"]
        assert client.get(f"/documents/{copy['id']}/original").json()["id"] == original["id"]

    def test_concept_usage_and_impact(self, client):
        doc = _create_document(client)
        concept = _create_concept(client, "API")
        resp = client.post(f"/documents/{doc['id']}/concepts", json={"concept_id": concept["id"]})
        assert resp.status_code == 201

        impact = client.get(f"/concepts/{concept['id']}/documents").json()
        assert impact["total"] == 1
        assert impact["items"][0]["id"] == doc["id"]
        assert impact["items"][0]["type"] == "tutorial"


# ---------------------------------------------------------------------------
# Concepts
# ---------------------------------------------------------------------------

class TestConcepts:
    def test_hierarchy_and_cycles(self, client):
        api = _create_concept(client, "API")
        rest = _create_concept(client, "REST API")
        resp = client.post(f"/concepts/{rest['id']}/supertypes", json={"parent_id": api["id"]})
        assert resp.status_code == 201
        assert [c["term"] for c in client.get(f"/concepts/{api['id']}/subtypes").json()] == ["REST API"]

        resp = client.post(f"/concepts/{api['id']}/supertypes", json={"parent_id": rest["id"]})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_missing_target(self, client):
        api = _create_concept(client, "API")
        resp = client.post(f"/concepts/{api['id']}/wholes", json={"whole_id": "ghost"})
        assert resp.status_code == 404

    def test_synonym_language(self, client):
        en = _create_concept(client, "car", "en")
        ko = _create_concept(client, "jadongcha", "ko")
        resp = client.post(f"/concepts/{en['id']}/synonyms", json={"synonym_id": ko["id"]})
        assert resp.status_code == 400
        assert "same language" in resp.json()["error"]["message"]

    def test_relation_counts(self, client):
        a = _create_concept(client, "a")
        b = _create_concept(client, "b")
        client.post(f"/concepts/{a['id']}/synonyms", json={"synonym_id": b["id"]})
        counts = client.get(f"/concepts/{b['id']}/relations").json()
        assert counts["synonyms"] == 1
        assert counts["documents"] == 0

    def test_update_term_but_not_language(self, client):
        concept = _create_concept(client, "API")
        resp = client.put(f"/concepts/{concept['id']}", json={"term": "Web API"})
        assert resp.status_code == 200
        assert resp.json()["term"] == "Web API"

        resp = client.put(f"/concepts/{concept['id']}", json={"lang": "ko"})
        assert resp.status_code == 422
        assert client.get(f"/concepts/{concept['id']}").json()["lang"] == "en"

    def test_impact_for_missing_concept(self, client):
        assert client.get("/concepts/ghost/documents").status_code == 404


# ---------------------------------------------------------------------------
# Versions, pages, navigation
# ---------------------------------------------------------------------------

class TestNavigation:
    def test_navigation_tree(self, client):
        version = _create_version(client, is_main=True)
        guide = _create_page(client, version["id"], "guide", visible=True)
        _create_page(client, version["id"], "setup", parent_page_id=guide["id"], order=1, visible=True)
        _create_page(client, version["id"], "auth", parent_page_id=guide["id"], order=0)

        tree = client.get(f"/versions/{version['id']}/navigation").json()
        assert [p["slug"] for p in tree["pages"]] == ["guide"]
        assert [c["slug"] for c in tree["pages"][0]["children"]] == ["auth", "setup"]

        visible = client.get(
            f"/versions/{version['id']}/navigation", params={"visible_only": True}
        ).json()
        assert [c["slug"] for c in visible["pages"][0]["children"]] == ["setup"]

    def test_navigation_for_missing_version(self, client):
        assert client.get("/versions/ghost/navigation").status_code == 404

    def test_main_version(self, client):
        _create_version(client, "v1.0.0", is_main=True)
        second = _create_version(client, "v2.0.0", is_main=True)
        assert client.get("/versions/main").json()["id"] == second["id"]

    def test_move_page_under_descendant(self, client):
        version = _create_version(client)
        parent = _create_page(client, version["id"], "parent")
        child = _create_page(client, version["id"], "child", parent_page_id=parent["id"])
        resp = client.put(f"/pages/{parent['id']}/parent", json={"parent_page_id": child["id"]})
        assert resp.status_code == 400

    def test_display_document(self, client):
        version = _create_version(client)
        page = _create_page(client, version["id"], "intro")
        doc = _create_document(client)
        resp = client.post(f"/pages/{page['id']}/documents", json={"document_id": doc["id"]})
        assert resp.status_code == 201
        assert resp.json()["document_id"] == doc["id"]


# ---------------------------------------------------------------------------
# Tags and search
# ---------------------------------------------------------------------------

class TestTagsAndSearch:
    def test_duplicate_tag(self, client):
        assert client.post("/tags", json={"name": "beta"}).status_code == 201
        resp = client.post("/tags", json={"name": "beta"})
        assert resp.status_code == 409

    def test_search_with_filters(self, client):
        tag = client.post("/tags", json={"name": "beta"}).json()
        tagged = _create_document(client, "Webhooks", "Deliver events over HTTP.")
        _create_document(client, "Webhooks legacy", "Old delivery.")
        client.post(f"/tags/{tag['id']}/entities", json={"entity_id": tagged["id"]})

        everything = client.get("/search", params={"q": "webhooks"}).json()
        assert everything["total"] == 2
        assert everything["limit"] == 20

        filtered = client.get("/search", params={"q": "webhooks", "tags": ["beta"]}).json()
        assert [r["document_id"] for r in filtered["results"]] == [tagged["id"]]
        assert filtered["results"][0]["matched_fields"] == ["title"]

        entities = client.get(f"/tags/{tag['id']}/entities").json()
        assert [e["title"] for e in entities["documents"]] == ["Webhooks"]

    def test_search_requires_query(self, client):
        assert client.get("/search").status_code == 422
