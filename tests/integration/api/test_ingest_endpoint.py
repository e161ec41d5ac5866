"""Integration tests for the ingestion HTTP endpoint"""

import json

import pytest
from fastapi.testclient import TestClient

from postingest.api.app import create_app
from postingest.config import Settings
from postingest.errors import PersistenceError


SECRET = "s3cret"
URL = "/api/ingest"
AUTH = {"x-ingest-secret": SECRET}


@pytest.fixture(name="settings")
def settings_fixture():
    return Settings(backend="memory", ingest_secret=SECRET)


@pytest.fixture(name="client")
def client_fixture(settings, store):
    return TestClient(create_app(settings=settings, store=store))


def test_ingest_returns_document_id(client, payload, memory_store):
    response = client.post(URL, json=payload, headers=AUTH)
    assert response.status_code == 200
    assert response.json() == {"ok": True, "id": "post-loja-virtual-guia"}
    assert memory_store.get("post-loja-virtual-guia")["title"] == payload["title"]


def test_ingest_twice_is_idempotent(client, payload, memory_store):
    first = client.post(URL, json=payload, headers=AUTH).json()
    created = memory_store.get(first["id"])["createdAt"]
    second = client.post(URL, json={**payload, "excerpt": "v2"}, headers=AUTH).json()
    assert second["id"] == first["id"]
    assert len(memory_store.list_all("post")) == 1
    assert memory_store.get(first["id"])["createdAt"] == created


def test_ingest_accepts_json_encoded_string_body(client, payload):
    response = client.post(URL, content=json.dumps(json.dumps(payload)), headers=AUTH)
    assert response.status_code == 200
    assert response.json()["id"] == "post-loja-virtual-guia"


def test_ingest_invalid_json(client, store):
    response = client.post(URL, content="{broken", headers={**AUTH, "content-type": "application/json"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON body"}
    assert store.method_calls == []


def test_ingest_excessively_nested_body(client, store):
    body = '{"title": "t", "siteDomain": "d", "body": ' + "[" * 100000 + "]" * 100000 + "}"
    response = client.post(URL, content=body, headers={**AUTH, "content-type": "application/json"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON body"}
    assert store.method_calls == []


@pytest.mark.parametrize("headers", [{}, {"x-ingest-secret": "wrong"}, {"x-ingest-secret": ""}])
def test_ingest_rejects_bad_secret_without_store_calls(client, store, payload, headers):
    response = client.post(URL, json=payload, headers=headers)
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    assert store.method_calls == []


def test_ingest_blank_title_rejected_before_store(client, store, payload):
    response = client.post(URL, json={**payload, "title": "   "}, headers=AUTH)
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "title and siteDomain required"
    assert body["details"] == [{"field": "title", "message": "title is required"}]
    assert store.method_calls == []


def test_ingest_empty_body_rejected(client):
    response = client.post(URL, headers=AUTH)
    assert response.status_code == 400


def test_ingest_non_post_method(client):
    assert client.get(URL).status_code == 405
    assert client.put(URL, json={}).status_code == 405


def test_ingest_missing_configuration(store, payload):
    client = TestClient(create_app(settings=Settings(), store=store))
    response = client.post(URL, json=payload, headers=AUTH)
    assert response.status_code == 500
    assert response.json() == {"error": "Missing configuration: project_id, dataset, token, ingest_secret"}
    assert store.method_calls == []


def test_ingest_loads_settings_from_env(monkeypatch, store, payload):
    """Legacy env names configure the app when no Settings are injected."""
    monkeypatch.setenv("POSTINGEST_BACKEND", "memory")
    monkeypatch.setenv("INGEST_SECRET", SECRET)
    client = TestClient(create_app(store=store))
    assert client.post(URL, json=payload, headers=AUTH).status_code == 200


def test_ingest_invalid_setting_is_reported(monkeypatch, store, payload):
    monkeypatch.setenv("POSTINGEST_BACKEND", "mongo")
    client = TestClient(create_app(store=store))
    response = client.post(URL, json=payload, headers=AUTH)
    assert response.status_code == 500
    assert response.json() == {"error": "Invalid configuration: backend"}
    assert store.method_calls == []


def test_ingest_persistence_failure(client, store, payload):
    store.patch.side_effect = PersistenceError("Store error 503: unavailable")
    response = client.post(URL, json=payload, headers=AUTH)
    assert response.status_code == 500
    assert response.json() == {"error": "Store error 503: unavailable"}


def test_custom_secret_header(store, payload):
    settings = Settings(backend="memory", ingest_secret=SECRET, secret_header="x-custom-secret")
    client = TestClient(create_app(settings=settings, store=store))
    assert client.post(URL, json=payload, headers=AUTH).status_code == 401
    assert client.post(URL, json=payload, headers={"x-custom-secret": SECRET}).status_code == 200


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "OK"


# --- cleanup ---

CLEANUP_URL = "/api/cleanup"


def test_cleanup_unsets_legacy_fields(client, payload, memory_store):
    doc_id = client.post(URL, json=payload, headers=AUTH).json()["id"]
    response = client.post(CLEANUP_URL, headers={"x-cleanup-secret": SECRET})
    assert response.status_code == 200
    assert response.json() == {"ok": True, "processed": [{"id": doc_id, "status": "ok"}]}
    post = memory_store.get(doc_id)
    assert "excerpt" not in post and "site" not in post
    assert post["title"] == payload["title"]


def test_cleanup_accepts_secret_query_param(client):
    response = client.post(CLEANUP_URL, params={"secret": SECRET})
    assert response.status_code == 200
    assert response.json() == {"ok": True, "processed": []}


@pytest.mark.parametrize("kwargs", [{}, {"headers": {"x-cleanup-secret": "wrong"}}, {"headers": AUTH}])
def test_cleanup_rejects_bad_secret_without_store_calls(client, store, kwargs):
    response = client.post(CLEANUP_URL, **kwargs)
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    assert store.method_calls == []


def test_cleanup_reports_per_document_failures(client, store, payload):
    doc_id = client.post(URL, json=payload, headers=AUTH).json()["id"]
    store.patch.side_effect = PersistenceError("Store error 409: conflict")
    response = client.post(CLEANUP_URL, headers={"x-cleanup-secret": SECRET})
    assert response.status_code == 200
    assert response.json()["processed"] == [
        {"id": doc_id, "status": "error", "message": "Store error 409: conflict"},
    ]
