from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport

from cr_indexer.main import create_app
from cr_indexer.api.dependencies import get_content_repository, get_indexer
from cr_indexer.core.errors import IndexBackendError


@pytest.fixture
def app(repository, indexer):
    app = create_app()
    app.dependency_overrides[get_content_repository] = lambda: repository
    app.dependency_overrides[get_indexer] = lambda: indexer
    yield app
    app.dependency_overrides = {}


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def _save(client, **node):
    resp = client.put("/nodes", json=node)
    assert resp.status_code == 200
    return resp.json()


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_saved_node_is_indexed(client):
    result = _save(client, identity="home", type_name="Acme:Page", properties={"title": "Home"})
    variant = result["details"]["variant_identity"]

    assert result["status"] == "indexed"

    resp = client.get(f"/index/entries/{variant}")
    assert resp.status_code == 200
    entry = resp.json()
    assert entry["node_identity"] == "home"
    assert entry["workspaces"] == ["live"]
    assert entry["fulltext"] == {"h1": "Home"}


def test_child_text_is_aggregated_on_page(client):
    page = _save(client, identity="home", type_name="Acme:Page", properties={"title": "Home"})
    _save(
        client,
        identity="p1",
        type_name="Acme:Text",
        parent_identity="home",
        properties={"text": "<p>hello world</p>"},
    )

    entry = client.get(f"/index/entries/{page['details']['variant_identity']}").json()

    assert entry["fulltext"]["text"] == "hello world"


def test_reparented_node_text_moves_to_new_page(client):
    home = _save(client, identity="home", type_name="Acme:Page", properties={"title": "Home"})
    other = _save(client, identity="other", type_name="Acme:Page", properties={"title": "Other"})
    saved = _save(
        client,
        identity="p1",
        type_name="Acme:Text",
        parent_identity="home",
        properties={"text": "hello"},
    )
    _save(
        client,
        identity="p1",
        type_name="Acme:Text",
        parent_identity="other",
        properties={"text": "moved"},
        persistence_id=saved["details"]["variant_identity"],
    )

    home_entry = client.get(f"/index/entries/{home['details']['variant_identity']}").json()
    other_entry = client.get(f"/index/entries/{other['details']['variant_identity']}").json()

    assert home_entry["fulltext"] == {"h1": "Home"}
    assert other_entry["fulltext"] == {"h1": "Other", "text": "moved"}


def test_removed_node_entry_is_deleted(client):
    saved = _save(client, identity="p1", type_name="Acme:Text", properties={"text": "x"})
    variant = saved["details"]["variant_identity"]

    removed = _save(
        client,
        identity="p1",
        type_name="Acme:Text",
        removed=True,
        persistence_id=variant,
    )

    assert removed["status"] == "removed"
    assert client.get(f"/index/entries/{variant}").status_code == 404


def test_hard_delete(client):
    variant = _save(client, identity="p1", type_name="Acme:Text")["details"]["variant_identity"]

    resp = client.delete(f"/nodes/{variant}")

    assert resp.status_code == 200
    assert client.get(f"/index/entries/{variant}").status_code == 404
    assert client.delete("/nodes/unknown").status_code == 404


def test_unknown_workspace(client):
    resp = client.put("/nodes", json={"identity": "p1", "type_name": "Acme:Text", "workspace": "nope"})

    assert resp.status_code == 404
    assert client.post("/workspaces/nope/rebuild").status_code == 404


def test_workspace_creation_and_rebuild(client):
    resp = client.post("/workspaces", json={"name": "review"})
    assert resp.status_code == 201

    saved = _save(client, identity="home", type_name="Acme:Page", properties={"title": "Home"})
    resp = client.post("/workspaces/review/rebuild")

    assert resp.json()["count"] == 1
    entry = client.get(f"/index/entries/{saved['details']['variant_identity']}").json()
    assert entry["workspaces"] == ["live", "review"]


def test_reindex_and_flush(client):
    _save(client, identity="home", type_name="Acme:Page")

    resp = client.post("/nodes/reindex", json={"identity": "home", "workspace": "live"})
    assert resp.json() == {"status": "indexed", "count": 1, "details": None}

    resp = client.post("/index/flush")
    assert resp.json()["status"] == "flushed"


@pytest.mark.asyncio
async def test_backend_failure_maps_to_502(app):
    failing = MagicMock()
    failing.get_index_client.return_value.find_one_by_variant_identity.side_effect = (
        IndexBackendError("database is down")
    )
    app.dependency_overrides[get_indexer] = lambda: failing

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        resp = await ac.get("/index/entries/v1")

    assert resp.status_code == 502
    assert resp.json()["error"] == "index_backend_error"
