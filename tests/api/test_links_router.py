"""Tests for the links and health routers (FastAPI TestClient over a SQLite file)."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from linkspine.api import create_app
from linkspine.api.middleware.errors import status_for_error_code
from linkspine.api.routers.links import PostedLinkSchema, SaveLinksBody
from linkspine.core.settings import LinkSpineSettings

BASE = "/api/v1/products"


@pytest.fixture
def client(db_path):
    app = create_app(settings=LinkSpineSettings(_env_file=None, database_path=db_path))
    with TestClient(app) as c:
        yield c


class TestGetLinks:
    def test_position_sorted_items_with_map_qty(self, client):
        response = client.get(f"{BASE}/1/links/partlists")
        assert response.status_code == 200
        body = response.json()
        assert [(i["product"]["sku"], i["qty"], i["position"]) for i in body["items"]] == [
            ("WASHER-M4", 0.0, 0),
            ("BOLT-M4", 2.5, 1),
            ("NUT-M4", 4.0, 2),
        ]
        assert body["items"][1]["product"] == {"id": 2, "sku": "BOLT-M4", "type_id": "simple", "name": "Bolt M4"}
        assert body["warnings"] == []

    def test_other_kind(self, client):
        body = client.get(f"{BASE}/1/links/related").json()
        assert [i["product"]["id"] for i in body["items"]] == [9]

    def test_store_id_echoed(self, client):
        assert client.get(f"{BASE}/1/links/partlists", params={"store_id": 3}).json()["metadata"] == {"store_id": 3}

    def test_unknown_source_is_empty(self, client):
        response = client.get(f"{BASE}/404/links/partlists")
        assert response.status_code == 200
        assert response.json()["items"] == []

    def test_unknown_kind(self, client):
        response = client.get(f"{BASE}/1/links/nope")
        assert response.status_code == 400
        body = response.json()
        assert body["detail"] == "VALIDATION_FAILED"
        assert body["status"] == 400

    def test_non_integer_source(self, client):
        assert client.get(f"{BASE}/abc/links/partlists").status_code == 422


class TestSaveLinks:
    def test_replace(self, client):
        response = client.put(
            f"{BASE}/1/links/partlists",
            json={"links": [{"id": 2, "qty": 3, "position": 1}, {"id": None, "qty": 9}, {"id": 9}]},
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["written"] == 2
        assert [(l["linked_sku"], l["qty"], l["position"]) for l in data["links"]] == [
            ("BOLT-M4", 3.0, 1),
            ("SPACER-10", 0.0, 0),
        ]

        items = client.get(f"{BASE}/1/links/partlists").json()["items"]
        assert [i["product"]["id"] for i in items] == [9, 2]
        related = client.get(f"{BASE}/1/links/related").json()["items"]
        assert [i["product"]["id"] for i in related] == [9]

    def test_empty_list_clears(self, client):
        assert client.put(f"{BASE}/1/links/partlists", json={"links": []}).status_code == 200
        assert client.get(f"{BASE}/1/links/partlists").json()["items"] == []

    def test_missing_links_field_changes_nothing(self, client):
        response = client.put(f"{BASE}/1/links/partlists", json={})
        assert response.status_code == 200
        assert response.json()["data"]["written"] == 0
        assert [i["product"]["id"] for i in client.get(f"{BASE}/1/links/partlists").json()["items"]] == [8, 2, 5]

    def test_unknown_linked_id(self, client):
        response = client.put(f"{BASE}/1/links/partlists", json={"links": [{"id": 404, "qty": 1}]})
        assert response.status_code == 400
        body = response.json()
        assert body["title"] == "Linked product 404 does not exist"
        assert body["context"]["linked_id"] == 404
        assert body["errors"][0]["code"] == "VALIDATION_FAILED"

        # nothing was written
        assert len(client.get(f"{BASE}/1/links/partlists").json()["items"]) == 3

    def test_unknown_source(self, client):
        response = client.put(f"{BASE}/404/links/partlists", json={"links": [{"id": 2}]})
        assert response.status_code == 404
        assert response.json()["detail"] == "NOT_FOUND"


class TestHealth:
    def test_health(self, client):
        body = client.get("/api/v1/health").json()
        assert body["status"] == "healthy"
        assert body["database"] is True


class TestSchemas:
    def test_posted_link_defaults(self):
        row = PostedLinkSchema()
        assert row.id is None and row.qty is None and row.position is None

    def test_body_without_links_is_none(self):
        assert SaveLinksBody().links is None
        assert SaveLinksBody(links=[]).links == []

    @pytest.mark.parametrize(
        ("code", "status"),
        [("NOT_FOUND", 404), ("VALIDATION_FAILED", 400), ("UNAVAILABLE", 503), ("INTERNAL", 500), ("OTHER", 500)],
    )
    def test_status_for_error_code(self, code, status):
        assert status_for_error_code(code) == status
