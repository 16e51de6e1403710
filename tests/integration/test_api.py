"""
Integration tests for the HTTP API.

Tests cover:
- Bot lifecycle over HTTP (initialize, patch, promote, plan)
- Error status mapping (400, 404, 409, 422)
- Stateless compile endpoint
"""

import pytest
from fastapi.testclient import TestClient

from flowkit.adapter import default_adapters
from flowkit.api import create_app
from flowkit.component import default_registry
from flowkit.config import Settings
from flowkit.store import AtomicStore, InMemoryDesignRepository
from tests.factories import make_design, message_node

BOT = "support-bot"


def _replace_bye(text):
    return [{"op": "replace", "path": "/graph/nodes/1/props/text", "value": text}]


@pytest.fixture
def client():
    store = AtomicStore(InMemoryDesignRepository(), default_registry(), default_adapters())
    app = create_app(store=store, settings=Settings(cors_origins=[]))
    return TestClient(app)


@pytest.fixture
def bot(client):
    response = client.post(f"/api/v1/bots/{BOT}", json={"document": make_design()})
    assert response.status_code == 201
    return response.json()


class TestServiceEndpoints:
    """Tests for /health and /api."""

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy", "service": "flowkit"}

    def test_api_info(self, client):
        data = client.get("/api").json()

        assert data["service"] == "flowkit"
        assert data["channels"] == ["whatsapp"]
        assert "message" in data["component_kinds"]
        assert data["default_channel"] == "whatsapp"


class TestBotLifecycle:
    """Tests for the /bots endpoints."""

    def test_initialize(self, client, bot):
        assert bot["plan"]["adapter"] == "whatsapp"
        assert bot["plan"]["plan_id"] == f"{bot['version_id']}-whatsapp"
        assert bot["checksum"].startswith("sha256:")

    def test_initialize_twice(self, client, bot):
        response = client.post(f"/api/v1/bots/{BOT}", json={"document": make_design()})

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "BOT_EXISTS"

    def test_get_draft(self, client, bot):
        data = client.get(f"/api/v1/bots/{BOT}/draft").json()

        assert data["version_id"] == bot["version_id"]
        assert data["status"] == "development"
        assert data["document"]["bot"]["id"] == "support-bot"

    def test_get_draft_unknown_bot(self, client):
        response = client.get("/api/v1/bots/ghost/draft")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "DRAFT_NOT_FOUND"

    def test_apply_patch(self, client, bot):
        response = client.patch(f"/api/v1/bots/{BOT}/draft", json={
            "patch": _replace_bye("See you"),
            "expected_version_id": bot["version_id"],
        })

        assert response.status_code == 200
        data = response.json()
        assert data["version_id"] != bot["version_id"]
        draft = client.get(f"/api/v1/bots/{BOT}/draft").json()
        assert draft["document"]["graph"]["nodes"][1]["props"]["text"] == "See you"

    def test_apply_stale_version(self, client, bot):
        client.patch(f"/api/v1/bots/{BOT}/draft", json={"patch": _replace_bye("One")})
        response = client.patch(f"/api/v1/bots/{BOT}/draft", json={
            "patch": _replace_bye("Two"),
            "expected_version_id": bot["version_id"],
        })

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "CONCURRENCY_CONFLICT"

    def test_apply_bad_patch(self, client, bot):
        response = client.patch(f"/api/v1/bots/{BOT}/draft", json={
            "patch": [{"op": "remove", "path": "/graph/nodes/9"}],
        })

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "PATCH_ERROR"

    def test_apply_blocking_issues(self, client, bot):
        response = client.patch(f"/api/v1/bots/{BOT}/draft", json={
            "patch": [{"op": "add", "path": "/graph/edges/-", "value": {"from": "welcome", "to": "ghost"}}],
        })

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["code"] == "VALIDATION_FAILED"
        assert [i["code"] for i in detail["issues"]] == ["topology.reference.invalid_to"]
        assert client.get(f"/api/v1/bots/{BOT}/draft").json()["version_id"] == bot["version_id"]

    def test_versions_and_promote(self, client, bot):
        latest = client.patch(f"/api/v1/bots/{BOT}/draft", json={"patch": _replace_bye("Bye")}).json()

        response = client.post(f"/api/v1/bots/{BOT}/promote", json={"version_id": bot["version_id"]})
        assert response.json() == {"bot_id": BOT, "production_version_id": bot["version_id"]}

        versions = client.get(f"/api/v1/bots/{BOT}/versions").json()["versions"]
        assert [v["version_id"] for v in versions] == [bot["version_id"], latest["version_id"]]
        assert [v["status"] for v in versions] == ["production", "development"]
        assert client.get(f"/api/v1/bots/{BOT}/production").json()["version_id"] == bot["version_id"]

    def test_promote_unknown_version(self, client, bot):
        response = client.post(f"/api/v1/bots/{BOT}/promote", json={"version_id": "missing"})

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "PROMOTION_NOT_FOUND"

    def test_no_production(self, client, bot):
        response = client.get(f"/api/v1/bots/{BOT}/production")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "NO_PRODUCTION"

    def test_plan(self, client, bot):
        data = client.get(f"/api/v1/bots/{BOT}/plan").json()

        assert data["plan_id"] == f"{bot['version_id']}-whatsapp"
        assert [r["node"] for r in data["routes"]] == ["welcome", "bye"]

    def test_plan_unknown_channel(self, client, bot):
        response = client.get(f"/api/v1/bots/{BOT}/plan", params={"channel": "telegram"})

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "ADAPTER_NOT_FOUND"


class TestCompileEndpoint:
    """Tests for POST /compile."""

    def test_valid(self, client):
        data = client.post("/api/v1/compile", json={"document": make_design()}).json()

        assert data["valid"] is True
        assert data["plan"]["plan_id"] == "v1-whatsapp"

    def test_invalid_returns_issues(self, client):
        raw = make_design(entries=[])
        data = client.post("/api/v1/compile", json={"document": raw}).json()

        assert data["valid"] is False
        assert "topology.start.global_missing" in [i["code"] for i in data["issues"]]

    def test_unknown_kind(self, client):
        raw = make_design(nodes=[message_node("a", "Hi"), {"id": "b", "kind": "hologram"}])
        response = client.post("/api/v1/compile", json={"document": raw})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "UNKNOWN_KIND"

    def test_nothing_stored(self, client):
        client.post("/api/v1/compile", json={"document": make_design()})
        assert client.get(f"/api/v1/bots/{BOT}/versions").json()["versions"] == []
