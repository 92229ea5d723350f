import pytest
from fastapi.testclient import TestClient

from campaign_stats.auth import issue_token
from campaign_stats.counters import get_campaign_source, get_counters_store
from campaign_stats.main import app
from campaign_stats.repository import get_campaign_repository
from campaign_stats.services.audit import get_audit_writer
from campaign_stats.services.change_dispatch import get_dispatcher

from fakes import InMemoryCampaignSource, InMemoryCountersStore


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


ADMIN = bearer(issue_token("admin-1", admin=True))
SUPERADMIN = bearer(issue_token("root-1", role="superadmin"))
STAFF = bearer(issue_token("staff-1"))


@pytest.fixture
def stores():
    return {
        "source": InMemoryCampaignSource([
            {"is_published": True, "reach": 10, "clicks": 2, "likes": 1},
            {"is_published": False, "reach": 5},
        ]),
        "store": InMemoryCountersStore({"total": 40, "active": 40, "reach": 999}),
    }


@pytest.fixture
def client(stores, repository, dispatcher, audit):
    app.dependency_overrides[get_campaign_source] = lambda: stores["source"]
    app.dependency_overrides[get_counters_store] = lambda: stores["store"]
    app.dependency_overrides[get_campaign_repository] = lambda: repository
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_audit_writer] = lambda: audit
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestAdminRecompute:
    def test_admin_recomputes(self, client, stores):
        response = client.post("/api/admin/stats/recompute", headers=ADMIN)
        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["counters"]["total"] == 2
        assert body["counters"]["active"] == 1
        assert body["counters"]["draft"] == 1
        assert body["counters"]["reach"] == 15
        assert stores["store"].document["total"] == 2

    def test_role_claim_is_accepted(self, client):
        response = client.post("/api/admin/stats/recompute", headers=SUPERADMIN)
        assert response.status_code == 200

    def test_non_admin_is_rejected_without_side_effects(self, client, stores):
        response = client.post("/api/admin/stats/recompute", headers=STAFF)
        assert response.status_code == 403
        assert response.json()["error"] == "permission-denied"
        assert stores["store"].writes == []
        assert stores["source"].scan_calls == 0

    def test_missing_token_is_unauthenticated(self, client, stores):
        response = client.post("/api/admin/stats/recompute")
        assert response.status_code == 401
        assert response.json()["error"] == "unauthenticated"
        assert stores["store"].writes == []

    def test_tampered_token_is_unauthenticated(self, client):
        token = issue_token("admin-1", admin=True) + "x"
        response = client.post("/api/admin/stats/recompute", headers=bearer(token))
        assert response.status_code == 401

    def test_scan_failure_returns_unavailable(self, client, stores):
        stores["source"].scan_error = ConnectionError("cursor lost")
        response = client.post("/api/admin/stats/recompute", headers=ADMIN)
        assert response.status_code == 503
        assert stores["store"].document == {"total": 40, "active": 40, "reach": 999}


class TestStatsRead:
    def test_missing_keys_read_as_zero(self, client):
        response = client.get("/api/stats/campaigns", headers=STAFF)
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 40
        assert body["archived"] == 0
        assert body["likes"] == 0
        assert "updatedAt" in body

    def test_requires_authentication(self, client):
        assert client.get("/api/stats/campaigns").status_code == 401


class TestCampaignWrites:
    def test_create_dispatches_change_event(self, client, repository, dispatcher):
        response = client.post(
            "/api/campaigns",
            json={"campaign_id": "c1", "title": "Summer UGC", "reach": 10, "clicks": 2, "likes": 1},
            headers=STAFF,
        )
        assert response.status_code == 200
        assert response.json()["campaign_id"] == "c1"
        assert repository.records["c1"]["created_by_uid"] == "staff-1"

        campaign_id, before, after, actor = dispatcher.events[0]
        assert (campaign_id, before, actor) == ("c1", None, "staff-1")
        assert after["reach"] == 10

    def test_create_generates_an_id(self, client, repository):
        response = client.post("/api/campaigns", json={"title": "No id given"}, headers=STAFF)
        assert response.json()["campaign_id"].startswith("campaign_")

    def test_create_validates_title_and_window(self, client, dispatcher):
        short = client.post("/api/campaigns", json={"title": "ab"}, headers=STAFF)
        assert short.status_code == 422
        backwards = client.post(
            "/api/campaigns",
            json={"title": "Backwards", "start_at": "2025-08-02T00:00:00Z", "end_at": "2025-08-01T00:00:00Z"},
            headers=STAFF,
        )
        assert backwards.status_code == 422
        assert backwards.json()["detail"] == "End must be after start."
        assert dispatcher.events == []

    def test_update_dispatches_before_and_after(self, client, repository, dispatcher):
        client.post("/api/campaigns", json={"campaign_id": "c1", "title": "Summer UGC"}, headers=STAFF)
        response = client.patch("/api/campaigns/c1", json={"likes": 4}, headers=STAFF)
        assert response.status_code == 200

        _, before, after, _ = dispatcher.events[-1]
        assert before["likes"] == 0
        assert after["likes"] == 4

    def test_update_missing_campaign(self, client):
        response = client.patch("/api/campaigns/nope", json={"likes": 4}, headers=STAFF)
        assert response.status_code == 404

    def test_publish_requires_admin(self, client, dispatcher):
        client.post("/api/campaigns", json={"campaign_id": "c1", "title": "Summer UGC"}, headers=STAFF)
        response = client.post("/api/campaigns/c1/publish", json={"publish": True}, headers=STAFF)
        assert response.status_code == 403
        assert len(dispatcher.events) == 1

    def test_publish_returns_derived_status_and_audits(self, client, dispatcher, audit):
        client.post("/api/campaigns", json={"campaign_id": "c1", "title": "Summer UGC"}, headers=STAFF)
        response = client.post("/api/campaigns/c1/publish", json={"publish": True}, headers=ADMIN)
        assert response.json() == {"ok": True, "status": "active"}

        _, before, after, _ = dispatcher.events[-1]
        assert before["is_published"] is False
        assert after["is_published"] is True
        assert audit.entries[-1]["action"] == "publish"
        assert audit.entries[-1]["actor_uid"] == "admin-1"

    def test_publish_missing_campaign(self, client):
        response = client.post("/api/campaigns/nope/publish", json={"publish": True}, headers=ADMIN)
        assert response.status_code == 404

    def test_hard_delete(self, client, repository, dispatcher, audit):
        client.post("/api/campaigns", json={"campaign_id": "c1", "title": "Summer UGC"}, headers=STAFF)
        response = client.delete("/api/campaigns/c1", headers=STAFF)
        assert response.json() == {"ok": True, "deleted": True}
        assert "c1" not in repository.records

        campaign_id, before, after, _ = dispatcher.events[-1]
        assert campaign_id == "c1" and before["title"] == "Summer UGC" and after is None
        assert audit.entries[-1]["action"] == "campaign_hard_delete"

    def test_hard_delete_missing_campaign(self, client, dispatcher):
        response = client.delete("/api/campaigns/nope", headers=STAFF)
        assert response.json() == {"ok": True, "deleted": False}
        assert dispatcher.events == []

    def test_campaign_status(self, client):
        client.post(
            "/api/campaigns",
            json={"campaign_id": "c1", "title": "Future", "is_published": True, "start_at": "2999-01-01T00:00:00Z"},
            headers=STAFF,
        )
        response = client.get("/api/campaigns/c1/status", headers=STAFF)
        assert response.json() == {"campaign_id": "c1", "status": "scheduled"}
