"""Access request HTTP API: submission, admin decisions, admin view and error codes."""
from datetime import datetime, timedelta, timezone

from thesis_hub.models.access_request import AccessRequest, AccessRequestStatus
from thesis_hub.models.notification import Notification
from thesis_hub.services import access_request_service as service
from tests.conftest import create_test_thesis, create_test_user

DAY = timedelta(days=1)


def _setup(client):
    """Helper: creates an admin, a student and a thesis."""
    admin = create_test_user(client, name="Librarian", role="admin")
    student = create_test_user(client, name="Student")
    thesis = create_test_thesis(client, title="IoT Bookshelf")
    return admin, student, thesis


def _submit(client, student, thesis, duration_days=7):
    resp = client.post("/api/access-requests/", json={
        "requester_id": student["user_id"],
        "thesis_id": thesis["thesis_id"],
        "purpose": "research",
        "duration_days": duration_days,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestSubmitAPI:

    def test_submit(self, client):
        _, student, thesis = _setup(client)
        data = _submit(client, student, thesis)
        assert data["status"] == "pending"
        assert data["duration_days"] == 7
        assert data["approved_at"] is None

    def test_submit_unknown_thesis(self, client):
        _, student, _ = _setup(client)
        resp = client.post("/api/access-requests/", json={
            "requester_id": student["user_id"],
            "thesis_id": "missing",
        })
        assert resp.status_code == 404
        assert resp.json()["code"] == "thesis_not_found"

    def test_submit_unknown_requester(self, client):
        _, _, thesis = _setup(client)
        resp = client.post("/api/access-requests/", json={
            "requester_id": "missing",
            "thesis_id": thesis["thesis_id"],
        })
        assert resp.status_code == 404
        assert resp.json()["code"] == "requester_not_found"

    def test_invalid_duration(self, client):
        _, student, thesis = _setup(client)
        resp = client.post("/api/access-requests/", json={
            "requester_id": student["user_id"],
            "thesis_id": thesis["thesis_id"],
            "duration_days": 0,
        })
        assert resp.status_code == 422

    def test_list_filters(self, client):
        admin, student, thesis = _setup(client)
        first = _submit(client, student, thesis)
        _submit(client, student, thesis)
        client.post(f"/api/access-requests/{first['request_id']}/approve", params={"actor_id": admin["user_id"]})

        resp = client.get("/api/access-requests/", params={"status": "pending"})
        assert resp.status_code == 200
        assert len(resp.json()) == 1

        resp = client.get("/api/access-requests/", params={"requester_id": student["user_id"]})
        assert len(resp.json()) == 2


class TestDecisionAPI:

    def test_approve(self, client, db):
        admin, student, thesis = _setup(client)
        req = _submit(client, student, thesis)

        resp = client.post(f"/api/access-requests/{req['request_id']}/approve", params={"actor_id": admin["user_id"]})
        assert resp.status_code == 200
        assert resp.json()["status"] == "approved"
        assert resp.json()["approved_at"] is not None

        notes = db.query(Notification).filter(Notification.user_id == student["user_id"]).all()
        assert len(notes) == 1
        assert notes[0].type.value == "success"

    def test_double_approve_conflict(self, client):
        admin, student, thesis = _setup(client)
        req = _submit(client, student, thesis)
        url = f"/api/access-requests/{req['request_id']}/approve"

        assert client.post(url, params={"actor_id": admin["user_id"]}).status_code == 200
        resp = client.post(url, params={"actor_id": admin["user_id"]})
        assert resp.status_code == 409
        assert resp.json()["code"] == "invalid_transition"

    def test_reject_then_approve(self, client):
        admin, student, thesis = _setup(client)
        req = _submit(client, student, thesis)
        params = {"actor_id": admin["user_id"]}

        resp = client.post(f"/api/access-requests/{req['request_id']}/reject", params=params)
        assert resp.json()["status"] == "rejected"
        resp = client.post(f"/api/access-requests/{req['request_id']}/approve", params=params)
        assert resp.status_code == 409

    def test_remove(self, client):
        admin, student, thesis = _setup(client)
        req = _submit(client, student, thesis)
        params = {"actor_id": admin["user_id"]}

        resp = client.post(f"/api/access-requests/{req['request_id']}/remove", params=params)
        assert resp.status_code == 409

        client.post(f"/api/access-requests/{req['request_id']}/approve", params=params)
        resp = client.post(f"/api/access-requests/{req['request_id']}/remove", params=params)
        assert resp.status_code == 200
        assert resp.json()["status"] == "removed"
        assert resp.json()["removed_at"] is not None

    def test_students_cannot_decide(self, client):
        _, student, thesis = _setup(client)
        req = _submit(client, student, thesis)
        resp = client.post(f"/api/access-requests/{req['request_id']}/approve", params={"actor_id": student["user_id"]})
        assert resp.status_code == 403
        assert resp.json()["code"] == "admin_required"

    def test_unknown_request(self, client):
        admin, _, _ = _setup(client)
        resp = client.post("/api/access-requests/missing/approve", params={"actor_id": admin["user_id"]})
        assert resp.status_code == 404
        assert resp.json()["code"] == "request_not_found"

        assert client.get("/api/access-requests/missing").status_code == 404

    def test_cancel(self, client):
        admin, student, thesis = _setup(client)
        req = _submit(client, student, thesis)

        resp = client.post(f"/api/access-requests/{req['request_id']}/cancel", params={"actor_id": admin["user_id"]})
        assert resp.status_code == 403
        assert resp.json()["code"] == "not_request_owner"

        resp = client.post(f"/api/access-requests/{req['request_id']}/cancel", params={"actor_id": student["user_id"]})
        assert resp.status_code == 200
        assert resp.json()["status"] == "cancelled"


class TestAdminView:

    def test_loading_the_view_runs_the_sweep(self, client, db):
        admin, student, thesis = _setup(client)
        now = datetime.now(timezone.utc)

        overdue = service.submit_request(db, student["user_id"], thesis["thesis_id"], "old", 30, now=now - 40 * DAY)
        service.approve(db, overdue.request_id, now=now - 31 * DAY)
        soon = service.submit_request(db, student["user_id"], thesis["thesis_id"], "soon", 30, now=now - 30 * DAY)
        service.approve(db, soon.request_id, now=now - 28 * DAY)
        fresh = service.submit_request(db, student["user_id"], thesis["thesis_id"], "fresh", 3, now=now - 2 * DAY)
        service.approve(db, fresh.request_id, now=now - DAY)
        waiting = _submit(client, student, thesis)

        resp = client.get("/api/access-requests/admin", params={"actor_id": admin["user_id"]})
        assert resp.status_code == 200
        data = resp.json()

        assert data["sweep"]["expired"] == [overdue.request_id]
        assert data["sweep"]["expiring_soon"] == [soon.request_id]
        assert [r["request_id"] for r in data["pending"]] == [waiting["request_id"]]
        assert [r["request_id"] for r in data["history"]] == [overdue.request_id]
        assert data["history"][0]["status"] == "expired"

        current = {r["request_id"]: r for r in data["current"]}
        assert set(current) == {soon.request_id, fresh.request_id}
        assert current[soon.request_id]["expiry_badge"] == "expiring_soon"
        assert current[soon.request_id]["thesis_title"] == "IoT Bookshelf"
        # requester picked 3 days; the 30 day window still applies
        assert current[fresh.request_id]["days_remaining"] == 29
        assert current[fresh.request_id]["expiry_badge"] == "days_left_green"

        assert data["stats"]["pending"] == 1
        assert data["stats"]["approved"] == 2
        assert data["stats"]["expiring_soon"] == 1

        db.expire_all()
        assert db.get(AccessRequest, overdue.request_id).status == AccessRequestStatus.expired
        admin_notes = db.query(Notification).filter(Notification.user_id == admin["user_id"]).all()
        assert len(admin_notes) == 1
        assert admin_notes[0].access_request_id == soon.request_id

    def test_admin_only(self, client):
        _, student, _ = _setup(client)
        resp = client.get("/api/access-requests/admin", params={"actor_id": student["user_id"]})
        assert resp.status_code == 403

    def test_manual_sweep(self, client, db):
        admin, student, thesis = _setup(client)
        now = datetime.now(timezone.utc)
        req = service.submit_request(db, student["user_id"], thesis["thesis_id"], "old", 7, now=now - 40 * DAY)
        service.approve(db, req.request_id, now=now - 35 * DAY)

        resp = client.post("/api/access-requests/sweep", params={"actor_id": admin["user_id"]})
        assert resp.status_code == 200
        assert resp.json()["expired"] == [req.request_id]

        resp = client.post("/api/access-requests/sweep", params={"actor_id": admin["user_id"]})
        assert resp.json()["expired"] == []
