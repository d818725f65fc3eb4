import pytest
from httpx import AsyncClient
from sqlalchemy import select

from cmspro.models.complaint import Complaint, ComplaintCategory, ComplaintStatus
from cmspro.models.system_setting import SystemSetting, SYSTEM_ONLINE_KEY


async def file_complaint(client: AsyncClient, headers: dict, data: dict) -> dict:
    response = await client.post("/api/complaints", json=data, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def set_offline(db_session) -> None:
    # Filing a complaint has usually created the row already
    setting = await db_session.scalar(
        select(SystemSetting).where(SystemSetting.key == SYSTEM_ONLINE_KEY)
    )
    if setting is None:
        db_session.add(SystemSetting(key=SYSTEM_ONLINE_KEY, value=False))
    else:
        setting.value = False
    await db_session.commit()


class TestCreateComplaint:
    """POST /api/complaints"""

    @pytest.mark.asyncio
    async def test_create_complaint(self, client: AsyncClient, auth_headers, submitter, complaint_data):
        complaint = await file_complaint(client, auth_headers, complaint_data)

        assert complaint["title"] == complaint_data["title"]
        assert complaint["status"] == "Pending"
        assert complaint["priority"] == "High"
        assert complaint["category"] == "Technical"
        assert complaint["user_id"] == submitter.id
        assert complaint["owner"]["email"] == submitter.email
        assert complaint["resolution"] is None

    @pytest.mark.asyncio
    async def test_priority_defaults_to_medium(self, client: AsyncClient, auth_headers, complaint_data):
        del complaint_data["priority"]

        complaint = await file_complaint(client, auth_headers, complaint_data)

        assert complaint["priority"] == "Medium"

    @pytest.mark.asyncio
    async def test_title_is_trimmed(self, client: AsyncClient, auth_headers, complaint_data):
        complaint_data["title"] = "   Broken projector   "

        complaint = await file_complaint(client, auth_headers, complaint_data)

        assert complaint["title"] == "Broken projector"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field,value", [
        ("title", ""),
        ("title", "x" * 101),
        ("description", "   "),
        ("category", "Food"),
        ("priority", "Urgent"),
    ])
    async def test_invalid_fields(self, client: AsyncClient, auth_headers, complaint_data, field, value):
        complaint_data[field] = value

        response = await client.post("/api/complaints", json=complaint_data, headers=auth_headers)

        assert response.status_code == 400
        body = response.json()
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["error"]["details"]["field"] == field

    @pytest.mark.asyncio
    async def test_requires_authentication(self, client: AsyncClient, complaint_data):
        response = await client.post("/api/complaints", json=complaint_data)

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_refused_while_offline(self, client: AsyncClient, auth_headers, complaint_data, db_session):
        await set_offline(db_session)

        response = await client.post("/api/complaints", json=complaint_data, headers=auth_headers)

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "SYSTEM_OFFLINE"


class TestListAndGet:
    """GET /api/complaints and /api/complaints/{id}"""

    @pytest.mark.asyncio
    async def test_submitter_sees_only_own(
        self, client: AsyncClient, auth_headers, other_auth_headers, complaint_data
    ):
        mine = await file_complaint(client, auth_headers, complaint_data)
        await file_complaint(client, other_auth_headers, complaint_data)

        response = await client.get("/api/complaints", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 1
        assert body["data"][0]["id"] == mine["id"]

    @pytest.mark.asyncio
    async def test_admin_sees_all_newest_first(
        self, client: AsyncClient, auth_headers, other_auth_headers, admin_auth_headers, complaint_data
    ):
        first = await file_complaint(client, auth_headers, complaint_data)
        second = await file_complaint(client, other_auth_headers, complaint_data)

        response = await client.get("/api/complaints", headers=admin_auth_headers)

        body = response.json()
        assert body["count"] == 2
        assert [c["id"] for c in body["data"]] == [second["id"], first["id"]]
        assert all(c["owner"]["name"] for c in body["data"])

    @pytest.mark.asyncio
    async def test_get_own_complaint(self, client: AsyncClient, auth_headers, complaint_data):
        created = await file_complaint(client, auth_headers, complaint_data)

        response = await client.get(f"/api/complaints/{created['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["id"] == created["id"]

    @pytest.mark.asyncio
    async def test_get_someone_elses_complaint(
        self, client: AsyncClient, auth_headers, other_auth_headers, complaint_data
    ):
        created = await file_complaint(client, auth_headers, complaint_data)

        response = await client.get(f"/api/complaints/{created['id']}", headers=other_auth_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_can_get_any(self, client: AsyncClient, auth_headers, admin_auth_headers, complaint_data):
        created = await file_complaint(client, auth_headers, complaint_data)

        response = await client.get(f"/api/complaints/{created['id']}", headers=admin_auth_headers)

        assert response.status_code == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize("complaint_id", ["not-a-uuid", "00000000-0000-0000-0000-000000000000"])
    async def test_get_missing(self, client: AsyncClient, auth_headers, complaint_id):
        response = await client.get(f"/api/complaints/{complaint_id}", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "COMPLAINT_NOT_FOUND"


class TestAdminTransition:
    """PUT /api/complaints/{id}"""

    @pytest.mark.asyncio
    async def test_admin_resolves_complaint(
        self, client: AsyncClient, auth_headers, admin_auth_headers, complaint_data
    ):
        created = await file_complaint(client, auth_headers, complaint_data)

        response = await client.put(
            f"/api/complaints/{created['id']}",
            json={"status": "Resolved", "resolution": "Replaced the bulb"},
            headers=admin_auth_headers
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "Resolved"
        assert data["resolution"] == "Replaced the bulb"
        assert data["priority"] == created["priority"]

    @pytest.mark.asyncio
    async def test_any_status_may_follow_any_other(
        self, client: AsyncClient, auth_headers, admin_auth_headers, complaint_data
    ):
        created = await file_complaint(client, auth_headers, complaint_data)
        url = f"/api/complaints/{created['id']}"

        for status in ["Rejected", "Pending", "In Progress", "Resolved", "In Progress"]:
            response = await client.put(url, json={"status": status}, headers=admin_auth_headers)
            assert response.status_code == 200
            assert response.json()["data"]["status"] == status

    @pytest.mark.asyncio
    async def test_submitter_cannot_transition(self, client: AsyncClient, auth_headers, complaint_data):
        created = await file_complaint(client, auth_headers, complaint_data)

        response = await client.put(
            f"/api/complaints/{created['id']}",
            json={"status": "Resolved"},
            headers=auth_headers
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_rejects_owner_fields(
        self, client: AsyncClient, auth_headers, admin_auth_headers, complaint_data
    ):
        created = await file_complaint(client, auth_headers, complaint_data)

        response = await client.put(
            f"/api/complaints/{created['id']}",
            json={"title": "Rewritten"},
            headers=admin_auth_headers
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_works_while_offline(
        self, client: AsyncClient, auth_headers, admin_auth_headers, complaint_data, db_session
    ):
        created = await file_complaint(client, auth_headers, complaint_data)
        await set_offline(db_session)

        response = await client.put(
            f"/api/complaints/{created['id']}",
            json={"status": "In Progress"},
            headers=admin_auth_headers
        )

        assert response.status_code == 200


class TestOwnerEdit:
    """PUT /api/complaints/{id}/update"""

    @pytest.mark.asyncio
    async def test_owner_edits_pending_complaint(self, client: AsyncClient, auth_headers, complaint_data):
        created = await file_complaint(client, auth_headers, complaint_data)

        response = await client.put(
            f"/api/complaints/{created['id']}/update",
            json={"title": "Wifi down in block C", "category": "Hostel"},
            headers=auth_headers
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["title"] == "Wifi down in block C"
        assert data["category"] == "Hostel"
        assert data["description"] == complaint_data["description"]

    @pytest.mark.asyncio
    async def test_cannot_edit_once_processed(
        self, client: AsyncClient, auth_headers, admin_auth_headers, complaint_data
    ):
        created = await file_complaint(client, auth_headers, complaint_data)
        await client.put(
            f"/api/complaints/{created['id']}",
            json={"status": "In Progress"},
            headers=admin_auth_headers
        )

        response = await client.put(
            f"/api/complaints/{created['id']}/update",
            json={"title": "Too late"},
            headers=auth_headers
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"]["code"] == "INVALID_STATE"
        assert body["error"]["details"]["current_state"] == "In Progress"

    @pytest.mark.asyncio
    async def test_only_owner_may_edit(
        self, client: AsyncClient, auth_headers, other_auth_headers, admin_auth_headers, complaint_data
    ):
        created = await file_complaint(client, auth_headers, complaint_data)
        url = f"/api/complaints/{created['id']}/update"

        other = await client.put(url, json={"title": "Mine now"}, headers=other_auth_headers)
        admin = await client.put(url, json={"title": "Mine now"}, headers=admin_auth_headers)

        assert other.status_code == 403
        assert admin.status_code == 403

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"status": "Resolved"},
        {"resolution": "done"},
        {"user_id": "00000000-0000-0000-0000-000000000000"},
        {},
        {"title": None},
    ])
    async def test_rejects_disallowed_fields(self, client: AsyncClient, auth_headers, complaint_data, payload):
        created = await file_complaint(client, auth_headers, complaint_data)

        response = await client.put(
            f"/api/complaints/{created['id']}/update",
            json=payload,
            headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_refused_while_offline(self, client: AsyncClient, auth_headers, complaint_data, db_session):
        created = await file_complaint(client, auth_headers, complaint_data)
        await set_offline(db_session)

        response = await client.put(
            f"/api/complaints/{created['id']}/update",
            json={"title": "Offline edit"},
            headers=auth_headers
        )

        assert response.status_code == 503


class TestDeleteComplaint:
    """DELETE /api/complaints/{id}"""

    @pytest.mark.asyncio
    async def test_owner_deletes(self, client: AsyncClient, auth_headers, complaint_data, db_session):
        created = await file_complaint(client, auth_headers, complaint_data)

        response = await client.delete(f"/api/complaints/{created['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert await db_session.get(Complaint, created["id"]) is None

    @pytest.mark.asyncio
    async def test_admin_deletes_resolved(
        self, client: AsyncClient, auth_headers, admin_auth_headers, complaint_data
    ):
        created = await file_complaint(client, auth_headers, complaint_data)
        url = f"/api/complaints/{created['id']}"
        await client.put(url, json={"status": "Resolved"}, headers=admin_auth_headers)

        response = await client.delete(url, headers=admin_auth_headers)

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_other_submitter_cannot_delete(
        self, client: AsyncClient, auth_headers, other_auth_headers, complaint_data
    ):
        created = await file_complaint(client, auth_headers, complaint_data)

        response = await client.delete(f"/api/complaints/{created['id']}", headers=other_auth_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_owner_refused_while_offline(
        self, client: AsyncClient, auth_headers, admin_auth_headers, complaint_data, db_session
    ):
        created = await file_complaint(client, auth_headers, complaint_data)
        await set_offline(db_session)
        url = f"/api/complaints/{created['id']}"

        owner = await client.delete(url, headers=auth_headers)
        admin = await client.delete(url, headers=admin_auth_headers)

        assert owner.status_code == 503
        assert admin.status_code == 200


class TestStats:
    """GET /api/complaints/stats"""

    @pytest.mark.asyncio
    async def test_counts_are_zero_filled(
        self, client: AsyncClient, auth_headers, admin_auth_headers, complaint_data
    ):
        created = await file_complaint(client, auth_headers, complaint_data)
        await file_complaint(client, auth_headers, {**complaint_data, "category": "Hostel", "priority": "Low"})
        await client.put(
            f"/api/complaints/{created['id']}",
            json={"status": "Resolved"},
            headers=admin_auth_headers
        )

        response = await client.get("/api/complaints/stats", headers=admin_auth_headers)

        assert response.status_code == 200
        stats = response.json()["data"]
        assert stats["total"] == 2
        assert stats["status"] == {s.value: 0 for s in ComplaintStatus} | {"Pending": 1, "Resolved": 1}
        assert stats["priority"] == {"Low": 1, "Medium": 0, "High": 1}
        assert set(stats["category"]) == {c.value for c in ComplaintCategory}
        assert stats["category"]["Technical"] == 1
        assert stats["category"]["Hostel"] == 1

    @pytest.mark.asyncio
    async def test_empty_stats(self, client: AsyncClient, admin_auth_headers):
        response = await client.get("/api/complaints/stats", headers=admin_auth_headers)

        stats = response.json()["data"]
        assert stats["total"] == 0
        assert sum(stats["status"].values()) == 0

    @pytest.mark.asyncio
    async def test_submitter_forbidden(self, client: AsyncClient, auth_headers):
        response = await client.get("/api/complaints/stats", headers=auth_headers)

        assert response.status_code == 403
