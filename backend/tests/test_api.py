"""HTTP-level tests: routing, role gates, and error rendering.

The workflow store is swapped for the in-memory one and the identity
dependency for a fixed user, so no database is involved.
"""
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient, ASGITransport

from wastetrack.main import app
from wastetrack.core.deps import get_current_user, get_workflow_store
from wastetrack.db.session import get_session
from wastetrack.services import approval_levels as levels_svc
from wastetrack.services import workflow


# ─── Shared fixtures ──────────────────────────────────────────────────────────

@pytest.fixture
def api(store):
    app.dependency_overrides[get_workflow_store] = lambda: store
    yield store
    app.dependency_overrides.clear()


def login_as(user):
    async def _override():
        return user
    app.dependency_overrides[get_current_user] = _override


def client():
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


def _submit_body(line):
    return {
        "line_id": str(line.id),
        "product_id": str(uuid.uuid4()),
        "quantity": 12.5,
        "unit_of_measure": "kg",
        "reason_id": str(uuid.uuid4()),
    }


# ─── Health / middleware ──────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_health_echoes_request_id():
    async with client() as c:
        response = await c.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.headers["X-Request-ID"] == "abc123"


@pytest.mark.asyncio
async def test_missing_token_is_401(api):
    async with client() as c:
        response = await c.get("/api/v1/approvals")
    assert response.status_code == 401


# ─── Waste entries ────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_submit_waste_entry(api, engineer, line):
    login_as(engineer)
    async with client() as c:
        response = await c.post("/api/v1/waste", json=_submit_body(line))

    assert response.status_code == 201
    data = response.json()
    assert data["approval_status"] == "pending"
    assert data["current_approval_level"] == 1
    assert data["created_by"] == str(engineer.id)


@pytest.mark.asyncio
async def test_submit_rejects_zero_quantity(api, engineer, line):
    login_as(engineer)
    async with client() as c:
        response = await c.post("/api/v1/waste", json={**_submit_body(line), "quantity": 0})
    assert response.status_code == 422
    assert api.entries == {}


@pytest.mark.asyncio
async def test_submit_unknown_line_renders_invalid_input(api, engineer, line):
    login_as(engineer)
    body = {**_submit_body(line), "line_id": str(uuid.uuid4())}
    async with client() as c:
        response = await c.post("/api/v1/waste", json=body)
    assert response.status_code == 422
    assert response.json()["error"] == "invalid_input"


@pytest.mark.asyncio
async def test_entry_detail_includes_ledger(api, admin, engineer, entry_fields):
    levels_svc.create_level(api, admin, "QA")
    levels_svc.create_level(api, admin, "Manager")
    entry = workflow.submit_waste_entry(api, engineer, entry_fields())

    login_as(engineer)
    async with client() as c:
        response = await c.get(f"/api/v1/waste/{entry.id}")

    assert response.status_code == 200
    approvals = response.json()["approvals"]
    assert [a["level_name"] for a in approvals] == ["QA", "Manager"]
    assert all(a["status"] == "pending" for a in approvals)


@pytest.mark.asyncio
async def test_entry_detail_not_found(api, engineer):
    login_as(engineer)
    async with client() as c:
        response = await c.get(f"/api/v1/waste/{uuid.uuid4()}")
    assert response.status_code == 404
    assert response.json() == {"detail": "Entry not found.", "error": "not_found"}


@pytest.mark.asyncio
async def test_form_approval_before_app_approval_is_412(api, admin, engineer, entry_fields):
    entry = workflow.submit_waste_entry(api, engineer, entry_fields())

    login_as(admin)
    async with client() as c:
        response = await c.put(f"/api/v1/waste/{entry.id}/form-approval", json={"form_approved": True})

    assert response.status_code == 412
    assert response.json()["error"] == "precondition_failed"


@pytest.mark.asyncio
async def test_form_approval_by_admin(api, admin, engineer, entry_fields):
    entry = workflow.submit_waste_entry(api, engineer, entry_fields())
    workflow.decide(api, entry.id, "approved", admin)

    login_as(admin)
    async with client() as c:
        response = await c.put(f"/api/v1/waste/{entry.id}/form-approval", json={"form_approved": True})

    assert response.status_code == 200
    assert response.json()["form_approved"] is True


# ─── Decisions ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_decide_advances_level(api, admin, engineer, entry_fields):
    qa = levels_svc.create_level(api, admin, "QA").level
    levels_svc.create_level(api, admin, "Manager")
    approver = api.seed_user("approver")
    levels_svc.assign_approver(api, admin, qa.id, approver.id)
    entry = workflow.submit_waste_entry(api, engineer, entry_fields())

    login_as(approver)
    async with client() as c:
        response = await c.put(
            f"/api/v1/approvals/{entry.id}",
            json={"status": "approved", "comments": "looks right", "expected_level": 1},
        )

    assert response.status_code == 200
    data = response.json()
    assert data["current_approval_level"] == 2
    assert data["approval_status"] == "pending"
    assert data["message"] == "Approved at level 1, moved to level 2"


@pytest.mark.asyncio
@pytest.mark.parametrize("role", ["engineer", "viewer"])
async def test_decide_role_gate(api, engineer, entry_fields, role):
    entry = workflow.submit_waste_entry(api, engineer, entry_fields())

    login_as(api.seed_user(role))
    async with client() as c:
        response = await c.put(f"/api/v1/approvals/{entry.id}", json={"status": "approved"})

    assert response.status_code == 403
    assert entry.approval_status == "pending"


@pytest.mark.asyncio
async def test_decide_unassigned_approver_is_forbidden(api, admin, engineer, entry_fields):
    levels_svc.create_level(api, admin, "QA")
    entry = workflow.submit_waste_entry(api, engineer, entry_fields())

    login_as(api.seed_user("approver"))
    async with client() as c:
        response = await c.put(f"/api/v1/approvals/{entry.id}", json={"status": "approved"})

    assert response.status_code == 403
    assert response.json()["error"] == "forbidden"


@pytest.mark.asyncio
async def test_decide_terminal_entry_is_409(api, admin, engineer, entry_fields):
    entry = workflow.submit_waste_entry(api, engineer, entry_fields())
    workflow.decide(api, entry.id, "rejected", admin)

    login_as(admin)
    async with client() as c:
        response = await c.put(f"/api/v1/approvals/{entry.id}", json={"status": "approved"})

    assert response.status_code == 409
    assert response.json()["error"] == "decision_conflict"
    assert entry.approval_status == "rejected"


@pytest.mark.asyncio
async def test_decide_invalid_status_is_422(api, admin, engineer, entry_fields):
    entry = workflow.submit_waste_entry(api, engineer, entry_fields())

    login_as(admin)
    async with client() as c:
        response = await c.put(f"/api/v1/approvals/{entry.id}", json={"status": "maybe"})

    assert response.status_code == 422
    assert response.json()["error"] == "invalid_input"


@pytest.mark.asyncio
async def test_list_approvals_for_admin(api, admin, engineer, entry_fields):
    levels_svc.create_level(api, admin, "QA")
    workflow.submit_waste_entry(api, engineer, entry_fields())

    login_as(admin)
    async with client() as c:
        response = await c.get("/api/v1/approvals", params={"status": "all"})

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    item = data["items"][0]
    assert item["can_approve"] is True
    assert item["total_levels"] == 1
    assert item["current_level_name"] == "QA"


# ─── Approval levels ──────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_admin_creates_levels_in_order(api, admin):
    login_as(admin)
    async with client() as c:
        first = await c.post("/api/v1/approval-levels", json={"name": "QA"})
        second = await c.post("/api/v1/approval-levels", json={"name": "Manager", "approval_type": "bogus"})

    assert first.status_code == 201
    assert first.json()["level_order"] == 1
    assert second.json()["level_order"] == 2
    assert second.json()["approval_type"] == "sequential"


@pytest.mark.asyncio
async def test_non_admin_cannot_create_level(api):
    login_as(api.seed_user("approver"))
    async with client() as c:
        response = await c.post("/api/v1/approval-levels", json={"name": "QA"})
    assert response.status_code == 403
    assert api.levels == {}


@pytest.mark.asyncio
async def test_any_user_can_list_levels(api, admin, viewer):
    levels_svc.create_level(api, admin, "QA")

    login_as(viewer)
    async with client() as c:
        response = await c.get("/api/v1/approval-levels")

    assert response.status_code == 200
    assert [level["name"] for level in response.json()] == ["QA"]


@pytest.mark.asyncio
async def test_update_level_invalid_type(api, admin):
    level = levels_svc.create_level(api, admin, "QA").level

    login_as(admin)
    async with client() as c:
        response = await c.put(f"/api/v1/approval-levels/{level.id}", json={"approval_type": "bogus"})

    assert response.status_code == 422
    assert response.json()["error"] == "invalid_input"


@pytest.mark.asyncio
async def test_delete_level_twice(api, admin):
    level = levels_svc.create_level(api, admin, "QA").level

    login_as(admin)
    async with client() as c:
        first = await c.delete(f"/api/v1/approval-levels/{level.id}")
        second = await c.delete(f"/api/v1/approval-levels/{level.id}")

    assert first.status_code == 204
    assert second.status_code == 204


@pytest.mark.asyncio
async def test_duplicate_assignment_is_409(api, admin):
    level = levels_svc.create_level(api, admin, "QA").level
    approver = api.seed_user("approver", "Quinn")
    body = {"approval_level_id": str(level.id), "user_id": str(approver.id)}

    login_as(admin)
    async with client() as c:
        first = await c.post("/api/v1/approval-levels/assignments", json=body)
        second = await c.post("/api/v1/approval-levels/assignments", json=body)

    assert first.status_code == 201
    assert first.json()["user_name"] == "Quinn"
    assert second.status_code == 409
    assert second.json()["error"] == "duplicate_assignment"


# ─── Users ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_users_me(api, engineer):
    login_as(engineer)
    async with client() as c:
        response = await c.get("/api/v1/users/me")
    assert response.status_code == 200
    assert response.json()["role"] == "engineer"


@pytest.mark.asyncio
async def test_list_users_as_admin(api, admin, viewer):
    mock_result = MagicMock()
    mock_result.scalars.return_value.all.return_value = [admin, viewer]
    mock_session = AsyncMock()
    mock_session.execute = AsyncMock(return_value=mock_result)

    async def _session_override():
        yield mock_session

    app.dependency_overrides[get_session] = _session_override
    login_as(admin)
    async with client() as c:
        response = await c.get("/api/v1/users", params={"role": "viewer"})

    assert response.status_code == 200
    assert response.json()["total"] == 2


@pytest.mark.asyncio
async def test_list_users_unknown_role_is_422(api, admin):
    mock_session = AsyncMock()

    async def _session_override():
        yield mock_session

    app.dependency_overrides[get_session] = _session_override
    login_as(admin)
    async with client() as c:
        response = await c.get("/api/v1/users", params={"role": "bogus"})

    assert response.status_code == 422
    assert response.json()["error"] == "invalid_input"
    assert "bogus" in response.json()["detail"]
    mock_session.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_list_users_requires_admin(api, engineer):
    login_as(engineer)
    async with client() as c:
        response = await c.get("/api/v1/users")
    assert response.status_code == 403
