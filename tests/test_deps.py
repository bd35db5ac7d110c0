"""Tests for the FastAPI guards, exception handlers and correlation middleware."""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import Depends, FastAPI, HTTPException
from httpx import ASGITransport, AsyncClient

from school_authz.api import (
    CorrelationIdMiddleware, get_actor, install_exception_handlers, require, require_any,
    require_capability, require_instance,
)
from school_authz.auth.context import Actor, Resource
from school_authz.bootstrap import get_access_control

STUDENT_RECORDS = {
    300: Resource(organization_scope=5, owner_id=300, kind="student", id=300),
    700: Resource(organization_scope=7, owner_id=700, kind="student", id=700),
}

ACCOUNTS = {
    1: Actor(id=1, role="SuperAdmin"),
    2: Actor(id=2, role="SuperAdmin"),
    10: Actor(id=10, role="Admin", organization_scope=5),
    20: Actor(id=20, role="Teacher", organization_scope=5),
}


async def load_student(student_id: int) -> Resource:
    if student_id not in STUDENT_RECORDS:
        raise HTTPException(status_code=404, detail="Student not found")
    return STUDENT_RECORDS[student_id]


async def load_account(user_id: int) -> Actor:
    if user_id not in ACCOUNTS:
        raise HTTPException(status_code=404, detail="User not found")
    return ACCOUNTS[user_id]


app = FastAPI()
app.add_middleware(CorrelationIdMiddleware)
install_exception_handlers(app)


@app.get("/me")
async def me(actor: Actor = Depends(get_actor)):
    return {"id": actor.id, "role": actor.role}


@app.post("/students/promote")
async def promote(actor: Actor = Depends(require("student.view", "student.promote"))):
    return {"ok": True}


@app.get("/reports")
async def reports(actor: Actor = Depends(require_any("report.academic", "report.financial"))):
    return {"ok": True}


@app.get("/students/{student_id}")
async def get_student(student_id: int, actor: Actor = Depends(require_instance("student.view", load_student))):
    return {"id": student_id}


@app.delete("/users/{user_id}")
async def delete_user(user_id: int, actor: Actor = Depends(require_capability("delete", load_account))):
    return {"deleted": user_id}


def _client_as(actor: Actor | None, access):
    app.dependency_overrides[get_access_control] = lambda: access
    if actor is not None:
        app.dependency_overrides[get_actor] = lambda: actor
    transport = ASGITransport(app=app)
    return AsyncClient(transport=transport, base_url="http://test")


@pytest_asyncio.fixture
async def client_for(access) -> AsyncGenerator:
    """Factory: HTTP client authenticated as the given account id (None = anonymous)."""
    clients = []

    async def _make(account: Actor | None) -> AsyncClient:
        client = _client_as(account, access)
        clients.append(client)
        return client

    yield _make
    for client in clients:
        await client.aclose()
    app.dependency_overrides.clear()


# ── Authentication ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestActor:
    async def test_missing_actor_returns_401(self, client_for):
        client = await client_for(None)
        resp = await client.get("/me")
        assert resp.status_code == 401

    async def test_actor_is_passed_through(self, client_for):
        client = await client_for(ACCOUNTS[20])
        resp = await client.get("/me")
        assert resp.status_code == 200
        assert resp.json() == {"id": 20, "role": "Teacher"}


# ── Permission guards ────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestRequire:
    async def test_admin_can_promote(self, client_for):
        client = await client_for(ACCOUNTS[10])
        resp = await client.post("/students/promote")
        assert resp.status_code == 200

    async def test_teacher_cannot_promote(self, client_for):
        client = await client_for(ACCOUNTS[20])
        resp = await client.post("/students/promote")
        assert resp.status_code == 403
        assert resp.json()["permission"] == "student.promote"

    async def test_require_any(self, client_for):
        teacher = await client_for(ACCOUNTS[20])
        assert (await teacher.get("/reports")).status_code == 200

        student = await client_for(Actor(id=30, role="Student", organization_scope=5))
        resp = await student.get("/reports")
        assert resp.status_code == 403
        assert resp.json()["permission"] == "report.academic | report.financial"

    async def test_unknown_role_is_a_server_error(self, client_for):
        client = await client_for(Actor(id=99, role="Janitor", organization_scope=5))
        resp = await client.post("/students/promote")
        assert resp.status_code == 500


# ── Instance and capability guards ───────────────────────────────────────────

@pytest.mark.asyncio
class TestInstanceGuards:
    async def test_same_school_record(self, client_for):
        client = await client_for(ACCOUNTS[20])
        resp = await client.get("/students/300")
        assert resp.status_code == 200

    async def test_other_school_record(self, client_for):
        client = await client_for(ACCOUNTS[20])
        resp = await client.get("/students/700")
        assert resp.status_code == 403
        assert resp.json()["reason"] == "scope"

    async def test_global_actor_sees_every_school(self, client_for):
        client = await client_for(ACCOUNTS[1])
        assert (await client.get("/students/700")).status_code == 200

    async def test_superadmin_deletes_admin(self, client_for):
        client = await client_for(ACCOUNTS[1])
        resp = await client.delete("/users/10")
        assert resp.status_code == 200

    async def test_superadmin_cannot_delete_superadmin(self, client_for):
        client = await client_for(ACCOUNTS[1])
        resp = await client.delete("/users/2")
        assert resp.status_code == 403
        assert resp.json()["reason"] == "protected_global_target"

    async def test_nobody_deletes_themselves(self, client_for):
        client = await client_for(ACCOUNTS[1])
        resp = await client.delete("/users/1")
        assert resp.status_code == 403
        assert resp.json()["reason"] == "self_action_guard"


# ── Correlation id ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestCorrelationId:
    async def test_request_id_is_echoed(self, client_for):
        client = await client_for(ACCOUNTS[20])
        resp = await client.get("/me", headers={"X-Request-ID": "abc-123"})
        assert resp.headers["X-Request-ID"] == "abc-123"

    async def test_request_id_is_generated(self, client_for):
        client = await client_for(ACCOUNTS[20])
        resp = await client.get("/me")
        assert len(resp.headers["X-Request-ID"]) == 32
