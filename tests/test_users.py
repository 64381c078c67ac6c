"""Tests for the users module: user CRUD, login-id allocation, roles."""

from __future__ import annotations

import uuid
from unittest.mock import patch

import pytest
from sqlalchemy import select

from officehub.common.audit import AuditTrail
from officehub.config import settings
from officehub.users.models import User


def _new_user(role_id: uuid.UUID, **overrides) -> dict:
    body = {
        "first_name": "Nora",
        "last_name": "Quinn",
        "email": "nora.quinn@example.com",
        "role_id": str(role_id),
    }
    body.update(overrides)
    return body


# ═════════════════════════════════════════════════════════════════════
# POST /users
# ═════════════════════════════════════════════════════════════════════


class TestCreateUser:
    async def test_allocates_next_login_id(
        self, client, roles, hr_user, employee_user, auth_headers,
    ):
        resp = await client.post(
            "/api/v1/users",
            json=_new_user(roles["employee"].id),
            headers=await auth_headers(hr_user),
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["user_id_login"] == "EMP002"
        assert body["role"]["role_name"] == "employee"
        assert body["status"] == "active"
        assert body["is_active"] is True
        assert "password_hash" not in body

    async def test_temporary_password_works_once_returned(
        self, client, roles, hr_user, auth_headers,
    ):
        resp = await client.post(
            "/api/v1/users",
            json=_new_user(roles["manager"].id),
            headers=await auth_headers(hr_user),
        )
        body = resp.json()
        assert body["user_id_login"] == "MGR001"
        temp = body["temporary_password"]
        assert len(temp) == settings.TEMP_PASSWORD_LENGTH

        login = await client.post(
            "/api/v1/auth/login",
            json={"user_id_login": "MGR001", "password": temp},
        )
        assert login.status_code == 200

        detail = await client.get(
            f"/api/v1/users/{body['id']}", headers=await auth_headers(hr_user),
        )
        assert "temporary_password" not in detail.json()

    async def test_supplied_password_not_echoed(self, client, roles, hr_user, auth_headers):
        resp = await client.post(
            "/api/v1/users",
            json=_new_user(roles["employee"].id, password="Chosen-pass1"),
            headers=await auth_headers(hr_user),
        )
        assert resp.status_code == 201
        assert resp.json()["temporary_password"] is None

    async def test_custom_role_uses_fallback_prefix(
        self, client, roles, admin_user, auth_headers,
    ):
        headers = await auth_headers(admin_user)
        role = await client.post(
            "/api/v1/roles", json={"role_name": "Contractor"}, headers=headers,
        )
        resp = await client.post(
            "/api/v1/users",
            json=_new_user(uuid.UUID(role.json()["id"])),
            headers=headers,
        )
        assert resp.status_code == 201
        assert resp.json()["user_id_login"] == "USR001"

    async def test_explicit_login_id(self, client, roles, hr_user, auth_headers):
        resp = await client.post(
            "/api/v1/users",
            json=_new_user(roles["employee"].id, user_id_login="EMP050"),
            headers=await auth_headers(hr_user),
        )
        assert resp.status_code == 201
        assert resp.json()["user_id_login"] == "EMP050"

    async def test_explicit_login_id_taken(
        self, client, roles, hr_user, employee_user, auth_headers,
    ):
        resp = await client.post(
            "/api/v1/users",
            json=_new_user(roles["employee"].id, user_id_login="EMP001"),
            headers=await auth_headers(hr_user),
        )
        assert resp.status_code == 409
        assert "user_id_login" in resp.json()["errors"]

    async def test_duplicate_email_case_insensitive(
        self, client, roles, hr_user, employee_user, auth_headers,
    ):
        resp = await client.post(
            "/api/v1/users",
            json=_new_user(roles["employee"].id, email="EMP001@Example.com"),
            headers=await auth_headers(hr_user),
        )
        assert resp.status_code == 409
        assert "email" in resp.json()["errors"]

    async def test_unknown_role_404(self, client, hr_user, auth_headers):
        resp = await client.post(
            "/api/v1/users",
            json=_new_user(uuid.uuid4()),
            headers=await auth_headers(hr_user),
        )
        assert resp.status_code == 404

    async def test_invalid_email_422(self, client, roles, hr_user, auth_headers):
        resp = await client.post(
            "/api/v1/users",
            json=_new_user(roles["employee"].id, email="not-an-email"),
            headers=await auth_headers(hr_user),
        )
        assert resp.status_code == 422

    async def test_employee_cannot_create(self, client, roles, employee_user, auth_headers):
        resp = await client.post(
            "/api/v1/users",
            json=_new_user(roles["employee"].id),
            headers=await auth_headers(employee_user),
        )
        assert resp.status_code == 403

    async def test_creation_is_audited(self, client, db, roles, hr_user, auth_headers):
        resp = await client.post(
            "/api/v1/users",
            json=_new_user(roles["employee"].id),
            headers=await auth_headers(hr_user),
        )
        entry = (
            await db.execute(
                select(AuditTrail).where(
                    AuditTrail.entity_type == "user",
                    AuditTrail.entity_id == uuid.UUID(resp.json()["id"]),
                )
            )
        ).scalars().one()
        assert entry.action == "create"
        assert entry.actor_id == hr_user.id
        assert entry.new_values["user_id_login"] == "EMP001"


class TestLoginIdRace:
    """A concurrent writer may take the allocated id between read and insert."""

    async def test_retries_after_unique_conflict(
        self, client, roles, hr_user, employee_user, auth_headers,
    ):
        headers = await auth_headers(hr_user)
        with patch(
            "officehub.users.service.allocate_login_id",
            side_effect=["EMP001", "EMP002"],
        ) as allocator:
            resp = await client.post(
                "/api/v1/users", json=_new_user(roles["employee"].id), headers=headers,
            )
        assert resp.status_code == 201
        assert resp.json()["user_id_login"] == "EMP002"
        assert allocator.call_count == 2

    async def test_gives_up_after_max_attempts(
        self, client, db, roles, hr_user, employee_user, auth_headers, monkeypatch,
    ):
        headers = await auth_headers(hr_user)
        monkeypatch.setattr(settings, "LOGIN_ID_MAX_ATTEMPTS", 2)
        with patch(
            "officehub.users.service.allocate_login_id", return_value="EMP001",
        ) as allocator:
            resp = await client.post(
                "/api/v1/users", json=_new_user(roles["employee"].id), headers=headers,
            )
        assert resp.status_code == 409
        assert "Please retry" in resp.json()["detail"]
        assert allocator.call_count == 2

        created = (
            await db.execute(select(User).where(User.email == "nora.quinn@example.com"))
        ).scalars().all()
        assert created == []


# ═════════════════════════════════════════════════════════════════════
# GET /users
# ═════════════════════════════════════════════════════════════════════


class TestListUsers:
    async def test_list_and_search(
        self, client, hr_user, employee_user, other_employee, auth_headers,
    ):
        headers = await auth_headers(employee_user)
        resp = await client.get("/api/v1/users", headers=headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["meta"]["total"] == 3
        assert [u["user_id_login"] for u in body["data"]] == ["EMP001", "EMP002", "HR001"]

        resp = await client.get("/api/v1/users", params={"search": "mendes"}, headers=headers)
        assert [u["user_id_login"] for u in resp.json()["data"]] == ["EMP001"]

    async def test_filter_by_role_and_paginate(
        self, client, roles, hr_user, employee_user, other_employee, auth_headers,
    ):
        resp = await client.get(
            "/api/v1/users",
            params={"role_id": str(roles["employee"].id), "page_size": 1},
            headers=await auth_headers(hr_user),
        )
        body = resp.json()
        assert len(body["data"]) == 1
        assert body["meta"] == {
            "page": 1,
            "page_size": 1,
            "total": 2,
            "total_pages": 2,
            "has_next": True,
            "has_prev": False,
        }

    async def test_get_unknown_user_404(self, client, hr_user, auth_headers):
        resp = await client.get(
            f"/api/v1/users/{uuid.uuid4()}", headers=await auth_headers(hr_user),
        )
        assert resp.status_code == 404
        assert resp.json()["type"] == "/errors/not-found"


# ═════════════════════════════════════════════════════════════════════
# PATCH / DELETE /users/{id}
# ═════════════════════════════════════════════════════════════════════


class TestUpdateUser:
    async def test_partial_update(self, client, hr_user, employee_user, auth_headers):
        resp = await client.patch(
            f"/api/v1/users/{employee_user.id}",
            json={"department": "Engineering", "last_name": "Mendes-Ruiz"},
            headers=await auth_headers(hr_user),
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["department"] == "Engineering"
        assert body["last_name"] == "Mendes-Ruiz"
        assert body["user_id_login"] == "EMP001"

    async def test_login_id_is_immutable(self, client, hr_user, employee_user, auth_headers):
        resp = await client.patch(
            f"/api/v1/users/{employee_user.id}",
            json={"user_id_login": "EMP999"},
            headers=await auth_headers(hr_user),
        )
        assert resp.status_code == 422
        assert "user_id_login" in resp.json()["errors"]

    async def test_role_change_keeps_login_id(
        self, client, roles, hr_user, employee_user, auth_headers,
    ):
        resp = await client.patch(
            f"/api/v1/users/{employee_user.id}",
            json={"role_id": str(roles["manager"].id)},
            headers=await auth_headers(hr_user),
        )
        body = resp.json()
        assert body["role"]["role_name"] == "manager"
        assert body["user_id_login"] == "EMP001"

    async def test_email_clash_409(
        self, client, hr_user, employee_user, other_employee, auth_headers,
    ):
        resp = await client.patch(
            f"/api/v1/users/{employee_user.id}",
            json={"email": "emp002@example.com"},
            headers=await auth_headers(hr_user),
        )
        assert resp.status_code == 409

    @pytest.mark.parametrize(
        "field", ["first_name", "last_name", "email", "role_id", "status", "is_active"],
    )
    async def test_null_for_required_field_422(
        self, client, hr_user, employee_user, auth_headers, field,
    ):
        resp = await client.patch(
            f"/api/v1/users/{employee_user.id}",
            json={field: None},
            headers=await auth_headers(hr_user),
        )
        assert resp.status_code == 422
        assert resp.json()["errors"] == {field: [f"{field} cannot be null."]}

    async def test_deactivate_revokes_access(
        self, client, hr_user, employee_user, auth_headers,
    ):
        employee_headers = await auth_headers(employee_user)
        resp = await client.delete(
            f"/api/v1/users/{employee_user.id}", headers=await auth_headers(hr_user),
        )
        assert resp.status_code == 200
        assert resp.json()["is_active"] is False
        assert resp.json()["status"] == "inactive"

        resp = await client.get("/api/v1/auth/me", headers=employee_headers)
        assert resp.status_code == 401

    async def test_cannot_deactivate_self(self, client, hr_user, auth_headers):
        resp = await client.delete(
            f"/api/v1/users/{hr_user.id}", headers=await auth_headers(hr_user),
        )
        assert resp.status_code == 422


# ═════════════════════════════════════════════════════════════════════
# Roles
# ═════════════════════════════════════════════════════════════════════


class TestRoles:
    async def test_list_roles(self, client, employee_user, auth_headers):
        resp = await client.get("/api/v1/roles", headers=await auth_headers(employee_user))
        assert resp.status_code == 200
        assert [r["role_name"] for r in resp.json()] == ["admin", "employee", "hr", "manager"]

    async def test_create_update_delete(self, client, admin_user, auth_headers):
        headers = await auth_headers(admin_user)
        resp = await client.post(
            "/api/v1/roles",
            json={"role_name": "  Intern ", "description": "Summer interns"},
            headers=headers,
        )
        assert resp.status_code == 201
        role_id = resp.json()["id"]
        assert resp.json()["role_name"] == "Intern"

        resp = await client.patch(
            f"/api/v1/roles/{role_id}", json={"description": "Interns"}, headers=headers,
        )
        assert resp.json()["description"] == "Interns"

        resp = await client.delete(f"/api/v1/roles/{role_id}", headers=headers)
        assert resp.status_code == 204

    async def test_duplicate_name_case_insensitive(self, client, admin_user, auth_headers):
        resp = await client.post(
            "/api/v1/roles", json={"role_name": "EMPLOYEE"},
            headers=await auth_headers(admin_user),
        )
        assert resp.status_code == 409

    async def test_cannot_delete_role_in_use(
        self, client, roles, admin_user, employee_user, auth_headers,
    ):
        resp = await client.delete(
            f"/api/v1/roles/{roles['employee'].id}", headers=await auth_headers(admin_user),
        )
        assert resp.status_code == 409
        assert "1 user(s)" in resp.json()["detail"]

    async def test_hr_cannot_manage_roles(self, client, hr_user, auth_headers):
        resp = await client.post(
            "/api/v1/roles", json={"role_name": "Auditor"},
            headers=await auth_headers(hr_user),
        )
        assert resp.status_code == 403

    async def test_manager_cannot_manage_roles(self, client, manager_user, auth_headers):
        resp = await client.post(
            "/api/v1/roles", json={"role_name": "Auditor"},
            headers=await auth_headers(manager_user),
        )
        assert resp.status_code == 403
        assert "Access level 'manager' is not permitted" in resp.json()["detail"]

    async def test_role_name_cannot_be_null(self, client, roles, admin_user, auth_headers):
        resp = await client.patch(
            f"/api/v1/roles/{roles['employee'].id}", json={"role_name": None},
            headers=await auth_headers(admin_user),
        )
        assert resp.status_code == 422
        assert "role_name" in resp.json()["errors"]
