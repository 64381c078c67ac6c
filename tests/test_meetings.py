"""Tests for the meetings module: scheduling, participants, RSVP, permissions."""

from __future__ import annotations

import pytest

MEETINGS = "/api/v1/meetings"


def _meeting(title: str = "Sprint review", start: str = "2099-05-04T10:00:00Z",
             end: str = "2099-05-04T11:00:00Z", **kw) -> dict:
    body = {"title": title, "start_time": start, "end_time": end, "meeting_type": "review"}
    body.update(kw)
    return body


@pytest.fixture
async def meeting(client, employee_user, other_employee, manager_user, auth_headers) -> dict:
    """Organised by the employee, with the other employee and the manager invited."""
    resp = await client.post(
        MEETINGS,
        json=_meeting(
            participant_ids=[str(other_employee.id), str(manager_user.id), str(other_employee.id)],
            location="Room 4",
        ),
        headers=await auth_headers(employee_user),
    )
    assert resp.status_code == 201
    return resp.json()


def _statuses(body: dict) -> dict[str, str]:
    return {p["user_id"]: p["status"] for p in body["participants"]}


class TestCreate:
    async def test_participants_deduplicated_and_invited(
        self, meeting, employee_user, other_employee, manager_user,
    ):
        assert meeting["organizer_id"] == str(employee_user.id)
        assert meeting["organizer"]["user_id_login"] == "EMP001"
        assert meeting["status"] == "scheduled"
        assert _statuses(meeting) == {
            str(other_employee.id): "invited",
            str(manager_user.id): "invited",
        }

    async def test_end_must_follow_start(self, client, employee_user, auth_headers):
        resp = await client.post(
            MEETINGS,
            json=_meeting(start="2099-05-04T11:00:00Z", end="2099-05-04T11:00:00Z"),
            headers=await auth_headers(employee_user),
        )
        assert resp.status_code == 422

    async def test_unknown_participant(self, client, employee_user, auth_headers):
        resp = await client.post(
            MEETINGS,
            json=_meeting(participant_ids=["00000000-0000-0000-0000-000000000001"]),
            headers=await auth_headers(employee_user),
        )
        assert resp.status_code == 422
        assert "participant_ids" in resp.json()["errors"]


class TestList:
    async def test_filters(self, client, meeting, employee_user, other_employee, auth_headers):
        headers = await auth_headers(employee_user)
        await client.post(
            MEETINGS,
            json=_meeting(
                "Retro", "2020-01-01T09:00:00Z", "2020-01-01T09:30:00Z", meeting_type="meeting",
            ),
            headers=headers,
        )

        resp = await client.get(MEETINGS, headers=headers)
        assert [m["title"] for m in resp.json()["data"]] == ["Retro", "Sprint review"]

        resp = await client.get(MEETINGS, params={"upcoming": True}, headers=headers)
        assert [m["title"] for m in resp.json()["data"]] == ["Sprint review"]

        resp = await client.get(
            MEETINGS, params={"participant_id": str(other_employee.id)}, headers=headers,
        )
        assert [m["title"] for m in resp.json()["data"]] == ["Sprint review"]

        resp = await client.get(MEETINGS, params={"search": "room 4"}, headers=headers)
        assert resp.json()["meta"]["total"] == 1

        resp = await client.get(MEETINGS, params={"meeting_type": "meeting"}, headers=headers)
        assert [m["title"] for m in resp.json()["data"]] == ["Retro"]


class TestRSVP:
    async def test_participant_accepts(self, client, meeting, other_employee, auth_headers):
        resp = await client.put(
            f"{MEETINGS}/{meeting['id']}/rsvp",
            json={"status": "accepted"},
            headers=await auth_headers(other_employee),
        )
        assert resp.status_code == 200
        assert _statuses(resp.json())[str(other_employee.id)] == "accepted"

    async def test_non_participant_forbidden(self, client, meeting, hr_user, auth_headers):
        resp = await client.put(
            f"{MEETINGS}/{meeting['id']}/rsvp",
            json={"status": "declined"},
            headers=await auth_headers(hr_user),
        )
        assert resp.status_code == 403


class TestUpdate:
    async def test_organizer_replaces_participants_keeping_rsvps(
        self, client, meeting, employee_user, other_employee, manager_user, hr_user,
        auth_headers,
    ):
        await client.put(
            f"{MEETINGS}/{meeting['id']}/rsvp",
            json={"status": "accepted"},
            headers=await auth_headers(other_employee),
        )
        resp = await client.patch(
            f"{MEETINGS}/{meeting['id']}",
            json={"participant_ids": [str(other_employee.id), str(hr_user.id)]},
            headers=await auth_headers(employee_user),
        )
        assert resp.status_code == 200
        assert _statuses(resp.json()) == {
            str(other_employee.id): "accepted",
            str(hr_user.id): "invited",
        }

    async def test_participant_cannot_edit(self, client, meeting, other_employee, auth_headers):
        resp = await client.patch(
            f"{MEETINGS}/{meeting['id']}",
            json={"title": "Hijacked"},
            headers=await auth_headers(other_employee),
        )
        assert resp.status_code == 403

    async def test_manager_can_edit(self, client, meeting, hr_user, auth_headers):
        resp = await client.patch(
            f"{MEETINGS}/{meeting['id']}",
            json={"status": "cancelled"},
            headers=await auth_headers(hr_user),
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "cancelled"

    async def test_end_before_existing_start(self, client, meeting, employee_user, auth_headers):
        resp = await client.patch(
            f"{MEETINGS}/{meeting['id']}",
            json={"end_time": "2099-05-04T09:00:00Z"},
            headers=await auth_headers(employee_user),
        )
        assert resp.status_code == 422
        assert "end_time" in resp.json()["errors"]


class TestDelete:
    async def test_delete(self, client, meeting, employee_user, other_employee, auth_headers):
        url = f"{MEETINGS}/{meeting['id']}"
        assert (await client.delete(url, headers=await auth_headers(other_employee))).status_code == 403
        assert (await client.delete(url, headers=await auth_headers(employee_user))).status_code == 204
        assert (await client.get(url, headers=await auth_headers(employee_user))).status_code == 404
