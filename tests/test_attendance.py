"""Tests for the attendance module: daily upsert, hours, overtime, schedules."""

from __future__ import annotations

import pytest

RECORDS = "/api/v1/attendance/records"
SCHEDULES = "/api/v1/attendance/schedules"
USER_SCHEDULES = "/api/v1/attendance/user-schedules"

MONDAY = "2024-01-08"
TUESDAY = "2024-01-09"
SATURDAY = "2024-01-13"


def _day(date: str, clock_in=None, clock_out=None, break_start=None, break_end=None, **kw):
    body = {
        "date": date,
        "clock_in": clock_in,
        "clock_out": clock_out,
        "break_start": break_start,
        "break_end": break_end,
    }
    body.update(kw)
    return body


@pytest.fixture
async def office_hours(client, hr_user, employee_user, auth_headers) -> dict:
    """09:00-17:00 Monday to Friday, assigned to the employee from 2024-01-01."""
    headers = await auth_headers(hr_user)
    resp = await client.post(
        SCHEDULES,
        json={"name": "Office hours", "start_time": "09:00", "end_time": "17:00"},
        headers=headers,
    )
    assert resp.status_code == 201
    schedule = resp.json()

    resp = await client.post(
        USER_SCHEDULES,
        json={
            "user_id": str(employee_user.id),
            "schedule_id": schedule["id"],
            "effective_date": "2024-01-01",
        },
        headers=headers,
    )
    assert resp.status_code == 201
    return schedule


# ═════════════════════════════════════════════════════════════════════
# PUT /records
# ═════════════════════════════════════════════════════════════════════


class TestSaveRecord:
    async def test_worked_hours_minus_break(self, client, employee_user, auth_headers):
        resp = await client.put(
            RECORDS,
            json=_day(MONDAY, "09:00", "17:00", "12:00", "12:30"),
            headers=await auth_headers(employee_user),
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["user_id"] == str(employee_user.id)
        assert body["date"] == MONDAY
        assert body["total_hours"] == 7.5
        assert body["overtime_hours"] == 0
        assert body["status"] == "present"
        assert body["user"]["user_id_login"] == "EMP001"

    async def test_half_break_ignored(self, client, employee_user, auth_headers):
        resp = await client.put(
            RECORDS,
            json=_day(MONDAY, "09:00", "17:00", break_start="12:00"),
            headers=await auth_headers(employee_user),
        )
        assert resp.json()["total_hours"] == 8.0

    async def test_missing_clock_out_is_zero(self, client, employee_user, auth_headers):
        resp = await client.put(
            RECORDS, json=_day(MONDAY, "09:00"), headers=await auth_headers(employee_user),
        )
        body = resp.json()
        assert body["total_hours"] == 0
        assert body["status"] == "present"

    async def test_no_clock_in_is_absent(self, client, employee_user, auth_headers):
        resp = await client.put(
            RECORDS, json=_day(TUESDAY), headers=await auth_headers(employee_user),
        )
        body = resp.json()
        assert body["status"] == "absent"
        assert body["total_hours"] == 0

    async def test_break_longer_than_shift_clamps(self, client, employee_user, auth_headers):
        resp = await client.put(
            RECORDS,
            json=_day(MONDAY, "09:00", "10:00", "09:00", "12:00"),
            headers=await auth_headers(employee_user),
        )
        assert resp.status_code == 200
        assert resp.json()["total_hours"] == 0

    @pytest.mark.parametrize(
        "body",
        [
            _day(MONDAY, "17:00", "09:00"),
            _day(MONDAY, "09:00", "17:00", "13:00", "12:00"),
        ],
    )
    async def test_inverted_interval_rejected(self, client, employee_user, auth_headers, body):
        resp = await client.put(RECORDS, json=body, headers=await auth_headers(employee_user))
        assert resp.status_code == 422

    async def test_save_again_replaces_record(self, client, employee_user, auth_headers):
        headers = await auth_headers(employee_user)
        first = await client.put(
            RECORDS,
            json=_day(MONDAY, "09:00", "17:00", "12:00", "12:30", notes="dentist at 8"),
            headers=headers,
        )
        second = await client.put(
            RECORDS, json=_day(MONDAY, "10:00", "18:00"), headers=headers,
        )
        assert second.status_code == 200
        assert second.json()["id"] == first.json()["id"]
        assert second.json()["total_hours"] == 8.0
        assert second.json()["notes"] is None
        assert second.json()["break_start"] is None

        listing = await client.get(RECORDS, headers=headers)
        assert listing.json()["meta"]["total"] == 1

    async def test_explicit_status_wins(self, client, employee_user, auth_headers):
        resp = await client.put(
            RECORDS,
            json=_day(MONDAY, "09:00", "13:00", status="half_day"),
            headers=await auth_headers(employee_user),
        )
        assert resp.json()["status"] == "half_day"

    async def test_employee_cannot_record_for_others(
        self, client, employee_user, other_employee, auth_headers,
    ):
        resp = await client.put(
            RECORDS,
            json=_day(MONDAY, "09:00", "17:00", user_id=str(other_employee.id)),
            headers=await auth_headers(employee_user),
        )
        assert resp.status_code == 403

    async def test_hr_records_for_employee(self, client, hr_user, employee_user, auth_headers):
        resp = await client.put(
            RECORDS,
            json=_day(MONDAY, "09:00", "17:00", user_id=str(employee_user.id)),
            headers=await auth_headers(hr_user),
        )
        assert resp.status_code == 200
        assert resp.json()["user_id"] == str(employee_user.id)


# ═════════════════════════════════════════════════════════════════════
# Overtime & lateness against a schedule
# ═════════════════════════════════════════════════════════════════════


class TestScheduleEffects:
    async def test_overtime_and_late(self, client, employee_user, auth_headers, office_hours):
        resp = await client.put(
            RECORDS,
            json=_day(MONDAY, "09:15", "18:30", "12:00", "12:30"),
            headers=await auth_headers(employee_user),
        )
        body = resp.json()
        assert body["total_hours"] == 8.75
        assert body["overtime_hours"] == 0.75
        assert body["status"] == "late"

    async def test_on_time_no_overtime(self, client, employee_user, auth_headers, office_hours):
        resp = await client.put(
            RECORDS,
            json=_day(MONDAY, "09:00", "16:00"),
            headers=await auth_headers(employee_user),
        )
        body = resp.json()
        assert body["overtime_hours"] == 0
        assert body["status"] == "present"

    async def test_weekend_hours_are_overtime(
        self, client, employee_user, auth_headers, office_hours,
    ):
        resp = await client.put(
            RECORDS,
            json=_day(SATURDAY, "10:00", "12:00"),
            headers=await auth_headers(employee_user),
        )
        body = resp.json()
        assert body["overtime_hours"] == 2.0
        assert body["status"] == "present"

    async def test_assignment_before_effective_date_ignored(
        self, client, employee_user, auth_headers, office_hours,
    ):
        resp = await client.put(
            RECORDS,
            json=_day("2023-12-29", "09:30", "19:00"),
            headers=await auth_headers(employee_user),
        )
        body = resp.json()
        assert body["overtime_hours"] == 0
        assert body["status"] == "present"


# ═════════════════════════════════════════════════════════════════════
# GET /records
# ═════════════════════════════════════════════════════════════════════


class TestListRecords:
    @pytest.fixture
    async def seeded(self, client, employee_user, other_employee, auth_headers):
        mine = await auth_headers(employee_user)
        theirs = await auth_headers(other_employee)
        await client.put(RECORDS, json=_day(MONDAY, "09:00", "17:00"), headers=mine)
        await client.put(RECORDS, json=_day(TUESDAY, "09:00", "13:00"), headers=mine)
        await client.put(RECORDS, json=_day("2024-01-10"), headers=mine)
        await client.put(RECORDS, json=_day(MONDAY, "08:00", "17:00"), headers=theirs)
        return mine

    async def test_own_records_with_summary(self, client, seeded):
        resp = await client.get(RECORDS, headers=seeded)
        assert resp.status_code == 200
        body = resp.json()
        assert [r["date"] for r in body["data"]] == ["2024-01-10", TUESDAY, MONDAY]
        assert body["summary"] == {
            "total_records": 3,
            "present": 2,
            "late": 0,
            "absent": 1,
            "half_day": 0,
            "total_hours": 12.0,
            "average_hours": 4.0,
            "overtime_hours": 0.0,
        }

    async def test_summary_covers_all_pages(self, client, seeded):
        resp = await client.get(RECORDS, params={"page_size": 1}, headers=seeded)
        body = resp.json()
        assert len(body["data"]) == 1
        assert body["meta"]["total"] == 3
        assert body["summary"]["total_records"] == 3

    async def test_date_and_status_filters(self, client, seeded):
        resp = await client.get(
            RECORDS,
            params={"from_date": MONDAY, "to_date": TUESDAY, "status": "present"},
            headers=seeded,
        )
        assert resp.json()["meta"]["total"] == 2

    async def test_employee_cannot_read_others(self, client, seeded, other_employee):
        resp = await client.get(
            RECORDS, params={"user_id": str(other_employee.id)}, headers=seeded,
        )
        assert resp.status_code == 403

    async def test_manager_sees_everyone(self, client, seeded, manager_user, auth_headers):
        resp = await client.get(RECORDS, headers=await auth_headers(manager_user))
        assert resp.json()["meta"]["total"] == 4

    async def test_inverted_range_422(self, client, seeded):
        resp = await client.get(
            RECORDS, params={"from_date": TUESDAY, "to_date": MONDAY}, headers=seeded,
        )
        assert resp.status_code == 422
        assert "date_range" in resp.json()["errors"]


# ═════════════════════════════════════════════════════════════════════
# GET / DELETE /records/{id}
# ═════════════════════════════════════════════════════════════════════


class TestRecordDetail:
    async def test_owner_and_hr_can_read(
        self, client, employee_user, other_employee, hr_user, auth_headers,
    ):
        created = await client.put(
            RECORDS, json=_day(MONDAY, "09:00", "17:00"),
            headers=await auth_headers(employee_user),
        )
        url = f"{RECORDS}/{created.json()['id']}"

        assert (await client.get(url, headers=await auth_headers(employee_user))).status_code == 200
        assert (await client.get(url, headers=await auth_headers(other_employee))).status_code == 403
        assert (await client.get(url, headers=await auth_headers(hr_user))).status_code == 200

    async def test_delete_requires_manage(self, client, employee_user, hr_user, auth_headers):
        created = await client.put(
            RECORDS, json=_day(MONDAY, "09:00", "17:00"),
            headers=await auth_headers(employee_user),
        )
        url = f"{RECORDS}/{created.json()['id']}"

        assert (await client.delete(url, headers=await auth_headers(employee_user))).status_code == 403
        assert (await client.delete(url, headers=await auth_headers(hr_user))).status_code == 204
        assert (await client.get(url, headers=await auth_headers(hr_user))).status_code == 404


# ═════════════════════════════════════════════════════════════════════
# Schedules
# ═════════════════════════════════════════════════════════════════════


class TestSchedules:
    async def test_scheduled_hours(self, client, office_hours):
        assert office_hours["scheduled_hours"] == 8.0
        assert office_hours["days_of_week"] == [1, 2, 3, 4, 5]

    async def test_overnight_schedule_wraps(self, client, hr_user, auth_headers):
        resp = await client.post(
            SCHEDULES,
            json={
                "name": "Night shift",
                "start_time": "22:00",
                "end_time": "06:00",
                "days_of_week": [5, 1, 1, 3],
            },
            headers=await auth_headers(hr_user),
        )
        body = resp.json()
        assert body["scheduled_hours"] == 8.0
        assert body["days_of_week"] == [1, 3, 5]

    async def test_invalid_weekday_422(self, client, hr_user, auth_headers):
        resp = await client.post(
            SCHEDULES,
            json={"name": "Bad", "start_time": "09:00", "end_time": "17:00", "days_of_week": [7]},
            headers=await auth_headers(hr_user),
        )
        assert resp.status_code == 422

    async def test_employee_cannot_create_schedule(self, client, employee_user, auth_headers):
        resp = await client.post(
            SCHEDULES,
            json={"name": "Mine", "start_time": "09:00", "end_time": "17:00"},
            headers=await auth_headers(employee_user),
        )
        assert resp.status_code == 403

    async def test_update_schedule(self, client, hr_user, auth_headers, office_hours):
        resp = await client.patch(
            f"{SCHEDULES}/{office_hours['id']}",
            json={"end_time": "18:00"},
            headers=await auth_headers(hr_user),
        )
        assert resp.status_code == 200
        assert resp.json()["scheduled_hours"] == 9.0

    @pytest.mark.parametrize(
        "field", ["name", "start_time", "end_time", "days_of_week", "is_active"],
    )
    async def test_null_for_required_field_422(
        self, client, hr_user, auth_headers, office_hours, field,
    ):
        resp = await client.patch(
            f"{SCHEDULES}/{office_hours['id']}",
            json={field: None},
            headers=await auth_headers(hr_user),
        )
        assert resp.status_code == 422
        assert resp.json()["errors"] == {field: [f"{field} cannot be null."]}

    async def test_duplicate_assignment_409(
        self, client, hr_user, employee_user, auth_headers, office_hours,
    ):
        resp = await client.post(
            USER_SCHEDULES,
            json={
                "user_id": str(employee_user.id),
                "schedule_id": office_hours["id"],
                "effective_date": "2024-01-01",
            },
            headers=await auth_headers(hr_user),
        )
        assert resp.status_code == 409

    async def test_employee_sees_own_assignments(
        self, client, employee_user, other_employee, auth_headers, office_hours,
    ):
        resp = await client.get(USER_SCHEDULES, headers=await auth_headers(employee_user))
        assert len(resp.json()) == 1
        assert resp.json()[0]["schedule"]["name"] == "Office hours"

        resp = await client.get(USER_SCHEDULES, headers=await auth_headers(other_employee))
        assert resp.json() == []
