"""Tests for schedule service (class edits) and Schedules API."""

from datetime import date

import pytest
from httpx import AsyncClient

from src.core.exceptions import BackendError, ValidationError
from src.modules.schedules.schemas import ClassUpdateResult, ScheduleEdit, ScheduleRow, ScheduleStatus
from src.modules.schedules.service import ScheduleService, apply_class_update, can_transition

TODAY = date.today().isoformat()


def _row(**overrides) -> ScheduleRow:
    values = {
        "id": "s1",
        "day": "Monday",
        "start_time": "09:00",
        "end_time": "11:00",
        "course_code": "CSE101",
        "course_name": "Security",
        "batch_course_schedule_id": "s1",
    }
    values.update(overrides)
    return ScheduleRow(**values)


@pytest.fixture
def schedule_data(backend):
    backend.tables["teacher"] = [
        {"id": "t1", "InstructorID": "t1", "FirstName": "Rahim", "LastName": "Uddin"},
        {"id": "t2", "InstructorID": "t2", "FirstName": "Karim", "LastName": "Ahmed"},
    ]
    backend.tables["batch_courses"] = [
        {"id": "bc1", "batch_id": "b1", "academic_period_id": "p1"},
        {"id": "bc2", "batch_id": "b1", "academic_period_id": "p2"},
        {"id": "bc9", "batch_id": "b9", "academic_period_id": "p1"},
    ]
    backend.tables["batch_course_schedules"] = [
        {
            "id": "s1",
            "class_day": "mon",
            "start_time": "09:00:00",
            "end_time": "11:00:00",
            "batch_course_id": "bc1",
            "batch_courses": {"id": "bc1", "course": {"CourseCode": "CSE101", "CourseTitle": "Security"}},
        },
        {
            "id": "s2",
            "class_day": "wed",
            "start_time": "14:00:00",
            "end_time": "16:00:00",
            "batch_course_id": "bc2",
            "batch_courses": {"id": "bc2", "course": {"CourseCode": "CSE202", "CourseTitle": "Forensics"}},
        },
        {
            "id": "s9",
            "class_day": "fri",
            "start_time": "10:00:00",
            "end_time": "12:00:00",
            "batch_course_id": "bc9",
            "batch_courses": {"id": "bc9", "course": {"CourseCode": "MBA100", "CourseTitle": "Finance"}},
        },
    ]
    backend.tables["assigned_teachers"] = [
        {
            "id": "a1",
            "batch_course_schedule_id": "s1",
            "teacher_id": "t1",
            "assigned_date": TODAY,
            "status": "scheduled",
            "remuneration": 1000,
            "teacher": {"id": "t1", "FirstName": "Rahim", "LastName": "Uddin"},
        },
        {
            "id": "a0",
            "batch_course_schedule_id": "s2",
            "teacher_id": "t2",
            "assigned_date": "2020-01-01",
            "status": "completed",
            "teacher": {"id": "t2", "FirstName": "Karim", "LastName": "Ahmed"},
        },
    ]
    return backend


class TestTransitions:
    def test_scheduled_can_finish(self):
        assert can_transition(ScheduleStatus.SCHEDULED, ScheduleStatus.COMPLETED)
        assert can_transition(ScheduleStatus.SCHEDULED, ScheduleStatus.CANCELLED)
        assert can_transition(None, ScheduleStatus.CANCELLED)

    def test_terminal_statuses(self):
        assert not can_transition(ScheduleStatus.COMPLETED, ScheduleStatus.SCHEDULED)
        assert not can_transition(ScheduleStatus.CANCELLED, ScheduleStatus.COMPLETED)
        assert can_transition(ScheduleStatus.COMPLETED, ScheduleStatus.COMPLETED)

    def test_apply_class_update_only_touches_status_and_teacher(self):
        row = _row(status=ScheduleStatus.SCHEDULED, teacher_name="Rahim Uddin")
        updated = apply_class_update(
            row, ClassUpdateResult(status=ScheduleStatus.COMPLETED, teacher_name="Karim Ahmed")
        )
        assert updated.status == ScheduleStatus.COMPLETED
        assert updated.teacher_name == "Karim Ahmed"
        assert updated.model_dump(exclude={"status", "teacher_name"}) == row.model_dump(
            exclude={"status", "teacher_name"}
        )
        assert row.status == ScheduleStatus.SCHEDULED


class TestUpdateClass:
    """ScheduleService.update_class write paths."""

    async def test_existing_assignment_updated(self, schedule_data):
        service = ScheduleService(schedule_data)
        row = _row(status=ScheduleStatus.SCHEDULED, teacher_name="Rahim Uddin")
        updated = await service.update_class(
            row, ScheduleEdit(teacher_id="t2", status=ScheduleStatus.COMPLETED)
        )
        assert updated.teacher_name == "Karim Ahmed"
        assert updated.status == ScheduleStatus.COMPLETED
        assignment = schedule_data.tables["assigned_teachers"][0]
        assert assignment["teacher_id"] == "t2"
        assert assignment["status"] == "completed"

    async def test_existing_assignment_removed_when_unassigned(self, schedule_data):
        service = ScheduleService(schedule_data)
        updated = await service.update_class(_row(), ScheduleEdit(teacher_id="unassigned"))
        assert updated.teacher_name is None
        assert [a["id"] for a in schedule_data.tables["assigned_teachers"]] == ["a0"]

    async def test_new_assignment_gets_default_remuneration(self, schedule_data):
        service = ScheduleService(schedule_data)
        row = _row(id="s2", batch_course_schedule_id="s2")
        updated = await service.update_class(row, ScheduleEdit(teacher_id="t1"))
        assert updated.teacher_name == "Rahim Uddin"
        inserted = schedule_data.tables["assigned_teachers"][-1]
        assert inserted["batch_course_schedule_id"] == "s2"
        assert inserted["assigned_date"] == TODAY
        assert inserted["remuneration"] == 1000
        assert inserted["status"] == "scheduled"

    async def test_no_assignment_and_unassigned_writes_nothing(self, schedule_data):
        service = ScheduleService(schedule_data)
        row = _row(id="s2", batch_course_schedule_id="s2")
        await service.update_class(row, ScheduleEdit(teacher_id=None, status=ScheduleStatus.CANCELLED))
        assert not [c for c in schedule_data.calls if c[0] in ("insert", "update", "delete")]

    async def test_terminal_status_rejected(self, schedule_data):
        service = ScheduleService(schedule_data)
        with pytest.raises(ValidationError):
            await service.update_class(
                _row(status=ScheduleStatus.CANCELLED), ScheduleEdit(status=ScheduleStatus.SCHEDULED)
            )

    async def test_teacher_change_keeps_finished_status(self, schedule_data):
        schedule_data.tables["assigned_teachers"][0]["status"] = "completed"
        service = ScheduleService(schedule_data)
        row = _row(status=ScheduleStatus.COMPLETED, teacher_name="Rahim Uddin")
        updated = await service.update_class(row, ScheduleEdit(teacher_id="t2"))
        assert updated.status == ScheduleStatus.COMPLETED
        assert updated.teacher_name == "Karim Ahmed"
        assert schedule_data.tables["assigned_teachers"][0]["status"] == "completed"

    async def test_requires_schedule_id(self, schedule_data):
        service = ScheduleService(schedule_data)
        with pytest.raises(ValidationError):
            await service.update_class(_row(batch_course_schedule_id=None), ScheduleEdit(teacher_id="t1"))

    async def test_backend_failure_leaves_row_unchanged(self, schedule_data):
        schedule_data.fail("update", "assigned_teachers")
        service = ScheduleService(schedule_data)
        row = _row(status=ScheduleStatus.SCHEDULED, teacher_name="Rahim Uddin")
        with pytest.raises(BackendError):
            await service.update_class(row, ScheduleEdit(teacher_id="t2"))
        assert row.teacher_name == "Rahim Uddin"


class TestSchedulesApi:
    """Tests for batch schedule endpoints."""

    async def test_batch_schedule_uses_only_todays_assignments(self, client: AsyncClient, schedule_data):
        response = await client.get("/api/v1/batches/b1/schedule")
        assert response.status_code == 200
        data = response.json()["data"]
        items = {row["id"]: row for row in data["table"]["items"]}
        assert set(items) == {"s1", "s2"}
        assert items["s1"]["teacher_name"] == "Rahim Uddin"
        assert items["s2"]["teacher_name"] is None
        assert items["s2"]["day"] == "Wednesday"
        assert data["stats"] == {
            "total_classes": 2,
            "scheduled_classes": 2,
            "completed_classes": 0,
            "cancelled_classes": 0,
            "unassigned_classes": 1,
        }

    async def test_filters_search_and_sort(self, client: AsyncClient, schedule_data):
        response = await client.get(
            "/api/v1/batches/b1/schedule", params={"teacher": "unassigned"}
        )
        assert [r["id"] for r in response.json()["data"]["table"]["items"]] == ["s2"]

        response = await client.get("/api/v1/batches/b1/schedule", params={"search": "secur"})
        assert [r["id"] for r in response.json()["data"]["table"]["items"]] == ["s1"]

        response = await client.get(
            "/api/v1/batches/b1/schedule",
            params={"sort_field": "course_code", "sort_direction": "desc"},
        )
        assert [r["id"] for r in response.json()["data"]["table"]["items"]] == ["s2", "s1"]

    async def test_academic_period_filter(self, client: AsyncClient, schedule_data):
        response = await client.get(
            "/api/v1/batches/b1/schedule", params={"academic_period_id": "p2"}
        )
        assert [r["id"] for r in response.json()["data"]["table"]["items"]] == ["s2"]

    async def test_calendar(self, client: AsyncClient, schedule_data):
        response = await client.get("/api/v1/batches/b1/schedule/calendar")
        assert response.status_code == 200
        slots = {s["hour"]: s for s in response.json()["data"]["slots"]}
        assert [r["id"] for r in slots[9]["classes"]["Monday"]] == ["s1"]
        assert slots[11]["classes"]["Monday"] == []
        assert [r["id"] for r in slots[15]["classes"]["Wednesday"]] == ["s2"]

    async def test_patch_class(self, client: AsyncClient, schedule_data):
        response = await client.patch(
            "/api/v1/schedules/s1", json={"teacher_id": "t2", "status": "completed"}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Class updated successfully"
        assert body["data"]["teacher_name"] == "Karim Ahmed"
        assert body["data"]["status"] == "completed"

    async def test_patch_teacher_of_cancelled_class(self, client: AsyncClient, schedule_data):
        schedule_data.tables["assigned_teachers"][0]["status"] = "cancelled"
        response = await client.patch("/api/v1/schedules/s1", json={"teacher_id": "t2"})
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "cancelled"
        assert response.json()["data"]["teacher_name"] == "Karim Ahmed"

    async def test_patch_unknown_schedule_is_404(self, client: AsyncClient, schedule_data):
        response = await client.patch("/api/v1/schedules/missing", json={"teacher_id": "t1"})
        assert response.status_code == 404

    async def test_patch_unknown_teacher_is_404(self, client: AsyncClient, schedule_data):
        response = await client.patch("/api/v1/schedules/s1", json={"teacher_id": "nobody"})
        assert response.status_code == 404

    async def test_patch_invalid_status_is_422(self, client: AsyncClient, schedule_data):
        response = await client.patch("/api/v1/schedules/s1", json={"status": "postponed"})
        assert response.status_code == 422
