"""Tests for schedule record transforms and the week grid."""

from src.modules.schedules.schemas import ScheduleRow, ScheduleStatus
from src.modules.schedules.transforms import (
    build_schedule_rows,
    build_week_grid,
    format_hour_label,
    format_time,
    normalize_day,
    normalize_time,
    time_range_label,
)


def _record(schedule_id="s1", day="mon", start="09:00:00", end="11:00:00", code="CSE101", title="Security"):
    return {
        "id": schedule_id,
        "class_day": day,
        "start_time": start,
        "end_time": end,
        "batch_course_id": "bc1",
        "batch_courses": {"id": "bc1", "batch_id": "b1", "course": {"CourseCode": code, "CourseTitle": title}},
    }


class TestFormatting:
    def test_normalize_day(self):
        assert normalize_day("mon") == "Monday"
        assert normalize_day("Mon") == "Monday"
        assert normalize_day("monday") == "Monday"
        assert normalize_day("SUN") == "Sunday"
        assert normalize_day("holiday") == "holiday"
        assert normalize_day(None) == ""

    def test_normalize_time(self):
        assert normalize_time("09:30:00") == "09:30"
        assert normalize_time("9:05") == "09:05"
        assert normalize_time("noon") == ""
        assert normalize_time(None) == ""

    def test_format_time(self):
        assert format_time("14:05") == "2:05 PM"
        assert format_time("00:30") == "12:30 AM"
        assert format_time("12:00") == "12:00 PM"
        assert format_time("09:15") == "9:15 AM"

    def test_time_range_label(self):
        assert time_range_label("09:00", "11:00") == "9:00 AM - 11:00 AM"
        assert time_range_label("14:00", "") == "2:00 PM"
        assert time_range_label("", "") == ""

    def test_format_hour_label(self):
        assert format_hour_label(8) == "8 AM"
        assert format_hour_label(12) == "12 PM"
        assert format_hour_label(13) == "1 PM"
        assert format_hour_label(19) == "7 PM"


class TestBuildScheduleRows:
    """Joining schedules, courses and today's assignments."""

    def test_row_without_assignment(self):
        rows = build_schedule_rows([_record()])
        assert rows == [
            ScheduleRow(
                id="s1",
                day="Monday",
                start_time="09:00",
                end_time="11:00",
                course_code="CSE101",
                course_name="Security",
                batch_course_schedule_id="s1",
            )
        ]

    def test_row_with_assignment(self):
        assignments = [
            {
                "id": "a1",
                "batch_course_schedule_id": "s1",
                "status": "completed",
                "teacher": {"id": "t1", "FirstName": "Rahim", "LastName": "Uddin"},
            }
        ]
        row = build_schedule_rows([_record()], assignments)[0]
        assert row.teacher_name == "Rahim Uddin"
        assert row.status == ScheduleStatus.COMPLETED

    def test_missing_nested_fields_default_to_empty(self):
        record = {"id": 5, "class_day": "tue", "start_time": "10:00", "end_time": "12:00"}
        row = build_schedule_rows([record])[0]
        assert row.id == "5"
        assert row.course_code == ""
        assert row.course_name == ""
        assert row.time_label == "10:00 AM - 12:00 PM"

    def test_malformed_record_becomes_minimal_row(self):
        rows = build_schedule_rows([{"class_day": "mon"}, _record("s2")])
        assert len(rows) == 2
        assert rows[0].id == "unknown-0"
        assert rows[0].course_code == ""
        assert rows[1].id == "s2"

    def test_unknown_status_is_dropped(self):
        assignments = [{"batch_course_schedule_id": "s1", "status": "postponed", "teacher": None}]
        row = build_schedule_rows([_record()], assignments)[0]
        assert row.status is None
        assert row.teacher_name is None


class TestWeekGrid:
    def test_grid_shape(self):
        grid = build_week_grid([])
        assert grid.days[0] == "Monday"
        assert grid.days[-1] == "Sunday"
        assert [s.hour for s in grid.slots] == list(range(8, 20))
        assert grid.slots[0].label == "8 AM"
        assert grid.slots[-1].label == "7 PM"

    def test_class_occupies_start_inclusive_end_exclusive(self):
        row = build_schedule_rows([_record(start="09:00", end="11:00")])[0]
        grid = build_week_grid([row])
        occupied = [s.hour for s in grid.slots if s.classes["Monday"]]
        assert occupied == [9, 10]
        assert all(not s.classes["Tuesday"] for s in grid.slots)
