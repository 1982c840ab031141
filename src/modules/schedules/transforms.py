"""Turn nested backend schedule records into ScheduleRows and lay them out on a week grid."""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from src.modules.schedules.schemas import (
    WEEKDAYS,
    CalendarSlot,
    ScheduleRow,
    ScheduleStatus,
    WeekGrid,
)

logger = logging.getLogger(__name__)

_DAY_BY_PREFIX = {day[:3].lower(): day for day in WEEKDAYS}


def normalize_day(value: Any) -> str:
    """'mon', 'Mon', 'monday' -> 'Monday'. Unknown values are returned stripped."""
    text = str(value or "").strip()
    return _DAY_BY_PREFIX.get(text[:3].lower(), text)


def _hour(time_text: str) -> int | None:
    try:
        return int(time_text.split(":")[0])
    except (ValueError, AttributeError):
        return None


def normalize_time(value: Any) -> str:
    """'09:30:00' -> '09:30'; anything unparseable becomes ''."""
    text = str(value or "").strip()
    parts = text.split(":")
    if len(parts) < 2 or not parts[0].isdigit() or not parts[1].isdigit():
        return ""
    return f"{int(parts[0]):02d}:{int(parts[1]):02d}"


def format_time(value: str) -> str:
    """'14:05' -> '2:05 PM', '00:30' -> '12:30 AM'."""
    hours, _, minutes = value.partition(":")
    h = int(hours)
    m = int(minutes[:2] or 0)
    period = "PM" if h >= 12 else "AM"
    return f"{h % 12 or 12}:{m:02d} {period}"


def format_hour_label(hour: int) -> str:
    """13 -> '1 PM', 12 -> '12 PM', 8 -> '8 AM'."""
    if hour > 12:
        return f"{hour - 12} PM"
    if hour == 12:
        return "12 PM"
    return f"{hour} AM"


def time_range_label(start: str, end: str) -> str:
    """'09:00', '11:00' -> '9:00 AM - 11:00 AM'; a missing end leaves only the start."""
    if not start:
        return ""
    if not end:
        return format_time(start)
    return f"{format_time(start)} - {format_time(end)}"


def teacher_full_name(teacher: Mapping[str, Any] | None) -> str | None:
    if not teacher:
        return None
    name = f"{teacher.get('FirstName') or ''} {teacher.get('LastName') or ''}".strip()
    return name or None


def _status(value: Any) -> ScheduleStatus | None:
    try:
        return ScheduleStatus(value) if value else None
    except ValueError:
        return None


def _schedule_row(record: Mapping[str, Any], assignment: Mapping[str, Any] | None) -> ScheduleRow:
    batch_course = record.get("batch_courses") or {}
    course = batch_course.get("course") or {}
    schedule_id = str(record["id"])
    start = normalize_time(record.get("start_time"))
    end = normalize_time(record.get("end_time"))
    row = ScheduleRow(
        id=schedule_id,
        day=normalize_day(record.get("class_day")),
        start_time=start,
        end_time=end,
        time_label=time_range_label(start, end),
        course_code=str(course.get("CourseCode") or ""),
        course_name=str(course.get("CourseTitle") or ""),
        batch_course_schedule_id=schedule_id,
    )
    if assignment:
        row = row.model_copy(
            update={
                "teacher_name": teacher_full_name(assignment.get("teacher")),
                "status": _status(assignment.get("status")),
            }
        )
    return row


def build_schedule_rows(
    records: Sequence[Mapping[str, Any]],
    assignments: Sequence[Mapping[str, Any]] = (),
) -> list[ScheduleRow]:
    """
    One row per schedule record.

    records are batch_course_schedules with batch_courses(course(...)) embedded;
    assignments are today's assigned_teachers with teacher embedded. A record
    that cannot be read becomes a minimal row instead of failing the batch.
    """
    by_schedule: dict[str, Mapping[str, Any]] = {}
    for a in assignments:
        key = a.get("batch_course_schedule_id")
        if key is not None:
            by_schedule.setdefault(str(key), a)

    rows = []
    for i, record in enumerate(records):
        try:
            rows.append(_schedule_row(record, by_schedule.get(str(record.get("id")))))
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            logger.warning("Error transforming schedule record %s: %s", i, e)
            record_id = record.get("id") if isinstance(record, Mapping) else None
            rows.append(ScheduleRow(id=str(record_id if record_id is not None else f"unknown-{i}")))
    return rows


def schedule_occupies(row: ScheduleRow, hour: int) -> bool:
    start, end = _hour(row.start_time), _hour(row.end_time)
    if start is None or end is None:
        return False
    return start <= hour < end


def build_week_grid(rows: Sequence[ScheduleRow], start_hour: int = 8, end_hour: int = 19) -> WeekGrid:
    """Monday..Sunday by hour, start_hour..end_hour inclusive."""
    slots = []
    for hour in range(start_hour, end_hour + 1):
        slots.append(
            CalendarSlot(
                hour=hour,
                label=format_hour_label(hour),
                classes={
                    day: [r for r in rows if r.day == day and schedule_occupies(r, hour)]
                    for day in WEEKDAYS
                },
            )
        )
    return WeekGrid(days=list(WEEKDAYS), slots=slots)
