"""Schemas for batch class schedules."""

from enum import StrEnum

from pydantic import ConfigDict, Field

from src.shared.schemas.base import BaseSchema, PaginatedResponse


class ScheduleStatus(StrEnum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class ScheduleRow(BaseSchema):
    """One weekly class slot of a batch, with today's teacher assignment if any."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True, frozen=True)

    id: str
    day: str = ""  # full weekday name
    start_time: str = ""  # HH:MM
    end_time: str = ""
    time_label: str = ""
    course_code: str = ""
    course_name: str = ""
    teacher_name: str | None = None
    status: ScheduleStatus | None = None
    batch_course_schedule_id: str | None = None


class ScheduleEdit(BaseSchema):
    """Edit submitted from the class dialog. teacher_id None means unassigned; status None keeps the current one."""

    teacher_id: str | None = None
    status: ScheduleStatus | None = None


class ClassUpdateResult(BaseSchema):
    """What the backend acknowledged for an edit."""

    status: ScheduleStatus
    teacher_name: str | None = None


class ScheduleStats(BaseSchema):
    total_classes: int
    scheduled_classes: int  # no status counts as scheduled
    completed_classes: int
    cancelled_classes: int
    unassigned_classes: int


class BatchScheduleResponse(BaseSchema):
    batch_id: str
    stats: ScheduleStats
    table: PaginatedResponse[ScheduleRow]
    courses: list[str] = Field(default_factory=list)  # course codes for the filter control
    teachers: list[str] = Field(default_factory=list)


class CalendarSlot(BaseSchema):
    hour: int
    label: str  # "8 AM"
    classes: dict[str, list[ScheduleRow]]  # weekday -> rows starting or running in this hour


class WeekGrid(BaseSchema):
    days: list[str]
    slots: list[CalendarSlot]
