"""Schemas for the teacher roster and teacher detail page."""

from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, ConfigDict, Field, field_validator

from src.modules.reports.schemas import AcademicPeriod, Batch
from src.shared.schemas.base import BaseSchema, PaginatedResponse
from src.shared.utils.money import to_money


def _alias(name: str, column: str):
    # Backend columns are PascalCase; the API speaks snake_case.
    return AliasChoices(name, column)


class Record(BaseSchema):
    """Backend row; numeric ids are accepted where text is expected."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True, coerce_numbers_to_str=True)


class ClassStatus(StrEnum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    PENDING = "pending"


class Teacher(Record):
    instructor_id: str = Field(validation_alias=_alias("instructor_id", "InstructorID"))
    first_name: str = Field("", validation_alias=_alias("first_name", "FirstName"))
    last_name: str = Field("", validation_alias=_alias("last_name", "LastName"))
    email: str = Field("", validation_alias=_alias("email", "Email"))
    phone: str | None = Field(None, validation_alias=_alias("phone", "Phone"))
    designation: str | None = Field(None, validation_alias=_alias("designation", "Designation"))
    department: str | None = Field(None, validation_alias=_alias("department", "Department"))
    specialization: str | None = Field(
        None, validation_alias=_alias("specialization", "Specialization")
    )
    join_date: str | None = Field(None, validation_alias=_alias("join_date", "JoinDate"))  # ISO date
    is_active: bool = Field(False, validation_alias=_alias("is_active", "IsActive"))

    @field_validator("instructor_id", "first_name", "last_name", "email", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return "" if v is None else str(v)


class TeacherStats(BaseSchema):
    total: int
    active: int
    departments: int


class TeacherListResponse(BaseSchema):
    stats: TeacherStats
    table: PaginatedResponse[Teacher]
    departments: list[str]


class Course(Record):
    course_id: int = Field(validation_alias=_alias("course_id", "CourseID"))
    course_code: str = Field("", validation_alias=_alias("course_code", "CourseCode"))
    course_title: str = Field("", validation_alias=_alias("course_title", "CourseTitle"))
    credits: Decimal | None = Field(None, validation_alias=_alias("credits", "Credits"))
    semester_no: int | None = Field(None, validation_alias=_alias("semester_no", "SemesterNo"))
    course_type: str | None = Field(None, validation_alias=_alias("course_type", "CourseType"))


class BatchCourseInfo(Record):
    id: str
    batch_id: str | None = None
    course_id: int | None = Field(None, validation_alias=_alias("course_id", "CourseID"))
    academic_year: str = ""
    start_date: str = ""
    end_date: str = ""
    academic_period_id: str | None = None

    @field_validator("academic_year", "start_date", "end_date", mode="before")
    @classmethod
    def blank_text(cls, v: Any) -> Any:
        return "" if v is None else v


class ScheduleInfo(Record):
    id: str
    class_day: str = ""
    start_time: str = ""
    end_time: str = ""
    batch_course_id: str | None = None
    batch_courses: BatchCourseInfo | None = None

    @field_validator("class_day", "start_time", "end_time", mode="before")
    @classmethod
    def blank_text(cls, v: Any) -> Any:
        return "" if v is None else v


class AssignedClass(Record):
    """A teacher's class assignment with its schedule and batch course."""

    id: str
    assigned_date: date | None = None
    batch_course_schedule_id: str
    remuneration: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    payment: Decimal = Decimal("0")
    status: ClassStatus = ClassStatus.PENDING
    is_modified: bool = False
    modified_by: str | None = None
    modified_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    batch_course_schedules: ScheduleInfo | None = None

    @field_validator("remuneration", "tax", "payment", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Decimal:
        return to_money(v)

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, v: Any) -> Any:
        return v or ClassStatus.PENDING

    @field_validator("is_modified", mode="before")
    @classmethod
    def coerce_flag(cls, v: Any) -> bool:
        return bool(v)

    @property
    def batch_id(self) -> str | None:
        schedule = self.batch_course_schedules
        if schedule and schedule.batch_courses:
            return schedule.batch_courses.batch_id
        return None


class TeacherDetailStats(BaseSchema):
    total_courses: int
    total_batches: int
    total_students: int
    upcoming_classes: int
    total_earnings: Decimal


class TeacherDetailResponse(BaseSchema):
    teacher: Teacher
    classes: list[AssignedClass]
    batches: list[Batch]
    courses: list[Course]
    academic_periods: list[AcademicPeriod]
    stats: TeacherDetailStats
