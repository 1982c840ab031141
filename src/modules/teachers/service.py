"""Service for the teacher roster and teacher details."""

import logging
from collections.abc import Callable, Sequence
from datetime import date
from decimal import Decimal

from pydantic import ValidationError as PydanticValidationError

from src.core.backend import BackendClient
from src.core.exceptions import NotFoundError
from src.core.tabular import SortDirection, SortState, TablePage, TableQuery, run_table_query
from src.modules.reports.schemas import AcademicPeriod, Batch
from src.modules.teachers.schemas import (
    AssignedClass,
    ClassStatus,
    Course,
    Teacher,
    TeacherDetailResponse,
    TeacherDetailStats,
    TeacherStats,
)
from src.modules.teachers.transforms import transform_assigned_classes
from src.shared.utils.money import round_money

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("first_name", "last_name", "email", "instructor_id", "department")
DEFAULT_SORT = SortState(field="join_date", direction=SortDirection.DESC)
ASSIGNED_CLASS_COLUMNS = (
    "id,assigned_date,batch_course_schedule_id,teacher_id,remuneration,tax,payment,status,"
    "is_modified,modified_by,modified_at,created_at,updated_at,"
    "batch_course_schedules(id,class_day,start_time,end_time,batch_course_id,"
    "batch_courses(id,batch_id,CourseID,academic_year,start_date,end_date,academic_period_id))"
)


def _validate(model, items: Sequence[dict], table: str) -> list:
    rows = []
    for item in items:
        try:
            rows.append(model.model_validate(item))
        except PydanticValidationError as e:
            logger.warning("Skipping malformed %s record: %s", table, e.errors()[:1])
    return rows


def roster_stats(teachers: Sequence[Teacher]) -> TeacherStats:
    return TeacherStats(
        total=len(teachers),
        active=sum(1 for t in teachers if t.is_active),
        departments=len({t.department for t in teachers if t.department}),
    )


def teacher_detail_stats(
    classes: Sequence[AssignedClass],
    batches: Sequence[Batch],
    courses: Sequence[Course],
    today: date,
) -> TeacherDetailStats:
    """Counts across all of the teacher's classes; students are summed once per batch."""
    batch_ids = {c.batch_id for c in classes if c.batch_id}
    students_by_batch = {b.id: b.number_of_students or 0 for b in batches}
    return TeacherDetailStats(
        total_courses=len(courses),
        total_batches=len(batch_ids),
        total_students=sum(students_by_batch.get(b, 0) for b in batch_ids),
        upcoming_classes=sum(
            1
            for c in classes
            if c.assigned_date is not None
            and c.assigned_date >= today
            and c.status == ClassStatus.SCHEDULED
        ),
        total_earnings=round_money(sum((c.payment for c in classes), Decimal("0"))),
    )


class TeacherService:
    """Teacher roster and the detail view of one teacher."""

    def __init__(self, backend: BackendClient, today: Callable[[], date] = date.today):
        self.backend = backend
        self._today = today

    async def list_teachers(self) -> list[Teacher]:
        items = await self.backend.select("teacher", order="JoinDate.desc")
        return _validate(Teacher, items, "teacher")

    async def search_teachers(
        self,
        search: str = "",
        department: str = "all",
        is_active: bool | None = None,
        sort: SortState | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> tuple[list[Teacher], list[Teacher], TablePage[Teacher]]:
        """Returns the full roster, the filtered rows and the visible page."""
        teachers = await self.list_teachers()
        ordered, table_page = run_table_query(
            teachers,
            TableQuery(
                search=search,
                search_fields=SEARCH_FIELDS,
                equals={"department": department, "is_active": is_active},
                sort=sort or DEFAULT_SORT,
                page=page,
                page_size=page_size,
            ),
        )
        return teachers, ordered, table_page

    async def get_teacher(self, instructor_id: str) -> Teacher:
        items = await self.backend.select("teacher", eq={"InstructorID": instructor_id}, limit=1)
        if not items:
            raise NotFoundError("Teacher", instructor_id)
        return Teacher.model_validate(items[0])

    async def get_teacher_detail(self, instructor_id: str) -> TeacherDetailResponse:
        """
        Teacher with assigned classes and the batches, courses and periods they
        refer to. Related records are fetched by id and joined here.
        """
        teacher = await self.get_teacher(instructor_id)
        today = self._today()
        raw = await self.backend.select(
            "assigned_teachers",
            columns=ASSIGNED_CLASS_COLUMNS,
            eq={"teacher_id": instructor_id},
            order="assigned_date.desc",
        )
        classes = transform_assigned_classes(raw, today)

        batch_ids, course_ids, period_ids = [], [], []
        for c in classes:
            schedule = c.batch_course_schedules
            bc = schedule.batch_courses if schedule else None
            if bc is None:
                continue
            if bc.batch_id and bc.batch_id not in batch_ids:
                batch_ids.append(bc.batch_id)
            if bc.course_id is not None and bc.course_id not in course_ids:
                course_ids.append(bc.course_id)
            if bc.academic_period_id and bc.academic_period_id not in period_ids:
                period_ids.append(bc.academic_period_id)

        batches: list[Batch] = []
        courses: list[Course] = []
        periods: list[AcademicPeriod] = []
        if batch_ids:
            batches = _validate(Batch, await self.backend.select("batch", in_={"id": batch_ids}), "batch")
        if course_ids:
            courses = _validate(Course, await self.backend.select("course", in_={"CourseID": course_ids}), "course")
        if period_ids:
            periods = _validate(
                AcademicPeriod,
                await self.backend.select("academic_period", in_={"id": period_ids}),
                "academic_period",
            )

        logger.info(
            "Loaded %s classes for teacher %s", len(classes), instructor_id, extra={"row_count": len(classes)}
        )
        return TeacherDetailResponse(
            teacher=teacher,
            classes=classes,
            batches=batches,
            courses=courses,
            academic_periods=periods,
            stats=teacher_detail_stats(classes, batches, courses, today),
        )
