"""Service for batch schedules and teacher assignment of classes."""

import logging
from collections.abc import Callable
from datetime import date

from src.core.backend import BackendClient
from src.core.config import settings
from src.core.exceptions import NotFoundError, ValidationError
from src.core.tabular import SortState, TablePage, TableQuery, run_table_query
from src.modules.schedules.schemas import (
    ClassUpdateResult,
    ScheduleEdit,
    ScheduleRow,
    ScheduleStats,
    ScheduleStatus,
)
from src.modules.schedules.transforms import build_schedule_rows, teacher_full_name

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("course_name", "course_code", "teacher_name")
SCHEDULE_COLUMNS = "id,class_day,start_time,end_time,batch_course_id,batch_courses(id,batch_id,academic_period_id,course(CourseID,CourseCode,CourseTitle))"
UNASSIGNED = "unassigned"

TERMINAL_STATUSES = {ScheduleStatus.COMPLETED, ScheduleStatus.CANCELLED}


def can_transition(current: ScheduleStatus | None, new: ScheduleStatus) -> bool:
    """scheduled -> completed / cancelled; a finished class keeps its status."""
    if current is None or current == new:
        return True
    return current not in TERMINAL_STATUSES


def apply_class_update(row: ScheduleRow, result: ClassUpdateResult) -> ScheduleRow:
    """Replace status and teacher with what the backend acknowledged."""
    return row.model_copy(update={"status": result.status, "teacher_name": result.teacher_name})


def schedule_stats(rows: list[ScheduleRow]) -> ScheduleStats:
    return ScheduleStats(
        total_classes=len(rows),
        scheduled_classes=sum(1 for r in rows if r.status in (None, ScheduleStatus.SCHEDULED)),
        completed_classes=sum(1 for r in rows if r.status == ScheduleStatus.COMPLETED),
        cancelled_classes=sum(1 for r in rows if r.status == ScheduleStatus.CANCELLED),
        unassigned_classes=sum(1 for r in rows if not r.teacher_name),
    )


def filter_by_teacher(rows: list[ScheduleRow], teacher: str | None) -> list[ScheduleRow]:
    """'unassigned' keeps rows without a teacher; a name keeps rows whose teacher contains it."""
    if not teacher or teacher.lower() == "all":
        return rows
    if teacher == UNASSIGNED:
        return [r for r in rows if not r.teacher_name]
    return [r for r in rows if r.teacher_name and teacher in r.teacher_name]


class ScheduleService:
    """Read a batch's weekly schedule and apply class edits."""

    def __init__(self, backend: BackendClient, today: Callable[[], date] = date.today):
        self.backend = backend
        self._today = today

    def today(self) -> str:
        return self._today().isoformat()

    async def get_batch_schedule(
        self, batch_id: str, academic_period_id: str | None = None
    ) -> list[ScheduleRow]:
        """All schedule rows of the batch with today's assignments applied."""
        eq = {"batch_id": batch_id}
        if academic_period_id:
            eq["academic_period_id"] = academic_period_id
        batch_courses = await self.backend.select("batch_courses", columns="id", eq=eq)
        course_ids = [bc["id"] for bc in batch_courses if bc.get("id") is not None]
        if not course_ids:
            return []

        records = await self.backend.select(
            "batch_course_schedules",
            columns=SCHEDULE_COLUMNS,
            in_={"batch_course_id": course_ids},
        )
        schedule_ids = [r["id"] for r in records if r.get("id") is not None]
        assignments = []
        if schedule_ids:
            assignments = await self.backend.select(
                "assigned_teachers",
                columns="*,teacher(id,FirstName,LastName)",
                eq={"assigned_date": self.today()},
                in_={"batch_course_schedule_id": schedule_ids},
            )
        rows = build_schedule_rows(records, assignments)
        logger.info("Loaded %s schedule rows for batch %s", len(rows), batch_id, extra={"row_count": len(rows)})
        return rows

    async def list_batch_schedule(
        self,
        batch_id: str,
        academic_period_id: str | None = None,
        search: str = "",
        course_code: str = "all",
        day: str = "all",
        teacher: str | None = None,
        sort: SortState | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[ScheduleRow], TablePage[ScheduleRow]]:
        rows = await self.get_batch_schedule(batch_id, academic_period_id)
        rows = filter_by_teacher(rows, teacher)
        return run_table_query(
            rows,
            TableQuery(
                search=search,
                search_fields=SEARCH_FIELDS,
                equals={"course_code": course_code, "day": day},
                sort=sort,
                page=page,
                page_size=page_size,
            ),
        )

    async def get_schedule_row(self, schedule_id: str) -> ScheduleRow:
        records = await self.backend.select(
            "batch_course_schedules", columns=SCHEDULE_COLUMNS, eq={"id": schedule_id}
        )
        if not records:
            raise NotFoundError("Schedule", schedule_id)
        assignments = await self.backend.select(
            "assigned_teachers",
            columns="*,teacher(id,FirstName,LastName)",
            eq={"batch_course_schedule_id": schedule_id, "assigned_date": self.today()},
        )
        return build_schedule_rows(records, assignments)[0]

    async def _teacher_name(self, teacher_id: str) -> str:
        teachers = await self.backend.select("teacher", columns="id,FirstName,LastName", eq={"id": teacher_id})
        if not teachers:
            raise NotFoundError("Teacher", teacher_id)
        return teacher_full_name(teachers[0]) or ""

    async def update_class(self, row: ScheduleRow, edit: ScheduleEdit) -> ScheduleRow:
        """
        Write the teacher assignment of today's class and return the updated row.

        Existing assignment: unassigned deletes it, a teacher updates it.
        No assignment: a teacher creates one with the default remuneration,
        unassigned writes nothing. Backend failures propagate and the caller's
        row is left untouched.
        """
        if not row.batch_course_schedule_id:
            raise ValidationError("Class has no schedule to assign", field="batch_course_schedule_id")
        status = edit.status or row.status or ScheduleStatus.SCHEDULED
        if not can_transition(row.status, status):
            raise ValidationError(f"Cannot change a {row.status} class to {status}", field="status")

        teacher_id = edit.teacher_id if edit.teacher_id and edit.teacher_id != UNASSIGNED else None
        teacher_name = await self._teacher_name(teacher_id) if teacher_id else None
        today = self.today()

        existing = await self.backend.select(
            "assigned_teachers",
            columns="id,remuneration",
            eq={"batch_course_schedule_id": row.batch_course_schedule_id, "assigned_date": today},
            limit=1,
        )
        if existing:
            assignment_id = existing[0]["id"]
            if teacher_id is None:
                await self.backend.delete("assigned_teachers", eq={"id": assignment_id})
                logger.info("Removed assignment %s", assignment_id, extra={"table": "assigned_teachers"})
            else:
                await self.backend.update(
                    "assigned_teachers",
                    {"teacher_id": teacher_id, "status": status.value},
                    eq={"id": assignment_id},
                )
        elif teacher_id is not None:
            await self.backend.insert(
                "assigned_teachers",
                {
                    "batch_course_schedule_id": row.batch_course_schedule_id,
                    "teacher_id": teacher_id,
                    "assigned_date": today,
                    "status": status.value,
                    "remuneration": settings.default_remuneration,
                },
            )

        return apply_class_update(row, ClassUpdateResult(status=status, teacher_name=teacher_name))
