"""API for batch schedules."""

from fastapi import APIRouter, Depends, Query

from src.core.backend import BackendClient, get_backend
from src.core.config import settings
from src.core.tabular import SortDirection, SortState
from src.modules.schedules.schemas import (
    BatchScheduleResponse,
    ScheduleEdit,
    ScheduleRow,
    WeekGrid,
)
from src.modules.schedules.service import ScheduleService, schedule_stats
from src.modules.schedules.transforms import build_week_grid
from src.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(tags=["Schedules"])

SORTABLE_FIELDS = ("day", "start_time", "course_code", "course_name", "teacher_name", "status")


@router.get(
    "/batches/{batch_id}/schedule",
    response_model=ApiResponse[BatchScheduleResponse],
)
async def get_batch_schedule(
    batch_id: str,
    academic_period_id: str | None = Query(None),
    search: str = Query("", description="Search in course name, course code and teacher."),
    course_code: str = Query("all"),
    day: str = Query("all", description="Full weekday name or 'all'."),
    teacher: str | None = Query(None, description="Teacher name, 'unassigned' or 'all'."),
    sort_field: str | None = Query(None),
    sort_direction: SortDirection = Query(SortDirection.ASC),
    page: int = Query(1),
    limit: int = Query(20, ge=1, le=100),
    backend: BackendClient = Depends(get_backend),
):
    """List view of the batch schedule; stats cover the filtered rows."""
    service = ScheduleService(backend)
    sort = SortState(sort_field, sort_direction) if sort_field in SORTABLE_FIELDS else None
    ordered, table_page = await service.list_batch_schedule(
        batch_id,
        academic_period_id=academic_period_id,
        search=search,
        course_code=course_code,
        day=day,
        teacher=teacher,
        sort=sort,
        page=page,
        page_size=limit,
    )
    return ApiResponse(
        data=BatchScheduleResponse(
            batch_id=batch_id,
            stats=schedule_stats(ordered),
            table=PaginatedResponse.create(
                items=table_page.items,
                total=table_page.total,
                page=table_page.page,
                limit=table_page.limit,
            ),
            courses=sorted({r.course_code for r in ordered if r.course_code}),
            teachers=sorted({r.teacher_name for r in ordered if r.teacher_name}),
        )
    )


@router.get(
    "/batches/{batch_id}/schedule/calendar",
    response_model=ApiResponse[WeekGrid],
)
async def get_batch_calendar(
    batch_id: str,
    academic_period_id: str | None = Query(None),
    backend: BackendClient = Depends(get_backend),
):
    """Week view: Monday to Sunday by hour."""
    service = ScheduleService(backend)
    rows = await service.get_batch_schedule(batch_id, academic_period_id)
    return ApiResponse(
        data=build_week_grid(rows, settings.calendar_start_hour, settings.calendar_end_hour)
    )


@router.patch(
    "/schedules/{schedule_id}",
    response_model=ApiResponse[ScheduleRow],
)
async def update_class(
    schedule_id: str,
    data: ScheduleEdit,
    backend: BackendClient = Depends(get_backend),
):
    """Assign or unassign today's teacher and set the class status."""
    service = ScheduleService(backend)
    row = await service.get_schedule_row(schedule_id)
    updated = await service.update_class(row, data)
    return ApiResponse(data=updated, message="Class updated successfully")
