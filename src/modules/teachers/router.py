"""API for teachers."""

from fastapi import APIRouter, Depends, Query

from src.core.backend import BackendClient, get_backend
from src.core.tabular import SortDirection, SortState
from src.modules.teachers.schemas import TeacherDetailResponse, TeacherListResponse
from src.modules.teachers.service import TeacherService, roster_stats
from src.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/teachers", tags=["Teachers"])

SORTABLE_FIELDS = ("instructor_id", "first_name", "last_name", "email", "department", "designation", "join_date")


@router.get(
    "",
    response_model=ApiResponse[TeacherListResponse],
)
async def list_teachers(
    search: str = Query("", description="Search in name, email, instructor ID and department."),
    department: str = Query("all"),
    is_active: bool | None = Query(None),
    sort_field: str | None = Query(None, description="Default: join date, newest first."),
    sort_direction: SortDirection = Query(SortDirection.ASC),
    page: int = Query(1),
    limit: int = Query(10, ge=1, le=100),
    backend: BackendClient = Depends(get_backend),
):
    """Teacher roster. Stats cover the whole roster, not just the filtered rows."""
    service = TeacherService(backend)
    sort = SortState(sort_field, sort_direction) if sort_field in SORTABLE_FIELDS else None
    teachers, _, table_page = await service.search_teachers(
        search=search,
        department=department,
        is_active=is_active,
        sort=sort,
        page=page,
        page_size=limit,
    )
    return ApiResponse(
        data=TeacherListResponse(
            stats=roster_stats(teachers),
            table=PaginatedResponse.create(
                items=table_page.items,
                total=table_page.total,
                page=table_page.page,
                limit=table_page.limit,
            ),
            departments=sorted({t.department for t in teachers if t.department}),
        )
    )


@router.get(
    "/{instructor_id}",
    response_model=ApiResponse[TeacherDetailResponse],
)
async def get_teacher(
    instructor_id: str,
    backend: BackendClient = Depends(get_backend),
):
    """Teacher details with assigned classes and stats."""
    service = TeacherService(backend)
    return ApiResponse(data=await service.get_teacher_detail(instructor_id))
