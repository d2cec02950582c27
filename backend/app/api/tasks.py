"""Task endpoints: CRUD, automatic assignment, start-next, and load views."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal
from uuid import UUID

from fastapi import APIRouter, Body, Query
from sqlmodel import col, select

from app.api.deps import API_AUTH_DEP, SESSION_DEP, TASK_DEP
from app.db.pagination import paginate
from app.models.tasks import Task
from app.schemas.assignments import (
    AssignmentConfirm,
    AssignmentConfirmResponse,
    AssignmentPreviewRead,
    AssignmentResultRead,
    StartNextRequest,
    StartNextResponse,
)
from app.schemas.common import DeletedResponse
from app.schemas.pagination import DefaultLimitOffsetPage
from app.schemas.tasks import (
    TaskActionResponse,
    TaskCreate,
    TaskFinish,
    TaskRead,
    TaskState,
    TaskUpdate,
    UserRef,
    WeeklyLoadRead,
    WorkerLoadRead,
)
from app.services import assignment, scheduler, task_lifecycle
from app.services.load_accounting import weekly_load, worker_loads
from app.services.task_reads import attach_task_refs, task_read, task_reads, to_task_read

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fastapi_pagination.limit_offset import LimitOffsetPage
    from sqlmodel.ext.asyncio.session import AsyncSession

    from app.services.load_accounting import WorkerLoad

router = APIRouter(prefix="/tasks", tags=["tasks"], dependencies=[API_AUTH_DEP])

STATE_QUERY = Query(default=None, description="Filter by lifecycle state.")
ASSIGNEE_QUERY = Query(default=None, description="Filter by assignee id.")
STRATEGY_QUERY = Query(
    default=None,
    description="Load baseline: `current` (assigned + in-progress) or `weekly`.",
)
FINISH_BODY = Body(default=None)


async def _worker_load_read(session: AsyncSession, load: WorkerLoad) -> WorkerLoadRead:
    return WorkerLoadRead(
        worker_id=load.worker.id,
        name=load.worker.name,
        assigned=await task_reads(session, load.assigned),
        in_progress=await task_reads(session, load.in_progress),
    )


@router.post("", response_model=TaskRead)
async def create_task(
    payload: TaskCreate,
    session: AsyncSession = SESSION_DEP,
) -> TaskRead:
    """Create a draft task of an existing task type."""
    task = await task_lifecycle.create_task(session, payload)
    return await task_read(session, task)


@router.get("", response_model=DefaultLimitOffsetPage[TaskRead])
async def list_tasks(
    state: TaskState | None = STATE_QUERY,
    assignee_id: UUID | None = ASSIGNEE_QUERY,
    session: AsyncSession = SESSION_DEP,
) -> LimitOffsetPage[TaskRead]:
    """List tasks, oldest first, optionally filtered by state or assignee."""
    statement = select(Task)
    if state is not None:
        statement = statement.where(col(Task.state) == state)
    if assignee_id is not None:
        statement = statement.where(col(Task.assignee_id) == assignee_id)
    statement = statement.order_by(col(Task.created_at).asc(), col(Task.id).asc())

    def _transform(items: Sequence[Any]) -> Sequence[Any]:
        return [to_task_read(item) for item in items]

    page = await paginate(session, statement, transformer=_transform)
    await attach_task_refs(session, page.items)
    return page


@router.post("/auto-assign-preview", response_model=list[AssignmentPreviewRead])
async def auto_assign_preview(
    strategy: Literal["current", "weekly"] | None = STRATEGY_QUERY,
    session: AsyncSession = SESSION_DEP,
) -> list[AssignmentPreviewRead]:
    """Propose an assignee for every draft task without writing anything."""
    previews = await assignment.preview_assignments(session, strategy=strategy)
    return [
        AssignmentPreviewRead(
            task_id=preview.task_id,
            task_name=preview.task_name,
            preview_assignee=UserRef(id=preview.assignee.id, name=preview.assignee.name),
        )
        for preview in previews
    ]


@router.patch("/auto-assign-confirm", response_model=AssignmentConfirmResponse)
async def auto_assign_confirm(
    payload: AssignmentConfirm,
    session: AsyncSession = SESSION_DEP,
) -> AssignmentConfirmResponse:
    """Apply an approved assignment plan; invalid items are skipped, not fatal."""
    outcomes = await assignment.confirm_assignments(
        session,
        assigner_id=payload.assigner_id,
        assignments=[
            assignment.AssignmentRequest(task_id=item.task_id, assignee_id=item.assignee_id)
            for item in payload.assignments
        ],
    )
    return AssignmentConfirmResponse(
        results=[
            AssignmentResultRead(
                task_id=outcome.task_id,
                status=outcome.status,
                assignee_id=outcome.assignee_id,
                reason=outcome.reason,
            )
            for outcome in outcomes
        ],
    )


@router.patch("/start-next", response_model=StartNextResponse)
async def start_next(
    payload: StartNextRequest,
    session: AsyncSession = SESSION_DEP,
) -> StartNextResponse:
    """Start the worker's next assigned task that has enough idle machines."""
    task = await scheduler.start_next(session, payload.worker_id)
    return StartNextResponse(message="Task started.", task=await task_read(session, task))


@router.get("/load", response_model=list[WorkerLoadRead])
async def list_worker_loads(session: AsyncSession = SESSION_DEP) -> list[WorkerLoadRead]:
    """Current assigned and in-progress tasks of every worker."""
    return [await _worker_load_read(session, load) for load in await worker_loads(session)]


@router.get("/load/{worker_id}", response_model=WorkerLoadRead)
async def get_worker_load(
    worker_id: UUID,
    session: AsyncSession = SESSION_DEP,
) -> WorkerLoadRead:
    """Current assigned and in-progress tasks of one worker."""
    loads = await worker_loads(session, worker_id)
    return await _worker_load_read(session, loads[0])


@router.get("/week-load/{worker_id}", response_model=WeeklyLoadRead)
async def get_weekly_load(
    worker_id: UUID,
    session: AsyncSession = SESSION_DEP,
) -> WeeklyLoadRead:
    """Tasks assigned to the worker during the current calendar week."""
    load = await weekly_load(session, worker_id)
    return WeeklyLoadRead(
        worker_id=load.worker.id,
        week_start=load.window.start,
        week_end=load.window.end,
        count=load.count,
        tasks=await task_reads(session, load.tasks),
    )


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(
    task: Task = TASK_DEP,
    session: AsyncSession = SESSION_DEP,
) -> TaskRead:
    return await task_read(session, task)


@router.patch("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: UUID,
    payload: TaskUpdate,
    session: AsyncSession = SESSION_DEP,
) -> TaskRead:
    """Edit a draft task."""
    task = await task_lifecycle.update_draft(session, task_id, payload)
    return await task_read(session, task)


@router.delete("/{task_id}", response_model=DeletedResponse)
async def delete_task(
    task_id: UUID,
    session: AsyncSession = SESSION_DEP,
) -> DeletedResponse:
    """Delete a draft task."""
    await task_lifecycle.delete_task(session, task_id)
    return DeletedResponse(id=task_id)


@router.patch("/{task_id}/complete", response_model=TaskActionResponse)
async def complete_task(
    task_id: UUID,
    payload: TaskFinish | None = FINISH_BODY,
    session: AsyncSession = SESSION_DEP,
) -> TaskActionResponse:
    """Mark an in-progress task successful and release its machines."""
    task = await task_lifecycle.complete_task(
        session,
        task_id,
        message=payload.message if payload else None,
    )
    return TaskActionResponse(message="Task completed.", task=await task_read(session, task))


@router.patch("/{task_id}/fail", response_model=TaskActionResponse)
async def fail_task(
    task_id: UUID,
    payload: TaskFinish | None = FINISH_BODY,
    session: AsyncSession = SESSION_DEP,
) -> TaskActionResponse:
    """Mark an in-progress task failed and release its machines."""
    task = await task_lifecycle.fail_task(
        session,
        task_id,
        message=payload.message if payload else None,
    )
    return TaskActionResponse(message="Task failed.", task=await task_read(session, task))
