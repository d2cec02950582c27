"""Current and week-to-date workload accounting for workers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, time, timedelta
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from sqlalchemy import func
from sqlmodel import col, select

from app.core.config import settings
from app.models.tasks import (
    ACTIVE_TASK_STATES,
    TASK_STATE_ASSIGNED,
    TASK_STATE_IN_PROGRESS,
    Task,
)
from app.models.users import WORKER_ROLE, User
from app.services.errors import NotFoundError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

_END_OF_DAY = time(23, 59, 59, 999000)


@dataclass(frozen=True)
class WeekWindow:
    """Calendar week bounds as naive UTC datetimes, both inclusive."""

    start: datetime
    end: datetime

    def __contains__(self, moment: object) -> bool:
        return isinstance(moment, datetime) and self.start <= moment <= self.end


@dataclass(frozen=True)
class WeeklyLoad:
    """Week-to-date assignments of one worker."""

    worker: User
    window: WeekWindow
    tasks: list[Task]

    @property
    def count(self) -> int:
        return len(self.tasks)


@dataclass(frozen=True)
class WorkerLoad:
    """Assigned and in-progress tasks currently held by one worker."""

    worker: User
    assigned: list[Task]
    in_progress: list[Task]

    @property
    def total(self) -> int:
        return len(self.assigned) + len(self.in_progress)


def _to_naive_utc(moment: datetime) -> datetime:
    return moment.astimezone(UTC).replace(tzinfo=None)


def week_bounds(now: datetime | None = None, *, timezone: str | None = None) -> WeekWindow:
    """Return Monday 00:00:00.000 to Sunday 23:59:59.999 around *now*.

    Boundaries are computed on the configured local clock; a Sunday belongs to
    the week that started six days earlier. Naive *now* values are UTC.
    """
    zone = ZoneInfo(timezone or settings.week_timezone)
    moment = now or datetime.now(UTC)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    local_day = moment.astimezone(zone).date()
    monday = local_day - timedelta(days=local_day.weekday())
    sunday = monday + timedelta(days=6)
    return WeekWindow(
        start=_to_naive_utc(datetime.combine(monday, time.min, tzinfo=zone)),
        end=_to_naive_utc(datetime.combine(sunday, _END_OF_DAY, tzinfo=zone)),
    )


async def current_load_counts(
    session: AsyncSession,
    worker_ids: Iterable[UUID],
) -> dict[UUID, int]:
    """Count assigned + in-progress tasks per worker; absent workers map to 0."""
    ids = list(worker_ids)
    if not ids:
        return {}
    rows = await session.exec(
        select(Task.assignee_id, func.count())
        .where(col(Task.assignee_id).in_(ids))
        .where(col(Task.state).in_(ACTIVE_TASK_STATES))
        .group_by(col(Task.assignee_id)),
    )
    counts = dict.fromkeys(ids, 0)
    for assignee_id, count in rows:
        if assignee_id is not None:
            counts[assignee_id] = int(count)
    return counts


async def current_load(session: AsyncSession, worker_id: UUID) -> int:
    """Count a worker's assigned + in-progress tasks."""
    return (await current_load_counts(session, [worker_id]))[worker_id]


async def weekly_load_counts(
    session: AsyncSession,
    worker_ids: Iterable[UUID],
    window: WeekWindow,
) -> dict[UUID, int]:
    """Count tasks assigned within *window* per worker, in any state."""
    ids = list(worker_ids)
    if not ids:
        return {}
    rows = await session.exec(
        select(Task.assignee_id, func.count())
        .where(col(Task.assignee_id).in_(ids))
        .where(col(Task.assign_time) >= window.start)
        .where(col(Task.assign_time) <= window.end)
        .group_by(col(Task.assignee_id)),
    )
    counts = dict.fromkeys(ids, 0)
    for assignee_id, count in rows:
        if assignee_id is not None:
            counts[assignee_id] = int(count)
    return counts


async def weekly_load(
    session: AsyncSession,
    worker_id: UUID,
    *,
    now: datetime | None = None,
) -> WeeklyLoad:
    """List tasks assigned to *worker_id* during the current calendar week."""
    worker = await User.objects.by_id(worker_id).first(session)
    if worker is None:
        raise NotFoundError("user_not_found", "User not found.")
    window = week_bounds(now)
    tasks = await Task.objects.filter_by(assignee_id=worker_id).filter(
        col(Task.assign_time) >= window.start,
        col(Task.assign_time) <= window.end,
    ).order_by(col(Task.assign_time).asc(), col(Task.id).asc()).all(session)
    return WeeklyLoad(worker=worker, window=window, tasks=tasks)


async def _active_tasks_by_worker(
    session: AsyncSession,
    worker_ids: list[UUID],
) -> dict[UUID, list[Task]]:
    tasks = await Task.objects.by_field_in("assignee_id", worker_ids).filter(
        col(Task.state).in_(ACTIVE_TASK_STATES),
    ).order_by(col(Task.created_at).asc(), col(Task.id).asc()).all(session)
    grouped: dict[UUID, list[Task]] = {worker_id: [] for worker_id in worker_ids}
    for task in tasks:
        if task.assignee_id is not None:
            grouped[task.assignee_id].append(task)
    return grouped


async def worker_loads(
    session: AsyncSession,
    worker_id: UUID | None = None,
) -> list[WorkerLoad]:
    """Return current load for one worker, or for every worker when omitted."""
    if worker_id is not None:
        worker = await User.objects.by_id(worker_id).first(session)
        if worker is None or worker.role != WORKER_ROLE:
            raise NotFoundError("worker_not_found", "Worker not found.")
        workers = [worker]
    else:
        workers = await User.objects.filter_by(role=WORKER_ROLE).order_by(
            col(User.created_at).asc(),
            col(User.id).asc(),
        ).all(session)
    grouped = await _active_tasks_by_worker(session, [worker.id for worker in workers])
    loads: list[WorkerLoad] = []
    for worker in workers:
        tasks = grouped.get(worker.id, [])
        loads.append(
            WorkerLoad(
                worker=worker,
                assigned=[task for task in tasks if task.state == TASK_STATE_ASSIGNED],
                in_progress=[task for task in tasks if task.state == TASK_STATE_IN_PROGRESS],
            ),
        )
    return loads
