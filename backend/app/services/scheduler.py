"""Start-next scheduling: pick a worker's next task and bind free machines.

A worker's assigned tasks are tried largest machine demand first. The first
task whose type has enough idle compatible machines is started; at most one
task starts per call.

Double booking is prevented at two levels. Scheduling decisions inside one
process are serialized by an asyncio lock. Across processes the store has the
final word: `task_machines.machine_id` is a primary key and
`uq_tasks_assignee_in_progress` allows one running task per worker, so a lost
race surfaces as `IntegrityError`, is rolled back, and the decision is
recomputed from fresh state.
"""

from __future__ import annotations

import asyncio
import weakref
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError
from sqlmodel import col, select

from app.core.config import settings
from app.core.logging import get_logger
from app.core.time import utcnow
from app.db import crud
from app.models.task_types import TaskType
from app.models.tasks import TASK_STATE_ASSIGNED, TASK_STATE_IN_PROGRESS, Task, TaskMachine
from app.models.users import WORKER_ROLE, User
from app.services.eligibility import busy_machine_ids, eligible_machines
from app.services.errors import NotFoundError, ResourceUnavailableError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from app.models.machines import Machine

logger = get_logger(__name__)

_scheduling_locks: weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Lock] = (
    weakref.WeakKeyDictionary()
)


class _ClaimLostError(Exception):
    """The task left `assigned` between selection and claim."""


@dataclass(frozen=True)
class StartCandidate:
    """An assigned task paired with its resolved task type."""

    task: Task
    task_type: TaskType

    @property
    def required_machines(self) -> int:
        return self.task_type.machine_count


def _scheduling_lock() -> asyncio.Lock:
    loop = asyncio.get_running_loop()
    lock = _scheduling_locks.get(loop)
    if lock is None:
        lock = asyncio.Lock()
        _scheduling_locks[loop] = lock
    return lock


def order_by_machine_demand(candidates: Sequence[StartCandidate]) -> list[StartCandidate]:
    """Sort candidates by required machine count, largest first (stable)."""
    return sorted(candidates, key=lambda candidate: candidate.required_machines, reverse=True)


async def _assigned_candidates(session: AsyncSession, worker_id: UUID) -> list[StartCandidate]:
    rows = await session.exec(
        select(Task, TaskType)
        .join(TaskType, col(TaskType.id) == col(Task.task_type_id))
        .where(col(Task.assignee_id) == worker_id)
        .where(col(Task.state) == TASK_STATE_ASSIGNED)
        .order_by(col(Task.created_at).asc(), col(Task.id).asc()),
    )
    return [StartCandidate(task=task, task_type=task_type) for task, task_type in rows]


async def _claim(
    session: AsyncSession,
    candidate: StartCandidate,
    machines: Sequence[Machine],
) -> Task:
    task = candidate.task
    now = utcnow()
    updated = await crud.update_where(
        session,
        Task,
        col(Task.id) == task.id,
        col(Task.state) == TASK_STATE_ASSIGNED,
        values={"state": TASK_STATE_IN_PROGRESS, "start_time": now, "updated_at": now},
        commit=False,
    )
    if updated != 1:
        raise _ClaimLostError
    session.add_all(
        TaskMachine(machine_id=machine.id, task_id=task.id, position=position)
        for position, machine in enumerate(machines)
    )
    await session.commit()
    await session.refresh(task)
    return task


async def _start_next_once(session: AsyncSession, worker_id: UUID) -> Task:
    running = await Task.objects.filter_by(
        assignee_id=worker_id,
        state=TASK_STATE_IN_PROGRESS,
    ).first(session)
    if running is not None:
        raise ResourceUnavailableError(
            "worker_busy",
            "Worker already has a task in progress.",
        )

    candidates = await _assigned_candidates(session, worker_id)
    if not candidates:
        raise NotFoundError("no_assigned_tasks", "Worker has no assigned tasks to start.")

    busy = await busy_machine_ids(session)
    for candidate in order_by_machine_demand(candidates):
        free = await eligible_machines(session, candidate.task_type.id, exclude_ids=busy)
        if len(free) < candidate.required_machines:
            logger.debug(
                "scheduler.start_next.candidate_blocked",
                extra={
                    "task_id": str(candidate.task.id),
                    "required": candidate.required_machines,
                    "available": len(free),
                },
            )
            continue
        task = await _claim(session, candidate, free[: candidate.required_machines])
        logger.info(
            "scheduler.start_next.started",
            extra={
                "worker_id": str(worker_id),
                "task_id": str(task.id),
                "machine_count": candidate.required_machines,
            },
        )
        return task

    raise ResourceUnavailableError(
        "insufficient_machines",
        "No assigned task can start: not enough idle compatible machines.",
    )


async def start_next(
    session: AsyncSession,
    worker_id: UUID,
    *,
    max_attempts: int | None = None,
) -> Task:
    """Start the worker's next startable task and bind its machines."""
    worker = await User.objects.by_id(worker_id).first(session)
    if worker is None or worker.role != WORKER_ROLE:
        raise NotFoundError("worker_not_found", "Worker not found.")

    attempts = max_attempts or settings.start_next_max_attempts
    async with _scheduling_lock():
        for attempt in range(1, attempts + 1):
            try:
                return await _start_next_once(session, worker_id)
            except (IntegrityError, _ClaimLostError):
                await session.rollback()
                logger.warning(
                    "scheduler.start_next.claim_conflict",
                    extra={"worker_id": str(worker_id), "attempt": attempt},
                )

    raise ResourceUnavailableError(
        "machine_claim_conflict",
        "Machines were claimed concurrently; retry the request.",
    )
