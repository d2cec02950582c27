"""Automatic assignment of draft tasks to workers: preview and confirm.

Preview ranks eligible workers for every draft task by projected load and
never writes. Within one preview call each pick bumps the chosen worker's
simulated load, so a batch of drafts fans out across equally loaded workers.

Confirm applies a caller-approved plan item by item. Items are independent:
a bad item is reported as `skipped` and never rolls back the others.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlmodel import col

from app.core.config import settings
from app.core.logging import get_logger
from app.core.time import utcnow
from app.db import crud
from app.models.tasks import TASK_STATE_ASSIGNED, TASK_STATE_DRAFT, Task
from app.models.users import WORKER_ROLE, User
from app.services.eligibility import WorkerProfile, filter_eligible_workers, load_worker_profiles
from app.services.errors import NotFoundError
from app.services.load_accounting import current_load_counts, week_bounds, weekly_load_counts

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from datetime import datetime
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)

LoadStrategy = Literal["current", "weekly"]

SKIP_TASK_NOT_FOUND = "task_not_found"
SKIP_TASK_NOT_DRAFT = "task_not_draft"
SKIP_ASSIGNEE_NOT_WORKER = "assignee_not_worker"


@dataclass(frozen=True)
class AssignmentPreview:
    """Proposed assignee for a single draft task."""

    task_id: UUID
    task_name: str
    assignee: User


@dataclass(frozen=True)
class AssignmentRequest:
    """One approved task-to-worker pairing."""

    task_id: UUID
    assignee_id: UUID


@dataclass(frozen=True)
class AssignmentOutcome:
    """Result of applying one pairing."""

    task_id: UUID
    status: Literal["assigned", "skipped"]
    assignee_id: UUID | None = None
    reason: str | None = None


def rank_workers(
    candidates: Sequence[WorkerProfile],
    projected_load: Mapping[UUID, int],
) -> list[WorkerProfile]:
    """Order candidates by projected load, then specialists before generalists.

    `sorted` is stable, so remaining ties keep the candidates' input order.
    """
    return sorted(
        candidates,
        key=lambda worker: (
            projected_load.get(worker.id, 0),
            0 if worker.is_specialist else 1,
        ),
    )


async def _baseline_load(
    session: AsyncSession,
    worker_ids: list[UUID],
    *,
    strategy: LoadStrategy,
    now: datetime | None,
) -> dict[UUID, int]:
    if strategy == "weekly":
        return await weekly_load_counts(session, worker_ids, week_bounds(now))
    return await current_load_counts(session, worker_ids)


async def preview_assignments(
    session: AsyncSession,
    *,
    strategy: LoadStrategy | None = None,
    now: datetime | None = None,
) -> list[AssignmentPreview]:
    """Propose one assignee per draft task that has any eligible worker."""
    resolved_strategy: LoadStrategy = strategy or settings.assignment_load_strategy
    drafts = await Task.objects.filter_by(state=TASK_STATE_DRAFT).order_by(
        col(Task.created_at).asc(),
        col(Task.id).asc(),
    ).all(session)
    if not drafts:
        return []
    workers = await load_worker_profiles(session)
    baseline = await _baseline_load(
        session,
        [worker.id for worker in workers],
        strategy=resolved_strategy,
        now=now,
    )
    simulated: Counter[UUID] = Counter()

    previews: list[AssignmentPreview] = []
    for task in drafts:
        candidates = filter_eligible_workers(workers, task.task_type_id)
        if not candidates:
            continue
        projected = {
            worker.id: baseline.get(worker.id, 0) + simulated[worker.id] for worker in candidates
        }
        chosen = rank_workers(candidates, projected)[0]
        simulated[chosen.id] += 1
        previews.append(
            AssignmentPreview(task_id=task.id, task_name=task.name, assignee=chosen.user),
        )

    logger.info(
        "assignment.preview.complete",
        extra={
            "strategy": resolved_strategy,
            "draft_count": len(drafts),
            "preview_count": len(previews),
        },
    )
    return previews


async def _confirm_one(
    session: AsyncSession,
    *,
    assigner_id: UUID,
    item: AssignmentRequest,
) -> AssignmentOutcome:
    task = await Task.objects.by_id(item.task_id).first(session)
    if task is None:
        return AssignmentOutcome(item.task_id, "skipped", reason=SKIP_TASK_NOT_FOUND)
    if task.state != TASK_STATE_DRAFT:
        return AssignmentOutcome(item.task_id, "skipped", reason=SKIP_TASK_NOT_DRAFT)
    assignee = await User.objects.by_id(item.assignee_id).first(session)
    if assignee is None or assignee.role != WORKER_ROLE:
        return AssignmentOutcome(item.task_id, "skipped", reason=SKIP_ASSIGNEE_NOT_WORKER)

    now = utcnow()
    updated = await crud.update_where(
        session,
        Task,
        col(Task.id) == item.task_id,
        col(Task.state) == TASK_STATE_DRAFT,
        values={
            "assigner_id": assigner_id,
            "assignee_id": item.assignee_id,
            "state": TASK_STATE_ASSIGNED,
            "assign_time": now,
            "updated_at": now,
        },
    )
    if updated != 1:
        # Another confirm assigned the task between the read and the update.
        return AssignmentOutcome(item.task_id, "skipped", reason=SKIP_TASK_NOT_DRAFT)
    return AssignmentOutcome(item.task_id, "assigned", assignee_id=item.assignee_id)


async def confirm_assignments(
    session: AsyncSession,
    *,
    assigner_id: UUID,
    assignments: Sequence[AssignmentRequest],
) -> list[AssignmentOutcome]:
    """Apply approved pairings, moving each valid draft to `assigned`."""
    assigner = await User.objects.by_id(assigner_id).first(session)
    if assigner is None:
        raise NotFoundError("assigner_not_found", "Assigner not found.")
    outcomes: list[AssignmentOutcome] = []
    for item in assignments:
        outcome = await _confirm_one(session, assigner_id=assigner_id, item=item)
        logger.info(
            "assignment.confirm.item",
            extra={
                "task_id": str(item.task_id),
                "assignee_id": str(item.assignee_id),
                "status": outcome.status,
                "reason": outcome.reason,
            },
        )
        outcomes.append(outcome)
    return outcomes
