"""Machine catalog: CRUD over machines and their supported task types."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlmodel import col

from app.core.logging import get_logger
from app.core.time import utcnow
from app.db import crud
from app.models.machines import Machine, MachineTaskType
from app.models.tasks import Task
from app.services.eligibility import busy_machine_bindings
from app.services.errors import InvalidRequestError, InvalidStateError, NotFoundError
from app.services.task_types import require_task_types

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from app.schemas.machines import MachineCreate, MachineUpdate

logger = get_logger(__name__)


async def get_machine_or_404(session: AsyncSession, machine_id: UUID) -> Machine:
    machine = await Machine.objects.by_id(machine_id).first(session)
    if machine is None:
        raise NotFoundError("machine_not_found", "Machine not found.")
    return machine


async def _ensure_name_available(
    session: AsyncSession,
    name: str,
    *,
    exclude_id: UUID | None = None,
) -> None:
    existing = await Machine.objects.filter_by(name=name).first(session)
    if existing is not None and existing.id != exclude_id:
        raise InvalidRequestError("machine_name_taken", f"Machine {name!r} already exists.")


async def create_machine(session: AsyncSession, payload: MachineCreate) -> Machine:
    await _ensure_name_available(session, payload.name)
    task_type_ids = await require_task_types(session, payload.task_type_ids)
    machine = Machine(name=payload.name)
    session.add(machine)
    await session.flush()
    session.add_all(
        MachineTaskType(machine_id=machine.id, task_type_id=task_type_id)
        for task_type_id in task_type_ids
    )
    await session.commit()
    await session.refresh(machine)
    logger.info(
        "machine.created",
        extra={"machine_id": str(machine.id), "task_type_count": len(task_type_ids)},
    )
    return machine


async def _ensure_bound_task_supported(
    session: AsyncSession,
    machine_id: UUID,
    task_type_ids: list[UUID],
) -> None:
    task_id = (await busy_machine_bindings(session)).get(machine_id)
    if task_id is None:
        return
    task = await Task.objects.by_id(task_id).first(session)
    if task is not None and task.task_type_id not in task_type_ids:
        raise InvalidStateError(
            "machine_in_use",
            "Machine is running a task of a type the new capability set drops.",
        )


async def update_machine(
    session: AsyncSession,
    machine_id: UUID,
    payload: MachineUpdate,
) -> Machine:
    """Rename a machine and/or replace its supported task types."""
    machine = await get_machine_or_404(session, machine_id)
    task_type_ids: list[UUID] | None = None
    if payload.task_type_ids is not None:
        task_type_ids = await require_task_types(session, payload.task_type_ids)
        await _ensure_bound_task_supported(session, machine_id, task_type_ids)
    if payload.name is not None and payload.name != machine.name:
        await _ensure_name_available(session, payload.name, exclude_id=machine_id)
        machine.name = payload.name
    if task_type_ids is not None:
        await crud.delete_where(
            session,
            MachineTaskType,
            col(MachineTaskType.machine_id) == machine_id,
            commit=False,
        )
        session.add_all(
            MachineTaskType(machine_id=machine_id, task_type_id=task_type_id)
            for task_type_id in task_type_ids
        )
    machine.updated_at = utcnow()
    session.add(machine)
    await session.commit()
    await session.refresh(machine)
    return machine


async def delete_machine(session: AsyncSession, machine_id: UUID) -> None:
    """Delete an idle machine and its capability rows."""
    await get_machine_or_404(session, machine_id)
    if machine_id in await busy_machine_bindings(session):
        raise InvalidStateError("machine_in_use", "Machine is bound to an in-progress task.")
    await crud.delete_where(
        session,
        MachineTaskType,
        col(MachineTaskType.machine_id) == machine_id,
        commit=False,
    )
    await crud.delete_where(session, Machine, col(Machine.id) == machine_id, commit=False)
    await session.commit()
    logger.info("machine.deleted", extra={"machine_id": str(machine_id)})
