"""Machine endpoints with derived idle/in-use status."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi import APIRouter
from sqlmodel import col

from app.api.deps import API_AUTH_DEP, SESSION_DEP
from app.db.pagination import paginate
from app.models.machines import Machine
from app.schemas.common import DeletedResponse
from app.schemas.machines import MachineCreate, MachineRead, MachineUpdate
from app.schemas.pagination import DefaultLimitOffsetPage
from app.services import machines as machine_service
from app.services.task_reads import attach_machine_state, machine_reads, to_machine_read

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fastapi_pagination.limit_offset import LimitOffsetPage
    from sqlmodel.ext.asyncio.session import AsyncSession

router = APIRouter(prefix="/machines", tags=["machines"], dependencies=[API_AUTH_DEP])


async def _machine_read(session: AsyncSession, machine: Machine) -> MachineRead:
    return (await machine_reads(session, [machine]))[0]


@router.post("", response_model=MachineRead)
async def create_machine(
    payload: MachineCreate,
    session: AsyncSession = SESSION_DEP,
) -> MachineRead:
    """Register a machine and the task types it supports."""
    machine = await machine_service.create_machine(session, payload)
    return await _machine_read(session, machine)


@router.get("", response_model=DefaultLimitOffsetPage[MachineRead])
async def list_machines(
    session: AsyncSession = SESSION_DEP,
) -> LimitOffsetPage[MachineRead]:
    """List machines in registration order with their current status."""
    statement = (
        Machine.objects.all()
        .order_by(col(Machine.created_at).asc(), col(Machine.id).asc())
        .statement
    )

    def _transform(items: Sequence[Any]) -> Sequence[Any]:
        return [to_machine_read(item) for item in items]

    page = await paginate(session, statement, transformer=_transform)
    await attach_machine_state(session, page.items)
    return page


@router.get("/{machine_id}", response_model=MachineRead)
async def get_machine(
    machine_id: UUID,
    session: AsyncSession = SESSION_DEP,
) -> MachineRead:
    machine = await machine_service.get_machine_or_404(session, machine_id)
    return await _machine_read(session, machine)


@router.patch("/{machine_id}", response_model=MachineRead)
async def update_machine(
    machine_id: UUID,
    payload: MachineUpdate,
    session: AsyncSession = SESSION_DEP,
) -> MachineRead:
    """Rename a machine or replace its supported task types."""
    machine = await machine_service.update_machine(session, machine_id, payload)
    return await _machine_read(session, machine)


@router.delete("/{machine_id}", response_model=DeletedResponse)
async def delete_machine(
    machine_id: UUID,
    session: AsyncSession = SESSION_DEP,
) -> DeletedResponse:
    """Delete a machine that is not bound to an in-progress task."""
    await machine_service.delete_machine(session, machine_id)
    return DeletedResponse(id=machine_id)
