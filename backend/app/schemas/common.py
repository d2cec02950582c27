"""Small response envelopes shared by several routers."""

from __future__ import annotations

from uuid import UUID

from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (UUID,)


class DeletedResponse(SQLModel):
    """Confirmation returned after a successful delete."""

    ok: bool = True
    id: UUID
