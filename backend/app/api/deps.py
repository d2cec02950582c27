"""Reusable FastAPI dependencies shared by the lab routers.

Every `/api/v1` route requires the shared bearer token; routers compose
`AUTH_DEP` and `SESSION_DEP` from here instead of re-declaring them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import Depends, Path

from app.core.auth import AuthContext, get_auth_context
from app.db.session import get_session
from app.services.task_lifecycle import get_task_or_404

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from app.models.tasks import Task

AUTH_DEP = Depends(get_auth_context)
SESSION_DEP = Depends(get_session)
TASK_ID_PATH = Path(description="Task id.")


def require_api_auth(auth: AuthContext = AUTH_DEP) -> AuthContext:
    """Require a caller presenting the shared API token."""
    return auth


async def get_task_or_404_dep(
    task_id: UUID = TASK_ID_PATH,
    session: AsyncSession = SESSION_DEP,
) -> Task:
    """Load a task by path id or raise 404."""
    return await get_task_or_404(session, task_id)


API_AUTH_DEP = Depends(require_api_auth)
TASK_DEP = Depends(get_task_or_404_dep)
