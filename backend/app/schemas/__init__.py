"""Public schema exports shared across API route modules."""

from app.schemas.assignments import (
    AssignmentConfirm,
    AssignmentConfirmResponse,
    AssignmentItem,
    AssignmentPreviewRead,
    AssignmentResultRead,
    StartNextRequest,
    StartNextResponse,
)
from app.schemas.machines import MachineCreate, MachineRead, MachineUpdate
from app.schemas.task_types import TaskTypeCreate, TaskTypeRead, TaskTypeUpdate
from app.schemas.tasks import TaskCreate, TaskFinish, TaskRead, TaskUpdate
from app.schemas.users import UserCreate, UserRead, UserUpdate

__all__ = [
    "AssignmentConfirm",
    "AssignmentConfirmResponse",
    "AssignmentItem",
    "AssignmentPreviewRead",
    "AssignmentResultRead",
    "MachineCreate",
    "MachineRead",
    "MachineUpdate",
    "StartNextRequest",
    "StartNextResponse",
    "TaskCreate",
    "TaskFinish",
    "TaskRead",
    "TaskTypeCreate",
    "TaskTypeRead",
    "TaskTypeUpdate",
    "TaskUpdate",
    "UserCreate",
    "UserRead",
    "UserUpdate",
]
