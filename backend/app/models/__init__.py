"""Model exports for SQLAlchemy/SQLModel metadata discovery."""

from app.models.machines import Machine, MachineTaskType
from app.models.task_types import TaskType
from app.models.tasks import Task, TaskMachine
from app.models.users import User, UserTaskType

__all__ = [
    "Machine",
    "MachineTaskType",
    "Task",
    "TaskMachine",
    "TaskType",
    "User",
    "UserTaskType",
]
