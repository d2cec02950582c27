"""initial lab schema

Revision ID: 1a7c3e9d2b40
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""

from __future__ import annotations

import sqlalchemy as sa
import sqlmodel
from alembic import op

# revision identifiers, used by Alembic.
revision = "1a7c3e9d2b40"
down_revision = None
branch_labels = None
depends_on = None

_IN_PROGRESS = sa.text("state = 'in-progress'")


def upgrade() -> None:
    op.create_table(
        "task_types",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=50), nullable=False),
        sa.Column("machine_count", sa.Integer(), nullable=False),
        sa.Column("color", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_task_types_name"), "task_types", ["name"], unique=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("password_hash", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("role", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_name"), "users", ["name"], unique=True)
    op.create_index(op.f("ix_users_role"), "users", ["role"], unique=False)

    op.create_table(
        "machines",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=50), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_machines_name"), "machines", ["name"], unique=True)

    op.create_table(
        "machine_task_types",
        sa.Column("machine_id", sa.Uuid(), nullable=False),
        sa.Column("task_type_id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["machine_id"], ["machines.id"]),
        sa.ForeignKeyConstraint(["task_type_id"], ["task_types.id"]),
        sa.PrimaryKeyConstraint("machine_id", "task_type_id"),
    )
    op.create_index(
        op.f("ix_machine_task_types_task_type_id"),
        "machine_task_types",
        ["task_type_id"],
        unique=False,
    )

    op.create_table(
        "user_task_types",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("task_type_id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["task_type_id"], ["task_types.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("user_id", "task_type_id"),
    )
    op.create_index(
        op.f("ix_user_task_types_task_type_id"),
        "user_task_types",
        ["task_type_id"],
        unique=False,
    )

    op.create_table(
        "tasks",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("task_type_id", sa.Uuid(), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("assigner_id", sa.Uuid(), nullable=True),
        sa.Column("state", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("assignee_id", sa.Uuid(), nullable=True),
        sa.Column("assign_time", sa.DateTime(), nullable=True),
        sa.Column("start_time", sa.DateTime(), nullable=True),
        sa.Column("end_time", sa.DateTime(), nullable=True),
        sa.Column("message", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["assignee_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["assigner_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["task_type_id"], ["task_types.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_tasks_task_type_id"), "tasks", ["task_type_id"], unique=False)
    op.create_index(op.f("ix_tasks_assigner_id"), "tasks", ["assigner_id"], unique=False)
    op.create_index(op.f("ix_tasks_state"), "tasks", ["state"], unique=False)
    op.create_index(op.f("ix_tasks_assignee_id"), "tasks", ["assignee_id"], unique=False)
    op.create_index(op.f("ix_tasks_assign_time"), "tasks", ["assign_time"], unique=False)
    op.create_index(
        "uq_tasks_assignee_in_progress",
        "tasks",
        ["assignee_id"],
        unique=True,
        postgresql_where=_IN_PROGRESS,
        sqlite_where=_IN_PROGRESS,
    )

    op.create_table(
        "task_machines",
        sa.Column("machine_id", sa.Uuid(), nullable=False),
        sa.Column("task_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["machine_id"], ["machines.id"]),
        sa.ForeignKeyConstraint(["task_id"], ["tasks.id"]),
        sa.PrimaryKeyConstraint("machine_id"),
    )
    op.create_index(op.f("ix_task_machines_task_id"), "task_machines", ["task_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_task_machines_task_id"), table_name="task_machines")
    op.drop_table("task_machines")
    op.drop_index("uq_tasks_assignee_in_progress", table_name="tasks")
    op.drop_index(op.f("ix_tasks_assign_time"), table_name="tasks")
    op.drop_index(op.f("ix_tasks_assignee_id"), table_name="tasks")
    op.drop_index(op.f("ix_tasks_state"), table_name="tasks")
    op.drop_index(op.f("ix_tasks_assigner_id"), table_name="tasks")
    op.drop_index(op.f("ix_tasks_task_type_id"), table_name="tasks")
    op.drop_table("tasks")
    op.drop_index(op.f("ix_user_task_types_task_type_id"), table_name="user_task_types")
    op.drop_table("user_task_types")
    op.drop_index(op.f("ix_machine_task_types_task_type_id"), table_name="machine_task_types")
    op.drop_table("machine_task_types")
    op.drop_index(op.f("ix_machines_name"), table_name="machines")
    op.drop_table("machines")
    op.drop_index(op.f("ix_users_role"), table_name="users")
    op.drop_index(op.f("ix_users_name"), table_name="users")
    op.drop_table("users")
    op.drop_index(op.f("ix_task_types_name"), table_name="task_types")
    op.drop_table("task_types")
