"""Service desk schema: reference data, tickets and comments."""

from __future__ import annotations

import uuid

from alembic import context, op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "20260116_0001"
down_revision = None
branch_labels = None
depends_on = None


DEFAULT_CATEGORIES = (
    ("IT Support", "Technical issues, software, hardware", "#3b82f6"),
    ("HR", "Human resources inquiries", "#8b5cf6"),
    ("Facilities", "Office maintenance, equipment", "#10b981"),
    ("Finance", "Billing, expenses, payments", "#f59e0b"),
    ("General", "Other requests", "#6b7280"),
)

DEFAULT_PRIORITIES = (
    ("Low", 1, "#10b981"),
    ("Medium", 2, "#f59e0b"),
    ("High", 3, "#ef4444"),
    ("Critical", 4, "#dc2626"),
)

DEFAULT_STATUSES = (
    ("Open", 1, "#3b82f6", False),
    ("In Progress", 2, "#f59e0b", False),
    ("Waiting", 3, "#8b5cf6", False),
    ("Resolved", 4, "#10b981", False),
    ("Closed", 5, "#6b7280", True),
)


def _dialect_name() -> str:
    bind = op.get_bind()
    if bind is not None:
        return bind.dialect.name
    ctx = context.get_context()
    return ctx.dialect.name if ctx is not None else ""


def upgrade() -> None:
    dialect_name = _dialect_name()

    uuid_type = sa.String(length=36)
    timestamp_type = sa.DateTime(timezone=True)
    if dialect_name == "postgresql":
        uuid_type = postgresql.UUID(as_uuid=True)

    def new_id():
        identifier = uuid.uuid4()
        return identifier if dialect_name == "postgresql" else str(identifier)

    categories = op.create_table(
        "categories",
        sa.Column("id", uuid_type, primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("color", sa.String(length=20), nullable=False, server_default="#3b82f6"),
        sa.Column("created_at", timestamp_type, nullable=False, server_default=sa.func.now()),
    )

    priorities = op.create_table(
        "priorities",
        sa.Column("id", uuid_type, primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("color", sa.String(length=20), nullable=False, server_default="#6b7280"),
        sa.Column("created_at", timestamp_type, nullable=False, server_default=sa.func.now()),
    )

    statuses = op.create_table(
        "statuses",
        sa.Column("id", uuid_type, primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("color", sa.String(length=20), nullable=False, server_default="#6b7280"),
        sa.Column("is_closed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", timestamp_type, nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "tickets",
        sa.Column("id", uuid_type, primary_key=True),
        sa.Column("ticket_number", sa.String(length=32), nullable=False, unique=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("category_id", uuid_type, sa.ForeignKey("categories.id"), nullable=False),
        sa.Column("priority_id", uuid_type, sa.ForeignKey("priorities.id"), nullable=False),
        sa.Column("status_id", uuid_type, sa.ForeignKey("statuses.id"), nullable=False),
        sa.Column("requester_name", sa.String(length=255), nullable=False),
        sa.Column("requester_email", sa.String(length=255), nullable=False),
        sa.Column("assigned_to", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("created_at", timestamp_type, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", timestamp_type, nullable=False, server_default=sa.func.now()),
        sa.Column("resolved_at", timestamp_type, nullable=True),
        sa.Column("closed_at", timestamp_type, nullable=True),
    )
    op.create_index("idx_tickets_status", "tickets", ["status_id"])
    op.create_index("idx_tickets_category", "tickets", ["category_id"])
    op.create_index("idx_tickets_priority", "tickets", ["priority_id"])
    op.create_index("idx_tickets_created", "tickets", ["created_at"])

    op.create_table(
        "ticket_comments",
        sa.Column("id", uuid_type, primary_key=True),
        sa.Column(
            "ticket_id",
            uuid_type,
            sa.ForeignKey("tickets.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("comment", sa.Text(), nullable=False),
        sa.Column("author_name", sa.String(length=255), nullable=False),
        sa.Column("is_internal", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", timestamp_type, nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_comments_ticket", "ticket_comments", ["ticket_id"])

    op.bulk_insert(
        categories,
        [
            {"id": new_id(), "name": name, "description": description, "color": color}
            for name, description, color in DEFAULT_CATEGORIES
        ],
    )
    op.bulk_insert(
        priorities,
        [
            {"id": new_id(), "name": name, "level": level, "color": color}
            for name, level, color in DEFAULT_PRIORITIES
        ],
    )
    op.bulk_insert(
        statuses,
        [
            {"id": new_id(), "name": name, "order": order, "color": color, "is_closed": is_closed}
            for name, order, color, is_closed in DEFAULT_STATUSES
        ],
    )


def downgrade() -> None:
    op.drop_index("idx_comments_ticket", table_name="ticket_comments")
    op.drop_table("ticket_comments")
    op.drop_index("idx_tickets_created", table_name="tickets")
    op.drop_index("idx_tickets_priority", table_name="tickets")
    op.drop_index("idx_tickets_category", table_name="tickets")
    op.drop_index("idx_tickets_status", table_name="tickets")
    op.drop_table("tickets")
    op.drop_table("statuses")
    op.drop_table("priorities")
    op.drop_table("categories")
