"""Give statuses an explicit workflow role and add the daily ticket counter."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.sql import column, table


revision = "20260120_0002"
down_revision = "20260116_0001"
branch_labels = None
depends_on = None


ROLE_BY_NAME = {
    "open": "open",
    "in progress": "in_progress",
    "resolved": "resolved",
    "closed": "closed",
}


def upgrade() -> None:
    with op.batch_alter_table("statuses") as batch_op:
        batch_op.add_column(
            sa.Column("role", sa.String(length=20), nullable=False, server_default="none")
        )

    statuses = table(
        "statuses",
        column("id", sa.String()),
        column("name", sa.String()),
        column("is_closed", sa.Boolean()),
        column("role", sa.String()),
    )
    bind = op.get_bind()
    rows = bind.execute(sa.select(statuses.c.name, statuses.c.is_closed)).all()
    for name, is_closed in rows:
        role = ROLE_BY_NAME.get((name or "").strip().lower())
        if role is None and is_closed:
            role = "closed"
        if role is None:
            continue
        bind.execute(
            statuses.update().where(statuses.c.name == name).values(role=role)
        )

    op.create_table(
        "ticket_daily_sequences",
        sa.Column("sequence_date", sa.Date(), primary_key=True),
        sa.Column("last_value", sa.Integer(), nullable=False, server_default="0"),
    )


def downgrade() -> None:
    op.drop_table("ticket_daily_sequences")
    with op.batch_alter_table("statuses") as batch_op:
        batch_op.drop_column("role")
