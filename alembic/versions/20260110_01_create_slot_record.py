"""Create slot_record table."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "20260110_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "slot_record",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("collection", sa.String(length=32), nullable=False),
        sa.Column("region_id", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("slot_number", sa.Integer(), nullable=False),
        sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("payload_json", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_slot_record"),
        sa.UniqueConstraint(
            "collection", "region_id", "slot_number", name="uq_slot_record_scope"
        ),
    )
    op.create_index("ix_slot_record_collection", "slot_record", ["collection"])


def downgrade() -> None:
    op.drop_index("ix_slot_record_collection", table_name="slot_record")
    op.drop_table("slot_record")
