"""Temporal school schema: current schools table plus school_history.

Revision ID: 001_schools_temporal
Revises: None
Create Date: 2026-10-16

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_schools_temporal"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _versioned_columns() -> list[sa.Column]:
    return [
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("address", sa.String(200), nullable=False),
        sa.Column("principal_name", sa.String(50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("valid_from", sa.DateTime(timezone=True), nullable=False),
        sa.Column("valid_to", sa.DateTime(timezone=True), nullable=False),
        sa.Column("row_version", sa.Integer, nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "schools",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        *_versioned_columns(),
    )
    op.create_index("ix_schools_name", "schools", ["name"])
    op.create_index("ix_schools_created_at", "schools", ["created_at"])

    op.create_table(
        "school_history",
        sa.Column("history_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("id", sa.Integer, nullable=False),
        *_versioned_columns(),
    )
    op.create_index(
        "ix_school_history_id_valid_from", "school_history", ["id", "valid_from"],
    )


def downgrade() -> None:
    op.drop_index("ix_school_history_id_valid_from", table_name="school_history")
    op.drop_table("school_history")
    op.drop_index("ix_schools_created_at", table_name="schools")
    op.drop_index("ix_schools_name", table_name="schools")
    op.drop_table("schools")
