"""Initial schema: pipe_containers, pipe_functions and tags document tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _document_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("seq", sa.BigInteger, sa.Identity(), nullable=False, unique=True),
    ]


def _trailing_columns() -> list[sa.Column]:
    return [
        sa.Column("document", postgresql.JSONB, nullable=False),
        sa.Column("created", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table("pipe_containers", *_document_columns(), *_trailing_columns(), schema="public")
    op.create_table(
        "pipe_functions",
        *_document_columns(),
        sa.Column("containerid", sa.Text, nullable=True),
        *_trailing_columns(),
        schema="public",
    )
    op.create_index("ix_pipe_functions_containerid", "pipe_functions", ["containerid"], schema="public")
    op.create_table("tags", *_document_columns(), *_trailing_columns(), schema="public")


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("tags", schema="public")
    op.drop_index("ix_pipe_functions_containerid", table_name="pipe_functions", schema="public")
    op.drop_table("pipe_functions", schema="public")
    op.drop_table("pipe_containers", schema="public")
