import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

metadata = sa.MetaData()


def _document_table(name: str, *extra: sa.Column) -> sa.Table:
    return sa.Table(
        name,
        metadata,
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("seq", sa.BigInteger, sa.Identity(), nullable=False, unique=True),
        *extra,
        sa.Column("document", postgresql.JSONB, nullable=False),
        sa.Column("created", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


pipe_containers = _document_table("pipe_containers")
pipe_functions = _document_table(
    "pipe_functions",
    sa.Column("containerid", sa.Text, nullable=True, index=True),
)
tags = _document_table("tags")
