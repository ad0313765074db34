"""PostgreSQL document store: one JSONB document per row.

``where`` objects are translated to SQL on the ``document`` column. ``_id``
maps to the primary key and ``containerid`` to its indexed column on
``pipe_functions``. Arrays and objects compare by exact ``jsonb`` equality.
Ordering on document fields uses ``jsonb`` ordering.
"""

import json
import logging
from typing import Any, Generic

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from pipe_registry.core.errors import InvalidFilterError, NotFoundError
from pipe_registry.core.filters import Filter, Where, is_operator_object, parse_order
from pipe_registry.db import tables
from pipe_registry.db.helpers import ID_FIELD, ModelT, from_document, merge_document, new_id, to_document
from pipe_registry.db.relations import ContainerFunctions
from pipe_registry.models import PipeContainer, PipeFunction, Tag

logger = logging.getLogger(__name__)

_RESERVED_COLUMNS = frozenset({"document", "seq", "created"})


def _column_for(table: sa.Table, field: str) -> sa.ColumnElement[Any] | None:
    if field == ID_FIELD:
        return table.c.id
    if field not in _RESERVED_COLUMNS and field in table.c:
        return table.c[field]
    return None


def _json_path(table: sa.Table, field: str) -> Any:
    parts = tuple(field.split("."))
    return table.c.document[parts] if len(parts) > 1 else table.c.document[parts[0]]


def _text_expr(table: sa.Table, field: str) -> Any:
    column = _column_for(table, field)
    return column if column is not None else _json_path(table, field).astext


def _order_expr(table: sa.Table, field: str) -> Any:
    column = _column_for(table, field)
    return column if column is not None else _json_path(table, field)


def _nest(field: str, value: Any) -> Any:
    for part in reversed(field.split(".")):
        value = {part: value}
    return value


def _eq(table: sa.Table, field: str, value: Any) -> sa.ColumnElement[bool]:
    column = _column_for(table, field)
    if column is not None:
        return column.is_(None) if value is None else column == str(value)
    if value is None:
        return _json_path(table, field).is_(None)
    if isinstance(value, (list, dict)):
        return _json_path(table, field) == sa.cast(json.dumps(value), postgresql.JSONB)
    # scalar equality also matches an array field holding the value
    return sa.or_(
        table.c.document.contains(_nest(field, value)),
        table.c.document.contains(_nest(field, [value])),
    )


def _compare(table: sa.Table, field: str, op: str, operand: Any) -> sa.ColumnElement[bool]:
    expr = _text_expr(table, field)
    if isinstance(operand, (int, float)) and not isinstance(operand, bool):
        expr = sa.cast(expr, sa.Numeric)
    else:
        operand = str(operand)
    if op == "gt":
        return expr > operand
    if op == "gte":
        return expr >= operand
    if op == "lt":
        return expr < operand
    return expr <= operand


def _field_clause(table: sa.Table, field: str, condition: Any) -> sa.ColumnElement[bool]:
    if not is_operator_object(condition):
        return _eq(table, field, condition)

    clauses: list[sa.ColumnElement[bool]] = []
    for op, operand in condition.items():
        if op == "eq":
            clauses.append(_eq(table, field, operand))
        elif op == "neq":
            clauses.append(sa.not_(_eq(table, field, operand)))
        elif op in ("gt", "gte", "lt", "lte"):
            clauses.append(_compare(table, field, op, operand))
        elif op == "between":
            clauses.append(
                sa.and_(_compare(table, field, "gte", operand[0]), _compare(table, field, "lte", operand[1]))
            )
        elif op in ("inq", "nin"):
            found = sa.or_(sa.false(), *(_eq(table, field, item) for item in operand))
            clauses.append(found if op == "inq" else sa.not_(found))
        elif op == "exists":
            column = _column_for(table, field)
            target = column if column is not None else _json_path(table, field)
            clauses.append(target.isnot(None) if operand else target.is_(None))
        elif op == "like":
            clauses.append(_text_expr(table, field).like(str(operand), escape="\\"))
        elif op == "nlike":
            clauses.append(sa.func.coalesce(_text_expr(table, field).not_like(str(operand), escape="\\"), True))
        elif op == "ilike":
            clauses.append(_text_expr(table, field).ilike(str(operand), escape="\\"))
        elif op == "nilike":
            clauses.append(sa.func.coalesce(_text_expr(table, field).not_ilike(str(operand), escape="\\"), True))
        else:
            raise InvalidFilterError(f"Unknown operator {op!r}")
    return sa.and_(*clauses)


def where_clause(table: sa.Table, where: Where | None) -> sa.ColumnElement[bool]:
    if not where:
        return sa.true()
    clauses: list[sa.ColumnElement[bool]] = []
    for key, condition in where.items():
        if key == "and":
            clauses.append(sa.and_(sa.true(), *(where_clause(table, sub) for sub in condition)))
        elif key == "or":
            clauses.append(sa.or_(sa.false(), *(where_clause(table, sub) for sub in condition)))
        else:
            clauses.append(_field_clause(table, key, condition))
    return sa.and_(*clauses)


class PostgresCollection(Generic[ModelT]):
    def __init__(self, engine: AsyncEngine, table: sa.Table, model: type[ModelT], entity: str) -> None:
        self._engine = engine
        self._table = table
        self.model = model
        self.entity = entity

    def _values(self, document: dict[str, Any]) -> dict[str, Any]:
        values: dict[str, Any] = {"document": document}
        if "containerid" in self._table.c:
            values["containerid"] = document.get("containerid")
        return values

    async def create(self, record: ModelT) -> ModelT:
        record_id = new_id()
        document = to_document(record, record_id)
        async with self._engine.begin() as conn:
            await conn.execute(sa.insert(self._table).values(id=record_id, **self._values(document)))
        return from_document(self.model, document)

    async def find_by_id(self, record_id: str) -> ModelT:
        async with self._engine.connect() as conn:
            result = await conn.execute(sa.select(self._table.c.document).where(self._table.c.id == record_id))
            document = result.scalar_one_or_none()
        if document is None:
            raise NotFoundError(self.entity, record_id)
        return from_document(self.model, document)

    async def find(self, flt: Filter | None = None) -> list[ModelT]:
        flt = flt or Filter()
        stmt = sa.select(self._table.c.document).where(where_clause(self._table, flt.where))
        for entry in flt.order:
            field, descending = parse_order(entry)
            expr = _order_expr(self._table, field)
            stmt = stmt.order_by((expr.desc() if descending else expr.asc()).nulls_last())
        stmt = stmt.order_by(self._table.c.seq)
        if flt.skip:
            stmt = stmt.offset(flt.skip)
        if flt.limit is not None:
            stmt = stmt.limit(flt.limit)

        async with self._engine.connect() as conn:
            result = await conn.execute(stmt)
            documents = result.scalars().all()
        return [from_document(self.model, doc) for doc in documents]

    async def update_by_id(self, record_id: str, changes: dict[str, Any]) -> None:
        async with self._engine.begin() as conn:
            result = await conn.execute(
                sa.select(self._table.c.document).where(self._table.c.id == record_id).with_for_update()
            )
            document = result.scalar_one_or_none()
            if document is None:
                raise NotFoundError(self.entity, record_id)
            await self._write(conn, merge_document(self.model, document, changes))

    async def update_all(self, changes: dict[str, Any], where: Where | None = None) -> int:
        async with self._engine.begin() as conn:
            result = await conn.execute(
                sa.select(self._table.c.document).where(where_clause(self._table, where)).with_for_update()
            )
            # validate everything before writing anything
            updated = [merge_document(self.model, doc, changes) for doc in result.scalars().all()]
            for document in updated:
                await self._write(conn, document)
        return len(updated)

    async def delete_by_id(self, record_id: str) -> None:
        async with self._engine.begin() as conn:
            result = await conn.execute(sa.delete(self._table).where(self._table.c.id == record_id))
        if result.rowcount == 0:
            raise NotFoundError(self.entity, record_id)

    async def delete_all(self, where: Where | None = None) -> int:
        async with self._engine.begin() as conn:
            result = await conn.execute(sa.delete(self._table).where(where_clause(self._table, where)))
        return int(result.rowcount)

    async def count(self, where: Where | None = None) -> int:
        stmt = sa.select(sa.func.count()).select_from(self._table).where(where_clause(self._table, where))
        async with self._engine.connect() as conn:
            result = await conn.execute(stmt)
            return int(result.scalar_one())

    async def _write(self, conn: AsyncConnection, document: dict[str, Any]) -> None:
        await conn.execute(
            sa.update(self._table).where(self._table.c.id == document[ID_FIELD]).values(**self._values(document))
        )


class PostgresRegistryDatabase:
    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._ready = False
        self.containers = PostgresCollection(engine, tables.pipe_containers, PipeContainer, "PipeContainer")
        self.functions = PostgresCollection(engine, tables.pipe_functions, PipeFunction, "PipeFunction")
        self.tags = PostgresCollection(engine, tables.tags, Tag, "Tag")

    def children(self, container_id: str) -> ContainerFunctions:
        return ContainerFunctions(self.functions, container_id)

    async def ensure_ready(self) -> None:
        if self._ready:
            return
        async with self._engine.begin() as conn:
            await conn.run_sync(tables.metadata.create_all)
        self._ready = True
        logger.debug("Registry tables ensured")

    async def ping(self) -> bool:
        try:
            async with self._engine.connect() as conn:
                await conn.execute(sa.text("SELECT 1"))
            return True
        except Exception:
            logger.warning("Database ping failed", exc_info=True)
            return False

    async def dispose(self) -> None:
        await self._engine.dispose()
