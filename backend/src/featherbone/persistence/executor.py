"""CRUD executor - the storage step of a dispatched request.

CrudExecutor is the interface the dispatcher depends on. SqlCrudExecutor is
a reference implementation over SQLAlchemy Core: one table per feather,
with columns for the feather's own and inherited properties.

Executors never begin, commit or roll back; the dispatcher's transaction
wrapper owns the transaction lifecycle.
"""

import uuid
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Float,
    Integer,
    MetaData,
    Table,
    Text,
    delete,
    insert,
    select,
    update,
)

from featherbone.catalog.loader import FeatherCatalog
from featherbone.catalog.types import FeatherProperty
from featherbone.persistence.connection import ConnectionContext


@runtime_checkable
class CrudExecutor(Protocol):
    """Interface every CRUD executor must implement.

    ``request`` is a featherbone.dispatch.types.Request; each method runs
    on ``ctx.connection`` inside whatever transaction is already open.
    """

    async def select(self, ctx: ConnectionContext, request: Any) -> Any: ...

    async def insert(self, ctx: ConnectionContext, request: Any) -> Any: ...

    async def update(self, ctx: ConnectionContext, request: Any) -> Any: ...

    async def delete(self, ctx: ConnectionContext, request: Any) -> Any: ...

    async def upsert(self, ctx: ConnectionContext, request: Any) -> Any: ...


def table_name(feather_name: str) -> str:
    """Convert a feather name to a snake_case table name."""
    result = []
    for i, char in enumerate(feather_name):
        if char.isupper() and i > 0:
            result.append("_")
        result.append(char.lower())
    return "".join(result)


def _column_type(prop: FeatherProperty) -> Any:
    if prop.relation:
        # Relations store the related record's id
        return Text
    return {
        "integer": Integer,
        "long": Integer,
        "number": Float,
        "float": Float,
        "double": Float,
        "boolean": Boolean,
        "object": JSON,
        "array": JSON,
    }.get(prop.type, Text)


class SqlCrudExecutor:
    """Reference CRUD executor built on SQLAlchemy Core."""

    def __init__(self, catalog: FeatherCatalog):
        self.catalog = catalog
        self.metadata = MetaData()
        self._tables: dict[str, Table] = {}

    def table(self, feather_name: str) -> Table:
        """Table for a feather, built once from its resolved properties."""
        if feather_name not in self._tables:
            columns = []
            for name, prop in self.catalog.properties(feather_name).items():
                columns.append(Column(name, _column_type(prop), primary_key=name == "id"))
            self._tables[feather_name] = Table(
                table_name(feather_name), self.metadata, *columns
            )
        return self._tables[feather_name]

    async def initialize(self, ctx: ConnectionContext, feather_names: list[str]) -> None:
        """Create tables for the given feathers if they don't exist."""
        tables = [self.table(name) for name in feather_names]
        await ctx.connection.run_sync(self.metadata.create_all, tables=tables)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def select(self, ctx: ConnectionContext, request: Any) -> Any:
        """Fetch one record by id, or a list of records.

        Returns:
            A row dict (or None if missing) when ``request.id`` is set,
            otherwise a possibly empty list of row dicts.
        """
        table = self.table(request.name)

        if request.id:
            stmt = select(table).where(table.c.id == request.id)
            result = await ctx.connection.execute(stmt)
            row = result.mappings().first()
            return dict(row) if row else None

        stmt = select(table)
        query = request.filter or {}
        for column, value in (query.get("criteria") or {}).items():
            stmt = stmt.where(table.c[column] == value)
        for order in query.get("sort") or []:
            column = table.c[order["property"]]
            stmt = stmt.order_by(column.desc() if order.get("order") == "DESC" else column)
        if query.get("limit") is not None:
            stmt = stmt.limit(query["limit"])
        if query.get("offset"):
            stmt = stmt.offset(query["offset"])

        result = await ctx.connection.execute(stmt)
        return [dict(row) for row in result.mappings().all()]

    async def insert(self, ctx: ConnectionContext, request: Any) -> Any:
        """Insert a new record, generating an id when none is given."""
        table = self.table(request.name)
        data = self._stamp(table, ctx, dict(request.data), creating=True)
        data["id"] = data.get("id") or request.id or uuid.uuid4().hex

        await ctx.connection.execute(insert(table).values(**self._columns(table, data)))
        return await self._get(ctx, table, data["id"])

    async def update(self, ctx: ConnectionContext, request: Any) -> Any:
        """Update the given columns of an existing record.

        Returns:
            The updated row, or None if no record has that id
        """
        table = self.table(request.name)
        record_id = request.id or request.data.get("id")
        data = self._stamp(table, ctx, dict(request.data), creating=False)
        values = self._columns(table, data)
        values.pop("id", None)

        if values:
            result = await ctx.connection.execute(
                update(table).where(table.c.id == record_id).values(**values)
            )
            if result.rowcount == 0:
                return None
        return await self._get(ctx, table, record_id)

    async def delete(self, ctx: ConnectionContext, request: Any) -> Any:
        table = self.table(request.name)
        record_id = request.id or request.data.get("id")
        result = await ctx.connection.execute(delete(table).where(table.c.id == record_id))
        return result.rowcount > 0

    async def upsert(self, ctx: ConnectionContext, request: Any) -> Any:
        """Update the record when it exists, otherwise insert it."""
        table = self.table(request.name)
        record_id = request.id or request.data.get("id")
        if record_id and await self._get(ctx, table, record_id) is not None:
            return await self.update(ctx, request)
        return await self.insert(ctx, request)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get(self, ctx: ConnectionContext, table: Table, record_id: Any) -> Any:
        result = await ctx.connection.execute(select(table).where(table.c.id == record_id))
        row = result.mappings().first()
        return dict(row) if row else None

    def _columns(self, table: Table, data: dict[str, Any]) -> dict[str, Any]:
        return {key: value for key, value in data.items() if key in table.c}

    def _stamp(
        self,
        table: Table,
        ctx: ConnectionContext,
        data: dict[str, Any],
        creating: bool,
    ) -> dict[str, Any]:
        """Fill audit columns the caller (or a trigger) left empty."""
        now = datetime.now(UTC).isoformat()
        if creating:
            if "created" in table.c:
                data.setdefault("created", now)
            if "createdBy" in table.c and ctx.user:
                data.setdefault("createdBy", ctx.user)
        if "updated" in table.c:
            data["updated"] = now
        if "updatedBy" in table.c and ctx.user:
            data["updatedBy"] = ctx.user
        return data
