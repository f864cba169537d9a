"""Shared fixtures: recording fakes for the connection pool and CRUD executor.

The fakes append to one ``events`` list so tests can assert the exact
order of transaction statements, trigger calls and CRUD steps.
"""

from typing import Any

import pytest

from featherbone.catalog.loader import FeatherCatalog
from featherbone.dispatch.dispatcher import Dispatcher
from featherbone.persistence.connection import ConnectionManager
from featherbone.registry.registry import FunctionRegistry


class FakeConnection:
    """Stands in for an AsyncConnection; records transaction statements.

    Like SQLAlchemy, any statement implicitly opens a transaction when none
    is active (see RecordingExecutor).
    """

    def __init__(self, events: list[str], fail_commit: bool = False):
        self.events = events
        self.fail_commit = fail_commit
        self.closed = False
        self.active = False

    async def begin(self) -> None:
        self.events.append("BEGIN")
        self.active = True

    def in_transaction(self) -> bool:
        return self.active

    async def commit(self) -> None:
        if self.fail_commit:
            raise RuntimeError("could not serialize access")
        self.events.append("COMMIT")
        self.active = False

    async def rollback(self) -> None:
        self.events.append("ROLLBACK")
        self.active = False

    async def close(self) -> None:
        self.closed = True


class FakeEngine:
    """Stands in for an AsyncEngine pool."""

    def __init__(self, events: list[str]):
        self.events = events
        self.connections: list[FakeConnection] = []
        self.fail_connect = False
        self.fail_commit = False
        self.disposed = False

    async def connect(self) -> FakeConnection:
        if self.fail_connect:
            raise OSError("connection refused")
        connection = FakeConnection(self.events, fail_commit=self.fail_commit)
        self.connections.append(connection)
        return connection

    async def dispose(self) -> None:
        self.disposed = True


class RecordingExecutor:
    """CRUD executor that records calls instead of touching storage."""

    def __init__(self, events: list[str]):
        self.events = events
        self.calls: list[dict[str, Any]] = []
        self.rows: dict[str, list[dict[str, Any]]] = {}
        self.fail_on: str | None = None

    async def _record(self, operation: str, ctx: Any, request: Any) -> None:
        if isinstance(ctx.connection, FakeConnection):
            ctx.connection.active = True
        self.events.append(f"{operation.upper()} {request.name}")
        self.calls.append({
            "operation": operation,
            "name": request.name,
            "id": request.id,
            "data": dict(request.data),
            "connection": ctx.connection,
        })
        if self.fail_on == operation:
            raise RuntimeError("disk full")

    async def select(self, ctx, request):
        await self._record("select", ctx, request)
        rows = self.rows.get(request.name, [])
        if request.id:
            return next((row for row in rows if row["id"] == request.id), None)
        return list(rows)

    async def insert(self, ctx, request):
        await self._record("insert", ctx, request)
        return {"id": request.data.get("id") or "new-1", **request.data}

    async def update(self, ctx, request):
        await self._record("update", ctx, request)
        return {"id": request.id, **request.data}

    async def delete(self, ctx, request):
        await self._record("delete", ctx, request)
        return True

    async def upsert(self, ctx, request):
        await self._record("upsert", ctx, request)
        return {"id": request.id, **request.data}


@pytest.fixture
def events():
    return []


@pytest.fixture
def engine(events):
    return FakeEngine(events)


@pytest.fixture
def executor(events):
    return RecordingExecutor(events)


@pytest.fixture
def catalog():
    """Invoice -> Document -> Object, plus a standalone Contact."""
    return FeatherCatalog.from_dict({
        "Document": {
            "plural": "Documents",
            "properties": {"number": {"type": "string"}},
        },
        "Invoice": {
            "inherits": "Document",
            "plural": "Invoices",
            "properties": {"amount": {"type": "number"}},
        },
        "Contact": {
            "properties": {"fullName": {"type": "string"}},
        },
    })


@pytest.fixture
def registry():
    return FunctionRegistry()


@pytest.fixture
def dispatcher(catalog, registry, engine, executor):
    return Dispatcher(catalog, registry, ConnectionManager(engine), executor)


def transaction_statements(events: list[str]) -> list[str]:
    return [e for e in events if e in ("BEGIN", "COMMIT", "ROLLBACK")]
