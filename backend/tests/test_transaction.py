"""Tests for begin/commit/rollback decisions."""

import pytest

from conftest import FakeConnection
from featherbone.core.errors import BusinessRuleError, FeatherboneError, StorageError
from featherbone.dispatch.transaction import TransactionWrapper
from featherbone.persistence.connection import ConnectionContext


class BrokenConnection(FakeConnection):
    async def begin(self):
        raise RuntimeError("server gone")

    async def rollback(self):
        raise RuntimeError("server gone")


@pytest.fixture
def wrapper():
    return TransactionWrapper()


@pytest.fixture
def ctx(events):
    return ConnectionContext(connection=FakeConnection(events))


class TestBegin:
    @pytest.mark.asyncio
    async def test_owned_write_begins(self, wrapper, ctx, events):
        await wrapper.begin(ctx, mutating=True, triggering=False)
        assert events == ["BEGIN"]
        assert ctx.wrapped

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "mutating,triggering,external,wrapped",
        [
            (False, False, False, False),
            (True, True, False, False),
            (True, False, True, False),
            (True, False, False, True),
        ],
    )
    async def test_skipped(self, wrapper, events, mutating, triggering, external, wrapped):
        ctx = ConnectionContext(FakeConnection(events), external=external, wrapped=wrapped)
        await wrapper.begin(ctx, mutating=mutating, triggering=triggering)
        assert events == []

    @pytest.mark.asyncio
    async def test_begin_failure(self, wrapper, events):
        ctx = ConnectionContext(BrokenConnection(events))
        with pytest.raises(StorageError, match="Could not begin transaction"):
            await wrapper.begin(ctx, mutating=True, triggering=False)
        assert not ctx.wrapped


class TestCommit:
    @pytest.mark.asyncio
    async def test_commits_owned_transaction(self, wrapper, ctx, events):
        await wrapper.begin(ctx, mutating=True, triggering=False)
        await wrapper.commit(ctx, triggering=False)

        assert events == ["BEGIN", "COMMIT"]
        assert not ctx.wrapped

    @pytest.mark.asyncio
    async def test_nested_call_never_commits(self, wrapper, events):
        ctx = ConnectionContext(FakeConnection(events), wrapped=True)
        await wrapper.commit(ctx, triggering=True)
        assert events == []
        assert ctx.wrapped

    @pytest.mark.asyncio
    async def test_nothing_to_commit(self, wrapper, ctx, events):
        await wrapper.commit(ctx, triggering=False)
        assert events == []

    @pytest.mark.asyncio
    async def test_commits_implicit_transaction_on_owned_connection(self, wrapper, events):
        connection = FakeConnection(events)
        connection.active = True
        ctx = ConnectionContext(connection)

        await wrapper.commit(ctx, triggering=False)

        assert events == ["COMMIT"]
        assert not connection.in_transaction()

    @pytest.mark.asyncio
    async def test_implicit_transaction_on_borrowed_connection_is_left_open(
        self, wrapper, events
    ):
        connection = FakeConnection(events)
        connection.active = True

        await wrapper.commit(ConnectionContext(connection, external=True), triggering=False)
        await wrapper.commit(ConnectionContext(connection), triggering=True)

        assert events == []
        assert connection.in_transaction()

    @pytest.mark.asyncio
    async def test_commit_failure(self, wrapper, events):
        ctx = ConnectionContext(FakeConnection(events, fail_commit=True), wrapped=True)
        with pytest.raises(StorageError, match="Commit failed: could not serialize"):
            await wrapper.commit(ctx, triggering=False)
        assert not ctx.wrapped


class TestRollback:
    @pytest.mark.asyncio
    async def test_rolls_back_and_raises(self, wrapper, events):
        ctx = ConnectionContext(FakeConnection(events), wrapped=True)
        error = BusinessRuleError("nope")

        with pytest.raises(BusinessRuleError) as exc_info:
            await wrapper.rollback(ctx, error)

        assert exc_info.value is error
        assert events == ["ROLLBACK"]
        assert not ctx.wrapped

    @pytest.mark.asyncio
    async def test_external_connection_untouched(self, wrapper, events):
        ctx = ConnectionContext(FakeConnection(events), external=True, wrapped=True)
        with pytest.raises(BusinessRuleError):
            await wrapper.rollback(ctx, BusinessRuleError("nope"))
        assert events == []

    @pytest.mark.asyncio
    async def test_plain_exception_is_normalized(self, wrapper, ctx):
        cause = ZeroDivisionError("division by zero")
        with pytest.raises(FeatherboneError) as exc_info:
            await wrapper.rollback(ctx, cause)

        assert exc_info.value.status_code == 500
        assert exc_info.value.__cause__ is cause

    @pytest.mark.asyncio
    async def test_rollback_failure_keeps_original_error(self, wrapper, events, caplog):
        ctx = ConnectionContext(BrokenConnection(events), wrapped=True)
        with pytest.raises(BusinessRuleError, match="nope"):
            await wrapper.rollback(ctx, BusinessRuleError("nope"))
        assert "Rollback failed: server gone" in caplog.text
