"""Transaction wrapping for dispatched requests.

Only a top-level request that acquired its own connection ever begins,
commits or rolls back. Nested requests and caller-supplied connections
pass straight through.
"""

import logging
from typing import NoReturn

from featherbone.core.errors import StorageError, normalize_error
from featherbone.persistence.connection import ConnectionContext

logger = logging.getLogger(__name__)


class TransactionWrapper:
    """Begin/commit/rollback decisions for one connection context."""

    async def begin(
        self, ctx: ConnectionContext, *, mutating: bool, triggering: bool
    ) -> None:
        """Open a transaction if this call owns the connection and writes.

        No-op for reads, nested calls, external connections, and contexts
        that already have a transaction open.
        """
        if not mutating or triggering or ctx.external or ctx.wrapped:
            return

        try:
            await ctx.connection.begin()
        except Exception as e:
            raise StorageError(f"Could not begin transaction: {e}") from e
        ctx.wrapped = True
        logger.debug("Began transaction")

    async def commit(self, ctx: ConnectionContext, *, triggering: bool) -> None:
        """Commit the transaction this call owns.

        Nested calls and external connections never commit. An owned
        connection that was never wrapped is still committed when a
        statement implicitly opened a transaction on it (a GET function
        whose nested requests wrote), so release does not discard the work.
        A failed commit is reported as a StorageError and is not retried.
        """
        if triggering or ctx.external:
            return
        if not ctx.wrapped and not ctx.connection.in_transaction():
            return

        try:
            await ctx.connection.commit()
        except Exception as e:
            raise StorageError(f"Commit failed: {e}") from e
        finally:
            ctx.wrapped = False
        logger.debug("Committed transaction")

    async def rollback(self, ctx: ConnectionContext, error: BaseException) -> NoReturn:
        """Roll back if this call owns an open transaction, then raise.

        External connections are never touched; the caller owns their
        transaction. An owned connection with only an implicitly opened
        transaction is left for release, which discards it on close. The
        normalized error is always raised.
        """
        normalized = normalize_error(error)

        if not ctx.external and ctx.wrapped:
            ctx.wrapped = False
            try:
                await ctx.connection.rollback()
            except Exception as e:
                logger.error("Rollback failed: %s", e)
            else:
                logger.debug("Rolled back transaction")

        raise normalized
