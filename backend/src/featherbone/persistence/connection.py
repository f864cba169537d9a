"""Connection acquisition and per-request connection state."""

import logging
from dataclasses import dataclass, replace
from typing import Any, Protocol, runtime_checkable

from sqlalchemy.exc import SQLAlchemyError

from featherbone.core.errors import ConnectionError

logger = logging.getLogger(__name__)


@runtime_checkable
class ConnectionHandle(Protocol):
    """What the dispatcher needs from a live connection.

    Matches sqlalchemy.ext.asyncio.AsyncConnection; begin() may return an
    awaitable transaction object rather than being a coroutine itself.
    """

    def begin(self) -> Any: ...

    def in_transaction(self) -> bool: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...

    async def close(self) -> None: ...


@dataclass
class ConnectionContext:
    """A live connection plus the dispatcher's bookkeeping for it.

    Attributes:
        connection: The underlying connection handle
        external: True when the caller (or an enclosing request) owns the
            connection and its transaction
        wrapped: True while a transaction opened by the dispatcher is
            uncommitted on this connection
        user: Identity the request runs as
    """

    connection: Any
    external: bool = False
    wrapped: bool = False
    user: str | None = None


class ConnectionManager:
    """Hands out pooled connections for top-level requests.

    Pool sizing, blocking on exhaustion and any acquisition timeout are
    properties of the engine's pool; this class never retries.
    """

    def __init__(self, engine: Any):
        self.engine = engine

    async def acquire(self, supplied: Any = None) -> ConnectionContext:
        """Get a connection context for a request.

        Args:
            supplied: A caller-owned connection or ConnectionContext. When
                given it is borrowed, never pooled, and marked external.

        Raises:
            ConnectionError: If the pool cannot provide a connection
        """
        if supplied is not None:
            if isinstance(supplied, ConnectionContext):
                return replace(supplied, external=True)
            return ConnectionContext(connection=supplied, external=True)

        try:
            connection = await self.engine.connect()
        except (SQLAlchemyError, OSError) as e:
            logger.error("Could not connect to database: %s", e)
            raise ConnectionError(f"Could not connect to database: {e}") from e

        logger.debug("Acquired pooled connection")
        return ConnectionContext(connection=connection)

    async def release(self, ctx: ConnectionContext) -> None:
        """Return an owned connection to the pool; external ones are left alone."""
        if ctx.external:
            return
        await ctx.connection.close()
        logger.debug("Released pooled connection")

    async def dispose(self) -> None:
        """Close every pooled connection. Called at shutdown."""
        await self.engine.dispose()
