"""Request dispatcher.

Ties the registry, catalog, connection manager, trigger traversal and
transaction wrapper together. For a write against a feather the pipeline is:

    acquire -> begin -> BEFORE triggers -> CRUD -> AFTER triggers
            -> commit -> release

Any failure along the way rolls back (when this call owns the transaction)
and the error propagates to the caller as a FeatherboneError.
"""

import logging
from functools import partial
from typing import Any

from featherbone.catalog.loader import FeatherCatalog
from featherbone.core.errors import (
    FeatherboneError,
    StorageError,
    UnauthenticatedError,
    UnregisteredOperationError,
)
from featherbone.dispatch.transaction import TransactionWrapper
from featherbone.dispatch.traversal import TriggerTraversal
from featherbone.dispatch.types import Request
from featherbone.persistence.connection import ConnectionContext, ConnectionManager
from featherbone.persistence.executor import CrudExecutor
from featherbone.registry.registry import FunctionRegistry
from featherbone.registry.types import HandlerFn, Method, TriggerPhase

logger = logging.getLogger(__name__)


class Dispatcher:
    """Executes requests against feathers and registered functions.

    Example:
        dispatcher = Dispatcher(catalog, registry, connections, executor)
        invoice = await dispatcher.dispatch(
            Request(method="POST", name="Invoice", data={"amount": 100}, user="alice")
        )
    """

    def __init__(
        self,
        catalog: FeatherCatalog,
        registry: FunctionRegistry,
        connections: ConnectionManager,
        executor: CrudExecutor,
        transactions: TransactionWrapper | None = None,
    ):
        self.catalog = catalog
        self.registry = registry
        self.connections = connections
        self.executor = executor
        self.transactions = transactions or TransactionWrapper()
        self.traversal = TriggerTraversal(catalog, registry)

    async def dispatch(self, request: Request) -> Any:
        """Run a request to completion.

        Returns:
            Rows for a feather GET (a list, or a single row / None when an
            id is given), the CRUD result for feather writes, or the
            handler's return value for registered functions.

        Raises:
            UnauthenticatedError: No identity on the request or connection
            UnregisteredOperationError: Unknown feather/function for the method
            FeatherboneError: Any failure in the pipeline, after rollback
        """
        return await self._dispatch(request, triggering=False)

    async def _dispatch(self, request: Request, triggering: bool) -> Any:
        supplied = request.connection
        user = request.user
        if isinstance(supplied, ConnectionContext) and supplied.user:
            user = supplied.user
        if not user:
            raise UnauthenticatedError(
                f"User undefined for {request.method.value} {request.name}"
            )

        is_feather = self.catalog.has_feather(request.name)
        if not is_feather and not self.registry.is_registered(request.method, request.name):
            raise UnregisteredOperationError(request.method.value, request.name)

        ctx = await self.connections.acquire(supplied)
        if not ctx.user:
            ctx.user = user
        request.connection = ctx
        request.user = ctx.user
        # Nested failures are logged once, by the enclosing request
        nested = triggering or isinstance(supplied, ConnectionContext)

        try:
            if not is_feather:
                return await self._call_function(ctx, request, triggering)
            if request.method is Method.GET:
                return await self._select(ctx, request)
            return await self._write(ctx, request, triggering)
        except FeatherboneError as e:
            if not nested:
                logger.error(
                    "%s %s failed: %s", request.method.value, request.name, e
                )
            raise
        finally:
            request.connection = supplied
            await self.connections.release(ctx)

    # ------------------------------------------------------------------
    # Pipelines
    # ------------------------------------------------------------------

    async def _select(self, ctx: ConnectionContext, request: Request) -> Any:
        """Reads go straight to the executor; no triggers fire."""
        try:
            return await self.execute(ctx, request)
        except Exception as e:
            await self.transactions.rollback(ctx, e)

    async def _write(
        self, ctx: ConnectionContext, request: Request, triggering: bool
    ) -> Any:
        invoke = partial(self._invoke, ctx=ctx, triggering=True)
        try:
            await self.transactions.begin(ctx, mutating=True, triggering=triggering)
            await self.traversal.run(TriggerPhase.BEFORE, request, invoke)
            request.response = await self.execute(ctx, request)
            await self.traversal.run(TriggerPhase.AFTER, request, invoke)
            await self.transactions.commit(ctx, triggering=triggering)
        except Exception as e:
            await self.transactions.rollback(ctx, e)
        return request.response

    async def _call_function(
        self, ctx: ConnectionContext, request: Request, triggering: bool
    ) -> Any:
        handler = self.registry.lookup(request.method, request.name)
        try:
            await self.transactions.begin(
                ctx, mutating=request.method.is_mutating, triggering=triggering
            )
            result = await self._invoke(handler, request, ctx=ctx, triggering=triggering)
            await self.transactions.commit(ctx, triggering=triggering)
        except Exception as e:
            await self.transactions.rollback(ctx, e)
        return result

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _invoke(
        self,
        handler: HandlerFn,
        request: Request,
        *,
        ctx: ConnectionContext,
        triggering: bool,
    ) -> Any:
        """Call a trigger or function with the shared connection bound.

        Nested requests the handler issues through ``request.submit`` reuse
        ``ctx`` and carry ``triggering`` so they never wrap or commit.
        """
        if request.id and not request.data.get("id"):
            request.data["id"] = request.id
        request.connection = ctx

        previous = request.nested
        request.nested = partial(self._dispatch, triggering=triggering)
        try:
            return await handler(request)
        finally:
            request.nested = previous

    async def execute(
        self, ctx: ConnectionContext, request: Request, operation: str | None = None
    ) -> Any:
        """The CRUD step. Storage failures are wrapped as StorageError.

        Args:
            ctx: Connection context the statement runs on
            request: Feather request; its method picks the operation
            operation: Explicit executor operation ("select", "insert",
                "update", "delete" or "upsert"), overriding the method
        """
        operation = operation or _operation_for(request)
        try:
            return await getattr(self.executor, operation)(ctx, request)
        except FeatherboneError:
            raise
        except Exception as e:
            raise StorageError(str(e)) from e


def _operation_for(request: Request) -> str:
    if request.method is Method.GET:
        return "select"
    if request.method is Method.POST:
        return "upsert" if request.id else "insert"
    if request.method is Method.PUT:
        return "upsert"
    if request.method is Method.PATCH:
        return "update"
    return "delete"

