"""Request envelope passed through the dispatch pipeline.

A Request is owned by exactly one in-flight dispatch. Fields are filled in
as processing proceeds: ``connection`` is replaced by the live
ConnectionContext before any handler runs, and ``response`` holds the CRUD
result once the storage step completes.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from featherbone.registry.types import Method


@dataclass
class Request:
    """One unit of work for the dispatcher.

    Attributes:
        method: GET, POST, PUT, PATCH or DELETE
        name: Feather name or registered function name
        id: Record id for single-record operations
        data: Record data for writes, arguments for functions
        connection: Caller-supplied connection (or ConnectionContext). Left
            None to have the dispatcher acquire and own one.
        user: Identity the request runs as
        filter: Query options for GET (criteria, sort, limit, offset)
        response: Result of the CRUD step, visible to AFTER triggers
    """

    method: Method
    name: str
    id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    connection: Any = None
    user: str | None = None
    filter: dict[str, Any] | None = None
    response: Any = None
    # Bound by the dispatcher while a handler runs
    nested: Callable[["Request"], Awaitable[Any]] | None = field(
        default=None, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        self.method = Method.coerce(self.method)
        if self.data is None:
            self.data = {}

    @classmethod
    def from_envelope(cls, envelope: dict[str, Any]) -> "Request":
        """Build a Request from the wire envelope.

        Envelope keys: method, name, id?, data?, client?, user?, filter?
        """
        return cls(
            method=envelope["method"],
            name=envelope["name"],
            id=envelope.get("id"),
            data=envelope.get("data") or {},
            connection=envelope.get("client"),
            user=envelope.get("user"),
            filter=envelope.get("filter"),
        )

    async def submit(
        self,
        method: Method | str,
        name: str,
        *,
        id: str | None = None,
        data: dict[str, Any] | None = None,
        filter: dict[str, Any] | None = None,
    ) -> Any:
        """Issue a nested request from inside a trigger or function.

        The nested request borrows this request's connection and
        transaction: it never begins, commits or rolls back on its own.

        Raises:
            RuntimeError: If called outside a handler invocation
        """
        if self.nested is None:
            raise RuntimeError("Nested requests can only be issued from a running handler")
        return await self.nested(
            Request(
                method=method,
                name=name,
                id=id,
                data=data or {},
                connection=self.connection,
                user=self.user,
                filter=filter,
            )
        )
