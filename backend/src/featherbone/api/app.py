"""FastAPI application - thin adapter from HTTP calls to dispatcher requests."""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, FastAPI, Request as HttpRequest
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from featherbone.core.bootstrap import (
    FeatherboneServices,
    initialize_services,
    initialize_storage,
)
from featherbone.core.errors import FeatherboneError, NotFoundError
from featherbone.core.settings import configure_logging
from featherbone.dispatch.types import Request

logger = logging.getLogger(__name__)

USER_HEADER = "X-Featherbone-User"
NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


class RequestEnvelope(BaseModel):
    """Request body for the generic /api/request endpoint."""

    method: str
    name: str
    id: str | None = None
    data: dict[str, Any] | None = None
    user: str | None = None
    filter: dict[str, Any] | None = None


def create_app(services: FeatherboneServices | None = None) -> FastAPI:
    """Build the API.

    Args:
        services: Pre-built services (tests). When omitted, services are
            initialized from the environment on startup and disposed on
            shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = services is None
        if owned:
            built = initialize_services()
            configure_logging(built.settings.log_level)
            await initialize_storage(built)
            app.state.services = built
        else:
            app.state.services = services
        logger.info(
            "Featherbone API ready (%d feathers)",
            len(app.state.services.catalog.list_feathers()),
        )

        yield

        if owned:
            await app.state.services.connections.dispose()

    app = FastAPI(title="Featherbone API", lifespan=lifespan)

    @app.exception_handler(FeatherboneError)
    async def featherbone_error_handler(request: HttpRequest, exc: FeatherboneError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    def _services(http_request: HttpRequest) -> FeatherboneServices:
        return http_request.app.state.services

    def _current_user(http_request: HttpRequest) -> str | None:
        """Identity resolved upstream; this adapter never authenticates."""
        return (
            http_request.headers.get(USER_HEADER)
            or _services(http_request).settings.default_user
        )

    async def _dispatch(http_request: HttpRequest, request: Request) -> Any:
        return await _services(http_request).dispatcher.dispatch(request)

    def _feather_name(http_request: HttpRequest, name: str) -> str:
        # Accept plural REST paths, e.g. /api/data/Invoices
        return _services(http_request).catalog.resolve_name(name) or name

    # --- Generic envelope ---

    @app.post("/api/request")
    async def post_request(envelope: RequestEnvelope, http_request: HttpRequest) -> Any:
        """Dispatch a raw request envelope."""
        try:
            request = Request(
                method=envelope.method,
                name=envelope.name,
                id=envelope.id,
                data=envelope.data or {},
                user=envelope.user or _current_user(http_request),
                filter=envelope.filter,
            )
        except ValueError as e:
            raise FeatherboneError(str(e), status_code=400) from e
        return await _dispatch(http_request, request)

    # --- Data endpoints ---

    @app.get("/api/data/{name}")
    async def list_records(
        name: str,
        http_request: HttpRequest,
        limit: int | None = None,
        offset: int = 0,
    ) -> Any:
        request = Request(
            method="GET",
            name=_feather_name(http_request, name),
            user=_current_user(http_request),
            filter={"limit": limit, "offset": offset},
        )
        rows = await _dispatch(http_request, request)
        if not rows:
            return Response(status_code=204)
        return rows

    @app.get("/api/data/{name}/{id}")
    async def get_record(name: str, id: str, http_request: HttpRequest) -> Any:
        feather = _feather_name(http_request, name)
        request = Request(
            method="GET", name=feather, id=id, user=_current_user(http_request)
        )
        row = await _dispatch(http_request, request)
        if row is None:
            raise NotFoundError(f"{feather} '{id}' not found")
        return row

    @app.post("/api/data/{name}")
    async def create_record(
        name: str,
        http_request: HttpRequest,
        data: dict[str, Any] | None = Body(default=None),
    ) -> Any:
        request = Request(
            method="POST",
            name=_feather_name(http_request, name),
            data=data or {},
            user=_current_user(http_request),
        )
        return await _dispatch(http_request, request)

    @app.patch("/api/data/{name}/{id}")
    async def update_record(
        name: str,
        id: str,
        http_request: HttpRequest,
        data: dict[str, Any] | None = Body(default=None),
    ) -> Any:
        feather = _feather_name(http_request, name)
        request = Request(
            method="PATCH",
            name=feather,
            id=id,
            data=data or {},
            user=_current_user(http_request),
        )
        row = await _dispatch(http_request, request)
        if row is None:
            raise NotFoundError(f"{feather} '{id}' not found")
        return row

    @app.delete("/api/data/{name}/{id}")
    async def delete_record(name: str, id: str, http_request: HttpRequest) -> Any:
        request = Request(
            method="DELETE",
            name=_feather_name(http_request, name),
            id=id,
            user=_current_user(http_request),
        )
        return await _dispatch(http_request, request)

    # --- Registered functions ---

    @app.post("/api/function/{name}")
    async def post_function(
        name: str,
        http_request: HttpRequest,
        data: dict[str, Any] | None = Body(default=None),
    ) -> Any:
        """POST a registered function with the JSON body as its data."""
        request = Request(
            method="POST", name=name, data=data or {}, user=_current_user(http_request)
        )
        result = await _dispatch(http_request, request)
        if result is None:
            return Response(status_code=204, headers=NO_CACHE_HEADERS)
        return JSONResponse(content=jsonable_encoder(result), headers=NO_CACHE_HEADERS)

    return app


app = create_app()
