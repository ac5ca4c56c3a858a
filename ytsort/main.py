from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from structlog.contextvars import bind_contextvars, reset_contextvars

from ytsort.api.routes import router
from ytsort.dependencies import get_session, get_settings
from ytsort.logging_config import configure_application_logging
from ytsort.services.background_collection import BackgroundCollection

LOGGER = logging.getLogger("ytsort.http")


def health_check() -> dict[str, str]:
    return {"status": "ok", "session": get_session().snapshot().status}


def create_app(*, collection: BackgroundCollection | None = None) -> FastAPI:
    """Build the app that serves the sortable table of the current session.

    When `collection` is given it is started with the app, so the progress
    page is served until it completes.
    """

    @asynccontextmanager
    async def app_lifespan(_: FastAPI) -> AsyncIterator[None]:
        configure_application_logging(get_settings(), server_logs=True)
        if collection is not None:
            collection.start()
        yield

    app = FastAPI(title="ytsort", version="0.1.0", lifespan=app_lifespan)

    async def request_context_middleware(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        incoming_request_id = request.headers.get("X-Request-ID")
        request_id = (
            incoming_request_id.strip()
            if isinstance(incoming_request_id, str) and incoming_request_id.strip()
            else str(uuid4())
        )
        context_tokens = bind_contextvars(
            http_request_id=request_id,
            http_method=request.method,
            http_path=request.url.path,
        )
        started_at = perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            LOGGER.exception(
                "request failed method=%s path=%s duration_ms=%s",
                request.method,
                request.url.path,
                int((perf_counter() - started_at) * 1000),
            )
            raise
        else:
            response.headers["X-Request-ID"] = request_id
            LOGGER.debug(
                "request finished method=%s path=%s status=%s duration_ms=%s",
                request.method,
                request.url.path,
                response.status_code,
                int((perf_counter() - started_at) * 1000),
            )
            return response
        finally:
            reset_contextvars(**context_tokens)

    app.middleware("http")(request_context_middleware)
    app.include_router(router)
    app.add_api_route(
        "/health",
        health_check,
        methods=["GET"],
        tags=["system"],
        operation_id="health_check",
    )
    return app
