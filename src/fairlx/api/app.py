"""FastAPI application for Fairlx webhooks."""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fairlx import __version__
from fairlx.config import Settings
from fairlx.exceptions import (
    AuthenticationError,
    AuthorizationError,
    FairlxError,
    NotFoundError,
)
from fairlx.logging import bind_context, clear_context, configure_logging, get_logger
from fairlx.storage import FairlxStorage
from fairlx.webhooks import WebhookDispatcher

from .router import router, set_services

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"


async def request_context_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Tag every log line of a request with its id, method and path.

    A caller-supplied ``X-Request-Id`` is reused, otherwise one is
    generated. The id is echoed on the response.
    """
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    clear_context()
    bind_context(request_id=request_id[:64], method=request.method, path=request.url.path)
    try:
        response = await call_next(request)
    finally:
        clear_context()
    response.headers[REQUEST_ID_HEADER] = request_id[:64]
    return response


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan.

    Opens storage, starts the dispatcher's retry queue on startup, and
    tears both down on shutdown.
    """
    settings: Settings = app.state.settings

    configure_logging(level=settings.log_level, format=settings.log_format)
    logger.info("Starting Fairlx webhooks API", log_level=settings.log_level, env=settings.env)

    storage = FairlxStorage(
        url=settings.qdrant_url,
        api_key=settings.qdrant_api_key,
        prefix=settings.collection_prefix,
        max_scroll_limit=settings.storage_max_scroll_limit,
    )
    await storage.initialize()

    dispatcher = WebhookDispatcher(storage, settings=settings)
    dispatcher.start()
    set_services(storage, dispatcher, settings)

    yield

    set_services(None, None)
    await dispatcher.close()
    await storage.close()
    logger.info("Fairlx webhooks API stopped")


def register_exception_handlers(app: FastAPI) -> None:
    """Map Fairlx exceptions to HTTP responses."""

    @app.exception_handler(NotFoundError)
    async def not_found_error_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        """Handle not found errors with 404 status."""
        logger.info(
            "Resource not found",
            resource_type=exc.resource_type,
            resource_id=exc.resource_id,
            path=str(request.url),
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(
        request: Request, exc: AuthenticationError
    ) -> JSONResponse:
        """Handle authentication errors with 401 status."""
        logger.warning("Authentication failed", error=exc.message, path=str(request.url))
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(AuthorizationError)
    async def authorization_error_handler(
        request: Request, exc: AuthorizationError
    ) -> JSONResponse:
        """Handle authorization errors with 403 status."""
        logger.warning("Authorization failed", error=exc.message, path=str(request.url))
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(FairlxError)
    async def fairlx_error_handler(request: Request, exc: FairlxError) -> JSONResponse:
        """Handle storage, configuration and other Fairlx errors."""
        logger.error("Fairlx error", error=exc.message, code=exc.code, path=str(request.url))
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create a FastAPI application.

    Args:
        settings: Optional settings. Uses environment if None.

    Returns:
        Configured FastAPI application.

    Example:
        ```python
        from fairlx.api import create_app

        app = create_app()
        # Run with: uvicorn fairlx.api:app --reload
        ```
    """
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="Fairlx Webhooks",
        description="Project event notifications delivered to your HTTP endpoints.",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings

    if settings.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allow_origins,
            allow_methods=settings.cors_allow_methods,
            allow_headers=settings.cors_allow_headers,
        )

    app.middleware("http")(request_context_middleware)
    register_exception_handlers(app)
    app.include_router(router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
