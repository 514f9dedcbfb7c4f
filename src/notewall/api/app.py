"""
FastAPI Application Factory & Configuration.

This module initializes the NoteWall FastAPI application instance. It is
responsible for:
1.  **Middleware Setup**: CORS so a shell served from elsewhere can call the API.
2.  **Exception Handling**: Global handlers so every error is structured JSON.
3.  **Routing**: Mounting the `/api` collection router, then the shell router.
4.  **Lifecycle**: Initializing the collection store singleton at startup.

Error mapping
-------------
- `ValidationError` / request body errors -> 400 ``{"error": <message>}``
- `NotFoundError`                         -> 404 ``{"error": "Collection not found"}``
- any unmatched route or method          -> 404 ``{"error": "Endpoint not found"}``
- anything else                           -> 500 ``{"error": "Something went wrong!"}``

Design Pattern
--------------
We use an **Application Factory** pattern (`create_app`) so tests can build
an app around their own `CollectionStore`.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from notewall import __version__
from notewall.api.routers import collections, shell
from notewall.core.errors import NotFoundError, ValidationError
from notewall.core.settings import get_logger
from notewall.core.store import CollectionStore

logger = get_logger("notewall.api")

ENDPOINT_NOT_FOUND = "Endpoint not found"
COLLECTION_NOT_FOUND = "Collection not found"
INTERNAL_ERROR = "Something went wrong!"


def create_app(store: CollectionStore | None = None) -> FastAPI:
    """
    Construct and configure the NoteWall FastAPI application.

    Parameters
    ----------
    store:
        Collection store backing the API. Defaults to the process-wide
        singleton.

    Returns
    -------
    FastAPI
        The configured ASGI application ready to be served by Uvicorn.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("NoteWall API starting up (version %s)", __version__)
        logger.info("Collection store ready (%d walls)", len(app.state.store))
        yield
        logger.info("NoteWall API shutting down")

    app = FastAPI(
        title="NoteWall API",
        description="Shareable sticky-note walls addressed by short identifiers",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.store = store if store is not None else CollectionStore.get_instance()

    # -----------------------------------------------------------------------
    # Middleware
    # -----------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------------------------------------------------
    # Global Exception Handlers
    # -----------------------------------------------------------------------
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        """Malformed identifiers and note payloads become HTTP 400."""
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def request_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Bodies FastAPI could not decode (e.g. not JSON) are also HTTP 400."""
        return JSONResponse(status_code=400, content={"error": "Malformed request body"})

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": COLLECTION_NOT_FOUND})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Routing failures keep the same ``{"error": ...}`` shape.

        A known path requested with the wrong method is still an unmatched
        address, so 405 is answered as the same 404.
        """
        if exc.status_code in (404, 405):
            return JSONResponse(status_code=404, content={"error": ENDPOINT_NOT_FOUND})
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all: log the traceback, answer with a generic 500 body."""
        logger.error(
            "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
        )
        return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR})

    # -----------------------------------------------------------------------
    # Routes
    # -----------------------------------------------------------------------
    # The shell router matches any single segment, so it goes last.
    app.include_router(collections.router)
    app.include_router(shell.router)

    return app


__all__ = ["create_app"]
