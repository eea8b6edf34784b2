"""
FastAPI application factory for the Campus Library API.

``create_app`` wires the routers, CORS and the exception handlers that
turn ``LibraryError`` subclasses and request validation failures into
the standard response envelope.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import AppConfig, get_config
from ..database.session import reset_db_manager
from ..errors import LibraryError
from .envelope import failure
from .routes import routers

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    logger.info("Shutting down, closing database connections")
    reset_db_manager()


def _validation_errors(exc: RequestValidationError) -> list[dict]:
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query")]
        errors.append({"field": ".".join(location), "message": error.get("msg", "Invalid value")})
    return errors


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(LibraryError)
    async def library_error_handler(request: Request, exc: LibraryError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info(
                "%s %s rejected (%d): %s",
                request.method,
                request.url.path,
                exc.status_code,
                exc.message,
            )
        return JSONResponse(failure(exc.message, exc.errors), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = _validation_errors(exc)
        message = errors[0]["message"] if errors else "Validation failed"
        return JSONResponse(failure(message, errors), status_code=400)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(failure(str(exc.detail)), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(failure("Server Error"), status_code=500)


def create_app(config: AppConfig | None = None) -> FastAPI:
    """
    Build the API application.

    Args:
        config: Settings to use; defaults to the global configuration
    """
    config = config or get_config()

    app = FastAPI(
        title="Campus Library API",
        version=config.app_version,
        debug=config.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    for router in routers:
        app.include_router(router)

    logger.debug("Registered %d routers", len(routers))
    return app
