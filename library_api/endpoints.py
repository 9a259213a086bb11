"""
FastAPI application for the library lending API.

``create_app`` wires logging, CORS, the book and borrow routers and the
exception handlers that turn every failure into the standard envelope::

    {"success": false, "message": "...", "error": "...", "errors": [...]}

Run it with ``library-api serve`` or any ASGI server, e.g.::

    uvicorn library_api.endpoints:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from library_api import schemas
from library_api.config import settings
from library_api.database import init_db
from library_api.errors import LibraryError
from library_api.logging_config import setup_logging
from library_api.routers import books, borrows


logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, error=None, errors=None) -> JSONResponse:
    body = schemas.ApiResponse(success=False, message=message, error=error, errors=errors)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )


async def library_error_handler(request: Request, exc: LibraryError):
    return error_response(exc.status_code, exc.message, errors=exc.errors)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report pydantic validation failures as 400 with one entry per field."""
    errors = [
        {
            "field": ".".join(str(part) for part in err["loc"][1:]) or str(err["loc"][0]),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return error_response(status.HTTP_400_BAD_REQUEST, "Validation errors", errors=errors)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        return error_response(status.HTTP_404_NOT_FOUND, "Route not found")
    return error_response(exc.status_code, str(exc.detail))


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    detail = str(exc) if settings.is_development else "Internal server error"
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "Something went wrong!", error=detail
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database ready at %s", settings.database_url)
    yield


def create_app() -> FastAPI:
    """Build and configure the application."""
    setup_logging(settings.log_level, settings.log_file or None)

    app = FastAPI(
        title=settings.project_name,
        description="Book inventory and lending records",
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["*"],
    )

    app.add_exception_handler(LibraryError, library_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(books.router, prefix=settings.api_prefix)
    app.include_router(borrows.router, prefix=settings.api_prefix)

    @app.get(f"{settings.api_prefix}/health")
    def health_check():
        """
        Health check endpoint for monitoring and load balancers.

        Returns:
            Simple status message indicating the service is running
        """
        return {"status": "OK", "message": "Library Management API is running"}

    return app


app = create_app()
