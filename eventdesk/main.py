import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, Dict, Sequence

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware

from .api import deps
from .api.api import api_router
from .api.openapi_tags import tags_metadata
from .core.database_manager import db_manager
from .core.db_utils import DatabaseHealthCheck
from .core.exceptions import EventDeskError
from .core.init_db import init_db
from .core.logging_config import configure_logging
from .core.settings import get_settings
from .middleware.monitoring import MonitoringMiddleware
from .middleware.security import SecurityMiddleware

settings = get_settings()

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create the schema, provision the admin, and dispose the engine on exit."""
    logger.info("Starting %s %s", settings.PROJECT_NAME, settings.VERSION)
    try:
        await init_db(db_manager)

        db_health = await db_manager.health_check()
        if db_health.get("status") == "healthy":
            logger.info("Database connection verified")
        else:
            logger.warning("Database health check failed: %s", db_health)

        yield
    finally:
        await db_manager.close()
        logger.info("Application shutdown completed")


app = FastAPI(
    title=settings.PROJECT_NAME,
    description=settings.PROJECT_DESCRIPTION,
    version=settings.VERSION,
    openapi_tags=tags_metadata,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    docs_url=f"{settings.API_PREFIX}/docs",
    redoc_url=f"{settings.API_PREFIX}/redoc",
    lifespan=lifespan,
)

app.add_middleware(SecurityMiddleware)
app.add_middleware(MonitoringMiddleware)

# Set all CORS enabled origins
if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(api_router, prefix=settings.API_PREFIX)


def _validation_message(errors: Sequence[Dict[str, Any]]) -> str:
    """Render the first validation failure as a single readable sentence."""
    if not errors:
        return "Invalid request"

    error = errors[0]
    field = ".".join(
        str(part)
        for part in error.get("loc", ())
        if part not in ("body", "query", "path")
    )
    if error.get("type") == "missing":
        return f"{field} is required" if field else "Request body is required"

    message = str(error.get("msg", "Invalid request"))
    if message.startswith("Value error, "):
        return message[len("Value error, "):]
    return f"{field}: {message}" if field else message


@app.exception_handler(EventDeskError)
async def domain_exception_handler(request: Request, exc: EventDeskError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Domain error: %s", exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": _validation_message(exc.errors())},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception occurred: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


@app.get("/", tags=["Health"], summary="API Welcome Message")
async def root() -> dict[str, Any]:
    return {
        "message": f"Welcome to {settings.PROJECT_NAME}",
        "version": settings.VERSION,
        "docs": f"{settings.API_PREFIX}/docs",
    }


@app.get(f"{settings.API_PREFIX}/health", tags=["Health"], summary="Health Check")
async def health_check(db: AsyncSession = Depends(deps.get_db)) -> dict[str, Any]:
    """
    Liveness plus a `SELECT 1` round trip to the database.
    """
    database_ok = await DatabaseHealthCheck.check_connection(db)
    return {
        "status": "ok" if database_ok else "degraded",
        "message": "Event Management API is running",
        "database": "connected" if database_ok else "unavailable",
    }
