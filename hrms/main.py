"""FastAPI main application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from hrms.core.config import settings
from hrms.core.middleware import setup_middleware
from hrms.core.exceptions import (
    HRMSError, AuthorizationError, DependencyUnavailableError,
    ResourceNotFoundError, RoleConfigurationError, UnknownRoleError,
)
from hrms.services.role_registry import get_registry

from hrms.api.access import router as access_router
from hrms.api.employees import router as employees_router
from hrms.api.tasks import router as tasks_router
from hrms.api.admin import router as admin_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("hrms")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting HRMS Access API")
    # Load the role table once; a broken table stops startup.
    registry = get_registry()
    logger.info(
        "Role registry loaded: %s",
        ", ".join(f"{r.name}={r.level}" for r in registry.roles()),
    )

    yield

    logger.info("Shutting down HRMS Access API")


app = FastAPI(
    title="HRMS Access API",
    description="Role resolution, permission checks and record visibility for HR services",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Middleware
setup_middleware(app)

_STATUS_BY_ERROR = [
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (DependencyUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (ResourceNotFoundError, status.HTTP_404_NOT_FOUND),
    (UnknownRoleError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (RoleConfigurationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


@app.exception_handler(HRMSError)
async def hrms_exception_handler(request: Request, exc: HRMSError):
    status_code = status.HTTP_400_BAD_REQUEST
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = code
            break

    if status_code >= 500:
        logger.error("%s on %s: %s", exc.__class__.__name__, request.url.path, exc.message)
    detail = exc.message
    if isinstance(exc, DependencyUnavailableError):
        detail = "Authorization temporarily unavailable"
    return JSONResponse(status_code=status_code, content={"detail": detail})


# Register routers
app.include_router(access_router, prefix="/api")
app.include_router(employees_router, prefix="/api")
app.include_router(tasks_router, prefix="/api")
app.include_router(admin_router, prefix="/api")


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/api/health")
async def health():
    """Quick health check endpoint."""
    return {"status": "ok"}
