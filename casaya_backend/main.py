"""Casaya rental backend - Main Application Entry Point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .core.exceptions import CasayaException
from .core.logging import (
    RequestLoggingMiddleware,
    get_logger,
    setup_logging,
    shutdown_logging,
)
from .core.utils import utc_now

# Import routers
from .modules.applications import landlord_router as landlord_applications_router
from .modules.applications import router as applications_router
from .modules.property_management import router as properties_router
from .modules.scoring import router as scoring_router
from .modules.tenant_management import router as tenants_router
from .modules.verification import router as verification_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    setup_logging()
    logger.info("Starting Casaya application...")
    logger.info(f"Environment: {settings.app_env}")
    logger.info(f"Debug mode: {settings.app_debug}")
    yield
    # Shutdown
    logger.info("Shutting down Casaya application...")
    shutdown_logging()


# Create FastAPI application
app = FastAPI(
    title=settings.api_title,
    description="Tenant verification and rental application pipeline",
    version=settings.api_version,
    docs_url=f"{settings.api_prefix}/docs" if settings.app_debug else None,
    redoc_url=f"{settings.api_prefix}/redoc" if settings.app_debug else None,
    openapi_url=f"{settings.api_prefix}/openapi.json" if settings.app_debug else None,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Transaction id and access logging
app.add_middleware(RequestLoggingMiddleware)


def _error_response(status_code: int, message: str, error) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "message": message,
            "data": None,
            "error": error,
            "timestamp": utc_now().isoformat(),
        },
    )


# Global exception handler
@app.exception_handler(CasayaException)
async def casaya_exception_handler(request: Request, exc: CasayaException):
    """Handle Casaya-specific exceptions."""
    if exc.status_code >= 500:
        logger.error(f"{exc.code}: {exc.message}", extra={"details": exc.details})
    return _error_response(
        exc.status_code,
        exc.message,
        {"code": exc.code, "details": jsonable_encoder(exc.details)},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Wrap framework HTTP errors (auth, routing) in the response envelope."""
    response = _error_response(
        exc.status_code, str(exc.detail), {"code": "http_error", "details": {}}
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Handle malformed request bodies and parameters."""
    return _error_response(
        422,
        "Request validation failed",
        {
            "code": "validation_error",
            "details": {"errors": jsonable_encoder(exc.errors())},
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unhandled exceptions."""
    logger.exception(f"Unhandled exception: {exc}")
    return _error_response(
        500,
        "Internal server error",
        {
            "code": "internal_error",
            "details": {"error": str(exc)} if settings.app_debug else {},
        },
    )


# Health check endpoint
@app.get(f"{settings.api_prefix}/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": settings.api_version,
        "env": settings.app_env,
    }


# Register routers with the API prefix
app.include_router(tenants_router, prefix=settings.api_prefix)
app.include_router(properties_router, prefix=settings.api_prefix)
app.include_router(verification_router, prefix=settings.api_prefix)
app.include_router(scoring_router, prefix=settings.api_prefix)
app.include_router(applications_router, prefix=settings.api_prefix)
app.include_router(landlord_applications_router, prefix=settings.api_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "casaya_backend.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.app_debug,
    )
