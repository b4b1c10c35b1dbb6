"""FastAPI main application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from admin_api.core.config import settings
from admin_api.core.middleware import setup_middleware
from admin_api.core.rate_limiter import limiter
from admin_api.core.exceptions import AdminAPIError, ServiceUnavailableError

from admin_api.api.auth import router as auth_router
from admin_api.api.admins import router as admins_router
from admin_api.api.permissions import router as permissions_router
from admin_api.api.roles import router as roles_router
from admin_api.api.audit import router as audit_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("admin_api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting %s", settings.APP_NAME)

    if settings.SEED_PERMISSIONS_ON_STARTUP:
        from admin_api.db.session import SessionLocal
        from admin_api.services.permission_service import permission_service

        db = SessionLocal()
        try:
            inserted = permission_service.seed(db)
            if inserted:
                logger.info("Seeded %d permissions", inserted)
        except ServiceUnavailableError as e:
            logger.warning("Permission seeding skipped: %s", e.message)
        finally:
            db.close()

    yield

    logger.info("Shutting down %s", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    description="Role and permission management for the admin back-office",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Middleware
setup_middleware(app)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(AdminAPIError)
async def admin_api_exception_handler(request: Request, exc: AdminAPIError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=503,
        content={"detail": "Service temporarily unavailable", "code": "Unavailable"},
    )


# Register routers
app.include_router(auth_router, prefix="/api")
app.include_router(admins_router, prefix="/api")
app.include_router(permissions_router, prefix="/api")
app.include_router(roles_router, prefix="/api")
app.include_router(audit_router, prefix="/api")


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
