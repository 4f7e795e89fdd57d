"""
HR Masterdata - Main FastAPI Application
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.database import SessionLocal, init_db
from app.exceptions import ApiError, error_body, field_errors
from app.api import (
    auth_router,
    columns_router,
    admin_columns_router,
    admin_users_router,
    employees_router,
    important_dates_router,
    health_router,
)
from app.api.health import health_payload
from app.services.change_feed import install_change_capture
from app.services.column_service import ColumnService

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="HR masterdata with role-scoped column permissions",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Committed employee / important date changes feed the in-process change feed
install_change_capture(SessionLocal)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content=error_body("VALIDATION_ERROR", "Invalid input data", field_errors(exc.errors())),
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    codes = {401: "UNAUTHORIZED", 403: "FORBIDDEN", 404: "NOT_FOUND", 405: "METHOD_NOT_ALLOWED"}
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(codes.get(exc.status_code, "HTTP_ERROR"), str(exc.detail)),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=error_body("INTERNAL_ERROR", "An unexpected error occurred"),
    )


@app.get("/health")
async def root_health_check():
    """Health check endpoint for load balancers"""
    return health_payload()


@app.on_event("startup")
def create_tables_and_seed_columns():
    """Create missing tables and insert the masterdata column set."""
    init_db()
    if not settings.SEED_MASTERDATA_COLUMNS:
        logger.info("Masterdata seeding disabled (SEED_MASTERDATA_COLUMNS=false)")
        return
    db = SessionLocal()
    try:
        created = ColumnService.seed_masterdata_columns(db)
        logger.info("Masterdata columns ready (%d created)", created)
    finally:
        db.close()


@app.on_event("startup")
def log_auth_mode():
    logger.info(
        "Auth mode: %s (Supabase JWT accepted: %s)",
        "Supabase Auth" if settings.supabase_auth_enabled else "internal bcrypt",
        "yes" if settings.SUPABASE_JWT_SECRET else "no",
    )


# Include routers
app.include_router(health_router, prefix="/api", tags=["Health"])
app.include_router(auth_router, prefix="/api", tags=["Authentication"])
app.include_router(columns_router, prefix="/api", tags=["Columns"])
app.include_router(admin_columns_router, prefix="/api", tags=["Column Settings (Admin)"])
app.include_router(admin_users_router, prefix="/api", tags=["User Management (Admin)"])
app.include_router(employees_router, prefix="/api", tags=["Employees"])
app.include_router(important_dates_router, prefix="/api", tags=["Important Dates"])
