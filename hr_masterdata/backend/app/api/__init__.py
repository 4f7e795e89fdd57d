"""
API routes for HR Masterdata
"""
from .auth import router as auth_router
from .columns import router as columns_router
from .admin_columns import router as admin_columns_router
from .admin_users import router as admin_users_router
from .employees import router as employees_router
from .important_dates import router as important_dates_router
from .health import router as health_router

__all__ = [
    "auth_router",
    "columns_router",
    "admin_columns_router",
    "admin_users_router",
    "employees_router",
    "important_dates_router",
    "health_router",
]
