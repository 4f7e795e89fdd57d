"""
Pydantic schemas for request/response validation
"""
from .common import envelope, request_meta
from .auth import LoginRequest
from .user import UserCreate, UserStatusUpdate, UserResponse, UserCreateResponse
from .employee import (
    EmployeeCreate, EmployeeUpdate, TerminateRequest, EmployeeImportRow,
)
from .column import (
    RolePermissionFlags, ColumnCreate, ColumnUpdate, AdminColumnCreate,
    ColumnPermissionsUpdate, ReorderItem, ColumnReorderRequest,
)
from .important_date import (
    ImportantDateCreate, ImportantDateUpdate, ImportantDateImportRow,
    ImportantDateResponse, PE3Option,
)
