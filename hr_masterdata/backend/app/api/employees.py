"""
Employee API

HR Admin manages the masterdata rows. Every role reads through /employees/view,
which returns only the columns its (effective) role may see. External parties
maintain their custom column values through /employees/{id}/custom-data.
"""
import logging
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, File, Query, UploadFile, status

from app.api.columns import column_to_dict
from app.dependencies import RoleContext, get_role_context, require_hr_admin
from app.exceptions import ValidationFailed
from app.schemas.common import envelope, request_meta
from app.schemas.employee import EmployeeCreate, EmployeeUpdate, TerminateRequest
from app.services.column_service import ColumnService
from app.services.custom_data_service import CustomDataService
from app.services.employee_service import EmployeeService
from app.services.view_composer import ViewFilters

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/employees")
def list_employees(
    include_archived: bool = Query(False),
    include_terminated: bool = Query(False),
    search: Optional[str] = Query(None, description="Case-insensitive match over name, email, mobile, rank and SSN"),
    ctx: RoleContext = Depends(require_hr_admin),
):
    """Full employee records, ordered by surname then first name"""
    employees, total = EmployeeService.list_employees(ctx.db, include_archived, include_terminated, search)
    return envelope(
        [EmployeeService.to_dict(e) for e in employees],
        meta={"total": total, "filtered": len(employees)},
    )


@router.get("/employees/view")
def employee_view(
    include_archived: bool = Query(False),
    include_terminated: bool = Query(False),
    search: Optional[str] = Query(None, description="Case-insensitive match over visible text columns"),
    sort: Optional[str] = Query(None, description="Column name to sort by"),
    direction: str = Query("asc", pattern="^(asc|desc)$"),
    ctx: RoleContext = Depends(get_role_context),
):
    """Role-scoped projection. Preview role (HR Admin only) applies here."""
    role = ctx.effective_role
    filters = ViewFilters(
        include_archived=include_archived,
        include_terminated=include_terminated,
        global_filter=search,
        sort_column=sort,
        sort_direction=direction,
    )
    rows, total = EmployeeService.role_view(ctx.db, role, filters)
    columns = ColumnService.list_columns_for_role(ctx.db, role)
    return envelope(
        {
            "columns": [column_to_dict(c, role) for c in columns],
            "rows": [r.to_dict() for r in rows],
        },
        meta={
            "total": total,
            "filtered": len(rows),
            "role": role.value,
            "is_preview": ctx.is_preview,
        },
    )


@router.post("/employees/import")
async def import_employees(
    file: UploadFile = File(...),
    ctx: RoleContext = Depends(require_hr_admin),
):
    if not (file.filename or "").lower().endswith(".csv"):
        raise ValidationFailed("File must be a CSV file")
    content = await file.read()
    result = EmployeeService.import_csv(ctx.db, content)
    return envelope(result, meta=request_meta())


@router.post("/employees", status_code=status.HTTP_201_CREATED)
def create_employee(body: EmployeeCreate, ctx: RoleContext = Depends(require_hr_admin)):
    employee = EmployeeService.create_employee(ctx.db, body)
    return envelope(EmployeeService.to_dict(employee))


@router.get("/employees/{employee_id}")
def get_employee(employee_id: UUID, ctx: RoleContext = Depends(require_hr_admin)):
    employee = EmployeeService.get_employee(ctx.db, employee_id)
    return envelope(EmployeeService.to_dict(employee))


@router.patch("/employees/{employee_id}")
def update_employee(employee_id: UUID, body: EmployeeUpdate, ctx: RoleContext = Depends(require_hr_admin)):
    employee = EmployeeService.update_employee(ctx.db, employee_id, body)
    return envelope(EmployeeService.to_dict(employee))


@router.post("/employees/{employee_id}/terminate")
def terminate_employee(employee_id: UUID, body: TerminateRequest, ctx: RoleContext = Depends(require_hr_admin)):
    employee = EmployeeService.terminate(ctx.db, employee_id, body.termination_date, body.termination_reason)
    return envelope(EmployeeService.to_dict(employee))


@router.post("/employees/{employee_id}/reactivate")
def reactivate_employee(employee_id: UUID, ctx: RoleContext = Depends(require_hr_admin)):
    employee = EmployeeService.reactivate(ctx.db, employee_id)
    return envelope(EmployeeService.to_dict(employee))


@router.post("/employees/{employee_id}/archive")
def archive_employee(employee_id: UUID, ctx: RoleContext = Depends(require_hr_admin)):
    employee = EmployeeService.archive(ctx.db, employee_id)
    return envelope(EmployeeService.to_dict(employee))


@router.post("/employees/{employee_id}/unarchive")
def unarchive_employee(employee_id: UUID, ctx: RoleContext = Depends(require_hr_admin)):
    employee = EmployeeService.unarchive(ctx.db, employee_id)
    return envelope(EmployeeService.to_dict(employee))


@router.get("/employees/{employee_id}/custom-data")
def get_custom_data(employee_id: UUID, ctx: RoleContext = Depends(get_role_context)):
    """The caller's own party values. HR Admin: 403."""
    data = CustomDataService.get_custom_data(ctx.db, employee_id, ctx.real_role)
    return envelope({"employee_id": employee_id, "columns": data}, meta=request_meta())


@router.patch("/employees/{employee_id}/custom-data")
def update_custom_data(
    employee_id: UUID,
    values: Dict[str, Any] = Body(...),
    ctx: RoleContext = Depends(get_role_context),
):
    """Merge {column name: scalar} into the caller's party row. Authorized against the real role."""
    updated = CustomDataService.update_custom_data(ctx.db, employee_id, ctx.real_role, values)
    return envelope({"employee_id": employee_id, "updated": updated}, meta=request_meta())
