"""
Column settings API (HR Admin only)
"""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.dependencies import RoleContext, require_hr_admin
from app.schemas.column import AdminColumnCreate, ColumnPermissionsUpdate, ColumnReorderRequest
from app.schemas.common import envelope
from app.services.column_service import ColumnService
from app.api.columns import column_to_dict

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/admin/columns")
def list_all_columns(ctx: RoleContext = Depends(require_hr_admin)):
    columns = ColumnService.list_all_columns(ctx.db)
    return envelope([column_to_dict(c) for c in columns], meta={"total": len(columns)})


@router.post("/admin/columns", status_code=status.HTTP_201_CREATED)
def create_column(body: AdminColumnCreate, ctx: RoleContext = Depends(require_hr_admin)):
    """Name must be unique across all columns (409 DUPLICATE_COLUMN)."""
    perms = (
        {k: v.model_dump() for k, v in body.role_permissions.items()}
        if body.role_permissions is not None
        else None
    )
    column = ColumnService.create_admin_column(
        ctx.db, body.column_name, body.column_type, body.category, perms
    )
    return envelope(column_to_dict(column))


@router.post("/admin/columns/reorder")
def reorder_columns(body: ColumnReorderRequest, ctx: RoleContext = Depends(require_hr_admin)):
    updated = ColumnService.reorder(ctx.db, [u.model_dump() for u in body.updates])
    return envelope({"success": True, "updated": updated})


@router.patch("/admin/columns/{column_id}")
def update_column_permissions(
    column_id: UUID,
    body: ColumnPermissionsUpdate,
    ctx: RoleContext = Depends(require_hr_admin),
):
    perms = {k: v.model_dump() for k, v in body.role_permissions.items()}
    column = ColumnService.update_permissions(ctx.db, column_id, perms)
    return envelope(column_to_dict(column))


@router.delete("/admin/columns/{column_id}")
def delete_column(column_id: UUID, ctx: RoleContext = Depends(require_hr_admin)):
    """Delete a custom column and its stored values. Masterdata columns: 403."""
    result = ColumnService.delete_column(ctx.db, column_id, actor_email=ctx.user.email)
    return envelope(result)
