"""
Column API for the employee table.

GET returns the columns visible to the caller's effective role. POST and
PATCH manage an external party's own custom columns and always check the
real role.
"""
from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.dependencies import RoleContext, get_role_context
from app.exceptions import Forbidden
from app.permission_config import is_hr_admin
from app.schemas.column import ColumnCreate, ColumnUpdate
from app.schemas.common import envelope
from app.services.column_service import ColumnService
from app.services.permission_resolver import get_column_permission, group_columns_by_category

router = APIRouter()


def column_to_dict(column, role=None) -> dict:
    data = {
        "id": column.id,
        "column_name": column.column_name,
        "column_type": column.column_type,
        "is_masterdata": column.is_masterdata,
        "category": column.category,
        "display_order": column.display_order,
        "owner_role": column.owner_role,
        "role_permissions": column.role_permissions or {},
        "created_at": column.created_at,
    }
    if role is not None:
        perm = get_column_permission(column, role)
        data["can_view"] = perm.can_view
        data["can_edit"] = perm.can_edit
    return data


@router.get("/columns")
def list_columns(ctx: RoleContext = Depends(get_role_context)):
    role = ctx.effective_role
    columns = ColumnService.list_columns_for_role(ctx.db, role)
    groups = group_columns_by_category(columns)
    return envelope(
        [column_to_dict(c, role) for c in columns],
        meta={
            "role": role.value,
            "is_preview": ctx.is_preview,
            "categories": {name: [str(c.id) for c in cols] for name, cols in groups.items()},
        },
    )


@router.post("/columns", status_code=status.HTTP_201_CREATED)
def create_column(body: ColumnCreate, ctx: RoleContext = Depends(get_role_context)):
    """Create a custom column owned by the caller's party. 403 for HR Admin."""
    if is_hr_admin(ctx.real_role):
        raise Forbidden("HR Admin cannot create custom columns")
    column = ColumnService.create_party_column(
        ctx.db, ctx.real_role, body.column_name, body.column_type, body.category
    )
    return envelope(column_to_dict(column, ctx.real_role))


@router.patch("/columns/{column_id}")
def update_column(column_id: UUID, body: ColumnUpdate, ctx: RoleContext = Depends(get_role_context)):
    column = ColumnService.update_party_column(
        ctx.db,
        ctx.real_role,
        column_id,
        column_name=body.column_name,
        category=body.category,
        category_set="category" in body.model_fields_set,
    )
    return envelope(column_to_dict(column, ctx.real_role))
