"""
Column configuration schemas.

Name/type/category rules for custom columns are enforced by the column
lifecycle in app.services.column_service, so these bodies only check shape.
"""

from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class RolePermissionFlags(BaseModel):
    view: bool = False
    edit: bool = False


class ColumnCreate(BaseModel):
    """Custom column proposed by an external party"""
    column_name: str
    column_type: str = "text"
    category: Optional[str] = None


class ColumnUpdate(BaseModel):
    """Rename / re-categorise an owned custom column"""
    column_name: Optional[str] = None
    category: Optional[str] = None

    @model_validator(mode="after")
    def at_least_one_field(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        return self


class AdminColumnCreate(BaseModel):
    column_name: str
    column_type: str = "text"
    category: Optional[str] = None
    role_permissions: Optional[Dict[str, RolePermissionFlags]] = None


class ColumnPermissionsUpdate(BaseModel):
    role_permissions: Dict[str, RolePermissionFlags]


class ReorderItem(BaseModel):
    id: UUID
    display_order: int = Field(..., gt=0)


class ColumnReorderRequest(BaseModel):
    updates: List[ReorderItem] = Field(..., min_length=1)
