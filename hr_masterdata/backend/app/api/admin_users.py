"""
User Management API (HR Admin only)
"""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.dependencies import RoleContext, require_hr_admin
from app.schemas.common import envelope
from app.schemas.user import UserCreate, UserCreateResponse, UserResponse, UserStatusUpdate
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/admin/users")
def list_users(ctx: RoleContext = Depends(require_hr_admin)):
    """All users, newest first"""
    users = UserService.list_users(ctx.db)
    return envelope([UserResponse.model_validate(u).model_dump() for u in users])


@router.post("/admin/users", status_code=status.HTTP_201_CREATED)
def create_user(body: UserCreate, ctx: RoleContext = Depends(require_hr_admin)):
    user, password = UserService.create_user(
        ctx.db, body.email, body.role, password=body.password, is_active=body.is_active
    )
    data = UserResponse.model_validate(user).model_dump()
    return envelope(UserCreateResponse(**data, temporary_password=password).model_dump())


@router.patch("/admin/users/{user_id}")
def update_user_status(user_id: UUID, body: UserStatusUpdate, ctx: RoleContext = Depends(require_hr_admin)):
    """Activate or deactivate. Admins cannot deactivate themselves."""
    user = UserService.set_active(ctx.db, user_id, body.is_active, actor=ctx.user)
    return envelope(UserResponse.model_validate(user).model_dump())
