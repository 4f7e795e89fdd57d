"""
Authentication API

Login issues an internal access token (8 hours by default); logout revokes it.
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import RoleContext, get_current_user, get_role_context
from app.config import settings
from app.permission_config import ROLE_DISPLAY_NAMES
from app.schemas.auth import LoginRequest
from app.schemas.common import envelope
from app.services.supabase_auth import SupabaseAuthService
from app.services.user_service import UserService
from app.utils.auth_internal import CLAIM_EXP, CLAIM_JTI, revoke_token

logger = logging.getLogger(__name__)

router = APIRouter()


def user_summary(user) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "is_active": user.is_active,
    }


@router.post("/auth/login")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    """Email + password sign-in. 401 INVALID_CREDENTIALS / USER_NOT_FOUND / ACCOUNT_DEACTIVATED."""
    user, issued = UserService.authenticate(db, body.email, body.password)
    return envelope({
        "user": user_summary(user),
        "session": {
            "access_token": issued.token,
            "token_type": "bearer",
            "expires_at": issued.expires_at,
        },
    })


@router.post("/auth/logout")
def logout(request: Request, current_user_and_db: tuple = Depends(get_current_user)):
    user, db = current_user_and_db
    payload = request.state.token_payload
    jti = payload.get(CLAIM_JTI)
    if jti:
        exp = payload.get(CLAIM_EXP)
        expires_at = datetime.fromtimestamp(exp, tz=timezone.utc) if isinstance(exp, (int, float)) else None
        revoke_token(db, jti, expires_at)
    if payload.get("supabase") and settings.supabase_auth_enabled:
        SupabaseAuthService.sign_out(request.state.token)
    logger.info(f"User signed out: {user.email}")
    return envelope({"message": "Logged out successfully"})


@router.get("/profile")
def get_profile(ctx: RoleContext = Depends(get_role_context)):
    """Current user, plus the role the caller is currently viewing as."""
    user = ctx.user
    return envelope({
        "user": {**user_summary(user), "created_at": user.created_at, "last_active_at": user.last_active_at},
        "effective_role": ctx.effective_role.value,
        "effective_role_name": ROLE_DISPLAY_NAMES[ctx.effective_role],
        "is_preview": ctx.is_preview,
        "message": "Profile retrieved successfully",
    })
