"""
Authentication and role-context dependencies.

get_current_user accepts an internal JWT or (when SUPABASE_JWT_SECRET is set)
a Supabase JWT. The user row is re-read on every request, so deactivation
takes effect on the next call. HR Admin may pass X-Preview-Role to see
another role's view; preview only ever changes what is *visible*, never what
may be written.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple
from uuid import UUID

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.exceptions import AccountDeactivated, Forbidden, Unauthorized, UserNotFound, ValidationFailed
from app.models.user import User
from app.permission_config import UserRole, is_hr_admin, parse_role
from app.services.user_service import UserService
from app.utils.auth_internal import CLAIM_JTI, CLAIM_SUB, decode_token_dual, is_token_revoked

logger = logging.getLogger(__name__)

PREVIEW_ROLE_HEADER = "X-Preview-Role"


def get_bearer_token(request: Request) -> Optional[str]:
    auth = request.headers.get("Authorization")
    return (auth[7:].strip() if auth and auth.startswith("Bearer ") else None) or None


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
) -> Tuple[User, Session]:
    """
    Require a valid bearer token; return (user, db).
    Raises 401 for a missing/invalid/revoked token, an unknown user or a deactivated account.
    """
    token = get_bearer_token(request)
    if not token:
        raise Unauthorized("Not authenticated")
    payload = decode_token_dual(token)
    if not payload or not payload.get(CLAIM_SUB):
        raise Unauthorized("Invalid token")
    if is_token_revoked(db, payload.get(CLAIM_JTI)):
        raise Unauthorized("Session has been signed out")

    if payload.get("supabase"):
        user = db.query(User).filter(User.auth_user_id == str(payload[CLAIM_SUB])).first()
    else:
        try:
            user = db.get(User, UUID(str(payload[CLAIM_SUB])))
        except (ValueError, TypeError):
            raise Unauthorized("Invalid token")
    if user is None:
        raise UserNotFound()
    if not user.is_active:
        raise AccountDeactivated()

    request.state.token = token
    request.state.token_payload = payload
    UserService.touch_last_active(db, user)
    return user, db


@dataclass
class RoleContext:
    user: User
    db: Session
    preview_role: Optional[UserRole] = None

    @property
    def real_role(self) -> UserRole:
        return parse_role(self.user.role)

    @property
    def is_preview(self) -> bool:
        return self.preview_role is not None and is_hr_admin(self.real_role)

    @property
    def effective_role(self) -> UserRole:
        """Role used for visibility only. Authorization always uses real_role."""
        return self.preview_role if self.is_preview else self.real_role


def get_role_context(
    request: Request,
    current_user_and_db: tuple = Depends(get_current_user),
) -> RoleContext:
    user, db = current_user_and_db
    raw = (request.headers.get(PREVIEW_ROLE_HEADER) or "").strip()
    preview = None
    if raw:
        try:
            preview = parse_role(raw)
        except ValueError:
            raise ValidationFailed(
                f"Invalid preview role: {raw}",
                details={PREVIEW_ROLE_HEADER: ["Must be one of hr_admin, sodexo, omc, payroll, toplux"]},
            )
        if not is_hr_admin(user.role):
            logger.debug(f"Ignoring {PREVIEW_ROLE_HEADER} from non-admin {user.email}")
            preview = None
    return RoleContext(user=user, db=db, preview_role=preview)


def require_hr_admin(ctx: RoleContext = Depends(get_role_context)) -> RoleContext:
    """Admin-only routes. Checks the real role, so preview mode neither grants nor removes access."""
    if not is_hr_admin(ctx.real_role):
        raise Forbidden("HR Admin access required")
    return ctx
