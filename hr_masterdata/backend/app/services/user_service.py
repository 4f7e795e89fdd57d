"""
Users and sign-in
"""
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import (
    AccountDeactivated,
    DuplicateEntry,
    Forbidden,
    InvalidCredentials,
    NotFound,
    UserNotFound,
)
from app.models import User
from app.permission_config import parse_role
from app.services.supabase_auth import SupabaseAuthService
from app.utils.auth_internal import IssuedToken, create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)


def generate_temporary_password() -> str:
    """12 random letters and digits; not derived from anything about the user."""
    alphabet = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
    return "".join(secrets.choice(alphabet) for _ in range(12))


def _as_aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def should_touch_activity(last_active_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    if last_active_at is None:
        return True
    now = now or datetime.now(timezone.utc)
    threshold = timedelta(minutes=settings.ACTIVITY_UPDATE_THRESHOLD_MINUTES)
    return now - _as_aware(last_active_at) >= threshold


class UserService:

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email.strip().lower()).first()

    @staticmethod
    def list_users(db: Session) -> List[User]:
        return db.query(User).order_by(User.created_at.desc()).all()

    @staticmethod
    def create_user(
        db: Session,
        email: str,
        role: str,
        password: Optional[str] = None,
        is_active: bool = True,
    ) -> Tuple[User, str]:
        """Create a user (and its Supabase Auth identity when configured). Returns (user, initial password)."""
        email = email.strip().lower()
        role = parse_role(role).value
        if UserService.get_by_email(db, email) is not None:
            raise DuplicateEntry("User with this email already exists", details={"email": ["Email already in use"]})
        password = password or generate_temporary_password()

        auth_user_id = None
        if settings.supabase_auth_enabled:
            auth_user_id = SupabaseAuthService.create_user(email, password, role)

        user = User(
            email=email,
            role=role,
            is_active=is_active,
            auth_user_id=auth_user_id,
            password_hash=hash_password(password),
        )
        try:
            db.add(user)
            db.commit()
        except Exception:
            db.rollback()
            if auth_user_id:
                SupabaseAuthService.delete_user(auth_user_id)
            raise
        db.refresh(user)
        logger.info(f"User created: {email} ({role})")
        return user, password

    @staticmethod
    def set_active(db: Session, user_id: UUID, is_active: bool, actor: User) -> User:
        user = db.get(User, user_id)
        if user is None:
            raise NotFound(f"User {user_id} not found")
        if user.id == actor.id and not is_active:
            raise Forbidden("You cannot deactivate your own account")
        user.is_active = is_active
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(user)
        if user.auth_user_id:
            SupabaseAuthService.set_user_blocked(user.auth_user_id, blocked=not is_active)
        logger.warning(
            f"[AUDIT] User {user.email} {'activated' if is_active else 'deactivated'} by {actor.email}"
        )
        return user

    @staticmethod
    def authenticate(db: Session, email: str, password: str) -> Tuple[User, IssuedToken]:
        """
        Verify credentials and issue an access token.
        Supabase sign-in is used when configured (the app user is then looked
        up by auth id); otherwise the stored bcrypt hash is checked.
        """
        email = email.strip().lower()
        if settings.supabase_auth_enabled:
            auth_user_id = SupabaseAuthService.sign_in(email, password)
            user = db.query(User).filter(User.auth_user_id == auth_user_id).first()
            if user is None:
                raise UserNotFound()
        else:
            user = UserService.get_by_email(db, email)
            if user is None or not verify_password(password, user.password_hash):
                raise InvalidCredentials()
        if not user.is_active:
            raise AccountDeactivated()

        issued = create_access_token(str(user.id), user.email, user.role)
        UserService.touch_last_active(db, user)
        logger.info(f"User signed in: {user.email}")
        return user, issued

    @staticmethod
    def touch_last_active(db: Session, user: User, now: Optional[datetime] = None) -> bool:
        """
        Record activity unless the stored timestamp is fresher than the threshold.
        Read-then-write without locking; a lost race only leaves a slightly older value.
        """
        now = now or datetime.now(timezone.utc)
        if not should_touch_activity(user.last_active_at, now):
            return False
        user.last_active_at = now
        try:
            db.commit()
        except Exception:
            db.rollback()
            logger.exception(f"Failed to update last_active_at for {user.id}")
            return False
        return True
