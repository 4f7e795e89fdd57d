"""
User and token revocation models
"""
from sqlalchemy import Column, String, Boolean
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP
import uuid
from app.database import Base
from app.models.base import utcnow


class User(Base):
    """
    Application user.

    role is one of the five fixed roles (see app.permission_config) and is
    never changed after creation. is_active=False blocks login and every
    authenticated request without deleting the row.
    auth_user_id links the row to Supabase Auth when Supabase sign-in is used;
    password_hash is set for internal (bcrypt) sign-in.
    """
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    auth_user_id = Column(String(64), unique=True, nullable=True)
    email = Column(String(255), nullable=False, unique=True)
    role = Column(String(20), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    password_hash = Column(String(255), nullable=True)
    last_active_at = Column(TIMESTAMP(timezone=True), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), default=utcnow, server_default=func.now())


class RevokedToken(Base):
    """Access tokens revoked by logout, keyed by JWT id."""
    __tablename__ = "revoked_tokens"

    jti = Column(String(64), primary_key=True)
    revoked_at = Column(TIMESTAMP(timezone=True), default=utcnow, server_default=func.now())
    expires_at = Column(TIMESTAMP(timezone=True), nullable=True)
