"""
Internal authentication: password hashing (bcrypt) and JWT access tokens.
Dual-auth: internal JWT is primary; Supabase JWT can be accepted when configured.
Uses bcrypt directly to avoid passlib/bcrypt 4.x compatibility issues.
"""
from datetime import datetime, timezone, timedelta
from typing import NamedTuple, Optional
from uuid import uuid4

import bcrypt
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from app.config import settings
from app.models.user import RevokedToken

# Bcrypt max password length (bytes)
BCRYPT_MAX_PASSWORD_BYTES = 72

# JWT claim names
CLAIM_SUB = "sub"
CLAIM_EMAIL = "email"
CLAIM_ROLE = "role"
CLAIM_TYPE = "type"
CLAIM_EXP = "exp"
CLAIM_ISS = "iss"
CLAIM_JTI = "jti"

TYPE_ACCESS = "access"
ISSUER_INTERNAL = "hr-masterdata-internal"


class IssuedToken(NamedTuple):
    token: str
    jti: str
    expires_at: datetime


def _password_bytes(password: str, max_bytes: int = BCRYPT_MAX_PASSWORD_BYTES) -> bytes:
    """Encode password to bytes and truncate to bcrypt limit (72 bytes) to avoid ValueError."""
    raw = password.encode("utf-8")
    return raw[:max_bytes] if len(raw) > max_bytes else raw


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Return bcrypt hash of password. Passwords longer than 72 bytes are truncated (bcrypt limit)."""
    pw = _password_bytes(password)
    return bcrypt.hashpw(pw, bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)).decode("ascii")


def verify_password(plain_password: str, password_hash: Optional[str]) -> bool:
    """Return True if plain_password matches password_hash. False if hash is None or malformed."""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), password_hash.encode("ascii"))
    except ValueError:
        return False


def create_access_token(user_id: str, email: str, role: str) -> IssuedToken:
    """Create an access token for API auth. The jti is what logout revokes."""
    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    jti = str(uuid4())
    payload = {
        CLAIM_SUB: str(user_id),
        CLAIM_EMAIL: email,
        CLAIM_ROLE: role,
        CLAIM_JTI: jti,
        CLAIM_TYPE: TYPE_ACCESS,
        CLAIM_ISS: ISSUER_INTERNAL,
        CLAIM_EXP: expires_at,
    }
    token = jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return IssuedToken(token=token, jti=jti, expires_at=expires_at)


def decode_internal_token(token: str, verify_exp: bool = True) -> Optional[dict]:
    """Decode and verify internal JWT. Returns payload dict or None. Revocation is checked separately."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"verify_iss": True, "verify_exp": verify_exp},
            issuer=ISSUER_INTERNAL,
        )
    except JWTError:
        return None
    if not payload.get(CLAIM_SUB) or payload.get(CLAIM_TYPE) != TYPE_ACCESS:
        return None
    return payload


def decode_supabase_token(token: str) -> Optional[dict]:
    """Decode and verify Supabase JWT if SUPABASE_JWT_SECRET is set. Returns payload or None."""
    secret = settings.SUPABASE_JWT_SECRET
    if not secret:
        return None
    try:
        # Supabase uses HS256; issuer is the project URL, audience "authenticated"
        return jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            options={"verify_iss": False, "verify_aud": False},
        )
    except JWTError:
        return None


def decode_token_dual(token: str) -> Optional[dict]:
    """
    Try internal JWT first, then Supabase JWT.
    Supabase payloads are normalised: sub is the Supabase Auth user id and
    "supabase" is set so the caller resolves the user by auth_user_id.
    """
    payload = decode_internal_token(token)
    if payload:
        return payload
    payload = decode_supabase_token(token)
    if payload and payload.get(CLAIM_SUB):
        return {
            CLAIM_SUB: payload.get(CLAIM_SUB),
            CLAIM_EMAIL: payload.get(CLAIM_EMAIL),
            CLAIM_JTI: payload.get(CLAIM_JTI) or payload.get("session_id"),
            CLAIM_TYPE: TYPE_ACCESS,
            "supabase": True,
        }
    return None


def is_token_revoked(session: Session, jti: Optional[str]) -> bool:
    """True if jti is in revoked_tokens."""
    if not jti:
        return False
    return session.get(RevokedToken, jti) is not None


def revoke_token(session: Session, jti: str, expires_at: Optional[datetime] = None) -> None:
    """Insert jti into revoked_tokens. Idempotent; commits."""
    if session.get(RevokedToken, jti) is not None:
        return
    try:
        session.add(RevokedToken(jti=jti, expires_at=expires_at))
        session.commit()
    except Exception:
        session.rollback()
        raise
