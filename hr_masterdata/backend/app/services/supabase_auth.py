"""
Supabase Auth integration (optional).

Used only when SUPABASE_URL, SUPABASE_KEY and SUPABASE_SERVICE_ROLE_KEY are
all configured: password sign-in, user provisioning, and blocking / signing
out deactivated users. Without it the service runs on internal bcrypt auth.
"""
import logging
from typing import Optional

from supabase import create_client, Client

from app.config import settings
from app.exceptions import InternalError, InvalidCredentials

logger = logging.getLogger(__name__)

# Effectively permanent; lifted again on reactivation
DEACTIVATED_BAN_DURATION = "876000h"


class SupabaseAuthService:
    """Thin wrapper over supabase-py auth calls"""

    @staticmethod
    def get_supabase_admin_client() -> Optional[Client]:
        """
        Get Supabase admin client using service role key.
        Service role key has admin privileges and must never reach a browser.
        """
        if not settings.supabase_auth_enabled:
            return None
        try:
            return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
        except Exception as e:
            logger.error(f"Failed to create Supabase admin client: {str(e)}")
            return None

    @staticmethod
    def get_supabase_client() -> Optional[Client]:
        """Anon-key client used for password sign-in."""
        if not settings.supabase_auth_enabled:
            return None
        try:
            return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
        except Exception as e:
            logger.error(f"Failed to create Supabase client: {str(e)}")
            return None

    @staticmethod
    def sign_in(email: str, password: str) -> str:
        """Verify credentials with Supabase Auth. Returns the auth user id."""
        client = SupabaseAuthService.get_supabase_client()
        if client is None:
            raise InternalError("Supabase Auth is not configured")
        try:
            response = client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            logger.info(f"Supabase sign-in rejected for {email}: {e}")
            raise InvalidCredentials()
        if not response or not response.user:
            raise InvalidCredentials()
        return str(response.user.id)

    @staticmethod
    def create_user(email: str, password: str, role: str) -> str:
        """Create a confirmed Supabase Auth user. Returns the auth user id."""
        client = SupabaseAuthService.get_supabase_admin_client()
        if client is None:
            raise InternalError("Supabase Auth is not configured")
        try:
            response = client.auth.admin.create_user({
                "email": email,
                "password": password,
                "email_confirm": True,
                "app_metadata": {"role": role},
            })
        except Exception as e:
            logger.error(f"Auth user creation failed for {email}: {e}")
            raise InternalError(f"Failed to create auth user: {e}")
        if not response or not response.user:
            raise InternalError("Failed to create auth user")
        logger.info(f"Created Supabase Auth user for {email}")
        return str(response.user.id)

    @staticmethod
    def delete_user(auth_user_id: str) -> None:
        """Best-effort cleanup when the app-side user row could not be written."""
        client = SupabaseAuthService.get_supabase_admin_client()
        if client is None:
            return
        try:
            client.auth.admin.delete_user(auth_user_id)
        except Exception as e:
            logger.error(f"Failed to delete auth user {auth_user_id}: {e}")

    @staticmethod
    def set_user_blocked(auth_user_id: str, blocked: bool) -> bool:
        """
        Ban (deactivate) or unban (reactivate) the auth user so existing
        Supabase sessions stop refreshing. Returns False on failure; the
        app-side is_active flag is authoritative regardless.
        """
        client = SupabaseAuthService.get_supabase_admin_client()
        if client is None:
            return False
        duration = DEACTIVATED_BAN_DURATION if blocked else "none"
        try:
            client.auth.admin.update_user_by_id(auth_user_id, {"ban_duration": duration})
            return True
        except Exception as e:
            logger.error(f"Failed to update ban for auth user {auth_user_id}: {e}")
            return False

    @staticmethod
    def sign_out(access_token: str) -> None:
        """Revoke a Supabase-issued session token. Failures are logged; logout still succeeds."""
        client = SupabaseAuthService.get_supabase_admin_client()
        if client is None:
            return
        try:
            client.auth.admin.sign_out(access_token)
        except Exception as e:
            logger.warning(f"Supabase sign-out failed: {e}")
