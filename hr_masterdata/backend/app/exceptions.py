"""
API error taxonomy.

Services and dependencies raise these; handlers in app.main render them as
{"error": {"code", "message", "details"?}} with the matching HTTP status.
"""
from typing import Any, Dict, List, Optional

from fastapi import status


class ApiError(Exception):
    """Base error carrying a stable code, a user-facing message and optional field details."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Any] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message or self.default_message
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_body(self) -> Dict[str, Any]:
        return error_body(self.code, self.message, self.details)


class ValidationFailed(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    default_message = "Invalid input data"


class Unauthorized(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"
    default_message = "Authentication required"


class InvalidCredentials(Unauthorized):
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid email or password"


class UserNotFound(Unauthorized):
    code = "USER_NOT_FOUND"
    default_message = "User account not found"


class AccountDeactivated(Unauthorized):
    code = "ACCOUNT_DEACTIVATED"
    default_message = "Account has been deactivated"


class Forbidden(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    default_message = "Insufficient permissions"


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Resource not found"


class DuplicateEntry(ApiError):
    status_code = status.HTTP_409_CONFLICT
    code = "DUPLICATE_ENTRY"
    default_message = "Entry already exists"


class DuplicateColumn(ApiError):
    """409 on the admin column routes; party-scoped routes re-raise it with 400."""
    status_code = status.HTTP_409_CONFLICT
    code = "DUPLICATE_COLUMN"
    default_message = "Column already exists"


class InternalError(ApiError):
    pass


def error_body(code: str, message: str, details: Optional[Any] = None) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return {"error": error}


def field_errors(errors: List[Dict[str, Any]]) -> Dict[str, List[str]]:
    """Collapse pydantic error dicts into {field: [messages]} for form annotation."""
    out: Dict[str, List[str]] = {}
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path", "header")]
        field = ".".join(loc) or "__root__"
        msg = str(err.get("msg", "Invalid value"))
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        out.setdefault(field, []).append(msg)
    return out
