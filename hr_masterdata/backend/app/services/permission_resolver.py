"""
Column-level permission resolution.

A column's role_permissions maps every role in the closed set to
{"view": bool, "edit": bool}. Roles missing from the map are denied both.
HR Admin is not looked up at all: it always has full view and edit.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from app.permission_config import (
    ALL_ROLES,
    UserRole,
    is_hr_admin,
    parse_role,
)

logger = logging.getLogger(__name__)

MASTERDATA_CATEGORY = "Employee Information"
UNCATEGORIZED = "Uncategorized"


@dataclass(frozen=True)
class ColumnPermission:
    can_view: bool = False
    can_edit: bool = False


FULL_ACCESS = ColumnPermission(True, True)
NO_ACCESS = ColumnPermission(False, False)


class PermissionMapError(ValueError):
    """Raised when a role_permissions map fails write-time validation. errors: {field: [messages]}"""

    def __init__(self, errors: Dict[str, List[str]]):
        self.errors = errors
        super().__init__("; ".join(m for msgs in errors.values() for m in msgs))


def _flags_for(column: Any, role: UserRole) -> Optional[Mapping[str, Any]]:
    perms = getattr(column, "role_permissions", None) or {}
    flags = perms.get(role.value)
    if flags is None:
        return None
    if isinstance(flags, Mapping):
        return flags
    # pydantic RolePermissionFlags
    return {"view": getattr(flags, "view", False), "edit": getattr(flags, "edit", False)}


def get_column_permission(column: Any, role) -> ColumnPermission:
    role = parse_role(role)
    if is_hr_admin(role):
        return FULL_ACCESS
    flags = _flags_for(column, role)
    if not flags:
        return NO_ACCESS
    can_view = bool(flags.get("view", False))
    # edit without view is never honoured
    can_edit = can_view and bool(flags.get("edit", False))
    return ColumnPermission(can_view, can_edit)


def can_view(column: Any, role) -> bool:
    return get_column_permission(column, role).can_view


def can_edit(column: Any, role) -> bool:
    return get_column_permission(column, role).can_edit


def sort_columns(columns: Iterable[Any]) -> List[Any]:
    """Masterdata first, then display_order ascending. sorted() keeps ties in input order."""
    return sorted(
        columns,
        key=lambda c: (0 if c.is_masterdata else 1, c.display_order if c.display_order is not None else 0),
    )


def resolve_visible(columns: Iterable[Any], role) -> List[Any]:
    role = parse_role(role)
    return [c for c in sort_columns(columns) if get_column_permission(c, role).can_view]


def resolve_editable(columns: Iterable[Any], role) -> List[Any]:
    role = parse_role(role)
    return [c for c in sort_columns(columns) if get_column_permission(c, role).can_edit]


def normalize_role_permissions(raw: Optional[Mapping[str, Any]]) -> Dict[str, Dict[str, bool]]:
    """
    Validate a posted permission map against the closed role set and fill
    every missing role with {"view": False, "edit": False}.
    Unknown roles and edit-without-view are rejected with PermissionMapError.
    """
    errors: Dict[str, List[str]] = {}
    out = {role.value: {"view": False, "edit": False} for role in ALL_ROLES}
    for key, flags in (raw or {}).items():
        try:
            role = parse_role(key)
        except ValueError:
            errors.setdefault(f"role_permissions.{key}", []).append(f"Unknown role: {key}")
            continue
        if isinstance(flags, Mapping):
            view, edit = bool(flags.get("view", False)), bool(flags.get("edit", False))
        else:
            view, edit = bool(getattr(flags, "view", False)), bool(getattr(flags, "edit", False))
        if edit and not view:
            errors.setdefault(f"role_permissions.{role.value}", []).append(
                "Edit permission requires View permission"
            )
            continue
        out[role.value] = {"view": view, "edit": edit}
    if errors:
        raise PermissionMapError(errors)
    return out


def admin_only_permissions() -> Dict[str, Dict[str, bool]]:
    return normalize_role_permissions({UserRole.HR_ADMIN.value: {"view": True, "edit": True}})


def owner_only_permissions(owner_role) -> Dict[str, Dict[str, bool]]:
    """Custom column created by a party: the owner gets view+edit, HR Admin sees it, nobody else does."""
    owner = parse_role(owner_role)
    return normalize_role_permissions({
        UserRole.HR_ADMIN.value: {"view": True, "edit": True},
        owner.value: {"view": True, "edit": True},
    })


def default_masterdata_permissions(viewers: Iterable = ()) -> Dict[str, Dict[str, bool]]:
    """HR Admin full access; the listed party roles read-only; everyone else denied."""
    raw = {UserRole.HR_ADMIN.value: {"view": True, "edit": True}}
    for role in viewers:
        raw[parse_role(role).value] = {"view": True, "edit": False}
    return normalize_role_permissions(raw)


def group_columns_by_category(columns: Iterable[Any]) -> Dict[str, List[Any]]:
    """Masterdata under "Employee Information"; custom columns by category, else "Uncategorized"."""
    groups: Dict[str, List[Any]] = {}
    for column in sort_columns(columns):
        if column.is_masterdata:
            key = MASTERDATA_CATEGORY
        else:
            key = (column.category or "").strip() or UNCATEGORIZED
        groups.setdefault(key, []).append(column)
    return groups
