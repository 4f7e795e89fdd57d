"""
Role constants for column-level RBAC.
Five fixed roles: one HR administrator and four external parties.
Each external party owns exactly one side table for its custom column values.
"""
from enum import Enum


class UserRole(str, Enum):
    HR_ADMIN = "hr_admin"
    SODEXO = "sodexo"
    OMC = "omc"
    PAYROLL = "payroll"
    TOPLUX = "toplux"


ALL_ROLES = tuple(UserRole)
ADMIN_ROLES = frozenset({UserRole.HR_ADMIN})
EXTERNAL_PARTY_ROLES = (UserRole.SODEXO, UserRole.OMC, UserRole.PAYROLL, UserRole.TOPLUX)

# Party role -> side table holding that party's custom column values
PARTY_TABLES = {
    UserRole.SODEXO: "sodexo_data",
    UserRole.OMC: "omc_data",
    UserRole.PAYROLL: "payroll_data",
    UserRole.TOPLUX: "toplux_data",
}

ROLE_DISPLAY_NAMES = {
    UserRole.HR_ADMIN: "HR Administrator",
    UserRole.SODEXO: "Sodexo",
    UserRole.OMC: "OMC",
    UserRole.PAYROLL: "Payroll",
    UserRole.TOPLUX: "Toplux",
}


def parse_role(value) -> UserRole:
    """Coerce a stored/posted role string to UserRole. Raises ValueError for anything outside the closed set."""
    if isinstance(value, UserRole):
        return value
    return UserRole((value or "").strip().lower())


def is_hr_admin(role) -> bool:
    return parse_role(role) in ADMIN_ROLES


def is_external_party(role) -> bool:
    return parse_role(role) in EXTERNAL_PARTY_ROLES
