"""
Role-scoped employee view.

Joins employee masterdata with the custom column values held in the party
side tables and keeps only the columns the role may see. Works on ORM
Employee objects and on plain dicts (change-feed snapshots) alike.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from app.permission_config import EXTERNAL_PARTY_ROLES, UserRole, is_hr_admin, parse_role
from app.services.permission_resolver import resolve_visible

logger = logging.getLogger(__name__)

STATUS_ACTIVE = "Active"
STATUS_TERMINATED = "Terminated"
STATUS_ARCHIVED = "Archived"
STATUS_COLUMN = "Status"

# Masterdata column name -> Employee attribute
MASTERDATA_FIELD_MAP = {
    "First Name": "first_name",
    "Surname": "surname",
    "SSN": "ssn",
    "Email": "email",
    "Mobile": "mobile",
    "Town District": "town_district",
    "Rank": "rank",
    "Gender": "gender",
    "Hire Date": "hire_date",
    "Stena Date": "stena_date",
    "ÖMC Date": "omc_date",
    "PE3 Date": "pe3_date",
    "Termination Date": "termination_date",
    "Termination Reason": "termination_reason",
    "Comments": "comments",
}

# Raw employee fields searched by the global filter when no column set is at hand
GLOBAL_FILTER_FIELDS = ("first_name", "surname", "email", "mobile", "rank", "ssn")

SORT_ASC = "asc"
SORT_DESC = "desc"

# custom_data shape: {party role value: {employee id str: {column name: value}}}
CustomData = Mapping[str, Mapping[str, Mapping[str, Any]]]


@dataclass
class ViewFilters:
    include_archived: bool = False
    include_terminated: bool = False
    global_filter: Optional[str] = None
    sort_column: Optional[str] = None
    sort_direction: str = SORT_ASC

    def __post_init__(self):
        direction = (self.sort_direction or SORT_ASC).lower()
        if direction not in (SORT_ASC, SORT_DESC):
            raise ValueError(f"Invalid sort direction: {self.sort_direction}")
        self.sort_direction = direction
        if self.global_filter is not None:
            self.global_filter = self.global_filter.strip() or None


@dataclass
class RowProjection:
    id: Any
    status: str
    fields: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": str(self.id), "status": self.status, "fields": dict(self.fields)}


def compute_status(is_archived: bool, is_terminated: bool) -> str:
    """Archived wins over Terminated, which wins over Active."""
    if is_archived:
        return STATUS_ARCHIVED
    if is_terminated:
        return STATUS_TERMINATED
    return STATUS_ACTIVE


def employee_field_name(column_name: str) -> str:
    return MASTERDATA_FIELD_MAP.get(column_name) or column_name.lower().replace(" ", "_")


def _get(record: Any, name: str, default: Any = None) -> Any:
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


def employee_status(employee: Any) -> str:
    return compute_status(bool(_get(employee, "is_archived")), bool(_get(employee, "is_terminated")))


def _custom_value(
    employee_id: str,
    column: Any,
    role: UserRole,
    custom_data: CustomData,
) -> Any:
    if not is_hr_admin(role):
        row = custom_data.get(role.value, {}).get(employee_id) or {}
        return row.get(column.column_name)
    # HR Admin reads the owning party's table; admin-created columns take the first party holding a value
    owners = [parse_role(column.owner_role)] if column.owner_role else list(EXTERNAL_PARTY_ROLES)
    for owner in owners:
        row = custom_data.get(owner.value, {}).get(employee_id) or {}
        if row.get(column.column_name) is not None:
            return row[column.column_name]
    return None


def project_employee(
    employee: Any,
    visible_columns: Iterable[Any],
    role,
    custom_data: Optional[CustomData] = None,
) -> RowProjection:
    role = parse_role(role)
    custom_data = custom_data or {}
    employee_id = str(_get(employee, "id"))
    status = employee_status(employee)
    fields: Dict[str, Any] = {}
    for column in visible_columns:
        if column.is_masterdata:
            if column.column_name == STATUS_COLUMN:
                fields[column.column_name] = status
            else:
                fields[column.column_name] = _get(employee, employee_field_name(column.column_name))
        else:
            fields[column.column_name] = _custom_value(employee_id, column, role, custom_data)
    return RowProjection(id=_get(employee, "id"), status=status, fields=fields)


def passes_lifecycle_filters(employee: Any, filters: ViewFilters) -> bool:
    if _get(employee, "is_archived") and not filters.include_archived:
        return False
    if _get(employee, "is_terminated") and not filters.include_terminated:
        return False
    return True


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def employee_matches_filters(employee: Any, filters: ViewFilters) -> bool:
    """Lifecycle flags plus the global filter over the raw searchable fields."""
    if not passes_lifecycle_filters(employee, filters):
        return False
    if not filters.global_filter:
        return True
    needle = filters.global_filter.casefold()
    return any(needle in _text(_get(employee, f)).casefold() for f in GLOBAL_FILTER_FIELDS)


def _row_matches_global(row: RowProjection, text_columns: List[str], needle: str) -> bool:
    return any(needle in _text(row.fields.get(name)).casefold() for name in text_columns)


def _sort_key(value: Any):
    if isinstance(value, bool):
        return (0, int(value))
    if isinstance(value, (int, float)):
        return (0, value)
    if isinstance(value, str):
        return (1, value.casefold())
    if isinstance(value, datetime):
        return (2, value.date(), value.time())
    if isinstance(value, date):
        return (2, value)
    return (3, str(value))


def sort_rows(rows: List[RowProjection], column_name: str, direction: str = SORT_ASC) -> List[RowProjection]:
    """Single-column stable sort. Rows without a value stay last in either direction."""
    present = [r for r in rows if r.fields.get(column_name) is not None]
    missing = [r for r in rows if r.fields.get(column_name) is None]
    present = sorted(present, key=lambda r: _sort_key(r.fields[column_name]), reverse=direction == SORT_DESC)
    return present + missing


def compose_view(
    employees: Iterable[Any],
    columns: Iterable[Any],
    role,
    filters: Optional[ViewFilters] = None,
    custom_data: Optional[CustomData] = None,
) -> List[RowProjection]:
    """
    Build the role-scoped projection of employees.

    employees must arrive in insertion order; that order breaks sort ties.
    Each row carries only the columns resolve_visible() grants to role.
    Missing custom values come back as None.
    """
    role = parse_role(role)
    filters = filters or ViewFilters()
    visible = resolve_visible(columns, role)
    rows = [
        project_employee(e, visible, role, custom_data)
        for e in employees
        if passes_lifecycle_filters(e, filters)
    ]

    if filters.global_filter:
        needle = filters.global_filter.casefold()
        text_columns = [c.column_name for c in visible if c.column_type == "text"]
        rows = [r for r in rows if _row_matches_global(r, text_columns, needle)]

    if filters.sort_column:
        if any(c.column_name == filters.sort_column for c in visible):
            rows = sort_rows(rows, filters.sort_column, filters.sort_direction)
        else:
            logger.debug("Ignoring sort on column %r not visible to %s", filters.sort_column, role.value)
    return rows
