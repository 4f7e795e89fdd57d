"""
Custom column values in the external party side tables.

Each party has one table (sodexo_data, omc_data, ...) with one row per
employee; the row's data holds {column name: scalar}. Rows are created on
first write and merged afterwards.
"""
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.exceptions import Forbidden, NotFound, ValidationFailed
from app.models import ColumnConfig, Employee, PARTY_DATA_MODELS
from app.permission_config import EXTERNAL_PARTY_ROLES, is_hr_admin, parse_role
from app.services.permission_resolver import can_edit, can_view

logger = logging.getLogger(__name__)

SCALAR_TYPES = (str, int, float, bool)


def _check_value(column: ColumnConfig, value: Any) -> Optional[str]:
    """Return an error message if value does not fit the column type, else None."""
    if value is None:
        return None
    kind = column.column_type
    if kind == "boolean":
        return None if isinstance(value, bool) else "Expected a boolean"
    if kind == "number":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return "Expected a number"
        return None
    if not isinstance(value, str):
        return "Expected a string"
    if kind == "date" and value:
        try:
            date.fromisoformat(value)
        except ValueError:
            return "Expected an ISO date (YYYY-MM-DD)"
    return None


class CustomDataService:
    """Reads and writes party custom column values"""

    @staticmethod
    def party_model(role):
        role = parse_role(role)
        model = PARTY_DATA_MODELS.get(role)
        if model is None:
            raise Forbidden(f"No custom data table found for role {role.value}")
        return model

    @staticmethod
    def load_custom_data(
        db: Session,
        roles: Optional[Iterable] = None,
        employee_ids: Optional[Iterable] = None,
    ) -> Dict[str, Dict[str, Dict[str, Any]]]:
        """{role value: {employee id str: data}} for the given party roles (all parties by default)."""
        roles = [parse_role(r) for r in roles] if roles is not None else list(EXTERNAL_PARTY_ROLES)
        ids = list(employee_ids) if employee_ids is not None else None
        out: Dict[str, Dict[str, Dict[str, Any]]] = {}
        for role in roles:
            model = PARTY_DATA_MODELS.get(role)
            if model is None:
                continue
            query = db.query(model)
            if ids is not None:
                if not ids:
                    out[role.value] = {}
                    continue
                query = query.filter(model.employee_id.in_(ids))
            out[role.value] = {str(row.employee_id): dict(row.data or {}) for row in query.all()}
        return out

    @staticmethod
    def get_custom_data(db: Session, employee_id: UUID, role) -> Dict[str, Any]:
        """Values of the custom columns role can view, for one employee. Missing values are None."""
        role = parse_role(role)
        if is_hr_admin(role):
            raise Forbidden("HR Admin cannot access custom data directly")
        if db.get(Employee, employee_id) is None:
            raise NotFound(f"Employee {employee_id} not found")
        model = CustomDataService.party_model(role)
        row = db.query(model).filter(model.employee_id == employee_id).first()
        data = dict(row.data or {}) if row else {}
        columns = db.query(ColumnConfig).filter(ColumnConfig.is_masterdata.is_(False)).all()
        return {c.column_name: data.get(c.column_name) for c in columns if can_view(c, role)}

    @staticmethod
    def update_custom_data(db: Session, employee_id: UUID, role, values: Mapping[str, Any]) -> List[str]:
        """
        Merge values into the role's side-table row for employee_id.

        role must be the caller's real role. Every key has to be a custom
        column the role can edit; values must be scalars matching the column type.
        """
        role = parse_role(role)
        if is_hr_admin(role):
            raise Forbidden("HR Admin cannot update custom data")
        if not isinstance(values, Mapping) or not values:
            raise ValidationFailed("Invalid custom data format", details={"__root__": ["Expected a non-empty object"]})
        if db.get(Employee, employee_id) is None:
            raise NotFound(f"Employee {employee_id} not found")
        model = CustomDataService.party_model(role)

        columns = {
            c.column_name: c
            for c in db.query(ColumnConfig).filter(ColumnConfig.is_masterdata.is_(False)).all()
        }
        errors: Dict[str, List[str]] = {}
        forbidden: List[str] = []
        for key, value in values.items():
            column = columns.get(key)
            if column is None:
                errors.setdefault(key, []).append(f"Unknown custom column: {key}")
                continue
            if not can_edit(column, role):
                forbidden.append(key)
                continue
            if value is not None and not isinstance(value, SCALAR_TYPES):
                errors.setdefault(key, []).append("Value must be a string, number, boolean or null")
                continue
            message = _check_value(column, value)
            if message:
                errors.setdefault(key, []).append(message)
        if errors:
            raise ValidationFailed("Invalid custom data format", details=errors)
        if forbidden:
            raise Forbidden(
                "You do not have permission to edit these columns",
                details={"columns": forbidden},
            )

        row = db.query(model).filter(model.employee_id == employee_id).first()
        try:
            if row is None:
                row = model(employee_id=employee_id, data=dict(values))
                db.add(row)
            else:
                # Reassign so the JSON column is flagged dirty
                row.data = {**(row.data or {}), **values}
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info(f"Custom data updated for employee {employee_id} by {role.value}: {sorted(values)}")
        return list(values.keys())

    @staticmethod
    def remove_key_from_party_tables(db: Session, column_name: str, roles: Optional[Iterable] = None) -> int:
        """Drop column_name from the given parties' rows (all parties by default). Returns rows changed. Caller commits."""
        affected = 0
        targets = [parse_role(r) for r in roles] if roles is not None else list(EXTERNAL_PARTY_ROLES)
        for model in (PARTY_DATA_MODELS[role] for role in targets):
            for row in db.query(model).all():
                data = row.data or {}
                if column_name in data:
                    row.data = {k: v for k, v in data.items() if k != column_name}
                    affected += 1
        return affected

    @staticmethod
    def rename_key_in_party_tables(db: Session, old_name: str, new_name: str, roles: Optional[Iterable] = None) -> int:
        """Move values stored under old_name to new_name. Caller commits."""
        affected = 0
        targets = [parse_role(r) for r in roles] if roles is not None else list(EXTERNAL_PARTY_ROLES)
        for role in targets:
            model = PARTY_DATA_MODELS[role]
            for row in db.query(model).all():
                data = row.data or {}
                if old_name in data:
                    moved = {k: v for k, v in data.items() if k != old_name}
                    moved[new_name] = data[old_name]
                    row.data = moved
                    affected += 1
        return affected
