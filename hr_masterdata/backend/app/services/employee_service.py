"""
Employee Record Store

Canonical employee rows (masterdata). Only HR Admin writes here; the
role-scoped read path goes through the view composer.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.exceptions import DuplicateEntry, NotFound, ValidationFailed, field_errors
from app.models import ColumnConfig, Employee
from app.schemas.employee import EmployeeCreate, EmployeeImportRow, EmployeeUpdate
from app.services.custom_data_service import CustomDataService
from app.services.view_composer import (
    RowProjection,
    ViewFilters,
    compose_view,
    employee_matches_filters,
    employee_status,
)
from app.utils.csv_import import read_csv_rows

logger = logging.getLogger(__name__)

# Normalised CSV header -> Employee field
CSV_HEADER_ALIASES = {
    "first_name": "first_name",
    "firstname": "first_name",
    "given_name": "first_name",
    "surname": "surname",
    "last_name": "surname",
    "lastname": "surname",
    "family_name": "surname",
    "ssn": "ssn",
    "social_security_no": "ssn",
    "social_security_number": "ssn",
    "personal_number": "ssn",
    "email": "email",
    "mobile": "mobile",
    "phone": "mobile",
    "mobile_phone": "mobile",
    "rank": "rank",
    "position": "rank",
    "title": "rank",
    "gender": "gender",
    "sex": "gender",
    "town_district": "town_district",
    "town": "town_district",
    "district": "town_district",
    "location": "town_district",
    "hire_date": "hire_date",
    "start_date": "hire_date",
    "employment_date": "hire_date",
    "stena_date": "stena_date",
    "omc_date": "omc_date",
    "comments": "comments",
    "notes": "comments",
    "remarks": "comments",
}


def _row_error_message(exc: ValidationError) -> str:
    return ", ".join(
        f"{field}: {msg}" for field, msgs in field_errors(exc.errors()).items() for msg in msgs
    )


class EmployeeService:
    """Employee CRUD, lifecycle transitions and CSV import"""

    @staticmethod
    def get_employee(db: Session, employee_id: UUID) -> Employee:
        employee = db.get(Employee, employee_id)
        if employee is None:
            raise NotFound(f"Employee {employee_id} not found")
        return employee

    @staticmethod
    def list_employees(
        db: Session,
        include_archived: bool = False,
        include_terminated: bool = False,
        search: Optional[str] = None,
    ) -> Tuple[List[Employee], int]:
        """
        Return (employees, total). Ordered by surname, then first name.
        search matches name, email, mobile, rank and SSN case-insensitively.
        """
        filters = ViewFilters(
            include_archived=include_archived,
            include_terminated=include_terminated,
            global_filter=search,
        )
        employees = db.query(Employee).order_by(Employee.surname, Employee.first_name).all()
        return [e for e in employees if employee_matches_filters(e, filters)], len(employees)

    @staticmethod
    def _ensure_unique_ssn(db: Session, ssn: str, exclude_id: Optional[UUID] = None) -> None:
        query = db.query(Employee).filter(Employee.ssn == ssn)
        if exclude_id is not None:
            query = query.filter(Employee.id != exclude_id)
        if query.first() is not None:
            raise DuplicateEntry(
                f"Employee with SSN {ssn} already exists",
                details={"ssn": ["SSN must be unique"]},
            )

    @staticmethod
    def create_employee(db: Session, data: EmployeeCreate) -> Employee:
        EmployeeService._ensure_unique_ssn(db, data.ssn)
        employee = Employee(
            **data.model_dump(),
            is_terminated=False,
            is_archived=False,
        )
        try:
            db.add(employee)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(employee)
        logger.info(f"Employee created: {employee.id}")
        return employee

    @staticmethod
    def update_employee(db: Session, employee_id: UUID, data: EmployeeUpdate) -> Employee:
        employee = EmployeeService.get_employee(db, employee_id)
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationFailed("At least one field must be provided for update")
        for required in ("first_name", "surname", "hire_date", "is_terminated", "is_archived"):
            if required in changes and changes[required] is None:
                raise ValidationFailed("Invalid input data", details={required: ["Field cannot be null"]})
        if changes.get("ssn"):
            EmployeeService._ensure_unique_ssn(db, changes["ssn"], exclude_id=employee.id)

        for key, value in changes.items():
            setattr(employee, key, value)

        if not employee.is_terminated:
            if "termination_date" in changes and changes["termination_date"] is not None:
                db.rollback()
                raise ValidationFailed(
                    "Termination date can only be set on a terminated employee",
                    details={"termination_date": ["Employee is not terminated"]},
                )
            employee.termination_date = None
            employee.termination_reason = None
        elif employee.termination_date is None:
            db.rollback()
            raise ValidationFailed(
                "Termination date is required when terminating an employee",
                details={"termination_date": ["Required when terminated"]},
            )

        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(employee)
        return employee

    @staticmethod
    def _set_flags(db: Session, employee: Employee, **values: Any) -> Employee:
        for key, value in values.items():
            setattr(employee, key, value)
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(employee)
        return employee

    @staticmethod
    def terminate(db: Session, employee_id: UUID, termination_date: date, reason: str) -> Employee:
        employee = EmployeeService.get_employee(db, employee_id)
        logger.info(f"Terminating employee {employee_id} as of {termination_date}")
        return EmployeeService._set_flags(
            db,
            employee,
            is_terminated=True,
            termination_date=termination_date,
            termination_reason=reason.strip(),
        )

    @staticmethod
    def reactivate(db: Session, employee_id: UUID) -> Employee:
        employee = EmployeeService.get_employee(db, employee_id)
        return EmployeeService._set_flags(
            db, employee, is_terminated=False, termination_date=None, termination_reason=None
        )

    @staticmethod
    def archive(db: Session, employee_id: UUID) -> Employee:
        employee = EmployeeService.get_employee(db, employee_id)
        return EmployeeService._set_flags(db, employee, is_archived=True)

    @staticmethod
    def unarchive(db: Session, employee_id: UUID) -> Employee:
        employee = EmployeeService.get_employee(db, employee_id)
        return EmployeeService._set_flags(db, employee, is_archived=False)

    @staticmethod
    def to_dict(employee: Employee) -> Dict[str, Any]:
        return {
            "id": employee.id,
            "first_name": employee.first_name,
            "surname": employee.surname,
            "ssn": employee.ssn,
            "email": employee.email,
            "mobile": employee.mobile,
            "rank": employee.rank,
            "gender": employee.gender,
            "town_district": employee.town_district,
            "hire_date": employee.hire_date,
            "stena_date": employee.stena_date,
            "omc_date": employee.omc_date,
            "pe3_date": employee.pe3_date,
            "termination_date": employee.termination_date,
            "termination_reason": employee.termination_reason,
            "is_terminated": employee.is_terminated,
            "is_archived": employee.is_archived,
            "comments": employee.comments,
            "status": employee_status(employee),
            "created_at": employee.created_at,
            "updated_at": employee.updated_at,
        }

    @staticmethod
    def role_view(db: Session, role, filters: ViewFilters) -> Tuple[List[RowProjection], int]:
        """
        Role-scoped projection of all employees. Returns (rows, total employees).
        Employees are fed in insertion order so sort ties keep that order.
        """
        employees = db.query(Employee).order_by(Employee.created_at).all()
        columns = db.query(ColumnConfig).all()
        custom_data = CustomDataService.load_custom_data(db)
        rows = compose_view(employees, columns, role, filters, custom_data)
        return rows, len(employees)

    @staticmethod
    def import_csv(db: Session, content: bytes) -> Dict[str, Any]:
        """
        Import employees from CSV. Rows are validated one by one (row numbers
        count the header as row 1); valid rows are inserted individually so a
        duplicate SSN only skips that row.
        """
        rows = read_csv_rows(content, CSV_HEADER_ALIASES)
        if not rows:
            raise ValidationFailed("CSV file is empty")

        valid: List[Tuple[int, Dict[str, str], EmployeeImportRow]] = []
        errors: List[Dict[str, Any]] = []
        for i, row in enumerate(rows):
            row_number = i + 2
            cleaned = {k: (v.strip() if isinstance(v, str) else v) for k, v in row.items()}
            payload = {k: (v or None) for k, v in cleaned.items() if k in EmployeeImportRow.model_fields}
            try:
                valid.append((row_number, row, EmployeeImportRow(**payload)))
            except ValidationError as e:
                errors.append({"row": row_number, "error": _row_error_message(e), "data": row})

        if not valid:
            raise ValidationFailed("No valid employees found in CSV", details=errors)

        imported = 0
        for row_number, raw, parsed in valid:
            if db.query(Employee).filter(Employee.ssn == parsed.ssn).first() is not None:
                errors.append({
                    "row": row_number,
                    "error": f"Employee with SSN {parsed.ssn} already exists",
                    "data": raw,
                })
                continue
            try:
                db.add(Employee(**parsed.model_dump(), is_terminated=False, is_archived=False))
                db.commit()
                imported += 1
            except Exception as e:
                db.rollback()
                logger.exception(f"Import row {row_number} failed")
                errors.append({"row": row_number, "error": f"Failed to insert: {type(e).__name__}", "data": raw})

        logger.info(f"Employee import: {imported} imported, {len(errors)} skipped")
        return {"imported": imported, "skipped": len(errors), "errors": errors}
