"""
Important dates calendar.

A shared lookup pool of dated entries. PE3 dates double as assignable
slots: one is "available" while no non-archived employee references it.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.exceptions import NotFound, ValidationFailed, field_errors
from app.models import Employee, ImportantDate, PE3_CATEGORY
from app.schemas.important_date import ImportantDateCreate, ImportantDateImportRow, ImportantDateUpdate
from app.utils.csv_import import read_csv_rows

logger = logging.getLogger(__name__)

CSV_HEADER_ALIASES = {
    "week": "week_number",
    "week_no": "week_number",
    "description": "date_description",
    "date": "date_value",
}


def format_important_date_option(important_date: Any) -> str:
    """Dropdown label: "Week N - description", or just the description when there is no week."""
    week = getattr(important_date, "week_number", None)
    description = getattr(important_date, "date_description", "") or ""
    if week:
        return f"Week {week} - {description}"
    return description


class ImportantDateService:

    @staticmethod
    def list_dates(db: Session, category: Optional[str] = None) -> List[ImportantDate]:
        query = db.query(ImportantDate)
        if category:
            query = query.filter(ImportantDate.category == category)
        # week number ascending with nulls last, then year
        return query.order_by(
            ImportantDate.week_number.is_(None),
            ImportantDate.week_number,
            ImportantDate.year,
            ImportantDate.date_value,
        ).all()

    @staticmethod
    def get_date(db: Session, date_id: UUID) -> ImportantDate:
        item = db.get(ImportantDate, date_id)
        if item is None:
            raise NotFound(f"Important date with ID {date_id} not found")
        return item

    @staticmethod
    def create_date(db: Session, data: ImportantDateCreate) -> ImportantDate:
        item = ImportantDate(**data.model_dump())
        try:
            db.add(item)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(item)
        return item

    @staticmethod
    def update_date(db: Session, date_id: UUID, data: ImportantDateUpdate) -> ImportantDate:
        item = ImportantDateService.get_date(db, date_id)
        changes = data.model_dump(exclude_unset=True)
        for required in ("year", "category", "date_description", "date_value"):
            if required in changes and changes[required] is None:
                raise ValidationFailed("Invalid input data", details={required: ["Field cannot be null"]})
        for key, value in changes.items():
            setattr(item, key, value)
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(item)
        return item

    @staticmethod
    def delete_date(db: Session, date_id: UUID) -> None:
        item = ImportantDateService.get_date(db, date_id)
        try:
            db.delete(item)
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info(f"Important date {date_id} deleted")

    @staticmethod
    def available_pe3_dates(db: Session, today: Optional[date] = None) -> List[ImportantDate]:
        """
        Upcoming PE3 dates not assigned to any non-archived employee.
        Full read of assignments plus a set difference; there is no join index behind it.
        """
        today = today or date.today()
        candidates = (
            db.query(ImportantDate)
            .filter(ImportantDate.category == PE3_CATEGORY, ImportantDate.date_value >= today)
            .order_by(ImportantDate.date_value)
            .all()
        )
        assigned = {
            str(pe3).strip()
            for (pe3,) in db.query(Employee.pe3_date)
            .filter(Employee.is_archived.is_(False), Employee.pe3_date.isnot(None))
            .all()
            if pe3
        }
        return [d for d in candidates if str(d.id) not in assigned]

    @staticmethod
    def import_csv(db: Session, content: bytes) -> Dict[str, Any]:
        """Per-row validated import. Same summary shape as the employee import."""
        rows = read_csv_rows(content, CSV_HEADER_ALIASES)
        if not rows:
            raise ValidationFailed("CSV file is empty")

        valid: List[Tuple[int, Dict[str, str], ImportantDateImportRow]] = []
        errors: List[Dict[str, Any]] = []
        for i, row in enumerate(rows):
            row_number = i + 2
            payload = {}
            for key, value in row.items():
                if key in ImportantDateImportRow.model_fields:
                    value = value.strip() if isinstance(value, str) else value
                    payload[key] = value or None
            try:
                valid.append((row_number, row, ImportantDateImportRow(**payload)))
            except ValidationError as e:
                message = ", ".join(
                    f"{f}: {m}" for f, msgs in field_errors(e.errors()).items() for m in msgs
                )
                errors.append({"row": row_number, "error": message, "data": row})

        if not valid:
            raise ValidationFailed("No valid important dates found in CSV", details=errors)

        imported = 0
        for row_number, raw, parsed in valid:
            try:
                db.add(ImportantDate(**parsed.model_dump()))
                db.commit()
                imported += 1
            except Exception as e:
                db.rollback()
                logger.exception(f"Important date import row {row_number} failed")
                errors.append({"row": row_number, "error": f"Failed to insert: {type(e).__name__}", "data": raw})

        logger.info(f"Important date import: {imported} imported, {len(errors)} skipped")
        return {"imported": imported, "skipped": len(errors), "errors": errors}
