"""
Column registry and custom column lifecycle.

A custom column goes proposed -> validated -> persisted. Validation collects
every field error and aborts before anything is written; persistence assigns
the next global display_order and the owner-only permission map.
"""
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.exceptions import DuplicateColumn, Forbidden, NotFound, ValidationFailed
from app.models import ColumnConfig
from app.permission_config import EXTERNAL_PARTY_ROLES, UserRole, is_hr_admin, parse_role
from app.services.custom_data_service import CustomDataService
from app.services.permission_resolver import (
    PermissionMapError,
    admin_only_permissions,
    can_edit,
    can_view,
    default_masterdata_permissions,
    normalize_role_permissions,
    resolve_visible,
)

logger = logging.getLogger(__name__)

COLUMN_TYPES = ("text", "number", "date", "boolean")
COLUMN_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9\s\-_]+$")
MAX_NAME_LENGTH = 100
MAX_CATEGORY_LENGTH = 100

_SODEXO, _OMC, _PAYROLL, _TOPLUX = (r.value for r in EXTERNAL_PARTY_ROLES)
_ALL_PARTIES = (_SODEXO, _OMC, _PAYROLL, _TOPLUX)

# (column name, type, party roles with read access). HR Admin always has full access.
MASTERDATA_COLUMNS = (
    ("First Name", "text", _ALL_PARTIES),
    ("Surname", "text", _ALL_PARTIES),
    ("SSN", "text", (_PAYROLL,)),
    ("Email", "text", _ALL_PARTIES),
    ("Mobile", "text", (_SODEXO, _OMC, _TOPLUX)),
    ("Rank", "text", _ALL_PARTIES),
    ("Gender", "text", ()),
    ("Town District", "text", (_SODEXO, _OMC, _TOPLUX)),
    ("Hire Date", "date", _ALL_PARTIES),
    ("Stena Date", "text", ()),
    ("ÖMC Date", "text", (_OMC,)),
    ("PE3 Date", "text", ()),
    ("Termination Date", "date", ()),
    ("Termination Reason", "text", ()),
    ("Status", "text", _ALL_PARTIES),
    ("Comments", "text", ()),
)


class ColumnState(str, Enum):
    PROPOSED = "proposed"
    VALIDATED = "validated"
    PERSISTED = "persisted"


@dataclass
class ColumnProposal:
    column_name: str
    column_type: str = "text"
    category: Optional[str] = None
    owner_role: Optional[str] = None
    state: ColumnState = ColumnState.PROPOSED


def _clean_category(category: Optional[str]) -> Optional[str]:
    if category is None:
        return None
    return category.strip() or None


def _same_name(a: str, b: str) -> bool:
    return a.strip().casefold() == b.strip().casefold()


def check_column_fields(
    column_name: Optional[str],
    column_type: Optional[str],
    category: Optional[str],
) -> Dict[str, List[str]]:
    """Field-level checks shared by create and rename. None means "not being set"."""
    errors: Dict[str, List[str]] = {}
    if column_name is not None:
        name = column_name.strip()
        if not name:
            errors.setdefault("column_name", []).append("Column name is required")
        elif len(name) > MAX_NAME_LENGTH:
            errors.setdefault("column_name", []).append(
                f"Column name must be {MAX_NAME_LENGTH} characters or less"
            )
        elif not COLUMN_NAME_PATTERN.match(name):
            errors.setdefault("column_name", []).append(
                "Column name can only contain letters, numbers, spaces, hyphens, and underscores"
            )
    if column_type is not None and column_type not in COLUMN_TYPES:
        errors.setdefault("column_type", []).append(
            f"Column type must be one of: {', '.join(COLUMN_TYPES)}"
        )
    if category is not None and len(category.strip()) > MAX_CATEGORY_LENGTH:
        errors.setdefault("category", []).append(
            f"Category must be {MAX_CATEGORY_LENGTH} characters or less"
        )
    return errors


def in_duplicate_scope(column: Any, owner_role, category: Optional[str]) -> bool:
    """
    Columns a custom column of owner_role in category may not share a name with:
    every masterdata column (HR Admin sees all of them, and row fields are keyed
    by column name), plus custom columns of the same owner role and category.
    """
    if column.is_masterdata:
        return True
    owner = parse_role(owner_role)
    if column.owner_role:
        same_owner = column.owner_role == owner.value
    else:
        # admin-created columns count for every party that can see them
        same_owner = can_view(column, owner)
    return same_owner and (_clean_category(column.category) or "").casefold() == (category or "").casefold()


def validate_proposal(proposal: ColumnProposal, existing: Sequence[Any]) -> ColumnProposal:
    """
    proposed -> validated. Raises ValidationFailed with every field error, or
    DuplicateColumn (status 400) when the name is taken within the owner role
    and category. Nothing is written.
    """
    if proposal.state is not ColumnState.PROPOSED:
        raise ValueError(f"Cannot validate a column in state {proposal.state.value}")
    errors = check_column_fields(proposal.column_name, proposal.column_type, proposal.category)
    if proposal.owner_role is None:
        errors.setdefault("owner_role", []).append("Custom columns need an owning role")
    if errors:
        raise ValidationFailed("Invalid column data", details=errors)

    name = proposal.column_name.strip()
    category = _clean_category(proposal.category)
    for column in existing:
        if in_duplicate_scope(column, proposal.owner_role, category) and _same_name(column.column_name, name):
            raise DuplicateColumn(
                f'A column named "{name}" already exists',
                details={"column_name": ["Column name must be unique"]},
                status_code=400,
            )
    return ColumnProposal(
        column_name=name,
        column_type=proposal.column_type,
        category=category,
        owner_role=parse_role(proposal.owner_role).value,
        state=ColumnState.VALIDATED,
    )


def value_tables(db: Session, column: Any) -> List[UserRole]:
    """
    Party tables holding values for column. A party column lives in its owner's
    table only; an admin-created column in every table whose party does not own
    a custom column of the same name.
    """
    if column.owner_role:
        return [parse_role(column.owner_role)]
    claimed = {
        c.owner_role
        for c in db.query(ColumnConfig).filter(
            ColumnConfig.is_masterdata.is_(False),
            ColumnConfig.owner_role.isnot(None),
            ColumnConfig.column_name == column.column_name,
        ).all()
    }
    return [r for r in EXTERNAL_PARTY_ROLES if r.value not in claimed]


def next_display_order(db: Session) -> int:
    current = db.query(func.max(ColumnConfig.display_order)).scalar()
    return (current or 0) + 1


def persist_proposal(db: Session, proposal: ColumnProposal) -> ColumnConfig:
    """validated -> persisted. display_order is global max + 1."""
    if proposal.state is not ColumnState.VALIDATED:
        raise ValueError(f"Cannot persist a column in state {proposal.state.value}")
    owner = parse_role(proposal.owner_role)
    column = ColumnConfig(
        column_name=proposal.column_name,
        column_type=proposal.column_type,
        category=proposal.category,
        is_masterdata=False,
        owner_role=owner.value,
        display_order=next_display_order(db),
        role_permissions=normalize_role_permissions({
            UserRole.HR_ADMIN.value: {"view": True, "edit": True},
            owner.value: {"view": True, "edit": True},
        }),
    )
    try:
        db.add(column)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(column)
    proposal.state = ColumnState.PERSISTED
    return column


def _permissions_or_400(raw) -> Dict[str, Dict[str, bool]]:
    try:
        perms = normalize_role_permissions(raw)
    except PermissionMapError as e:
        raise ValidationFailed(str(e), details=e.errors)
    # HR Admin access is not configurable
    perms[UserRole.HR_ADMIN.value] = {"view": True, "edit": True}
    return perms


class ColumnService:
    """Column registry operations"""

    @staticmethod
    def get_column(db: Session, column_id: UUID) -> ColumnConfig:
        column = db.get(ColumnConfig, column_id)
        if column is None:
            raise NotFound(f"Column {column_id} not found")
        return column

    @staticmethod
    def all_columns(db: Session) -> List[ColumnConfig]:
        return db.query(ColumnConfig).order_by(ColumnConfig.display_order, ColumnConfig.created_at).all()

    @staticmethod
    def list_columns_for_role(db: Session, role) -> List[ColumnConfig]:
        """Columns the role can view, masterdata first, then display order"""
        return resolve_visible(ColumnService.all_columns(db), role)

    @staticmethod
    def list_all_columns(db: Session) -> List[ColumnConfig]:
        """Admin listing: masterdata first, then by name"""
        return (
            db.query(ColumnConfig)
            .order_by(ColumnConfig.is_masterdata.desc(), ColumnConfig.column_name)
            .all()
        )

    @staticmethod
    def create_party_column(
        db: Session,
        role,
        column_name: str,
        column_type: str = "text",
        category: Optional[str] = None,
    ) -> ColumnConfig:
        role = parse_role(role)
        if is_hr_admin(role):
            raise Forbidden("HR Admin cannot create custom columns")
        proposal = ColumnProposal(
            column_name=column_name or "",
            column_type=column_type,
            category=category,
            owner_role=role.value,
        )
        validated = validate_proposal(proposal, ColumnService.all_columns(db))
        column = persist_proposal(db, validated)
        logger.info(f"Custom column '{column.column_name}' created by {role.value} (id={column.id})")
        return column

    @staticmethod
    def update_party_column(
        db: Session,
        role,
        column_id: UUID,
        column_name: Optional[str] = None,
        category: Optional[str] = None,
        category_set: bool = False,
    ) -> ColumnConfig:
        """Rename and/or re-categorise a custom column the role can edit."""
        role = parse_role(role)
        if is_hr_admin(role):
            raise Forbidden("HR Admin cannot edit custom columns here; use column settings")
        column = ColumnService.get_column(db, column_id)
        if column.is_masterdata:
            raise Forbidden("Masterdata columns cannot be modified")
        if not can_edit(column, role):
            raise Forbidden("You do not have permission to edit this column")

        errors = check_column_fields(column_name, None, category if category_set else None)
        if errors:
            raise ValidationFailed("Invalid column data", details=errors)

        new_name = column_name.strip() if column_name is not None else column.column_name
        new_category = _clean_category(category) if category_set else _clean_category(column.category)
        for other in ColumnService.all_columns(db):
            if other.id == column.id:
                continue
            if in_duplicate_scope(other, role, new_category) and _same_name(other.column_name, new_name):
                raise DuplicateColumn(
                    f'A column named "{new_name}" already exists',
                    details={"column_name": ["Column name must be unique"]},
                    status_code=400,
                )

        old_name = column.column_name
        try:
            if new_name != old_name:
                moved = CustomDataService.rename_key_in_party_tables(
                    db, old_name, new_name, roles=value_tables(db, column)
                )
                logger.info(f"Renamed column '{old_name}' -> '{new_name}' ({moved} rows moved)")
            column.column_name = new_name
            column.category = new_category
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(column)
        return column

    @staticmethod
    def create_admin_column(
        db: Session,
        column_name: str,
        column_type: str = "text",
        category: Optional[str] = None,
        role_permissions: Optional[Dict[str, Any]] = None,
    ) -> ColumnConfig:
        """Custom column created from column settings. Name must be unique across all columns (409)."""
        errors = check_column_fields(column_name or "", column_type, category)
        if errors:
            raise ValidationFailed("Invalid column data", details=errors)
        name = column_name.strip()
        if any(_same_name(c.column_name, name) for c in db.query(ColumnConfig).all()):
            raise DuplicateColumn(
                f'A column named "{name}" already exists',
                details={"column_name": ["Column name must be unique"]},
            )
        perms = _permissions_or_400(role_permissions) if role_permissions else admin_only_permissions()
        column = ColumnConfig(
            column_name=name,
            column_type=column_type,
            category=_clean_category(category),
            is_masterdata=False,
            owner_role=None,
            display_order=next_display_order(db),
            role_permissions=perms,
        )
        try:
            db.add(column)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(column)
        logger.info(f"Column '{name}' created from column settings (id={column.id})")
        return column

    @staticmethod
    def update_permissions(db: Session, column_id: UUID, role_permissions: Dict[str, Any]) -> ColumnConfig:
        """Overlay the posted roles onto the stored map and re-validate the whole map."""
        column = ColumnService.get_column(db, column_id)
        merged = dict(column.role_permissions or {})
        for key, flags in (role_permissions or {}).items():
            merged[key] = flags
        column.role_permissions = _permissions_or_400(merged)
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(column)
        logger.info(f"Permissions updated for column '{column.column_name}' (id={column.id})")
        return column

    @staticmethod
    def reorder(db: Session, updates: Iterable[Dict[str, Any]]) -> int:
        """Apply {id, display_order} pairs in one commit. Unknown ids abort the batch."""
        updates = list(updates)
        for item in updates:
            if int(item["display_order"]) < 1:
                raise ValidationFailed(
                    "Invalid reorder request",
                    details={"display_order": ["Display order must be a positive integer"]},
                )
        ids = [item["id"] for item in updates]
        found = {c.id: c for c in db.query(ColumnConfig).filter(ColumnConfig.id.in_(ids)).all()}
        missing = [str(i) for i in ids if i not in found]
        if missing:
            raise NotFound("Column not found", details={"ids": missing})
        try:
            for item in updates:
                found[item["id"]].display_order = int(item["display_order"])
            db.commit()
        except Exception:
            db.rollback()
            raise
        return len(updates)

    @staticmethod
    def delete_column(db: Session, column_id: UUID, actor_email: str = "") -> Dict[str, Any]:
        column = ColumnService.get_column(db, column_id)
        if column.is_masterdata:
            raise Forbidden("Masterdata columns cannot be deleted")
        name = column.column_name
        try:
            affected = CustomDataService.remove_key_from_party_tables(db, name, roles=value_tables(db, column))
            db.delete(column)
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.warning(
            f"[AUDIT] Column '{name}' (id={column_id}) deleted by {actor_email or 'unknown'}; "
            f"{affected} party records cleaned"
        )
        return {
            "id": str(column_id),
            "message": f'Column "{name}" deleted successfully',
            "affected_records": affected,
        }

    @staticmethod
    def seed_masterdata_columns(db: Session) -> int:
        """Insert any missing masterdata column. Existing rows (and their permissions) are left alone."""
        existing = {
            c.column_name
            for c in db.query(ColumnConfig).filter(ColumnConfig.is_masterdata.is_(True)).all()
        }
        order = next_display_order(db)
        created = 0
        try:
            for name, kind, viewers in MASTERDATA_COLUMNS:
                if name in existing:
                    continue
                db.add(ColumnConfig(
                    column_name=name,
                    column_type=kind,
                    is_masterdata=True,
                    display_order=order,
                    role_permissions=default_masterdata_permissions(viewers),
                ))
                order += 1
                created += 1
            db.commit()
        except Exception:
            db.rollback()
            raise
        if created:
            logger.info(f"Seeded {created} masterdata columns")
        return created
