from uuid import UUID

import pytest

from app.exceptions import DuplicateColumn, Forbidden, ValidationFailed
from app.models import ColumnConfig
from app.services.column_service import (
    MASTERDATA_COLUMNS,
    ColumnProposal,
    ColumnService,
    ColumnState,
    validate_proposal,
)


def test_validation_collects_every_field_error():
    proposal = ColumnProposal(column_name="Bad!Name", column_type="money", owner_role="sodexo")
    with pytest.raises(ValidationFailed) as exc:
        validate_proposal(proposal, [])
    assert set(exc.value.details) == {"column_name", "column_type"}


def test_blank_name_rejected(db):
    with pytest.raises(ValidationFailed) as exc:
        ColumnService.create_party_column(db, "sodexo", "   ")
    assert exc.value.details["column_name"] == ["Column name is required"]


def test_persisted_column_is_owner_only_and_ordered_last(db):
    highest = max(c.display_order for c in db.query(ColumnConfig).all())
    column = ColumnService.create_party_column(db, "sodexo", " Locker Number ", "text", "Equipment")

    assert column.column_name == "Locker Number"
    assert column.owner_role == "sodexo"
    assert column.display_order == highest + 1
    assert column.role_permissions["sodexo"] == {"view": True, "edit": True}
    assert column.role_permissions["hr_admin"] == {"view": True, "edit": True}
    assert column.role_permissions["omc"] == {"view": False, "edit": False}


def test_duplicate_within_role_and_category_is_400(db):
    ColumnService.create_party_column(db, "sodexo", "Locker", category="Equipment")
    with pytest.raises(DuplicateColumn) as exc:
        ColumnService.create_party_column(db, "sodexo", "locker", category="Equipment")
    assert exc.value.status_code == 400


def test_same_name_allowed_for_other_role_or_category(db):
    ColumnService.create_party_column(db, "sodexo", "Locker", category="Equipment")
    ColumnService.create_party_column(db, "sodexo", "Locker", category="Lockers")
    ColumnService.create_party_column(db, "omc", "Locker", category="Equipment")
    assert db.query(ColumnConfig).filter(ColumnConfig.column_name == "Locker").count() == 3


def test_hr_admin_cannot_create_party_columns(db):
    with pytest.raises(Forbidden):
        ColumnService.create_party_column(db, "hr_admin", "Locker")


def test_proposal_state_machine():
    proposal = ColumnProposal(column_name="Locker", owner_role="toplux")
    validated = validate_proposal(proposal, [])
    assert validated.state is ColumnState.VALIDATED
    with pytest.raises(ValueError):
        validate_proposal(validated, [])


def test_seed_is_idempotent(db):
    assert db.query(ColumnConfig).filter(ColumnConfig.is_masterdata.is_(True)).count() == len(MASTERDATA_COLUMNS)
    assert ColumnService.seed_masterdata_columns(db) == 0


def test_rename_moves_stored_values(db, create_employee):
    from app.services.custom_data_service import CustomDataService

    employee = create_employee()
    column = ColumnService.create_party_column(db, "payroll", "Tax Table", "number")
    CustomDataService.update_custom_data(db, UUID(employee["id"]), "payroll", {"Tax Table": 33})

    ColumnService.update_party_column(db, "payroll", column.id, column_name="Tax Table Code")
    data = CustomDataService.get_custom_data(db, UUID(employee["id"]), "payroll")
    assert data == {"Tax Table Code": 33}


def test_admin_column_values_skip_parties_owning_the_name(db):
    from app.permission_config import UserRole
    from app.services.column_service import value_tables

    party_column = ColumnService.create_party_column(db, "toplux", "Badge")
    admin_column = ColumnService.create_admin_column(
        db, "Uniform Size", role_permissions={"sodexo": {"view": True, "edit": True}}
    )
    assert value_tables(db, party_column) == [UserRole.TOPLUX]
    assert value_tables(db, admin_column) == [UserRole.SODEXO, UserRole.OMC, UserRole.PAYROLL, UserRole.TOPLUX]

    admin_column.column_name = "Badge"
    assert value_tables(db, admin_column) == [UserRole.SODEXO, UserRole.OMC, UserRole.PAYROLL]
    db.rollback()
