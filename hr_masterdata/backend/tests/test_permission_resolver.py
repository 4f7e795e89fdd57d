from types import SimpleNamespace

import pytest

from app.permission_config import ALL_ROLES, EXTERNAL_PARTY_ROLES
from app.services.permission_resolver import (
    PermissionMapError,
    get_column_permission,
    group_columns_by_category,
    normalize_role_permissions,
    owner_only_permissions,
    resolve_editable,
    resolve_visible,
)


def col(name, perms=None, masterdata=False, order=0, category=None, owner=None):
    return SimpleNamespace(
        column_name=name,
        role_permissions=perms or {},
        is_masterdata=masterdata,
        display_order=order,
        category=category,
        owner_role=owner,
        column_type="text",
    )


@pytest.mark.parametrize("role", [r.value for r in EXTERNAL_PARTY_ROLES])
def test_role_absent_from_map_is_denied(role):
    column = col("Shoe Size", {"hr_admin": {"view": True, "edit": True}})
    perm = get_column_permission(column, role)
    assert perm.can_view is False
    assert perm.can_edit is False


def test_hr_admin_sees_every_masterdata_column():
    columns = [
        col("SSN", {"hr_admin": {"view": False, "edit": False}}, masterdata=True, order=1),
        col("Gender", {}, masterdata=True, order=2),
    ]
    assert [c.column_name for c in resolve_visible(columns, "hr_admin")] == ["SSN", "Gender"]
    assert [c.column_name for c in resolve_editable(columns, "hr_admin")] == ["SSN", "Gender"]


def test_visible_ordering_masterdata_first_then_display_order():
    perms = {"sodexo": {"view": True, "edit": False}}
    columns = [
        col("Custom B", perms, order=2),
        col("Surname", perms, masterdata=True, order=5),
        col("Custom A", perms, order=1),
        col("First Name", perms, masterdata=True, order=3),
    ]
    names = [c.column_name for c in resolve_visible(columns, "sodexo")]
    assert names == ["First Name", "Surname", "Custom A", "Custom B"]


def test_editable_requires_view():
    column = col("Locker", {"omc": {"view": False, "edit": True}})
    assert resolve_editable([column], "omc") == []


def test_normalize_fills_every_role_and_rejects_unknown():
    perms = normalize_role_permissions({"sodexo": {"view": True, "edit": True}})
    assert set(perms) == {r.value for r in ALL_ROLES}
    assert perms["omc"] == {"view": False, "edit": False}

    with pytest.raises(PermissionMapError) as exc:
        normalize_role_permissions({"contractor": {"view": True, "edit": False}})
    assert "role_permissions.contractor" in exc.value.errors


def test_normalize_rejects_edit_without_view():
    with pytest.raises(PermissionMapError) as exc:
        normalize_role_permissions({"payroll": {"view": False, "edit": True}})
    assert exc.value.errors["role_permissions.payroll"] == ["Edit permission requires View permission"]


def test_owner_only_permissions_hide_column_from_other_parties():
    column = col("Locker", owner_only_permissions("sodexo"), owner="sodexo")
    assert get_column_permission(column, "sodexo").can_edit
    assert not get_column_permission(column, "omc").can_view
    assert get_column_permission(column, "hr_admin").can_edit


def test_group_columns_by_category():
    perms = {"sodexo": {"view": True, "edit": True}}
    columns = [
        col("First Name", perms, masterdata=True, order=1),
        col("Locker", perms, order=2, category="Equipment"),
        col("Notes", perms, order=3),
    ]
    groups = group_columns_by_category(columns)
    assert list(groups) == ["Employee Information", "Equipment", "Uncategorized"]
