import pytest


@pytest.fixture
def locker(client, sodexo_headers):
    resp = client.post("/api/columns", json={"column_name": "Locker", "column_type": "number"}, headers=sodexo_headers)
    return resp.json()["data"]


def url(employee):
    return f"/api/employees/{employee['id']}/custom-data"


def test_owner_writes_and_reads_values(client, sodexo_headers, admin_headers, create_employee, locker):
    employee = create_employee()
    resp = client.patch(url(employee), json={"Locker": 17}, headers=sodexo_headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["updated"] == ["Locker"]

    data = client.get(url(employee), headers=sodexo_headers).json()["data"]
    assert data["columns"] == {"Locker": 17}

    view = client.get("/api/employees/view", headers=admin_headers).json()["data"]
    assert view["rows"][0]["fields"]["Locker"] == 17


def test_values_merge(client, sodexo_headers, create_employee, locker):
    client.post("/api/columns", json={"column_name": "Key Card"}, headers=sodexo_headers)
    employee = create_employee()
    client.patch(url(employee), json={"Locker": 1}, headers=sodexo_headers)
    client.patch(url(employee), json={"Key Card": "KC-9"}, headers=sodexo_headers)
    data = client.get(url(employee), headers=sodexo_headers).json()["data"]
    assert data["columns"] == {"Locker": 1, "Key Card": "KC-9"}


def test_type_mismatch(client, sodexo_headers, create_employee, locker):
    employee = create_employee()
    resp = client.patch(url(employee), json={"Locker": "seventeen"}, headers=sodexo_headers)
    assert resp.status_code == 400
    assert resp.json()["error"]["details"] == {"Locker": ["Expected a number"]}


def test_unknown_column(client, sodexo_headers, create_employee):
    employee = create_employee()
    resp = client.patch(url(employee), json={"Nope": 1}, headers=sodexo_headers)
    assert resp.status_code == 400


def test_other_party_cannot_write(client, omc_headers, create_employee, locker):
    employee = create_employee()
    resp = client.patch(url(employee), json={"Locker": 3}, headers=omc_headers)
    assert resp.status_code == 403


def test_hr_admin_has_no_side_table(client, admin_headers, create_employee):
    employee = create_employee()
    assert client.get(url(employee), headers=admin_headers).status_code == 403
    assert client.patch(url(employee), json={"Locker": 1}, headers=admin_headers).status_code == 403


def test_previewing_admin_still_cannot_write(client, admin, create_employee, locker):
    from conftest import headers_for

    employee = create_employee()
    resp = client.patch(url(employee), json={"Locker": 1}, headers=headers_for(admin, preview="sodexo"))
    assert resp.status_code == 403


def test_unknown_employee(client, sodexo_headers, locker):
    resp = client.get("/api/employees/00000000-0000-0000-0000-000000000000/custom-data", headers=sodexo_headers)
    assert resp.status_code == 404


@pytest.fixture
def shared_notes(client, sodexo_headers, omc_headers, create_employee):
    """Sodexo and OMC each own a "Notes" column with their own value for one employee."""
    employee = create_employee()
    columns = {}
    for party, headers in (("sodexo", sodexo_headers), ("omc", omc_headers)):
        columns[party] = client.post("/api/columns", json={"column_name": "Notes"}, headers=headers).json()["data"]
        assert client.patch(url(employee), json={"Notes": party}, headers=headers).status_code == 200
    return employee, columns


def test_same_named_columns_keep_separate_values(client, sodexo_headers, omc_headers, shared_notes):
    employee, _ = shared_notes
    assert client.get(url(employee), headers=sodexo_headers).json()["data"]["columns"] == {"Notes": "sodexo"}
    assert client.get(url(employee), headers=omc_headers).json()["data"]["columns"] == {"Notes": "omc"}


def test_rename_moves_only_the_owners_values(client, sodexo_headers, omc_headers, shared_notes):
    employee, columns = shared_notes
    resp = client.patch(
        f"/api/columns/{columns['sodexo']['id']}", json={"column_name": "Remarks"}, headers=sodexo_headers
    )
    assert resp.status_code == 200

    assert client.get(url(employee), headers=sodexo_headers).json()["data"]["columns"] == {"Remarks": "sodexo"}
    assert client.get(url(employee), headers=omc_headers).json()["data"]["columns"] == {"Notes": "omc"}


def test_delete_removes_only_the_owners_values(client, admin_headers, omc_headers, shared_notes):
    employee, columns = shared_notes
    resp = client.delete(f"/api/admin/columns/{columns['sodexo']['id']}", headers=admin_headers)
    assert resp.json()["data"]["affected_records"] == 1
    assert client.get(url(employee), headers=omc_headers).json()["data"]["columns"] == {"Notes": "omc"}
