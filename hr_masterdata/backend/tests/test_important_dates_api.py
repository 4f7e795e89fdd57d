from datetime import date

from app.services.important_date_service import format_important_date_option


def add_date(client, headers, **overrides):
    body = {
        "week_number": 23,
        "year": 2099,
        "category": "PE3 Dates",
        "date_description": "PE3 course",
        "date_value": "2099-06-08",
    }
    body.update(overrides)
    resp = client.post("/api/important-dates", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def test_crud(client, admin_headers, sodexo_headers):
    item = add_date(client, admin_headers, category="Stena Dates", date_description="Drill")
    url = f"/api/important-dates/{item['id']}"

    assert client.get(url, headers=sodexo_headers).json()["data"]["date_description"] == "Drill"
    resp = client.patch(url, json={"notes": "Bring helmet"}, headers=admin_headers)
    assert resp.json()["data"]["notes"] == "Bring helmet"

    assert client.patch(url, json={"notes": "x"}, headers=sodexo_headers).status_code == 403
    assert client.delete(url, headers=admin_headers).status_code == 200
    assert client.get(url, headers=admin_headers).status_code == 404


def test_invalid_category_and_week(client, admin_headers):
    resp = client.post(
        "/api/important-dates",
        json={"week_number": 54, "year": 2099, "category": "Birthdays",
              "date_description": "x", "date_value": "2099-01-01"},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert {"week_number", "category"} <= set(resp.json()["error"]["details"])


def test_list_orders_by_week_with_missing_weeks_last(client, admin_headers):
    add_date(client, admin_headers, week_number=None, date_description="No week")
    add_date(client, admin_headers, week_number=40, date_description="Late")
    add_date(client, admin_headers, week_number=2, date_description="Early")
    add_date(client, admin_headers, week_number=10, category="Other", date_description="Other")

    items = client.get("/api/important-dates?category=PE3 Dates", headers=admin_headers).json()["data"]
    assert [i["date_description"] for i in items] == ["Early", "Late", "No week"]


def test_available_pe3_excludes_assigned_dates(client, admin_headers, create_employee):
    taken = add_date(client, admin_headers, date_description="Taken")
    free = add_date(client, admin_headers, week_number=30, date_description="Free", date_value="2099-07-27")
    add_date(client, admin_headers, year=2020, week_number=5, date_description="Past", date_value="2020-01-27")

    employee = create_employee(pe3_date=taken["id"])
    options = client.get("/api/important-dates/available-pe3", headers=admin_headers).json()["data"]
    assert [o["id"] for o in options] == [free["id"]]
    assert options[0]["label"] == "Week 30 - Free"

    # archiving releases the date
    client.post(f"/api/employees/{employee['id']}/archive", headers=admin_headers)
    options = client.get("/api/important-dates/available-pe3", headers=admin_headers).json()["data"]
    assert [o["id"] for o in options] == [taken["id"], free["id"]]


def test_csv_import(client, admin_headers):
    csv = (
        "Week,Year,Category,Description,Date,Notes\n"
        "12,2026,Stena Dates,Drill,2026-03-16,Deck 4\n"
        "13,2026,Parties,Summer,2026-03-23,\n"
    )
    resp = client.post(
        "/api/important-dates/import",
        files={"file": ("dates.csv", csv.encode(), "text/csv")},
        headers=admin_headers,
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data["imported"] == 1
    assert data["errors"][0]["row"] == 3

    items = client.get("/api/important-dates", headers=admin_headers).json()["data"]
    assert items[0]["notes"] == "Deck 4"


def test_option_label():
    class Item:
        week_number = None
        date_description = "Harbour day"
        date_value = date(2099, 1, 1)

    assert format_important_date_option(Item()) == "Harbour day"


def test_reassigning_pe3_releases_the_previous_date(client, admin_headers, create_employee):
    first = add_date(client, admin_headers, date_description="First")
    second = add_date(client, admin_headers, week_number=30, date_description="Second", date_value="2099-07-27")
    employee = create_employee(pe3_date=first["id"])

    options = client.get("/api/important-dates/available-pe3", headers=admin_headers).json()["data"]
    assert [o["id"] for o in options] == [second["id"]]

    resp = client.patch(f"/api/employees/{employee['id']}", json={"pe3_date": second["id"]}, headers=admin_headers)
    assert resp.status_code == 200
    options = client.get("/api/important-dates/available-pe3", headers=admin_headers).json()["data"]
    assert [o["id"] for o in options] == [first["id"]]
