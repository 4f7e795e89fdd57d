from datetime import datetime, timedelta, timezone

from app.services.user_service import UserService, should_touch_activity


def test_create_user_returns_temporary_password(client, admin_headers):
    resp = client.post("/api/admin/users", json={"email": "new@example.com", "role": "omc"}, headers=admin_headers)
    assert resp.status_code == 201, resp.text
    data = resp.json()["data"]
    assert data["role"] == "omc"
    assert len(data["temporary_password"]) == 12

    login = client.post(
        "/api/auth/login", json={"email": "new@example.com", "password": data["temporary_password"]}
    )
    assert login.status_code == 200


def test_duplicate_email(client, admin_headers):
    body = {"email": "dup@example.com", "role": "payroll", "password": "password123"}
    assert client.post("/api/admin/users", json=body, headers=admin_headers).status_code == 201
    resp = client.post("/api/admin/users", json=body, headers=admin_headers)
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "DUPLICATE_ENTRY"


def test_unknown_role_rejected(client, admin_headers):
    resp = client.post("/api/admin/users", json={"email": "x@example.com", "role": "janitor"}, headers=admin_headers)
    assert resp.status_code == 400


def test_admin_cannot_deactivate_self(client, admin, admin_headers):
    resp = client.patch(f"/api/admin/users/{admin.id}", json={"is_active": False}, headers=admin_headers)
    assert resp.status_code == 403


def test_parties_cannot_manage_users(client, sodexo_headers):
    assert client.get("/api/admin/users", headers=sodexo_headers).status_code == 403


def test_list_users_newest_first(client, admin_headers, make_user):
    make_user("toplux")
    users = client.get("/api/admin/users", headers=admin_headers).json()["data"]
    assert [u["email"] for u in users] == ["toplux@example.com", "hr_admin@example.com"]


def test_activity_is_throttled(db, make_user):
    user = make_user("omc")
    now = datetime(2026, 5, 4, 12, 0, tzinfo=timezone.utc)
    assert UserService.touch_last_active(db, user, now=now)
    assert not UserService.touch_last_active(db, user, now=now + timedelta(minutes=4))
    assert UserService.touch_last_active(db, user, now=now + timedelta(minutes=5))


def test_should_touch_activity():
    now = datetime(2026, 5, 4, 12, 0, tzinfo=timezone.utc)
    assert should_touch_activity(None, now)
    assert not should_touch_activity(now - timedelta(minutes=1), now)
    assert should_touch_activity((now - timedelta(minutes=10)).replace(tzinfo=None), now)
