from conftest import PASSWORD, headers_for


def login(client, email, password=PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def test_login_returns_session(client, make_user):
    make_user("sodexo")
    resp = login(client, "Sodexo@Example.com")
    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data["user"]["role"] == "sodexo"
    assert data["session"]["token_type"] == "bearer"

    token = data["session"]["access_token"]
    profile = client.get("/api/profile", headers={"Authorization": f"Bearer {token}"})
    assert profile.status_code == 200
    assert profile.json()["data"]["effective_role"] == "sodexo"


def test_wrong_password(client, make_user):
    make_user("omc")
    resp = login(client, "omc@example.com", "not-the-password")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "INVALID_CREDENTIALS"


def test_unknown_email(client):
    resp = login(client, "nobody@example.com")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "INVALID_CREDENTIALS"


def test_deactivated_account_cannot_login(client, make_user):
    make_user("payroll", is_active=False)
    resp = login(client, "payroll@example.com")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "ACCOUNT_DEACTIVATED"


def test_login_body_is_validated(client):
    resp = client.post("/api/auth/login", json={"email": "not-an-email", "password": "short"})
    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert set(error["details"]) == {"email", "password"}


def test_missing_token(client):
    resp = client.get("/api/profile")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "UNAUTHORIZED"


def test_logout_revokes_token(client, make_user):
    headers = headers_for(make_user("toplux"))
    assert client.post("/api/auth/logout", headers=headers).status_code == 200
    resp = client.get("/api/profile", headers=headers)
    assert resp.status_code == 401


def test_deactivation_applies_to_existing_sessions(client, admin_headers, make_user):
    user = make_user("sodexo")
    headers = headers_for(user)
    resp = client.patch(f"/api/admin/users/{user.id}", json={"is_active": False}, headers=admin_headers)
    assert resp.status_code == 200
    resp = client.get("/api/profile", headers=headers)
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "ACCOUNT_DEACTIVATED"


def test_preview_role_changes_visibility_only(client, admin):
    headers = headers_for(admin, preview="omc")
    profile = client.get("/api/profile", headers=headers).json()["data"]
    assert profile["effective_role"] == "omc"
    assert profile["is_preview"] is True

    columns = client.get("/api/columns", headers=headers).json()["data"]
    assert "SSN" not in [c["column_name"] for c in columns]

    # admin routes are still open while previewing
    assert client.get("/api/admin/users", headers=headers).status_code == 200


def test_invalid_preview_role(client, admin):
    resp = client.get("/api/profile", headers=headers_for(admin, preview="superuser"))
    assert resp.status_code == 400


def test_preview_header_ignored_for_parties(client, make_user):
    headers = headers_for(make_user("sodexo"), preview="hr_admin")
    profile = client.get("/api/profile", headers=headers).json()["data"]
    assert profile["effective_role"] == "sodexo"
    assert client.get("/api/admin/users", headers=headers).status_code == 403
