from conftest import PASSWORD, auth_headers, make_user, sign_in


def test_sign_up_creates_employee_profile(client):
    r = client.post("/api/v1/auth/sign-up", json={
        "email": "New@Example.com", "password": "hunter22", "first_name": "Nia", "last_name": "Ng",
    })
    assert r.status_code == 201
    assert r.get_json()["data"]["user"]["email"] == "new@example.com"

    session = sign_in(client, "new@example.com", "hunter22")
    r = client.get("/api/v1/auth/session",
                   headers={"Authorization": f"Bearer {session['access_token']}"})
    body = r.get_json()["data"]
    assert body["role"] == "employee"
    assert body["session"]["email"] == "new@example.com"


def test_sign_up_rejects_duplicates_and_weak_passwords(client):
    payload = {"email": "dup@example.com", "password": "hunter22", "first_name": "D"}
    assert client.post("/api/v1/auth/sign-up", json=payload).status_code == 201
    r = client.post("/api/v1/auth/sign-up", json=payload)
    assert r.status_code == 409
    assert r.get_json()["error"]["code"] == "user_already_exists"

    r = client.post("/api/v1/auth/sign-up", json={"email": "w@example.com", "password": "123"})
    assert r.status_code == 422


def test_wrong_password(client, app):
    make_user("x@example.com")
    r = client.post("/api/v1/auth/sign-in", json={"email": "x@example.com", "password": "wrong"})
    assert r.status_code == 400
    assert r.get_json()["error"]["code"] == "invalid_credentials"


def test_session_without_token_hints_redirect(client):
    r = client.get("/api/v1/auth/session")
    assert r.status_code == 200
    body = r.get_json()
    assert body["data"] is None
    assert body["meta"]["redirect"] == "/auth"


def test_protected_page_without_token_is_401_with_redirect(client):
    r = client.get("/api/v1/dashboard")
    assert r.status_code == 401
    assert r.get_json()["error"]["detail"]["redirect"] == "/auth"


def test_sign_out_revokes_token(client, app):
    make_user("out@example.com")
    headers = auth_headers(client, "out@example.com")
    assert client.get("/api/v1/shell/nav", headers=headers).status_code == 200

    r = client.post("/api/v1/auth/sign-out", headers=headers)
    assert r.status_code == 200

    r = client.get("/api/v1/shell/nav", headers=headers)
    assert r.status_code == 401
    assert r.get_json()["error"]["code"] == "TOKEN_REVOKED"
    assert r.get_json()["error"]["detail"]["redirect"] == "/auth"


def test_sign_out_revokes_refresh_token(client, app):
    make_user("out2@example.com")
    session = sign_in(client, "out2@example.com", PASSWORD)
    refresh = {"Authorization": f"Bearer {session['refresh_token']}"}

    # sign out with an access token minted by refresh; the original refresh token goes too
    r = client.post("/api/v1/auth/refresh", headers=refresh)
    assert r.status_code == 200
    access = {"Authorization": f"Bearer {r.get_json()['data']['access_token']}"}
    assert client.post("/api/v1/auth/sign-out", headers=access).status_code == 200

    r = client.post("/api/v1/auth/refresh", headers=refresh)
    assert r.status_code == 401
    assert r.get_json()["error"]["code"] == "TOKEN_REVOKED"
    assert r.get_json()["error"]["detail"]["redirect"] == "/auth"


def test_non_string_credentials_are_rejected(client, app):
    r = client.post("/api/v1/auth/sign-up", json={"email": 5, "password": "hunter22"})
    assert r.status_code == 422
    r = client.post("/api/v1/auth/sign-up", json={"email": "n@example.com", "password": 123456})
    assert r.status_code == 422

    make_user("num@example.com")
    r = client.post("/api/v1/auth/sign-in", json={"email": "num@example.com", "password": 123})
    assert r.status_code == 400
    assert r.get_json()["error"]["code"] == "invalid_credentials"
    r = client.post("/api/v1/auth/sign-in", json=["num@example.com", PASSWORD])
    assert r.status_code == 400


def test_refresh_issues_new_access_token(client, app):
    make_user("r@example.com")
    session = sign_in(client, "r@example.com", PASSWORD)
    r = client.post("/api/v1/auth/refresh",
                    headers={"Authorization": f"Bearer {session['refresh_token']}"})
    assert r.status_code == 200
    assert r.get_json()["data"]["access_token"]


def test_principal_without_profile_falls_back_to_employee(client, app):
    from ems_api.extensions import db
    from ems_api.models.user import User

    u = User(email="bare@example.com", status="active")
    u.set_password(PASSWORD)
    db.session.add(u)
    db.session.commit()

    headers = auth_headers(client, "bare@example.com")
    r = client.get("/api/v1/shell/nav", headers=headers)
    data = r.get_json()["data"]
    assert data["role"] == "employee"
    assert data["user"]["role_resolved"] is False
    assert client.get("/api/v1/employees", headers=headers).status_code == 403


def test_shell_resolve(client, admin):
    _, headers = admin
    r = client.get("/api/v1/shell/resolve?path=/payroll", headers=headers)
    assert r.get_json()["data"] == {"page": "payroll", "path": "/payroll", "redirect": None, "allowed": True}
    r = client.get("/api/v1/shell/resolve?path=/", headers=headers)
    assert r.get_json()["data"]["redirect"] == "/auth"


def test_role_change_takes_effect_on_next_request(client, admin, app):
    uid, _ = make_user("promo@example.com")
    headers = auth_headers(client, "promo@example.com")
    assert client.get("/api/v1/employees", headers=headers).status_code == 403

    _, admin_headers = admin
    r = client.patch(f"/api/v1/profiles/{uid}/role", json={"role": "hr"}, headers=admin_headers)
    assert r.status_code == 200

    assert client.get("/api/v1/employees", headers=headers).status_code == 200
