import time

from jose import jwt

from tests.conftest import auth_header, make_token, settings

ADMIN = {"sub": "admin-1", "username": "root", "email": "root@example.com", "realm_roles": ("admin",)}
MANAGER = {"sub": "manager-1", "username": "mia", "email": "mia@example.com", "realm_roles": ("manager",)}


def sync(client, **identity):
    response = client.post("/api/user/sync", headers=auth_header(**identity))
    assert response.status_code == 200
    return response.json()["user"]


def test_public_endpoints_need_no_token(client):
    assert client.get("/api/public/health").json()["status"] == "UP"
    assert client.get("/api/public/info").json()["application"] == settings.APP_NAME
    assert client.get("/health").status_code == 200


def test_missing_token_is_401(client):
    response = client.get("/api/user/profile")

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert response.json()["error"]["code"] == "UnauthorizedException"


def test_bad_tokens_are_401(client):
    expired = make_token(exp=int(time.time()) - 10)
    forged = jwt.encode({"sub": "x", "iss": settings.OIDC_ISSUER_URI}, "not-the-secret", algorithm="HS256")
    foreign = make_token(iss="http://elsewhere.test/realms/other")

    for token in ("garbage", expired, forged, foreign):
        response = client.get("/api/user/profile", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401, token


def test_insufficient_role_is_403(client):
    headers = auth_header()

    assert client.get("/api/manager/users", headers=headers).status_code == 403
    assert client.get("/api/admin/system/info", headers=headers).status_code == 403
    response = client.post("/api/manager/users/u1/roles", headers=headers, json={"role": "ADMIN"})
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "ForbiddenException"


def test_api_ignores_session_cookies_without_bearer(client):
    client.cookies.set(settings.SESSION_COOKIE_NAME, "anything")

    assert client.get("/api/user/session").status_code == 401


def test_user_sync_creates_local_user(client):
    user = sync(client, sub="abc", username="alice", email="a@x.com")

    assert user["id"] == "abc"
    assert user["roles"] == ["USER"]
    assert user["enabled"] is True
    assert "createdAt" in user
    assert user["updatedAt"] is not None


def test_profile_reports_local_roles_after_sync(client):
    headers = auth_header(sub="abc", username="alice", email="a@x.com")
    assert client.get("/api/user/profile", headers=headers).json()["roles"] == []

    sync(client, sub="abc", username="alice", email="a@x.com")
    body = client.get("/api/user/profile", headers=headers).json()

    assert body["keycloakId"] == "abc"
    assert body["firstName"] == "Alice"
    assert body["roles"] == ["USER"]


def test_session_endpoint(client):
    body = client.get("/api/user/session", headers=auth_header(realm_roles=("user", "offline_access"))).json()

    assert body["userId"] == "user-1"
    assert body["roles"] == ["user", "offline_access"]
    assert body["issuer"] == settings.OIDC_ISSUER_URI


def test_user_dashboard(client):
    body = client.get("/api/user/dashboard", headers=auth_header()).json()

    assert body["welcome"] == "Welcome to your dashboard, alice!"
    assert body["sessionValid"] is True
    assert 0 < body["sessionRemainingSeconds"] <= 300


def test_sync_without_identity_claims_is_rejected(client):
    response = client.post("/api/user/sync", headers=auth_header(email=""))

    assert response.status_code == 422
    assert response.json()["error"]["details"]["missing_claims"] == ["email"]


def test_manager_assigns_and_removes_roles(client):
    sync(client, sub="abc", username="alice", email="a@x.com")
    headers = auth_header(**MANAGER)

    response = client.post("/api/manager/users/abc/roles", headers=headers, json={"role": "MANAGER"})
    assert response.status_code == 200
    assert response.json()["assignedBy"] == "mia"

    users = client.get("/api/manager/users", headers=headers).json()
    assert users[0]["roles"] == ["MANAGER", "USER"]

    response = client.request("DELETE", "/api/manager/users/abc/roles", headers=headers, json={"role": "USER"})
    assert response.status_code == 200
    assert response.json()["removedBy"] == "mia"

    users = client.get("/api/manager/users", headers=headers).json()
    assert users[0]["roles"] == ["MANAGER"]


def test_role_change_for_unknown_user_is_404(client):
    response = client.post("/api/manager/users/ghost/roles", headers=auth_header(**MANAGER), json={"role": "USER"})

    assert response.status_code == 404


def test_unknown_role_name_is_rejected(client):
    sync(client, sub="abc", username="alice", email="a@x.com")

    response = client.post("/api/manager/users/abc/roles", headers=auth_header(**MANAGER), json={"role": "ROOT"})

    assert response.status_code == 422


def test_manager_reports(client):
    sync(client, sub="abc", username="alice", email="a@x.com")

    body = client.get("/api/manager/reports", headers=auth_header(**MANAGER)).json()

    assert body["totalUsers"] == 1
    assert body["usersByRole"] == {"USER": 1}
    assert body["generatedBy"] == "mia"


def test_admin_system_info(client):
    sync(client, sub="abc", username="alice", email="a@x.com")
    sync(client, sub="def", username="bob", email="b@x.com")

    body = client.get("/api/admin/system/info", headers=auth_header(**ADMIN)).json()

    assert body["totalUsers"] == 2
    assert body["activeUsers"] == 2
    assert body["inactiveUsers"] == 0
    assert body["roleDistribution"] == {"USER": 2}
    assert body["systemAdmin"] == "root"


def test_admin_roles_lists_seeded_roles(client):
    sync(client, sub="abc", username="alice", email="a@x.com")

    roles = client.get("/api/admin/roles", headers=auth_header(**ADMIN)).json()

    by_name = {role["name"]: role for role in roles}
    assert set(by_name) == {"ADMIN", "MANAGER", "USER", "GUEST"}
    assert by_name["USER"]["userCount"] == 1
    assert by_name["ADMIN"]["userCount"] == 0


def test_admin_enable_disable_acknowledge_without_changes(client):
    sync(client, sub="abc", username="alice", email="a@x.com")
    headers = auth_header(**ADMIN)

    body = client.post("/api/admin/users/abc/disable", headers=headers).json()
    assert body["persisted"] is False
    assert body["adminUser"] == "root"
    assert "not changed" in body["message"]
    assert "has been disabled" not in body["message"]

    body = client.post("/api/admin/users/abc/enable", headers=headers).json()
    assert body["persisted"] is False
    assert body["message"].startswith("Enable request for user abc")

    info = client.get("/api/admin/system/info", headers=headers).json()
    assert info["activeUsers"] == 1


def test_admin_sessions_audit_starts_empty(client):
    body = client.get("/api/admin/audit/sessions", headers=auth_header(**ADMIN)).json()

    assert body["sessions"] == []
    assert body["total"] == 0


def test_admin_reaches_manager_and_user_routes(client):
    headers = auth_header(**ADMIN)

    assert client.get("/api/manager/dashboard", headers=headers).status_code == 200
    assert client.get("/api/user/dashboard", headers=headers).status_code == 200
    assert client.get("/api/admin/dashboard", headers=headers).status_code == 200


def test_correlation_id_is_returned(client):
    response = client.get("/api/public/health")

    assert response.headers.get("X-Request-ID")
