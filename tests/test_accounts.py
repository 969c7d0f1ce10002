from fastapi.testclient import TestClient

from realty.main import app
from realty.models.audit_log import AuditLog
from realty.models.landlord import Landlord
from realty.models.user import User, UserRole, UserStatus
from realty.routers import agent as agent_router
from tests.conftest import PASSWORD, auth_headers


def _register_payload(email="owner@example.com", **overrides):
    payload = {
        "email": email,
        "password": PASSWORD,
        "firstName": "Wanjiru",
        "lastName": "Kamau",
        "phone": "0712345678",
        "companyName": "Kamau Homes",
    }
    payload.update(overrides)
    return payload


def test_landlord_registration_creates_user_and_profile(client, db):
    r = client.post("/auth/register", json=_register_payload())
    assert r.status_code == 201
    body = r.json()
    assert body["user"]["email"] == "owner@example.com"
    assert "hashedPassword" not in body["user"]

    user = db.query(User).filter(User.email == "owner@example.com").one()
    assert user.role == UserRole.LANDLORD
    assert db.query(Landlord).filter(Landlord.user_id == user.id).count() == 1


def test_registering_same_email_twice_conflicts(client):
    assert client.post("/auth/register", json=_register_payload()).status_code == 201
    r = client.post("/auth/register", json=_register_payload(email="OWNER@example.com"))
    assert r.status_code == 400
    assert r.json() == {"error": "User with this email already exists"}


def test_only_landlords_self_register(client):
    r = client.post("/auth/register", json=_register_payload(role="AGENT"))
    assert r.status_code == 403


def test_registration_validation_errors_name_fields(client):
    r = client.post("/auth/register", json=_register_payload(email="not-an-email", phone="12"))
    assert r.status_code == 400
    body = r.json()
    assert body["error"] == "Validation error"
    fields = {d["field"] for d in body["details"]}
    assert {"email", "phone"} <= fields


def test_weak_password_rejected(client):
    r = client.post("/auth/register", json=_register_payload(password="password"))
    assert r.status_code == 400
    assert "uppercase" in r.json()["error"]


def test_login_returns_token_usable_as_bearer(client, landlord):
    user, _ = landlord
    r = client.post("/auth/login", json={"email": user.email, "password": PASSWORD})
    assert r.status_code == 200
    token = r.json()["accessToken"]

    r = client.get("/landlord/properties", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json() == []


def test_login_wrong_password(client, landlord):
    user, _ = landlord
    r = client.post("/auth/login", json={"email": user.email, "password": "Wrong#1234"})
    assert r.status_code == 401
    assert r.json() == {"error": "Invalid credentials"}


def test_suspended_agent_can_still_log_in(client, db, active_agent):
    user, _ = active_agent
    user.status = UserStatus.SUSPENDED
    db.commit()
    r = client.post("/auth/login", json={"email": user.email, "password": PASSWORD})
    assert r.status_code == 200


def test_missing_identity_is_unauthorized(client):
    assert client.get("/agent/status").status_code == 401
    assert client.get("/agent/status", headers={"x-user-id": "nobody"}).status_code == 401


def test_invalid_bearer_token(client):
    r = client.get("/agent/status", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_check_email(client, landlord):
    user, _ = landlord
    assert client.post("/auth/check-email", json={"email": user.email.upper()}).json() == {"exists": True}
    assert client.post("/auth/check-email", json={"email": "new@example.com"}).json() == {"exists": False}


def test_admin_routes_require_admin(client, landlord):
    user, _ = landlord
    r = client.post("/admin/agents/invite", json={"email": "a@x.com"}, headers=auth_headers(user))
    assert r.status_code == 403


def test_admin_invite_creates_active_agent(client, db, admin, sent_emails):
    r = client.post(
        "/admin/agents/invite",
        json={"email": "New.Agent@example.com", "firstName": "Otieno", "lastName": "Odhiambo", "phone": "+254712345678"},
        headers=auth_headers(admin),
    )
    assert r.status_code == 201
    body = r.json()
    assert body["email"] == "new.agent@example.com"
    assert body["tempPassword"]
    assert "token=" in body["invitationLink"]
    assert body["emailSent"] is True
    sent_emails.assert_called_once()

    r = client.post("/auth/login", json={"email": "new.agent@example.com", "password": body["tempPassword"]})
    assert r.status_code == 200

    r = client.get("/admin/agents", headers=auth_headers(admin))
    agents = r.json()["agents"]
    assert len(agents) == 1
    assert agents[0]["active"] is True
    assert db.query(AuditLog).filter(AuditLog.action == "AGENT_INVITATION_SENT").count() == 1


def test_admin_invite_duplicate_email(client, admin, active_agent):
    user, _ = active_agent
    r = client.post("/admin/agents/invite", json={"email": user.email}, headers=auth_headers(admin))
    assert r.status_code == 400


def test_admin_creates_tenant(client, db, admin):
    r = client.post(
        "/admin/tenants",
        json={"email": "tenant@example.com", "firstName": "Njeri", "nationalId": "12345678"},
        headers=auth_headers(admin),
    )
    assert r.status_code == 201
    assert r.json()["tenantId"]
    assert db.query(User).filter(User.email == "tenant@example.com").one().role == UserRole.TENANT


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_unexpected_error_returns_generic_json(db, active_agent, monkeypatch):
    user, _ = active_agent

    def crash(agent, current_user):
        raise RuntimeError("boom")

    monkeypatch.setattr(agent_router, "agent_status", crash)
    client = TestClient(app, raise_server_exceptions=False)
    r = client.get("/agent/status", headers=auth_headers(user))
    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error"}
    assert "boom" not in r.text
