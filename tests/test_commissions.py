from realty.models.agent import Agent
from realty.models.audit_log import AuditLog
from realty.models.landlord import Property
from realty.models.payment import Payment
from realty.models.user import UserRole, UserStatus
from tests.conftest import auth_headers, make_user


def _assign(client, landlord_user, agent, prop, rate=None):
    payload = {"agentId": agent.id, "propertyId": prop.id}
    if rate is not None:
        payload["commissionRate"] = rate
    r = client.post("/landlord/agents/assign", json=payload, headers=auth_headers(landlord_user))
    assert r.status_code == 200


def test_landlord_agents_include_pending_commission(client, db, landlord, active_agent, prop):
    landlord_user, landlord_profile = landlord
    _, agent = active_agent
    second = Property(landlord_id=landlord_profile.id, title="Bedsitter in Ruaka", rent=10000.0)
    db.add(second)
    db.commit()
    _assign(client, landlord_user, agent, prop, rate=10)
    _assign(client, landlord_user, agent, second)

    agents = client.get("/landlord/agents", headers=auth_headers(landlord_user)).json()
    assert len(agents) == 1
    assert agents[0]["pendingCommission"] == 4000.0
    assert len(agents[0]["assignedProperties"]) == 2
    assert agents[0]["isApproved"] is True


def test_available_agents_excludes_inactive_and_suspended(client, db, landlord, active_agent):
    landlord_user, _ = landlord
    _, agent = active_agent
    make_user(db, "pending@example.com", UserRole.AGENT, profile=Agent(active=False))
    suspended_user, _ = make_user(db, "suspended@example.com", UserRole.AGENT, profile=Agent(active=True))
    suspended_user.status = UserStatus.SUSPENDED
    db.commit()

    agents = client.get("/landlord/agents/available", headers=auth_headers(landlord_user)).json()
    assert [a["id"] for a in agents] == [agent.id]


def test_pay_commission(client, db, landlord, active_agent, prop):
    landlord_user, _ = landlord
    _, agent = active_agent
    _assign(client, landlord_user, agent, prop, rate=10)

    r = client.post(
        "/landlord/agents/pay-commission",
        json={"agentId": agent.id, "amount": 3000},
        headers=auth_headers(landlord_user),
    )
    assert r.status_code == 200
    assert r.json()["amount"] == 3000.0

    db.expire_all()
    assert db.query(Agent).filter(Agent.id == agent.id).one().total_earnings == 3000.0
    payment = db.query(Payment).one()
    assert payment.type == "COMMISSION"
    assert payment.status == "COMPLETED"
    assert db.query(AuditLog).filter(AuditLog.action == "COMMISSION_PAID").count() == 1


def test_pay_commission_requires_assignment(client, landlord, active_agent):
    landlord_user, _ = landlord
    _, agent = active_agent
    r = client.post(
        "/landlord/agents/pay-commission",
        json={"agentId": agent.id, "amount": 100},
        headers=auth_headers(landlord_user),
    )
    assert r.status_code == 404


def test_pay_commission_rejects_non_positive_amount(client, landlord, active_agent):
    landlord_user, _ = landlord
    _, agent = active_agent
    r = client.post(
        "/landlord/agents/pay-commission",
        json={"agentId": agent.id, "amount": 0},
        headers=auth_headers(landlord_user),
    )
    assert r.status_code == 400
    assert r.json() == {"error": "Agent ID and valid amount are required"}


def test_create_and_list_properties(client, landlord):
    landlord_user, _ = landlord
    r = client.post(
        "/landlord/properties",
        json={"title": "Maisonette in Kileleshwa", "town": "Nairobi", "rent": 85000},
        headers=auth_headers(landlord_user),
    )
    assert r.status_code == 201
    assert r.json()["agentId"] is None
    listed = client.get("/landlord/properties", headers=auth_headers(landlord_user)).json()
    assert [p["id"] for p in listed] == [r.json()["id"]]
