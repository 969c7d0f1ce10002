import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from realty.models.agent import Agent, AgentSuspension
from realty.models.audit_log import AuditLog
from realty.models.landlord import Landlord, Property
from realty.models.user import User, UserRole, UserStatus
from realty.services import agent_lifecycle
from tests.conftest import auth_headers, make_user


def _suspend(client, landlord_user, agent_id, reason="POOR_PERFORMANCE", days=7, notes="Missed viewings"):
    return client.post(
        "/landlord/agents/remove",
        json={"agentId": agent_id, "reason": reason, "suspensionDays": days, "notes": notes},
        headers=auth_headers(landlord_user),
    )


def _assign(client, landlord_user, agent_id, property_id, **extra):
    return client.post(
        "/landlord/agents/assign",
        json={"agentId": agent_id, "propertyId": property_id, **extra},
        headers=auth_headers(landlord_user),
    )


def test_approve_twice_keeps_agent_active_and_audits_each_call(client, db, landlord, active_agent):
    landlord_user, _ = landlord
    _, agent = active_agent
    for _ in range(2):
        r = client.post("/landlord/agents/approve", json={"agentId": agent.id}, headers=auth_headers(landlord_user))
        assert r.status_code == 200
        db.expire_all()
        assert db.query(Agent).filter(Agent.id == agent.id).one().active is True

    entries = db.query(AuditLog).filter(AuditLog.action == "AGENT_ACCOUNT_APPROVED", AuditLog.entity_id == agent.id)
    assert entries.count() == 2


def test_approve_requires_existing_agent(client, landlord):
    landlord_user, _ = landlord
    r = client.post("/landlord/agents/approve", json={}, headers=auth_headers(landlord_user))
    assert r.status_code == 400
    r = client.post("/landlord/agents/approve", json={"agentId": "missing"}, headers=auth_headers(landlord_user))
    assert r.status_code == 404


def test_assign_sets_agent_and_commission(client, db, landlord, active_agent, prop):
    landlord_user, _ = landlord
    _, agent = active_agent
    r = _assign(client, landlord_user, agent.id, prop.id, commissionRate=10)
    assert r.status_code == 200
    assert r.json() == {"message": "Agent assigned successfully", "agentId": agent.id, "propertyId": prop.id}

    db.expire_all()
    assert db.query(Property).filter(Property.id == prop.id).one().agent_id == agent.id
    assert db.query(Agent).filter(Agent.id == agent.id).one().commission_rate == 10


def test_assign_inactive_agent_rejected(client, db, landlord, active_agent, prop):
    landlord_user, _ = landlord
    _, agent = active_agent
    agent.active = False
    db.commit()

    r = _assign(client, landlord_user, agent.id, prop.id)
    assert r.status_code == 400
    assert r.json() == {"error": "Agent is not active"}


def test_assign_to_foreign_property_is_not_found(client, db, active_agent, prop):
    other_user, _ = make_user(db, "other@example.com", UserRole.LANDLORD, profile=Landlord())
    _, agent = active_agent
    r = _assign(client, other_user, agent.id, prop.id)
    assert r.status_code == 404


def test_assign_commission_rate_out_of_range(client, landlord, active_agent, prop):
    landlord_user, _ = landlord
    _, agent = active_agent
    r = _assign(client, landlord_user, agent.id, prop.id, commissionRate=150)
    assert r.status_code == 400
    assert r.json()["error"] == "Validation error"


def test_suspend_then_unsuspend(client, db, landlord, active_agent, prop):
    landlord_user, _ = landlord
    agent_user, agent = active_agent
    assert _assign(client, landlord_user, agent.id, prop.id).status_code == 200

    r = _suspend(client, landlord_user, agent.id)
    assert r.status_code == 200
    body = r.json()
    assert body["agentId"] == agent.id
    assert body["suspensionDays"] == 7
    assert body["propertiesRemoved"] == 1
    assert body["suspensionEndDate"]

    db.expire_all()
    assert db.query(Property).filter(Property.id == prop.id).one().agent_id is None
    assert db.query(User).filter(User.id == agent_user.id).one().status == UserStatus.SUSPENDED

    details = client.get("/agent/suspension", headers=auth_headers(agent_user)).json()
    assert details["suspended"] is True
    assert details["reason"] == "POOR_PERFORMANCE"
    assert details["reasonLabel"] == "Poor Performance"
    assert details["suspensionDays"] == 7
    assert details["notes"] == "Missed viewings"

    status = client.get("/agent/status", headers=auth_headers(agent_user)).json()
    assert status["status"] == "SUSPENDED"
    assert status["suspended"] is True
    assert status["approved"] is True  # read-only dashboard access

    r = client.post("/landlord/agents/unsuspend", json={"agentId": agent.id}, headers=auth_headers(landlord_user))
    assert r.status_code == 200

    status = client.get("/agent/status", headers=auth_headers(agent_user)).json()
    assert status["status"] == "APPROVED"
    db.expire_all()
    assert db.query(Property).filter(Property.id == prop.id).one().agent_id is None
    suspension = db.query(AgentSuspension).filter(AgentSuspension.agent_id == agent.id).one()
    assert suspension.lifted_at is not None
    assert db.query(Agent).filter(Agent.id == agent.id).one().current_suspension_id is None

    assert client.get("/agent/suspension", headers=auth_headers(agent_user)).json() == {"suspended": False}


def test_unsuspend_agent_that_is_not_suspended(client, db, landlord, active_agent):
    landlord_user, _ = landlord
    agent_user, agent = active_agent
    before = db.query(AuditLog).count()

    r = client.post("/landlord/agents/unsuspend", json={"agentId": agent.id}, headers=auth_headers(landlord_user))
    assert r.status_code == 400
    assert r.json() == {"error": "Agent is not suspended"}

    db.expire_all()
    assert db.query(User).filter(User.id == agent_user.id).one().status == UserStatus.ACTIVE
    assert db.query(Agent).filter(Agent.id == agent.id).one().active is True
    assert db.query(AuditLog).count() == before


@pytest.mark.parametrize(
    "payload",
    [
        {"reason": "OTHER"},
        {"reason": "OTHER", "suspensionDays": 0},
        {"reason": "", "suspensionDays": 3},
        {"reason": "OTHER", "suspensionDays": 3000000},
    ],
)
def test_suspend_validation(client, landlord, active_agent, payload):
    landlord_user, _ = landlord
    _, agent = active_agent
    r = client.post(
        "/landlord/agents/remove",
        json={"agentId": agent.id, **payload},
        headers=auth_headers(landlord_user),
    )
    assert r.status_code == 400


def test_suspend_unknown_agent(client, landlord):
    landlord_user, _ = landlord
    assert _suspend(client, landlord_user, "missing").status_code == 404


def test_suspension_survives_failed_unassignment(client, db, landlord, active_agent, prop, monkeypatch):
    landlord_user, _ = landlord
    agent_user, agent = active_agent
    assert _assign(client, landlord_user, agent.id, prop.id).status_code == 200

    def broken(db, agent_id):
        raise OperationalError("UPDATE properties", {}, Exception("database is locked"))

    monkeypatch.setattr(agent_lifecycle, "_unassign_properties", broken)

    r = _suspend(client, landlord_user, agent.id)
    assert r.status_code == 200
    assert r.json()["message"] == "Agent suspended successfully"

    db.expire_all()
    assert db.query(User).filter(User.id == agent_user.id).one().status == UserStatus.SUSPENDED
    assert db.query(Agent).filter(Agent.id == agent.id).one().active is False
    # Unassignment step was lost; later steps still ran
    assert db.query(Property).filter(Property.id == prop.id).one().agent_id == agent.id
    assert db.query(AuditLog).filter(AuditLog.action == "AGENT_SUSPENDED").count() == 1


def test_suspension_fails_when_status_update_fails(client, db, landlord, active_agent, monkeypatch):
    landlord_user, _ = landlord
    _, agent = active_agent
    calls = []
    monkeypatch.setattr(agent_lifecycle, "_deactivate_agent", lambda *a: calls.append(a))

    def failing_commit(self):
        raise OperationalError("UPDATE users", {}, Exception("connection lost"))

    monkeypatch.setattr(Session, "commit", failing_commit)

    r = _suspend(client, landlord_user, agent.id)
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to suspend agent"}
    assert calls == []


def test_suspension_longer_than_limit_leaves_agent_untouched(client, db, landlord, active_agent):
    landlord_user, _ = landlord
    agent_user, agent = active_agent
    r = _suspend(client, landlord_user, agent.id, days=agent_lifecycle.MAX_SUSPENSION_DAYS + 1)
    assert r.status_code == 400
    assert r.json() == {"error": "Suspension duration cannot exceed 3650 days"}

    db.expire_all()
    assert db.query(User).filter(User.id == agent_user.id).one().status == UserStatus.ACTIVE
    assert db.query(AgentSuspension).count() == 0


def test_longest_allowed_suspension(client, landlord, active_agent):
    landlord_user, _ = landlord
    _, agent = active_agent
    r = _suspend(client, landlord_user, agent.id, days=agent_lifecycle.MAX_SUSPENSION_DAYS)
    assert r.status_code == 200
    assert r.json()["suspensionDays"] == 3650
