"""Landlord-side agent listings and commission payments."""
from __future__ import annotations

import logging

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from realty.models.agent import Agent
from realty.models.invitation import AgentInvitation
from realty.models.landlord import Landlord, Property
from realty.models.payment import (
    Payment,
    PAYMENT_METHOD_BANK_TRANSFER,
    PAYMENT_STATUS_COMPLETED,
    PAYMENT_TYPE_COMMISSION,
)
from realty.models.user import User, UserStatus
from realty.services.accounts import agent_to_dict, user_to_dict
from realty.services.audit_log import create_log, ACTION_COMMISSION_PAID, ENTITY_AGENT

log = logging.getLogger("uvicorn.error")


def _commission(properties: list[Property], rate: float | None) -> float:
    return round(sum((p.rent or 0.0) * (rate or 0.0) / 100.0 for p in properties), 2)


def _property_summary(prop: Property) -> dict:
    return {
        "id": prop.id,
        "title": prop.title,
        "address": prop.address,
        "town": prop.town,
        "rent": prop.rent,
        "status": prop.status.value if prop.status else None,
    }


def list_landlord_agents(db: Session, landlord: Landlord) -> list[dict]:
    """Agents working a landlord's properties plus agents linked through its invitations."""
    properties = db.query(Property).filter(Property.landlord_id == landlord.id).all()
    by_agent: dict[str, list[Property]] = {}
    for prop in properties:
        if prop.agent_id:
            by_agent.setdefault(prop.agent_id, []).append(prop)

    invited_ids = {
        row.agent_id
        for row in db.query(AgentInvitation.agent_id)
        .filter(AgentInvitation.landlord_id == landlord.id, AgentInvitation.agent_id.isnot(None))
        .all()
    }
    agent_ids = set(by_agent) | invited_ids
    if not agent_ids:
        return []

    agents = db.query(Agent).filter(Agent.id.in_(agent_ids)).order_by(Agent.joined_at.desc()).all()
    result = []
    for agent in agents:
        assigned = by_agent.get(agent.id, [])
        user = agent.user
        result.append(
            {
                **agent_to_dict(agent),
                "user": user_to_dict(user),
                "assignedProperties": [_property_summary(p) for p in assigned],
                "pendingCommission": _commission(assigned, agent.commission_rate),
                "isApproved": bool(agent.active) and user is not None and user.status == UserStatus.ACTIVE,
            }
        )
    return result


def list_available_agents(db: Session) -> list[dict]:
    """Agents a landlord can assign right now: active profile and active user."""
    agents = (
        db.query(Agent)
        .join(User, User.id == Agent.user_id)
        .filter(Agent.active.is_(True), User.status == UserStatus.ACTIVE)
        .order_by(Agent.joined_at.desc())
        .all()
    )
    return [{**agent_to_dict(a), "user": user_to_dict(a.user)} for a in agents]


def list_all_agents(db: Session) -> dict:
    agents = db.query(Agent).order_by(Agent.joined_at.desc()).all()
    return {"agents": [{**agent_to_dict(a), "user": user_to_dict(a.user)} for a in agents]}


def pay_commission(
    db: Session,
    landlord: Landlord,
    current_user: User,
    agent_id: str | None,
    amount: float | None,
    description: str | None = None,
) -> dict:
    if not agent_id or amount is None or amount <= 0:
        raise HTTPException(status_code=400, detail="Agent ID and valid amount are required")

    assigned = (
        db.query(Property.id)
        .filter(Property.landlord_id == landlord.id, Property.agent_id == agent_id)
        .first()
    )
    agent = db.query(Agent).filter(Agent.id == agent_id).first()
    if not assigned or not agent:
        raise HTTPException(status_code=404, detail="Agent is not assigned to any of your properties")

    try:
        payment = Payment(
            landlord_id=landlord.id,
            agent_id=agent.id,
            amount=float(amount),
            type=PAYMENT_TYPE_COMMISSION,
            status=PAYMENT_STATUS_COMPLETED,
            method=PAYMENT_METHOD_BANK_TRANSFER,
            description=description or "Commission payment",
        )
        db.add(payment)
        agent.total_earnings = (agent.total_earnings or 0.0) + float(amount)
        db.flush()
        create_log(
            db,
            ACTION_COMMISSION_PAID,
            user_id=current_user.id,
            entity_type=ENTITY_AGENT,
            entity_id=agent.id,
            details={"paymentId": payment.id, "amount": float(amount), "landlordId": landlord.id},
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        log.exception("Commission payment to agent %s failed", agent_id)
        raise HTTPException(status_code=500, detail="Failed to record payment")

    return {"message": "Commission paid successfully", "paymentId": payment.id, "amount": float(amount)}
