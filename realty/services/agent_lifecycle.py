"""Agent lifecycle: approval, property assignment, suspension and unsuspension,
plus the agent-facing status and suspension-detail queries.

Suspension is applied as a sequence of separately committed steps. Only the first
(flipping the user to SUSPENDED) is fatal; later steps that fail are rolled back on
their own and logged, and the caller still gets a success response.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Callable

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from realty.models.agent import Agent, AgentSuspension
from realty.models.base import utcnow
from realty.models.invitation import AgentInvitation, InvitationStatus
from realty.models.landlord import Landlord, Property
from realty.models.user import User, UserStatus
from realty.services.accounts import agent_to_dict, user_to_dict
from realty.services.audit_log import (
    create_log,
    latest_log,
    parse_details,
    ACTION_AGENT_ACCOUNT_APPROVED,
    ACTION_AGENT_ASSIGNED,
    ACTION_AGENT_SUSPENDED,
    ACTION_AGENT_UNSUSPENDED,
    ENTITY_AGENT,
)

log = logging.getLogger("uvicorn.error")

STATUS_APPROVED = "APPROVED"
STATUS_SUSPENDED = "SUSPENDED"
STATUS_PENDING_APPROVAL = "PENDING_APPROVAL"

DEFAULT_SUSPENSION_REASON = "Account suspended"
MAX_SUSPENSION_DAYS = 3650

SUSPENSION_REASON_LABELS = {
    "TERMINATING_CONTRACT": "Terminating Contract",
    "POOR_PERFORMANCE": "Poor Performance",
    "VIOLATION_OF_TERMS": "Violation of Terms",
    "BREACH_OF_CONTRACT": "Breach of Contract",
    "MUTUAL_AGREEMENT": "Mutual Agreement",
    "OTHER": "Other",
}


def format_suspension_reason(reason: str | None) -> str:
    """Human-readable label for a reason code; custom reasons are returned as written."""
    if not reason:
        return DEFAULT_SUSPENSION_REASON
    return SUSPENSION_REASON_LABELS.get(reason, reason)


def _get_agent_and_user(db: Session, agent_id: str | None) -> tuple[Agent, User]:
    agent = db.query(Agent).filter(Agent.id == agent_id).first() if agent_id else None
    if not agent:
        raise HTTPException(status_code=404, detail="Agent not found")
    user = db.query(User).filter(User.id == agent.user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="Agent not found")
    return agent, user


def _run_step(db: Session, label: str, agent_id: str, step: Callable[..., Any], *args) -> bool:
    """Apply and commit one non-fatal step. On failure roll it back, log it, and carry on."""
    try:
        step(db, *args)
        db.commit()
        return True
    except SQLAlchemyError:
        db.rollback()
        log.exception("Agent %s: step '%s' failed; continuing", agent_id, label)
        return False


# --- Approval ---------------------------------------------------------------


def approve_agent(db: Session, current_user: User, agent_id: str | None, invitation_id: str | None = None) -> dict:
    """Activate the agent and its user. Repeatable; every call appends an audit entry."""
    if not agent_id:
        raise HTTPException(status_code=400, detail="Agent ID is required")
    agent, user = _get_agent_and_user(db, agent_id)

    try:
        agent.active = True
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        log.exception("Agent %s: activation failed", agent_id)
        raise HTTPException(status_code=500, detail="Failed to approve agent")

    _run_step(db, "activate user", agent_id, _set_user_status, user, UserStatus.ACTIVE)
    _run_step(db, "record approval", agent_id, _record_approval, agent, current_user, invitation_id)

    return {"message": "Agent account approved successfully", "agentId": agent_id}


def _set_user_status(db: Session, user: User, status: UserStatus) -> None:
    user.status = status
    db.flush()


def _record_approval(db: Session, agent: Agent, current_user: User, invitation_id: str | None) -> None:
    now = utcnow()
    query = db.query(AgentInvitation)
    if invitation_id:
        invitations = query.filter(AgentInvitation.id == invitation_id).all()
    else:
        invitations = query.filter(
            AgentInvitation.agent_id == agent.id,
            AgentInvitation.status.in_([InvitationStatus.PENDING.value, InvitationStatus.PENDING_APPROVAL.value]),
        ).all()
    for invitation in invitations:
        invitation.status = InvitationStatus.APPROVED.value
        invitation.approved_at = now
        invitation.approved_by_user_id = current_user.id
        if not invitation.agent_id:
            invitation.agent_id = agent.id
    create_log(
        db,
        ACTION_AGENT_ACCOUNT_APPROVED,
        user_id=current_user.id,
        entity_type=ENTITY_AGENT,
        entity_id=agent.id,
        details={
            "status": InvitationStatus.APPROVED,
            "approvedAt": now,
            "approvedBy": current_user.id,
            "agentUserId": agent.user_id,
            "invitationIds": [inv.id for inv in invitations],
        },
    )


# --- Assignment -------------------------------------------------------------


def assign_agent(
    db: Session,
    landlord: Landlord,
    current_user: User,
    agent_id: str | None,
    property_id: str | None,
    commission_rate: float | None = None,
) -> dict:
    if not agent_id or not property_id:
        raise HTTPException(status_code=400, detail="Agent ID and Property ID are required")

    prop = (
        db.query(Property)
        .filter(Property.id == property_id, Property.landlord_id == landlord.id)
        .first()
    )
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found or does not belong to you")

    agent = db.query(Agent).filter(Agent.id == agent_id).first()
    if not agent:
        raise HTTPException(status_code=404, detail="Agent not found")
    if not agent.active:
        raise HTTPException(status_code=400, detail="Agent is not active")

    try:
        prop.agent_id = agent.id
        if commission_rate is not None:
            agent.commission_rate = float(commission_rate)
        create_log(
            db,
            ACTION_AGENT_ASSIGNED,
            user_id=current_user.id,
            entity_type=ENTITY_AGENT,
            entity_id=agent.id,
            details={"propertyId": prop.id, "landlordId": landlord.id, "commissionRate": commission_rate},
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        log.exception("Assigning agent %s to property %s failed", agent_id, property_id)
        raise HTTPException(status_code=500, detail="Failed to assign agent")

    return {"message": "Agent assigned successfully", "agentId": agent.id, "propertyId": prop.id}


# --- Suspension -------------------------------------------------------------


def suspend_agent(
    db: Session,
    current_user: User,
    agent_id: str | None,
    reason: str | None,
    suspension_days: int | None,
    notes: str | None = None,
) -> dict:
    reason = (reason or "").strip()
    if not agent_id or not reason:
        raise HTTPException(status_code=400, detail="Agent ID and reason are required")
    if not suspension_days or suspension_days < 1:
        raise HTTPException(
            status_code=400,
            detail="Suspension duration (days) is required and must be at least 1 day",
        )
    if suspension_days > MAX_SUSPENSION_DAYS:
        raise HTTPException(
            status_code=400,
            detail=f"Suspension duration cannot exceed {MAX_SUSPENSION_DAYS} days",
        )
    agent, user = _get_agent_and_user(db, agent_id)

    property_ids = [row.id for row in db.query(Property.id).filter(Property.agent_id == agent.id).all()]
    start = utcnow()
    end = start + timedelta(days=suspension_days)

    try:
        user.status = UserStatus.SUSPENDED
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        log.exception("Agent %s: suspending user failed", agent_id)
        raise HTTPException(status_code=500, detail="Failed to suspend agent")

    _run_step(db, "deactivate agent", agent_id, _deactivate_agent, agent)
    _run_step(db, "unassign properties", agent_id, _unassign_properties, agent_id)
    _run_step(
        db,
        "record suspension",
        agent_id,
        _record_suspension,
        agent,
        current_user,
        {
            "reason": reason,
            "suspension_days": suspension_days,
            "notes": notes or "",
            "start_date": start,
            "end_date": end,
            "properties_removed": property_ids,
        },
    )

    return {
        "message": "Agent suspended successfully",
        "agentId": agent_id,
        "suspensionDays": suspension_days,
        "suspensionEndDate": end,
        "propertiesRemoved": len(property_ids),
    }


def _deactivate_agent(db: Session, agent: Agent) -> None:
    agent.active = False
    db.flush()


def _unassign_properties(db: Session, agent_id: str) -> None:
    db.query(Property).filter(Property.agent_id == agent_id).update(
        {Property.agent_id: None, Property.updated_at: utcnow()},
        synchronize_session=False,
    )


def _record_suspension(db: Session, agent: Agent, current_user: User, fields: dict) -> None:
    suspension = AgentSuspension(agent_id=agent.id, suspended_by_user_id=current_user.id, **fields)
    db.add(suspension)
    db.flush()
    agent.current_suspension_id = suspension.id
    create_log(
        db,
        ACTION_AGENT_SUSPENDED,
        user_id=current_user.id,
        entity_type=ENTITY_AGENT,
        entity_id=agent.id,
        details={
            "suspensionId": suspension.id,
            "reason": fields["reason"],
            "suspensionDays": fields["suspension_days"],
            "suspensionStartDate": fields["start_date"],
            "suspensionEndDate": fields["end_date"],
            "notes": fields["notes"],
            "propertiesRemoved": fields["properties_removed"],
            "agentUserId": agent.user_id,
        },
    )


def unsuspend_agent(db: Session, current_user: User, agent_id: str | None) -> dict:
    """Lift the suspension. Properties cleared by the suspension stay unassigned."""
    if not agent_id:
        raise HTTPException(status_code=400, detail="Agent ID is required")
    agent, user = _get_agent_and_user(db, agent_id)
    if user.status != UserStatus.SUSPENDED:
        raise HTTPException(status_code=400, detail="Agent is not suspended")

    try:
        user.status = UserStatus.ACTIVE
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        log.exception("Agent %s: unsuspending user failed", agent_id)
        raise HTTPException(status_code=500, detail="Failed to unsuspend agent")

    _run_step(db, "reactivate agent", agent_id, _reactivate_agent, agent)
    _run_step(db, "record unsuspension", agent_id, _record_unsuspension, agent, current_user)

    return {"message": "Agent unsuspended successfully", "agentId": agent_id}


def _reactivate_agent(db: Session, agent: Agent) -> None:
    agent.active = True
    db.flush()


def _record_unsuspension(db: Session, agent: Agent, current_user: User) -> None:
    now = utcnow()
    suspension_id = agent.current_suspension_id
    if suspension_id:
        suspension = db.query(AgentSuspension).filter(AgentSuspension.id == suspension_id).first()
        if suspension:
            suspension.lifted_at = now
            suspension.lifted_by_user_id = current_user.id
        agent.current_suspension_id = None
    create_log(
        db,
        ACTION_AGENT_UNSUSPENDED,
        user_id=current_user.id,
        entity_type=ENTITY_AGENT,
        entity_id=agent.id,
        details={"agentUserId": agent.user_id, "suspensionId": suspension_id, "unsuspendedAt": now},
    )


# --- Agent-facing queries ---------------------------------------------------


def agent_status(agent: Agent, user: User) -> dict:
    suspended = user.status == UserStatus.SUSPENDED
    approved = bool(agent.active) and user.status == UserStatus.ACTIVE
    if suspended:
        status = STATUS_SUSPENDED
    elif approved:
        status = STATUS_APPROVED
    else:
        status = STATUS_PENDING_APPROVAL
    return {
        "agent": agent_to_dict(agent),
        "user": user_to_dict(user),
        # Suspended agents keep read-only dashboard access
        "approved": approved or suspended,
        "suspended": suspended,
        "status": status,
    }


def suspension_details(db: Session, agent: Agent, user: User) -> dict:
    """Details of the current suspension. Uses the suspension record when the agent points
    at one, else the newest AGENT_SUSPENDED audit entry for the agent."""
    if user.status != UserStatus.SUSPENDED:
        return {"suspended": False}

    suspension = None
    if agent.current_suspension_id:
        suspension = db.query(AgentSuspension).filter(AgentSuspension.id == agent.current_suspension_id).first()
    if suspension:
        return {
            "suspended": True,
            "reason": suspension.reason or DEFAULT_SUSPENSION_REASON,
            "reasonLabel": format_suspension_reason(suspension.reason),
            "suspensionDays": suspension.suspension_days,
            "suspensionStartDate": suspension.start_date,
            "suspensionEndDate": suspension.end_date,
            "notes": suspension.notes or "",
            "createdAt": suspension.created_at,
        }

    entry = latest_log(db, ACTION_AGENT_SUSPENDED, agent.id)
    if not entry:
        return {
            "suspended": True,
            "reason": DEFAULT_SUSPENSION_REASON,
            "reasonLabel": DEFAULT_SUSPENSION_REASON,
            "suspensionEndDate": None,
        }

    details = parse_details(entry)
    if isinstance(details, dict):
        reason = details.get("reason") or DEFAULT_SUSPENSION_REASON
    else:
        # Legacy rows whose details are just the reason text
        reason = details if isinstance(details, str) and details else DEFAULT_SUSPENSION_REASON
        details = {}
    reason = reason if isinstance(reason, str) else str(reason)
    return {
        "suspended": True,
        "reason": reason,
        "reasonLabel": format_suspension_reason(reason),
        "suspensionDays": details.get("suspensionDays") or None,
        "suspensionStartDate": details.get("suspensionStartDate") or entry.created_at,
        "suspensionEndDate": details.get("suspensionEndDate") or None,
        "notes": details.get("notes") or "",
        "createdAt": entry.created_at,
    }
