"""Landlord-side agent management: invitations, approval, assignment, suspension, commissions."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from realty.database import get_db
from realty.dependencies import get_current_landlord, get_current_user
from realty.models.landlord import Landlord
from realty.models.user import User
from realty.schemas.agents import (
    AgentInviteRequest,
    ApproveAgentRequest,
    ApproveInvitationRequest,
    AssignAgentRequest,
    PayCommissionRequest,
    SuspendAgentRequest,
    UnsuspendAgentRequest,
)
from realty.services import agent_lifecycle, commissions, invitations

router = APIRouter(prefix="/landlord/agents", tags=["landlord-agents"])

# Approve, remove and unsuspend act on any agent by id; the landlord dependency only
# restricts them to landlord callers. Ownership is checked where a property is involved.


@router.get("")
def list_agents(db: Session = Depends(get_db), landlord: Landlord = Depends(get_current_landlord)):
    return commissions.list_landlord_agents(db, landlord)


@router.get("/available")
def available_agents(db: Session = Depends(get_db), landlord: Landlord = Depends(get_current_landlord)):
    return commissions.list_available_agents(db)


@router.get("/invitations")
def list_invitations(db: Session = Depends(get_db), landlord: Landlord = Depends(get_current_landlord)):
    return invitations.list_invitations(db, landlord)


@router.post("/invite", status_code=201)
def invite_agent(
    data: AgentInviteRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    landlord: Landlord = Depends(get_current_landlord),
):
    return invitations.invite_agent_as_landlord(db, landlord, current_user, data)


@router.post("/create", status_code=201)
def create_agent(
    data: AgentInviteRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    landlord: Landlord = Depends(get_current_landlord),
):
    return invitations.create_agent_for_landlord(db, landlord, current_user, data)


@router.post("/invitations/approve")
def approve_invitation(
    data: ApproveInvitationRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    landlord: Landlord = Depends(get_current_landlord),
):
    return invitations.approve_invitation(db, landlord, current_user, data.invitation_id)


@router.post("/approve")
def approve_agent(
    data: ApproveAgentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    landlord: Landlord = Depends(get_current_landlord),
):
    return agent_lifecycle.approve_agent(db, current_user, data.agent_id, data.invitation_id)


@router.post("/assign")
def assign_agent(
    data: AssignAgentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    landlord: Landlord = Depends(get_current_landlord),
):
    return agent_lifecycle.assign_agent(
        db, landlord, current_user, data.agent_id, data.property_id, data.commission_rate
    )


@router.post("/remove")
def suspend_agent(
    data: SuspendAgentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    landlord: Landlord = Depends(get_current_landlord),
):
    return agent_lifecycle.suspend_agent(
        db, current_user, data.agent_id, data.reason, data.suspension_days, data.notes
    )


@router.post("/unsuspend")
def unsuspend_agent(
    data: UnsuspendAgentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    landlord: Landlord = Depends(get_current_landlord),
):
    return agent_lifecycle.unsuspend_agent(db, current_user, data.agent_id)


@router.post("/pay-commission")
def pay_commission(
    data: PayCommissionRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    landlord: Landlord = Depends(get_current_landlord),
):
    return commissions.pay_commission(db, landlord, current_user, data.agent_id, data.amount, data.description)
