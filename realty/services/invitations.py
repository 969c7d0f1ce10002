"""Agent invitations: issuing links, registering through them, and direct account creation."""
from __future__ import annotations

import logging
from datetime import timedelta
from urllib.parse import quote

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from realty.config import get_settings
from realty.models.agent import Agent
from realty.models.base import as_utc, utcnow
from realty.models.invitation import AgentInvitation, InvitationStatus, INVITATION_EXPIRED
from realty.models.landlord import Landlord
from realty.models.tenant import Tenant
from realty.models.user import User, UserRole, normalize_email
from realty.schemas.agents import AgentInviteRequest, TenantCreateRequest
from realty.schemas.auth import AgentRegisterRequest
from realty.services.accounts import create_account, ensure_email_available, find_user_by_email
from realty.services.audit_log import (
    create_log,
    ACTION_ACCOUNT_CREATED,
    ACTION_AGENT_ACCOUNT_CREATED,
    ACTION_AGENT_INVITATION_APPROVED,
    ACTION_AGENT_INVITATION_SENT,
    ENTITY_AGENT,
    ENTITY_INVITATION,
    ENTITY_USER,
)
from realty.services.auth import generate_temp_password, generate_token, hash_token, password_strength_error
from realty.services.notifications import send_account_credentials_email, send_agent_invitation_email

log = logging.getLogger("uvicorn.error")

INVALID_INVITATION_MESSAGE = "Invalid or expired invitation token"


def _registration_link(token: str, email: str) -> str:
    base = get_settings().app_url.rstrip("/")
    return f"{base}/auth/register/agent?token={token}&email={quote(email)}"


def _login_link() -> str:
    return f"{get_settings().app_url.rstrip('/')}/auth/login"


def _new_invitation(
    *,
    invited_by: User,
    landlord: Landlord | None,
    data: AgentInviteRequest,
    token: str,
    status: InvitationStatus,
) -> AgentInvitation:
    return AgentInvitation(
        invited_by_user_id=invited_by.id,
        landlord_id=landlord.id if landlord else None,
        email=normalize_email(data.email),
        first_name=(data.first_name or "").strip(),
        last_name=(data.last_name or "").strip(),
        phone=data.phone or "",
        token_hash=hash_token(token),
        status=status.value,
        expires_at=utcnow() + timedelta(days=get_settings().invitation_expire_days),
    )


def invitation_status(invitation: AgentInvitation) -> str:
    """Stored status, or EXPIRED for a pending invitation past its expiry."""
    if invitation.status == InvitationStatus.PENDING.value and as_utc(invitation.expires_at) < utcnow():
        return INVITATION_EXPIRED
    return invitation.status


def invite_agent_as_admin(db: Session, admin: User, data: AgentInviteRequest) -> dict:
    """Create an active agent account with a temporary password and send the invitation."""
    email = normalize_email(data.email)
    ensure_email_available(db, email)

    token = generate_token()
    temp_password = generate_temp_password()
    user, agent = create_account(
        db,
        email=email,
        password=temp_password,
        role=UserRole.AGENT,
        first_name=data.first_name,
        last_name=data.last_name,
        phone=data.phone,
        profile=Agent(active=True),
    )

    invitation = _new_invitation(invited_by=admin, landlord=None, data=data, token=token, status=InvitationStatus.ACCEPTED)
    invitation.agent_id = agent.id
    invitation.account_created_at = utcnow()
    db.add(invitation)
    db.flush()
    create_log(
        db,
        ACTION_AGENT_INVITATION_SENT,
        user_id=admin.id,
        entity_type=ENTITY_INVITATION,
        entity_id=invitation.id,
        details={
            "email": email,
            "firstName": invitation.first_name,
            "lastName": invitation.last_name,
            "status": invitation.status,
            "expiresAt": invitation.expires_at,
            "agentId": agent.id,
            "agentUserId": user.id,
        },
    )
    db.commit()

    link = f"{get_settings().app_url.rstrip('/')}/auth/invite/agent?token={token}&email={quote(email)}"
    email_sent = send_agent_invitation_email(email, data.first_name, _login_link(), temp_password=temp_password)
    if not email_sent:
        log.warning("Agent invitation email not delivered to %s", email)

    response = {
        "message": "Agent invitation created successfully",
        "invitationLink": link,
        "email": email,
        "agentId": agent.id,
        "emailSent": email_sent,
    }
    if not get_settings().is_production:
        response["tempPassword"] = temp_password
    return response


def invite_agent_as_landlord(db: Session, landlord: Landlord, current_user: User, data: AgentInviteRequest) -> dict:
    """Store a pending invitation and email the registration link."""
    email = normalize_email(data.email)
    ensure_email_available(db, email)

    token = generate_token()
    invitation = _new_invitation(
        invited_by=current_user, landlord=landlord, data=data, token=token, status=InvitationStatus.PENDING
    )
    try:
        db.add(invitation)
        db.flush()
        create_log(
            db,
            ACTION_AGENT_INVITATION_SENT,
            user_id=current_user.id,
            entity_type=ENTITY_INVITATION,
            entity_id=invitation.id,
            details={
                "email": email,
                "firstName": invitation.first_name,
                "lastName": invitation.last_name,
                "status": invitation.status,
                "expiresAt": invitation.expires_at,
                "landlordId": landlord.id,
            },
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        log.exception("Failed to store invitation for %s", email)
        raise HTTPException(status_code=500, detail="Failed to create agent invitation")

    link = _registration_link(token, email)
    email_sent = send_agent_invitation_email(email, data.first_name, link)
    if not get_settings().is_production:
        log.info("Agent invitation for %s: %s (email sent=%s)", email, link, email_sent)

    response = {
        "message": "Invitation sent successfully",
        "invitationId": invitation.id,
        "emailSent": email_sent,
    }
    if not get_settings().is_production:
        response["invitationLink"] = link
    return response


def find_valid_invitation(
    db: Session,
    token: str | None,
    email: str | None = None,
    *,
    used_message: str = "This invitation has already been used",
) -> AgentInvitation:
    """Invitation for token (and email, when given) that is unexpired and has no account yet.
    Raises 400 otherwise."""
    token = (token or "").strip()
    if not token:
        raise HTTPException(status_code=400, detail="Token is required")
    invitation = db.query(AgentInvitation).filter(AgentInvitation.token_hash == hash_token(token)).first()
    if not invitation:
        raise HTTPException(status_code=400, detail=INVALID_INVITATION_MESSAGE)
    if email and normalize_email(email) != invitation.email:
        raise HTTPException(status_code=400, detail=INVALID_INVITATION_MESSAGE)
    if as_utc(invitation.expires_at) < utcnow():
        raise HTTPException(status_code=400, detail="Invitation token has expired")
    if find_user_by_email(db, invitation.email):
        raise HTTPException(status_code=400, detail=used_message)
    return invitation


def verify_invitation(db: Session, token: str | None, email: str | None) -> dict:
    invitation = find_valid_invitation(db, token, email)
    return {
        "valid": True,
        "message": "Invitation token is valid",
        "invitation": {
            "email": invitation.email,
            "firstName": invitation.first_name,
            "lastName": invitation.last_name,
            "phone": invitation.phone,
        },
    }


def register_agent(db: Session, data: AgentRegisterRequest) -> dict:
    """Create the agent account for an invitation link. The agent starts inactive
    (PENDING_APPROVAL) until the inviting landlord approves it."""
    invitation = find_valid_invitation(
        db, data.token, data.email, used_message="Account with this email already exists"
    )
    weak = password_strength_error(data.password)
    if weak:
        raise HTTPException(status_code=400, detail=weak)

    user, agent = create_account(
        db,
        email=invitation.email,
        password=data.password,
        role=UserRole.AGENT,
        first_name=data.first_name,
        last_name=data.last_name,
        phone=data.phone,
        profile=Agent(active=False),
        taken_message="Account with this email already exists",
    )

    invitation.status = InvitationStatus.PENDING_APPROVAL.value
    invitation.agent_id = agent.id
    invitation.account_created_at = utcnow()
    create_log(
        db,
        ACTION_AGENT_ACCOUNT_CREATED,
        user_id=user.id,
        entity_type=ENTITY_AGENT,
        entity_id=agent.id,
        details={
            "invitationId": invitation.id,
            "email": invitation.email,
            "status": invitation.status,
            "landlordId": invitation.landlord_id,
            "agentUserId": user.id,
            "accountCreatedAt": invitation.account_created_at,
        },
    )
    db.commit()

    return {
        "message": "Agent account created successfully",
        "agentId": agent.id,
        "email": user.email,
    }


def create_agent_for_landlord(db: Session, landlord: Landlord, current_user: User, data: AgentInviteRequest) -> dict:
    """Create an active agent account directly, without an invitation link."""
    email = normalize_email(data.email)
    ensure_email_available(db, email)
    temp_password = generate_temp_password()
    user, agent = create_account(
        db,
        email=email,
        password=temp_password,
        role=UserRole.AGENT,
        first_name=data.first_name,
        last_name=data.last_name,
        phone=data.phone,
        profile=Agent(active=True),
    )

    # Record the link to this landlord so the agent shows up in its agent list
    invitation = _new_invitation(
        invited_by=current_user, landlord=landlord, data=data, token=generate_token(), status=InvitationStatus.ACCEPTED
    )
    invitation.agent_id = agent.id
    invitation.account_created_at = utcnow()
    db.add(invitation)
    db.flush()
    create_log(
        db,
        ACTION_ACCOUNT_CREATED,
        user_id=current_user.id,
        entity_type=ENTITY_AGENT,
        entity_id=agent.id,
        details={"email": email, "landlordId": landlord.id, "agentUserId": user.id},
    )
    db.commit()

    email_sent = send_account_credentials_email(email, data.first_name, "Agent", temp_password, _login_link())
    response = {
        "message": "Agent account created successfully",
        "agentId": agent.id,
        "userId": user.id,
        "email": email,
        "emailSent": email_sent,
    }
    if not get_settings().is_production:
        response["tempPassword"] = temp_password
    return response


def approve_invitation(db: Session, landlord: Landlord, current_user: User, invitation_id: str | None) -> dict:
    """Create the account for a still-pending invitation with a temporary password."""
    if not invitation_id:
        raise HTTPException(status_code=400, detail="Invitation ID is required")
    invitation = (
        db.query(AgentInvitation)
        .filter(
            AgentInvitation.id == invitation_id,
            AgentInvitation.landlord_id == landlord.id,
            AgentInvitation.status == InvitationStatus.PENDING.value,
        )
        .first()
    )
    if not invitation:
        raise HTTPException(status_code=404, detail="Invitation not found")

    existing = find_user_by_email(db, invitation.email)
    if existing:
        existing_agent = db.query(Agent).filter(Agent.user_id == existing.id).first()
        return {
            "message": "Agent account already exists",
            "invitationId": invitation.id,
            "agentId": existing_agent.id if existing_agent else existing.id,
        }

    temp_password = generate_temp_password()
    user, agent = create_account(
        db,
        email=invitation.email,
        password=temp_password,
        role=UserRole.AGENT,
        first_name=invitation.first_name,
        last_name=invitation.last_name,
        phone=invitation.phone,
        profile=Agent(active=True),
    )

    now = utcnow()
    invitation.status = InvitationStatus.ACCEPTED.value
    invitation.agent_id = agent.id
    invitation.account_created_at = now
    invitation.approved_at = now
    invitation.approved_by_user_id = current_user.id
    create_log(
        db,
        ACTION_AGENT_INVITATION_APPROVED,
        user_id=current_user.id,
        entity_type=ENTITY_INVITATION,
        entity_id=invitation.id,
        details={"email": invitation.email, "status": invitation.status, "agentId": agent.id, "approvedAt": now},
    )
    db.commit()

    email_sent = send_account_credentials_email(
        invitation.email, invitation.first_name, "Agent", temp_password, _login_link()
    )
    response = {
        "message": "Invitation approved and agent account created successfully",
        "invitationId": invitation.id,
        "agentId": agent.id,
        "emailSent": email_sent,
    }
    if not get_settings().is_production:
        response["tempPassword"] = temp_password
    return response


def list_invitations(db: Session, landlord: Landlord) -> list[dict]:
    invitations = (
        db.query(AgentInvitation)
        .filter(AgentInvitation.landlord_id == landlord.id)
        .order_by(AgentInvitation.created_at.desc())
        .all()
    )
    return [
        {
            "id": inv.id,
            "email": inv.email,
            "firstName": inv.first_name,
            "lastName": inv.last_name,
            "phone": inv.phone,
            "status": invitation_status(inv),
            "createdAt": inv.created_at,
            "expiresAt": inv.expires_at,
            "agentId": inv.agent_id,
            "accountCreatedAt": inv.account_created_at,
            "approvedAt": inv.approved_at,
        }
        for inv in invitations
    ]


def create_tenant_account(db: Session, admin: User, data: TenantCreateRequest) -> dict:
    email = normalize_email(data.email)
    ensure_email_available(db, email)
    temp_password = generate_temp_password()
    user, tenant = create_account(
        db,
        email=email,
        password=temp_password,
        role=UserRole.TENANT,
        first_name=data.first_name,
        last_name=data.last_name,
        phone=data.phone,
        profile=Tenant(
            national_id=data.national_id,
            emergency_contact=data.emergency_contact,
            emergency_phone=data.emergency_phone,
        ),
    )
    create_log(
        db,
        ACTION_ACCOUNT_CREATED,
        user_id=admin.id,
        entity_type=ENTITY_USER,
        entity_id=user.id,
        details={"email": email, "role": UserRole.TENANT, "tenantId": tenant.id},
    )
    db.commit()

    email_sent = send_account_credentials_email(email, data.first_name, "Tenant", temp_password, _login_link())
    response = {
        "message": "Tenant account created successfully",
        "userId": user.id,
        "tenantId": tenant.id,
        "email": email,
        "emailSent": email_sent,
    }
    if not get_settings().is_production:
        response["tempPassword"] = temp_password
    return response
