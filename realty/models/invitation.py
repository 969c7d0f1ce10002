"""Invitation from a landlord (or admin) to a prospective agent."""
import enum

from sqlalchemy import Column, String, ForeignKey, DateTime
from realty.database import Base
from realty.models.base import new_id, utcnow


class InvitationStatus(str, enum.Enum):
    PENDING = "PENDING"                    # link sent, no account yet
    PENDING_APPROVAL = "PENDING_APPROVAL"  # agent registered through the link
    APPROVED = "APPROVED"                  # landlord approved the registered agent
    ACCEPTED = "ACCEPTED"                  # account created directly with a temporary password


# Derived at read time (PENDING past expires_at); never stored
INVITATION_EXPIRED = "EXPIRED"


class AgentInvitation(Base):
    __tablename__ = "agent_invitations"

    id = Column(String(36), primary_key=True, default=new_id)
    invited_by_user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    landlord_id = Column(String(36), ForeignKey("landlords.id"), nullable=True, index=True)  # null for admin invites

    email = Column(String(255), nullable=False, index=True)
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    phone = Column(String(50), nullable=False, default="")

    # SHA-256 of the token in the invitation link
    token_hash = Column(String(64), unique=True, nullable=False, index=True)
    status = Column(String(20), nullable=False, default=InvitationStatus.PENDING.value)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    agent_id = Column(String(36), ForeignKey("agents.id"), nullable=True)
    account_created_at = Column(DateTime(timezone=True), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    approved_by_user_id = Column(String(36), ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
