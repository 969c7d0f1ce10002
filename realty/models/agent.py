"""Agent role profile and its suspension records."""
from sqlalchemy import Column, Integer, String, Boolean, Float, ForeignKey, DateTime, Text
from sqlalchemy.orm import relationship
from realty.database import Base, JSONType
from realty.models.base import new_id, utcnow


class Agent(Base):
    __tablename__ = "agents"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False)

    # active together with User.status == ACTIVE means "approved"
    active = Column(Boolean, nullable=False, default=False)
    commission_rate = Column(Float, nullable=True)  # percent of monthly rent
    total_earnings = Column(Float, nullable=False, default=0.0)

    # Current suspension, if any. Older suspensions stay in agent_suspensions and the audit log.
    current_suspension_id = Column(
        String(36),
        ForeignKey("agent_suspensions.id", use_alter=True, name="fk_agents_current_suspension"),
        nullable=True,
    )

    joined_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user = relationship("User", backref="agent_profile")


class AgentSuspension(Base):
    __tablename__ = "agent_suspensions"

    id = Column(String(36), primary_key=True, default=new_id)
    agent_id = Column(String(36), ForeignKey("agents.id"), nullable=False, index=True)
    suspended_by_user_id = Column(String(36), ForeignKey("users.id"), nullable=True)

    # Either a reason code (POOR_PERFORMANCE, ...) or free text written by the landlord
    reason = Column(Text, nullable=False)
    suspension_days = Column(Integer, nullable=False)
    notes = Column(Text, nullable=False, default="")
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    properties_removed = Column(JSONType, nullable=True)

    lifted_at = Column(DateTime(timezone=True), nullable=True)
    lifted_by_user_id = Column(String(36), ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
