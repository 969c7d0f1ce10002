"""Append-only audit log. No updates or deletes - every record is permanent."""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from realty.database import Base, JSONType
from realty.models.base import utcnow


class AuditLog(Base):
    __tablename__ = "audit_logs"

    # Integer sequence so entries written in the same instant still have a total order
    id = Column(Integer, primary_key=True, autoincrement=True)

    # Who did it (if applicable)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # e.g. AGENT_SUSPENDED, AGENT_ACCOUNT_APPROVED
    action = Column(String(64), nullable=False, index=True)
    entity_type = Column(String(32), nullable=True)
    entity_id = Column(String(64), nullable=True, index=True)

    # Structured payload (reason, dates, property ids ...). Older rows may hold a JSON string.
    details = Column(JSONType, nullable=True)

    # UTC, set by the application (microsecond precision on every backend)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
