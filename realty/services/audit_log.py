"""Append-only audit log service. Never update or delete - immutable audit trail."""
from __future__ import annotations

import enum
import json
import logging
from datetime import date, datetime
from typing import Any

from sqlalchemy.orm import Session

from realty.models.audit_log import AuditLog

log = logging.getLogger("uvicorn.error")

ACTION_AGENT_INVITATION_SENT = "AGENT_INVITATION_SENT"
ACTION_AGENT_ACCOUNT_CREATED = "AGENT_ACCOUNT_CREATED"
ACTION_AGENT_ACCOUNT_APPROVED = "AGENT_ACCOUNT_APPROVED"
ACTION_AGENT_INVITATION_APPROVED = "AGENT_INVITATION_APPROVED"
ACTION_AGENT_ASSIGNED = "AGENT_ASSIGNED"
ACTION_AGENT_SUSPENDED = "AGENT_SUSPENDED"
ACTION_AGENT_UNSUSPENDED = "AGENT_UNSUSPENDED"
ACTION_COMMISSION_PAID = "COMMISSION_PAID"
ACTION_ACCOUNT_CREATED = "ACCOUNT_CREATED"
ACTION_PASSWORD_RESET_REQUESTED = "PASSWORD_RESET_REQUESTED"
ACTION_PASSWORD_RESET_COMPLETED = "PASSWORD_RESET_COMPLETED"

ENTITY_AGENT = "AGENT"
ENTITY_USER = "USER"
ENTITY_INVITATION = "AGENT_INVITATION"

# Column limits (match model)
_ACTION_LEN = 64
_ENTITY_TYPE_LEN = 32
_ENTITY_ID_LEN = 64


def _sanitize_value(v: Any) -> Any:
    """Convert to JSON-serializable value so details never raise on INSERT."""
    if v is None:
        return None
    if isinstance(v, (str, int, float, bool)):
        return v
    if isinstance(v, (datetime, date)):
        return v.isoformat()
    if isinstance(v, enum.Enum):
        return getattr(v, "value", str(v))
    if isinstance(v, dict):
        return {str(k): _sanitize_value(x) for k, x in v.items()}
    if isinstance(v, (list, tuple, set)):
        return [_sanitize_value(x) for x in v]
    return str(v)


def _sanitize_details(details: dict[str, Any] | None) -> dict[str, Any] | None:
    if details is None:
        return None
    return {str(k): _sanitize_value(v) for k, v in details.items()}


def create_log(
    db: Session,
    action: str,
    *,
    user_id: str | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> AuditLog:
    """Append one immutable audit log record. Timestamps are UTC.
    The entry is flushed, not committed; commit remains with the caller."""
    entry = AuditLog(
        action=(action or "")[:_ACTION_LEN].strip(),
        user_id=user_id,
        entity_type=(entity_type[:_ENTITY_TYPE_LEN] if entity_type else None),
        entity_id=(str(entity_id)[:_ENTITY_ID_LEN] if entity_id is not None else None),
        details=_sanitize_details(details),
    )
    db.add(entry)
    db.flush()
    return entry


def latest_log(db: Session, action: str, entity_id: str) -> AuditLog | None:
    """Most recent entry for (entity_id, action). Ties on created_at are broken by insertion order."""
    return (
        db.query(AuditLog)
        .filter(AuditLog.action == action, AuditLog.entity_id == str(entity_id))
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .first()
    )


def parse_details(entry: AuditLog | None) -> dict[str, Any] | str | None:
    """Details as a dict. Rows written as a serialized JSON string are decoded;
    a string that is not JSON is returned unchanged."""
    if entry is None or entry.details is None:
        return None
    raw = entry.details
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except ValueError:
            log.warning("Audit log %s has unparseable details; using raw text", entry.id)
            return raw
        return decoded
    return raw
