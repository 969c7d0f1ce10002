"""Account creation: a User row and its role profile, written together."""
from __future__ import annotations

import logging

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from realty.models.agent import Agent
from realty.models.landlord import Landlord
from realty.models.tenant import Tenant
from realty.models.user import User, UserRole, UserStatus, normalize_email
from realty.services.auth import get_password_hash

log = logging.getLogger("uvicorn.error")

EMAIL_TAKEN_MESSAGE = "User with this email already exists"


def find_user_by_email(db: Session, email: str | None) -> User | None:
    normalized = normalize_email(email)
    if not normalized:
        return None
    return db.query(User).filter(User.email == normalized).first()


def ensure_email_available(db: Session, email: str, message: str = EMAIL_TAKEN_MESSAGE) -> None:
    """Pre-insert uniqueness check. Two concurrent requests can both pass it; the unique
    index then rejects the second insert and create_account reports the same error."""
    if find_user_by_email(db, email):
        raise HTTPException(status_code=400, detail=message)


def create_account(
    db: Session,
    *,
    email: str,
    password: str,
    role: UserRole,
    first_name: str = "",
    last_name: str = "",
    phone: str = "",
    profile: Agent | Landlord | Tenant | None = None,
    taken_message: str = EMAIL_TAKEN_MESSAGE,
) -> tuple[User, Agent | Landlord | Tenant | None]:
    """Insert User + role profile in one transaction and commit.

    The profile (if given) gets its user_id set here. Any failure rolls back both rows.
    Duplicate email -> 400; other store failures -> 500.
    """
    user = User(
        email=normalize_email(email),
        hashed_password=get_password_hash(password),
        role=role,
        status=UserStatus.ACTIVE,
        first_name=(first_name or "").strip(),
        last_name=(last_name or "").strip(),
        phone=(phone or "").strip(),
    )
    try:
        db.add(user)
        db.flush()
        if profile is not None:
            profile.user_id = user.id
            db.add(profile)
            db.flush()
        db.commit()
    except IntegrityError as e:
        db.rollback()
        msg = str(getattr(e, "orig", e)).lower()
        if "email" in msg or "unique" in msg:
            raise HTTPException(status_code=400, detail=taken_message)
        log.exception("Account insert failed for role=%s", role.value)
        raise HTTPException(status_code=500, detail="Failed to create account")
    except SQLAlchemyError:
        db.rollback()
        log.exception("Account insert failed for role=%s", role.value)
        raise HTTPException(status_code=500, detail="Failed to create account")
    db.refresh(user)
    if profile is not None:
        db.refresh(profile)
    return user, profile


def user_to_dict(user: User | None) -> dict | None:
    """Public view of a user; never includes the password hash."""
    if user is None:
        return None
    return {
        "id": user.id,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "phone": user.phone,
        "role": user.role.value,
        "status": user.status.value,
        "createdAt": user.created_at,
        "updatedAt": user.updated_at,
    }


def agent_to_dict(agent: Agent) -> dict:
    return {
        "id": agent.id,
        "userId": agent.user_id,
        "active": bool(agent.active),
        "commissionRate": agent.commission_rate,
        "totalEarnings": agent.total_earnings or 0.0,
        "currentSuspensionId": agent.current_suspension_id,
        "joinedAt": agent.joined_at,
        "updatedAt": agent.updated_at,
    }
