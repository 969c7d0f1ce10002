"""Forgot / reset password with single-use, hashed, short-lived tokens."""
from __future__ import annotations

import logging
from datetime import timedelta

from fastapi import HTTPException
from sqlalchemy.orm import Session

from realty.config import get_settings
from realty.models.base import as_utc, utcnow
from realty.models.password_reset import PasswordReset
from realty.models.user import User
from realty.services.accounts import find_user_by_email
from realty.services.audit_log import (
    create_log,
    ACTION_PASSWORD_RESET_COMPLETED,
    ACTION_PASSWORD_RESET_REQUESTED,
    ENTITY_USER,
)
from realty.services.auth import generate_token, get_password_hash, hash_token, password_strength_error
from realty.services.notifications import send_password_reset_email

log = logging.getLogger("uvicorn.error")

# Same answer whether or not the email exists
FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a password reset link has been sent."
INVALID_RESET_TOKEN_MESSAGE = "Invalid or expired reset token"


def request_password_reset(db: Session, email: str | None) -> dict:
    if not (email or "").strip():
        raise HTTPException(status_code=400, detail="Email is required")
    user = find_user_by_email(db, email)
    response: dict = {"message": FORGOT_PASSWORD_MESSAGE}
    if not user:
        return response

    settings = get_settings()
    token = generate_token()
    db.add(
        PasswordReset(
            user_id=user.id,
            token=hash_token(token),
            expires_at=utcnow() + timedelta(hours=settings.password_reset_expire_hours),
        )
    )
    create_log(
        db,
        ACTION_PASSWORD_RESET_REQUESTED,
        user_id=user.id,
        entity_type=ENTITY_USER,
        entity_id=user.id,
        details={"email": user.email},
    )
    db.commit()

    link = f"{settings.app_url.rstrip('/')}/auth/reset-password?token={token}"
    if not send_password_reset_email(user.email, user.first_name, link):
        log.warning("Password reset email not sent to %s", user.email)
    if not settings.is_production:
        response["resetLink"] = link
    return response


def _find_reset(db: Session, token: str | None) -> tuple[PasswordReset, User]:
    if not (token or "").strip():
        raise HTTPException(status_code=400, detail="Token is required")
    reset = (
        db.query(PasswordReset)
        .filter(PasswordReset.token == hash_token(token.strip()), PasswordReset.used.is_(False))
        .first()
    )
    if not reset or as_utc(reset.expires_at) < utcnow():
        raise HTTPException(status_code=400, detail=INVALID_RESET_TOKEN_MESSAGE)
    user = db.query(User).filter(User.id == reset.user_id).first()
    if not user:
        raise HTTPException(status_code=400, detail=INVALID_RESET_TOKEN_MESSAGE)
    return reset, user


def verify_reset_token(db: Session, token: str | None) -> dict:
    _, user = _find_reset(db, token)
    return {"valid": True, "email": user.email}


def reset_password(db: Session, token: str | None, password: str | None) -> dict:
    if not (token or "").strip() or not password:
        raise HTTPException(status_code=400, detail="Token and password are required")
    error = password_strength_error(password)
    if error:
        raise HTTPException(status_code=400, detail=error)
    reset, user = _find_reset(db, token)

    user.hashed_password = get_password_hash(password)
    reset.used = True
    create_log(
        db,
        ACTION_PASSWORD_RESET_COMPLETED,
        user_id=user.id,
        entity_type=ENTITY_USER,
        entity_id=user.id,
        details={"email": user.email},
    )
    db.commit()
    return {"message": "Password has been reset successfully"}
