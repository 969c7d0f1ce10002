"""Authentication: landlord sign-up, agent registration through invitations, login, password reset."""
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from realty.database import get_db
from realty.models.landlord import Landlord
from realty.models.user import UserRole, UserStatus, normalize_email
from realty.schemas.auth import (
    AgentRegisterRequest,
    EmailRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
)
from realty.services.accounts import create_account, ensure_email_available, find_user_by_email, user_to_dict
from realty.services.audit_log import create_log, ACTION_ACCOUNT_CREATED, ENTITY_USER
from realty.services.auth import create_access_token, password_strength_error, verify_password
from realty.services.invitations import register_agent, verify_invitation
from realty.services.password_reset import request_password_reset, reset_password, verify_reset_token

router = APIRouter(prefix="/auth", tags=["auth"])


def _invalid(e: HTTPException) -> JSONResponse:
    return JSONResponse(status_code=e.status_code, content={"valid": False, "error": e.detail})


@router.post("/register", status_code=201)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    """Self-registration is open to landlords only; other accounts are created by an admin or landlord."""
    if data.role != UserRole.LANDLORD:
        raise HTTPException(status_code=403, detail="Only landlords can self-register")
    weak = password_strength_error(data.password)
    if weak:
        raise HTTPException(status_code=400, detail=weak)
    ensure_email_available(db, data.email)

    user, landlord = create_account(
        db,
        email=data.email,
        password=data.password,
        role=UserRole.LANDLORD,
        first_name=data.first_name,
        last_name=data.last_name,
        phone=data.phone,
        profile=Landlord(company_name=(data.company_name or "").strip() or None),
    )
    create_log(
        db,
        ACTION_ACCOUNT_CREATED,
        user_id=user.id,
        entity_type=ENTITY_USER,
        entity_id=user.id,
        details={"email": user.email, "role": UserRole.LANDLORD, "landlordId": landlord.id},
    )
    db.commit()
    return {"message": "User registered successfully", "user": user_to_dict(user)}


@router.post("/register/agent", status_code=201)
def register_with_invitation(data: AgentRegisterRequest, db: Session = Depends(get_db)):
    return register_agent(db, data)


@router.get("/verify-invitation")
def verify_invitation_token(
    token: str | None = Query(default=None),
    email: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    try:
        return verify_invitation(db, token, email)
    except HTTPException as e:
        return _invalid(e)


@router.post("/login")
def login(data: LoginRequest, db: Session = Depends(get_db)):
    if not data.email or not data.password:
        raise HTTPException(status_code=400, detail="Email and password are required")
    user = find_user_by_email(db, data.email)
    if not user or not verify_password(data.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    # Suspended agents still sign in to see their suspension details
    if user.role != UserRole.AGENT and user.status != UserStatus.ACTIVE:
        raise HTTPException(status_code=403, detail="Account is not active")
    return {
        "message": "Login successful",
        "user": user_to_dict(user),
        "accessToken": create_access_token(user.id, user.email, user.role),
    }


@router.post("/check-email")
def check_email(data: EmailRequest, db: Session = Depends(get_db)):
    if not normalize_email(data.email):
        raise HTTPException(status_code=400, detail="Email is required")
    return {"exists": find_user_by_email(db, data.email) is not None}


@router.post("/forgot-password")
def forgot_password(data: EmailRequest, db: Session = Depends(get_db)):
    return request_password_reset(db, data.email)


@router.get("/verify-reset-token")
def verify_reset(token: str | None = Query(default=None), db: Session = Depends(get_db)):
    try:
        return verify_reset_token(db, token)
    except HTTPException as e:
        return _invalid(e)


@router.post("/reset-password")
def reset(data: ResetPasswordRequest, db: Session = Depends(get_db)):
    return reset_password(db, data.token, data.password)
