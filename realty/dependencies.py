"""Shared dependencies: DB session, current user, role profiles."""
from fastapi import Depends, Header, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from realty.config import get_settings
from realty.database import get_db
from realty.models.user import User, UserRole
from realty.models.agent import Agent
from realty.models.landlord import Landlord
from realty.services.auth import decode_token_with_error

security = HTTPBearer(auto_error=False)


def _caller_id(
    credentials: HTTPAuthorizationCredentials | None,
    x_user_id: str | None,
) -> str:
    """Bearer JWT first; the x-user-id header only when the deployment trusts its proxy."""
    if credentials:
        payload, _ = decode_token_with_error((credentials.credentials or "").strip())
        if not payload or not payload.get("sub"):
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        return str(payload["sub"])
    if get_settings().trust_user_id_header and (x_user_id or "").strip():
        return x_user_id.strip()
    raise HTTPException(status_code=401, detail="Unauthorized")


def get_current_user(
    db: Session = Depends(get_db),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    x_user_id: str | None = Header(default=None),
) -> User:
    user_id = _caller_id(credentials, x_user_id)
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="Forbidden - Admin access required")
    return current_user


def get_current_landlord(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Landlord:
    landlord = db.query(Landlord).filter(Landlord.user_id == current_user.id).first()
    if not landlord:
        raise HTTPException(status_code=404, detail="Landlord not found")
    return landlord


def get_current_agent(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Agent:
    agent = db.query(Agent).filter(Agent.user_id == current_user.id).first()
    if not agent:
        raise HTTPException(status_code=404, detail="Agent not found")
    return agent
