"""Admin: agent invitations, agent listing, tenant accounts."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from realty.database import get_db
from realty.dependencies import require_admin
from realty.models.user import User
from realty.schemas.agents import AgentInviteRequest, TenantCreateRequest
from realty.services.commissions import list_all_agents
from realty.services.invitations import create_tenant_account, invite_agent_as_admin

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/agents/invite", status_code=201)
def invite_agent(
    data: AgentInviteRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return invite_agent_as_admin(db, admin, data)


@router.get("/agents")
def agents(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return list_all_agents(db)


@router.post("/tenants", status_code=201)
def create_tenant(
    data: TenantCreateRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return create_tenant_account(db, admin, data)
