"""Agent self-service: account status and suspension details."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from realty.database import get_db
from realty.dependencies import get_current_agent, get_current_user
from realty.models.agent import Agent
from realty.models.user import User
from realty.services.agent_lifecycle import agent_status, suspension_details

router = APIRouter(prefix="/agent", tags=["agent"])


@router.get("/status")
def status(agent: Agent = Depends(get_current_agent), current_user: User = Depends(get_current_user)):
    return agent_status(agent, current_user)


@router.get("/suspension")
def suspension(
    db: Session = Depends(get_db),
    agent: Agent = Depends(get_current_agent),
    current_user: User = Depends(get_current_user),
):
    return suspension_details(db, agent, current_user)
