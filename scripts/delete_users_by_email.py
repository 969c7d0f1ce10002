"""
Delete the user with the given email and its related data (role profile, invitations,
suspensions, reset tokens). Audit entries are kept; their user reference is nulled.
Usage: python scripts/delete_users_by_email.py <email>
"""
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from sqlalchemy.exc import SQLAlchemyError

from realty.database import SessionLocal
from realty.models.agent import Agent, AgentSuspension
from realty.models.audit_log import AuditLog
from realty.models.invitation import AgentInvitation
from realty.models.landlord import Landlord, Property
from realty.models.password_reset import PasswordReset
from realty.models.payment import Payment
from realty.models.tenant import Tenant
from realty.models.user import User


def _delete_agent(db, agent: Agent) -> None:
    db.query(Property).filter(Property.agent_id == agent.id).update(
        {Property.agent_id: None}, synchronize_session=False
    )
    db.query(AgentInvitation).filter(AgentInvitation.agent_id == agent.id).update(
        {AgentInvitation.agent_id: None}, synchronize_session=False
    )
    db.query(Payment).filter(Payment.agent_id == agent.id).update(
        {Payment.agent_id: None}, synchronize_session=False
    )
    agent.current_suspension_id = None
    db.flush()
    db.query(AgentSuspension).filter(AgentSuspension.agent_id == agent.id).delete(synchronize_session=False)
    db.delete(agent)


def _delete_landlord(db, landlord: Landlord) -> None:
    db.query(Payment).filter(Payment.landlord_id == landlord.id).delete(synchronize_session=False)
    db.query(AgentInvitation).filter(AgentInvitation.landlord_id == landlord.id).delete(synchronize_session=False)
    db.query(Property).filter(Property.landlord_id == landlord.id).delete(synchronize_session=False)
    db.delete(landlord)


def main():
    email = (sys.argv[1] if len(sys.argv) > 1 else "").strip().lower()
    if not email:
        print("Usage: python scripts/delete_users_by_email.py <email>")
        sys.exit(1)

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email).first()
        if not user:
            print(f"No user found with email: {email}")
            sys.exit(0)
        uid, role = user.id, user.role.value

        agent = db.query(Agent).filter(Agent.user_id == uid).first()
        if agent:
            _delete_agent(db, agent)
        landlord = db.query(Landlord).filter(Landlord.user_id == uid).first()
        if landlord:
            _delete_landlord(db, landlord)
        db.query(Tenant).filter(Tenant.user_id == uid).delete(synchronize_session=False)
        db.query(PasswordReset).filter(PasswordReset.user_id == uid).delete(synchronize_session=False)
        db.query(AuditLog).filter(AuditLog.user_id == uid).update({AuditLog.user_id: None}, synchronize_session=False)
        db.query(AgentInvitation).filter(AgentInvitation.email == email).delete(synchronize_session=False)
        db.delete(user)
        db.commit()
        print(f"Deleted user: {email} (role={role}, id={uid})")
    except SQLAlchemyError as e:
        db.rollback()
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
