"""
All SQLAlchemy models. Schema is the source of truth for new DBs.
Base.metadata.create_all() creates every table; no migration scripts needed for fresh installs.
"""
from realty.models.user import User
from realty.models.agent import Agent, AgentSuspension
from realty.models.landlord import Landlord, Property
from realty.models.tenant import Tenant
from realty.models.invitation import AgentInvitation
from realty.models.audit_log import AuditLog
from realty.models.payment import Payment
from realty.models.password_reset import PasswordReset

__all__ = [
    "User",
    "Agent",
    "AgentSuspension",
    "Landlord",
    "Property",
    "Tenant",
    "AgentInvitation",
    "AuditLog",
    "Payment",
    "PasswordReset",
]
