"""Agent lifecycle and landlord management schemas."""
from pydantic import EmailStr, Field, field_validator
from realty.schemas import CamelModel
from realty.schemas.auth import validate_phone


class AgentInviteRequest(CamelModel):
    email: EmailStr
    first_name: str = ""
    last_name: str = ""
    phone: str = ""

    @field_validator("phone")
    @classmethod
    def phone_valid(cls, v: str) -> str:
        return validate_phone(v)


class TenantCreateRequest(AgentInviteRequest):
    national_id: str | None = Field(default=None, pattern=r"^\d{7,8}$")
    emergency_contact: str | None = None
    emergency_phone: str | None = None

    @field_validator("emergency_phone")
    @classmethod
    def emergency_phone_valid(cls, v: str | None) -> str | None:
        return validate_phone(v) or None


class ApproveAgentRequest(CamelModel):
    agent_id: str | None = None
    invitation_id: str | None = None


class ApproveInvitationRequest(CamelModel):
    invitation_id: str | None = None


class AssignAgentRequest(CamelModel):
    agent_id: str | None = None
    property_id: str | None = None
    commission_rate: float | None = Field(default=None, ge=0, le=100)


class SuspendAgentRequest(CamelModel):
    agent_id: str | None = None
    reason: str | None = None
    suspension_days: int | None = None
    notes: str | None = None


class UnsuspendAgentRequest(CamelModel):
    agent_id: str | None = None


class PayCommissionRequest(CamelModel):
    agent_id: str | None = None
    amount: float | None = None
    description: str | None = None


class PropertyCreate(CamelModel):
    title: str = Field(min_length=5)
    address: str | None = None
    town: str | None = None
    county: str | None = None
    rent: float = Field(gt=0)
