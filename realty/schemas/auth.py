"""Auth schemas."""
import re
from pydantic import EmailStr, field_validator
from realty.models.user import UserRole
from realty.schemas import CamelModel

# Kenyan mobile numbers: +2547..., 2547..., 07... (also the 01 range)
_PHONE_RE = re.compile(r"^(\+?254|0)[17]\d{8}$")


def _normalize_phone(value: str | None) -> str:
    if value is None:
        return ""
    return re.sub(r"[\s\-]", "", value.strip())


def validate_phone(value: str | None) -> str:
    """Empty is allowed; anything else must be a valid Kenyan phone number."""
    phone = _normalize_phone(value)
    if not phone:
        return ""
    if len(phone) < 9:
        raise ValueError("Phone number is too short")
    if len(phone) > 15:
        raise ValueError("Phone number is too long")
    if not _PHONE_RE.match(phone):
        raise ValueError("Invalid Kenyan phone number. Format: +254712345678 or 0712345678")
    return phone


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str
    first_name: str
    last_name: str
    phone: str
    role: UserRole = UserRole.LANDLORD
    company_name: str | None = None

    @field_validator("first_name", "last_name")
    @classmethod
    def name_present(cls, v: str) -> str:
        v = (v or "").strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v

    @field_validator("phone")
    @classmethod
    def phone_valid(cls, v: str) -> str:
        phone = validate_phone(v)
        if not phone:
            raise ValueError("Phone number is required.")
        return phone


class AgentRegisterRequest(CamelModel):
    """Registration through an invitation link."""
    token: str
    email: EmailStr
    first_name: str
    last_name: str
    phone: str = ""
    password: str

    @field_validator("token", "first_name", "last_name")
    @classmethod
    def required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("This field is required")
        return v

    @field_validator("phone")
    @classmethod
    def phone_valid(cls, v: str) -> str:
        return validate_phone(v)


class LoginRequest(CamelModel):
    email: str = ""
    password: str = ""


class EmailRequest(CamelModel):
    email: str = ""


class ResetPasswordRequest(CamelModel):
    token: str = ""
    password: str = ""
