"""Landlord role profile and the properties it owns."""
import enum

from sqlalchemy import Column, String, Float, ForeignKey, DateTime, Enum as SQLEnum
from sqlalchemy.orm import relationship
from realty.database import Base
from realty.models.base import new_id, utcnow


class PropertyStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    MAINTENANCE = "MAINTENANCE"


class Landlord(Base):
    __tablename__ = "landlords"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False)
    company_name = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user = relationship("User", backref="landlord_profile")
    properties = relationship("Property", back_populates="landlord")


class Property(Base):
    __tablename__ = "properties"

    id = Column(String(36), primary_key=True, default=new_id)
    landlord_id = Column(String(36), ForeignKey("landlords.id"), nullable=False, index=True)
    # Cleared when the agent is suspended; must point at an active agent when set
    agent_id = Column(String(36), ForeignKey("agents.id"), nullable=True, index=True)

    title = Column(String(255), nullable=False)
    address = Column(String(255), nullable=True)
    town = Column(String(100), nullable=True)
    county = Column(String(100), nullable=True)
    rent = Column(Float, nullable=False, default=0.0)  # monthly
    status = Column(SQLEnum(PropertyStatus), nullable=False, default=PropertyStatus.AVAILABLE)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    landlord = relationship("Landlord", back_populates="properties")
