"""Commission payments from landlords to agents."""
from sqlalchemy import Column, String, Float, ForeignKey, DateTime, Text
from realty.database import Base
from realty.models.base import new_id, utcnow

PAYMENT_TYPE_COMMISSION = "COMMISSION"
PAYMENT_STATUS_COMPLETED = "COMPLETED"
PAYMENT_METHOD_BANK_TRANSFER = "BANK_TRANSFER"


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=new_id)
    landlord_id = Column(String(36), ForeignKey("landlords.id"), nullable=False, index=True)
    agent_id = Column(String(36), ForeignKey("agents.id"), nullable=True, index=True)

    amount = Column(Float, nullable=False)
    type = Column(String(20), nullable=False, default=PAYMENT_TYPE_COMMISSION)
    status = Column(String(20), nullable=False, default=PAYMENT_STATUS_COMPLETED)
    method = Column(String(30), nullable=False, default=PAYMENT_METHOD_BANK_TRANSFER)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
