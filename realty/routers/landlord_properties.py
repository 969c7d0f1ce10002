"""Landlord properties (create/list) so agents have something to be assigned to."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from realty.database import get_db
from realty.dependencies import get_current_landlord
from realty.models.landlord import Landlord, Property
from realty.schemas.agents import PropertyCreate

router = APIRouter(prefix="/landlord/properties", tags=["landlord-properties"])


def _property_to_dict(prop: Property) -> dict:
    return {
        "id": prop.id,
        "landlordId": prop.landlord_id,
        "agentId": prop.agent_id,
        "title": prop.title,
        "address": prop.address,
        "town": prop.town,
        "county": prop.county,
        "rent": prop.rent,
        "status": prop.status.value,
        "createdAt": prop.created_at,
    }


@router.post("", status_code=201)
def create_property(
    data: PropertyCreate,
    db: Session = Depends(get_db),
    landlord: Landlord = Depends(get_current_landlord),
):
    prop = Property(
        landlord_id=landlord.id,
        title=data.title.strip(),
        address=data.address,
        town=data.town,
        county=data.county,
        rent=data.rent,
    )
    db.add(prop)
    db.commit()
    db.refresh(prop)
    return _property_to_dict(prop)


@router.get("")
def list_properties(db: Session = Depends(get_db), landlord: Landlord = Depends(get_current_landlord)):
    properties = (
        db.query(Property)
        .filter(Property.landlord_id == landlord.id)
        .order_by(Property.created_at.desc())
        .all()
    )
    return [_property_to_dict(p) for p in properties]
