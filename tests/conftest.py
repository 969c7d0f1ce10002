import os

# Configure before realty modules read settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "test"
os.environ["DEBUG"] = "false"
os.environ["TRUST_USER_ID_HEADER"] = "true"
os.environ["MAILGUN_API_KEY"] = ""
os.environ["SENDGRID_API_KEY"] = ""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from realty.database import Base, get_db
from realty.main import app
from realty.models.agent import Agent
from realty.models.landlord import Landlord, Property
from realty.models.user import UserRole
from realty.services.accounts import create_account

PASSWORD = "Secret#123"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def sent_emails():
    """Capture outgoing email instead of calling a provider."""
    with patch("realty.services.notifications.send_email", return_value=True) as mock_send:
        yield mock_send


@pytest.fixture
def client():
    return TestClient(app)


def auth_headers(user) -> dict:
    return {"x-user-id": user.id}


def make_user(db, email, role, profile=None, first_name="Test", last_name="User"):
    user, profile = create_account(
        db,
        email=email,
        password=PASSWORD,
        role=role,
        first_name=first_name,
        last_name=last_name,
        phone="0712345678",
        profile=profile,
    )
    return user, profile


@pytest.fixture
def admin(db):
    user, _ = make_user(db, "admin@example.com", UserRole.ADMIN)
    return user


@pytest.fixture
def landlord(db):
    user, profile = make_user(db, "landlord@example.com", UserRole.LANDLORD, profile=Landlord(company_name="Acme"))
    return user, profile


@pytest.fixture
def active_agent(db):
    user, agent = make_user(db, "agent@example.com", UserRole.AGENT, profile=Agent(active=True), first_name="Amina")
    return user, agent


@pytest.fixture
def prop(db, landlord):
    _, profile = landlord
    p = Property(landlord_id=profile.id, title="Two bedroom flat", town="Nairobi", rent=30000.0)
    db.add(p)
    db.commit()
    db.refresh(p)
    return p
