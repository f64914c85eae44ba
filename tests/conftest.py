"""Pytest configuration and fixtures."""

import uuid
from datetime import date
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from catering.core.security import hash_password, create_access_token
from catering.db.session import Base, get_db
from catering.main import app
# Import all models so they are registered with Base.metadata
from catering.models.audit_log import AuditLog  # noqa: F401
from catering.models.booking import Booking
from catering.models.cash_flow import CashFlowEntry  # noqa: F401
from catering.models.closed_day import ClosedDay  # noqa: F401
from catering.models.package import Package  # noqa: F401
from catering.models.setting import Setting  # noqa: F401
from catering.models.transaction import Transaction  # noqa: F401
from catering.models.user import User
from catering.services import live_feed

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_engine, db_session: Session, monkeypatch) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""
    # live feeds open their own short sessions instead of using get_db
    monkeypatch.setattr(live_feed, "SessionLocal", sessionmaker(autocommit=False, autoflush=False, bind=db_engine))

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _user(db: Session, email: str, role: str, name: str) -> User:
    user = User(
        id=str(uuid.uuid4()),
        email=email,
        full_name=name,
        role=role,
        password_hash=hash_password("testpass123"),
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def manager(db_session: Session) -> User:
    return _user(db_session, "manager@example.com", "manager", "Mia Manager")


@pytest.fixture
def staff(db_session: Session) -> User:
    return _user(db_session, "staff@example.com", "staff", "Sam Staff")


@pytest.fixture
def other_staff(db_session: Session) -> User:
    return _user(db_session, "staff2@example.com", "staff", "Alex Helper")


@pytest.fixture
def customer(db_session: Session) -> User:
    return _user(db_session, "customer@example.com", "customer", "Casey Customer")


def headers_for(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, role=user.role)}"}


@pytest.fixture
def manager_headers(manager: User) -> dict:
    return headers_for(manager)


@pytest.fixture
def staff_headers(staff: User) -> dict:
    return headers_for(staff)


@pytest.fixture
def customer_headers(customer: User) -> dict:
    return headers_for(customer)


@pytest.fixture
def make_booking(db_session: Session):
    """Insert a booking row directly (past dates allowed, unlike the booking form)."""
    def _make(**overrides) -> Booking:
        values = dict(
            id=str(uuid.uuid4()),
            customer_name="Jordan Reyes",
            customer_email="jordan@example.com",
            event_type="wedding",
            event_date=date(2025, 3, 15),
            event_time="14:00",
            guest_count=80,
            location={"address": "Garden Pavilion"},
            package_name="Grand Celebration",
            total_price=50000,
            discount=0,
            amount_paid=0,
            status="pending",
            payment_status="pending",
            assigned_staff=[],
            expenses=[],
        )
        values.update(overrides)
        b = Booking(**values)
        db_session.add(b)
        db_session.commit()
        db_session.refresh(b)
        return b
    return _make
