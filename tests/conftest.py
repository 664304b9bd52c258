import os
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app
os.environ["APP_ENV"] = "dev"
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("EMAIL_DRY_RUN", "true")

from app.api.dependencies import get_quote_notifier
from app.db.base import Base
from app.db.deps import get_db
# Import all models so Base.metadata includes every table
import app.db.models as _models  # noqa: F401
from app.db.models import AddOn, Event, ItineraryDay, Lead, Package
from app.main import app

# Test database URL (in-memory SQLite for fast tests)
SQLALCHEMY_DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///:memory:")


def is_sqlite() -> bool:
    """Return True if the test database is SQLite (e.g. in-memory tests)."""
    url = SQLALCHEMY_DATABASE_URL or ""
    return url.startswith("sqlite")


# SQLite needs check_same_thread=False and StaticPool; Postgres does not support check_same_thread
if is_sqlite():
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    engine = create_engine(SQLALCHEMY_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Make the app use the same DB
import app.db.session as _db_session

_db_session.engine = engine
_db_session.SessionLocal = TestingSessionLocal


class FakeNotifier:
    """Records quote emails instead of sending them; set fail=True to simulate SMTP errors."""

    def __init__(self, fail: bool = False, result: bool = True):
        self.fail = fail
        self.result = result
        self.sent = []

    async def send_quote_email(self, lead, quote, event, package, addons, itineraries):
        if self.fail:
            raise ConnectionError("SMTP server unavailable")
        self.sent.append({"to": lead.email, "quote_id": quote.id, "package": package.title})
        return self.result


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_notifier():
    """Factory for FakeNotifier instances (e.g. make_notifier(fail=True))."""
    return FakeNotifier


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture(scope="function")
def client(db, notifier):
    """Create a test client with database and notifier dependency overrides."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_quote_notifier] = lambda: notifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def event(db):
    """Event 150 days out, no season months, weekend derived from travel dates."""
    start = datetime.now(UTC).replace(hour=0, minute=0, second=0, microsecond=0) + timedelta(days=150)
    event = Event(
        title="Champions Final",
        location="London",
        start_date=start,
        end_date=start + timedelta(days=3),
        season_months=[],
        is_weekend=None,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


@pytest.fixture
def package(db, event):
    package = Package(
        event_id=event.id,
        title="VIP Hospitality",
        base_price=Decimal("1000.00"),
        min_capacity=1,
        max_capacity=20,
        currency="USD",
    )
    db.add(package)
    db.commit()
    db.refresh(package)
    return package


@pytest.fixture
def other_event_package(db):
    other = Event(
        title="Grand Prix",
        location="Monaco",
        start_date=datetime.now(UTC) + timedelta(days=60),
        season_months=[],
    )
    db.add(other)
    db.flush()
    package = Package(event_id=other.id, title="Paddock Club", base_price=Decimal("2500.00"))
    db.add(package)
    db.commit()
    db.refresh(package)
    return package


@pytest.fixture
def addons(db, event):
    rows = [
        AddOn(event_id=event.id, title="Airport Transfer", price=Decimal("75.00")),
        AddOn(event_id=event.id, title="Stadium Tour", price=Decimal("50.00")),
    ]
    db.add_all(rows)
    db.commit()
    for row in rows:
        db.refresh(row)
    return rows


@pytest.fixture
def itineraries(db, event):
    rows = [
        ItineraryDay(event_id=event.id, title="City Walk", day_number=1, base_price=Decimal("120.00")),
        ItineraryDay(event_id=event.id, title="Free Day", day_number=2, base_price=None),
    ]
    db.add_all(rows)
    db.commit()
    for row in rows:
        db.refresh(row)
    return rows


@pytest.fixture
def lead(db):
    """A lead already contacted by sales, so it can legally move to QUOTE_SENT."""
    lead = Lead(
        name="Jordan Blake",
        email="jordan@example.com",
        phone="+44 7700 900123",
        status="CONTACTED",
        lead_score=0,
        interested_events=[],
        recommended_packages=[],
    )
    db.add(lead)
    db.commit()
    db.refresh(lead)
    return lead
