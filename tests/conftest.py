import os

os.environ.setdefault("DATABASE_URL", "sqlite://")  # never touch a real DB during tests

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401  (registers SQLAlchemy models)
from app.db import Base, get_db
from app.domain.pricing import PricingConfig
from app.main import app
from app.services import QuotationService, RateCardService, ShipperQuoteRequestService, ShipperService

FIXED_NOW = datetime(2026, 3, 10, 9, 30, 0, tzinfo=timezone.utc)
TODAY = FIXED_NOW.date()


@pytest.fixture
def engine():
    # one in-memory DB per test, shared across connections via StaticPool
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def config():
    return PricingConfig()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def quotation_service(db, config, clock):
    return QuotationService(db, config, clock)


@pytest.fixture
def rate_card_service(db, config, clock):
    return RateCardService(db, config, clock)


@pytest.fixture
def request_service(db, config, clock):
    return ShipperQuoteRequestService(db, config, clock)


@pytest.fixture
def shipper_service(db):
    return ShipperService(db)


@pytest.fixture
def shipper(shipper_service):
    return shipper_service.create(
        {"shipper_code": "EK", "shipper_name": "Emirates SkyCargo", "shipper_type": "AIRLINE"},
        actor_id="tester",
    )


def rate_card_data(shipper_id, /, **overrides):
    data = {
        "shipper_id": shipper_id,
        "rate_type": "AIR_FREIGHT",
        "shipment_type": "AIR_EXPORT",
        "origin_airport": "BOM",
        "destination_airport": "DXB",
        "weight_slabs": [
            {"min_kg": 0, "max_kg": 100, "rate_per_kg": "5.00", "currency": "USD"},
            {"min_kg": 100, "max_kg": 500, "rate_per_kg": "4.20", "currency": "USD"},
            {"min_kg": 500, "max_kg": None, "rate_per_kg": "3.80", "currency": "USD"},
        ],
        "surcharges": {"FSC": "0.12"},
        "origin_handling_charges": "50",
        "margin_percentage": "15",
        "valid_from": TODAY - timedelta(days=1),
        "valid_until": TODAY + timedelta(days=30),
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_rate_card(rate_card_service, shipper):
    def _make(**overrides):
        return rate_card_service.create(rate_card_data(shipper.id, **overrides), actor_id="tester")

    return _make


def quotation_data(**overrides):
    data = {
        "customer_id": "cust-1",
        "customer_name": "Acme Imports",
        "customer_email": "ops@acme.example",
        "shipment_type": "AIR_EXPORT",
        "origin_location": "BOM",
        "destination_location": "DXB",
        "cargo_weight_kg": "150",
        "total_cost": "1200.00",
        "valid_from": TODAY,
        "valid_until": TODAY + timedelta(days=7),
    }
    data.update(overrides)
    return data


@pytest.fixture
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def actor_headers():
    return {"X-User-Id": "user-42"}


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def quotation_payload():
    return quotation_data


@pytest.fixture
def rate_card_payload(shipper):
    def _payload(**overrides):
        return rate_card_data(shipper.id, **overrides)

    return _payload
