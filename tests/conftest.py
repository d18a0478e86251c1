"""Pytest fixtures for testing"""

import os

# Settings are read at import time; point them at SQLite before the app loads
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("VERIFY_SCHEMA_ON_STARTUP", "false")

import pytest
from datetime import date
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from billwise.api.main import create_app
from billwise.infrastructure.database.models import Base
from billwise.infrastructure.database.session import get_db
from billwise.domain.models import (
    Account,
    AccountClassification,
    AccountType,
    Biller,
    BillerCategory,
    Installment,
    Timing,
)


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def electric_biller() -> Biller:
    return Biller(
        id="biller-electric",
        name="Electric",
        category=BillerCategory.UTILITIES,
        due_day=20,
        expected_amount_cents=300_000,
        timing=Timing.FIRST_HALF,
        activation_month=1,
        activation_year=2026,
    )


@pytest.fixture
def credit_card() -> Account:
    return Account(
        id="acct-card",
        bank="BPI",
        classification=AccountClassification.CREDIT_CARD,
        balance_cents=0,
        type=AccountType.CREDIT,
        credit_limit_cents=5_000_000,
        billing_date=date(2026, 1, 12),
    )


@pytest.fixture
def phone_installment() -> Installment:
    return Installment(
        id="inst-phone",
        name="Phone",
        total_amount_cents=1_200_000,
        monthly_amount_cents=100_000,
        term_months=12,
        start_date=date(2026, 1, 5),
    )
