"""Pytest fixtures for testing"""

import itertools
from datetime import date, datetime, timedelta
from typing import Callable, Generator, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from spendsense.infrastructure.database import models
from spendsense.infrastructure.database.models import Base
from spendsense.infrastructure.database.repositories import SqlAlchemyFinancialDataStore
from tests.support import NOW, TODAY

# Test database: one shared in-memory connection
TEST_DATABASE_URL = "sqlite://"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False}, poolclass=StaticPool)
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
def store(db: Session) -> SqlAlchemyFinancialDataStore:
    return SqlAlchemyFinancialDataStore(db)


@pytest.fixture
def make_user(db: Session) -> Callable[..., models.User]:
    def _make(
        user_id: str = "user_1",
        name: str = "Test User",
        consent_status: str = "granted",
        created_at: datetime = NOW - timedelta(days=400),
    ) -> models.User:
        row = models.User(user_id=user_id, name=name, consent_status=consent_status, created_at=created_at)
        db.add(row)
        db.flush()
        return row

    return _make


@pytest.fixture
def make_account(db: Session) -> Callable[..., models.Account]:
    def _make(
        account_id: str,
        user_id: str = "user_1",
        type: str = "depository",
        subtype: Optional[str] = "checking",
        available_balance: Optional[float] = None,
        current_balance: Optional[float] = 0.0,
        credit_limit: Optional[float] = None,
    ) -> models.Account:
        row = models.Account(
            account_id=account_id,
            user_id=user_id,
            type=type,
            subtype=subtype,
            available_balance=available_balance,
            current_balance=current_balance,
            credit_limit=credit_limit,
        )
        db.add(row)
        db.flush()
        return row

    return _make


@pytest.fixture
def make_transaction(db: Session) -> Callable[..., models.Transaction]:
    ids = itertools.count(1)

    def _make(
        account_id: str,
        on: date,
        amount: float,
        merchant_name: Optional[str] = None,
        payment_channel: Optional[str] = "online",
        category_primary: Optional[str] = None,
        category_detailed: Optional[str] = None,
        pending: bool = False,
    ) -> models.Transaction:
        row = models.Transaction(
            transaction_id=f"txn_{next(ids)}",
            account_id=account_id,
            date=on,
            amount=amount,
            merchant_name=merchant_name,
            payment_channel=payment_channel,
            category_primary=category_primary,
            category_detailed=category_detailed,
            pending=pending,
        )
        db.add(row)
        db.flush()
        return row

    return _make


@pytest.fixture
def make_liability(db: Session) -> Callable[..., models.Liability]:
    def _make(account_id: str, **fields) -> models.Liability:
        row = models.Liability(account_id=account_id, **fields)
        db.add(row)
        db.flush()
        return row

    return _make


@pytest.fixture
def make_consent(db: Session) -> Callable[..., models.Consent]:
    def _make(user_id: str = "user_1", opted_in: bool = True, timestamp: datetime = NOW) -> models.Consent:
        row = models.Consent(user_id=user_id, opted_in=opted_in, timestamp=timestamp)
        db.add(row)
        db.flush()
        return row

    return _make


@pytest.fixture
def high_utilization_user(make_user, make_account, make_liability):
    """Established user carrying a card at 85% utilization"""
    make_user("user_1")
    make_account("chk_0001", current_balance=1500.0)
    make_account("card_4523", type="credit", subtype="credit card", current_balance=-4250.0, credit_limit=5000.0)
    make_liability("card_4523", minimum_payment_amount=120.0, last_payment_amount=300.0)
    return "user_1"


@pytest.fixture
def savings_builder_user(make_user, make_account, make_transaction):
    """Established user moving $500 into savings every month, no credit cards"""
    make_user("user_1")
    make_account("chk_0001", current_balance=4000.0)
    make_account("sav_0001", subtype="savings", current_balance=6000.0)
    for months_ago in range(6):
        make_transaction("sav_0001", TODAY - timedelta(days=5 + 30 * months_ago), 500.0, merchant_name="Savings Deposit")
    return "user_1"
