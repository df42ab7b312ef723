"""
Pytest configuration and fixtures.

The application reads its settings at import time, so the environment is
prepared here before anything from ``app`` is imported. Tests share one
file-backed SQLite database (so several connections see the same state) and
every test starts from freshly created tables.
"""

import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="bank-shop-tests-")

os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_DB_DIR, "test.db")
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ADMIN_EMAIL"] = "admin@example.com"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "admin-password"
os.environ["ADMIN_FULL_NAME"] = "Shop Admin"
os.environ["SEED_DEMO_PRODUCTS"] = "false"
os.environ["REGISTER_RATE_LIMIT"] = "1000"
os.environ["LOGIN_RATE_LIMIT"] = "1000"
os.environ["PURCHASE_RATE_LIMIT"] = "1000"
os.environ["TX_MAX_ATTEMPTS"] = "10"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest

from app.core.rate_limit import login_limiter, purchase_limiter, register_limiter
from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.db.transaction import run_in_transaction
from app.models.user import ROLE_USER
from app.services import catalog, ledger
from app.services.auth import create_user

import app.models  # noqa: F401


@pytest.fixture(autouse=True)
def reset_database():
    """Recreate every table so tests don't see each other's rows."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    register_limiter.reset()
    login_limiter.reset()
    purchase_limiter.reset()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(username=None, role=ROLE_USER, password="secret-pw"):
        counter["n"] += 1
        username = username or f"user{counter['n']}"
        return run_in_transaction(
            db,
            create_user,
            db,
            username=username,
            email=f"{username}@example.com",
            password=password,
            full_name=username.title(),
            role=role,
        )

    return _make_user


@pytest.fixture
def make_account(db):
    """Create an account with an opening balance, without a log entry."""

    def _make_account(user, balance=0, name="Checking"):
        def _create():
            account = ledger.create_account(db, user.id, name)
            if balance:
                account = ledger.adjust_balance(db, account.id, balance)
            return account

        return run_in_transaction(db, _create)

    return _make_account


@pytest.fixture
def make_product(db):
    def _make_product(name="Widget", price=2000, stock=10, description=""):
        return run_in_transaction(db, catalog.create_product, db, name, description, price, stock)

    return _make_product


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from app.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def read_balance(db):
    """Balance as committed, read through a separate session."""

    def _read(account_id):
        # end any transaction the shared session auto-began (it holds the
        # SQLite write lock) so the reader's connection is not blocked
        db.rollback()
        with SessionLocal() as session:
            return ledger.get_account(session, account_id).balance

    return _read


@pytest.fixture
def read_stock(db):
    def _read(product_id):
        db.rollback()
        with SessionLocal() as session:
            return catalog.get_product(session, product_id).stock

    return _read
