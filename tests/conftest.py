"""
Shared fixtures for fintrack tests.

No external services are used: the SQL backend runs against a temporary
SQLite file and the API against in-memory storage.
"""

from datetime import date
from decimal import Decimal

import pytest

from fintrack.config import AuthSettings, DatabaseSettings
from fintrack.models.ledger import Asset, Debt, Expense, Income
from fintrack.services.storage import InMemoryLedgerStorage, SqlClient, SqlLedgerStorage


TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"


def make_income(id: int, amount: str, on: date, description: str = "Salary", user_id: int = 1) -> Income:
    return Income(
        id=id,
        user_id=user_id,
        description=description,
        amount=Decimal(amount),
        date=on,
    )


def make_expense(
    id: int,
    amount: str,
    on: date,
    category: str = "food",
    description: str = "Groceries",
    user_id: int = 1,
) -> Expense:
    return Expense(
        id=id,
        user_id=user_id,
        description=description,
        amount=Decimal(amount),
        date=on,
        category=category,
    )


def make_asset(id: int, value: str, user_id: int = 1) -> Asset:
    return Asset(id=id, user_id=user_id, name=f"Asset {id}", value=Decimal(value), date=date(2024, 1, 1))


def make_debt(id: int, balance: str, user_id: int = 1) -> Debt:
    return Debt(id=id, user_id=user_id, name=f"Debt {id}", balance=Decimal(balance), date=date(2024, 1, 1))


@pytest.fixture
def auth_settings():
    return AuthSettings(secret_key=TEST_SECRET)


@pytest.fixture(params=["memory", "sql"])
def storage(request, tmp_path):
    """Each storage test runs once per backend."""
    if request.param == "memory":
        yield InMemoryLedgerStorage()
    else:
        client = SqlClient(DatabaseSettings(url=f"sqlite:///{tmp_path / 'ledger.db'}"))
        client.connect()
        yield SqlLedgerStorage(client)
        client.dispose()
