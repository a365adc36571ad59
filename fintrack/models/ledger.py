"""
Core Data Models for fintrack

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and for the JSON API

DESIGN DECISION: Amounts are Decimal everywhere inside the system and are only
converted to JSON numbers at the serialization boundary. Summing floats would
drift by cents over a year of records.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)
from pydantic.alias_generators import to_camel


# =============================================================================
# SHARED TYPES
# =============================================================================

# Money stored on a ledger record: non-negative, at most 2 fractional digits.
Money = Annotated[
    Decimal,
    Field(ge=0, max_digits=10, decimal_places=2),
    PlainSerializer(float, return_type=float, when_used="json"),
]

# Derived figures (net worth can go negative, rates have no bound).
Amount = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]


class LedgerModel(BaseModel):
    """
    Base for every API-facing model.

    Python attributes are snake_case, JSON keys are camelCase.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """The two record kinds merged into the transactions feed."""
    INCOME = "income"
    EXPENSE = "expense"


INCOME_CATEGORY = "Income"


# =============================================================================
# USERS
# =============================================================================

class UserCreate(LedgerModel):
    """Registration payload."""

    username: str = Field(
        ...,
        min_length=3,
        max_length=50,
        description="Unique login name"
    )
    password: str = Field(
        ...,
        min_length=6,
        max_length=72,
        description="Plain text password (hashed before storage)"
    )
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        """bcrypt only accepts 72 bytes, which is fewer than 72 multibyte characters."""
        if len(v.encode("utf-8")) > 72:
            raise ValueError("Password cannot be longer than 72 bytes")
        return v


class UserLogin(LedgerModel):
    username: str
    password: str


class User(LedgerModel):
    """
    A stored user.

    CRITICAL: Never return this model from the API, it carries the hash.
    Use UserPublic instead.
    """

    id: int
    username: str = Field(..., min_length=3, max_length=50)
    password_hash: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class UserPublic(LedgerModel):
    """User as exposed over the API."""

    id: int
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserPublic":
        return cls(
            id=user.id,
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
        )


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


# =============================================================================
# LEDGER RECORDS
# =============================================================================

class IncomeCreate(LedgerModel):
    """Income as submitted by a user. The owner is taken from the session."""

    description: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What the income was for"
    )
    amount: Money
    date: dt.date
    notes: Optional[str] = Field(default=None, max_length=1000)


class Income(IncomeCreate):
    id: int
    user_id: int


class ExpenseCreate(LedgerModel):
    """
    Expense as submitted by a user.

    The category is free text. It is only used for grouping and is
    compared exactly as stored.
    """

    description: str = Field(..., min_length=1, max_length=200)
    amount: Money
    date: dt.date
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Free-text grouping label"
    )
    notes: Optional[str] = Field(default=None, max_length=1000)


class Expense(ExpenseCreate):
    id: int
    user_id: int


class AssetCreate(LedgerModel):
    name: str = Field(..., min_length=1, max_length=200)
    value: Money
    date: dt.date


class Asset(AssetCreate):
    id: int
    user_id: int


class DebtCreate(LedgerModel):
    name: str = Field(..., min_length=1, max_length=200)
    balance: Money
    date: dt.date


class Debt(DebtCreate):
    id: int
    user_id: int


# =============================================================================
# AGGREGATION RESULTS
# =============================================================================

class Transaction(LedgerModel):
    """
    Unified shape for incomes and expenses in the recent-transactions feed.

    Ids are prefixed with the record type ("income-3", "expense-7") so the
    two id sequences never collide.
    """

    id: str
    type: TransactionType
    description: str
    amount: Amount
    date: dt.date
    category: str
    notes: Optional[str] = None


class CategoryTotal(LedgerModel):
    category: str
    total: Amount


class CategoryShare(LedgerModel):
    """A category total together with its percentage of all spending."""

    category: str
    total: Amount
    percentage: Amount


class MonthlyCashflow(LedgerModel):
    """Income, expenses and their difference for one calendar month."""

    year: int
    month: int = Field(..., ge=1, le=12)
    label: str = Field(..., description="Month as YYYY-MM")
    income: Amount
    expenses: Amount
    savings: Amount


class DashboardSummary(LedgerModel):
    """
    Everything the dashboard shows, computed for one user and one month.
    """

    net_worth: Amount
    monthly_income: Amount
    monthly_expenses: Amount
    savings_rate: Amount
    expenses_by_category: list[CategoryTotal] = Field(default_factory=list)
    recent_transactions: list[Transaction] = Field(default_factory=list)
