"""
Data Models Package

This package contains all Pydantic models used in fintrack.
All data flowing through the system must conform to these schemas.
"""

from fintrack.models.ledger import (
    INCOME_CATEGORY,
    Asset,
    AssetCreate,
    CategoryShare,
    CategoryTotal,
    DashboardSummary,
    Debt,
    DebtCreate,
    Expense,
    ExpenseCreate,
    Income,
    IncomeCreate,
    MonthlyCashflow,
    Token,
    Transaction,
    TransactionType,
    User,
    UserCreate,
    UserLogin,
    UserPublic,
)
from fintrack.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "INCOME_CATEGORY",
    "Asset",
    "AssetCreate",
    "CategoryShare",
    "CategoryTotal",
    "DashboardSummary",
    "Debt",
    "DebtCreate",
    "Expense",
    "ExpenseCreate",
    "Income",
    "IncomeCreate",
    "MonthlyCashflow",
    "Token",
    "Transaction",
    "TransactionType",
    "User",
    "UserCreate",
    "UserLogin",
    "UserPublic",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
