"""
Tests for fintrack models and settings

Test strategy:
1. Unit tests for the pydantic schemas (validation and JSON shape)
2. Audit event builders
3. Settings parsing from the environment
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from fintrack.config import (
    AppSettings,
    AuthSettings,
    DatabaseSettings,
    StorageBackend,
    get_settings,
    validate_all_settings,
)
from fintrack.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from fintrack.models.ledger import (
    ExpenseCreate,
    Income,
    IncomeCreate,
    Token,
    User,
    UserCreate,
    UserPublic,
)


class TestLedgerModels:
    """Tests for ledger record schemas."""

    def test_income_create_from_camel_case_json(self):
        """Test that incoming JSON keys are accepted as sent by the client."""
        income = IncomeCreate.model_validate({
            "description": "Salary",
            "amount": "5000.00",
            "date": "2024-01-15",
            "notes": "January",
        })
        assert income.amount == Decimal("5000.00")
        assert income.date == date(2024, 1, 15)

    def test_income_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValidationError):
            IncomeCreate(description="Refund", amount=Decimal("-1"), date=date(2024, 1, 1))

    def test_income_rejects_fractional_cents(self):
        """Test that amounts carry at most two decimal places."""
        with pytest.raises(ValidationError):
            IncomeCreate(description="Salary", amount=Decimal("10.005"), date=date(2024, 1, 1))

    def test_expense_requires_category(self):
        """Test that an empty category is rejected."""
        with pytest.raises(ValidationError):
            ExpenseCreate(
                description="Lunch",
                amount=Decimal("12.50"),
                date=date(2024, 1, 1),
                category="",
            )

    def test_expense_category_strips_whitespace(self):
        """Test that surrounding whitespace is stripped from the category."""
        expense = ExpenseCreate(
            description="Lunch",
            amount=Decimal("12.50"),
            date=date(2024, 1, 1),
            category="  food  ",
        )
        assert expense.category == "food"

    def test_record_serializes_to_camel_case_numbers(self):
        """Test the JSON shape of a stored record."""
        income = Income(
            id=3,
            user_id=7,
            description="Salary",
            amount=Decimal("5000.50"),
            date=date(2024, 1, 15),
        )
        data = income.model_dump(mode="json", by_alias=True)
        assert data["userId"] == 7
        assert data["amount"] == 5000.5
        assert data["date"] == "2024-01-15"

    def test_python_dump_keeps_decimal(self):
        """Test that Decimal is only converted for JSON output."""
        income = Income(
            id=1,
            user_id=1,
            description="Salary",
            amount=Decimal("1.10"),
            date=date(2024, 1, 1),
        )
        assert income.model_dump()["amount"] == Decimal("1.10")


class TestUserModels:
    """Tests for user schemas."""

    def test_user_create_username_bounds(self):
        """Test that very short usernames are rejected."""
        with pytest.raises(ValidationError):
            UserCreate(username="ab", password="secret1")

    def test_user_create_password_min_length(self):
        """Test that short passwords are rejected."""
        with pytest.raises(ValidationError):
            UserCreate(username="alice", password="123")

    def test_password_limit_counts_bytes(self):
        """Test that a multibyte password over 72 bytes is rejected."""
        with pytest.raises(ValidationError):
            UserCreate(username="alice", password="é" * 40)

    def test_password_of_72_bytes_accepted(self):
        """Test the byte limit is inclusive."""
        payload = UserCreate(username="alice", password="é" * 36)
        assert len(payload.password.encode("utf-8")) == 72

    def test_user_create_accepts_camel_case_names(self):
        """Test that firstName/lastName are accepted."""
        payload = UserCreate.model_validate({
            "username": "alice",
            "password": "secret1",
            "firstName": "Alice",
            "lastName": "Smith",
        })
        assert payload.first_name == "Alice"
        assert payload.last_name == "Smith"

    def test_public_user_has_no_password_hash(self):
        """Test that the public view drops the hash."""
        user = User(id=1, username="alice", password_hash="$2b$12$hash")
        public = UserPublic.from_user(user).model_dump(by_alias=True)
        assert public["username"] == "alice"
        assert "passwordHash" not in public
        assert "password_hash" not in public

    def test_token_shape(self):
        """Test the token response keys."""
        token = Token(access_token="abc")
        assert token.model_dump() == {"access_token": "abc", "token_type": "bearer"}


class TestAuditModels:
    """Tests for audit models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.INCOME_RECORDED,
            description="Income recorded",
        )
        assert event.event_id is not None
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to a structured log dict."""
        correlation_id = uuid4()
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_RECORDED,
            description="Expense recorded",
            entity_id=4,
            user_id=2,
            correlation_id=correlation_id,
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "expense_recorded"
        assert log_dict["entity_id"] == 4
        assert log_dict["user_id"] == 2
        assert log_dict["correlation_id"] == str(correlation_id)

    def test_builder_record_created(self):
        """Test the record builder picks the event type from the record type."""
        event = AuditEventBuilder.record_created(
            record_type="debt",
            record_id=9,
            user_id=1,
            amount="250.00",
        )
        assert event.event_type == AuditEventType.DEBT_RECORDED
        assert event.entity_type == "debt"
        assert event.entity_id == 9
        assert event.details["amount"] == "250.00"
        assert event.is_user_action is True

    def test_builder_login_failed_is_warning(self):
        """Test that failed logins stand out in the log."""
        event = AuditEventBuilder.login_failed(username="mallory")
        assert event.event_type == AuditEventType.LOGIN_FAILED
        assert event.severity == AuditSeverity.WARNING

    def test_builder_storage_error(self):
        """Test the storage error builder."""
        event = AuditEventBuilder.storage_error(
            operation="create_income",
            error_message="disk full",
            user_id=3,
        )
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "disk full"
        assert event.details["operation"] == "create_income"


class TestSettings:
    """Tests for settings parsing."""

    def test_storage_backend_from_env(self, monkeypatch):
        """Test that STORAGE_BACKEND selects the implementation."""
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        assert AppSettings().storage_backend == StorageBackend.MEMORY

    def test_log_level_is_normalized(self, monkeypatch):
        """Test that the log level is accepted in any case."""
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert AppSettings().log_level == "DEBUG"

    def test_unknown_log_level_rejected(self, monkeypatch):
        """Test that a typo in the log level fails at startup."""
        monkeypatch.setenv("LOG_LEVEL", "verbose")
        with pytest.raises(ValidationError):
            AppSettings()

    def test_cors_origins_list(self, monkeypatch):
        """Test splitting of the comma-separated origin list."""
        monkeypatch.setenv("CORS_ORIGINS", "http://localhost:3000, https://app.example.com")
        assert AppSettings().cors_origins_list == [
            "http://localhost:3000",
            "https://app.example.com",
        ]

    def test_database_prefix(self, monkeypatch):
        """Test that DATABASE_URL is read with its prefix."""
        monkeypatch.setenv("DATABASE_URL", "postgresql://db/fintrack")
        settings = DatabaseSettings()
        assert settings.url == "postgresql://db/fintrack"
        assert settings.is_sqlite is False

    def test_short_secret_rejected(self):
        """Test that token secrets must be reasonably long."""
        with pytest.raises(ValidationError):
            AuthSettings(secret_key="short")

    def test_validate_all_settings_reports_errors(self, monkeypatch):
        """Test the startup check flags a bad section without raising."""
        monkeypatch.setenv("AUTH_SECRET_KEY", "short")
        get_settings.cache_clear()
        try:
            results = validate_all_settings()
        finally:
            get_settings.cache_clear()
        assert results["app"] is True
        assert results["auth"] is False
        assert "auth_error" in results
