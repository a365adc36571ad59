"""
Audit Models for fintrack

Every write and every login attempt is logged for audit purposes.
This provides:
1. Traceability of who recorded what
2. Debugging information when things go wrong
3. A history of failed login attempts

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Access
    USER_REGISTERED = "user_registered"
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"

    # Ledger writes
    INCOME_RECORDED = "income_recorded"
    EXPENSE_RECORDED = "expense_recorded"
    ASSET_RECORDED = "asset_recorded"
    DEBT_RECORDED = "debt_recorded"

    # Reads
    DASHBOARD_COMPUTED = "dashboard_computed"
    REPORT_COMPUTED = "report_computed"

    # System events
    STORAGE_ERROR = "storage_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'income', 'user', 'dashboard')"
    )
    entity_id: Optional[int] = Field(
        default=None,
        description="Id of the ledger record or user this event relates to"
    )
    user_id: Optional[int] = Field(
        default=None,
        description="Owner the event was scoped to"
    )

    # Correlation - for tracking related events of one request
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "user_id": self.user_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.user_registered(user_id, username)
        event = AuditEventBuilder.record_created("income", income_id, user_id, amount)
    """

    _RECORD_EVENTS = {
        "income": AuditEventType.INCOME_RECORDED,
        "expense": AuditEventType.EXPENSE_RECORDED,
        "asset": AuditEventType.ASSET_RECORDED,
        "debt": AuditEventType.DEBT_RECORDED,
    }

    @staticmethod
    def user_registered(
        user_id: int,
        username: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REGISTERED,
            entity_type="user",
            entity_id=user_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"User registered: {username}",
            details={"username": username},
            is_user_action=True,
        )

    @staticmethod
    def login_succeeded(
        user_id: int,
        username: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_SUCCEEDED,
            entity_type="user",
            entity_id=user_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"User logged in: {username}",
            is_user_action=True,
        )

    @staticmethod
    def login_failed(
        username: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            correlation_id=correlation_id,
            description=f"Failed login attempt for: {username}",
            details={"username": username},
            is_user_action=True,
        )

    @classmethod
    def record_created(
        cls,
        record_type: str,
        record_id: int,
        user_id: int,
        amount: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=cls._RECORD_EVENTS[record_type],
            entity_type=record_type,
            entity_id=record_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"{record_type.capitalize()} recorded: {amount}",
            details={"amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def dashboard_computed(
        user_id: int,
        year: int,
        month: int,
        transaction_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DASHBOARD_COMPUTED,
            severity=AuditSeverity.DEBUG,
            entity_type="dashboard",
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Dashboard computed for {year}-{month:02d}",
            details={
                "year": year,
                "month": month,
                "transaction_count": transaction_count,
            },
        )

    @staticmethod
    def report_computed(
        user_id: int,
        report: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_COMPUTED,
            severity=AuditSeverity.DEBUG,
            entity_type="report",
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Report computed: {report}",
            details={"report": report},
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        user_id: Optional[int] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
