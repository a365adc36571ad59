"""
Audit Logger

DESIGN DECISION: Every write and every login attempt is logged.
This provides:
1. Traceability of who recorded what
2. Debugging capability
3. A visible trail of failed logins

The audit logger:
- Is async so it can sit in the request path
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
import sys
from collections import deque
from typing import Optional
from uuid import UUID, uuid4

import structlog

from fintrack.models.audit import AuditEvent, AuditEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(log_level: str = "INFO") -> None:
    """Route structlog output to stderr at the given level."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (always)
    2. An in-memory ring of recent events (if keep_recent > 0)
    """

    def __init__(self, keep_recent: int = 0):
        """
        Initialize audit logger.

        Args:
            keep_recent: How many recent events to keep for inspection.
                        0 keeps none and only logs locally.
        """
        self._recent: Optional[deque] = deque(maxlen=keep_recent) if keep_recent else None
        self._logger = structlog.get_logger("fintrack.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be recorded. Never raises.
        """
        try:
            log_dict = event.to_log_dict()

            if event.severity.value in ("error", "critical"):
                self._logger.error("audit_event", **log_dict)
            elif event.severity.value == "warning":
                self._logger.warning("audit_event", **log_dict)
            elif event.severity.value == "debug":
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)

            if self._recent is not None:
                self._recent.append(event)
            return True
        except Exception as e:
            # Log failure but don't raise
            self._logger.error(
                "audit_log_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Most recent events, newest first."""
        if self._recent is None:
            return []
        return list(reversed(self._recent))[:limit]

    async def log_user_registered(
        self,
        user_id: int,
        username: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.user_registered(
            user_id=user_id,
            username=username,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_login(
        self,
        username: str,
        user_id: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a login attempt. A missing user_id means it failed."""
        if user_id is None:
            event = AuditEventBuilder.login_failed(
                username=username,
                correlation_id=correlation_id,
            )
        else:
            event = AuditEventBuilder.login_succeeded(
                user_id=user_id,
                username=username,
                correlation_id=correlation_id,
            )
        await self.log(event)

    async def log_record_created(
        self,
        record_type: str,
        record_id: int,
        user_id: int,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.record_created(
            record_type=record_type,
            record_id=record_id,
            user_id=user_id,
            amount=amount,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_dashboard_computed(
        self,
        user_id: int,
        year: int,
        month: int,
        transaction_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.dashboard_computed(
            user_id=user_id,
            year=year,
            month=month,
            transaction_count=transaction_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_report_computed(
        self,
        user_id: int,
        report: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.report_computed(
            user_id=user_id,
            report=report,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        user_id: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a request and pass it through every step.
    """
    return uuid4()
