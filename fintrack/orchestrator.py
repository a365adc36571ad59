"""
Main Orchestrator for fintrack

This module ties together storage, the access layer, aggregation and
auditing, and defines the end-to-end flows for:
1. Access (register / login / token → user)
2. Ledger writes and listings (always scoped to one user)
3. Dashboard and reports (fetch → aggregate)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Every storage call carries the authenticated user's id
- Aggregation only ever sees records already fetched for that user
- Every write is audited
"""

from datetime import date
from typing import Optional
from uuid import UUID

from fintrack.aggregation import (
    build_dashboard,
    category_percentages,
    monthly_cashflow,
)
from fintrack.audit import AuditLogger, create_correlation_id
from fintrack.config import AppSettings, AuthSettings, Settings, get_settings
from fintrack.models.ledger import (
    Asset,
    AssetCreate,
    CategoryShare,
    DashboardSummary,
    Debt,
    DebtCreate,
    Expense,
    ExpenseCreate,
    Income,
    IncomeCreate,
    MonthlyCashflow,
    User,
    UserCreate,
)
from fintrack.services.auth import (
    AuthenticationError,
    authenticate_user,
    create_access_token,
    decode_access_token,
    register_user,
)
from fintrack.services.storage import (
    LedgerStorageInterface,
    StorageError,
    create_storage,
)


async def _audit_storage_failure(
    audit_logger: AuditLogger,
    operation: str,
    error: StorageError,
    user: User,
    correlation_id: Optional[UUID],
) -> None:
    await audit_logger.log_storage_error(
        operation=operation,
        error_message=str(error),
        user_id=user.id,
        correlation_id=correlation_id,
    )


class AccessFlow:
    """
    Orchestrates registration, login and token resolution.

    Tokens are signed with the configured AUTH_ settings.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        auth_settings: Optional[AuthSettings] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._auth_settings = auth_settings or get_settings().auth

    async def register(
        self,
        payload: UserCreate,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[User, str]:
        """
        Create a user and issue a token for it.

        Raises:
            DuplicateError: If the username is already taken
        """
        correlation_id = correlation_id or create_correlation_id()

        user = await register_user(self._storage, payload)
        await self._audit_logger.log_user_registered(
            user_id=user.id,
            username=user.username,
            correlation_id=correlation_id,
        )
        return user, create_access_token(user.username, self._auth_settings)

    async def login(
        self,
        username: str,
        password: str,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[User, str]:
        """
        Check credentials and issue a token.

        Raises:
            AuthenticationError: On a wrong username or password
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            user = await authenticate_user(self._storage, username, password)
        except AuthenticationError:
            await self._audit_logger.log_login(
                username=username,
                correlation_id=correlation_id,
            )
            raise

        await self._audit_logger.log_login(
            username=username,
            user_id=user.id,
            correlation_id=correlation_id,
        )
        return user, create_access_token(user.username, self._auth_settings)

    async def resolve_token(self, token: str) -> User:
        """
        Turn a bearer token back into the stored user.

        Raises:
            AuthenticationError: If the token is invalid or the user is gone
        """
        username = decode_access_token(token, self._auth_settings)
        user = await self._storage.get_user_by_username(username)
        if user is None:
            raise AuthenticationError("Could not validate credentials")
        return user


class LedgerFlow:
    """
    Orchestrates recording and listing ledger records.

    The owner of a new record is always the authenticated user, never a
    value from the request body.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()

    async def record_income(
        self,
        user: User,
        payload: IncomeCreate,
        correlation_id: Optional[UUID] = None,
    ) -> Income:
        try:
            income = await self._storage.create_income(user.id, payload)
        except StorageError as e:
            await _audit_storage_failure(
                self._audit_logger, "create_income", e, user, correlation_id
            )
            raise

        await self._audit_logger.log_record_created(
            record_type="income",
            record_id=income.id,
            user_id=user.id,
            amount=str(income.amount),
            correlation_id=correlation_id,
        )
        return income

    async def record_expense(
        self,
        user: User,
        payload: ExpenseCreate,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        try:
            expense = await self._storage.create_expense(user.id, payload)
        except StorageError as e:
            await _audit_storage_failure(
                self._audit_logger, "create_expense", e, user, correlation_id
            )
            raise

        await self._audit_logger.log_record_created(
            record_type="expense",
            record_id=expense.id,
            user_id=user.id,
            amount=str(expense.amount),
            correlation_id=correlation_id,
        )
        return expense

    async def record_asset(
        self,
        user: User,
        payload: AssetCreate,
        correlation_id: Optional[UUID] = None,
    ) -> Asset:
        try:
            asset = await self._storage.create_asset(user.id, payload)
        except StorageError as e:
            await _audit_storage_failure(
                self._audit_logger, "create_asset", e, user, correlation_id
            )
            raise

        await self._audit_logger.log_record_created(
            record_type="asset",
            record_id=asset.id,
            user_id=user.id,
            amount=str(asset.value),
            correlation_id=correlation_id,
        )
        return asset

    async def record_debt(
        self,
        user: User,
        payload: DebtCreate,
        correlation_id: Optional[UUID] = None,
    ) -> Debt:
        try:
            debt = await self._storage.create_debt(user.id, payload)
        except StorageError as e:
            await _audit_storage_failure(
                self._audit_logger, "create_debt", e, user, correlation_id
            )
            raise

        await self._audit_logger.log_record_created(
            record_type="debt",
            record_id=debt.id,
            user_id=user.id,
            amount=str(debt.balance),
            correlation_id=correlation_id,
        )
        return debt

    async def _fetch(self, operation: str, user: User, correlation_id: Optional[UUID]):
        """Run one storage read for the user, auditing a failure before re-raising."""
        try:
            return await getattr(self._storage, operation)(user.id)
        except StorageError as e:
            await _audit_storage_failure(
                self._audit_logger, operation, e, user, correlation_id
            )
            raise

    async def list_incomes(
        self, user: User, correlation_id: Optional[UUID] = None
    ) -> list[Income]:
        return await self._fetch("get_incomes", user, correlation_id)

    async def list_expenses(
        self, user: User, correlation_id: Optional[UUID] = None
    ) -> list[Expense]:
        return await self._fetch("get_expenses", user, correlation_id)

    async def list_assets(
        self, user: User, correlation_id: Optional[UUID] = None
    ) -> list[Asset]:
        return await self._fetch("get_assets", user, correlation_id)

    async def list_debts(
        self, user: User, correlation_id: Optional[UUID] = None
    ) -> list[Debt]:
        return await self._fetch("get_debts", user, correlation_id)


class DashboardFlow:
    """
    Orchestrates the read side.

    Flow:
    1. Fetch the user's records from storage
    2. Reduce them with the aggregation functions
    3. Audit the computation

    Storage errors are audited and then propagate; aggregation itself
    cannot fail on stored data.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        app_settings: Optional[AppSettings] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._app_settings = app_settings or get_settings().app

    @staticmethod
    def _resolve_month(year: Optional[int], month: Optional[int]) -> tuple[int, int]:
        today = date.today()
        return year or today.year, month or today.month

    async def get_dashboard(
        self,
        user: User,
        year: Optional[int] = None,
        month: Optional[int] = None,
        limit: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> DashboardSummary:
        """
        Build the dashboard summary for one month (default: the current one).
        """
        year, month = self._resolve_month(year, month)
        limit = limit or self._app_settings.recent_transactions_limit

        try:
            incomes = await self._storage.get_incomes(user.id)
            expenses = await self._storage.get_expenses(user.id)
            assets = await self._storage.get_assets(user.id)
            debts = await self._storage.get_debts(user.id)
        except StorageError as e:
            await _audit_storage_failure(
                self._audit_logger, "get_dashboard", e, user, correlation_id
            )
            raise

        summary = build_dashboard(
            incomes=incomes,
            expenses=expenses,
            assets=assets,
            debts=debts,
            year=year,
            month=month,
            limit=limit,
        )

        await self._audit_logger.log_dashboard_computed(
            user_id=user.id,
            year=year,
            month=month,
            transaction_count=len(incomes) + len(expenses),
            correlation_id=correlation_id,
        )
        return summary

    async def get_cashflow(
        self,
        user: User,
        months: Optional[int] = None,
        end_year: Optional[int] = None,
        end_month: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[MonthlyCashflow]:
        """Monthly income vs expenses, oldest month first."""
        end_year, end_month = self._resolve_month(end_year, end_month)
        months = months or self._app_settings.cashflow_months

        try:
            incomes = await self._storage.get_incomes(user.id)
            expenses = await self._storage.get_expenses(user.id)
        except StorageError as e:
            await _audit_storage_failure(
                self._audit_logger, "get_cashflow", e, user, correlation_id
            )
            raise

        series = monthly_cashflow(incomes, expenses, end_year, end_month, months)

        await self._audit_logger.log_report_computed(
            user_id=user.id,
            report="cashflow",
            correlation_id=correlation_id,
        )
        return series

    async def get_category_report(
        self,
        user: User,
        year: Optional[int] = None,
        month: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[CategoryShare]:
        """Spending per category for one month with each category's share."""
        year, month = self._resolve_month(year, month)

        try:
            breakdown = await self._storage.get_expenses_by_category(user.id, year, month)
        except StorageError as e:
            await _audit_storage_failure(
                self._audit_logger, "get_category_report", e, user, correlation_id
            )
            raise

        await self._audit_logger.log_report_computed(
            user_id=user.id,
            report="categories",
            correlation_id=correlation_id,
        )
        return category_percentages(breakdown)


def create_app_components(
    settings: Optional[Settings] = None,
    storage: Optional[LedgerStorageInterface] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> tuple[AccessFlow, LedgerFlow, DashboardFlow]:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use. Defaults to get_settings().
        storage: Storage to use. Defaults to the backend named in
                STORAGE_BACKEND (see create_storage).
        audit_logger: Shared audit logger. Defaults to one that keeps the
                last 100 events when DEBUG_MODE is on.

    Returns:
        (access_flow, ledger_flow, dashboard_flow)
    """
    settings = settings or get_settings()
    storage = storage or create_storage(settings.app, settings.database)
    app_settings = settings.app
    audit_logger = audit_logger or AuditLogger(
        keep_recent=100 if app_settings.debug_mode else 0
    )

    access_flow = AccessFlow(storage, audit_logger=audit_logger, auth_settings=settings.auth)
    ledger_flow = LedgerFlow(storage, audit_logger=audit_logger)
    dashboard_flow = DashboardFlow(storage, audit_logger=audit_logger, app_settings=app_settings)

    return access_flow, ledger_flow, dashboard_flow
