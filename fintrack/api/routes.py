from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from fintrack.api.dependencies import (
    get_access_flow,
    get_correlation_id,
    get_current_user,
    get_dashboard_flow,
    get_ledger_flow,
)
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
    Token,
    User,
    UserCreate,
    UserLogin,
    UserPublic,
)
from fintrack.orchestrator import AccessFlow, DashboardFlow, LedgerFlow
from fintrack.services.auth import AuthenticationError
from fintrack.services.storage import DuplicateError, StorageError


auth_router = APIRouter()
router = APIRouter()


def _storage_failure(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=message,
    )


# =============================================================================
# ACCESS
# =============================================================================

@auth_router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(
    payload: UserCreate,
    access_flow: AccessFlow = Depends(get_access_flow),
    correlation_id: UUID = Depends(get_correlation_id),
):
    try:
        _, token = await access_flow.register(payload, correlation_id=correlation_id)
    except DuplicateError:
        raise HTTPException(status_code=400, detail="Username already registered")
    except StorageError:
        raise _storage_failure("Error creating user")
    return Token(access_token=token)


@auth_router.post("/login", response_model=Token)
async def login(
    payload: UserLogin,
    access_flow: AccessFlow = Depends(get_access_flow),
    correlation_id: UUID = Depends(get_correlation_id),
):
    try:
        _, token = await access_flow.login(
            payload.username,
            payload.password,
            correlation_id=correlation_id,
        )
    except AuthenticationError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except StorageError:
        raise _storage_failure("Error fetching user")
    return Token(access_token=token)


@auth_router.get("/user", response_model=UserPublic)
async def read_current_user(current_user: User = Depends(get_current_user)):
    return UserPublic.from_user(current_user)


# =============================================================================
# LEDGER
# =============================================================================

@router.get("/incomes", response_model=list[Income])
async def get_incomes(
    current_user: User = Depends(get_current_user),
    ledger_flow: LedgerFlow = Depends(get_ledger_flow),
    correlation_id: UUID = Depends(get_correlation_id),
):
    try:
        return await ledger_flow.list_incomes(current_user, correlation_id)
    except StorageError:
        raise _storage_failure("Error fetching incomes")


@router.post("/incomes", response_model=Income, status_code=status.HTTP_201_CREATED)
async def create_income(
    payload: IncomeCreate,
    current_user: User = Depends(get_current_user),
    ledger_flow: LedgerFlow = Depends(get_ledger_flow),
    correlation_id: UUID = Depends(get_correlation_id),
):
    try:
        return await ledger_flow.record_income(current_user, payload, correlation_id)
    except StorageError:
        raise _storage_failure("Error saving income")


@router.get("/expenses", response_model=list[Expense])
async def get_expenses(
    current_user: User = Depends(get_current_user),
    ledger_flow: LedgerFlow = Depends(get_ledger_flow),
    correlation_id: UUID = Depends(get_correlation_id),
):
    try:
        return await ledger_flow.list_expenses(current_user, correlation_id)
    except StorageError:
        raise _storage_failure("Error fetching expenses")


@router.post("/expenses", response_model=Expense, status_code=status.HTTP_201_CREATED)
async def create_expense(
    payload: ExpenseCreate,
    current_user: User = Depends(get_current_user),
    ledger_flow: LedgerFlow = Depends(get_ledger_flow),
    correlation_id: UUID = Depends(get_correlation_id),
):
    try:
        return await ledger_flow.record_expense(current_user, payload, correlation_id)
    except StorageError:
        raise _storage_failure("Error saving expense")


@router.get("/assets", response_model=list[Asset])
async def get_assets(
    current_user: User = Depends(get_current_user),
    ledger_flow: LedgerFlow = Depends(get_ledger_flow),
    correlation_id: UUID = Depends(get_correlation_id),
):
    try:
        return await ledger_flow.list_assets(current_user, correlation_id)
    except StorageError:
        raise _storage_failure("Error fetching assets")


@router.post("/assets", response_model=Asset, status_code=status.HTTP_201_CREATED)
async def create_asset(
    payload: AssetCreate,
    current_user: User = Depends(get_current_user),
    ledger_flow: LedgerFlow = Depends(get_ledger_flow),
    correlation_id: UUID = Depends(get_correlation_id),
):
    try:
        return await ledger_flow.record_asset(current_user, payload, correlation_id)
    except StorageError:
        raise _storage_failure("Error saving asset")


@router.get("/debts", response_model=list[Debt])
async def get_debts(
    current_user: User = Depends(get_current_user),
    ledger_flow: LedgerFlow = Depends(get_ledger_flow),
    correlation_id: UUID = Depends(get_correlation_id),
):
    try:
        return await ledger_flow.list_debts(current_user, correlation_id)
    except StorageError:
        raise _storage_failure("Error fetching debts")


@router.post("/debts", response_model=Debt, status_code=status.HTTP_201_CREATED)
async def create_debt(
    payload: DebtCreate,
    current_user: User = Depends(get_current_user),
    ledger_flow: LedgerFlow = Depends(get_ledger_flow),
    correlation_id: UUID = Depends(get_correlation_id),
):
    try:
        return await ledger_flow.record_debt(current_user, payload, correlation_id)
    except StorageError:
        raise _storage_failure("Error saving debt")


# =============================================================================
# DASHBOARD AND REPORTS
# =============================================================================

@router.get("/dashboard", response_model=DashboardSummary)
async def get_dashboard(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    limit: Optional[int] = Query(None, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    dashboard_flow: DashboardFlow = Depends(get_dashboard_flow),
    correlation_id: UUID = Depends(get_correlation_id),
):
    """
    Net worth, this month's income and expenses, savings rate,
    spending by category and the most recent transactions.
    """
    try:
        return await dashboard_flow.get_dashboard(
            current_user,
            year=year,
            month=month,
            limit=limit,
            correlation_id=correlation_id,
        )
    except StorageError:
        raise _storage_failure("Error fetching dashboard data")


@router.get("/reports/cashflow", response_model=list[MonthlyCashflow])
async def get_cashflow_report(
    months: Optional[int] = Query(None, ge=1, le=24),
    year: Optional[int] = Query(None, ge=1900, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    current_user: User = Depends(get_current_user),
    dashboard_flow: DashboardFlow = Depends(get_dashboard_flow),
    correlation_id: UUID = Depends(get_correlation_id),
):
    """Income vs expenses per month, ending with year/month (default: now)."""
    try:
        return await dashboard_flow.get_cashflow(
            current_user,
            months=months,
            end_year=year,
            end_month=month,
            correlation_id=correlation_id,
        )
    except StorageError:
        raise _storage_failure("Error fetching cashflow report")


@router.get("/reports/categories", response_model=list[CategoryShare])
async def get_category_report(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    current_user: User = Depends(get_current_user),
    dashboard_flow: DashboardFlow = Depends(get_dashboard_flow),
    correlation_id: UUID = Depends(get_correlation_id),
):
    try:
        return await dashboard_flow.get_category_report(
            current_user,
            year=year,
            month=month,
            correlation_id=correlation_id,
        )
    except StorageError:
        raise _storage_failure("Error fetching category report")
