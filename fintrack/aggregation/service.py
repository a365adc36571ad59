"""
Ledger Aggregation

DESIGN DECISION: Aggregation is DETERMINISTIC and side-effect free.
Every function here works on records that were already fetched from
storage and already scoped to one user. Nothing in this module touches
storage, the clock or the network.

All sums are Decimal. Empty inputs produce zero totals, never errors.
Month filters use the half-open interval [first of month, first of next month)
so a record dated on a boundary is counted in exactly one month.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Protocol, Sequence

from fintrack.models.ledger import (
    INCOME_CATEGORY,
    Asset,
    CategoryShare,
    CategoryTotal,
    DashboardSummary,
    Debt,
    Expense,
    Income,
    MonthlyCashflow,
    Transaction,
    TransactionType,
)


ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


class DatedAmount(Protocol):
    """Anything with an amount and a date (incomes and expenses)."""
    amount: Decimal
    date: date


# =============================================================================
# MONTH ARITHMETIC
# =============================================================================

def month_bounds(year: int, month: int) -> tuple[date, date]:
    """
    Return the half-open interval covering a calendar month.

    >>> month_bounds(2024, 12)
    (datetime.date(2024, 12, 1), datetime.date(2025, 1, 1))
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    start = date(year, month, 1)
    if month == 12:
        end = date(year + 1, 1, 1)
    else:
        end = date(year, month + 1, 1)
    return start, end


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move a (year, month) pair by delta months (negative goes back)."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def records_in_month(records: Iterable, year: int, month: int) -> list:
    """Keep the records dated inside the given month, preserving order."""
    start, end = month_bounds(year, month)
    return [r for r in records if start <= r.date < end]


# =============================================================================
# CORE AGGREGATIONS
# =============================================================================

def monthly_total(records: Iterable[DatedAmount], year: int, month: int) -> Decimal:
    """Sum the amounts of the records dated inside the given month."""
    start, end = month_bounds(year, month)
    return sum(
        (r.amount for r in records if start <= r.date < end),
        ZERO,
    )


def category_breakdown(expenses: Iterable[Expense]) -> list[CategoryTotal]:
    """
    Group expenses by category and sum each group.

    Categories are compared exactly as stored (case-sensitive). Groups come
    back in the order they were first seen, not sorted.
    """
    totals: dict[str, Decimal] = {}
    for expense in expenses:
        totals[expense.category] = totals.get(expense.category, ZERO) + expense.amount

    return [
        CategoryTotal(category=category, total=total)
        for category, total in totals.items()
    ]


def net_worth(assets: Iterable[Asset], debts: Iterable[Debt]) -> Decimal:
    total_assets = sum((a.value for a in assets), ZERO)
    total_debts = sum((d.balance for d in debts), ZERO)
    return total_assets - total_debts


def savings_rate(income: Decimal, expenses: Decimal) -> Decimal:
    """
    Percentage of income not spent, rounded to cents.

    Zero income gives a rate of 0 rather than a division error.
    Spending more than you earn gives a negative rate.
    """
    if income <= ZERO:
        return ZERO
    rate = (income - expenses) / income * HUNDRED
    return rate.quantize(CENT, rounding=ROUND_HALF_UP)


def to_transaction(record) -> Transaction:
    """Convert an Income or Expense into the unified feed shape."""
    if isinstance(record, Expense):
        return Transaction(
            id=f"expense-{record.id}",
            type=TransactionType.EXPENSE,
            description=record.description,
            amount=record.amount,
            date=record.date,
            category=record.category,
            notes=record.notes,
        )
    return Transaction(
        id=f"income-{record.id}",
        type=TransactionType.INCOME,
        description=record.description,
        amount=record.amount,
        date=record.date,
        category=INCOME_CATEGORY,
        notes=record.notes,
    )


def recent_transactions(
    incomes: Iterable[Income],
    expenses: Iterable[Expense],
    limit: int = 10,
) -> list[Transaction]:
    """
    Merge incomes and expenses, newest first, and keep the first `limit`.

    The sort is stable: on equal dates incomes come before expenses, and
    records keep the order they were given in.
    """
    if limit < 0:
        raise ValueError(f"Limit cannot be negative, got {limit}")

    merged = [to_transaction(i) for i in incomes]
    merged.extend(to_transaction(e) for e in expenses)
    merged.sort(key=lambda t: t.date, reverse=True)
    return merged[:limit]


# =============================================================================
# REPORTS
# =============================================================================

def category_percentages(breakdown: Sequence[CategoryTotal]) -> list[CategoryShare]:
    """Attach each category's share of total spending, in percent."""
    grand_total = sum((c.total for c in breakdown), ZERO)

    shares = []
    for item in breakdown:
        if grand_total > ZERO:
            percentage = (item.total / grand_total * HUNDRED).quantize(
                CENT, rounding=ROUND_HALF_UP
            )
        else:
            percentage = ZERO
        shares.append(CategoryShare(
            category=item.category,
            total=item.total,
            percentage=percentage,
        ))
    return shares


def monthly_cashflow(
    incomes: Sequence[Income],
    expenses: Sequence[Expense],
    end_year: int,
    end_month: int,
    months: int = 6,
) -> list[MonthlyCashflow]:
    """
    Income, expenses and savings for the `months` calendar months ending
    with end_year/end_month, oldest first.
    """
    if months < 1:
        raise ValueError(f"Need at least one month, got {months}")

    series = []
    for offset in range(months - 1, -1, -1):
        year, month = shift_month(end_year, end_month, -offset)
        income = monthly_total(incomes, year, month)
        spent = monthly_total(expenses, year, month)
        series.append(MonthlyCashflow(
            year=year,
            month=month,
            label=f"{year:04d}-{month:02d}",
            income=income,
            expenses=spent,
            savings=income - spent,
        ))
    return series


def build_dashboard(
    incomes: Sequence[Income],
    expenses: Sequence[Expense],
    assets: Sequence[Asset],
    debts: Sequence[Debt],
    year: int,
    month: int,
    limit: Optional[int] = 10,
) -> DashboardSummary:
    """
    Compute the full dashboard for one month.

    Net worth and the transactions feed use every record; income,
    expenses, savings rate and the category breakdown use only the month.
    """
    income_total = monthly_total(incomes, year, month)
    expense_total = monthly_total(expenses, year, month)

    return DashboardSummary(
        net_worth=net_worth(assets, debts),
        monthly_income=income_total,
        monthly_expenses=expense_total,
        savings_rate=savings_rate(income_total, expense_total),
        expenses_by_category=category_breakdown(
            records_in_month(expenses, year, month)
        ),
        recent_transactions=recent_transactions(
            incomes,
            expenses,
            limit=limit if limit is not None else len(incomes) + len(expenses),
        ),
    )
