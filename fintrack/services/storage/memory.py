"""
In-Memory Storage Implementation

Keeps every record in process-local dicts. Used for tests, demos and
STORAGE_BACKEND=memory. Data is lost when the process exits.

Ids come from per-table counters starting at 1, the same numbering a
fresh database table would hand out.
"""

from itertools import count
from typing import Optional

from fintrack.aggregation import category_breakdown, records_in_month
from fintrack.models.ledger import (
    Asset,
    AssetCreate,
    CategoryTotal,
    Debt,
    DebtCreate,
    Expense,
    ExpenseCreate,
    Income,
    IncomeCreate,
    User,
)
from fintrack.services.storage.interface import (
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Dict-backed ledger storage."""

    def __init__(self):
        self._users: dict[int, User] = {}
        self._incomes: dict[int, Income] = {}
        self._expenses: dict[int, Expense] = {}
        self._assets: dict[int, Asset] = {}
        self._debts: dict[int, Debt] = {}

        self._user_ids = count(1)
        self._income_ids = count(1)
        self._expense_ids = count(1)
        self._asset_ids = count(1)
        self._debt_ids = count(1)

    def _require_user(self, user_id: int) -> None:
        if user_id not in self._users:
            raise NotFoundError(f"User not found: {user_id}")

    @staticmethod
    def _owned_by(table: dict, user_id: int) -> list:
        return [record for record in table.values() if record.user_id == user_id]

    @staticmethod
    def _newest_first(records: list) -> list:
        return sorted(records, key=lambda r: r.date, reverse=True)

    # Users

    async def get_user(self, user_id: int) -> Optional[User]:
        return self._users.get(user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        for user in self._users.values():
            if user.username == username:
                return user
        return None

    async def create_user(
        self,
        username: str,
        password_hash: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> User:
        if await self.get_user_by_username(username) is not None:
            raise DuplicateError(f"Username already exists: {username}")

        user = User(
            id=next(self._user_ids),
            username=username,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
        )
        self._users[user.id] = user
        return user

    # Incomes

    async def get_incomes(self, user_id: int) -> list[Income]:
        return self._newest_first(self._owned_by(self._incomes, user_id))

    async def get_incomes_by_month(
        self,
        user_id: int,
        year: int,
        month: int,
    ) -> list[Income]:
        return records_in_month(self._owned_by(self._incomes, user_id), year, month)

    async def create_income(self, user_id: int, income: IncomeCreate) -> Income:
        self._require_user(user_id)
        record = Income(
            id=next(self._income_ids),
            user_id=user_id,
            **income.model_dump(),
        )
        self._incomes[record.id] = record
        return record

    # Expenses

    async def get_expenses(self, user_id: int) -> list[Expense]:
        return self._newest_first(self._owned_by(self._expenses, user_id))

    async def get_expenses_by_month(
        self,
        user_id: int,
        year: int,
        month: int,
    ) -> list[Expense]:
        return records_in_month(self._owned_by(self._expenses, user_id), year, month)

    async def get_expenses_by_category(
        self,
        user_id: int,
        year: int,
        month: int,
    ) -> list[CategoryTotal]:
        expenses = await self.get_expenses_by_month(user_id, year, month)
        return category_breakdown(expenses)

    async def create_expense(self, user_id: int, expense: ExpenseCreate) -> Expense:
        self._require_user(user_id)
        record = Expense(
            id=next(self._expense_ids),
            user_id=user_id,
            **expense.model_dump(),
        )
        self._expenses[record.id] = record
        return record

    # Assets and debts

    async def get_assets(self, user_id: int) -> list[Asset]:
        return self._owned_by(self._assets, user_id)

    async def create_asset(self, user_id: int, asset: AssetCreate) -> Asset:
        self._require_user(user_id)
        record = Asset(
            id=next(self._asset_ids),
            user_id=user_id,
            **asset.model_dump(),
        )
        self._assets[record.id] = record
        return record

    async def get_debts(self, user_id: int) -> list[Debt]:
        return self._owned_by(self._debts, user_id)

    async def create_debt(self, user_id: int, debt: DebtCreate) -> Debt:
        self._require_user(user_id)
        record = Debt(
            id=next(self._debt_ids),
            user_id=user_id,
            **debt.model_dump(),
        )
        self._debts[record.id] = record
        return record
