"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for ledger storage.
This allows us to:
1. Run against a relational database in production
2. Use in-memory storage for tests and demos
3. Keep aggregation decoupled from storage implementation

The backend is chosen once at process startup (see create_storage).

Every read takes the owning user's id. There is no method that returns
records across users.
"""

from abc import ABC, abstractmethod
from typing import Optional

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


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Any storage implementation (in-memory, SQL) must implement these methods.
    Records are append-only: there are no update or delete operations.
    """

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[User]:
        """
        Retrieve a user by id.

        Returns:
            The user if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[User]:
        """
        Retrieve a user by username (exact match).

        Returns:
            The user if found, None otherwise
        """
        pass

    @abstractmethod
    async def create_user(
        self,
        username: str,
        password_hash: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> User:
        """
        Create a user.

        Raises:
            DuplicateError: If the username is already taken
            StorageError: If the write fails
        """
        pass

    # -------------------------------------------------------------------------
    # Incomes
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_incomes(self, user_id: int) -> list[Income]:
        """All incomes of a user, newest first."""
        pass

    @abstractmethod
    async def get_incomes_by_month(
        self,
        user_id: int,
        year: int,
        month: int,
    ) -> list[Income]:
        """Incomes of a user dated inside one calendar month."""
        pass

    @abstractmethod
    async def create_income(self, user_id: int, income: IncomeCreate) -> Income:
        """
        Record an income for a user.

        Raises:
            NotFoundError: If the user doesn't exist
            StorageError: If the write fails
        """
        pass

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_expenses(self, user_id: int) -> list[Expense]:
        """All expenses of a user, newest first."""
        pass

    @abstractmethod
    async def get_expenses_by_month(
        self,
        user_id: int,
        year: int,
        month: int,
    ) -> list[Expense]:
        """Expenses of a user dated inside one calendar month."""
        pass

    @abstractmethod
    async def get_expenses_by_category(
        self,
        user_id: int,
        year: int,
        month: int,
    ) -> list[CategoryTotal]:
        """
        Expense totals per category for one month.

        Returns:
            One entry per category, in the order categories were first recorded
        """
        pass

    @abstractmethod
    async def create_expense(self, user_id: int, expense: ExpenseCreate) -> Expense:
        """
        Record an expense for a user.

        Raises:
            NotFoundError: If the user doesn't exist
            StorageError: If the write fails
        """
        pass

    # -------------------------------------------------------------------------
    # Assets and debts
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_assets(self, user_id: int) -> list[Asset]:
        pass

    @abstractmethod
    async def create_asset(self, user_id: int, asset: AssetCreate) -> Asset:
        pass

    @abstractmethod
    async def get_debts(self, user_id: int) -> list[Debt]:
        pass

    @abstractmethod
    async def create_debt(self, user_id: int, debt: DebtCreate) -> Debt:
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
