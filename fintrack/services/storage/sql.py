"""
SQL Storage Implementation

DESIGN DECISION: The persistent backend is a relational database accessed
through the SQLAlchemy ORM. SQLite is the default for local use; any
SQLAlchemy URL (PostgreSQL in production) works unchanged.

TRADEOFFS:
- Sessions are short-lived: one per storage call, closed before returning
- Calls are synchronous inside async methods (the driver blocks briefly)
- Category totals are reduced in Python so the grouping order is the
  same as the in-memory backend (first-seen order)
"""

from typing import Optional

from sqlalchemy import (
    Column,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    create_engine,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from fintrack.aggregation import category_breakdown, month_bounds
from fintrack.config import DatabaseSettings
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
    StorageConnectionError,
    StorageError,
)


Base = declarative_base()


# =============================================================================
# TABLES
# =============================================================================

class UserRow(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)


class IncomeRow(Base):
    __tablename__ = "incomes"
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    description = Column(String(200), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    date = Column(Date, index=True, nullable=False)
    notes = Column(Text, nullable=True)


class ExpenseRow(Base):
    __tablename__ = "expenses"
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    description = Column(String(200), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    date = Column(Date, index=True, nullable=False)
    category = Column(String(100), nullable=False)
    notes = Column(Text, nullable=True)


class AssetRow(Base):
    __tablename__ = "assets"
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    name = Column(String(200), nullable=False)
    value = Column(Numeric(10, 2), nullable=False)
    date = Column(Date, nullable=False)


class DebtRow(Base):
    __tablename__ = "debts"
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    name = Column(String(200), nullable=False)
    balance = Column(Numeric(10, 2), nullable=False)
    date = Column(Date, nullable=False)


# =============================================================================
# CLIENT
# =============================================================================

class SqlClient:
    """
    Low-level database wrapper.

    Owns the engine and session factory and creates the schema on connect.
    """

    def __init__(self, settings: Optional[DatabaseSettings] = None):
        self._settings = settings or DatabaseSettings()
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @retry(
        retry=retry_if_exception_type(StorageConnectionError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> Engine:
        """
        Create the engine and make sure every table exists.

        Safe to call more than once.
        """
        if self._engine is None:
            connect_args = {"check_same_thread": False} if self._settings.is_sqlite else {}
            engine = create_engine(
                self._settings.url,
                echo=self._settings.echo,
                connect_args=connect_args,
            )
            try:
                Base.metadata.create_all(bind=engine)
            except OperationalError as e:
                engine.dispose()
                raise StorageConnectionError(f"Failed to connect to database: {e}")

            self._engine = engine
            self._session_factory = sessionmaker(
                autocommit=False,
                autoflush=False,
                bind=engine,
            )

        return self._engine

    def session(self) -> Session:
        if self._session_factory is None:
            self.connect()
        return self._session_factory()

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None


# =============================================================================
# STORAGE
# =============================================================================

class SqlLedgerStorage(LedgerStorageInterface):
    """
    SQLAlchemy implementation of ledger storage.

    Rows are converted to pydantic models before leaving this class,
    so no ORM object ever escapes a closed session.
    """

    def __init__(self, client: Optional[SqlClient] = None):
        self._client = client or SqlClient()

    # Conversions

    @staticmethod
    def _row_to_user(row: UserRow) -> User:
        return User(
            id=row.id,
            username=row.username,
            password_hash=row.password,
            first_name=row.first_name,
            last_name=row.last_name,
        )

    @staticmethod
    def _row_to_income(row: IncomeRow) -> Income:
        return Income(
            id=row.id,
            user_id=row.user_id,
            description=row.description,
            amount=row.amount,
            date=row.date,
            notes=row.notes,
        )

    @staticmethod
    def _row_to_expense(row: ExpenseRow) -> Expense:
        return Expense(
            id=row.id,
            user_id=row.user_id,
            description=row.description,
            amount=row.amount,
            date=row.date,
            category=row.category,
            notes=row.notes,
        )

    @staticmethod
    def _row_to_asset(row: AssetRow) -> Asset:
        return Asset(
            id=row.id,
            user_id=row.user_id,
            name=row.name,
            value=row.value,
            date=row.date,
        )

    @staticmethod
    def _row_to_debt(row: DebtRow) -> Debt:
        return Debt(
            id=row.id,
            user_id=row.user_id,
            name=row.name,
            balance=row.balance,
            date=row.date,
        )

    def _insert(self, session: Session, user_id: int, row) -> None:
        """Add a ledger row after checking its owner exists."""
        if session.get(UserRow, user_id) is None:
            raise NotFoundError(f"User not found: {user_id}")
        session.add(row)
        session.commit()
        session.refresh(row)

    # Users

    async def get_user(self, user_id: int) -> Optional[User]:
        try:
            with self._client.session() as session:
                row = session.get(UserRow, user_id)
                return self._row_to_user(row) if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to get user: {e}")

    async def get_user_by_username(self, username: str) -> Optional[User]:
        try:
            with self._client.session() as session:
                row = (
                    session.query(UserRow)
                    .filter(UserRow.username == username)
                    .first()
                )
                return self._row_to_user(row) if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to get user: {e}")

    async def create_user(
        self,
        username: str,
        password_hash: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> User:
        try:
            with self._client.session() as session:
                row = UserRow(
                    username=username,
                    password=password_hash,
                    first_name=first_name,
                    last_name=last_name,
                )
                session.add(row)
                session.commit()
                session.refresh(row)
                return self._row_to_user(row)
        except IntegrityError:
            raise DuplicateError(f"Username already exists: {username}")
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to create user: {e}")

    # Incomes

    async def get_incomes(self, user_id: int) -> list[Income]:
        try:
            with self._client.session() as session:
                rows = (
                    session.query(IncomeRow)
                    .filter(IncomeRow.user_id == user_id)
                    .order_by(IncomeRow.date.desc(), IncomeRow.id)
                    .all()
                )
                return [self._row_to_income(row) for row in rows]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list incomes: {e}")

    async def get_incomes_by_month(
        self,
        user_id: int,
        year: int,
        month: int,
    ) -> list[Income]:
        start, end = month_bounds(year, month)
        try:
            with self._client.session() as session:
                rows = (
                    session.query(IncomeRow)
                    .filter(
                        IncomeRow.user_id == user_id,
                        IncomeRow.date >= start,
                        IncomeRow.date < end,
                    )
                    .order_by(IncomeRow.id)
                    .all()
                )
                return [self._row_to_income(row) for row in rows]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list incomes: {e}")

    async def create_income(self, user_id: int, income: IncomeCreate) -> Income:
        try:
            with self._client.session() as session:
                row = IncomeRow(user_id=user_id, **income.model_dump())
                self._insert(session, user_id, row)
                return self._row_to_income(row)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to save income: {e}")

    # Expenses

    async def get_expenses(self, user_id: int) -> list[Expense]:
        try:
            with self._client.session() as session:
                rows = (
                    session.query(ExpenseRow)
                    .filter(ExpenseRow.user_id == user_id)
                    .order_by(ExpenseRow.date.desc(), ExpenseRow.id)
                    .all()
                )
                return [self._row_to_expense(row) for row in rows]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list expenses: {e}")

    async def get_expenses_by_month(
        self,
        user_id: int,
        year: int,
        month: int,
    ) -> list[Expense]:
        start, end = month_bounds(year, month)
        try:
            with self._client.session() as session:
                rows = (
                    session.query(ExpenseRow)
                    .filter(
                        ExpenseRow.user_id == user_id,
                        ExpenseRow.date >= start,
                        ExpenseRow.date < end,
                    )
                    .order_by(ExpenseRow.id)
                    .all()
                )
                return [self._row_to_expense(row) for row in rows]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list expenses: {e}")

    async def get_expenses_by_category(
        self,
        user_id: int,
        year: int,
        month: int,
    ) -> list[CategoryTotal]:
        expenses = await self.get_expenses_by_month(user_id, year, month)
        return category_breakdown(expenses)

    async def create_expense(self, user_id: int, expense: ExpenseCreate) -> Expense:
        try:
            with self._client.session() as session:
                row = ExpenseRow(user_id=user_id, **expense.model_dump())
                self._insert(session, user_id, row)
                return self._row_to_expense(row)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to save expense: {e}")

    # Assets and debts

    async def get_assets(self, user_id: int) -> list[Asset]:
        try:
            with self._client.session() as session:
                rows = (
                    session.query(AssetRow)
                    .filter(AssetRow.user_id == user_id)
                    .order_by(AssetRow.id)
                    .all()
                )
                return [self._row_to_asset(row) for row in rows]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list assets: {e}")

    async def create_asset(self, user_id: int, asset: AssetCreate) -> Asset:
        try:
            with self._client.session() as session:
                row = AssetRow(user_id=user_id, **asset.model_dump())
                self._insert(session, user_id, row)
                return self._row_to_asset(row)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to save asset: {e}")

    async def get_debts(self, user_id: int) -> list[Debt]:
        try:
            with self._client.session() as session:
                rows = (
                    session.query(DebtRow)
                    .filter(DebtRow.user_id == user_id)
                    .order_by(DebtRow.id)
                    .all()
                )
                return [self._row_to_debt(row) for row in rows]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list debts: {e}")

    async def create_debt(self, user_id: int, debt: DebtCreate) -> Debt:
        try:
            with self._client.session() as session:
                row = DebtRow(user_id=user_id, **debt.model_dump())
                self._insert(session, user_id, row)
                return self._row_to_debt(row)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to save debt: {e}")
