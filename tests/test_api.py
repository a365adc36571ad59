"""
Tests for the HTTP API

Each test gets a fresh app over in-memory storage and talks to it through
FastAPI's TestClient.
"""

import pytest
from fastapi.testclient import TestClient

from fintrack.api import create_app
from fintrack.config import Settings
from fintrack.services.storage import InMemoryLedgerStorage


class BrokenStorage(InMemoryLedgerStorage):
    """Storage that fails with an unexpected error on reads."""

    async def get_incomes(self, user_id):
        raise RuntimeError("unexpected")


@pytest.fixture
def client():
    return TestClient(create_app(settings=Settings(), storage=InMemoryLedgerStorage()))


def register(client, username="alice", password="secret1") -> dict:
    response = client.post("/api/register", json={"username": username, "password": password})
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


class TestAccessEndpoints:
    """Tests for register, login and the current user."""

    def test_health(self, client):
        """Test the root message."""
        response = client.get("/")
        assert response.status_code == 200
        assert "message" in response.json()

    def test_register_returns_token(self, client):
        """Test registration issues a bearer token."""
        response = client.post(
            "/api/register",
            json={"username": "alice", "password": "secret1", "firstName": "Alice"},
        )
        assert response.status_code == 201
        assert response.json()["token_type"] == "bearer"

    def test_register_duplicate(self, client):
        """Test a taken username gets 400 with a message."""
        register(client)
        response = client.post("/api/register", json={"username": "alice", "password": "secret1"})
        assert response.status_code == 400
        assert response.json() == {"message": "Username already registered"}

    def test_register_invalid_body(self, client):
        """Test validation errors use the message shape."""
        response = client.post("/api/register", json={"username": "al", "password": "x"})
        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Invalid request data"
        assert len(body["errors"]) == 2

    def test_register_multibyte_password_too_long(self, client):
        """Test a password over 72 bytes is a 400, not a server error."""
        response = client.post("/api/register", json={"username": "alice", "password": "é" * 40})
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid request data"

    def test_register_multibyte_password(self, client):
        """Test a multibyte password within 72 bytes registers and logs in."""
        register(client, password="é" * 36)
        response = client.post("/api/login", json={"username": "alice", "password": "é" * 36})
        assert response.status_code == 200

    def test_login(self, client):
        """Test a correct login issues a token."""
        register(client)
        response = client.post("/api/login", json={"username": "alice", "password": "secret1"})
        assert response.status_code == 200
        assert response.json()["access_token"]

    def test_login_wrong_password(self, client):
        """Test a wrong password gets 401."""
        register(client)
        response = client.post("/api/login", json={"username": "alice", "password": "nope-nope"})
        assert response.status_code == 401
        assert response.json() == {"message": "Invalid credentials"}

    def test_current_user(self, client):
        """Test /user returns the profile without the hash."""
        headers = register(client)
        response = client.get("/api/user", headers=headers)
        assert response.status_code == 200
        body = response.json()
        assert body["username"] == "alice"
        assert "passwordHash" not in body

    def test_missing_token(self, client):
        """Test protected routes need a token."""
        response = client.get("/api/dashboard")
        assert response.status_code == 401
        assert "message" in response.json()

    def test_bad_token(self, client):
        """Test a forged token is rejected."""
        response = client.get("/api/incomes", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401


class TestLedgerEndpoints:
    """Tests for creating and listing records."""

    def test_create_income(self, client):
        """Test the stored income comes back in camelCase with a numeric amount."""
        headers = register(client)
        response = client.post(
            "/api/incomes",
            json={"description": "Salary", "amount": "5000.00", "date": "2024-01-15"},
            headers=headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["amount"] == 5000.0
        assert body["userId"] == 1
        assert body["date"] == "2024-01-15"

    def test_negative_amount_rejected(self, client):
        """Test that negative amounts never reach storage."""
        headers = register(client)
        response = client.post(
            "/api/expenses",
            json={"description": "x", "amount": -5, "date": "2024-01-15", "category": "food"},
            headers=headers,
        )
        assert response.status_code == 400
        assert client.get("/api/expenses", headers=headers).json() == []

    def test_owner_comes_from_token(self, client):
        """Test that a userId in the body cannot assign the record to someone else."""
        alice = register(client, "alice")
        bob = register(client, "bob")
        client.post(
            "/api/expenses",
            json={
                "description": "Rent",
                "amount": 900,
                "date": "2024-01-01",
                "category": "housing",
                "userId": 2,
            },
            headers=alice,
        )
        assert len(client.get("/api/expenses", headers=alice).json()) == 1
        assert client.get("/api/expenses", headers=bob).json() == []

    def test_assets_and_debts(self, client):
        """Test balance records round-trip over HTTP."""
        headers = register(client)
        client.post(
            "/api/assets",
            json={"name": "Savings", "value": 1000, "date": "2024-01-01"},
            headers=headers,
        )
        client.post(
            "/api/debts",
            json={"name": "Card", "balance": "250.50", "date": "2024-01-01"},
            headers=headers,
        )
        assert client.get("/api/assets", headers=headers).json()[0]["value"] == 1000.0
        assert client.get("/api/debts", headers=headers).json()[0]["balance"] == 250.5


class TestDashboardEndpoints:
    """Tests for the dashboard and reports."""

    @pytest.fixture
    def headers(self, client):
        headers = register(client)
        client.post(
            "/api/incomes",
            json={"description": "Salary", "amount": 5000, "date": "2024-01-15"},
            headers=headers,
        )
        client.post(
            "/api/expenses",
            json={"description": "Groceries", "amount": 3200, "date": "2024-01-20", "category": "food"},
            headers=headers,
        )
        return headers

    def test_dashboard(self, client, headers):
        """Test the January 2024 example over HTTP."""
        response = client.get("/api/dashboard?year=2024&month=1", headers=headers)
        assert response.status_code == 200
        body = response.json()
        assert body["savingsRate"] == 36.0
        assert body["monthlyIncome"] == 5000.0
        assert body["monthlyExpenses"] == 3200.0
        assert body["expensesByCategory"] == [{"category": "food", "total": 3200.0}]
        assert [t["id"] for t in body["recentTransactions"]] == ["expense-1", "income-1"]

    def test_dashboard_limit(self, client, headers):
        """Test the recent transactions limit parameter."""
        body = client.get("/api/dashboard?year=2024&month=1&limit=1", headers=headers).json()
        assert len(body["recentTransactions"]) == 1

    def test_dashboard_invalid_month(self, client, headers):
        """Test query validation."""
        response = client.get("/api/dashboard?year=2024&month=13", headers=headers)
        assert response.status_code == 400

    def test_dashboard_other_user_sees_nothing(self, client, headers):
        """Test that aggregates are scoped to the caller."""
        other = register(client, "bob")
        body = client.get("/api/dashboard?year=2024&month=1", headers=other).json()
        assert body["monthlyIncome"] == 0
        assert body["recentTransactions"] == []

    def test_cashflow_report(self, client, headers):
        """Test the cashflow series."""
        response = client.get("/api/reports/cashflow?months=2&year=2024&month=1", headers=headers)
        assert response.status_code == 200
        body = response.json()
        assert [m["label"] for m in body] == ["2023-12", "2024-01"]
        assert body[1]["savings"] == 1800.0

    def test_category_report(self, client, headers):
        """Test category shares."""
        body = client.get("/api/reports/categories?year=2024&month=1", headers=headers).json()
        assert body == [{"category": "food", "total": 3200.0, "percentage": 100.0}]


class TestErrorHandling:
    """Tests for unexpected failures."""

    def test_unhandled_error_returns_message(self):
        """Test that unexpected errors become a 500 with a message."""
        client = TestClient(
            create_app(settings=Settings(), storage=BrokenStorage()),
            raise_server_exceptions=False,
        )
        headers = register(client)
        response = client.get("/api/incomes", headers=headers)
        assert response.status_code == 500
        assert response.json() == {"message": "Internal server error"}
