"""
fintrack - Source Package

A personal-finance tracker backend: users record incomes, expenses,
assets and debts, and read aggregated dashboards.

DESIGN PRINCIPLES:
1. Every ledger query is scoped to one user
2. Aggregation is pure and deterministic
3. Storage layer is swappable
4. Every write is auditable
"""

__version__ = "1.0.0"
