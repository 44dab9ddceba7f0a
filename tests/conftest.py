"""Shared test fixtures for autocontext."""

from __future__ import annotations

from pathlib import Path

import pytest

from autocontext.context.models import AssemblyRequest, ReferenceSnippet
from autocontext.search.base import CodebaseContext, EmbeddingsSearchResult, RetrievalSource


def snippet(file_name: str, length: int, fill: str = "x") -> ReferenceSnippet:
    """A snippet of exactly `length` characters."""
    return ReferenceSnippet(file_name=file_name, content=fill * length)


class FakeSource(RetrievalSource):
    """Returns a fixed ranking and counts how often it was asked."""

    def __init__(self, name: str, matches: list[ReferenceSnippet] | None = None,
                 error: Exception | None = None) -> None:
        self.name = name
        self.matches = matches or []
        self.error = error
        self.calls = 0
        self.requests: list[AssemblyRequest] = []

    async def fetch(self, request: AssemblyRequest) -> list[ReferenceSnippet]:
        self.calls += 1
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return list(self.matches)


class FakeCodebase(CodebaseContext):
    """Codebase search double with canned results."""

    def __init__(self, results: list[EmbeddingsSearchResult] | None = None,
                 error: Exception | None = None) -> None:
        self.results = results or []
        self.error = error
        self.queries: list[str] = []

    async def search(self, query: str, n_results: int) -> list[EmbeddingsSearchResult]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.results[:n_results]


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """Create a temporary project directory with sample Python files."""
    (tmp_path / "main.py").write_text('''"""Main application entry point."""

from utils import helper_function, calculate_total
from models import User, Order


def main():
    """Run the main application."""
    user = User("Alice", "alice@example.com")
    order = Order(user, items=["widget", "gadget"])
    total = calculate_total(order.items)
    result = helper_function(total)
    print(f"Order total: {result}")
    return result
''')

    (tmp_path / "utils.py").write_text('''"""Utility functions."""

TAX_RATE = 0.08


def helper_function(value):
    """Apply formatting to a value."""
    return f"${value:.2f}"


def calculate_total(items):
    """Calculate total price for a list of items."""
    prices = {"widget": 9.99, "gadget": 24.99, "doohickey": 4.99}
    subtotal = sum(prices.get(item, 0) for item in items)
    tax = subtotal * TAX_RATE
    return subtotal + tax


def validate_email(email):
    """Validate an email address."""
    import re
    pattern = r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\\.[a-zA-Z0-9-.]+$"
    return bool(re.match(pattern, email))
''')

    (tmp_path / "models.py").write_text('''"""Data models."""


class User:
    """Represents a user in the system."""

    def __init__(self, name: str, email: str):
        self.name = name
        self.email = email

    def display_name(self):
        """Get the display name."""
        return self.name.title()


class Order:
    """Represents an order."""

    def __init__(self, user: User, items: list):
        self.user = user
        self.items = items

    def get_total(self):
        """Get the order total."""
        from utils import calculate_total
        return calculate_total(self.items)
''')

    api_dir = tmp_path / "api"
    api_dir.mkdir()
    (api_dir / "routes.py").write_text('''"""API routes."""

from models import User, Order


def create_order(user_id, items):
    """Create a new order."""
    user = User("Test User", "test@example.com")
    order = Order(user, items)
    return {"total": order.get_total()}
''')

    # Excluded by the default indexer config
    cache_dir = tmp_path / "__pycache__"
    cache_dir.mkdir()
    (cache_dir / "utils.cpython-312.pyc").write_text("calculate_total calculate_total")

    return tmp_path
