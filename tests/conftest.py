"""
Shared test fixtures.
"""

import os
import sys
from pathlib import Path

# Add project root to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings require Supabase credentials at import time
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from unittest.mock import patch
from typing import Callable, Generator, Optional

from tests.factories import VENDOR_A_ID, VENDOR_B_ID, CATEGORIES

# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockAPIError(Exception):
    """Stands in for postgrest's APIError (message + PostgreSQL code)."""

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code
        super().__init__(message)


class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class _FailureRule:
    """Makes matching queries raise instead of executing."""

    def __init__(self, table, operation, error, where, times, side_effect, skip=0):
        self.table = table
        self.operation = operation
        self.error = error
        self.where = where or {}
        self.times = times
        self.side_effect = side_effect
        self.skip = skip

    def matches(self, table: str, operation: str, eq_filters: dict) -> bool:
        if self.times is not None and self.times <= 0:
            return False
        if table != self.table or operation != self.operation:
            return False
        return all(eq_filters.get(k) == v for k, v in self.where.items())


class MockSupabaseQuery:
    """
    Chainable query over the in-memory tables.

    Supports eq/in_ filters for select and update, multi-row insert,
    and unique columns (insert fails as a whole with code 23505).
    """

    def __init__(self, client: "MockSupabaseClient", table: str, operation: str, payload=None):
        self._client = client
        self._table = table
        self._operation = operation
        self._payload = payload
        self._filters: list[Callable[[dict], bool]] = []
        self._eq: dict = {}
        self._in: dict = {}
        self._limit: Optional[int] = None

    def select(self, *args, **kwargs):
        return self

    def eq(self, column, value):
        self._eq[column] = value
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self._in[column] = values
        allowed = set(values)
        self._filters.append(lambda row: row.get(column) in allowed)
        return self

    def order(self, column, **kwargs):
        return self

    def limit(self, count):
        self._limit = count
        return self

    def _matching(self) -> list[dict]:
        rows = self._client.rows(self._table)
        return [row for row in rows if all(f(row) for f in self._filters)]

    def execute(self) -> MockSupabaseResponse:
        self._client.calls.append({
            "table": self._table,
            "operation": self._operation,
            "eq": dict(self._eq),
            "in": {k: list(v) for k, v in self._in.items()},
            "payload": self._payload,
        })
        self._client.raise_if_failing(self._table, self._operation, self._eq)

        if self._operation == "select":
            data = [dict(row) for row in self._matching()]
            count = len(data)
            if self._limit is not None:
                data = data[:self._limit]
            return MockSupabaseResponse(data=data, count=count)

        if self._operation == "insert":
            payload = self._payload if isinstance(self._payload, list) else [self._payload]
            self._client.check_unique(self._table, payload)
            created = []
            for item in payload:
                row = {"id": self._client.next_id(self._table), **item}
                created.append(row)
            self._client.rows(self._table).extend(created)
            return MockSupabaseResponse(data=[dict(row) for row in created])

        if self._operation == "update":
            updated = []
            for row in self._matching():
                row.update(self._payload)
                updated.append(dict(row))
            return MockSupabaseResponse(data=updated)

        return MockSupabaseResponse()


class MockSupabaseTable:
    """Mock Supabase table entry point."""

    def __init__(self, client: "MockSupabaseClient", name: str):
        self._client = client
        self._name = name

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self._client, self._name, "select")

    def insert(self, data):
        return MockSupabaseQuery(self._client, self._name, "insert", payload=data)

    def update(self, data):
        return MockSupabaseQuery(self._client, self._name, "update", payload=data)


class MockSupabaseClient:
    """In-memory Supabase client."""

    def __init__(self):
        self._tables: dict[str, list[dict]] = {}
        self._unique: dict[str, list[str]] = {}
        self._failures: list[_FailureRule] = []
        self._id_counter = 0
        self.calls: list[dict] = []

    def set_table_data(self, table_name: str, data: list):
        """Configure rows for a table (copied)."""
        self._tables[table_name] = [dict(row) for row in data]

    def set_unique(self, table_name: str, *columns: str):
        """Enforce uniqueness of columns on insert, like a DB constraint."""
        self._unique[table_name] = list(columns)

    def fail_on(
        self,
        table: str,
        operation: str,
        error: Exception,
        where: Optional[dict] = None,
        times: Optional[int] = None,
        side_effect: Optional[Callable[["MockSupabaseClient"], None]] = None,
        skip: int = 0,
    ):
        """
        Make matching queries raise `error`.

        Args:
            where: eq() filters the query must carry (e.g. {"id": "p-2"})
            times: Fire this many times only (None = always)
            side_effect: Run against the client just before raising
            skip: Let this many matching queries succeed first
        """
        self._failures.append(_FailureRule(table, operation, error, where, times, side_effect, skip))

    def raise_if_failing(self, table: str, operation: str, eq_filters: dict):
        for rule in self._failures:
            if rule.matches(table, operation, eq_filters):
                if rule.skip > 0:
                    rule.skip -= 1
                    continue
                if rule.times is not None:
                    rule.times -= 1
                if rule.side_effect:
                    rule.side_effect(self)
                raise rule.error

    def check_unique(self, table: str, payload: list[dict]):
        for column in self._unique.get(table, []):
            seen = {row.get(column) for row in self.rows(table)}
            for item in payload:
                value = item.get(column)
                if value in seen:
                    raise MockAPIError(
                        f'duplicate key value violates unique constraint "{table}_{column}_key"',
                        code="23505"
                    )
                seen.add(value)

    def next_id(self, table: str) -> str:
        self._id_counter += 1
        return f"{table}-new-{self._id_counter}"

    def rows(self, table: str) -> list[dict]:
        return self._tables.setdefault(table, [])

    def calls_for(self, table: str, operation: str) -> list[dict]:
        return [c for c in self.calls if c["table"] == table and c["operation"] == operation]

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        return MockSupabaseTable(self, name)


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client with a vendor and category directory.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("products", [
                {"id": "1", "sku": "X1", "vendor_id": "...", ...}
            ])
    """
    client = MockSupabaseClient()
    client.set_table_data("vendors", [
        {"id": VENDOR_A_ID, "status": "approved", "is_active": True},
        {"id": VENDOR_B_ID, "status": "pending", "is_active": False},
    ])
    client.set_table_data("categories", [
        {"id": cat_id, "name": name} for name, cat_id in CATEGORIES.items()
    ])
    client.set_table_data("products", [])
    return client


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
            # Now any service created here gets the mock
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.product_service.get_supabase_client", return_value=mock_supabase):
            with patch("services.vendor_service.get_supabase_client", return_value=mock_supabase):
                with patch("services.category_service.get_supabase_client", return_value=mock_supabase):
                    yield mock_supabase


@pytest.fixture
def bulk_service(mock_db):
    """BulkUploadService wired to the mock database."""
    from services.bulk_upload_service import BulkUploadService
    from services.product_service import ProductService
    from services.vendor_service import VendorService
    from services.category_service import CategoryService

    return BulkUploadService(
        product_service=ProductService(),
        vendor_service=VendorService(),
        category_service=CategoryService(),
    )


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_mock_db(bulk_service):
    """
    Create FastAPI test client whose bulk upload service uses the mock database.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
            response = test_client_with_mock_db.post("/api/products/bulk-upload", json=...)
    """
    from fastapi.testclient import TestClient
    from main import app

    with patch("routes.bulk_upload.get_bulk_upload_service", return_value=bulk_service):
        yield TestClient(app)
