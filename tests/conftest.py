# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - Provides an in-memory datastore that records batch writes
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# app.main builds the application (and reads settings) at import time

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

import httpx
import pytest

from lib.supabase_client import SupabaseClientError


# =============================================================================
# Fake Datastore
# =============================================================================

class FakeDatastore:
    """
    Stands in for SupabaseClient in import tests.

    Successful writes are kept in `batches` (one list of rows per call).
    Set `fail_on_call` to make the Nth write raise `failure`.
    """

    def __init__(self, fail_on_call: int | None = None, failure: SupabaseClientError | None = None):
        self.batches: list[list[dict]] = []
        self.calls: list[tuple[str, str, dict]] = []
        self.fail_on_call = fail_on_call
        self.failure = failure or SupabaseClientError(
            "Failed to insert into gemstones: connection reset",
            code="INSERT_FAILED",
            db_message="connection reset",
        )

    def _write(self, method: str, table: str, rows: list[dict], **kwargs) -> list[dict]:
        self.calls.append((method, table, kwargs))
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise self.failure
        self.batches.append(list(rows))
        return list(rows)

    def insert_rows(self, table: str, rows: list[dict]) -> list[dict]:
        return self._write("insert", table, rows)

    def upsert_rows(self, table: str, rows: list[dict], on_conflict: str) -> list[dict]:
        return self._write("upsert", table, rows, on_conflict=on_conflict)

    @property
    def persisted(self) -> list[dict]:
        return [row for batch in self.batches for row in batch]


def build_csv_client(body: str | bytes, status_code: int = 200) -> httpx.Client:
    """httpx client whose every GET answers with `body`."""
    content = body.encode("utf-8") if isinstance(body, str) else body

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, content=content)

    return httpx.Client(transport=httpx.MockTransport(handler))


# =============================================================================
# Fixtures
# =============================================================================

STOCK_HEADER = (
    "Code,Type,Weight (ct),Pieces,Shape,Price/CT,Price/Piece,"
    "Buying Date,Balance Pieces,Balance Weight (ct)"
)


@pytest.fixture
def fake_db():
    return FakeDatastore()


@pytest.fixture
def stock_csv():
    """Three data rows; the second has no code."""
    return "\n".join([
        STOCK_HEADER,
        "RUB-009,Ruby,12.50,10,Oval,1200,1500,10/02/2024,7,8.75",
        ",Sapphire,8.60,4,Oval,800,1720,20/03/2024,4,8.60",
        "DIA-007,Diamond,1.25,1,Round Brilliant,5500,6875,15/03/24,,",
    ])


@pytest.fixture
def make_stock_csv():
    """Build a stock CSV with `count` distinct, valid rows."""
    def build(count: int) -> str:
        rows = [
            f"LOT-{i:04d},Ruby,1.0,1,Oval,100,,1/1/24,1,1.0"
            for i in range(count)
        ]
        return "\n".join([STOCK_HEADER, *rows])
    return build


@pytest.fixture
def csv_client():
    """Factory for httpx clients that serve a fixed CSV body."""
    return build_csv_client
