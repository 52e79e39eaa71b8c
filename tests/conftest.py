"""Pytest fixtures for flowershop tests."""

from datetime import datetime, timezone

import pytest

from flowershop.logging_config import reset_logging
from flowershop.models import LineItem, NewOrder
from flowershop.storage import DatabaseStorage, MemStorage


@pytest.fixture(autouse=True)
def _clean_logging():
    """Undo handlers installed by the CLI between tests."""
    yield
    reset_logging()


@pytest.fixture
def mem_storage():
    return MemStorage()


@pytest.fixture
def db_storage():
    """DatabaseStorage on a private in-memory SQLite database."""
    storage = DatabaseStorage.from_url("sqlite://")
    yield storage
    storage.engine.dispose()


@pytest.fixture(params=["memory", "database"])
def storage(request):
    """Run a test against every storage backend."""
    if request.param == "memory":
        return request.getfixturevalue("mem_storage")
    return request.getfixturevalue("db_storage")


@pytest.fixture
def api_storage():
    """In-memory storage installed as the API's process-wide storage."""
    from flowershop.api import set_storage

    storage = MemStorage()
    set_storage(storage)
    yield storage
    set_storage(None)


@pytest.fixture
def api_client(api_storage):
    from fastapi.testclient import TestClient

    from flowershop.api import app

    return TestClient(app)


def make_order(**overrides) -> NewOrder:
    """Build a NewOrder with sensible defaults."""
    fields = {
        "from_": "Alice",
        "to": "Bob",
        "address": "12 Garden Lane",
        "date_time": datetime(2025, 5, 1, 10, 0, tzinfo=timezone.utc),
        "notes": None,
    }
    fields.update(overrides)
    return NewOrder(**fields)


def order_payload(items=None, **overrides) -> dict:
    """Build a POST /api/orders body."""
    order = {
        "from": "Alice",
        "to": "Bob",
        "address": "12 Garden Lane",
        "dateTime": "2025-05-01T10:00:00Z",
    }
    order.update(overrides)
    if items is None:
        items = [{"flower": "Red Roses", "amount": 5}]
    return {"order": order, "items": items}


def roses(amount: int) -> LineItem:
    return LineItem(flower="Red Roses", amount=amount)
