"""
Shared pytest fixtures for the perspective loader tests.

Provides:
- ``make_props``: LoadProps factory with sensible defaults
- ``recording_channel`` / ``loader``: a loader wired to a recording fake
- ``orders_engine`` / ``orders_documents`` / ``dual_channel``: the same
  orders dataset served by a relational (SQLite) and a document engine
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest
from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine
from sqlalchemy.engine import Engine

from perspective.core.settings import PerspectiveSettings
from perspective.loader import PerspectiveDataLoader
from perspective.props import LoadProps
from tests._support.channels import DualEngineChannel, RecordingChannel

# customer 1: 2 orders, customer 2: none, customer 3: 5 orders, customer 4: 1 order
ORDERS: list[dict[str, Any]] = [
    {"id": 1, "customer_id": 1, "region": "north", "status": "open", "amount": 10},
    {"id": 2, "customer_id": 1, "region": "north", "status": "closed", "amount": 25},
    {"id": 3, "customer_id": 3, "region": "south", "status": "open", "amount": 5},
    {"id": 4, "customer_id": 3, "region": "south", "status": "open", "amount": 40},
    {"id": 5, "customer_id": 3, "region": "north", "status": "closed", "amount": 15},
    {"id": 6, "customer_id": 3, "region": "south", "status": "open", "amount": 30},
    {"id": 7, "customer_id": 3, "region": "east", "status": "closed", "amount": 20},
    {"id": 8, "customer_id": 4, "region": "east", "status": "open", "amount": 12},
]


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).name
        if "dual_engine" in test_path:
            item.add_marker(pytest.mark.integration)
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def settings() -> PerspectiveSettings:
    return PerspectiveSettings(_env_file=None)


@pytest.fixture
def make_props() -> Callable[..., LoadProps]:
    """LoadProps factory; keyword overrides use snake_case field names."""

    def _make(**overrides: Any) -> LoadProps:
        values: dict[str, Any] = {
            "schema_name": None,
            "pure_name": "orders",
            "engine_type": "sqldb",
            "database_config": {"conid": "local", "database": "shop"},
        }
        values.update(overrides)
        return LoadProps(**values)

    return _make


@pytest.fixture
def recording_channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def loader(recording_channel: RecordingChannel, settings: PerspectiveSettings) -> PerspectiveDataLoader:
    return PerspectiveDataLoader(recording_channel, settings)


# =============================================================================
# Dual-engine fixture
# =============================================================================


@pytest.fixture
def orders_engine() -> Engine:
    engine = create_engine("sqlite://")
    metadata = MetaData()
    orders = Table(
        "orders",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("customer_id", Integer, nullable=False),
        Column("region", String(20), nullable=False),
        Column("status", String(20), nullable=False),
        Column("amount", Integer, nullable=False),
    )
    metadata.create_all(engine)
    with engine.begin() as conn:
        conn.execute(orders.insert(), ORDERS)
    yield engine
    engine.dispose()


@pytest.fixture
def orders_documents() -> dict[str, list[dict[str, Any]]]:
    return {"orders": [dict(order) for order in ORDERS]}


@pytest.fixture
def dual_channel(
    orders_engine: Engine,
    orders_documents: dict[str, list[dict[str, Any]]],
    settings: PerspectiveSettings,
) -> DualEngineChannel:
    return DualEngineChannel(orders_engine, orders_documents, settings)
