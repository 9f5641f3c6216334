"""
Uniform load request for the perspective data loader.

One ``LoadProps`` value describes one load call, whichever engine serves
it. The model is frozen and normalizes sequences to tuples, so nothing
downstream can mutate what the caller passed in. Both snake_case field
names and the camelCase names used on the wire are accepted::

    >>> props = LoadProps(
    ...     pureName="orders",
    ...     engineType="sqldb",
    ...     bindingColumns=["customer_id"],
    ...     bindingValues=[[1], [2]],
    ...     orderBy=[{"columnName": "id", "order": "DESC"}],
    ...     databaseConfig={"conid": "local", "database": "shop"},
    ... )
    >>> props.binding_values
    ((1,), (2,))

``engine_type`` is a plain string: an unknown tag is a valid
request that dispatch reports as ``UnsupportedEngineError``, not a parse
failure at construction time.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from perspective.sqltree import Condition, LoadRange, SortOrder


class EngineType(str, Enum):
    SQLDB = "sqldb"
    DOCDB = "docdb"


class _PropsModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class OrderByItem(_PropsModel):
    column_name: str
    order: SortOrder = SortOrder.ASC


class DatabaseConfig(_PropsModel):
    """Target connection; opaque to the loader and forwarded as-is."""

    conid: str
    database: str | None = None


class LoadProps(_PropsModel):
    """What to fetch, for grouping, data and row-count loads alike."""

    schema_name: str | None = None
    pure_name: str
    engine_type: str
    binding_columns: tuple[str, ...] = ()
    binding_values: tuple[tuple[Any, ...], ...] = ()
    # None means all columns; an empty tuple means no columns at all
    data_columns: tuple[str, ...] | None = None
    order_by: tuple[OrderByItem, ...] = ()
    sql_condition: Condition | None = None
    mongo_condition: dict[str, Any] | None = None
    range: LoadRange | None = None
    database_config: DatabaseConfig

    @property
    def table_label(self) -> str:
        if self.schema_name:
            return f"{self.schema_name}.{self.pure_name}"
        return self.pure_name


__all__ = [
    "EngineType",
    "SortOrder",
    "LoadRange",
    "OrderByItem",
    "DatabaseConfig",
    "LoadProps",
]
