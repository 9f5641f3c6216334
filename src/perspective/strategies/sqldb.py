"""
Relational (``sqldb``) loader strategy.

Builds select trees (see :mod:`perspective.sqltree`) and runs them through
the channel's select operation:

- grouping: ``SELECT COUNT(*) AS _perspective_group_size_, <binding cols>
  ... GROUP BY <binding cols>``
- data: explicit columns or ``SELECT *``, order-by, range
- row count: ``SELECT COUNT(*) AS count`` with no range, order or grouping
"""

from __future__ import annotations

from typing import Any

from perspective.conditions import build_sql_condition
from perspective.core.errors import ResponseShapeError
from perspective.core.logging import get_logger
from perspective.core.protocols import ExecutionChannel
from perspective.core.result import Err, Result, try_result
from perspective.core.settings import PerspectiveSettings
from perspective.props import EngineType, LoadProps
from perspective.sqltree import (
    CallExpression,
    NameRef,
    OrderByExpression,
    RawExpression,
    Select,
    TableSource,
    column_ref,
)
from perspective.strategies._base import (
    GROUP_SIZE_FIELD,
    call_channel,
    coerce_count,
    unwrap_rows,
)

logger = get_logger(__name__)

ROW_COUNT_FIELD = "count"


def _source(props: LoadProps) -> TableSource:
    return TableSource(name=NameRef(schema_name=props.schema_name, pure_name=props.pure_name))


class SqlDbLoaderStrategy:
    """Loads perspective data from relational engines."""

    engine_type = EngineType.SQLDB.value

    # -- Descriptor builders ----------------------------------------------

    def build_grouping_query(self, props: LoadProps) -> Select:
        binding_expressions = [
            column_ref(name, props.schema_name, props.pure_name)
            for name in props.binding_columns
        ]
        return Select(
            from_=_source(props),
            columns=[
                CallExpression(
                    func="COUNT",
                    args=[RawExpression(sql="*")],
                    alias=GROUP_SIZE_FIELD,
                ),
                *binding_expressions,
            ],
            where=build_sql_condition(props),
            group_by=binding_expressions,
        )

    def build_data_query(self, props: LoadProps) -> Select:
        columns = None
        if props.data_columns is not None:
            columns = [
                column_ref(name, props.schema_name, props.pure_name)
                for name in props.data_columns
            ]

        order_by = None
        if props.order_by:
            order_by = [
                OrderByExpression(
                    column_name=item.column_name,
                    direction=item.order,
                    source=_source(props),
                )
                for item in props.order_by
            ]

        return Select(
            from_=_source(props),
            columns=columns,
            select_all=props.data_columns is None,
            where=build_sql_condition(props),
            order_by=order_by,
            range=props.range,
        )

    def build_row_count_query(self, props: LoadProps) -> Select:
        return Select(
            from_=_source(props),
            columns=[RawExpression(sql="COUNT(*)", alias=ROW_COUNT_FIELD)],
            where=build_sql_condition(props),
        )

    # -- Load operations ---------------------------------------------------

    async def load_grouping(
        self,
        channel: ExecutionChannel,
        props: LoadProps,
        settings: PerspectiveSettings,
    ) -> Result[list[dict[str, Any]]]:
        select = self.build_grouping_query(props)
        logger.debug(
            "load_counts",
            table=props.table_label,
            columns=",".join(props.binding_columns),
        )
        response = await self._execute(channel, props, settings, select)
        return unwrap_rows(response).flat_map(_with_group_sizes)

    async def load_data(
        self,
        channel: ExecutionChannel,
        props: LoadProps,
        settings: PerspectiveSettings,
    ) -> Result[list[dict[str, Any]]]:
        select = self.build_data_query(props)
        logger.debug(
            "load_data",
            table=props.table_label,
            columns=",".join(props.data_columns) if props.data_columns is not None else "*",
            offset=props.range.offset if props.range else None,
            limit=props.range.limit if props.range else None,
        )
        response = await self._execute(channel, props, settings, select)
        return unwrap_rows(response)

    async def load_row_count(
        self,
        channel: ExecutionChannel,
        props: LoadProps,
        settings: PerspectiveSettings,
    ) -> Result[int]:
        select = self.build_row_count_query(props)
        logger.debug("load_row_count", table=props.table_label)
        response = await self._execute(channel, props, settings, select)
        return unwrap_rows(response).flat_map(_first_row_count)

    async def _execute(
        self,
        channel: ExecutionChannel,
        props: LoadProps,
        settings: PerspectiveSettings,
        select: Select,
    ) -> Any:
        return await call_channel(
            channel,
            settings.sql_select_operation,
            props,
            "select",
            select.to_wire(),
        )


def _with_group_sizes(rows: list[dict[str, Any]]) -> Result[list[dict[str, Any]]]:
    return try_result(
        lambda: [
            {**row, GROUP_SIZE_FIELD: coerce_count(row.get(GROUP_SIZE_FIELD))}
            for row in rows
        ]
    )


def _first_row_count(rows: list[dict[str, Any]]) -> Result[int]:
    if not rows:
        return Err(ResponseShapeError("Row count query returned no rows"))
    row = rows[0]
    if ROW_COUNT_FIELD in row:
        return try_result(lambda: coerce_count(row[ROW_COUNT_FIELD]))
    # drivers that upper-case aliases
    values = list(row.values())
    if len(values) == 1:
        return try_result(lambda: coerce_count(values[0]))
    return Err(ResponseShapeError(f"Row count response has no {ROW_COUNT_FIELD!r} column"))


__all__ = ["ROW_COUNT_FIELD", "SqlDbLoaderStrategy"]
