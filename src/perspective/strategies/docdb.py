"""
Document (``docdb``) loader strategy.

Builds :class:`~perspective.docdb.CollectionOptions` and runs them through
the channel's collection-data operation. Grouping uses an aggregation
pipeline::

    [
        {"$match": <merged condition>},
        {"$group": {"_id": {"customer_id": "$customer_id"}, "count": {"$sum": 1}}},
    ]

and each returned ``{"_id": {...}, "count": n}`` is flattened to
``{"customer_id": ..., "_perspective_group_size_": n}``.
"""

from __future__ import annotations

from typing import Any

from perspective.conditions import build_mongo_condition
from perspective.core.errors import ResponseShapeError
from perspective.core.logging import get_logger
from perspective.core.protocols import ExecutionChannel
from perspective.core.result import Err, Result, try_result
from perspective.core.settings import PerspectiveSettings
from perspective.docdb import SORT_DIRECTIONS, CollectionOptions
from perspective.props import EngineType, LoadProps
from perspective.strategies._base import (
    GROUP_SIZE_FIELD,
    call_channel,
    coerce_count,
    engine_error,
    unwrap_rows,
)

logger = get_logger(__name__)


class DocDbLoaderStrategy:
    """Loads perspective data from document engines."""

    engine_type = EngineType.DOCDB.value

    # -- Descriptor builders ----------------------------------------------

    def build_grouping_query(self, props: LoadProps) -> CollectionOptions:
        aggregate: list[dict[str, Any]] = []
        condition = build_mongo_condition(props)
        if condition is not None:
            aggregate.append({"$match": condition})
        aggregate.append(
            {
                "$group": {
                    "_id": {name: f"${name}" for name in props.binding_columns},
                    "count": {"$sum": 1},
                }
            }
        )
        return CollectionOptions(pure_name=props.pure_name, aggregate=aggregate)

    def build_data_query(self, props: LoadProps, use_sort: bool = True) -> CollectionOptions:
        sort = None
        if use_sort and props.order_by:
            sort = {item.column_name: SORT_DIRECTIONS[item.order] for item in props.order_by}
        return CollectionOptions(
            pure_name=props.pure_name,
            condition=build_mongo_condition(props),
            skip=props.range.offset if props.range else None,
            limit=props.range.limit if props.range else None,
            sort=sort,
        )

    def build_row_count_query(self, props: LoadProps) -> CollectionOptions:
        return CollectionOptions(
            pure_name=props.pure_name,
            condition=build_mongo_condition(props),
            count_documents=True,
        )

    # -- Load operations ---------------------------------------------------

    async def load_grouping(
        self,
        channel: ExecutionChannel,
        props: LoadProps,
        settings: PerspectiveSettings,
    ) -> Result[list[dict[str, Any]]]:
        options = self.build_grouping_query(props)
        logger.debug(
            "load_counts",
            collection=props.pure_name,
            columns=",".join(props.binding_columns),
        )
        response = await self._execute(channel, props, settings, options)
        return unwrap_rows(response).flat_map(_flatten_groups)

    async def load_data(
        self,
        channel: ExecutionChannel,
        props: LoadProps,
        settings: PerspectiveSettings,
    ) -> Result[list[dict[str, Any]]]:
        options = self.build_data_query(props)
        logger.debug(
            "load_data",
            collection=props.pure_name,
            offset=options.skip,
            limit=options.limit,
            sort=options.sort,
        )
        response = await self._execute(channel, props, settings, options)
        return unwrap_rows(response)

    async def load_row_count(
        self,
        channel: ExecutionChannel,
        props: LoadProps,
        settings: PerspectiveSettings,
    ) -> Result[int]:
        options = self.build_row_count_query(props)
        logger.debug("load_row_count", collection=props.pure_name)
        response = await self._execute(channel, props, settings, options)

        error = engine_error(response)
        if error is not None:
            return Err(error)
        return _scalar_count(response)

    async def _execute(
        self,
        channel: ExecutionChannel,
        props: LoadProps,
        settings: PerspectiveSettings,
        options: CollectionOptions,
    ) -> Any:
        return await call_channel(
            channel,
            settings.collection_data_operation,
            props,
            "options",
            options.to_wire(),
        )


def _flatten_groups(rows: list[dict[str, Any]]) -> Result[list[dict[str, Any]]]:
    return try_result(
        lambda: [
            {**(row.get("_id") or {}), GROUP_SIZE_FIELD: coerce_count(row.get("count"))}
            for row in rows
        ]
    )


def _scalar_count(response: Any) -> Result[int]:
    """Count documents answer: a bare number, ``{"count": n}`` or ``{"rows": [{"count": n}]}``."""
    if isinstance(response, dict):
        if "count" in response:
            return try_result(lambda: coerce_count(response["count"]))
        rows = response.get("rows")
        if isinstance(rows, list) and len(rows) == 1 and isinstance(rows[0], dict) and "count" in rows[0]:
            return try_result(lambda: coerce_count(rows[0]["count"]))
        return Err(ResponseShapeError("Count response has no 'count' field"))
    return try_result(lambda: coerce_count(response))


__all__ = ["DocDbLoaderStrategy"]
