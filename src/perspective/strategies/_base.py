"""Shared channel call and response normalization for loader strategies."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from perspective.core.errors import EngineQueryError, ResponseShapeError
from perspective.core.protocols import ExecutionChannel
from perspective.core.result import Err, Ok, Result
from perspective.props import LoadProps

GROUP_SIZE_FIELD = "_perspective_group_size_"


async def call_channel(
    channel: ExecutionChannel,
    operation_name: str,
    props: LoadProps,
    descriptor_key: str,
    descriptor: dict[str, Any],
) -> Any:
    """Send one descriptor (``select`` or ``options``) to the execution channel."""
    payload = {
        "connectionId": props.database_config.conid,
        "database": props.database_config.database,
        descriptor_key: descriptor,
    }
    return await channel(operation_name, payload)


def engine_error(response: Any) -> EngineQueryError | None:
    """The engine-reported error carried by ``response``, if any."""
    if isinstance(response, dict) and response.get("errorMessage"):
        return EngineQueryError(response["errorMessage"])
    return None


def unwrap_rows(response: Any) -> Result[list[dict[str, Any]]]:
    """``{rows}`` becomes ``Ok(rows)``, ``{errorMessage}`` an ``Err``."""
    error = engine_error(response)
    if error is not None:
        return Err(error)
    if not isinstance(response, dict) or not isinstance(response.get("rows"), list):
        return Err(ResponseShapeError(f"Expected a rows response, got {type(response).__name__}"))
    return Ok(response["rows"])


def coerce_count(value: Any) -> int:
    """
    Integer count from a driver value.

    Some relational drivers return ``COUNT(*)`` as text (``"5"``) or as a
    decimal; both become ``5``.
    """
    if isinstance(value, bool):
        raise ResponseShapeError(f"Count value {value!r} is not numeric")
    if isinstance(value, int):
        return value
    try:
        return int(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError, OverflowError) as e:
        raise ResponseShapeError(f"Count value {value!r} is not numeric", cause=e) from e


__all__ = [
    "GROUP_SIZE_FIELD",
    "call_channel",
    "engine_error",
    "unwrap_rows",
    "coerce_count",
]
