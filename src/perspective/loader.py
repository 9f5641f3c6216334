"""
Perspective data loader: grouping, data and row-count loads across engines.

Manifesto:
    A perspective tree issues many small loads (one per expanded node)
    against relational and document engines alike. The caller should not
    care which engine answers, so every load takes the same ``LoadProps``
    and returns the same ``Result`` shape.

    - **One request shape:** ``LoadProps`` for every engine and operation
    - **One dispatch:** the engine's strategy is resolved once per load
    - **Failures are data:** ``Err(EngineQueryError)`` carries the engine's
      ``errorMessage`` verbatim; unknown engines and malformed bindings are
      ``Err`` too, never an empty or unfiltered result
    - **Stateless:** one channel call per load, no retries, no caching

Architecture:
    ::

        load_grouping / load_data / load_row_count (props)
              │
              ▼
        get_strategy(props.engine_type) ── unknown ──► Err(UnsupportedEngineError)
              │
              ▼
        strategy.load_*(channel, props, settings)
              │   build descriptor (condition builder)
              │   await channel(operation, payload)
              │   normalize response
              ▼
        Ok(rows) | Ok(count) | Err(...)

Examples:
    >>> loader = PerspectiveDataLoader(api_call)
    >>> result = await loader.load_grouping(props)
    >>> result.unwrap()
    [{'customer_id': 1, '_perspective_group_size_': 2}, ...]

Guardrails:
    ❌ DON'T: Issue one grouping load per parent row
    ✅ DO: Pass every parent tuple in one ``binding_values`` sequence

Tags:
    perspective, data-loader, strategy, sqldb, docdb, master-detail
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from perspective.core.errors import BindingError, PerspectiveError
from perspective.core.logging import LogContext, get_logger
from perspective.core.protocols import DataLoaderStrategy, ExecutionChannel
from perspective.core.result import Err, Ok, Result
from perspective.core.settings import PerspectiveSettings, get_settings
from perspective.props import LoadProps
from perspective.strategies import get_strategy

logger = get_logger(__name__)

_StrategyCall = Callable[[DataLoaderStrategy], Awaitable[Result[Any]]]


class PerspectiveDataLoader:
    """Runs perspective loads through an execution channel."""

    def __init__(
        self,
        api_call: ExecutionChannel,
        settings: PerspectiveSettings | None = None,
    ):
        self.api_call = api_call
        self.settings = settings or get_settings()

    async def load_grouping(self, props: LoadProps) -> Result[list[dict[str, Any]]]:
        """Child row counts per distinct binding-column combination."""
        if not props.binding_columns:
            return self._fail(
                "grouping",
                props,
                BindingError("Grouping load requires at least one binding column"),
            )
        return await self._run(
            "grouping",
            props,
            lambda strategy: strategy.load_grouping(self.api_call, props, self.settings),
        )

    async def load_data(self, props: LoadProps) -> Result[list[dict[str, Any]]]:
        """Rows for the filter, projection, order and page window of ``props``."""
        return await self._run(
            "data",
            props,
            lambda strategy: strategy.load_data(self.api_call, props, self.settings),
            short_circuit=props.data_columns is not None and len(props.data_columns) == 0,
        )

    async def load_row_count(self, props: LoadProps) -> Result[int]:
        """Total rows matching the filter; ``range`` and ``order_by`` are ignored."""
        return await self._run(
            "row_count",
            props,
            lambda strategy: strategy.load_row_count(self.api_call, props, self.settings),
        )

    async def _run(
        self,
        operation: str,
        props: LoadProps,
        call: _StrategyCall,
        short_circuit: bool = False,
    ) -> Result[Any]:
        try:
            strategy = get_strategy(props.engine_type)
        except PerspectiveError as e:
            return self._fail(operation, props, e)

        if short_circuit:
            # zero requested columns: nothing to fetch
            return Ok([])

        async with LogContext(engine_type=strategy.engine_type, pure_name=props.pure_name):
            try:
                result = await call(strategy)
            except PerspectiveError as e:
                return self._fail(operation, props, e)

        if isinstance(result, Err):
            self._annotate(operation, props, result.error)
            logger.warning("load_failed", operation=operation, **_error_fields(result.error))
        return result

    def _fail(self, operation: str, props: LoadProps, error: PerspectiveError) -> Err[Any]:
        self._annotate(operation, props, error)
        logger.warning("load_rejected", operation=operation, **error.to_dict())
        return Err(error)

    @staticmethod
    def _annotate(operation: str, props: LoadProps, error: Exception) -> None:
        if isinstance(error, PerspectiveError):
            error.with_context(
                operation=operation,
                engine_type=str(getattr(props.engine_type, "value", props.engine_type)),
                schema_name=props.schema_name,
                pure_name=props.pure_name,
                conid=props.database_config.conid,
            )


def _error_fields(error: Exception) -> dict[str, Any]:
    if isinstance(error, PerspectiveError):
        return error.to_dict()
    return {"error_type": type(error).__name__, "message": str(error)}


__all__ = ["PerspectiveDataLoader"]
