"""
Protocol definitions for the perspective data loader.

Two seams are typed here:

- ``ExecutionChannel``: the external collaborator that runs a query
  descriptor against a live database. The loader treats it as opaque RPC;
  retries, pooling, timeouts and authentication all live behind it.
- ``DataLoaderStrategy``: one implementation per engine family, selected
  once per load, so every load operation is a single polymorphic call.

Architecture:
    ::

        PerspectiveDataLoader
              │  get_strategy(props.engine_type)
              ▼
        DataLoaderStrategy ── build_*_query(props) ──► descriptor
              │
              ▼
        ExecutionChannel(operation_name, {connectionId, database, select|options})
              │
              ▼
        {errorMessage} | {rows} | count  ──► Result[...]

Tags:
    protocol, strategy, execution-channel, perspective
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from perspective.core.result import Result
    from perspective.core.settings import PerspectiveSettings
    from perspective.props import LoadProps


@runtime_checkable
class ExecutionChannel(Protocol):
    """
    Async callable that executes one operation remotely.

    Called as ``await channel(operation_name, payload)`` where ``payload``
    is ``{"connectionId": ..., "database": ..., "select": {...}}`` for the
    relational engine or ``{..., "options": {...}}`` for the document
    engine. Returns ``{"errorMessage": ...}``, ``{"rows": [...]}``, or for
    document counts a scalar or ``{"count": n}``.
    """

    async def __call__(self, operation_name: str, payload: dict[str, Any]) -> Any:
        ...


@runtime_checkable
class DataLoaderStrategy(Protocol):
    """Engine-family implementation of the three load operations."""

    @property
    def engine_type(self) -> str:
        """Engine tag served by this strategy (e.g. ``'sqldb'``)."""
        ...

    def build_grouping_query(self, props: LoadProps) -> Any:
        ...

    def build_data_query(self, props: LoadProps) -> Any:
        ...

    def build_row_count_query(self, props: LoadProps) -> Any:
        ...

    async def load_grouping(
        self,
        channel: ExecutionChannel,
        props: LoadProps,
        settings: PerspectiveSettings,
    ) -> Result[list[dict[str, Any]]]:
        ...

    async def load_data(
        self,
        channel: ExecutionChannel,
        props: LoadProps,
        settings: PerspectiveSettings,
    ) -> Result[list[dict[str, Any]]]:
        ...

    async def load_row_count(
        self,
        channel: ExecutionChannel,
        props: LoadProps,
        settings: PerspectiveSettings,
    ) -> Result[int]:
        ...


__all__ = ["ExecutionChannel", "DataLoaderStrategy"]
