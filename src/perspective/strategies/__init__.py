"""
Loader strategy registry.

One stateless strategy instance per engine family, looked up by engine tag:

    >>> from perspective.strategies import get_strategy
    >>> get_strategy("docdb")
    <perspective.strategies.docdb.DocDbLoaderStrategy object at ...>

Unknown tags raise :class:`~perspective.core.errors.UnsupportedEngineError`
rather than resolving to nothing. ``register_strategy`` adds further
engine families or test doubles.
"""

from __future__ import annotations

from typing import Any

from perspective.core.errors import UnsupportedEngineError
from perspective.core.protocols import DataLoaderStrategy
from perspective.strategies._base import GROUP_SIZE_FIELD
from perspective.strategies.docdb import DocDbLoaderStrategy
from perspective.strategies.sqldb import SqlDbLoaderStrategy

# Pre-instantiated singletons (strategies are stateless)
_STRATEGIES: dict[str, DataLoaderStrategy] = {
    "sqldb": SqlDbLoaderStrategy(),
    "docdb": DocDbLoaderStrategy(),
}


def get_strategy(engine_type: Any) -> DataLoaderStrategy:
    """Get the loader strategy for an engine tag.

    Args:
        engine_type: ``'sqldb'`` or ``'docdb'`` (or an :class:`EngineType`),
            or any tag added with :func:`register_strategy`.

    Raises:
        UnsupportedEngineError: If no strategy is registered for the tag.
    """
    key = getattr(engine_type, "value", engine_type)
    if not isinstance(key, str) or key not in _STRATEGIES:
        raise UnsupportedEngineError(engine_type, supported=list(_STRATEGIES))
    return _STRATEGIES[key]


def register_strategy(engine_type: str, strategy: DataLoaderStrategy) -> None:
    """Register a strategy for an engine tag, replacing any existing one."""
    _STRATEGIES[engine_type] = strategy


def unregister_strategy(engine_type: str) -> None:
    _STRATEGIES.pop(engine_type, None)


def supported_engines() -> list[str]:
    return sorted(_STRATEGIES)


__all__ = [
    "GROUP_SIZE_FIELD",
    "DocDbLoaderStrategy",
    "SqlDbLoaderStrategy",
    "get_strategy",
    "register_strategy",
    "unregister_strategy",
    "supported_engines",
]
