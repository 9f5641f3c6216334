"""
perspective: cross-engine data loader for hierarchical perspective views.

Turns one uniform :class:`LoadProps` request into a relational select tree
or a document options object, runs it through an external execution
channel, and normalizes the answer into a ``Result``.

Examples:
    >>> from perspective import LoadProps, PerspectiveDataLoader
    >>> loader = PerspectiveDataLoader(api_call)
    >>> await loader.load_row_count(LoadProps(pureName="orders", engineType="sqldb",
    ...                                       databaseConfig={"conid": "local"}))
    Ok(1042)
"""

from perspective.conditions import build_mongo_condition, build_sql_condition
from perspective.core.errors import (
    BindingError,
    EngineQueryError,
    PerspectiveError,
    UnsupportedEngineError,
)
from perspective.core.logging import configure_logging
from perspective.core.result import Err, Ok, Result
from perspective.loader import PerspectiveDataLoader
from perspective.props import DatabaseConfig, EngineType, LoadProps, OrderByItem
from perspective.sqltree import LoadRange, SortOrder
from perspective.strategies import GROUP_SIZE_FIELD, get_strategy, register_strategy

__version__ = "0.1.0"

__all__ = [
    "BindingError",
    "DatabaseConfig",
    "EngineQueryError",
    "EngineType",
    "Err",
    "GROUP_SIZE_FIELD",
    "LoadProps",
    "LoadRange",
    "Ok",
    "OrderByItem",
    "PerspectiveDataLoader",
    "PerspectiveError",
    "Result",
    "SortOrder",
    "UnsupportedEngineError",
    "build_mongo_condition",
    "build_sql_condition",
    "configure_logging",
    "get_strategy",
    "register_strategy",
]
