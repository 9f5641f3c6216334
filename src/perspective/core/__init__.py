"""Ambient stack shared by the loader: errors, results, logging, settings, protocols."""

from perspective.core.errors import (
    BindingError,
    ConfigError,
    DatabaseError,
    EngineQueryError,
    ErrorCategory,
    ErrorContext,
    PerspectiveError,
    ResponseShapeError,
    UnsupportedEngineError,
    ValidationError,
)
from perspective.core.protocols import DataLoaderStrategy, ExecutionChannel
from perspective.core.result import Err, Ok, Result, collect_results, try_result

__all__ = [
    "BindingError",
    "ConfigError",
    "DatabaseError",
    "EngineQueryError",
    "ErrorCategory",
    "ErrorContext",
    "PerspectiveError",
    "ResponseShapeError",
    "UnsupportedEngineError",
    "ValidationError",
    "DataLoaderStrategy",
    "ExecutionChannel",
    "Err",
    "Ok",
    "Result",
    "collect_results",
    "try_result",
]
