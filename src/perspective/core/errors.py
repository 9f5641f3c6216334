"""
Structured error types for the perspective data loader.

Every failure a load can produce is a typed error carrying a category, a
retry hint and structured context. Load operations never raise these to
their callers: they wrap them in :class:`~perspective.core.result.Err` so
that failures travel as data and the caller decides whether to retry.

Manifesto:
    - **Failures are data:** Loads return ``Err(...)`` instead of raising
    - **Verbatim engine errors:** ``EngineQueryError.message`` is exactly
      the ``errorMessage`` the engine reported
    - **No silent fallbacks:** Unknown engines and malformed bindings are
      explicit error variants, never an empty or unrestricted result

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                     PerspectiveError                         │
        │     (category, retryable, context, cause)                    │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  ValidationError     ConfigError          DatabaseError      │
        │  (VALIDATION)        (CONFIG)             (DATABASE)         │
        │       │                   │                    │             │
        │  BindingError        UnsupportedEngine    EngineQueryError   │
        │                      Error                ResponseShapeError │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> error = EngineQueryError("Invalid column name 'foo'")
    >>> error.to_response()
    {'errorMessage': "Invalid column name 'foo'"}
    >>> error.with_context(engine_type="sqldb", pure_name="orders")
    EngineQueryError(...)
    >>> error.context.pure_name
    'orders'

Tags:
    error-handling, exception-hierarchy, perspective, error-context
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    DATABASE = "DATABASE"         # Engine-reported query failures
    VALIDATION = "VALIDATION"     # Malformed load requests
    CONFIG = "CONFIG"             # Unsupported engine, bad settings
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only non-None fields are serialized by :meth:`to_dict`, so a context
    describing a grouping load on ``orders`` logs as
    ``{'operation': 'grouping', 'pure_name': 'orders'}``.

    Attributes:
        operation: Load operation (``grouping``, ``data``, ``row_count``)
        engine_type: Engine tag of the failing request
        schema_name: Schema of the target table, if any
        pure_name: Table or collection name
        conid: Connection id from the request's database config
        metadata: Free-form extra fields
    """

    operation: str | None = None
    engine_type: str | None = None
    schema_name: str | None = None
    pure_name: str | None = None
    conid: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key in ("operation", "engine_type", "schema_name", "pure_name", "conid"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        result.update(self.metadata)
        return result


class PerspectiveError(Exception):
    """
    Base exception for all perspective loader errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that
    instances carry sensible defaults without every call site repeating
    them.

    Examples:
        >>> error = PerspectiveError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.retryable
        False
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> PerspectiveError:
        """
        Add context to this error (fluent API).

        Known :class:`ErrorContext` fields are set directly; anything else
        lands in ``context.metadata``.
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured logging."""
        result: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context = self.context.to_dict()
        if context:
            result["context"] = context
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def to_response(self) -> dict[str, Any]:
        """Render as the channel's ``{errorMessage}`` response shape."""
        return {"errorMessage": self.message}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(PerspectiveError):
    """The load request itself is malformed."""

    default_category = ErrorCategory.VALIDATION


class BindingError(ValidationError):
    """
    Binding columns and binding values do not line up.

    Raised when a binding tuple's arity differs from the number of binding
    columns, or when a grouping load is requested without binding columns.
    """

    def __init__(
        self,
        message: str,
        *,
        binding_columns: tuple[str, ...] = (),
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.binding_columns = tuple(binding_columns)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["binding_columns"] = list(self.binding_columns)
        return result


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(PerspectiveError):
    """Configuration or dispatch error (never retryable)."""

    default_category = ErrorCategory.CONFIG


class UnsupportedEngineError(ConfigError):
    """No loader strategy is registered for the requested engine type."""

    def __init__(self, engine_type: Any, supported: list[str] | None = None):
        supported = sorted(supported or [])
        message = f"Unsupported engine type {engine_type!r}"
        if supported:
            message += f". Supported: {supported}"
        super().__init__(message)
        self.engine_type = engine_type
        self.supported = supported


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(PerspectiveError):
    """The engine or the execution channel reported a failure."""

    default_category = ErrorCategory.DATABASE


class EngineQueryError(DatabaseError):
    """
    Engine-reported query error.

    ``message`` is the engine's ``errorMessage`` verbatim, so
    ``to_response()`` reproduces the channel response unchanged.
    """

    def __init__(self, error_message: str, **kwargs: Any):
        super().__init__(error_message, **kwargs)
        self.response = {"errorMessage": error_message}

    def to_response(self) -> dict[str, Any]:
        return dict(self.response)


class ResponseShapeError(DatabaseError):
    """The channel answered with neither ``errorMessage`` nor the expected payload."""


def categorize_error(error: Exception) -> ErrorCategory:
    """Category of any exception; non-perspective errors count as INTERNAL."""
    if isinstance(error, PerspectiveError):
        return error.category
    return ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "PerspectiveError",
    "ValidationError",
    "BindingError",
    "ConfigError",
    "UnsupportedEngineError",
    "DatabaseError",
    "EngineQueryError",
    "ResponseShapeError",
    "categorize_error",
]
