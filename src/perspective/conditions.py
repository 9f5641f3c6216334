"""
Condition builders: caller filter + master-detail binding filter.

Each engine family gets one pure function that merges the caller-supplied
native filter (``sql_condition`` / ``mongo_condition``) with the binding
filter derived from ``binding_columns`` and ``binding_values``.

Binding rules (both engines):

- no binding columns: no binding filter, the caller filter is returned as is
- one binding column: membership of the column in the distinct first
  elements of the binding tuples (``IN`` / ``$in``)
- several binding columns: one equality conjunction per distinct tuple,
  combined with ``OR`` / ``$or``
- a tuple whose arity differs from the binding columns raises
  :class:`~perspective.core.errors.BindingError`

When no parent tuples are given the membership set is empty and the filter
matches nothing. Neither builder mutates its input; equal props always
produce equal filters.
"""

from __future__ import annotations

import copy
from typing import Any, Iterable

from perspective.core.errors import BindingError
from perspective.props import LoadProps
from perspective.sqltree import (
    AndCondition,
    BinaryCondition,
    Condition,
    InCondition,
    OrCondition,
    ValueExpression,
    column_ref,
)


def _identity(value: Any) -> Any:
    # type-tagged so 1, True and 1.0 stay distinct, as they are to the engines
    if isinstance(value, (list, tuple)):
        return (type(value), tuple(_identity(item) for item in value))
    return (type(value), value)


def distinct_values(values: Iterable[Any]) -> list[Any]:
    """Distinct values in first-seen order; unhashable values compare by equality."""
    result: list[Any] = []
    seen: set[Any] = set()
    unhashable: list[Any] = []
    for value in values:
        key = _identity(value)
        try:
            if key in seen:
                continue
            seen.add(key)
        except TypeError:
            if key in unhashable:
                continue
            unhashable.append(key)
        result.append(value)
    return result


def binding_tuples(props: LoadProps) -> list[tuple[Any, ...]]:
    """Distinct binding tuples, validated against ``binding_columns``."""
    arity = len(props.binding_columns)
    for values in props.binding_values:
        if len(values) != arity:
            raise BindingError(
                f"Binding tuple {values!r} has {len(values)} value(s), "
                f"expected {arity} for columns {list(props.binding_columns)}",
                binding_columns=props.binding_columns,
            )
    return distinct_values(props.binding_values)


def build_sql_condition(props: LoadProps) -> Condition | None:
    conditions: list[Condition] = []

    if props.sql_condition is not None:
        conditions.append(props.sql_condition)

    binding = _sql_binding_condition(props)
    if binding is not None:
        conditions.append(binding)

    if not conditions:
        return None
    if len(conditions) == 1:
        return conditions[0]
    return AndCondition(conditions=conditions)


def _sql_binding_condition(props: LoadProps) -> Condition | None:
    columns = props.binding_columns
    if not columns:
        return None

    tuples = binding_tuples(props)

    def ref(column_name: str):
        return column_ref(column_name, props.schema_name, props.pure_name)

    if len(columns) == 1 or not tuples:
        return InCondition(
            expr=ref(columns[0]),
            values=distinct_values(values[0] for values in tuples),
        )

    return OrCondition(
        conditions=[
            AndCondition(
                conditions=[
                    BinaryCondition(
                        operator="=",
                        left=ref(column_name),
                        right=ValueExpression(value=value),
                    )
                    for column_name, value in zip(columns, values)
                ]
            )
            for values in tuples
        ]
    )


def build_mongo_condition(props: LoadProps) -> dict[str, Any] | None:
    conditions: list[dict[str, Any]] = []

    if props.mongo_condition is not None:
        conditions.append(copy.deepcopy(props.mongo_condition))

    binding = _mongo_binding_condition(props)
    if binding is not None:
        conditions.append(binding)

    if not conditions:
        return None
    if len(conditions) == 1:
        return conditions[0]
    return {"$and": conditions}


def _mongo_binding_condition(props: LoadProps) -> dict[str, Any] | None:
    columns = props.binding_columns
    if not columns:
        return None

    tuples = binding_tuples(props)

    if len(columns) == 1 or not tuples:
        return {columns[0]: {"$in": distinct_values(values[0] for values in tuples)}}

    return {"$or": [dict(zip(columns, values)) for values in tuples]}


__all__ = [
    "distinct_values",
    "binding_tuples",
    "build_sql_condition",
    "build_mongo_condition",
]
