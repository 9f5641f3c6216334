"""
Render relational select trees as SQLAlchemy Core statements.

Execution channels built on SQLAlchemy turn the loader's
:class:`~perspective.sqltree.Select` into an executable statement here,
then run it on whatever engine they own. Tables are described with
lightweight ``table()``/``column()`` constructs holding only the columns
the tree references, so no metadata reflection is needed.

Examples:
    >>> from perspective.compile import to_sql, to_sqlalchemy
    >>> stmt = to_sqlalchemy(select_tree)
    >>> rows = [dict(r._mapping) for r in conn.execute(stmt)]
    >>> sql, params = to_sql(select_tree, "postgresql")

Tags:
    sqlalchemy, sql, select-tree, compile, dialect
"""

from __future__ import annotations

import operator
from typing import Any, Callable

from sqlalchemy import (
    and_,
    false,
    func,
    literal,
    literal_column,
    not_,
    or_,
    select,
    table,
    true,
)
from sqlalchemy import column as sa_column
from sqlalchemy.dialects import mssql, mysql, oracle, postgresql, sqlite
from sqlalchemy.engine import Dialect
from sqlalchemy.sql.expression import ColumnElement, TableClause
from sqlalchemy.sql.expression import Select as SASelect

from perspective.core.errors import ConfigError
from perspective.sqltree import (
    AndCondition,
    BinaryCondition,
    CallExpression,
    ColumnRefExpression,
    Condition,
    Expression,
    InCondition,
    IsNullCondition,
    NotCondition,
    OrCondition,
    RawExpression,
    Select,
    SortOrder,
    ValueExpression,
)

_OPERATORS: dict[str, Callable[[Any, Any], Any]] = {
    "=": operator.eq,
    "<>": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

_DIALECTS: dict[str, Callable[[], Dialect]] = {
    "sqlite": sqlite.dialect,
    "postgresql": postgresql.dialect,
    "postgres": postgresql.dialect,  # alias
    "mysql": mysql.dialect,
    "oracle": oracle.dialect,
    "mssql": mssql.dialect,
}


def _referenced_columns(tree: Select) -> list[str]:
    names: list[str] = []

    def visit(node: Any) -> None:
        if isinstance(node, ColumnRefExpression):
            if node.column_name not in names:
                names.append(node.column_name)
        elif isinstance(node, CallExpression):
            for arg in node.args:
                visit(arg)
        elif isinstance(node, (AndCondition, OrCondition)):
            for child in node.conditions:
                visit(child)
        elif isinstance(node, NotCondition):
            visit(node.condition)
        elif isinstance(node, (InCondition, IsNullCondition)):
            visit(node.expr)
        elif isinstance(node, BinaryCondition):
            visit(node.left)
            visit(node.right)

    for expr in tree.columns or []:
        visit(expr)
    for expr in tree.group_by or []:
        visit(expr)
    for expr in tree.order_by or []:
        visit(expr)
    if tree.where is not None:
        visit(tree.where)
    return names


class _Compiler:
    def __init__(self, tree: Select):
        name = tree.from_.name
        self.source: TableClause = table(
            name.pure_name,
            *(sa_column(c) for c in _referenced_columns(tree)),
            schema=name.schema_name,
        )

    def expression(self, expr: Expression, labelled: bool = False) -> ColumnElement[Any]:
        if isinstance(expr, ColumnRefExpression):
            result = self.source.c[expr.column_name]
        elif isinstance(expr, RawExpression):
            result = literal_column(expr.sql)
        elif isinstance(expr, CallExpression):
            result = getattr(func, expr.func.lower())(*(self.expression(a) for a in expr.args))
        elif isinstance(expr, ValueExpression):
            result = literal(expr.value)
        else:
            raise ConfigError(f"Unsupported expression {type(expr).__name__}")
        if labelled and expr.alias:
            return result.label(expr.alias)
        return result

    def condition(self, cond: Condition) -> ColumnElement[bool]:
        if isinstance(cond, AndCondition):
            parts = [self.condition(c) for c in cond.conditions]
            return and_(*parts) if parts else true()
        if isinstance(cond, OrCondition):
            parts = [self.condition(c) for c in cond.conditions]
            return or_(*parts) if parts else false()
        if isinstance(cond, NotCondition):
            return not_(self.condition(cond.condition))
        if isinstance(cond, InCondition):
            return self.expression(cond.expr).in_(cond.values)
        if isinstance(cond, BinaryCondition):
            return _OPERATORS[cond.operator](
                self.expression(cond.left), self.expression(cond.right)
            )
        if isinstance(cond, IsNullCondition):
            return self.expression(cond.expr).is_(None)
        raise ConfigError(f"Unsupported condition {type(cond).__name__}")

    def select(self, tree: Select) -> SASelect[Any]:
        if tree.select_all or tree.columns is None:
            stmt = select(literal_column("*")).select_from(self.source)
        elif not tree.columns:
            raise ConfigError("Select tree has an empty column list and selectAll is not set")
        else:
            stmt = select(*(self.expression(e, labelled=True) for e in tree.columns))
            stmt = stmt.select_from(self.source)

        if tree.where is not None:
            stmt = stmt.where(self.condition(tree.where))
        if tree.group_by:
            stmt = stmt.group_by(*(self.expression(e) for e in tree.group_by))
        if tree.order_by:
            stmt = stmt.order_by(
                *(
                    self.source.c[e.column_name].desc()
                    if e.direction == SortOrder.DESC
                    else self.source.c[e.column_name].asc()
                    for e in tree.order_by
                )
            )
        if tree.range is not None:
            stmt = stmt.offset(tree.range.offset).limit(tree.range.limit)
        return stmt


def to_sqlalchemy(tree: Select | dict[str, Any]) -> SASelect[Any]:
    """SQLAlchemy Core statement for a select tree (model or wire dict)."""
    if isinstance(tree, dict):
        tree = Select.model_validate(tree)
    return _Compiler(tree).select(tree)


def get_sql_dialect(name: str) -> Dialect:
    """SQLAlchemy dialect instance by name (``'sqlite'``, ``'postgresql'``, ...)."""
    key = name.lower()
    if key not in _DIALECTS:
        raise ConfigError(
            f"Unknown SQL dialect '{name}'. Supported: {sorted(set(_DIALECTS) - {'postgres'})}"
        )
    return _DIALECTS[key]()


def to_sql(tree: Select | dict[str, Any], dialect: str = "sqlite") -> tuple[str, dict[str, Any]]:
    """SQL text and bound parameters for a select tree in the given dialect."""
    compiled = to_sqlalchemy(tree).compile(
        dialect=get_sql_dialect(dialect),
        compile_kwargs={"render_postcompile": True},
    )
    return str(compiled), dict(compiled.params)


__all__ = ["to_sqlalchemy", "to_sql", "get_sql_dialect"]
