"""
Relational query descriptor: a serializable select tree.

The relational engine never receives SQL text from the loader. It receives
a structured select tree (source, projected expressions, filter tree,
group-by, order-by, range) that the execution channel renders for its own
dialect. Every node is a frozen pydantic model; ``to_wire()`` produces the
camelCase, JSON-ready shape the channel expects::

    {
        "commandType": "select",
        "from": {"name": {"schemaName": "dbo", "pureName": "orders"}},
        "columns": [{"exprType": "column", "columnName": "id", ...}],
        "where": {"conditionType": "in", "expr": {...}, "values": [1, 2]},
        "orderBy": [{"exprType": "column", "columnName": "id", "direction": "DESC"}],
        "range": {"offset": 0, "limit": 100}
    }

Expressions are discriminated on ``exprType`` and conditions on
``conditionType``, so a wire dict parses back into the same tree with
``Select.model_validate(wire)``.

Tags:
    sql, select-tree, query-descriptor, pydantic, perspective
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _TreeNode(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready camelCase dict, unset optional keys omitted."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class LoadRange(_TreeNode):
    """Paging window: skip ``offset`` rows, return at most ``limit``."""

    offset: int = Field(default=0, ge=0)
    limit: int = Field(ge=0)


class NameRef(_TreeNode):
    schema_name: str | None = None
    pure_name: str


class TableSource(_TreeNode):
    name: NameRef
    alias: str | None = None


# =============================================================================
# EXPRESSIONS
# =============================================================================


class ColumnRefExpression(_TreeNode):
    expr_type: Literal["column"] = "column"
    column_name: str
    source: TableSource | None = None
    alias: str | None = None


class RawExpression(_TreeNode):
    """Verbatim SQL fragment such as ``*`` or ``COUNT(*)``."""

    expr_type: Literal["raw"] = "raw"
    sql: str
    alias: str | None = None


class CallExpression(_TreeNode):
    expr_type: Literal["call"] = "call"
    func: str
    args: list[Expression] = Field(default_factory=list)
    alias: str | None = None


class ValueExpression(_TreeNode):
    expr_type: Literal["value"] = "value"
    value: Any = None
    alias: str | None = None


Expression = Annotated[
    Union[ColumnRefExpression, RawExpression, CallExpression, ValueExpression],
    Field(discriminator="expr_type"),
]


class OrderByExpression(ColumnRefExpression):
    direction: SortOrder = SortOrder.ASC


# =============================================================================
# CONDITIONS
# =============================================================================


class AndCondition(_TreeNode):
    condition_type: Literal["and"] = "and"
    conditions: list[Condition] = Field(default_factory=list)


class OrCondition(_TreeNode):
    condition_type: Literal["or"] = "or"
    conditions: list[Condition] = Field(default_factory=list)


class NotCondition(_TreeNode):
    condition_type: Literal["not"] = "not"
    condition: Condition


class InCondition(_TreeNode):
    """Membership of ``expr`` in a literal value list."""

    condition_type: Literal["in"] = "in"
    expr: Expression
    values: list[Any] = Field(default_factory=list)


class BinaryCondition(_TreeNode):
    condition_type: Literal["binary"] = "binary"
    operator: Literal["=", "<>", "<", "<=", ">", ">="]
    left: Expression
    right: Expression


class IsNullCondition(_TreeNode):
    condition_type: Literal["isNull"] = "isNull"
    expr: Expression


Condition = Annotated[
    Union[
        AndCondition,
        OrCondition,
        NotCondition,
        InCondition,
        BinaryCondition,
        IsNullCondition,
    ],
    Field(discriminator="condition_type"),
]


# =============================================================================
# SELECT
# =============================================================================


class Select(_TreeNode):
    command_type: Literal["select"] = "select"
    from_: TableSource = Field(alias="from")
    columns: list[Expression] | None = None
    select_all: bool | None = None
    where: Condition | None = None
    group_by: list[Expression] | None = None
    order_by: list[OrderByExpression] | None = None
    range: LoadRange | None = None


def column_ref(
    column_name: str,
    schema_name: str | None,
    pure_name: str,
    alias: str | None = None,
) -> ColumnRefExpression:
    """Column expression bound to ``schema_name.pure_name``."""
    return ColumnRefExpression(
        column_name=column_name,
        source=TableSource(name=NameRef(schema_name=schema_name, pure_name=pure_name)),
        alias=alias,
    )


for _model in (CallExpression, AndCondition, OrCondition, NotCondition, InCondition,
               BinaryCondition, IsNullCondition, Select):
    _model.model_rebuild()


__all__ = [
    "SortOrder",
    "LoadRange",
    "NameRef",
    "TableSource",
    "ColumnRefExpression",
    "RawExpression",
    "CallExpression",
    "ValueExpression",
    "Expression",
    "OrderByExpression",
    "AndCondition",
    "OrCondition",
    "NotCondition",
    "InCondition",
    "BinaryCondition",
    "IsNullCondition",
    "Condition",
    "Select",
    "column_ref",
]
