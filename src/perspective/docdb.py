"""Document query descriptor: collection options for the execution channel.

A document load is described by one options object. Data loads use
``condition``/``sort``/``skip``/``limit``, grouping loads use an
``aggregate`` pipeline, and row counts set ``countDocuments``. Keys left
unset are omitted from the wire entirely: a load with no ordering has no
``sort`` key, so the engine never sorts on an unspecified field.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from perspective.sqltree import SortOrder

SORT_DIRECTIONS: dict[SortOrder, int] = {SortOrder.ASC: 1, SortOrder.DESC: -1}


class CollectionOptions(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    pure_name: str
    condition: dict[str, Any] | None = None
    skip: int | None = Field(default=None, ge=0)
    limit: int | None = Field(default=None, ge=0)
    sort: dict[str, int] | None = None
    aggregate: list[dict[str, Any]] | None = None
    count_documents: bool | None = None

    def to_wire(self) -> dict[str, Any]:
        # top-level only: a None inside a filter document is a real null match
        wire = self.model_dump(by_alias=True, mode="json")
        return {key: value for key, value in wire.items() if value is not None}


__all__ = ["SORT_DIRECTIONS", "CollectionOptions"]
