"""
Fake execution channels.

``RecordingChannel`` records every call and answers with a canned response.
``DualEngineChannel`` actually answers both engine families from equivalent
data: relational selects are compiled with SQLAlchemy and executed against
an in-memory SQLite engine, document options are evaluated against plain
dicts.
"""

from __future__ import annotations

import copy
from typing import Any, Callable

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from perspective.compile import to_sqlalchemy
from perspective.core.settings import PerspectiveSettings
from perspective.strategies import GROUP_SIZE_FIELD


class RecordingChannel:
    """Records ``(operation_name, payload)`` and returns ``response``.

    ``response`` may be a callable taking the same arguments.
    """

    def __init__(self, response: Any = None):
        self.response = response if response is not None else {"rows": []}
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def __call__(self, operation_name: str, payload: dict[str, Any]) -> Any:
        self.calls.append((operation_name, copy.deepcopy(payload)))
        if callable(self.response):
            return self.response(operation_name, payload)
        return copy.deepcopy(self.response)

    @property
    def last_payload(self) -> dict[str, Any]:
        return self.calls[-1][1]


# =============================================================================
# Document evaluation
# =============================================================================

_COMPARISONS: dict[str, Callable[[Any, Any], bool]] = {
    "$eq": lambda a, b: a == b,
    "$ne": lambda a, b: a != b,
    "$gt": lambda a, b: a is not None and a > b,
    "$gte": lambda a, b: a is not None and a >= b,
    "$lt": lambda a, b: a is not None and a < b,
    "$lte": lambda a, b: a is not None and a <= b,
    "$in": lambda a, b: a in b,
    "$nin": lambda a, b: a not in b,
}


def match_document(document: dict[str, Any], condition: dict[str, Any] | None) -> bool:
    """Subset of the document query language used by the loader tests."""
    if not condition:
        return True
    for key, expected in condition.items():
        if key == "$and":
            if not all(match_document(document, c) for c in expected):
                return False
        elif key == "$or":
            if not any(match_document(document, c) for c in expected):
                return False
        elif isinstance(expected, dict) and expected and all(k.startswith("$") for k in expected):
            actual = document.get(key)
            if not all(_COMPARISONS[op](actual, arg) for op, arg in expected.items()):
                return False
        elif document.get(key) != expected:
            return False
    return True


def _aggregate(documents: list[dict[str, Any]], pipeline: list[dict[str, Any]]) -> list[dict[str, Any]]:
    for stage in pipeline:
        if "$match" in stage:
            documents = [d for d in documents if match_document(d, stage["$match"])]
        elif "$group" in stage:
            id_spec = stage["$group"]["_id"]
            groups: dict[tuple, dict[str, Any]] = {}
            for document in documents:
                group_id = {name: document.get(ref.lstrip("$")) for name, ref in id_spec.items()}
                key = tuple(group_id.values())
                group = groups.setdefault(key, {"_id": group_id, "count": 0})
                group["count"] += 1
            documents = list(groups.values())
        else:
            raise ValueError(f"Unsupported pipeline stage {stage}")
    return documents


class DualEngineChannel:
    """Answers relational and document operations from equivalent data."""

    def __init__(
        self,
        engine: Engine,
        collections: dict[str, list[dict[str, Any]]],
        settings: PerspectiveSettings | None = None,
        counts_as_text: bool = False,
    ):
        self.engine = engine
        self.collections = collections
        self.settings = settings or PerspectiveSettings()
        self.counts_as_text = counts_as_text
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def __call__(self, operation_name: str, payload: dict[str, Any]) -> Any:
        self.calls.append((operation_name, copy.deepcopy(payload)))
        if operation_name == self.settings.sql_select_operation:
            return self._sql_select(payload["select"])
        if operation_name == self.settings.collection_data_operation:
            return self._collection_data(payload["options"])
        return {"errorMessage": f"Unknown operation {operation_name}"}

    def _sql_select(self, select: dict[str, Any]) -> dict[str, Any]:
        try:
            with self.engine.connect() as conn:
                rows = [dict(row._mapping) for row in conn.execute(to_sqlalchemy(select))]
        except SQLAlchemyError as e:
            return {"errorMessage": str(getattr(e, "orig", None) or e)}
        if self.counts_as_text:
            for row in rows:
                if GROUP_SIZE_FIELD in row:
                    row[GROUP_SIZE_FIELD] = str(row[GROUP_SIZE_FIELD])
        return {"rows": rows}

    def _collection_data(self, options: dict[str, Any]) -> Any:
        name = options["pureName"]
        if name not in self.collections:
            return {"errorMessage": f"Collection {name} not found"}
        documents = [copy.deepcopy(d) for d in self.collections[name]]

        if "aggregate" in options:
            return {"rows": _aggregate(documents, options["aggregate"])}

        documents = [d for d in documents if match_document(d, options.get("condition"))]
        if options.get("countDocuments"):
            return {"count": len(documents)}

        for key, direction in reversed(list(options.get("sort", {}).items())):
            documents.sort(key=lambda d: d.get(key), reverse=direction == -1)
        skip = options.get("skip") or 0
        documents = documents[skip:]
        if options.get("limit") is not None:
            documents = documents[: options["limit"]]
        return {"rows": documents}
