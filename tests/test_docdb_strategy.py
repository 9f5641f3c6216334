"""Tests for the document loader strategy: collection options and response handling."""

from __future__ import annotations

import pytest

from perspective.core.errors import EngineQueryError, ResponseShapeError
from perspective.core.result import Err, Ok
from perspective.strategies import GROUP_SIZE_FIELD, DocDbLoaderStrategy
from tests._support.channels import RecordingChannel


@pytest.fixture
def strategy() -> DocDbLoaderStrategy:
    return DocDbLoaderStrategy()


@pytest.fixture
def doc_props(make_props):
    def _make(**overrides):
        overrides.setdefault("engine_type", "docdb")
        return make_props(**overrides)

    return _make


# =========================================================================
# Options
# =========================================================================


class TestGroupingQuery:
    def test_match_then_group(self, strategy, doc_props):
        props = doc_props(
            binding_columns=["customer_id"],
            binding_values=[[1], [2]],
        )
        wire = strategy.build_grouping_query(props).to_wire()
        assert wire == {
            "pureName": "orders",
            "aggregate": [
                {"$match": {"customer_id": {"$in": [1, 2]}}},
                {"$group": {"_id": {"customer_id": "$customer_id"}, "count": {"$sum": 1}}},
            ],
        }

    def test_composite_group_id(self, strategy, doc_props):
        props = doc_props(
            binding_columns=["customer_id", "region"],
            binding_values=[[1, "north"]],
        )
        group = strategy.build_grouping_query(props).aggregate[-1]["$group"]
        assert group["_id"] == {"customer_id": "$customer_id", "region": "$region"}


class TestDataQuery:
    def test_no_order_means_no_sort_key(self, strategy, doc_props):
        wire = strategy.build_data_query(doc_props()).to_wire()
        assert "sort" not in wire
        assert wire == {"pureName": "orders"}

    def test_sort_map(self, strategy, doc_props):
        props = doc_props(
            order_by=[
                {"column_name": "region", "order": "ASC"},
                {"column_name": "amount", "order": "DESC"},
            ]
        )
        assert strategy.build_data_query(props).to_wire()["sort"] == {"region": 1, "amount": -1}

    def test_skip_limit_from_range(self, strategy, doc_props):
        wire = strategy.build_data_query(doc_props(range={"offset": 30, "limit": 15})).to_wire()
        assert wire["skip"] == 30
        assert wire["limit"] == 15

    def test_condition_merged(self, strategy, doc_props):
        props = doc_props(
            mongo_condition={"status": "open"},
            binding_columns=["customer_id"],
            binding_values=[[3]],
        )
        assert strategy.build_data_query(props).to_wire()["condition"] == {
            "$and": [{"status": "open"}, {"customer_id": {"$in": [3]}}]
        }

    def test_null_inside_condition_survives(self, strategy, doc_props):
        props = doc_props(mongo_condition={"closed_at": None})
        assert strategy.build_data_query(props).to_wire()["condition"] == {"closed_at": None}


class TestRowCountQuery:
    def test_count_flag_without_sort_skip_limit(self, strategy, doc_props):
        props = doc_props(
            order_by=[{"column_name": "amount"}],
            range={"offset": 10, "limit": 10},
            mongo_condition={"status": "open"},
        )
        assert strategy.build_row_count_query(props).to_wire() == {
            "pureName": "orders",
            "condition": {"status": "open"},
            "countDocuments": True,
        }


# =========================================================================
# Loads
# =========================================================================


class TestLoads:
    @pytest.mark.asyncio
    async def test_grouping_flattens_id(self, strategy, doc_props, settings):
        channel = RecordingChannel(
            {
                "rows": [
                    {"_id": {"customer_id": 1}, "count": 2},
                    {"_id": {"customer_id": 3}, "count": 5.0},
                ]
            }
        )
        props = doc_props(binding_columns=["customer_id"], binding_values=[[1], [3]])

        result = await strategy.load_grouping(channel, props, settings)

        assert result == Ok(
            [
                {"customer_id": 1, GROUP_SIZE_FIELD: 2},
                {"customer_id": 3, GROUP_SIZE_FIELD: 5},
            ]
        )
        assert all(type(r[GROUP_SIZE_FIELD]) is int for r in result.unwrap())
        operation, payload = channel.calls[0]
        assert operation == "database-connections/collection-data"
        assert payload["options"]["pureName"] == "orders"

    @pytest.mark.asyncio
    async def test_data_rows_returned_unchanged(self, strategy, doc_props, settings):
        rows = [{"_id": "a1", "customer_id": 1, "items": [{"sku": "x"}]}]
        channel = RecordingChannel({"rows": rows})
        assert await strategy.load_data(channel, doc_props(), settings) == Ok(rows)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [17, "17", {"count": 17}, {"rows": [{"count": 17}]}],
    )
    async def test_row_count_shapes(self, strategy, doc_props, settings, response):
        channel = RecordingChannel(lambda operation, payload: response)
        assert await strategy.load_row_count(channel, doc_props(), settings) == Ok(17)

    @pytest.mark.asyncio
    async def test_row_count_unknown_shape(self, strategy, doc_props, settings):
        channel = RecordingChannel({"total": 17})
        result = await strategy.load_row_count(channel, doc_props(), settings)
        assert isinstance(result, Err)
        assert isinstance(result.error, ResponseShapeError)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", ["load_grouping", "load_data", "load_row_count"])
    async def test_engine_error_verbatim(self, strategy, doc_props, settings, operation):
        channel = RecordingChannel({"errorMessage": "ns does not exist"})
        props = doc_props(binding_columns=["customer_id"], binding_values=[[1]])

        result = await getattr(strategy, operation)(channel, props, settings)

        assert isinstance(result.error, EngineQueryError)
        assert result.error.to_response() == {"errorMessage": "ns does not exist"}
