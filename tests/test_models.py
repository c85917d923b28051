"""Tests for result and schema models."""

import pydantic
import pytest

from mssql_tool.core.models import (
    ExecutionStats,
    QueryResponse,
    QueryResult,
    QueryVerdict,
    TableKind,
    TableRef,
)


@pytest.mark.unit
def test_table_ref_qualified_name():
    ref = TableRef(schema_name="sales", table_name="orders", kind=TableKind.TABLE)
    assert ref.qualified_name == "sales.orders"
    assert ref.row_count is None


@pytest.mark.unit
def test_models_are_frozen():
    verdict = QueryVerdict(allowed=True, rewritten_text="SELECT 1", max_rows=100)
    with pytest.raises(pydantic.ValidationError):
        verdict.allowed = False


@pytest.mark.unit
def test_execution_time_cannot_be_negative():
    with pytest.raises(pydantic.ValidationError):
        QueryResult(columns=[], rows=[], row_count=0, execution_time_ms=-1)


@pytest.mark.unit
def test_execution_stats_defaults_to_zero():
    stats = ExecutionStats()
    assert (stats.logical_reads, stats.physical_reads, stats.cpu_time_ms) == (0, 0, 0)


@pytest.mark.unit
def test_query_response_dump():
    result = QueryResult(columns=["id"], rows=[{"id": 1}], row_count=1, execution_time_ms=3)
    dumped = QueryResponse(result=result).model_dump()
    assert dumped == {
        "result": {
            "columns": ["id"],
            "rows": [{"id": 1}],
            "row_count": 1,
            "execution_time_ms": 3,
        },
        "execution_plan": None,
        "execution_plan_error": None,
    }


@pytest.mark.unit
def test_table_kind_serializes_as_string():
    ref = TableRef(schema_name="dbo", table_name="v", kind=TableKind.VIEW)
    assert ref.model_dump()["kind"] == "VIEW"
