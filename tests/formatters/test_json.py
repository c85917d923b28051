"""Tests for JSONFormatter and value mapping."""

import datetime as dt
import json
from decimal import Decimal
from uuid import UUID

import pytest

from mssql_tool.core.models import QueryResult
from mssql_tool.formatters.json import JSONFormatter, dumps, json_value


@pytest.mark.unit
@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1, 1),
        (None, None),
        (True, True),
        ("x", "x"),
        (Decimal("12.50"), "12.50"),
        (dt.datetime(2024, 1, 2, 3, 4, 5), "2024-01-02T03:04:05"),
        (UUID("12345678-1234-5678-1234-567812345678"), "12345678-1234-5678-1234-567812345678"),
        (b"\x01\xff", "0x01FF"),
    ],
)
def test_json_value(value, expected):
    assert json_value(value) == expected


@pytest.mark.unit
def test_rows_in_column_order():
    result = QueryResult(
        columns=["name", "price"],
        rows=[{"price": Decimal("9.99"), "name": "widget"}],
        row_count=1,
        execution_time_ms=1,
    )
    output = "\n".join(JSONFormatter().format(result))
    assert json.loads(output) == [{"name": "widget", "price": "9.99"}]
    assert output.index('"name"') < output.index('"price"')


@pytest.mark.unit
def test_compact():
    result = QueryResult(columns=["id"], rows=[{"id": 1}], row_count=1, execution_time_ms=0)
    assert list(JSONFormatter(compact=True).format(result)) == ['[{"id":1}]']


@pytest.mark.unit
def test_non_ascii_kept():
    assert dumps({"city": "Zürich"}, compact=True) == '{"city":"Zürich"}'


@pytest.mark.unit
def test_empty_result():
    result = QueryResult(columns=["id"], rows=[], row_count=0, execution_time_ms=0)
    assert json.loads("".join(JSONFormatter().format(result))) == []
