"""Result formatters (table, json, csv).

Importing this package registers every built-in formatter.
"""

from mssql_tool.formatters.base import (
    Formatter,
    available_formats,
    create_formatter,
    text_value,
)
from mssql_tool.formatters.csv import CSVFormatter
from mssql_tool.formatters.json import JSONFormatter, dumps, json_value
from mssql_tool.formatters.table import TableFormatter

__all__ = [
    "CSVFormatter",
    "Formatter",
    "JSONFormatter",
    "TableFormatter",
    "available_formats",
    "create_formatter",
    "dumps",
    "json_value",
    "text_value",
]
