"""mssql-tool - read-only SQL Server query and schema discovery tool."""

from mssql_tool.__about__ import __version__

__all__ = ["__version__"]
