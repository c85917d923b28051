"""Result and schema models for mssql-tool.

Pydantic models for the gatekeeper verdict, raw and shaped query results,
and the normalized schema snapshot built by core.schema. All models are
frozen: they are read-model snapshots built fresh per request.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# One row of SHOWPLAN_ALL output, keyed by the engine's column names.
PlanRow = dict[str, Any]


class ColumnMeta(BaseModel):
    """Metadata for a single result column as reported by the driver."""

    model_config = ConfigDict(frozen=True)

    name: str
    type_name: str


class ResultSet(BaseModel):
    """Raw result of one round-trip through MssqlClient.run_query()."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    columns: list[ColumnMeta]
    rows: list[tuple[Any, ...]]
    messages: list[str] = []


class QueryVerdict(BaseModel):
    """Outcome of gatekeeper evaluation for one query text."""

    model_config = ConfigDict(frozen=True)

    allowed: bool
    rewritten_text: str
    reason: str | None = None
    max_rows: int
    has_comments: bool = False


class QueryResult(BaseModel):
    """Shaped result of an executed query."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    columns: list[str]
    rows: list[dict[str, Any]]
    row_count: int
    execution_time_ms: int = Field(ge=0)


class ExecutionStats(BaseModel):
    """Per-query engine statistics.

    Only elapsed_time_ms is measured directly. The other fields are parsed
    from engine messages when available; 0 means "not available".
    """

    model_config = ConfigDict(frozen=True)

    logical_reads: int = 0
    physical_reads: int = 0
    cpu_time_ms: int = 0
    elapsed_time_ms: int = Field(default=0, ge=0)


class TableKind(StrEnum):
    TABLE = "TABLE"
    VIEW = "VIEW"


class TableRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    schema_name: str
    table_name: str
    kind: TableKind
    row_count: int | None = None

    @property
    def qualified_name(self) -> str:
        return f"{self.schema_name}.{self.table_name}"


class ColumnDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    data_type: str
    max_length: int | None = None
    nullable: bool
    is_primary_key: bool = False
    is_foreign_key: bool = False
    default_value: str | None = None
    description: str | None = None


class IndexDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    columns: list[str]
    is_unique: bool
    is_primary_key: bool


class ForeignKeyDescriptor(BaseModel):
    """One (constraint, column) pair; composite keys share the name."""

    model_config = ConfigDict(frozen=True)

    name: str
    column: str
    referenced_schema: str
    referenced_table: str
    referenced_column: str


class TableSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    table: TableRef
    columns: list[ColumnDescriptor]
    indexes: list[IndexDescriptor]
    foreign_keys: list[ForeignKeyDescriptor]


class QueryResponse(BaseModel):
    """Response of the run-query action, optionally with its plan."""

    model_config = ConfigDict(frozen=True)

    result: QueryResult
    execution_plan: list[PlanRow] | None = None
    execution_plan_error: str | None = None


class QueryAnalysis(BaseModel):
    """Response of the analyze-query action."""

    model_config = ConfigDict(frozen=True)

    query: str
    statistics: ExecutionStats
    execution_plan: list[PlanRow]
    recommendations: list[str]
