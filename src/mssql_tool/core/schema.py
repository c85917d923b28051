"""Schema metadata resolution.

Turns SQL Server catalog queries into the normalized TableRef/TableSchema
models. Nothing is cached: every call re-queries the catalog.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from mssql_tool.core.exceptions import (
    DatabaseError,
    NotFoundError,
    SchemaInconsistencyError,
)
from mssql_tool.core.models import (
    ColumnDescriptor,
    ForeignKeyDescriptor,
    IndexDescriptor,
    TableKind,
    TableRef,
    TableSchema,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from mssql_tool.core.client import MssqlClient

# Catalog schemas never reported to callers.
SYSTEM_SCHEMAS: tuple[str, ...] = ("sys", "INFORMATION_SCHEMA")

# Separator for the aggregated index column list (ASCII unit separator).
INDEX_COLUMN_SEPARATOR = "\x1f"

_KINDS: dict[str, TableKind] = {
    "USER_TABLE": TableKind.TABLE,
    "VIEW": TableKind.VIEW,
}

_SYSTEM_SCHEMA_LIST = ", ".join(f"'{name}'" for name in SYSTEM_SCHEMAS)

_TABLES_SQL = f"""
SELECT
    s.name AS [schema],
    t.name AS [name],
    t.type_desc AS [type]
FROM sys.tables t
INNER JOIN sys.schemas s ON t.schema_id = s.schema_id
WHERE s.name NOT IN ({_SYSTEM_SCHEMA_LIST})
UNION ALL
SELECT
    s.name AS [schema],
    v.name AS [name],
    'VIEW' AS [type]
FROM sys.views v
INNER JOIN sys.schemas s ON v.schema_id = s.schema_id
WHERE s.name NOT IN ({_SYSTEM_SCHEMA_LIST})
ORDER BY [schema], [name]
"""

_TABLE_SQL = """
SET NOCOUNT ON;
DECLARE @schema sysname = ?, @table sysname = ?;
SELECT
    s.name AS [schema],
    t.name AS [name],
    t.type_desc AS [type]
FROM sys.tables t
INNER JOIN sys.schemas s ON t.schema_id = s.schema_id
WHERE s.name = @schema AND t.name = @table
UNION ALL
SELECT
    s.name AS [schema],
    v.name AS [name],
    'VIEW' AS [type]
FROM sys.views v
INNER JOIN sys.schemas s ON v.schema_id = s.schema_id
WHERE s.name = @schema AND v.name = @table
"""

_COLUMNS_SQL = """
SET NOCOUNT ON;
DECLARE @schema sysname = ?, @table sysname = ?;
SELECT
    c.COLUMN_NAME AS name,
    c.DATA_TYPE AS data_type,
    c.CHARACTER_MAXIMUM_LENGTH AS max_length,
    CASE WHEN c.IS_NULLABLE = 'YES' THEN 1 ELSE 0 END AS nullable,
    CASE WHEN pk.COLUMN_NAME IS NOT NULL THEN 1 ELSE 0 END AS is_primary_key,
    CASE WHEN fk.COLUMN_NAME IS NOT NULL THEN 1 ELSE 0 END AS is_foreign_key,
    c.COLUMN_DEFAULT AS default_value,
    CAST(ep.value AS nvarchar(4000)) AS description
FROM INFORMATION_SCHEMA.COLUMNS c
LEFT JOIN (
    SELECT DISTINCT ku.COLUMN_NAME
    FROM INFORMATION_SCHEMA.KEY_COLUMN_USAGE ku
    INNER JOIN INFORMATION_SCHEMA.TABLE_CONSTRAINTS tc
        ON ku.CONSTRAINT_NAME = tc.CONSTRAINT_NAME
        AND ku.CONSTRAINT_SCHEMA = tc.CONSTRAINT_SCHEMA
    WHERE tc.CONSTRAINT_TYPE = 'PRIMARY KEY'
        AND ku.TABLE_SCHEMA = @schema
        AND ku.TABLE_NAME = @table
) pk ON c.COLUMN_NAME = pk.COLUMN_NAME
LEFT JOIN (
    SELECT DISTINCT ku.COLUMN_NAME
    FROM INFORMATION_SCHEMA.KEY_COLUMN_USAGE ku
    INNER JOIN INFORMATION_SCHEMA.TABLE_CONSTRAINTS tc
        ON ku.CONSTRAINT_NAME = tc.CONSTRAINT_NAME
        AND ku.CONSTRAINT_SCHEMA = tc.CONSTRAINT_SCHEMA
    WHERE tc.CONSTRAINT_TYPE = 'FOREIGN KEY'
        AND ku.TABLE_SCHEMA = @schema
        AND ku.TABLE_NAME = @table
) fk ON c.COLUMN_NAME = fk.COLUMN_NAME
LEFT JOIN sys.extended_properties ep
    ON ep.major_id = OBJECT_ID(QUOTENAME(@schema) + '.' + QUOTENAME(@table))
    AND ep.minor_id = COLUMNPROPERTY(
        OBJECT_ID(QUOTENAME(@schema) + '.' + QUOTENAME(@table)),
        c.COLUMN_NAME,
        'ColumnId'
    )
    AND ep.name = 'MS_Description'
WHERE c.TABLE_SCHEMA = @schema AND c.TABLE_NAME = @table
ORDER BY c.ORDINAL_POSITION
"""

_INDEXES_SQL = """
SET NOCOUNT ON;
DECLARE @schema sysname = ?, @table sysname = ?, @sep nvarchar(1) = ?;
SELECT
    i.name AS index_name,
    STRING_AGG(CAST(c.name AS nvarchar(max)), @sep)
        WITHIN GROUP (ORDER BY ic.key_ordinal, ic.index_column_id) AS columns,
    i.is_unique AS is_unique,
    i.is_primary_key AS is_primary_key
FROM sys.indexes i
INNER JOIN sys.index_columns ic ON i.object_id = ic.object_id AND i.index_id = ic.index_id
INNER JOIN sys.columns c ON ic.object_id = c.object_id AND ic.column_id = c.column_id
INNER JOIN sys.objects o ON i.object_id = o.object_id
INNER JOIN sys.schemas s ON o.schema_id = s.schema_id
WHERE s.name = @schema AND o.name = @table AND i.name IS NOT NULL
GROUP BY i.name, i.is_unique, i.is_primary_key
ORDER BY i.name
"""

_FOREIGN_KEYS_SQL = """
SET NOCOUNT ON;
DECLARE @schema sysname = ?, @table sysname = ?;
SELECT
    fk.name AS constraint_name,
    c1.name AS column_name,
    s2.name AS referenced_schema,
    t2.name AS referenced_table,
    c2.name AS referenced_column
FROM sys.foreign_keys fk
INNER JOIN sys.foreign_key_columns fkc ON fk.object_id = fkc.constraint_object_id
INNER JOIN sys.columns c1
    ON fkc.parent_object_id = c1.object_id AND fkc.parent_column_id = c1.column_id
INNER JOIN sys.columns c2
    ON fkc.referenced_object_id = c2.object_id AND fkc.referenced_column_id = c2.column_id
INNER JOIN sys.objects t1 ON fk.parent_object_id = t1.object_id
INNER JOIN sys.objects t2 ON fk.referenced_object_id = t2.object_id
INNER JOIN sys.schemas s1 ON t1.schema_id = s1.schema_id
INNER JOIN sys.schemas s2 ON t2.schema_id = s2.schema_id
WHERE s1.name = @schema AND t1.name = @table
ORDER BY fk.name, fkc.constraint_column_id
"""


def quote_identifier(name: str) -> str:
    """Bracket-quote a SQL Server identifier."""
    return "[" + name.replace("]", "]]") + "]"


def _table_kind(type_desc: str) -> TableKind:
    try:
        return _KINDS[type_desc]
    except KeyError:
        msg = f"Unexpected catalog object type: {type_desc!r}"
        raise SchemaInconsistencyError(msg) from None


def _to_table_ref(row: tuple[Any, ...]) -> TableRef:
    schema_name, table_name, type_desc = row
    return TableRef(
        schema_name=schema_name,
        table_name=table_name,
        kind=_table_kind(type_desc),
    )


def list_tables(client: MssqlClient) -> list[TableRef]:
    """List user tables and views sorted by (schema, name)."""
    result = client.run_query(_TABLES_SQL)
    tables = sorted(
        (_to_table_ref(row) for row in result.rows),
        key=lambda ref: (ref.schema_name, ref.table_name),
    )
    seen: set[tuple[str, str]] = set()
    for ref in tables:
        key = (ref.schema_name, ref.table_name)
        if key in seen:
            msg = f"Catalog reported {ref.qualified_name} more than once"
            raise SchemaInconsistencyError(msg)
        seen.add(key)
    return tables


def search_tables(client: MssqlClient, search_term: str = "") -> list[TableRef]:
    """Tables and views whose name or schema contains search_term (case-insensitive)."""
    tables = list_tables(client)
    term = search_term.strip().lower()
    if not term:
        return tables
    return [
        ref
        for ref in tables
        if term in ref.table_name.lower() or term in ref.schema_name.lower()
    ]


def _count_rows(client: MssqlClient, table: TableRef) -> int | None:
    """Best-effort row count; None when the count query fails."""
    log = structlog.get_logger()
    sql = (
        "SELECT COUNT_BIG(*) AS row_count FROM "
        f"{quote_identifier(table.schema_name)}.{quote_identifier(table.table_name)}"
    )
    try:
        result = client.run_query(sql)
    except DatabaseError as e:
        log.warning(
            "could not get row count",
            table=table.qualified_name,
            error=e.message,
        )
        return None
    if not result.rows:
        return None
    return int(result.rows[0][0])


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def get_columns(
    client: MssqlClient, schema_name: str, table_name: str
) -> list[ColumnDescriptor]:
    result = client.run_query(_COLUMNS_SQL, (schema_name, table_name))
    return [
        ColumnDescriptor(
            name=name,
            data_type=data_type,
            max_length=max_length,
            nullable=bool(nullable),
            is_primary_key=bool(is_pk),
            is_foreign_key=bool(is_fk),
            default_value=_optional_str(default_value),
            description=_optional_str(description),
        )
        for (
            name,
            data_type,
            max_length,
            nullable,
            is_pk,
            is_fk,
            default_value,
            description,
        ) in result.rows
    ]


def split_index_columns(aggregated: str | None) -> list[str]:
    """Split an aggregated index column list back into key order."""
    if not aggregated:
        return []
    return aggregated.split(INDEX_COLUMN_SEPARATOR)


def get_indexes(
    client: MssqlClient, schema_name: str, table_name: str
) -> list[IndexDescriptor]:
    result = client.run_query(
        _INDEXES_SQL, (schema_name, table_name, INDEX_COLUMN_SEPARATOR)
    )
    return [
        IndexDescriptor(
            name=name,
            columns=split_index_columns(columns),
            is_unique=bool(is_unique),
            is_primary_key=bool(is_pk),
        )
        for name, columns, is_unique, is_pk in result.rows
    ]


def get_foreign_keys(
    client: MssqlClient, schema_name: str, table_name: str
) -> list[ForeignKeyDescriptor]:
    result = client.run_query(_FOREIGN_KEYS_SQL, (schema_name, table_name))
    return [
        ForeignKeyDescriptor(
            name=name,
            column=column,
            referenced_schema=ref_schema,
            referenced_table=ref_table,
            referenced_column=ref_column,
        )
        for name, column, ref_schema, ref_table, ref_column in result.rows
    ]


def check_consistency(
    table: TableRef,
    columns: Iterable[ColumnDescriptor],
    indexes: Iterable[IndexDescriptor],
    foreign_keys: Iterable[ForeignKeyDescriptor],
) -> None:
    """Raise SchemaInconsistencyError if an index or FK names an unknown column."""
    known = {col.name for col in columns}
    problems: list[str] = []
    for index in indexes:
        for name in index.columns:
            if name not in known:
                problems.append(f"index {index.name} references {name}")
    for fk in foreign_keys:
        if fk.column not in known:
            problems.append(f"foreign key {fk.name} references {fk.column}")
    if problems:
        msg = (
            f"Inconsistent catalog metadata for {table.qualified_name}: "
            f"{'; '.join(problems)}"
        )
        raise SchemaInconsistencyError(msg)


def find_table(client: MssqlClient, schema_name: str, table_name: str) -> TableRef:
    result = client.run_query(_TABLE_SQL, (schema_name, table_name))
    if not result.rows:
        msg = f"Table {schema_name}.{table_name} not found"
        raise NotFoundError(msg)
    return _to_table_ref(result.rows[0])


def get_table_schema(
    client: MssqlClient, schema_name: str, table_name: str
) -> TableSchema:
    """Assemble the full schema snapshot for one table or view.

    The row count is best-effort and only attempted for base tables;
    columns, indexes and foreign keys must all load or the call fails.
    """
    table = find_table(client, schema_name, table_name)
    if table.kind is TableKind.TABLE:
        row_count = _count_rows(client, table)
        if row_count is not None:
            table = table.model_copy(update={"row_count": row_count})

    columns = get_columns(client, table.schema_name, table.table_name)
    indexes = get_indexes(client, table.schema_name, table.table_name)
    foreign_keys = get_foreign_keys(client, table.schema_name, table.table_name)
    check_consistency(table, columns, indexes, foreign_keys)

    return TableSchema(
        table=table,
        columns=columns,
        indexes=indexes,
        foreign_keys=foreign_keys,
    )
