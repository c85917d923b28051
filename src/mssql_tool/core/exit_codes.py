"""Process exit codes returned by the mssql-tool CLI."""

from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    GENERAL_ERROR = 1
    USAGE_ERROR = 2  # click/typer argument errors
    INPUT_ERROR = 3  # missing query file, empty query, bad table reference
    OUTPUT_ERROR = 4
    NETWORK_ERROR = 5  # cannot connect, connection dropped
    TIMEOUT = 6
    CONFIG_ERROR = 7
    POLICY_VIOLATION = 8  # query rejected before reaching the server
    NOT_FOUND = 9
    DATABASE_ERROR = 10  # syntax, permission and other engine errors
    SCHEMA_INCONSISTENCY = 11
