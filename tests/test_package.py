"""Package metadata tests."""

import pytest

import mssql_tool
from mssql_tool.__about__ import __version__


@pytest.mark.unit
def test_version():
    assert __version__ == "0.1.0"
    assert mssql_tool.__version__ == __version__
