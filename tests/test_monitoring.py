"""Tests for opt-in Sentry setup."""

from unittest.mock import patch

import pytest

from mssql_tool.__about__ import __version__
from mssql_tool.core.monitoring import SENTRY_DSN_ENV, setup_sentry


@pytest.mark.unit
def test_disabled_without_dsn():
    with patch("sentry_sdk.init") as init:
        assert setup_sentry() is False
    init.assert_not_called()


@pytest.mark.unit
def test_enabled_with_dsn(monkeypatch):
    monkeypatch.setenv(SENTRY_DSN_ENV, "https://key@sentry.example.com/1")
    with patch("sentry_sdk.init") as init:
        assert setup_sentry("ci") is True
    kwargs = init.call_args.kwargs
    assert kwargs["dsn"] == "https://key@sentry.example.com/1"
    assert kwargs["environment"] == "ci"
    assert kwargs["release"] == __version__
    assert kwargs["send_default_pii"] is False
