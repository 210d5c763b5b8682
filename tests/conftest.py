from __future__ import annotations

import pytest

from boards_config.settings import AzureBoardsSettings, ConfluenceSettings
from boards_mcp.connectors.azure_boards import WorkItemConnector
from boards_mcp.connectors.confluence import ContentConnector
from boards_mcp.core_infrastructure.http_client import HttpClient, HttpClientConfig
from tests.helpers.env import BOARDS_ENV, CONFLUENCE_ENV
from tests.helpers.fake_http import FakeSession


@pytest.fixture(autouse=True)
def _isolated_telemetry(tmp_path, monkeypatch):
    """Keep telemetry out of the repository during tests."""
    monkeypatch.setenv("BOARDS_TELEMETRY_DIR", str(tmp_path / "telemetry"))
    monkeypatch.delenv("BOARDS_DISABLE_TELEMETRY", raising=False)


@pytest.fixture()
def boards_settings() -> AzureBoardsSettings:
    return AzureBoardsSettings.from_env(BOARDS_ENV)


@pytest.fixture()
def confluence_settings() -> ConfluenceSettings:
    return ConfluenceSettings.from_env(CONFLUENCE_ENV)


@pytest.fixture()
def make_boards(boards_settings):
    """Build a WorkItemConnector over a FakeSession driven by `handler`."""

    def _make(handler):
        session = FakeSession(handler)
        http = HttpClient(
            config=HttpClientConfig(service="Azure DevOps", auth_hint="check AZURE_DEVOPS_*"),
            session=session,
        )
        return WorkItemConnector(boards_settings, http=http), session

    return _make


@pytest.fixture()
def make_wiki(confluence_settings):
    """Build a ContentConnector over a FakeSession driven by `handler`."""

    def _make(handler):
        session = FakeSession(handler)
        http = HttpClient(
            config=HttpClientConfig(service="Confluence", auth_hint="check CONFLUENCE_*", timeout=30.0),
            session=session,
        )
        return ContentConnector(confluence_settings, http=http), session

    return _make
