import os

import pytest

from boards_config.settings import (
    AzureBoardsSettings,
    ConfigError,
    ConfluenceSettings,
    load_env_once,
    repo_root,
    telemetry_dir,
)
from tests.helpers.env import BOARDS_ENV, CONFLUENCE_ENV


@pytest.mark.parametrize("missing", sorted(BOARDS_ENV))
def test_boards_settings_require_every_variable(missing):
    env = dict(BOARDS_ENV)
    del env[missing]
    with pytest.raises(ConfigError, match=missing):
        AzureBoardsSettings.from_env(env)


@pytest.mark.parametrize("missing", sorted(CONFLUENCE_ENV))
def test_confluence_settings_require_every_variable(missing):
    env = dict(CONFLUENCE_ENV, **{missing: "   "})
    with pytest.raises(ConfigError, match=missing):
        ConfluenceSettings.from_env(env)


def test_missing_variables_are_all_reported():
    with pytest.raises(ConfigError) as ei:
        AzureBoardsSettings.from_env({})
    msg = str(ei.value)
    assert all(name in msg for name in BOARDS_ENV)


def test_direct_construction_is_validated_too():
    with pytest.raises(ConfigError):
        ConfluenceSettings(base_url="https://x", user="", api_token="t")


@pytest.mark.parametrize("url,expected", [
    ("https://acme.atlassian.net/", "https://acme.atlassian.net"),
    ("https://acme.atlassian.net", "https://acme.atlassian.net"),
    ("https://acme.atlassian.net//", "https://acme.atlassian.net/"),
])
def test_confluence_url_loses_one_trailing_slash(url, expected):
    s = ConfluenceSettings.from_env(dict(CONFLUENCE_ENV, CONFLUENCE_URL=url))
    assert s.base_url == expected


def test_from_env_reads_process_environment(monkeypatch):
    for k, v in BOARDS_ENV.items():
        monkeypatch.setenv(k, v)
    s = AzureBoardsSettings.from_env()
    assert s.project == "Roadmap"


def test_connectors_fail_before_any_network_call(monkeypatch):
    from boards_mcp.connectors.azure_boards import WorkItemConnector
    from boards_mcp.connectors.confluence import ContentConnector

    for k in (*BOARDS_ENV, *CONFLUENCE_ENV):
        monkeypatch.delenv(k, raising=False)

    with pytest.raises(ConfigError):
        WorkItemConnector.from_env()
    with pytest.raises(ConfigError):
        ContentConnector.from_env()


def test_load_env_once_does_not_override(tmp_path, monkeypatch):
    env_file = tmp_path / "custom.env"
    env_file.write_text("AZURE_DEVOPS_PROJECT=FromFile\nBOARDS_TEST_ONLY=1\n", encoding="utf-8")
    monkeypatch.setenv("BOARDS_ENV_FILE", str(env_file))
    monkeypatch.setenv("AZURE_DEVOPS_PROJECT", "FromEnv")
    monkeypatch.delenv("BOARDS_TEST_ONLY", raising=False)
    load_env_once.cache_clear()
    try:
        assert load_env_once() == env_file.resolve()
        assert os.environ["AZURE_DEVOPS_PROJECT"] == "FromEnv"
        assert os.environ["BOARDS_TEST_ONLY"] == "1"
    finally:
        load_env_once.cache_clear()
        monkeypatch.delenv("BOARDS_TEST_ONLY", raising=False)


@pytest.fixture()
def fresh_root():
    repo_root.cache_clear()
    yield
    repo_root.cache_clear()


def test_repo_root_override_places_default_telemetry_dir(tmp_path, monkeypatch, fresh_root):
    monkeypatch.setenv("BOARDS_REPO_ROOT", str(tmp_path))
    monkeypatch.delenv("BOARDS_TELEMETRY_DIR", raising=False)

    assert repo_root() == tmp_path.resolve()
    assert telemetry_dir() == tmp_path.resolve() / "artifacts" / "telemetry"


def test_repo_root_override_must_be_a_directory(tmp_path, monkeypatch, fresh_root):
    monkeypatch.setenv("BOARDS_REPO_ROOT", str(tmp_path / "missing"))

    with pytest.raises(ConfigError, match="BOARDS_REPO_ROOT"):
        repo_root()


def test_repo_root_found_from_working_directory(tmp_path, monkeypatch, fresh_root):
    (tmp_path / "pyproject.toml").write_text("", encoding="utf-8")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    monkeypatch.delenv("BOARDS_REPO_ROOT", raising=False)
    monkeypatch.chdir(nested)

    assert repo_root() == tmp_path.resolve()
