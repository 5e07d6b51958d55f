"""
Unit tests for the YAML configuration loader.
"""

import pytest

from index_queue.config import AdminConfig
from index_queue.core.exceptions import AdminConfigError


ENV_VARS = [
    "INDEX_QUEUE_STATE_DB",
    "INDEX_QUEUE_CONTENT_DB",
    "INDEX_QUEUE_SQLSERVER_PASSWORD",
    "INDEX_QUEUE_SQLSERVER_CONN_STR",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "index_queue.yaml"
    path.write_text(
        """
state:
  sqlite:
    db_path: /tmp/queue.db
content:
  db_path: /tmp/content.db
indexing:
  batch_size: 5
sites:
  - id: 1
    label: main
    backends:
      - type: http
        url: http://localhost:8983/solr/core_en
    indexing:
      pages:
        table: pages
  - id: 2
    indexing:
      docs: {}
""",
        encoding="utf-8",
    )
    return path


class TestAdminConfig:
    """Tests for AdminConfig."""

    def test_default_config(self):
        config = AdminConfig()

        assert config.get("state.sqlite.db_path") == "local/state/index_queue.db"
        assert config.get("indexing.batch_size") == 1
        assert config.get_sites() == []

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AdminConfig(config_path=tmp_path / "missing.yaml")

    def test_load_from_file(self, config_file):
        config = AdminConfig(config_path=config_file)

        assert config.get_state_config()["sqlite"]["db_path"] == "/tmp/queue.db"
        assert config.get_content_config()["db_path"] == "/tmp/content.db"
        assert config.get_indexing_config()["batch_size"] == 5

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        config = AdminConfig(config_path=path)

        assert config.get_sites() == []
        assert config.get("indexing.batch_size", 1) == 1

    def test_get_sites(self, config_file):
        sites = AdminConfig(config_path=config_file).get_sites()

        assert [site.site_id for site in sites] == [1, 2]
        assert sites[0].get_enabled_indexing_configuration_names() == ["pages"]
        assert sites[1].get_backend_connections() == []

    def test_get_site(self, config_file):
        config = AdminConfig(config_path=config_file)

        assert config.get_site(2).site_id == 2
        assert config.get_site(99) is None

    def test_invalid_site_entry_raises(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("sites:\n  - just-a-string\n", encoding="utf-8")

        with pytest.raises(AdminConfigError):
            AdminConfig(config_path=path).get_sites()

    def test_env_overrides(self, config_file, monkeypatch):
        monkeypatch.setenv("INDEX_QUEUE_STATE_DB", "/data/queue.db")
        monkeypatch.setenv("INDEX_QUEUE_CONTENT_DB", "/data/content.db")
        monkeypatch.setenv("INDEX_QUEUE_SQLSERVER_PASSWORD", "secret")
        monkeypatch.setenv("INDEX_QUEUE_SQLSERVER_CONN_STR", "Driver={x};Server=db")

        config = AdminConfig(config_path=config_file)

        assert config.get("state.sqlite.db_path") == "/data/queue.db"
        assert config.get("content.db_path") == "/data/content.db"
        assert config.get("state.sqlserver.password") == "secret"
        assert config.get("state.sqlserver.connection_string") == "Driver={x};Server=db"

    def test_get_dotted_default(self, config_file):
        config = AdminConfig(config_path=config_file)

        assert config.get("indexing.timeout", 30) == 30
        assert config.get("indexing.batch_size.nested", "fallback") == "fallback"
