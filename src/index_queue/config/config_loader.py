"""
Configuration loader for the index queue administration layer.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..core.exceptions import AdminConfigError
from ..core.site import Site


logger = logging.getLogger(__name__)


class AdminConfig:
    """
    Configuration for the index queue administration layer.

    Loads a YAML configuration file describing the queue state stores, the
    content database and the sites with their indexing configurations.
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to YAML config file (optional)
        """
        self.config_path = Path(config_path) if config_path else None
        self.config = self._load_config() if self.config_path else self._default_config()
        self._apply_env_overrides()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        logger.info(f"Loading config from: {self.config_path}")

        with open(self.config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)

        return config or {}

    def _default_config(self) -> Dict[str, Any]:
        """Return default configuration."""
        return {
            "state": {
                "sqlite": {
                    "db_path": "local/state/index_queue.db",
                },
                "sqlserver": {
                    "host": "localhost",
                    "port": 1433,
                    "database": "Search",
                    "user": "sa",
                    "schema": "index_queue",
                },
            },
            "content": {
                "db_path": "local/content/content.db",
            },
            "indexing": {
                "batch_size": 1,
                "timeout": 30,
                "max_retries": 3,
            },
            "sites": [],
        }

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides to loaded config."""
        state = self.config.setdefault("state", {})

        state_db = os.environ.get("INDEX_QUEUE_STATE_DB")
        if state_db:
            state.setdefault("sqlite", {})["db_path"] = state_db

        content_db = os.environ.get("INDEX_QUEUE_CONTENT_DB")
        if content_db:
            self.config.setdefault("content", {})["db_path"] = content_db

        sqlserver_password = os.environ.get("INDEX_QUEUE_SQLSERVER_PASSWORD")
        if sqlserver_password:
            state.setdefault("sqlserver", {})["password"] = sqlserver_password

        sqlserver_conn_str = os.environ.get("INDEX_QUEUE_SQLSERVER_CONN_STR")
        if sqlserver_conn_str:
            state.setdefault("sqlserver", {})["connection_string"] = sqlserver_conn_str

    def get_state_config(self) -> Dict[str, Any]:
        """Get queue state store configuration."""
        return self.config.get("state", {})

    def get_content_config(self) -> Dict[str, Any]:
        """Get content source configuration."""
        return self.config.get("content", {})

    def get_indexing_config(self) -> Dict[str, Any]:
        """Get indexing run configuration."""
        return self.config.get("indexing", {})

    def get_sites(self) -> List[Site]:
        """Build the configured sites."""
        sites = []
        for entry in self.config.get("sites") or []:
            if not isinstance(entry, dict):
                raise AdminConfigError(f"Invalid site entry: {entry!r}")
            sites.append(Site.from_dict(entry))
        return sites

    def get_site(self, site_id: int) -> Optional[Site]:
        """Get a configured site by id, or None if no such site exists."""
        for site in self.get_sites():
            if site.site_id == site_id:
                return site
        return None

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dotted key."""
        keys = key.split(".")
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default

        return value if value is not None else default
