"""
Shared test fixtures and configuration for pytest.
"""

import logging
import os
import sqlite3
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from index_queue.core.models import IndexQueueItem, QueueStatistics
from index_queue.core.queue import IndexQueue
from index_queue.core.site import IndexingConfiguration, Site


logger = logging.getLogger(__name__)


# ============================================================================
# Environment detection
# ============================================================================

def sqlserver_password() -> Optional[str]:
    return os.environ.get("INDEX_QUEUE_SQLSERVER_PASSWORD") or os.environ.get("MSSQL_SA_PASSWORD")


def is_sqlserver_available() -> bool:
    """Check if SQL Server is available for testing."""
    password = sqlserver_password()
    if not password:
        return False

    try:
        import pyodbc

        host = os.environ.get("INDEX_QUEUE_SQLSERVER_HOST", "localhost")
        port = int(os.environ.get("INDEX_QUEUE_SQLSERVER_PORT", "1433"))
        database = os.environ.get("INDEX_QUEUE_SQLSERVER_DATABASE", "Search")
        username = os.environ.get("INDEX_QUEUE_SQLSERVER_USER", "sa")
        driver = os.environ.get("INDEX_QUEUE_SQLSERVER_DRIVER", "ODBC Driver 18 for SQL Server")

        conn = pyodbc.connect(
            f"Driver={{{driver}}};"
            f"Server={host},{port};"
            f"Database={database};"
            f"UID={username};"
            f"PWD={password};"
            f"TrustServerCertificate=yes",
            timeout=5,
        )
        conn.close()
        return True

    except Exception as e:
        logger.debug(f"SQL Server not available: {e}")
        return False


# ============================================================================
# Pytest hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (requires SQL Server)")


def pytest_collection_modifyitems(config, items):
    """Automatically skip integration tests if SQL Server is not available."""
    if not any("integration" in item.keywords for item in items):
        return
    if is_sqlserver_available():
        return

    skip_sqlserver = pytest.mark.skip(
        reason="SQL Server not available (set INDEX_QUEUE_SQLSERVER_PASSWORD and ensure SQL Server is running)"
    )

    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_sqlserver)


# ============================================================================
# Test doubles
# ============================================================================

class FakeQueue(IndexQueue):
    """
    In-memory queue recording the calls it receives.

    Failure injection:
        fail_initialize: configuration names whose initialize() raises
        decline_initialize: configuration names whose initialize() returns False
        fail_statistics: configuration names whose get_statistics() raises
        reset_result: value returned by reset_all_errors()
        reset_raises: whether reset_all_errors() raises
    """

    instances: List["FakeQueue"] = []

    def __init__(self, name: str = "fake"):
        self.name = name
        self.items: Dict[int, IndexQueueItem] = {}
        self.calls: List[tuple] = []
        self.fail_initialize = set()
        self.decline_initialize = set()
        self.fail_statistics = set()
        self.reset_result = True
        self.reset_raises = False
        self.closed = False
        self._next_id = 1
        FakeQueue.instances.append(self)

    def add_item(self, site_id, item_type, item_uid, configuration, changed=100, indexed=0, errors=""):
        item = IndexQueueItem(
            item_id=self._next_id,
            site_id=site_id,
            item_type=item_type,
            item_uid=item_uid,
            indexing_configuration=configuration,
            changed=changed,
            indexed=indexed,
            errors=errors,
        )
        self.items[item.item_id] = item
        self._next_id += 1
        return item

    def initialize(self, site, configuration, records):
        self.calls.append(("initialize", configuration.name))
        if configuration.name in self.fail_initialize:
            raise RuntimeError(f"cannot initialize {configuration.name}")
        if configuration.name in self.decline_initialize:
            return False
        for item_id in [i for i, item in self.items.items()
                        if item.site_id == site.site_id
                        and item.indexing_configuration == configuration.name]:
            del self.items[item_id]
        for record in records:
            self.add_item(site.site_id, configuration.table, record.record_id,
                          configuration.name, changed=record.changed or 1)
        return True

    def get_statistics(self, site, configuration_name=None):
        self.calls.append(("get_statistics", configuration_name))
        if configuration_name in self.fail_statistics:
            raise RuntimeError(f"statistics unavailable for {configuration_name}")
        stats = QueueStatistics()
        for item in self.items.values():
            if item.site_id != site.site_id:
                continue
            if configuration_name and item.indexing_configuration != configuration_name:
                continue
            if item.has_errors:
                stats.failed += 1
            elif item.is_pending:
                stats.pending += 1
            else:
                stats.success += 1
        return stats

    def get_errors(self, site):
        self.calls.append(("get_errors", site.site_id))
        return [i for i in self.items.values() if i.site_id == site.site_id and i.has_errors]

    def reset_all_errors(self):
        self.calls.append(("reset_all_errors",))
        if self.reset_raises:
            raise RuntimeError("reset exploded")
        if self.reset_result:
            for item in self.items.values():
                item.errors = ""
        return self.reset_result

    def update_item(self, item_type, item_uid, changed):
        self.calls.append(("update_item", item_type, item_uid, changed))
        count = 0
        for item in self.items.values():
            if item.item_type == item_type and item.item_uid == item_uid:
                item.changed = max(changed, item.indexed + 1)
                item.errors = ""
                count += 1
        return count

    def get_item(self, item_id):
        self.calls.append(("get_item", item_id))
        return self.items.get(item_id)

    def get_items_to_index(self, site, limit=50):
        pending = [i for i in self.items.values()
                   if i.site_id == site.site_id and i.is_pending and not i.has_errors]
        return pending[:limit]

    def mark_item_indexed(self, item):
        item.indexed = item.changed
        item.errors = ""

    def mark_item_failed(self, item, message):
        item.errors = message

    def close(self):
        self.closed = True


@pytest.fixture
def fake_queue_class():
    """FakeQueue class with a fresh instance list."""
    FakeQueue.instances = []
    yield FakeQueue
    FakeQueue.instances = []


def build_site(configurations, site_id=1, backends=None) -> Site:
    """Build a site from (name, queue_id[, enabled]) tuples."""
    indexing = []
    for entry in configurations:
        name, queue_id = entry[0], entry[1]
        enabled = entry[2] if len(entry) > 2 else True
        indexing.append(IndexingConfiguration(name=name, table=name, queue=queue_id, enabled=enabled))
    if backends is None:
        backends = [{"type": "http", "url": "http://localhost:8983/solr/core_en"}]
    return Site(site_id=site_id, label="test", indexing_configurations=indexing,
                backend_connections=backends)


@pytest.fixture
def site_factory():
    """Fixture providing the build_site helper."""
    return build_site


# ============================================================================
# SQLite fixtures
# ============================================================================

@pytest.fixture
def content_db(tmp_path) -> Path:
    """SQLite content database with 'pages' and 'news' tables."""
    db_path = tmp_path / "content.db"
    conn = sqlite3.connect(str(db_path))
    conn.executescript("""
        CREATE TABLE pages (
            uid INTEGER PRIMARY KEY, tstamp INTEGER NOT NULL,
            title TEXT, bodytext TEXT, deleted INTEGER DEFAULT 0, hidden INTEGER DEFAULT 0
        );
        CREATE TABLE news (
            uid INTEGER PRIMARY KEY, tstamp INTEGER NOT NULL,
            title TEXT, archived INTEGER DEFAULT 0
        );
    """)
    conn.executemany(
        "INSERT INTO pages (uid, tstamp, title, bodytext, deleted, hidden) VALUES (?, ?, ?, ?, ?, ?)",
        [
            (1, 1000, "Home", "Welcome", 0, 0),
            (2, 1100, "About", "About us", 0, 0),
            (3, 1200, "Old", "Gone", 1, 0),
            (4, 1300, "Draft", "Hidden", 0, 1),
        ],
    )
    conn.executemany(
        "INSERT INTO news (uid, tstamp, title, archived) VALUES (?, ?, ?, ?)",
        [
            (10, 2000, "Launch", 0),
            (11, 2100, "Archive", 1),
        ],
    )
    conn.commit()
    conn.close()
    return db_path


@pytest.fixture
def sqlite_queue(tmp_path):
    """SQLite index queue in a temporary directory."""
    from index_queue.queues import SqliteIndexQueue

    queue = SqliteIndexQueue(db_path=tmp_path / "state" / "index_queue.db")
    yield queue
    queue.close()


# ============================================================================
# SQL Server fixtures
# ============================================================================

TEST_SITE_ID = 9001


@pytest.fixture(scope="session")
def integration_site_id() -> int:
    """Site id owning every item written by the integration tests."""
    return TEST_SITE_ID


@pytest.fixture(scope="session")
def sqlserver_config() -> dict:
    """SQL Server connection settings taken from the environment."""
    return {
        "host": os.environ.get("INDEX_QUEUE_SQLSERVER_HOST", "localhost"),
        "port": int(os.environ.get("INDEX_QUEUE_SQLSERVER_PORT", "1433")),
        "database": os.environ.get("INDEX_QUEUE_SQLSERVER_DATABASE", "Search"),
        "username": os.environ.get("INDEX_QUEUE_SQLSERVER_USER", "sa"),
        "password": sqlserver_password(),
        "driver": os.environ.get("INDEX_QUEUE_SQLSERVER_DRIVER", "ODBC Driver 18 for SQL Server"),
        "schema": os.environ.get("INDEX_QUEUE_SQLSERVER_SCHEMA", "index_queue_test"),
    }


@pytest.fixture(scope="session")
def sqlserver_queue(sqlserver_config: dict):
    """
    Session-scoped SQL Server index queue using a dedicated test schema.
    """
    if not sqlserver_config["password"]:
        pytest.skip("SQL Server password not configured")

    from index_queue.queues.sqlserver_queue import SqlServerIndexQueue

    queue = SqlServerIndexQueue(
        host=sqlserver_config["host"],
        port=sqlserver_config["port"],
        database=sqlserver_config["database"],
        username=sqlserver_config["username"],
        password=sqlserver_config["password"],
        driver=sqlserver_config["driver"],
        schema=sqlserver_config["schema"],
        auto_init=True,
    )

    yield queue

    _delete_test_items(queue)
    queue.close()


def _delete_test_items(queue) -> None:
    cursor = queue.conn.cursor()
    cursor.execute(f"DELETE FROM {queue._table} WHERE site_id = ?", (TEST_SITE_ID,))
    queue.conn.commit()


@pytest.fixture
def clean_sqlserver_queue(sqlserver_queue):
    """Function-scoped fixture removing test items before and after each test."""
    _delete_test_items(sqlserver_queue)
    yield sqlserver_queue
    _delete_test_items(sqlserver_queue)
