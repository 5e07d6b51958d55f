"""
Index queue implementations.

Every implementation is registered under an implementation id; indexing
configurations name the id of the queue holding their items:

    - default   -> SqliteIndexQueue (primary)
    - sqlserver -> SqlServerIndexQueue (requires pyodbc)
"""

import logging
from pathlib import Path
from typing import Callable, Dict

from ..core.exceptions import QueueConfigurationError
from ..core.queue import IndexQueue, PRIMARY_QUEUE_ID
from .sqlite_queue import SqliteIndexQueue


logger = logging.getLogger(__name__)


SQLSERVER_QUEUE_ID = "sqlserver"


# Lazy import to avoid import errors when pyodbc is missing
def _get_sqlserver_queue():
    from .sqlserver_queue import SqlServerIndexQueue
    return SqlServerIndexQueue


def _sqlite_factory(state_config: dict) -> Callable[[], IndexQueue]:
    sqlite_config = state_config.get("sqlite", {})
    db_path = Path(sqlite_config.get("db_path", "local/state/index_queue.db"))

    def factory() -> IndexQueue:
        return SqliteIndexQueue(db_path=db_path)

    return factory


def _sqlserver_factory(state_config: dict) -> Callable[[], IndexQueue]:
    sql_config = state_config.get("sqlserver", {})

    def factory() -> IndexQueue:
        SqlServerIndexQueue = _get_sqlserver_queue()
        return SqlServerIndexQueue(
            connection_string=sql_config.get("connection_string"),
            host=sql_config.get("host", "localhost"),
            port=int(sql_config.get("port", 1433)),
            database=sql_config.get("database", "Search"),
            username=sql_config.get("user", "sa"),
            password=sql_config.get("password"),
            driver=sql_config.get("driver", "ODBC Driver 18 for SQL Server"),
            schema=sql_config.get("schema", "index_queue"),
        )

    return factory


def build_queue_factories(config) -> Dict[str, Callable[[], IndexQueue]]:
    """
    Build the implementation id -> queue factory table from configuration.

    Factories are called lazily so that only the queues a request actually
    needs open a connection.

    Args:
        config: AdminConfig instance

    Returns:
        Dictionary of factories keyed by implementation id
    """
    state_config = config.get_state_config()
    return {
        PRIMARY_QUEUE_ID: _sqlite_factory(state_config),
        SQLSERVER_QUEUE_ID: _sqlserver_factory(state_config),
    }


def create_queue(implementation_id: str, config) -> IndexQueue:
    """
    Create a queue instance for an implementation id.

    Raises:
        QueueConfigurationError: If no implementation is registered under the id
    """
    factories = build_queue_factories(config)
    if implementation_id not in factories:
        raise QueueConfigurationError(
            f"Unknown queue implementation: {implementation_id}. "
            f"Known implementations: {', '.join(factories)}"
        )
    logger.debug(f"Creating queue '{implementation_id}'")
    return factories[implementation_id]()


__all__ = [
    "SqliteIndexQueue",
    "SQLSERVER_QUEUE_ID",
    "build_queue_factories",
    "create_queue",
]
