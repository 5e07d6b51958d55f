"""
SQL Server-based index queue.

Used by installations that keep their queue next to the content database on
SQL Server. Requires pyodbc and an ODBC driver for SQL Server.
"""

import logging
import re
import time
from typing import Iterable, List, Optional

try:
    import pyodbc
except ImportError:
    pyodbc = None

from ..core.exceptions import QueueStorageError
from ..core.models import ContentRecord, IndexQueueItem, QueueStatistics
from ..core.queue import IndexQueue


logger = logging.getLogger(__name__)


ITEM_COLUMNS = (
    "item_id, site_id, item_type, item_uid, indexing_configuration, "
    "changed, indexed, errors"
)


class SqlServerIndexQueue(IndexQueue):
    """
    SQL Server-based implementation of the index queue.

    Same item semantics as the SQLite queue; the table lives in a
    configurable schema (default: 'index_queue').
    """

    def __init__(
        self,
        connection_string: Optional[str] = None,
        host: str = "localhost",
        port: int = 1433,
        database: str = "Search",
        username: str = "sa",
        password: Optional[str] = None,
        driver: str = "ODBC Driver 18 for SQL Server",
        schema: str = "index_queue",
        auto_init: bool = True,
        trust_server_certificate: bool = True,
    ):
        """
        Initialize the SQL Server index queue.

        Args:
            connection_string: Full ODBC connection string (if provided, other params ignored)
            host: SQL Server host
            port: SQL Server port
            database: Database name
            username: Database username
            password: Database password
            driver: ODBC driver name
            schema: Schema name for the queue table
            auto_init: Whether to create schema and table automatically
            trust_server_certificate: Whether to trust self-signed certificates
        """
        if pyodbc is None:
            raise ImportError(
                "pyodbc is required for SqlServerIndexQueue. "
                "Install with: pip install index-queue-admin[sqlserver]"
            )

        if not self._is_valid_identifier(schema):
            raise ValueError(f"Invalid schema name: {schema}")

        self.schema = schema

        if connection_string:
            self.connection_string = connection_string
        else:
            trust_cert = "yes" if trust_server_certificate else "no"
            self.connection_string = (
                f"Driver={{{driver}}};"
                f"Server={host},{port};"
                f"Database={database};"
                f"UID={username};"
                f"PWD={password};"
                f"TrustServerCertificate={trust_cert}"
            )

        self.conn = None
        self._connect()

        if auto_init:
            self._init_schema()

    @staticmethod
    def _is_valid_identifier(name: str) -> bool:
        """
        Validate that a name is a safe SQL identifier.

        Must start with a letter or underscore, contain only letters, digits
        and underscores, be at most 128 characters and not be a reserved word.
        """
        if not name or len(name) > 128:
            return False

        if not re.match(r'^[a-zA-Z_][a-zA-Z0-9_]*$', name):
            return False

        reserved_words = {
            'select', 'insert', 'update', 'delete', 'drop', 'create', 'alter',
            'exec', 'execute', 'union', 'where', 'from', 'table', 'database',
            'schema', 'index', 'grant', 'revoke', 'truncate', 'declare', 'set'
        }
        return name.lower() not in reserved_words

    @property
    def _table(self) -> str:
        return f"[{self.schema}].[index_queue_items]"

    def _connect(self) -> None:
        """Establish database connection."""
        try:
            self.conn = pyodbc.connect(self.connection_string)
            logger.debug(f"Connected to SQL Server index queue (schema: {self.schema})")
        except pyodbc.Error as e:
            logger.error(f"Failed to connect to SQL Server: {e}")
            raise QueueStorageError(f"Failed to connect to SQL Server: {e}") from e

    def _init_schema(self) -> None:
        """Initialize database schema and table."""
        cursor = self.conn.cursor()

        try:
            # Schema name is validated in __init__; CREATE SCHEMA cannot take parameters.
            cursor.execute(f"""
                IF NOT EXISTS (SELECT * FROM sys.schemas WHERE name = ?)
                BEGIN
                    EXEC('CREATE SCHEMA [{self.schema}]')
                END
            """, (self.schema,))

            cursor.execute(f"""
                IF NOT EXISTS (SELECT * FROM sys.tables t
                               JOIN sys.schemas s ON t.schema_id = s.schema_id
                               WHERE t.name = 'index_queue_items' AND s.name = ?)
                BEGIN
                    CREATE TABLE {self._table} (
                        item_id INT IDENTITY(1,1) PRIMARY KEY,
                        site_id INT NOT NULL,
                        item_type NVARCHAR(255) NOT NULL,
                        item_uid INT NOT NULL,
                        indexing_configuration NVARCHAR(255) NOT NULL,
                        changed BIGINT NOT NULL DEFAULT 0,
                        indexed BIGINT NOT NULL DEFAULT 0,
                        errors NVARCHAR(MAX) NOT NULL DEFAULT ''
                    );
                    CREATE INDEX ix_index_queue_site
                        ON {self._table} (site_id, indexing_configuration);
                    CREATE INDEX ix_index_queue_record
                        ON {self._table} (item_type, item_uid);
                END
            """, (self.schema,))

            self.conn.commit()
            logger.debug("Initialized SQL Server index queue schema")
        except pyodbc.Error as e:
            self.conn.rollback()
            logger.error(f"Failed to initialize schema: {e}")
            raise QueueStorageError(f"Failed to initialize schema: {e}") from e

    def initialize(self, site, configuration, records: Iterable[ContentRecord]) -> bool:
        try:
            cursor = self.conn.cursor()

            cursor.execute(f"""
                DELETE FROM {self._table}
                WHERE site_id = ? AND indexing_configuration = ?
            """, (site.site_id, configuration.name))

            rows = [
                (site.site_id, configuration.table, record.record_id,
                 configuration.name, record.changed or int(time.time()))
                for record in records
            ]
            if rows:
                cursor.fast_executemany = True
                cursor.executemany(f"""
                    INSERT INTO {self._table} (
                        site_id, item_type, item_uid, indexing_configuration, changed
                    ) VALUES (?, ?, ?, ?, ?)
                """, rows)

            self.conn.commit()
            logger.info(
                f"Queued {len(rows)} items for configuration "
                f"'{configuration.name}' of site {site.site_id}"
            )
            return True

        except pyodbc.Error as e:
            self.conn.rollback()
            logger.error(f"Failed to initialize configuration '{configuration.name}': {e}")
            raise QueueStorageError(
                f"Failed to initialize configuration '{configuration.name}': {e}"
            ) from e

    def get_statistics(self, site, configuration_name: Optional[str] = None) -> QueueStatistics:
        query = f"""
            SELECT
                SUM(CASE WHEN errors <> '' THEN 1 ELSE 0 END),
                SUM(CASE WHEN errors = '' AND changed > indexed THEN 1 ELSE 0 END),
                SUM(CASE WHEN errors = '' AND changed <= indexed THEN 1 ELSE 0 END)
            FROM {self._table}
            WHERE site_id = ?
        """
        params = [site.site_id]

        if configuration_name:
            query += " AND indexing_configuration = ?"
            params.append(configuration_name)

        try:
            cursor = self.conn.cursor()
            cursor.execute(query, params)
            failed, pending, success = cursor.fetchone()
        except pyodbc.Error as e:
            logger.error(f"Failed to get queue statistics: {e}")
            raise QueueStorageError(f"Failed to get queue statistics: {e}") from e

        return QueueStatistics(
            pending=pending or 0,
            failed=failed or 0,
            success=success or 0,
        )

    def get_errors(self, site) -> List[IndexQueueItem]:
        return self._select_items(f"""
            SELECT {ITEM_COLUMNS} FROM {self._table}
            WHERE site_id = ? AND errors <> ''
            ORDER BY item_id ASC
        """, (site.site_id,))

    def reset_all_errors(self) -> bool:
        try:
            cursor = self.conn.cursor()
            cursor.execute(f"""
                UPDATE {self._table} SET errors = '' WHERE errors <> ''
            """)
            count = cursor.rowcount
            self.conn.commit()
            logger.info(f"Reset errors of {count} items")
            return True
        except pyodbc.Error as e:
            self.conn.rollback()
            logger.error(f"Failed to reset errors: {e}")
            return False

    def update_item(self, item_type: str, item_uid: int, changed: int) -> int:
        try:
            cursor = self.conn.cursor()
            cursor.execute(f"""
                UPDATE {self._table}
                SET changed = CASE WHEN ? > indexed THEN ? ELSE indexed + 1 END,
                    errors = ''
                WHERE item_type = ? AND item_uid = ?
            """, (changed, changed, item_type, item_uid))
            count = cursor.rowcount
            self.conn.commit()
            return count
        except pyodbc.Error as e:
            self.conn.rollback()
            logger.error(f"Failed to update item {item_type}:{item_uid}: {e}")
            raise QueueStorageError(f"Failed to update item {item_type}:{item_uid}: {e}") from e

    def get_item(self, item_id: int) -> Optional[IndexQueueItem]:
        items = self._select_items(f"""
            SELECT {ITEM_COLUMNS} FROM {self._table} WHERE item_id = ?
        """, (item_id,))
        return items[0] if items else None

    def get_items_to_index(self, site, limit: int = 50) -> List[IndexQueueItem]:
        return self._select_items(f"""
            SELECT TOP (?) {ITEM_COLUMNS} FROM {self._table}
            WHERE site_id = ? AND changed > indexed AND errors = ''
            ORDER BY changed ASC, item_id ASC
        """, (limit, site.site_id))

    def mark_item_indexed(self, item: IndexQueueItem) -> None:
        indexed = max(int(time.time()), item.changed)
        self._execute_update(f"""
            UPDATE {self._table} SET indexed = ?, errors = '' WHERE item_id = ?
        """, (indexed, item.item_id))
        item.indexed = indexed
        item.errors = ""

    def mark_item_failed(self, item: IndexQueueItem, message: str) -> None:
        errors = message or "Unknown indexing error"
        self._execute_update(f"""
            UPDATE {self._table} SET errors = ? WHERE item_id = ?
        """, (errors, item.item_id))
        item.errors = errors

    def _select_items(self, query: str, params: tuple) -> List[IndexQueueItem]:
        try:
            cursor = self.conn.cursor()
            cursor.execute(query, params)
            columns = [column[0] for column in cursor.description]
            return [
                self._row_to_item(dict(zip(columns, row)))
                for row in cursor.fetchall()
            ]
        except pyodbc.Error as e:
            logger.error(f"Failed to read queue items: {e}")
            raise QueueStorageError(f"Failed to read queue items: {e}") from e

    def _execute_update(self, statement: str, params: tuple) -> None:
        try:
            cursor = self.conn.cursor()
            cursor.execute(statement, params)
            self.conn.commit()
        except pyodbc.Error as e:
            self.conn.rollback()
            logger.error(f"Failed to update queue item: {e}")
            raise QueueStorageError(f"Failed to update queue item: {e}") from e

    def _row_to_item(self, row: dict) -> IndexQueueItem:
        """Convert a database row to an IndexQueueItem object."""
        return IndexQueueItem(
            item_id=row["item_id"],
            site_id=row["site_id"],
            item_type=row["item_type"],
            item_uid=row["item_uid"],
            indexing_configuration=row["indexing_configuration"],
            changed=int(row["changed"]),
            indexed=int(row["indexed"]),
            errors=row["errors"] or "",
        )

    def close(self) -> None:
        """Close the database connection."""
        if self.conn:
            try:
                self.conn.close()
            except pyodbc.Error as e:
                logger.warning(f"Error closing SQL Server connection: {e}")
            self.conn = None
            logger.debug("Closed SQL Server index queue connection")
