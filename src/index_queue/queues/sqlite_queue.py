"""
SQLite-based index queue.

This is the primary queue implementation; it keeps all items in a local
SQLite state database.
"""

import logging
import sqlite3
import time
from pathlib import Path
from typing import Iterable, List, Optional

from ..core.exceptions import QueueStorageError
from ..core.models import ContentRecord, IndexQueueItem, QueueStatistics
from ..core.queue import IndexQueue


logger = logging.getLogger(__name__)


class SqliteIndexQueue(IndexQueue):
    """
    SQLite-based implementation of the index queue.

    Items are keyed by an autoincrement id and belong to one site and one
    indexing configuration. An item is pending while ``changed > indexed``
    and failed while ``errors`` is not empty.
    """

    def __init__(self, db_path: Path, auto_init: bool = True):
        """
        Initialize the SQLite index queue.

        Args:
            db_path: Path to the SQLite database file
            auto_init: Whether to create tables automatically
        """
        self.db_path = Path(db_path)
        self.conn = None
        self._connect()

        if auto_init:
            self._init_schema()

    def _connect(self) -> None:
        """Establish database connection."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(
            str(self.db_path),
            check_same_thread=False
        )
        self.conn.row_factory = sqlite3.Row
        logger.debug(f"Connected to SQLite index queue: {self.db_path}")

    def _init_schema(self) -> None:
        """Initialize database schema."""
        cursor = self.conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS index_queue_items (
                item_id INTEGER PRIMARY KEY AUTOINCREMENT,
                site_id INTEGER NOT NULL,
                item_type TEXT NOT NULL,
                item_uid INTEGER NOT NULL,
                indexing_configuration TEXT NOT NULL,
                changed INTEGER NOT NULL DEFAULT 0,
                indexed INTEGER NOT NULL DEFAULT 0,
                errors TEXT NOT NULL DEFAULT ''
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS ix_index_queue_site
            ON index_queue_items (site_id, indexing_configuration)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS ix_index_queue_record
            ON index_queue_items (item_type, item_uid)
        """)

        self.conn.commit()
        logger.debug("Initialized index queue schema")

    def initialize(self, site, configuration, records: Iterable[ContentRecord]) -> bool:
        """
        Populate the queue for one indexing configuration of a site.

        Runs in a single transaction: either the old items are replaced by
        the new ones or nothing changes.
        """
        try:
            cursor = self.conn.cursor()

            cursor.execute("""
                DELETE FROM index_queue_items
                WHERE site_id = ? AND indexing_configuration = ?
            """, (site.site_id, configuration.name))

            rows = [
                (site.site_id, configuration.table, record.record_id,
                 configuration.name, record.changed or int(time.time()))
                for record in records
            ]
            cursor.executemany("""
                INSERT INTO index_queue_items (
                    site_id, item_type, item_uid, indexing_configuration, changed
                ) VALUES (?, ?, ?, ?, ?)
            """, rows)

            self.conn.commit()
            logger.info(
                f"Queued {len(rows)} items for configuration "
                f"'{configuration.name}' of site {site.site_id}"
            )
            return True

        except sqlite3.Error as e:
            self.conn.rollback()
            logger.error(f"Failed to initialize configuration '{configuration.name}': {e}")
            raise QueueStorageError(
                f"Failed to initialize configuration '{configuration.name}': {e}"
            ) from e

    def get_statistics(self, site, configuration_name: Optional[str] = None) -> QueueStatistics:
        query = """
            SELECT
                SUM(CASE WHEN errors != '' THEN 1 ELSE 0 END) AS failed,
                SUM(CASE WHEN errors = '' AND changed > indexed THEN 1 ELSE 0 END) AS pending,
                SUM(CASE WHEN errors = '' AND changed <= indexed THEN 1 ELSE 0 END) AS success
            FROM index_queue_items
            WHERE site_id = ?
        """
        params = [site.site_id]

        if configuration_name:
            query += " AND indexing_configuration = ?"
            params.append(configuration_name)

        try:
            cursor = self.conn.cursor()
            cursor.execute(query, params)
            row = cursor.fetchone()
        except sqlite3.Error as e:
            logger.error(f"Failed to get queue statistics: {e}")
            raise QueueStorageError(f"Failed to get queue statistics: {e}") from e

        return QueueStatistics(
            pending=row["pending"] or 0,
            failed=row["failed"] or 0,
            success=row["success"] or 0,
        )

    def get_errors(self, site) -> List[IndexQueueItem]:
        try:
            cursor = self.conn.cursor()
            cursor.execute("""
                SELECT * FROM index_queue_items
                WHERE site_id = ? AND errors != ''
                ORDER BY item_id ASC
            """, (site.site_id,))
            return [self._row_to_item(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            logger.error(f"Failed to get queue errors: {e}")
            raise QueueStorageError(f"Failed to get queue errors: {e}") from e

    def reset_all_errors(self) -> bool:
        try:
            cursor = self.conn.cursor()
            cursor.execute("""
                UPDATE index_queue_items SET errors = '' WHERE errors != ''
            """)
            count = cursor.rowcount
            self.conn.commit()
            logger.info(f"Reset errors of {count} items")
            return True
        except sqlite3.Error as e:
            self.conn.rollback()
            logger.error(f"Failed to reset errors: {e}")
            return False

    def update_item(self, item_type: str, item_uid: int, changed: int) -> int:
        try:
            cursor = self.conn.cursor()
            cursor.execute("""
                UPDATE index_queue_items
                SET changed = MAX(?, indexed + 1), errors = ''
                WHERE item_type = ? AND item_uid = ?
            """, (changed, item_type, item_uid))
            count = cursor.rowcount
            self.conn.commit()
            logger.debug(f"Updated {count} items for {item_type}:{item_uid}")
            return count
        except sqlite3.Error as e:
            self.conn.rollback()
            logger.error(f"Failed to update item {item_type}:{item_uid}: {e}")
            raise QueueStorageError(f"Failed to update item {item_type}:{item_uid}: {e}") from e

    def get_item(self, item_id: int) -> Optional[IndexQueueItem]:
        try:
            cursor = self.conn.cursor()
            cursor.execute("""
                SELECT * FROM index_queue_items WHERE item_id = ?
            """, (item_id,))
            row = cursor.fetchone()
        except sqlite3.Error as e:
            logger.error(f"Failed to get item {item_id}: {e}")
            raise QueueStorageError(f"Failed to get item {item_id}: {e}") from e

        if row:
            return self._row_to_item(row)
        return None

    def get_items_to_index(self, site, limit: int = 50) -> List[IndexQueueItem]:
        try:
            cursor = self.conn.cursor()
            cursor.execute("""
                SELECT * FROM index_queue_items
                WHERE site_id = ? AND changed > indexed AND errors = ''
                ORDER BY changed ASC, item_id ASC
                LIMIT ?
            """, (site.site_id, limit))
            return [self._row_to_item(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            logger.error(f"Failed to get items to index: {e}")
            raise QueueStorageError(f"Failed to get items to index: {e}") from e

    def mark_item_indexed(self, item: IndexQueueItem) -> None:
        indexed = max(int(time.time()), item.changed)
        self._execute_update("""
            UPDATE index_queue_items SET indexed = ?, errors = '' WHERE item_id = ?
        """, (indexed, item.item_id))
        item.indexed = indexed
        item.errors = ""

    def mark_item_failed(self, item: IndexQueueItem, message: str) -> None:
        errors = message or "Unknown indexing error"
        self._execute_update("""
            UPDATE index_queue_items SET errors = ? WHERE item_id = ?
        """, (errors, item.item_id))
        item.errors = errors

    def _execute_update(self, statement: str, params: tuple) -> None:
        try:
            cursor = self.conn.cursor()
            cursor.execute(statement, params)
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            logger.error(f"Failed to update queue item: {e}")
            raise QueueStorageError(f"Failed to update queue item: {e}") from e

    def _row_to_item(self, row: sqlite3.Row) -> IndexQueueItem:
        """Convert a database row to an IndexQueueItem object."""
        return IndexQueueItem(
            item_id=row["item_id"],
            site_id=row["site_id"],
            item_type=row["item_type"],
            item_uid=row["item_uid"],
            indexing_configuration=row["indexing_configuration"],
            changed=row["changed"],
            indexed=row["indexed"],
            errors=row["errors"] or "",
        )

    def close(self) -> None:
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.debug("Closed SQLite index queue connection")
