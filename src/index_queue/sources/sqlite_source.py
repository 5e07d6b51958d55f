"""
SQLite-based content source.
"""

import logging
import re
import sqlite3
from pathlib import Path
from typing import List, Optional

from ..core.exceptions import QueueInitializationError, QueueStorageError
from ..core.models import ContentRecord
from .base import ContentSource


logger = logging.getLogger(__name__)


IDENTIFIER_PATTERN = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*$')


class SqliteContentSource(ContentSource):
    """
    Reads content records from a SQLite content database.

    Every content table is expected to have an integer ``uid`` key and an
    integer ``tstamp`` column holding the unix time of the last change.
    Records flagged ``deleted = 1`` or ``hidden = 1`` are skipped when the
    table has those columns.
    """

    def __init__(self, db_path: Path, uid_column: str = "uid", changed_column: str = "tstamp"):
        """
        Initialize the content source.

        Args:
            db_path: Path to the SQLite content database
            uid_column: Name of the record identifier column
            changed_column: Name of the last-change timestamp column
        """
        for column in (uid_column, changed_column):
            if not IDENTIFIER_PATTERN.match(column):
                raise ValueError(f"Invalid column name: {column}")

        self.db_path = Path(db_path)
        self.uid_column = uid_column
        self.changed_column = changed_column
        self.conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        logger.debug(f"Connected to SQLite content source: {self.db_path}")

    def _validate_table(self, table: str) -> None:
        if not IDENTIFIER_PATTERN.match(table or ""):
            raise QueueInitializationError(f"Invalid content table name: {table!r}")

    def _table_columns(self, table: str) -> List[str]:
        cursor = self.conn.cursor()
        cursor.execute(f"PRAGMA table_info({table})")
        return [row["name"] for row in cursor.fetchall()]

    def _visibility_clause(self, table: str) -> str:
        columns = self._table_columns(table)
        clauses = [f"{column} = 0" for column in ("deleted", "hidden") if column in columns]
        return " AND ".join(clauses)

    def fetch_records(self, configuration) -> List[ContentRecord]:
        """
        Get every visible record of the configuration's table.

        ``additional_where`` comes from the trusted site configuration and is
        appended verbatim.

        Raises:
            QueueInitializationError: If the table cannot be read
        """
        table = configuration.table
        self._validate_table(table)

        try:
            conditions = [c for c in (self._visibility_clause(table), configuration.additional_where) if c]
            query = f"SELECT * FROM {table}"
            if conditions:
                query += " WHERE " + " AND ".join(f"({c})" for c in conditions)
            query += f" ORDER BY {self.uid_column} ASC"

            cursor = self.conn.cursor()
            cursor.execute(query)
            records = [self._row_to_record(row) for row in cursor.fetchall()]

        except sqlite3.Error as e:
            logger.error(f"Failed to read records of '{table}': {e}")
            raise QueueInitializationError(f"Failed to read records of '{table}': {e}") from e

        logger.debug(f"Read {len(records)} records from '{table}'")
        return records

    def fetch_record(self, table: str, record_id: int) -> Optional[ContentRecord]:
        self._validate_table(table)

        try:
            cursor = self.conn.cursor()
            cursor.execute(
                f"SELECT * FROM {table} WHERE {self.uid_column} = ?",
                (record_id,),
            )
            row = cursor.fetchone()
        except sqlite3.Error as e:
            logger.error(f"Failed to read record {table}:{record_id}: {e}")
            raise QueueStorageError(f"Failed to read record {table}:{record_id}: {e}") from e

        if row:
            return self._row_to_record(row)
        return None

    def _row_to_record(self, row: sqlite3.Row) -> ContentRecord:
        """Convert a database row to a ContentRecord object."""
        fields = dict(row)
        changed = fields.get(self.changed_column) or 0
        return ContentRecord(
            record_id=int(fields[self.uid_column]),
            changed=int(changed),
            fields=fields,
        )

    def close(self) -> None:
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.debug("Closed SQLite content source connection")
