"""
Content source interface for reading the records to index.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..core.models import ContentRecord


class ContentSource(ABC):
    """
    Abstract base class for content sources.

    A content source provides the records an indexing configuration covers:
    all of them when a queue is initialized, one at a time when an item is
    indexed.
    """

    @abstractmethod
    def fetch_records(self, configuration) -> List[ContentRecord]:
        """
        Get every record matching an indexing configuration.

        Args:
            configuration: The IndexingConfiguration to read records for

        Returns:
            List of content records
        """
        pass

    @abstractmethod
    def fetch_record(self, table: str, record_id: int) -> Optional[ContentRecord]:
        """
        Get a single record.

        Args:
            table: Content table (item type) of the record
            record_id: Identifier of the record

        Returns:
            ContentRecord if found, None otherwise
        """
        pass

    def close(self) -> None:
        """Close any open resources. Optional."""
        pass
