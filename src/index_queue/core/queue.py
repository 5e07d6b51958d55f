"""
Index queue interface shared by every queue implementation.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from .models import ContentRecord, IndexQueueItem, QueueStatistics


# Implementation id of the primary queue; preferred as the default queue.
PRIMARY_QUEUE_ID = "default"


class IndexQueue(ABC):
    """
    Abstract base class for index queues.

    An index queue stores the items waiting to be sent to a search backend,
    tracks their indexing state and exposes the administrative operations
    (statistics, errors, requeue) on top of them.
    """

    @abstractmethod
    def initialize(self, site, configuration, records: Iterable[ContentRecord]) -> bool:
        """
        Populate the queue for one indexing configuration of a site.

        Existing items of the site and configuration are removed first, then
        one pending item is added per record.

        Args:
            site: The site owning the configuration
            configuration: The IndexingConfiguration being initialized
            records: Content records matching the configuration

        Returns:
            True if the queue was populated
        """
        pass

    @abstractmethod
    def get_statistics(self, site, configuration_name: Optional[str] = None) -> QueueStatistics:
        """
        Get item counts for a site.

        Args:
            site: The site to count items for
            configuration_name: Optional configuration to narrow the counts

        Returns:
            QueueStatistics snapshot
        """
        pass

    @abstractmethod
    def get_errors(self, site) -> List[IndexQueueItem]:
        """
        Get the items of a site whose last indexing attempt failed.

        Args:
            site: The site to list errors for

        Returns:
            List of items carrying an error message
        """
        pass

    @abstractmethod
    def reset_all_errors(self) -> bool:
        """
        Clear the error state of every item in the queue.

        Returns:
            True if the reset statement ran, also when nothing was reset
        """
        pass

    @abstractmethod
    def update_item(self, item_type: str, item_uid: int, changed: int) -> int:
        """
        Mark the items of a content record for re-processing.

        Args:
            item_type: Content-type label of the record
            item_uid: Identifier of the record
            changed: New change timestamp (unix seconds); raised above the
                indexed timestamp when needed so the items become pending

        Returns:
            Number of affected items
        """
        pass

    @abstractmethod
    def get_item(self, item_id: int) -> Optional[IndexQueueItem]:
        """
        Get a specific queue item by ID.

        Args:
            item_id: ID of the queue item

        Returns:
            IndexQueueItem if found, None otherwise
        """
        pass

    @abstractmethod
    def get_items_to_index(self, site, limit: int = 50) -> List[IndexQueueItem]:
        """
        Get pending, error-free items of a site, oldest change first.

        Args:
            site: The site to take items from
            limit: Maximum number of items to return

        Returns:
            List of queue items
        """
        pass

    @abstractmethod
    def mark_item_indexed(self, item: IndexQueueItem) -> None:
        """Record a successful indexing of an item."""
        pass

    @abstractmethod
    def mark_item_failed(self, item: IndexQueueItem, message: str) -> None:
        """Record a failed indexing attempt of an item."""
        pass

    def close(self) -> None:
        """Close any open resources. Optional."""
        pass
