"""
Indexing execution service: sends pending queue items to the search backends.
"""

import logging
from typing import Any, Dict, List, Optional

from ..core.exceptions import IndexQueueError
from ..core.models import ContentRecord, IndexQueueItem
from ..core.queue import IndexQueue
from ..core.site import Site
from ..backends.base import SearchBackend
from ..sources.base import ContentSource


logger = logging.getLogger(__name__)


class IndexService:
    """
    Processes pending items of one site's queue.

    Manages the workflow per item:
    1. Load the content record
    2. Build the document from the configuration's field mapping
    3. Send it to every backend connection of the site
    4. Mark the item indexed, or failed with the error message
    """

    def __init__(
        self,
        site: Site,
        queue: IndexQueue,
        content_source: ContentSource,
        backends: List[SearchBackend],
    ):
        """
        Initialize the index service.

        Args:
            site: Site whose items are indexed
            queue: Queue holding the site's items
            content_source: Source of the content records
            backends: Search backends receiving the documents
        """
        self.site = site
        self.queue = queue
        self.content_source = content_source
        self.backends = backends
        self.metrics = self._new_metrics()

    @staticmethod
    def _new_metrics() -> Dict[str, int]:
        return {
            "items_processed": 0,
            "items_succeeded": 0,
            "items_failed": 0,
        }

    def index_items(self, limit: int = 1) -> bool:
        """
        Index up to ``limit`` pending items.

        Args:
            limit: Maximum number of items to process

        Returns:
            True if no processed item ended in an error state
        """
        self.metrics = self._new_metrics()
        items = self.queue.get_items_to_index(self.site, limit)

        if not items:
            logger.info(f"No pending items for site {self.site.site_id}")
            return True

        logger.info(f"Indexing {len(items)} items for site {self.site.site_id}")
        for item in items:
            self._index_item(item)

        logger.info(f"Indexing run finished: {self.metrics}")
        return self.metrics["items_failed"] == 0

    def _index_item(self, item: IndexQueueItem) -> None:
        """Index a single queue item."""
        self.metrics["items_processed"] += 1

        try:
            record = self.content_source.fetch_record(item.item_type, item.item_uid)
            if record is None:
                raise IndexQueueError(
                    f"Record {item.item_type}:{item.item_uid} no longer exists"
                )

            document = self._build_document(item, record)
            for backend in self.backends:
                backend.add_documents([document])

        except IndexQueueError as e:
            self.queue.mark_item_failed(item, str(e))
            self.metrics["items_failed"] += 1
            logger.error(f"Failed to index item {item.item_id}: {e}")
            return

        self.queue.mark_item_indexed(item)
        self.metrics["items_succeeded"] += 1
        logger.debug(f"Indexed item {item.item_id} ({item.item_type}:{item.item_uid})")

    def _build_document(self, item: IndexQueueItem, record: ContentRecord) -> Dict[str, Any]:
        """Build the backend document for an item."""
        document = {
            "id": f"{item.site_id}/{item.item_type}/{item.item_uid}",
            "site": item.site_id,
            "type": item.item_type,
            "uid": item.item_uid,
            "indexing_configuration": item.indexing_configuration,
            "changed": record.changed,
        }

        field_mapping = self._field_mapping(item.indexing_configuration)
        if field_mapping:
            for field_name, column in field_mapping.items():
                document[field_name] = record.fields.get(column)
        else:
            for column, value in record.fields.items():
                document.setdefault(column, value)

        return document

    def _field_mapping(self, configuration_name: str) -> Optional[Dict[str, str]]:
        try:
            return self.site.get_indexing_configuration(configuration_name).fields
        except IndexQueueError:
            return None

    def close(self) -> None:
        """Close backends and queue."""
        for backend in self.backends:
            backend.close()
        self.queue.close()
