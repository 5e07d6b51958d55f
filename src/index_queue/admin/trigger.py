"""
Manual trigger for incremental indexing runs.
"""

import logging
from typing import Callable, Optional

from ..core.exceptions import IndexQueueError
from ..core.site import Site
from ..runner.index_service import IndexService
from .reporting import MessageLog, Severity


logger = logging.getLogger(__name__)


class IndexingRunTrigger:
    """
    Runs a small indexing pass for a site and reports its result.

    The execution service reaches the queue on its own; the trigger does not
    use the request's resolved queues.
    """

    def __init__(self, index_service_factory: Callable[[Site], IndexService]):
        """
        Args:
            index_service_factory: Builds the execution service for a site
        """
        self.index_service_factory = index_service_factory

    def run_incremental_indexing(
        self,
        site: Site,
        batch_size: int = 1,
        messages: Optional[MessageLog] = None,
    ) -> bool:
        """
        Index up to ``batch_size`` pending items of a site.

        Args:
            site: The site to index
            batch_size: Maximum number of items to process
            messages: Optional message log receiving the outcome

        Returns:
            True if the pass completed without item-level errors
        """
        index_service = None
        try:
            index_service = self.index_service_factory(site)
            index_without_errors = index_service.index_items(batch_size)
        except IndexQueueError as e:
            logger.error(f"Manual indexing of site {site.site_id} aborted: {e}")
            index_without_errors = False
        finally:
            if index_service is not None:
                index_service.close()

        logger.info(
            f"Manual indexing of site {site.site_id} "
            f"({batch_size} items) {'succeeded' if index_without_errors else 'had errors'}"
        )

        if messages is not None:
            if index_without_errors:
                messages.add("index_manual.success", Severity.OK)
            else:
                messages.add("index_manual.failure", Severity.ERROR)

        return index_without_errors
