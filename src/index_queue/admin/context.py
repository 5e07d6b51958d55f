"""
Per-request state of an administrative operation.
"""

import logging
import uuid
from typing import Dict, Optional

from ..core.queue import IndexQueue
from ..core.site import Site
from .registry import QueueRegistry
from .reporting import MessageLog


logger = logging.getLogger(__name__)


class AdminRequestContext:
    """
    Everything one administrative request works with.

    Queues are resolved through the registry the first time an operation
    needs them and then shared by all operations of the request; nothing
    outlives the request. Operations that never touch a queue (e.g., an
    initialization without selection) never instantiate one.

    Attributes:
        site: The selected site (None when no site is selected)
        registry: Registry used to resolve the site's queues
        request_id: Identifier attached to log lines of the request
        messages: Report messages collected for the presentation layer
    """

    def __init__(
        self,
        site: Optional[Site],
        registry: QueueRegistry,
        request_id: Optional[str] = None,
        messages: Optional[MessageLog] = None,
    ):
        self.site = site
        self.registry = registry
        self.request_id = request_id or uuid.uuid4().hex[:12]
        self.messages = messages if messages is not None else MessageLog()
        self._queues: Optional[Dict[str, IndexQueue]] = None

    @property
    def site_id(self) -> Optional[int]:
        return self.site.site_id if self.site else None

    @property
    def is_resolved(self) -> bool:
        """Whether the site's queues were resolved during this request."""
        return self._queues is not None

    @property
    def queues(self) -> Dict[str, IndexQueue]:
        """Resolved queue instances keyed by implementation id."""
        if self._queues is None:
            if self.site is None:
                self._queues = {}
            else:
                self._queues = self.registry.resolve(self.site)
                logger.debug(
                    f"Resolved queues {list(self._queues)} for request {self.request_id}"
                )
        return self._queues

    @property
    def default_queue(self) -> Optional[IndexQueue]:
        """Queue used for operations that are not configuration-scoped."""
        return self.registry.select_default(self.queues)

    def close(self) -> None:
        """Close every queue resolved during the request."""
        if self._queues is None:
            return
        for implementation_id, queue in self._queues.items():
            queue.close()
            logger.debug(f"Closed queue '{implementation_id}' for request {self.request_id}")
        self._queues = None

    def __enter__(self) -> "AdminRequestContext":
        return self

    def __exit__(self, *args) -> None:
        self.close()
