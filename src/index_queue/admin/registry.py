"""
Queue Registry - resolves the queue instances serving a site.

Each enabled indexing configuration of a site names the implementation of
the queue that holds its items. Several configurations usually share one
implementation; the registry hands out exactly one instance per
implementation for a resolution, in the order the implementations are first
met while walking the enabled configurations.
"""

import logging
from typing import Callable, Dict, List, Optional

from ..core.exceptions import QueueConfigurationError
from ..core.queue import IndexQueue, PRIMARY_QUEUE_ID
from ..core.site import Site


logger = logging.getLogger(__name__)


QueueFactory = Callable[[], IndexQueue]


class QueueRegistry:
    """
    Registry of queue implementations keyed by implementation id.

    Example:
        >>> registry = QueueRegistry({'default': lambda: SqliteIndexQueue(db_path)})
        >>> queues = registry.resolve(site)
        >>> default_queue = registry.select_default(queues)
    """

    def __init__(
        self,
        factories: Optional[Dict[str, QueueFactory]] = None,
        primary_id: str = PRIMARY_QUEUE_ID,
    ):
        """
        Initialize the registry.

        Args:
            factories: Queue factories keyed by implementation id
            primary_id: Implementation id preferred as default queue
        """
        self._factories: Dict[str, QueueFactory] = dict(factories or {})
        self.primary_id = primary_id

    def register(self, implementation_id: str, factory: QueueFactory) -> None:
        """Register (or replace) the factory of a queue implementation."""
        if implementation_id in self._factories:
            logger.warning(f"Overwriting queue implementation: {implementation_id}")
        self._factories[implementation_id] = factory
        logger.debug(f"Registered queue implementation: {implementation_id}")

    def list_implementations(self) -> List[str]:
        """List all registered implementation ids."""
        return list(self._factories.keys())

    def resolve(self, site: Site) -> Dict[str, IndexQueue]:
        """
        Resolve the queue instances needed by the enabled configurations of a site.

        Args:
            site: The site to resolve queues for

        Returns:
            Implementation id -> queue instance, in first-seen order. Empty
            when the site has no enabled configuration.

        Raises:
            QueueConfigurationError: If a configuration names an unregistered implementation
        """
        queues: Dict[str, IndexQueue] = {}

        for configuration_name in site.get_enabled_indexing_configuration_names():
            implementation_id = site.get_queue_implementation_id(configuration_name)
            if implementation_id in queues:
                continue

            factory = self._factories.get(implementation_id)
            if factory is None:
                raise QueueConfigurationError(
                    f"Indexing configuration '{configuration_name}' of site {site.site_id} "
                    f"uses unknown queue implementation '{implementation_id}'"
                )

            queues[implementation_id] = factory()
            logger.debug(
                f"Resolved queue '{implementation_id}' for configuration "
                f"'{configuration_name}' of site {site.site_id}"
            )

        return queues

    def select_default(self, queues: Dict[str, IndexQueue]) -> Optional[IndexQueue]:
        """
        Pick the default queue of a resolution.

        The primary implementation wins when present, otherwise the first
        resolved implementation. None for an empty resolution.
        """
        if not queues:
            return None
        if self.primary_id in queues:
            return queues[self.primary_id]
        return next(iter(queues.values()))

    def queue_for(
        self,
        site: Site,
        queues: Dict[str, IndexQueue],
        configuration_name: str,
    ) -> IndexQueue:
        """
        Route an indexing configuration to its resolved queue instance.

        Raises:
            QueueConfigurationError: If the configuration is unknown or its
                implementation was not part of the resolution
        """
        implementation_id = site.get_queue_implementation_id(configuration_name)
        queue = queues.get(implementation_id)
        if queue is None:
            raise QueueConfigurationError(
                f"No resolved queue '{implementation_id}' for indexing configuration "
                f"'{configuration_name}' of site {site.site_id}"
            )
        return queue
