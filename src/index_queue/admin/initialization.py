"""
Queue initialization: populating queues from indexing configurations.
"""

import logging
from typing import Dict, Iterable, List

from ..core.logging import CorrelationContext, log_with_context
from ..core.models import InitializationOutcome
from ..core.queue import IndexQueue
from ..core.site import Site
from ..sources.base import ContentSource
from .registry import QueueRegistry
from .reporting import MessageLog, Severity


logger = logging.getLogger(__name__)


# Error code reported when a queue declines an initialization without raising.
INITIALIZATION_FAILED_CODE = 1662117020


class InitializationService:
    """
    Populates the queues of a site from its indexing configurations.
    """

    def __init__(self, registry: QueueRegistry, content_source: ContentSource):
        self.registry = registry
        self.content_source = content_source

    def initialize_by_configurations(
        self,
        site: Site,
        configuration_names: Iterable[str],
        queues: Dict[str, IndexQueue],
    ) -> Dict[str, bool]:
        """
        Initialize the given configurations of a site.

        Args:
            site: The site owning the configurations
            configuration_names: Names of the configurations to initialize
            queues: Queues resolved for the site in the current request

        Returns:
            Configuration name -> whether its queue was populated

        Raises:
            Any error from routing, reading records or writing items
        """
        status = {}
        for configuration_name in configuration_names:
            configuration = site.get_indexing_configuration(configuration_name)
            queue = self.registry.queue_for(site, queues, configuration_name)
            records = self.content_source.fetch_records(configuration)
            status[configuration_name] = queue.initialize(site, configuration, records)
        return status


class QueueInitializationCoordinator:
    """
    Initializes several configurations one at a time, isolating failures.

    Every name is routed to its queue before the first one is initialized,
    so an unroutable name aborts the batch with no queue touched. After
    that, a failing configuration is recorded as a failed outcome and never
    stops the remaining ones; configurations initialized before a failure
    stay initialized.
    """

    def __init__(self, registry: QueueRegistry, initialization_service: InitializationService):
        self.registry = registry
        self.initialization_service = initialization_service

    def initialize(
        self,
        site: Site,
        queues: Dict[str, IndexQueue],
        configuration_names: List[str],
    ) -> Dict[str, InitializationOutcome]:
        """
        Initialize each configuration against its owning queue.

        Args:
            site: The site owning the configurations
            queues: Queues resolved for the site in the current request
            configuration_names: Configurations to initialize, in request order

        Returns:
            Configuration name -> outcome, in request order

        Raises:
            QueueConfigurationError: If a configuration cannot be routed to a queue
        """
        # Route the whole batch first: an unroutable name aborts before any queue is touched.
        routed = [
            (configuration_name, self.registry.queue_for(site, queues, configuration_name))
            for configuration_name in configuration_names
        ]

        outcomes: Dict[str, InitializationOutcome] = {}

        for configuration_name, queue in routed:
            with CorrelationContext(configuration=configuration_name):
                outcomes[configuration_name] = self._initialize_one(site, queues, configuration_name, queue)

        return outcomes

    def _initialize_one(
        self,
        site: Site,
        queues: Dict[str, IndexQueue],
        configuration_name: str,
        queue: IndexQueue,
    ) -> InitializationOutcome:
        """Initialize one routed configuration; any failure becomes a failed outcome."""
        try:
            status = self.initialization_service.initialize_by_configurations(
                site, [configuration_name], queues
            )
            if status.get(configuration_name) is not True:
                log_with_context(
                    logger, logging.WARNING,
                    f"Queue declined the initialization of '{configuration_name}'",
                )
                return InitializationOutcome(
                    configuration_name=configuration_name,
                    succeeded=False,
                    error_message="Queue reported an unsuccessful initialization",
                    error_code=INITIALIZATION_FAILED_CODE,
                )

            item_count = queue.get_statistics(site, configuration_name).total

        except Exception as e:
            log_with_context(
                logger, logging.ERROR,
                f"Initialization of '{configuration_name}' failed: {e}",
            )
            return InitializationOutcome(
                configuration_name=configuration_name,
                succeeded=False,
                error_message=str(e),
                error_code=getattr(e, "code", None),
            )

        log_with_context(
            logger, logging.INFO,
            f"Initialized '{configuration_name}' with {item_count} items",
        )
        return InitializationOutcome(
            configuration_name=configuration_name,
            succeeded=True,
            item_count=item_count,
        )

    def report(
        self,
        configuration_names: List[str],
        outcomes: Dict[str, InitializationOutcome],
        messages: MessageLog,
    ) -> None:
        """
        Turn outcomes into report messages.

        One error message per failed configuration, one success message
        listing all initialized configurations with their item counts, or a
        single warning when nothing was selected.
        """
        if not configuration_names:
            messages.add("initialize.no_selection", Severity.WARNING)
            return

        initialized = []
        for name, outcome in outcomes.items():
            if outcome.succeeded:
                initialized.append(f"{name} ({outcome.item_count} records)")
            else:
                messages.add(
                    "initialize.failure",
                    Severity.ERROR,
                    name,
                    outcome.error_message,
                    outcome.error_code,
                )

        if initialized:
            messages.add("initialize.success", Severity.OK, ", ".join(initialized))
