"""
Queue Administration Facade - the single entry point of the admin layer.

Every operation takes the AdminRequestContext of the current request,
routes the call to the default queue or to all resolved queues, and records
the outcome as report messages. Failures end up in the report; only
configuration errors escape.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from ..core.exceptions import IndexQueueError
from ..core.logging import CorrelationContext, log_with_context
from ..core.models import (
    IndexQueueItem, InitializationOutcome, OperationResult, QueueStatistics
)
from ..core.site import Site
from ..runner.index_service import IndexService
from .context import AdminRequestContext
from .initialization import InitializationService, QueueInitializationCoordinator
from .registry import QueueRegistry
from .reporting import Severity
from .trigger import IndexingRunTrigger


logger = logging.getLogger(__name__)


@dataclass
class QueueOverview:
    """
    Data of the queue overview screen.

    Attributes:
        can_proceed: False when the site cannot be managed (guard refusal)
        statistics: Statistics of the default queue for the site
        errors: Items of the site carrying an error
        configuration_names: Enabled configurations selectable for initialization
    """
    can_proceed: bool
    statistics: Optional[QueueStatistics] = None
    errors: List[IndexQueueItem] = field(default_factory=list)
    configuration_names: List[str] = field(default_factory=list)


class QueueAdministrationFacade:
    """
    Administrative operations over the index queues of a site.

    Example:
        >>> facade = QueueAdministrationFacade(registry, initialization_service, build_index_service)
        >>> with facade.create_context(site) as context:
        ...     facade.requeue_item(context, "pages", 12)
        ...     for message in context.messages:
        ...         print(message)
    """

    def __init__(
        self,
        registry: QueueRegistry,
        initialization_service: InitializationService,
        index_service_factory: Callable[[Site], IndexService],
    ):
        self.registry = registry
        self.coordinator = QueueInitializationCoordinator(registry, initialization_service)
        self.trigger = IndexingRunTrigger(index_service_factory)

    def create_context(self, site: Optional[Site], request_id: Optional[str] = None) -> AdminRequestContext:
        """Create the context of a new administrative request."""
        return AdminRequestContext(site=site, registry=self.registry, request_id=request_id)

    def _correlation(self, context: AdminRequestContext, operation: str) -> CorrelationContext:
        return CorrelationContext(
            request_id=context.request_id,
            site_id=context.site_id,
            operation=operation,
        )

    # =========================================================================
    # Guard
    # =========================================================================

    def can_queue_selected_site(self, context: AdminRequestContext) -> bool:
        """
        Check whether default-queue operations may run for the request's site.

        Requires a selected site with at least one backend connection, a
        resolved default queue and at least one enabled configuration.
        """
        site = context.site
        if site is None or not site.get_backend_connections():
            return False

        if context.default_queue is None:
            return False

        if not site.get_enabled_indexing_configuration_names():
            return False

        return True

    def _refuse(self, context: AdminRequestContext, operation: str) -> None:
        log_with_context(
            logger, logging.WARNING,
            f"Refusing '{operation}': site cannot be queued",
            request_id=context.request_id, site_id=context.site_id,
        )
        context.messages.add("cannot_proceed", Severity.WARNING)

    # =========================================================================
    # Inspection
    # =========================================================================

    def get_overview(self, context: AdminRequestContext) -> QueueOverview:
        """Statistics, errors and selectable configurations of the site."""
        if not self.can_queue_selected_site(context):
            return QueueOverview(can_proceed=False)

        with self._correlation(context, "overview"):
            queue = context.default_queue
            return QueueOverview(
                can_proceed=True,
                statistics=queue.get_statistics(context.site),
                errors=queue.get_errors(context.site),
                configuration_names=context.site.get_enabled_indexing_configuration_names(),
            )

    def get_statistics(
        self,
        context: AdminRequestContext,
        configuration_name: Optional[str] = None,
    ) -> Optional[QueueStatistics]:
        """Statistics of the default queue, or None when refused."""
        if not self.can_queue_selected_site(context):
            self._refuse(context, "statistics")
            return None
        return context.default_queue.get_statistics(context.site, configuration_name)

    def get_errors(self, context: AdminRequestContext) -> Optional[List[IndexQueueItem]]:
        """Error items of the default queue, or None when refused."""
        if not self.can_queue_selected_site(context):
            self._refuse(context, "errors")
            return None
        return context.default_queue.get_errors(context.site)

    def get_item(self, context: AdminRequestContext, item_id: int) -> Optional[IndexQueueItem]:
        """
        Fetch one item of the default queue for inspection.

        Returns None (and reports an error) when the item does not exist.
        """
        if not self.can_queue_selected_site(context):
            self._refuse(context, "show_error")
            return None

        item = context.default_queue.get_item(item_id)
        if item is None:
            context.messages.add("show_error.no_item", Severity.ERROR, item_id)
        return item

    # =========================================================================
    # State transitions
    # =========================================================================

    def initialize_configurations(
        self,
        context: AdminRequestContext,
        configuration_names: Optional[Iterable[str]],
    ) -> Dict[str, InitializationOutcome]:
        """
        Initialize the selected configurations and report the outcome.

        An empty selection reports a warning and touches no queue.
        """
        names = list(configuration_names or [])

        if not names:
            self.coordinator.report(names, {}, context.messages)
            return {}

        if context.site is None:
            self._refuse(context, "initialize")
            return {}

        with self._correlation(context, "initialize"):
            outcomes = self.coordinator.initialize(context.site, context.queues, names)
            self.coordinator.report(names, outcomes, context.messages)

            succeeded = sum(1 for o in outcomes.values() if o.succeeded)
            log_with_context(
                logger, logging.INFO,
                f"Initialized {succeeded}/{len(outcomes)} configurations",
            )
        return outcomes

    def reset_all_errors(self, context: AdminRequestContext) -> OperationResult:
        """
        Clear the error state of every resolved queue.

        All queues are attempted; the operation succeeds only if each of
        them does.
        """
        if context.site is None or not context.queues:
            self._refuse(context, "reset_errors")
            return OperationResult(success=False, cause="cannot proceed", refused=True)

        failed = []
        with self._correlation(context, "reset_errors"):
            for implementation_id, queue in context.queues.items():
                try:
                    reset = queue.reset_all_errors()
                except Exception as e:
                    log_with_context(
                        logger, logging.ERROR,
                        f"Queue '{implementation_id}' failed to reset errors: {e}",
                    )
                    reset = False
                if not reset:
                    failed.append(implementation_id)

        if failed:
            context.messages.add("reset_errors.failure", Severity.ERROR, ", ".join(failed))
            return OperationResult(
                success=False,
                count=len(context.queues) - len(failed),
                cause=f"reset failed for: {', '.join(failed)}",
            )

        context.messages.add("reset_errors.success", Severity.OK)
        return OperationResult(success=True, count=len(context.queues))

    def requeue_item(self, context: AdminRequestContext, item_type: str, item_uid: int) -> OperationResult:
        """
        Mark the default queue's items of a record for re-processing now.

        Zero affected items is reported as a failure, not raised.
        """
        if not self.can_queue_selected_site(context):
            self._refuse(context, "requeue")
            return OperationResult(success=False, cause="cannot proceed", refused=True)

        with self._correlation(context, "requeue"):
            try:
                count = context.default_queue.update_item(item_type, item_uid, int(time.time()))
            except IndexQueueError as e:
                log_with_context(logger, logging.ERROR, f"Requeue of {item_type}:{item_uid} failed: {e}")
                context.messages.add("requeue.failure", Severity.ERROR, item_type, item_uid)
                return OperationResult(success=False, cause=str(e))

        if count > 0:
            context.messages.add("requeue.success", Severity.OK, item_type, item_uid)
            return OperationResult(success=True, count=count)

        context.messages.add("requeue.failure", Severity.ERROR, item_type, item_uid)
        return OperationResult(success=False, count=0, cause="no matching item")

    def run_incremental_indexing(self, context: AdminRequestContext, batch_size: int = 1) -> bool:
        """Index a few pending items of the site and report the result."""
        if context.site is None:
            self._refuse(context, "index")
            return False

        with self._correlation(context, "index"):
            return self.trigger.run_incremental_indexing(
                context.site, batch_size=batch_size, messages=context.messages
            )
