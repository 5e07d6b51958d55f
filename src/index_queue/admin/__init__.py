"""
Administration of the index queues of a site.

Usage:
    registry = QueueRegistry(build_queue_factories(config))
    facade = QueueAdministrationFacade(
        registry=registry,
        initialization_service=InitializationService(registry, content_source),
        index_service_factory=build_index_service,
    )

    with facade.create_context(site) as context:
        facade.initialize_configurations(context, ["pages", "news"])
        for message in context.messages:
            print(message)
"""

from .context import AdminRequestContext
from .facade import QueueAdministrationFacade, QueueOverview
from .initialization import (
    InitializationService,
    QueueInitializationCoordinator,
    INITIALIZATION_FAILED_CODE,
)
from .registry import QueueRegistry
from .reporting import MessageLog, ReportMessage, Severity
from .trigger import IndexingRunTrigger

__all__ = [
    "AdminRequestContext",
    "QueueAdministrationFacade",
    "QueueOverview",
    "InitializationService",
    "QueueInitializationCoordinator",
    "INITIALIZATION_FAILED_CODE",
    "QueueRegistry",
    "MessageLog",
    "ReportMessage",
    "Severity",
    "IndexingRunTrigger",
]
