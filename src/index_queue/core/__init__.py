"""
Core abstractions and interfaces for the index queue administration layer.
"""

from .models import (
    IndexQueueItem, QueueStatistics, InitializationOutcome,
    OperationResult, ContentRecord
)
from .queue import IndexQueue, PRIMARY_QUEUE_ID
from .site import Site, IndexingConfiguration
from .exceptions import (
    IndexQueueError, QueueConfigurationError, QueueStorageError,
    QueueInitializationError, SearchBackendError, AdminConfigError
)

__all__ = [
    "IndexQueueItem",
    "QueueStatistics",
    "InitializationOutcome",
    "OperationResult",
    "ContentRecord",
    "IndexQueue",
    "PRIMARY_QUEUE_ID",
    "Site",
    "IndexingConfiguration",
    "IndexQueueError",
    "QueueConfigurationError",
    "QueueStorageError",
    "QueueInitializationError",
    "SearchBackendError",
    "AdminConfigError",
]
