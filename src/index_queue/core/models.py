"""
Core data models for the index queue administration layer.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class IndexQueueItem:
    """
    A single unit of pending indexing work.

    Attributes:
        item_id: Numeric identifier of the queue item
        site_id: Identifier of the site the item belongs to
        item_type: Content-type label (the content table name)
        item_uid: Identifier of the content record
        indexing_configuration: Name of the configuration that queued the item
        changed: Unix timestamp of the last change to the record
        indexed: Unix timestamp of the last successful indexing (0 = never)
        errors: Error message of the last failed indexing attempt ('' = none)
    """
    item_id: int
    site_id: int
    item_type: str
    item_uid: int
    indexing_configuration: str
    changed: int = 0
    indexed: int = 0
    errors: str = ""

    @property
    def has_errors(self) -> bool:
        """Whether the last indexing attempt failed."""
        return bool(self.errors)

    @property
    def is_pending(self) -> bool:
        """Whether the record changed after it was last indexed."""
        return self.changed > self.indexed

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "item_id": self.item_id,
            "site_id": self.site_id,
            "item_type": self.item_type,
            "item_uid": self.item_uid,
            "indexing_configuration": self.indexing_configuration,
            "changed": self.changed,
            "indexed": self.indexed,
            "errors": self.errors,
        }


@dataclass
class QueueStatistics:
    """
    Aggregate item counts for a site, optionally scoped to one configuration.

    ``failed`` items carry an error message, ``pending`` items changed after
    their last indexing and have no error, ``success`` items are up to date.
    """
    pending: int = 0
    failed: int = 0
    success: int = 0

    @property
    def total(self) -> int:
        return self.pending + self.failed + self.success

    def _percentage(self, count: int) -> float:
        if self.total == 0:
            return 0.0
        return round(count * 100.0 / self.total, 2)

    @property
    def pending_percentage(self) -> float:
        return self._percentage(self.pending)

    @property
    def failed_percentage(self) -> float:
        return self._percentage(self.failed)

    @property
    def success_percentage(self) -> float:
        return self._percentage(self.success)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "pending": self.pending,
            "failed": self.failed,
            "success": self.success,
        }


@dataclass
class InitializationOutcome:
    """
    Result of initializing one indexing configuration.

    Produced and consumed within a single request; never persisted.
    ``item_count`` is only meaningful when ``succeeded`` is True.
    """
    configuration_name: str
    succeeded: bool
    item_count: int = 0
    error_message: Optional[str] = None
    error_code: Optional[int] = None


@dataclass
class OperationResult:
    """
    Outcome of a side-effecting administrative operation.

    Attributes:
        success: Whether the operation had the intended effect
        count: Number of affected items, where the operation counts them
        cause: Short description of why the operation failed
        refused: True when a precondition check prevented the call entirely
    """
    success: bool
    count: int = 0
    cause: Optional[str] = None
    refused: bool = False


@dataclass
class ContentRecord:
    """A content record read from a content source."""
    record_id: int
    changed: int = 0
    fields: Dict[str, Any] = field(default_factory=dict)
