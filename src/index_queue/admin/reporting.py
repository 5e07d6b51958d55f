"""
Report messages produced by administrative operations.

Every administrative operation ends by adding one or more messages to the
request's MessageLog; the presentation layer renders them after the
operation returns.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List


class Severity(str, Enum):
    """Severity of a report message."""
    OK = "ok"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


# message key -> (title, text); texts take str.format() arguments
MESSAGES = {
    "cannot_proceed": (
        "Index Queue",
        "The index queue of this site cannot be managed: the site needs at least "
        "one search backend connection and one enabled indexing configuration.",
    ),
    "initialize.success": (
        "Index Queue initialized",
        "Initialized indexing configurations: {0}",
    ),
    "initialize.no_selection": (
        "Index Queue not initialized",
        "No indexing configurations were selected for initialization.",
    ),
    "initialize.failure": (
        "Index Queue initialization failed",
        "Initialization of indexing configuration '{0}' failed: {1} (code {2})",
    ),
    "reset_errors.success": (
        "Index Queue",
        "All errors have been reset.",
    ),
    "reset_errors.failure": (
        "Index Queue",
        "Errors could not be reset for queue(s): {0}",
    ),
    "requeue.success": (
        "Index Queue",
        "Item {0}:{1} was requeued.",
    ),
    "requeue.failure": (
        "Index Queue",
        "Item {0}:{1} was not requeued.",
    ),
    "show_error.no_item": (
        "Index Queue",
        "There is no queue item with id {0}.",
    ),
    "index_manual.success": (
        "Manual indexing",
        "Indexing run finished without errors.",
    ),
    "index_manual.failure": (
        "Manual indexing",
        "Indexing run finished with errors.",
    ),
}


@dataclass
class ReportMessage:
    """A single user-facing report entry."""
    severity: Severity
    title: str
    text: str

    def __str__(self) -> str:
        return f"[{self.severity.value.upper()}] {self.title}: {self.text}"


class MessageLog:
    """
    Ordered collection of report messages for one request.

    Example:
        >>> messages = MessageLog()
        >>> messages.add("requeue.failure", Severity.ERROR, "pages", 12)
        >>> messages.has_errors()
        True
    """

    def __init__(self):
        self._messages: List[ReportMessage] = []

    def add(self, key: str, severity: Severity, *args: Any) -> ReportMessage:
        """Add the catalog message ``key`` formatted with ``args``."""
        title, text = MESSAGES[key]
        message = ReportMessage(severity=severity, title=title, text=text.format(*args))
        self._messages.append(message)
        return message

    def has_errors(self) -> bool:
        return any(m.severity == Severity.ERROR for m in self._messages)

    def by_severity(self, severity: Severity) -> List[ReportMessage]:
        return [m for m in self._messages if m.severity == severity]

    def __iter__(self):
        return iter(self._messages)

    def __len__(self) -> int:
        return len(self._messages)
