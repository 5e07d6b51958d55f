"""
Custom exceptions for the index queue administration package.
"""

from typing import Optional


class IndexQueueError(Exception):
    """
    Base exception for all index queue errors.

    Carries an optional numeric ``code`` so callers can surface it next to
    the message when reporting a failure.
    """

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class QueueConfigurationError(IndexQueueError):
    """
    Error resolving a queue for an indexing configuration.

    Raised when:
    - An indexing configuration name is not defined for the site
    - A configuration references a queue implementation nobody registered
    - A configuration is routed to a queue that was not resolved for the request
    """
    pass


class QueueStorageError(IndexQueueError):
    """
    Error persisting or reading queue items.

    Raised when:
    - The queue database cannot be reached
    - A statement against the queue tables fails
    """
    pass


class QueueInitializationError(IndexQueueError):
    """
    Error populating a queue from an indexing configuration.

    Raised when:
    - The configuration's content table cannot be read
    - Items for the configuration cannot be written
    """
    pass


class SearchBackendError(IndexQueueError):
    """
    Error transmitting documents to a search backend.

    Raised when:
    - The backend is unreachable or times out
    - The backend rejects a document batch
    """

    def __init__(self, message: str, backend: str = None, status_code: int = None):
        super().__init__(message)
        self.backend = backend
        self.status_code = status_code


class AdminConfigError(IndexQueueError):
    """
    Error in the administration configuration.

    Raised when:
    - A site entry is missing its id
    - A backend connection has an unknown type
    """
    pass
