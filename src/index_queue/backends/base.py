"""
Search backend interface for transmitting documents.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List


class SearchBackend(ABC):
    """
    Abstract base class for search backends.

    A search backend receives the documents built from queue items of one
    site (e.g., a Solr core, a directory of JSON files).
    """

    @abstractmethod
    def add_documents(self, documents: List[Dict[str, Any]]) -> bool:
        """
        Send documents to the backend.

        Args:
            documents: Documents to add or replace

        Returns:
            True if successful

        Raises:
            SearchBackendError if the backend rejects the documents
        """
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Return the backend name/identifier."""
        pass

    def close(self) -> None:
        """Close any open resources. Optional."""
        pass
