"""
HTTP search backend posting JSON documents to a Solr-style update handler.
"""

import json
import logging
import time
from typing import Any, Dict, List, Optional

import requests

from ..core.exceptions import SearchBackendError
from .base import SearchBackend


logger = logging.getLogger(__name__)


class HttpSearchBackend(SearchBackend):
    """
    Sends documents to ``{url}/update`` as a JSON array.

    Supports:
    - Commit on every request (optional)
    - Retries with exponential backoff on connection errors and 5xx responses
    """

    def __init__(
        self,
        url: str,
        name: Optional[str] = None,
        timeout: int = 30,
        max_retries: int = 3,
        commit: bool = True,
        user_agent: Optional[str] = None,
    ):
        """
        Initialize the HTTP backend.

        Args:
            url: Base URL of the core/collection (e.g., http://localhost:8983/solr/core_en)
            name: Backend name used in logs and reports
            timeout: Request timeout in seconds
            max_retries: Maximum attempts per request
            commit: Whether to ask the backend to commit after every update
            user_agent: Custom User-Agent header
        """
        self.url = url.rstrip("/")
        self.name = name or self.url
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.commit = commit
        self.user_agent = user_agent or "IndexQueueAdmin/1.0"
        self.session = requests.Session()

    def add_documents(self, documents: List[Dict[str, Any]]) -> bool:
        if not documents:
            return True

        params = {"commit": "true"} if self.commit else {}
        headers = {
            "Content-Type": "application/json",
            "User-Agent": self.user_agent,
        }
        body = json.dumps(documents, default=str)

        last_error = None
        for attempt in range(self.max_retries):
            try:
                response = self.session.post(
                    f"{self.url}/update",
                    params=params,
                    data=body,
                    headers=headers,
                    timeout=self.timeout,
                )

                if response.status_code < 500:
                    if response.status_code >= 400:
                        raise SearchBackendError(
                            f"Backend rejected {len(documents)} documents: "
                            f"HTTP {response.status_code} {response.text[:200]}",
                            backend=self.name,
                            status_code=response.status_code,
                        )
                    logger.debug(f"Sent {len(documents)} documents to {self.name}")
                    return True

                last_error = f"HTTP {response.status_code}"

            except requests.exceptions.RequestException as e:
                last_error = str(e)

            logger.warning(
                f"Update request to {self.name} failed "
                f"(attempt {attempt + 1}/{self.max_retries}): {last_error}"
            )
            if attempt < self.max_retries - 1:
                time.sleep(2 ** attempt)

        raise SearchBackendError(
            f"Update request failed after {self.max_retries} attempts: {last_error}",
            backend=self.name,
        )

    def get_name(self) -> str:
        """Return the backend name."""
        return self.name

    def close(self) -> None:
        """Close the session."""
        if self.session:
            self.session.close()
