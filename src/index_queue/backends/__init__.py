"""
Search backends receiving the documents built from queue items.

A site lists its backend connections in the configuration file:

    backends:
      - type: http
        url: http://localhost:8983/solr/core_en
      - type: file
        base_dir: local/documents
"""

from pathlib import Path
from typing import Any, Dict

from ..core.exceptions import AdminConfigError
from .base import SearchBackend
from .file_backend import FileSearchBackend
from .http_backend import HttpSearchBackend


def create_backend(connection: Dict[str, Any], timeout: int = 30, max_retries: int = 3) -> SearchBackend:
    """
    Create a search backend from a site's connection entry.

    Args:
        connection: Backend connection dictionary with a 'type' key
        timeout: Default request timeout for HTTP backends
        max_retries: Default retry count for HTTP backends

    Raises:
        AdminConfigError: If the type is unknown or required keys are missing
    """
    backend_type = connection.get("type", "http")

    if backend_type == "http":
        if not connection.get("url"):
            raise AdminConfigError(f"HTTP backend connection without 'url': {connection}")
        return HttpSearchBackend(
            url=connection["url"],
            name=connection.get("name"),
            timeout=connection.get("timeout", timeout),
            max_retries=connection.get("max_retries", max_retries),
            commit=connection.get("commit", True),
        )

    elif backend_type == "file":
        if not connection.get("base_dir"):
            raise AdminConfigError(f"File backend connection without 'base_dir': {connection}")
        return FileSearchBackend(
            base_dir=Path(connection["base_dir"]),
            pretty_print=connection.get("pretty_print", True),
        )

    raise AdminConfigError(
        f"Unknown backend type: {backend_type}. Supported types: 'http', 'file'"
    )


__all__ = [
    "SearchBackend",
    "HttpSearchBackend",
    "FileSearchBackend",
    "create_backend",
]
