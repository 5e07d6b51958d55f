"""
File-based search backend writing documents as JSON files.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from ..core.exceptions import SearchBackendError
from .base import SearchBackend


logger = logging.getLogger(__name__)


class FileSearchBackend(SearchBackend):
    """
    Writes each document as a JSON file, replacing earlier versions.

    Files are organized by: {base_dir}/site_{site}/{type}/{uid}.json
    """

    def __init__(self, base_dir: Path, pretty_print: bool = True):
        """
        Initialize the file backend.

        Args:
            base_dir: Base directory for the document files
            pretty_print: Whether to pretty-print JSON files
        """
        self.base_dir = Path(base_dir)
        self.pretty_print = pretty_print
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def add_documents(self, documents: List[Dict[str, Any]]) -> bool:
        indent = 2 if self.pretty_print else None

        for document in documents:
            dir_path = (
                self.base_dir
                / f"site_{document.get('site', 'unknown')}"
                / self._sanitize_filename(str(document.get("type", "unknown")))
            )
            file_path = dir_path / f"{self._sanitize_filename(str(document.get('uid')))}.json"

            try:
                dir_path.mkdir(parents=True, exist_ok=True)
                with open(file_path, "w", encoding="utf-8") as f:
                    json.dump(document, f, indent=indent, ensure_ascii=False, default=str)
            except OSError as e:
                logger.error(f"Failed to write document file {file_path}: {e}")
                raise SearchBackendError(
                    f"Failed to write document file {file_path}: {e}",
                    backend=self.get_name(),
                ) from e

            logger.debug(f"Wrote document to: {file_path}")

        return True

    def _sanitize_filename(self, name: str) -> str:
        """Sanitize a string for use in filenames."""
        safe = name.replace("/", "_").replace("\\", "_").replace(":", "_")
        if len(safe) > 100:
            safe = safe[:100]
        return safe

    def get_name(self) -> str:
        """Return the backend name."""
        return f"file:{self.base_dir}"
