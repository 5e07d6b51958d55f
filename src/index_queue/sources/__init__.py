"""
Content sources providing the records that indexing configurations cover.
"""

from .base import ContentSource
from .sqlite_source import SqliteContentSource

__all__ = ["ContentSource", "SqliteContentSource"]
