"""
Index queue administration for a multi-site search platform.

Resolves the queues serving a site's indexing configurations and exposes
initialization, inspection, error recovery and manual indexing runs over
them.
"""

__version__ = "0.1.0"
