"""
Site and indexing configuration models.

A site is read-only to the administration layer: it is built once from the
configuration file and only queried afterwards.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .exceptions import AdminConfigError, QueueConfigurationError
from .queue import PRIMARY_QUEUE_ID


logger = logging.getLogger(__name__)


@dataclass
class IndexingConfiguration:
    """
    A named rule set describing one category of content to index.

    Attributes:
        name: Configuration name (e.g., 'pages', 'news')
        table: Content table the records are read from; used as item type
        queue: Implementation id of the queue that holds the items
        enabled: Whether the configuration takes part in indexing
        fields: Mapping of document field name -> record column
        additional_where: Optional SQL condition narrowing the records
    """
    name: str
    table: str
    queue: str = PRIMARY_QUEUE_ID
    enabled: bool = True
    fields: Dict[str, str] = field(default_factory=dict)
    additional_where: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "table": self.table,
            "queue": self.queue,
            "enabled": self.enabled,
            "fields": self.fields,
            "additional_where": self.additional_where,
        }

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> "IndexingConfiguration":
        """Create from dictionary; ``table`` defaults to the configuration name."""
        return cls(
            name=name,
            table=data.get("table", name),
            queue=data.get("queue", PRIMARY_QUEUE_ID),
            enabled=data.get("enabled", True),
            fields=data.get("fields", {}),
            additional_where=data.get("additional_where"),
        )


class Site:
    """
    A site of the search platform with its indexing configurations.

    Example:
        >>> site = Site.from_dict({
        ...     'id': 1,
        ...     'label': 'main',
        ...     'backends': [{'type': 'http', 'url': 'http://localhost:8983/solr/core_en'}],
        ...     'indexing': {'pages': {'table': 'pages'}},
        ... })
        >>> site.get_enabled_indexing_configuration_names()
        ['pages']
    """

    def __init__(
        self,
        site_id: int,
        label: str = "",
        indexing_configurations: Optional[List[IndexingConfiguration]] = None,
        backend_connections: Optional[List[Dict[str, Any]]] = None,
    ):
        self.site_id = site_id
        self.label = label or f"site-{site_id}"
        self._configurations: Dict[str, IndexingConfiguration] = {}
        for configuration in indexing_configurations or []:
            self._configurations[configuration.name] = configuration
        self._backend_connections = list(backend_connections or [])

    def __repr__(self) -> str:
        return f"Site(site_id={self.site_id!r}, label={self.label!r})"

    def get_enabled_indexing_configuration_names(self) -> List[str]:
        """Names of the enabled configurations, in definition order."""
        return [
            name for name, configuration in self._configurations.items()
            if configuration.enabled
        ]

    def get_indexing_configuration_names(self) -> List[str]:
        """Names of all configurations, enabled or not."""
        return list(self._configurations.keys())

    def get_indexing_configuration(self, configuration_name: str) -> IndexingConfiguration:
        """
        Get an indexing configuration by name.

        Raises:
            QueueConfigurationError: If the site defines no such configuration
        """
        configuration = self._configurations.get(configuration_name)
        if configuration is None:
            raise QueueConfigurationError(
                f"Site {self.site_id} has no indexing configuration '{configuration_name}'"
            )
        return configuration

    def get_queue_implementation_id(self, configuration_name: str) -> str:
        """Implementation id of the queue owning a configuration's items."""
        return self.get_indexing_configuration(configuration_name).queue

    def get_backend_connections(self) -> List[Dict[str, Any]]:
        """Configured search backend connections of the site."""
        return list(self._backend_connections)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Site":
        """
        Create a site from a ``sites:`` entry of the configuration file.

        Raises:
            AdminConfigError: If the entry has no id
        """
        if "id" not in data:
            raise AdminConfigError(f"Site entry without 'id': {data}")

        configurations = [
            IndexingConfiguration.from_dict(name, options or {})
            for name, options in (data.get("indexing") or {}).items()
        ]
        site = cls(
            site_id=int(data["id"]),
            label=data.get("label", ""),
            indexing_configurations=configurations,
            backend_connections=data.get("backends") or [],
        )
        logger.debug(
            f"Loaded site {site.site_id} with configurations "
            f"{site.get_indexing_configuration_names()}"
        )
        return site
