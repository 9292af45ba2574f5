"""Property sources built from App Configuration key-values."""

import logging
from collections.abc import Iterator

from azure_binding.appconfig.models import QueryOptions
from azure_binding.appconfig.operations import ConfigServiceOperations
from azure_binding.appconfig.properties import EMPTY_LABEL

logger = logging.getLogger(__name__)


class NamedPropertySource:
    """Key-values of one (store, label, context), with the context stripped from each key.

    Empty until ``init_properties`` fetches them.
    """

    def __init__(
        self,
        context: str,
        operations: ConfigServiceOperations,
        store_name: str,
        label: str = EMPTY_LABEL,
    ):
        self.context = context
        self.store_name = store_name
        self.label = label
        self._operations = operations
        self._properties: dict[str, str | None] = {}

        name = f"{store_name}:{context}"
        if label != EMPTY_LABEL:
            name = f"{name}[{label}]"
        self.name = name

    def init_properties(self) -> None:
        """Fetch every key under the context for this label.

        Raises:
            ConfigFetchError: If the store can't be read
        """
        items = self._operations.get_keys(
            self.store_name,
            QueryOptions(key_filter=f"{self.context}*", label_filter=self.label),
        )

        properties = {}
        for item in items:
            if not item.key.startswith(self.context):
                continue
            properties[item.key[len(self.context):]] = item.value
        self._properties = properties

        logger.debug(
            "Loaded property source",
            extra={
                "store_name": self.store_name,
                "context": self.context,
                "label": self.label,
                "key_count": len(properties),
            },
        )

    @property
    def property_names(self) -> list[str]:
        return list(self._properties)

    def get_property(self, name: str) -> str | None:
        return self._properties.get(name)

    def contains_property(self, name: str) -> bool:
        return name in self._properties

    def __repr__(self) -> str:
        return f"NamedPropertySource(name={self.name!r}, keys={len(self._properties)})"


class CompositePropertySource:
    """Ordered property sources; the first source holding a key wins."""

    def __init__(self, name: str):
        self.name = name
        self._sources: list[NamedPropertySource] = []

    def add_property_source(self, source: NamedPropertySource) -> None:
        self._sources.append(source)

    @property
    def property_sources(self) -> list[NamedPropertySource]:
        return list(self._sources)

    def __iter__(self) -> Iterator[NamedPropertySource]:
        return iter(list(self._sources))

    def __len__(self) -> int:
        return len(self._sources)

    def get_property(self, name: str) -> str | None:
        for source in self._sources:
            if source.contains_property(name):
                return source.get_property(name)
        return None

    def contains_property(self, name: str) -> bool:
        return any(source.contains_property(name) for source in self._sources)

    @property
    def property_names(self) -> list[str]:
        """Union of every source's names, in precedence order."""
        names: dict[str, None] = {}
        for source in self._sources:
            for name in source.property_names:
                names.setdefault(name, None)
        return list(names)


__all__ = ["CompositePropertySource", "NamedPropertySource"]
