"""Shared fixtures for App Configuration test modules."""

import pytest

from azure_binding.appconfig.models import KeyValueItem, QueryOptions
from core.errors.exceptions import ConfigFetchError


class InMemoryConfigService:
    """ConfigServiceOperations over a dict of store -> label -> {key: value}."""

    def __init__(self, data=None):
        self.data = data or {}
        self.queries = []
        self.failing = set()

    def put(self, store, key, value, label="\0"):
        self.data.setdefault(store, {}).setdefault(label, {})[key] = value

    def fail(self, store, key_filter):
        self.failing.add((store, key_filter))

    def get_keys(self, store_name, query_options: QueryOptions):
        self.queries.append((store_name, query_options.key_filter, query_options.label_filter))
        if (store_name, query_options.key_filter) in self.failing:
            raise ConfigFetchError(f"boom {store_name} {query_options.key_filter}")

        prefix = query_options.key_filter.rstrip("*")
        items = self.data.get(store_name, {}).get(query_options.label_filter, {})
        return [
            KeyValueItem(key=k, value=v, label=query_options.label_filter)
            for k, v in items.items()
            if k.startswith(prefix)
        ]


@pytest.fixture
def config_service():
    return InMemoryConfigService()
