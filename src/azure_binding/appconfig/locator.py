"""Locate App Configuration property sources for an application.

Contexts are key prefixes derived from the default context, the application
name, the active profiles and the store prefix. With prefix ``""``, default
context ``application``, application ``foo``, profile ``dev`` and separator
``_`` the contexts, highest precedence first, are::

    /foo_dev/  /foo/  /application_dev/  /application/

Stores are read last-configured first and labels last-declared first, so the
resulting composite lists sources in decreasing precedence.
"""

import logging
import threading
from collections.abc import Sequence

from azure_binding.appconfig.models import EnvironmentView
from azure_binding.appconfig.operations import ConfigServiceOperations
from azure_binding.appconfig.properties import AppConfigurationProperties, ConfigStore
from azure_binding.appconfig.property_source import CompositePropertySource, NamedPropertySource
from azure_binding.common.metrics import update_property_sources
from core.errors.exceptions import ConfigFetchError
from core.logging.utilities import log_exception, log_with_context

logger = logging.getLogger(__name__)

PROPERTY_SOURCE_NAME = "azure-config-store"
PATH_SPLITTER = "/"


class PropertyLocator:
    """Builds the composite property source for an environment.

    Args:
        operations: Fetches key-values from a store
        properties: Stores and context settings
    """

    def __init__(self, operations: ConfigServiceOperations, properties: AppConfigurationProperties):
        self._operations = operations
        self._properties = properties
        self._store_contexts: dict[str, list[str]] = {}
        self._store_contexts_lock = threading.Lock()

    @property
    def store_contexts(self) -> dict[str, list[str]]:
        """Snapshot of store name -> contexts loaded from it."""
        with self._store_contexts_lock:
            return {name: list(contexts) for name, contexts in self._store_contexts.items()}

    # =========================================================================
    # Contexts
    # =========================================================================

    @staticmethod
    def _prefixed(prefix: str, name: str) -> str:
        prefix = prefix.rstrip(PATH_SPLITTER) if prefix else ""
        if not prefix:
            return PATH_SPLITTER + name
        if prefix.startswith(PATH_SPLITTER):
            return prefix + PATH_SPLITTER + name
        return PATH_SPLITTER + prefix + PATH_SPLITTER + name

    def generate_contexts(self, name: str | None, profiles: Sequence[str], store: ConfigStore) -> list[str]:
        """Contexts for one name, lowest precedence first. Blank names yield none."""
        if not name or not name.strip():
            return []

        prefixed = self._prefixed(store.prefix, name)
        contexts = [prefixed + PATH_SPLITTER]
        for profile in profiles:
            contexts.append(prefixed + self._properties.profile_separator + profile + PATH_SPLITTER)
        return contexts

    def contexts_for(
        self,
        application_name: str | None,
        profiles: Sequence[str],
        store: ConfigStore,
    ) -> list[str]:
        """All contexts of a store, highest precedence first."""
        contexts = self.generate_contexts(self._properties.default_context, profiles, store)
        contexts.extend(self.generate_contexts(application_name, profiles, store))
        contexts.reverse()
        return contexts

    # =========================================================================
    # Loading
    # =========================================================================

    def _record_store_context(self, store_name: str, context: str) -> None:
        with self._store_contexts_lock:
            self._store_contexts.setdefault(store_name, []).append(context)

    def _create(self, context: str, store: ConfigStore) -> list[NamedPropertySource]:
        sources = []
        for label in store.labels_by_precedence():
            source = NamedPropertySource(context, self._operations, store.name, label)
            source.init_properties()
            sources.append(source)
        return sources

    def _add_store(
        self,
        composite: CompositePropertySource,
        store: ConfigStore,
        application_name: str | None,
        profiles: Sequence[str],
    ) -> None:
        for context in self.contexts_for(application_name, profiles, store):
            try:
                sources = self._create(context, store)
            except Exception as e:
                if self._properties.fail_fast:
                    error = ConfigFetchError(
                        f"Fail fast is set and there was an error reading configuration from "
                        f"store '{store.name}' for context '{context}'",
                        cause=e,
                        context={"store_name": store.name, "context": context},
                    )
                    log_exception(logger, error, "Failed to load configuration", store_name=store.name, context=context)
                    raise error from e

                log_exception(
                    logger,
                    e,
                    f"Unable to load configuration from store '{store.name}' for {context}",
                    level=logging.WARNING,
                    store_name=store.name,
                    context=context,
                )
                continue

            for source in sources:
                composite.add_property_source(source)
            self._record_store_context(store.name, context)
            log_with_context(
                logger,
                logging.DEBUG,
                "Property source context added",
                store_name=store.name,
                context=context,
                source_count=len(sources),
            )

    def locate(self, environment: EnvironmentView) -> CompositePropertySource:
        """Load every store and return the sources in decreasing precedence.

        Raises:
            ConfigFetchError: On the first failed fetch when fail_fast is set
        """
        application_name = self._properties.name or environment.resolve_application_name()
        profiles = environment.active_profiles

        composite = CompositePropertySource(PROPERTY_SOURCE_NAME)
        for store in reversed(self._properties.stores):
            self._add_store(composite, store, application_name, profiles)

        update_property_sources(len(composite))
        logger.info(
            "Located App Configuration property sources",
            extra={
                "source_count": len(composite),
                "fail_fast": self._properties.fail_fast,
            },
        )
        return composite

    def close(self) -> None:
        """Close the operations' store clients, if they hold any."""
        close = getattr(self._operations, "close", None)
        if close is not None:
            close()


__all__ = ["PATH_SPLITTER", "PROPERTY_SOURCE_NAME", "PropertyLocator"]
