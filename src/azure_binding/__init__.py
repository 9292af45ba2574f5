"""
azure_binding: Azure Event Hub and App Configuration bindings.

Subpackages:
    common     - Message and routing value objects, headers, memoizer, metrics
    eventhub   - Client factory, send pipeline, consumer registration, SDK adapters
    appconfig  - Property locator over Azure App Configuration stores

Wiring lives in ``azure_binding.bootstrap``; it is not imported here so that
``config`` can depend on this package without an import cycle.

Dependencies:
    - core.*: Logging, errors, utilities
    - azure-eventhub / azure-eventhub-checkpointstoreblob-aio: Event streaming
    - azure-appconfiguration: Remote configuration store
"""

__version__ = "0.1.0"

USER_AGENT = f"azure-binding/{__version__}"

__all__ = ["USER_AGENT", "__version__"]
