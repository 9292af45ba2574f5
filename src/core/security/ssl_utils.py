"""SSL/TLS utilities for corporate proxy environments."""

import os


def get_ca_bundle_path() -> str | None:
    """Return the custom CA bundle configured through the usual env vars, if any."""
    return (
        os.getenv("SSL_CERT_FILE")
        or os.getenv("REQUESTS_CA_BUNDLE")
        or os.getenv("CURL_CA_BUNDLE")
        or None
    )


def get_ca_bundle_kwargs() -> dict:
    """Return ``{"connection_verify": path}`` if a custom CA bundle is set, else ``{}``.

    Both the Event Hub and App Configuration clients accept ``connection_verify``.
    """
    ca_bundle = get_ca_bundle_path()
    if ca_bundle:
        return {"connection_verify": ca_bundle}
    return {}
