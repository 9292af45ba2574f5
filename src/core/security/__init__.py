"""
Security helpers for Azure SDK clients.

    - get_ca_bundle_path(): Custom CA bundle from SSL_CERT_FILE / REQUESTS_CA_BUNDLE / CURL_CA_BUNDLE
    - get_ca_bundle_kwargs(): ``connection_verify`` kwarg for SDK clients
"""

from core.security.ssl_utils import get_ca_bundle_kwargs, get_ca_bundle_path

__all__ = [
    "get_ca_bundle_kwargs",
    "get_ca_bundle_path",
]
