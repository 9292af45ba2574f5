"""Worker ID generation using coolnames for unique, memorable identifiers."""

import socket

from coolname import generate_slug


def generate_worker_id(prefix: str = "") -> str:
    """Generate a unique, memorable worker ID using coolnames.

    Args:
        prefix: Optional prefix to prepend to the generated ID (e.g., "orders-consumer")

    Returns:
        A unique worker ID in the format "prefix-word1-word2-word3" or "word1-word2-word3"

    Examples:
        >>> generate_worker_id()
        'brave-golden-tiger'
        >>> generate_worker_id("orders-consumer")
        'orders-consumer-swift-blue-falcon'
    """
    coolname_id = generate_slug(3)

    if prefix:
        return f"{prefix}-{coolname_id}"

    return coolname_id


def generate_host_name() -> str:
    """Generate a processor host identifier from the local hostname.

    The hostname keeps the identifier traceable to a machine, the random
    suffix keeps two processes on the same machine from sharing leases.
    """
    hostname = socket.gethostname() or "localhost"
    return generate_worker_id(hostname)
