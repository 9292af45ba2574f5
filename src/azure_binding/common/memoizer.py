"""Single-flight keyed memoization over a shared mapping.

``memoize(cache, producer)`` returns a callable that answers from ``cache``
when the key is present and otherwise runs ``producer`` exactly once per
key, even when many threads ask for the same key at the same time.

The owner keeps a reference to ``cache`` and may read it or ``pop`` from it
directly; lookups and removals are single dict operations and need no lock.
A producer that raises leaves ``cache`` untouched, so the next call retries.

Usage:
    clients: dict[str, Client] = {}
    get_client = memoize(clients, create_client)
    get_client("orders")  # creates
    get_client("orders")  # cached
"""

import threading
from collections.abc import Callable, Hashable, Iterator, MutableMapping
from contextlib import contextmanager
from typing import Any, TypeVar

V = TypeVar("V")

_MISSING = object()


def _default_key(*args: Any) -> Hashable:
    return args[0] if len(args) == 1 else tuple(args)


class _KeyLocks:
    """One lock per key, shared by the callers currently inside it.

    An entry is dropped when its last holder leaves, so keys (and anything
    they reference) are not kept alive once nobody is building them.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, list] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1

        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]


def memoize(
    cache: MutableMapping[Hashable, V],
    producer: Callable[..., V],
    key: Callable[..., Hashable] = _default_key,
) -> Callable[..., V]:
    """Wrap ``producer`` so each key is computed once and stored in ``cache``.

    Args:
        cache: Mapping shared with the caller, mutated only here and by the
            caller's explicit removals
        producer: Builds the value from the call arguments
        key: Derives the cache key from the call arguments. Defaults to the
            single argument, or the argument tuple for several arguments.

    Returns:
        Callable taking the producer's arguments
    """
    key_locks = _KeyLocks()

    def get_or_create(*args: Any) -> V:
        cache_key = key(*args)

        value = cache.get(cache_key, _MISSING)
        if value is not _MISSING:
            return value

        # Only the per-key lock is held while the producer runs
        with key_locks.hold(cache_key):
            value = cache.get(cache_key, _MISSING)
            if value is _MISSING:
                value = producer(*args)
                cache[cache_key] = value
            return value

    return get_or_create


__all__ = ["memoize"]
