from __future__ import annotations

from threading import Lock
from typing import Iterable

from actions_indexer.app.domain.models import TokenMetadata


class InMemoryTokenMetadataCache:
    """
    Process-wide token address -> TokenMetadata store.

    Entries never expire; put() is an upsert (last resolved wins).
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._data: dict[str, TokenMetadata] = {}

    def get(self, address: str) -> TokenMetadata | None:
        with self._lock:
            return self._data.get(address.lower())

    def put(self, address: str, metadata: TokenMetadata) -> None:
        with self._lock:
            self._data[address.lower()] = metadata

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


class InMemoryUniswapPoolsCache:
    """
    Process-wide pool address -> [token0, token1] (legitimate) or [] (not) store.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._data: dict[str, tuple[str, ...]] = {}

    def get(self, pool_address: str) -> list[str] | None:
        with self._lock:
            value = self._data.get(pool_address.lower())
        return None if value is None else list(value)

    def put(self, pool_address: str, tokens: Iterable[str]) -> None:
        with self._lock:
            self._data[pool_address.lower()] = tuple(tokens)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


# Shared across invocations within one process
TOKEN_METADATA_CACHE = InMemoryTokenMetadataCache()
UNISWAP_POOLS_CACHE = InMemoryUniswapPoolsCache()
