from __future__ import annotations

from typing import Any, Iterable, Protocol, Sequence

from actions_indexer.app.domain.models import (
    ContractCallRequest,
    ContractCallResponse,
    RawLog,
    TokenMetadata,
    TransactionAction,
)


class TransactionActionsIndexer(Protocol):
    """
    Port for indexing transaction actions into the domain layer.

    Implementations load logs for the block range, derive protocol actions
    from them and persist the result. When protocols_to_rewrite is given,
    previously stored actions of the affected transactions are replaced.
    """

    async def index_actions_for_block_range(
        self,
        *,
        chain_id: int,
        from_block: int,
        to_block: int,
        protocols_to_rewrite: list[str] | None = None,
    ) -> None:
        ...


class EvmEventDecoder(Protocol):
    def decode(
        self,
        *,
        topic0: str | None,
        topic1: str | None,
        topic2: str | None,
        topic3: str | None,
        data: str,
    ) -> dict[str, Any] | None:
        """
        Decode an EVM log (hex topics + hex data) into a dict of typed fields.

        Return:
          - dict[str, Any] for decoded event fields
          - None if the log is not one of the events this decoder knows
        """
        ...


class EvmLogsSource(Protocol):
    """
    Supplies raw logs for a block range, ordered by block, transaction and log index.
    """

    async def fetch_logs(
        self,
        *,
        chain_id: int,
        from_block: int,
        to_block: int,
    ) -> list[RawLog]:
        ...


class TransactionActionsRepository(Protocol):
    """
    Persistent store used by the transaction actions pipeline.

    - delete previously stored actions by transaction hash (optionally per protocol),
    - look up token symbol/decimals for a set of addresses,
    - append new action records.
    """

    async def delete_for_transactions(
        self,
        *,
        transaction_hashes: Sequence[str],
        protocols: Sequence[str],
    ) -> None:
        """Empty `protocols` means every protocol."""
        ...

    async def fetch_token_metadata(
        self,
        *,
        addresses: Sequence[str],
    ) -> dict[str, TokenMetadata]:
        """Keys are lower-cased addresses; unknown addresses are absent."""
        ...

    async def insert_actions(self, actions: Sequence[TransactionAction]) -> None:
        ...


class ContractReader(Protocol):
    """
    Low-level dependency executing a batch of read-only contract calls.

    Responses are returned in request order, one per request. A failing call
    yields ContractCallResponse(ok=False, error=...) instead of raising.
    """

    async def read_contracts(
        self,
        requests: Sequence[ContractCallRequest],
        abi: list[dict[str, Any]],
        *,
        max_retries: int,
    ) -> list[ContractCallResponse]:
        ...


class TokenMetadataCache(Protocol):
    def get(self, address: str) -> TokenMetadata | None: ...

    def put(self, address: str, metadata: TokenMetadata) -> None: ...


class UniswapPoolsCache(Protocol):
    def get(self, pool_address: str) -> list[str] | None: ...

    def put(self, pool_address: str, tokens: Iterable[str]) -> None: ...
