from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Iterable

from actions_indexer.app.application.services.actions.contracts import (
    DECIMALS_METHOD_ID,
    ERC20_ABI,
    SYMBOL_METHOD_ID,
)
from actions_indexer.app.domain.models import DECIMALS_MAX, ContractCallRequest, TokenMetadata
from actions_indexer.app.domain.ports.out import (
    ContractReader,
    TokenMetadataCache,
    TransactionActionsRepository,
)

logger = logging.getLogger(__name__)


class TokenMetadataResolver:
    """
    Resolves ERC-20 symbol/decimals for a set of token addresses.

    Tiers, each one only for addresses still incomplete after the previous:
      1) process-wide cache,
      2) persistent store (domain.tokens),
      3) a single batched eth_call round-trip (symbol() + decimals() per token).

    `resolve` is all-or-nothing: if any address still lacks a non-empty
    symbol or valid decimals it returns None and the caller drops the action
    it was building. `lookup` returns whatever was found, so a handler can
    resolve all tokens of a batch at once and check each action on its own.
    """

    def __init__(
        self,
        *,
        cache: TokenMetadataCache,
        repository: TransactionActionsRepository,
        reader: ContractReader,
        max_retries: int = 3,
    ) -> None:
        self._cache = cache
        self._repository = repository
        self._reader = reader
        self._max_retries = max_retries

    async def resolve(self, token_addresses: Iterable[str]) -> dict[str, TokenMetadata] | None:
        addresses = list(token_addresses)
        return complete_subset(await self.lookup(addresses), addresses)

    async def lookup(self, token_addresses: Iterable[str]) -> dict[str, TokenMetadata]:
        """
        Metadata for every address, complete or not, in one pass per tier.

        Handlers call this once with all the tokens of a batch and then pick
        each action's tokens with `complete_subset`.
        """
        addresses = list(dict.fromkeys(a.lower() for a in token_addresses))
        if not addresses:
            return {}

        token_data = self._from_cache(addresses)
        token_data = await self._from_store(token_data)
        return await self._from_rpc(token_data)

    def _from_cache(self, addresses: list[str]) -> dict[str, TokenMetadata]:
        return {address: self._cache.get(address) or TokenMetadata() for address in addresses}

    async def _from_store(self, token_data: dict[str, TokenMetadata]) -> dict[str, TokenMetadata]:
        to_select = [address for address, data in token_data.items() if not data.is_complete]
        if not to_select:
            return token_data

        rows = await self._repository.fetch_token_metadata(addresses=to_select)

        result = dict(token_data)
        for address, row in rows.items():
            address = address.lower()
            if address not in result:
                continue
            current = result[address]

            # an empty store field keeps what the cache already had
            new_data = TokenMetadata(
                symbol=row.symbol if row.symbol else current.symbol,
                decimals=row.decimals if row.decimals is not None else current.decimals,
            )
            self._put_to_cache(address, new_data)
            result[address] = new_data

        return result

    async def _from_rpc(self, token_data: dict[str, TokenMetadata]) -> dict[str, TokenMetadata]:
        to_request = [address for address, data in token_data.items() if not data.is_complete]
        if not to_request:
            return token_data

        requests = [
            ContractCallRequest(contract_address=address, method_id=method_id)
            for address in to_request
            for method_id in (SYMBOL_METHOD_ID, DECIMALS_METHOD_ID)
        ]

        responses = await self._reader.read_contracts(requests, ERC20_ABI, max_retries=self._max_retries)

        if len(responses) != len(requests):
            logger.error(
                "Cannot read symbol and decimals of ERC-20 token contracts: expected %s responses, got %s. Addresses: %s",
                len(requests),
                len(responses),
                ", ".join(to_request),
            )
            return token_data

        errors = [resp.error for resp in responses if not resp.ok]
        if errors:
            failed = list(dict.fromkeys(req.contract_address for req, resp in zip(requests, responses) if not resp.ok))
            logger.warning(
                "Cannot read symbol and decimals of some ERC-20 token contracts. Error messages: %s. Addresses: %s",
                ", ".join(str(e) for e in errors),
                ", ".join(failed),
            )

        result = dict(token_data)
        for request, response in zip(requests, responses):
            if not response.ok:
                continue

            address = request.contract_address
            data = result[address]

            if request.method_id == SYMBOL_METHOD_ID:
                new_data = replace(data, symbol=_normalize_symbol(response.value))
            else:
                new_data = replace(data, decimals=_normalize_decimals(response.value))

            self._put_to_cache(address, new_data)
            result[address] = new_data

        return result

    def _put_to_cache(self, address: str, data: TokenMetadata) -> None:
        if data.decimals is None or data.decimals <= DECIMALS_MAX:
            self._cache.put(address, data)


def _normalize_symbol(val: Any) -> str | None:
    if val is None:
        return None

    if isinstance(val, str):
        return val.strip() or None

    if isinstance(val, (bytes, bytearray, memoryview)):
        try:
            return bytes(val).rstrip(b"\x00").decode("utf-8").strip() or None
        except UnicodeDecodeError:
            return None

    return None


def _normalize_decimals(val: Any) -> int | None:
    if isinstance(val, bool) or val is None:
        return None
    try:
        return int(val)
    except (TypeError, ValueError):
        return None


def complete_subset(
    token_data: dict[str, TokenMetadata],
    token_addresses: Iterable[str],
) -> dict[str, TokenMetadata] | None:
    """Entries for `token_addresses`, or None unless every one of them is complete."""
    subset: dict[str, TokenMetadata] = {}
    for address in token_addresses:
        address = address.lower()
        token = token_data.get(address)
        if token is None or not token.is_complete:
            return None
        subset[address] = token
    return subset
