from __future__ import annotations

import logging
from typing import Any, Iterable

from eth_utils import is_address

from actions_indexer.app.application.services.actions.contracts import (
    FEE_METHOD_ID,
    GET_POOL_METHOD_ID,
    METHOD_NAMES,
    TOKEN0_METHOD_ID,
    TOKEN1_METHOD_ID,
    UNISWAP_V3_FACTORY_ABI,
    UNISWAP_V3_POOL_ABI,
)
from actions_indexer.app.domain.models import BURN_ADDRESS, ContractCallRequest
from actions_indexer.app.domain.ports.out import ContractReader, UniswapPoolsCache

logger = logging.getLogger(__name__)


class PoolLegitimacyResolver:
    """
    Decides whether contracts emitting Uniswap V3 pool events are genuine pools.

    A pool is legitimate when the canonical factory's getPool(token0, token1, fee),
    called with the values the pool reports about itself, returns the pool's own
    address. The result per pool is [token0, token1] (legitimate) or [] (not).

    Strategy:
    - pools already cached are reused as-is,
    - one batch of token0()/token1()/fee() for the rest,
    - pools with any failed getter are cached as [] right away,
    - one batch of factory getPool() for the remaining pools.
    """

    def __init__(
        self,
        *,
        cache: UniswapPoolsCache,
        reader: ContractReader,
        factory_address: str,
        max_retries: int = 3,
    ) -> None:
        self._cache = cache
        self._reader = reader
        self._factory_address = factory_address.lower()
        self._max_retries = max_retries

    async def resolve(self, pool_addresses: Iterable[str]) -> dict[str, list[str]]:
        pools_to_request: list[str] = []
        pools_cached: dict[str, list[str]] = {}

        for pool_address in dict.fromkeys(a.lower() for a in pool_addresses):
            value_from_cache = self._cache.get(pool_address)
            if value_from_cache is None:
                pools_to_request.append(pool_address)
            else:
                pools_cached[pool_address] = list(value_from_cache)

        if not pools_to_request:
            return pools_cached

        pools, incorrect = await self._request_tokens_and_fees(pools_to_request)
        for pool_address in incorrect:
            pools_cached[pool_address] = []

        if not pools:
            return pools_cached

        requests_get_pool = [
            ContractCallRequest(
                contract_address=self._factory_address,
                method_id=GET_POOL_METHOD_ID,
                args=(
                    _token_or_burn(pool.get("token0")),
                    _token_or_burn(pool.get("token1")),
                    _fee_or_zero(pool.get("fee")),
                ),
                key=pool_address,
            )
            for pool_address, pool in pools.items()
        ]

        responses_get_pool = await self._reader.read_contracts(
            requests_get_pool,
            UNISWAP_V3_FACTORY_ABI,
            max_retries=self._max_retries,
        )

        errors = [resp.error for resp in responses_get_pool if not resp.ok]
        if errors or len(requests_get_pool) != len(responses_get_pool):
            logger.error(
                "Cannot read Uniswap V3 Factory contract getPool public getter. Error messages: %s. Pools: %s",
                ", ".join(str(e) for e in errors),
                ", ".join(pools),
            )
            return pools_cached

        resolved: dict[str, list[str]] = {}
        for request, response in zip(requests_get_pool, responses_get_pool):
            pool_address = request.key
            token0, token1, _ = request.args

            if pool_address == str(response.value or "").lower():
                value = [token0, token1]
            else:
                value = []

            self._cache.put(pool_address, value)
            resolved[pool_address] = value

        return {**resolved, **pools_cached}

    async def _request_tokens_and_fees(
        self,
        pool_addresses: list[str],
    ) -> tuple[dict[str, dict[str, Any]], list[str]]:
        requests = [
            ContractCallRequest(contract_address=pool_address, method_id=method_id)
            for pool_address in pool_addresses
            for method_id in (TOKEN0_METHOD_ID, TOKEN1_METHOD_ID, FEE_METHOD_ID)
        ]

        responses = await self._reader.read_contracts(requests, UNISWAP_V3_POOL_ABI, max_retries=self._max_retries)

        if len(responses) != len(requests):
            logger.error(
                "Cannot read Uniswap V3 Pool contract public getters: expected %s responses, got %s. Pools: %s",
                len(requests),
                len(responses),
                ", ".join(pool_addresses),
            )
            return {}, []

        pools: dict[str, dict[str, Any]] = {}
        incorrect: list[str] = []

        for request, response in zip(requests, responses):
            pool_address = request.contract_address
            if not response.ok:
                if pool_address not in incorrect:
                    incorrect.append(pool_address)
                continue
            pool = pools.setdefault(pool_address, {"token0": "", "token1": "", "fee": ""})
            pool[METHOD_NAMES[request.method_id]] = response.value

        if incorrect:
            errors = [resp.error for resp in responses if not resp.ok]
            logger.warning(
                "Cannot read Uniswap V3 Pool contract public getters for some pools: token0(), token1(), fee(). "
                "Error messages: %s. Incorrect pools: %s - they will be marked as not legitimate.",
                ", ".join(str(e) for e in errors),
                ", ".join(incorrect),
            )
            for pool_address in incorrect:
                self._cache.put(pool_address, [])
                pools.pop(pool_address, None)

        return pools, incorrect


def _token_or_burn(value: Any) -> str:
    if isinstance(value, str) and is_address(value):
        return value.lower()
    return BURN_ADDRESS


def _fee_or_zero(value: Any) -> int:
    # an empty fee() response is read as the 0 fee tier
    if value in ("", None):
        return 0
    return int(value)
