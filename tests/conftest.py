"""
Shared builders and fakes for the transaction actions tests.

Logs are built with real ABI encoding (eth_abi.encode) so decoders are
exercised end to end; contract reads go through FakeContractReader.
"""

import os

# Settings() is instantiated at import of actions_indexer.app.config
os.environ.setdefault("PROJECT_NAME", "transaction-actions-indexer-tests")
os.environ.setdefault("POSTGRES_USER", "postgres")
os.environ.setdefault("POSTGRES_PASSWORD", "postgres")
os.environ.setdefault("POSTGRES_SERVER", "localhost")
os.environ.setdefault("POSTGRES_PORT", "5432")
os.environ.setdefault("POSTGRES_DB", "indexer")

from typing import Any, Sequence  # noqa: E402

import pytest  # noqa: E402
from eth_abi import encode  # noqa: E402

from actions_indexer.app.application.services.actions.contracts import (  # noqa: E402
    DECIMALS_METHOD_ID,
    FEE_METHOD_ID,
    GET_POOL_METHOD_ID,
    SYMBOL_METHOD_ID,
    TOKEN0_METHOD_ID,
    TOKEN1_METHOD_ID,
)
from actions_indexer.app.domain.models import (  # noqa: E402
    ContractCallRequest,
    ContractCallResponse,
    RawLog,
    TokenMetadata,
)
from actions_indexer.app.infrastructure.adapters.memory_transaction_actions_repository import (  # noqa: E402
    InMemoryTransactionActionsRepository,
)
from actions_indexer.app.infrastructure.cache.memory_caches import (  # noqa: E402
    InMemoryTokenMetadataCache,
    InMemoryUniswapPoolsCache,
)

# ============================================================
# ADDRESSES
# ============================================================

AAVE_POOL = "0x87870bca3f3fd6335c3f4ce8392d69350b4fa4e2"
NFT_MANAGER = "0xc36442b4a4522e871399cd717abdd847ab11fe88"
UNISWAP_FACTORY = "0x1f98431c8ad98523631ae4a59f267346ea31f984"

USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
WETH = "0xc02aaa39c3b83c0a4ce2fe7d8ec1ad9c7de27c27"
DAI = "0x6b175474e89094c44da98b954eedeac495271d0f"

POOL = "0x88e6a0c2ddd26feeb64f039a2c41296fcb3f5640"
FAKE_POOL = "0x" + "ee" * 20

USER = "0x" + "ab" * 20
OTHER_USER = "0x" + "cd" * 20
ZERO = "0x" + "00" * 20


def tx_hash(n: int) -> str:
    return "0x" + format(n, "064x")


def topic_address(address: str) -> str:
    return "0x" + "00" * 12 + address[2:].lower()


def topic_uint(value: int) -> str:
    return "0x" + format(value, "064x")


def abi_data(types: Sequence[str], values: Sequence[Any]) -> str:
    return "0x" + encode(list(types), list(values)).hex()


def make_log(
    *,
    topic0: str | None,
    topic1: str | None = None,
    topic2: str | None = None,
    topic3: str | None = None,
    data: str = "0x",
    address: str = AAVE_POOL,
    transaction_hash: str | None = None,
    index: int = 0,
    block_number: int = 100,
) -> RawLog:
    return RawLog(
        transaction_hash=transaction_hash or tx_hash(1),
        index=index,
        address_hash=address,
        first_topic=topic0,
        second_topic=topic1,
        third_topic=topic2,
        fourth_topic=topic3,
        data=data,
        block_number=block_number,
    )


# ============================================================
# FAKES
# ============================================================

class FakeContractReader:
    """
    ContractReader answering from a {(address, method_id): value} table.

    An Exception value (or a missing entry) yields ok=False. Every call is
    recorded in `calls` as the list of requests it received.
    """

    def __init__(self, answers: dict[tuple[str, str], Any] | None = None) -> None:
        self.answers = {(a.lower(), m): v for (a, m), v in (answers or {}).items()}
        self.calls: list[list[ContractCallRequest]] = []
        self.truncate_by = 0

    async def read_contracts(
        self,
        requests: Sequence[ContractCallRequest],
        abi: list[dict[str, Any]],
        *,
        max_retries: int,
    ) -> list[ContractCallResponse]:
        self.calls.append(list(requests))

        responses: list[ContractCallResponse] = []
        for request in requests:
            if request.method_id == GET_POOL_METHOD_ID:
                lookup = (request.contract_address.lower(), GET_POOL_METHOD_ID + ":" + ",".join(str(a) for a in request.args))
            else:
                lookup = (request.contract_address.lower(), request.method_id)

            value = self.answers.get(lookup, KeyError(f"no answer for {lookup}"))
            if isinstance(value, Exception):
                responses.append(ContractCallResponse(ok=False, error=str(value)))
            else:
                responses.append(ContractCallResponse(ok=True, value=value))

        if self.truncate_by:
            return responses[: -self.truncate_by]
        return responses

    def requested_methods(self) -> list[tuple[str, str]]:
        return [(r.contract_address, r.method_id) for batch in self.calls for r in batch]


def erc20_answers(address: str, symbol: Any, decimals: Any) -> dict[tuple[str, str], Any]:
    return {
        (address, SYMBOL_METHOD_ID): symbol,
        (address, DECIMALS_METHOD_ID): decimals,
    }


def pool_answers(
    pool: str,
    token0: str,
    token1: str,
    fee: int,
    *,
    factory_returns: str | None = None,
    factory: str = UNISWAP_FACTORY,
) -> dict[tuple[str, str], Any]:
    """Getter answers for a pool plus the factory getPool answer for its (token0, token1, fee)."""
    get_pool_key = GET_POOL_METHOD_ID + ":" + ",".join([token0.lower(), token1.lower(), str(fee)])
    return {
        (pool, TOKEN0_METHOD_ID): token0,
        (pool, TOKEN1_METHOD_ID): token1,
        (pool, FEE_METHOD_ID): fee,
        (factory, get_pool_key): pool if factory_returns is None else factory_returns,
    }


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def token_cache() -> InMemoryTokenMetadataCache:
    return InMemoryTokenMetadataCache()


@pytest.fixture
def pools_cache() -> InMemoryUniswapPoolsCache:
    return InMemoryUniswapPoolsCache()


@pytest.fixture
def repository() -> InMemoryTransactionActionsRepository:
    return InMemoryTransactionActionsRepository(
        tokens={
            USDC: TokenMetadata(symbol="USDC", decimals=6),
            WETH: TokenMetadata(symbol="WETH", decimals=18),
            DAI: TokenMetadata(symbol="DAI", decimals=18),
        }
    )


@pytest.fixture
def reader() -> FakeContractReader:
    return FakeContractReader()
