from __future__ import annotations

from typing import Callable, Dict

from sqlalchemy.ext.asyncio import AsyncEngine
from web3 import AsyncWeb3
from web3 import AsyncHTTPProvider

from actions_indexer.app.config import settings
from actions_indexer.app.application.services.actions.parser import create_transaction_actions_parser
from actions_indexer.app.domain.ports.out import TransactionActionsIndexer, TransactionActionsRepository
from actions_indexer.app.infrastructure.adapters.evm_logs_source import SqlAlchemyEvmLogsSource
from actions_indexer.app.infrastructure.adapters.memory_transaction_actions_repository import (
    InMemoryTransactionActionsRepository,
)
from actions_indexer.app.infrastructure.adapters.transaction_actions_indexer import (
    TransactionActionsBlockRangeIndexer,
)
from actions_indexer.app.infrastructure.adapters.transaction_actions_repository import (
    SqlAlchemyTransactionActionsRepository,
)
from actions_indexer.app.infrastructure.cache.memory_caches import (
    TOKEN_METADATA_CACHE,
    UNISWAP_POOLS_CACHE,
)
from actions_indexer.app.infrastructure.fetchers.contract_reader import Web3ContractReader

TransactionActionsIndexerFactory = Callable[[AsyncEngine, int], TransactionActionsIndexer]

_DEFAULT_BLOCK_BATCH_SIZE = 1_000


def _make_indexer(
    engine: AsyncEngine,
    *,
    chain_id: int,
    repository: TransactionActionsRepository,
    block_batch_size: int,
) -> TransactionActionsIndexer:
    """
    Wire dependencies shared by all backends:
    - AsyncWeb3 provider (per-chain RPC URL) behind the batched contract reader
    - process-wide token metadata / Uniswap pool caches
    - parser with aave_v3, uniswap_v3 and golembase handlers
    - staging.evm_event_logs as the log source
    """
    rpc_url = settings.rpc_url(chain_id)
    w3 = AsyncWeb3(
        AsyncHTTPProvider(
            rpc_url,
            request_kwargs={"timeout": 30},
        )
    )

    parser = create_transaction_actions_parser(
        config=settings.transaction_actions_config(),
        repository=repository,
        reader=Web3ContractReader(w3=w3),
        token_cache=TOKEN_METADATA_CACHE,
        pools_cache=UNISWAP_POOLS_CACHE,
    )

    return TransactionActionsBlockRangeIndexer(
        logs_source=SqlAlchemyEvmLogsSource(engine),
        parser=parser,
        repository=repository,
        block_batch_size=block_batch_size,
    )


_TRANSACTION_ACTIONS_INDEXER_REGISTRY: Dict[str, TransactionActionsIndexerFactory] = {
    "sqlalchemy": lambda engine, chain_id: _make_indexer(
        engine,
        chain_id=chain_id,
        repository=SqlAlchemyTransactionActionsRepository(engine, chain_id=chain_id),
        block_batch_size=_DEFAULT_BLOCK_BATCH_SIZE,
    ),
    # dry run: logs are read from staging, actions are kept in memory
    "memory": lambda engine, chain_id: _make_indexer(
        engine,
        chain_id=chain_id,
        repository=InMemoryTransactionActionsRepository(),
        block_batch_size=_DEFAULT_BLOCK_BATCH_SIZE,
    ),
}


def transaction_actions_indexer_factory(
    *,
    backend: str,
    engine: AsyncEngine,
    chain_id: int,
) -> TransactionActionsIndexer:
    """
    Create a transaction actions indexer for the given backend.

    Backends:
    - "sqlalchemy": actions are written to domain.transaction_actions,
    - "memory": actions are kept in process memory (dry run).
    """
    try:
        factory = _TRANSACTION_ACTIONS_INDEXER_REGISTRY[backend]
    except KeyError:
        raise ValueError(f"Unsupported transaction actions indexer backend: {backend!r}")

    return factory(engine, chain_id)
