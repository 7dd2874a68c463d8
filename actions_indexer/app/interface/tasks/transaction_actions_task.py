from __future__ import annotations

from actions_indexer.app.domain.ports.out import TransactionActionsIndexer
from actions_indexer.app.infrastructure.factories.transaction_actions_indexer_factory import (
    transaction_actions_indexer_factory,
)
from actions_indexer.app.application.services.index_transaction_actions_for_block_range import (
    BlockRange,
    index_transaction_actions_for_block_range,
    parse_protocols_to_rewrite,
)
from actions_indexer.app.infrastructure.db.engine import create_app_async_engine
from actions_indexer.app.application.services.block_bounds import resolve_block_bounds_from_table


async def index_transaction_actions_task(
    *,
    chain_id: int,
    from_block: int | str,
    to_block: int | str,
    protocols_to_rewrite: str | list[str] | None = None,
    backend: str = "sqlalchemy",
) -> None:
    """
    Derives aave_v3 / uniswap_v3 / golembase actions from staging.evm_event_logs
    into domain.transaction_actions for a given chain and block range.

    from_block / to_block can be:
    - int (a specific block number),
    - "earliest" (the first staged block for the chain),
    - "latest" (the last staged block for the chain).

    protocols_to_rewrite: None keeps existing actions, "" rewrites all protocols,
    "aave_v3,uniswap_v3" rewrites only those.
    """
    protocols = parse_protocols_to_rewrite(protocols_to_rewrite)

    engine = create_app_async_engine()
    try:
        resolved_from_block, resolved_to_block = await resolve_block_bounds_from_table(
            engine=engine,
            chain_id=chain_id,
            from_block=from_block,
            to_block=to_block,
        )

        indexer: TransactionActionsIndexer = transaction_actions_indexer_factory(
            backend=backend,
            engine=engine,
            chain_id=chain_id,
        )

        await index_transaction_actions_for_block_range(
            indexer=indexer,
            chain_id=chain_id,
            block_range=BlockRange(
                from_block=resolved_from_block,
                to_block=resolved_to_block,
            ),
            protocols_to_rewrite=protocols,
        )
    finally:
        await engine.dispose()
