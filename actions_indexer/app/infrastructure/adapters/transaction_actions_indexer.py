from __future__ import annotations

import logging
from typing import Final

from actions_indexer.app.application.services.actions.parser import TransactionActionsParser
from actions_indexer.app.domain.ports.out import EvmLogsSource, TransactionActionsRepository

logger = logging.getLogger(__name__)

_DEFAULT_BLOCK_BATCH_SIZE: Final[int] = 1_000


class TransactionActionsBlockRangeIndexer:
    """
    Implementation of TransactionActionsIndexer.

    For each block batch:
    - load raw logs from the log source,
    - parse them into transaction actions (rewriting when requested),
    - append the actions to the repository.
    """

    def __init__(
        self,
        *,
        logs_source: EvmLogsSource,
        parser: TransactionActionsParser,
        repository: TransactionActionsRepository,
        block_batch_size: int = _DEFAULT_BLOCK_BATCH_SIZE,
    ) -> None:
        if block_batch_size <= 0:
            raise ValueError("block_batch_size must be positive")
        self._logs_source = logs_source
        self._parser = parser
        self._repository = repository
        self._block_batch_size = block_batch_size

    async def index_actions_for_block_range(
        self,
        *,
        chain_id: int,
        from_block: int,
        to_block: int,
        protocols_to_rewrite: list[str] | None = None,
    ) -> None:
        if from_block < 0 or to_block < 0:
            raise ValueError("Block numbers must be non-negative")
        if from_block > to_block:
            raise ValueError("from_block must be <= to_block")

        logger.info(
            "Indexing transaction actions: chain_id=%s, blocks=[%s, %s], batch_size=%s, protocols_to_rewrite=%s",
            chain_id,
            from_block,
            to_block,
            self._block_batch_size,
            protocols_to_rewrite,
        )

        total = 0
        current = from_block
        while current <= to_block:
            batch_from = current
            batch_to = min(current + self._block_batch_size - 1, to_block)

            logs = await self._logs_source.fetch_logs(
                chain_id=chain_id,
                from_block=batch_from,
                to_block=batch_to,
            )

            actions = await self._parser.parse(
                logs,
                chain_id=chain_id,
                protocols_to_rewrite=protocols_to_rewrite,
            )
            await self._repository.insert_actions(actions)
            total += len(actions)

            logger.debug(
                "Batch indexed: chain_id=%s, blocks=[%s, %s], logs=%s, actions=%s",
                chain_id,
                batch_from,
                batch_to,
                len(logs),
                len(actions),
            )

            current = batch_to + 1

        logger.info(
            "Finished indexing transaction actions: chain_id=%s, blocks=[%s, %s], actions=%s",
            chain_id,
            from_block,
            to_block,
            total,
        )
