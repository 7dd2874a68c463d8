from __future__ import annotations

import logging
from typing import Iterable, Sequence

from actions_indexer.app.application.services.actions.aave_v3 import AaveV3ActionsHandler
from actions_indexer.app.application.services.actions.base import ProtocolActionsHandler
from actions_indexer.app.application.services.actions.golembase import GolemBaseActionsHandler
from actions_indexer.app.application.services.actions.log_router import filter_logs, group_logs_by_transaction
from actions_indexer.app.application.services.actions.rewriter import clear_actions
from actions_indexer.app.application.services.actions.token_metadata import TokenMetadataResolver
from actions_indexer.app.application.services.actions.uniswap_pools import PoolLegitimacyResolver
from actions_indexer.app.application.services.actions.uniswap_v3 import UniswapV3ActionsHandler
from actions_indexer.app.domain.models import (
    ActionProtocol,
    RawLog,
    TransactionAction,
    TransactionActionsConfig,
)
from actions_indexer.app.domain.ports.out import (
    ContractReader,
    TokenMetadataCache,
    TransactionActionsRepository,
    UniswapPoolsCache,
)

logger = logging.getLogger(__name__)


class TransactionActionsParser:
    """
    Turns a batch of raw logs into transaction actions.

    Flow:
    - optional rewrite: delete stored actions of the batch's transactions
      (scoped to protocols_to_rewrite when non-empty),
    - per protocol handler (in registration order): eligibility check,
      filter + group logs by transaction, decode into actions.

    protocols_to_rewrite:
      None            -> append mode, nothing is deleted, all protocols parsed
      []              -> delete actions of every protocol, all protocols parsed
      ["uniswap_v3"]  -> delete and re-parse only the listed protocols
    """

    def __init__(
        self,
        *,
        config: TransactionActionsConfig,
        repository: TransactionActionsRepository,
        handlers: Sequence[ProtocolActionsHandler],
    ) -> None:
        self._config = config
        self._repository = repository
        self._handlers = list(handlers)

    async def parse(
        self,
        logs: Iterable[RawLog],
        *,
        chain_id: int,
        protocols_to_rewrite: Sequence[str] | None = None,
    ) -> list[TransactionAction]:
        if not self._config.enabled:
            return []

        logs = list(logs)

        if protocols_to_rewrite is not None:
            await clear_actions(
                repository=self._repository,
                logs=logs,
                protocols=protocols_to_rewrite,
            )

        actions: list[TransactionAction] = []

        for handler in self._handlers:
            if not _is_selected(handler.protocol, protocols_to_rewrite):
                continue
            if not handler.is_eligible(chain_id):
                logger.debug("Protocol %s is not enabled for chain_id=%s", handler.protocol.value, chain_id)
                continue

            logs_grouped = group_logs_by_transaction(filter_logs(logs, handler.filter_rules()))
            if not logs_grouped:
                continue

            protocol_actions = await handler.handle(logs_grouped, chain_id=chain_id)

            logger.debug(
                "Parsed %s actions for protocol %s from %s transactions",
                len(protocol_actions),
                handler.protocol.value,
                len(logs_grouped),
            )
            actions.extend(protocol_actions)

        return actions


def _is_selected(protocol: ActionProtocol, protocols_to_rewrite: Sequence[str] | None) -> bool:
    return not protocols_to_rewrite or protocol.value in protocols_to_rewrite


def create_transaction_actions_parser(
    *,
    config: TransactionActionsConfig,
    repository: TransactionActionsRepository,
    reader: ContractReader,
    token_cache: TokenMetadataCache,
    pools_cache: UniswapPoolsCache,
) -> TransactionActionsParser:
    """
    Wire the protocol handlers (aave_v3, uniswap_v3, golembase) around shared resolvers.
    """
    tokens = TokenMetadataResolver(
        cache=token_cache,
        repository=repository,
        reader=reader,
        max_retries=config.max_retries,
    )

    pools = None
    if config.uniswap_v3_factory:
        pools = PoolLegitimacyResolver(
            cache=pools_cache,
            reader=reader,
            factory_address=config.uniswap_v3_factory,
            max_retries=config.max_retries,
        )

    handlers: list[ProtocolActionsHandler] = [
        AaveV3ActionsHandler(
            pool_address=config.aave_v3_pool,
            tokens=tokens,
            ether_chain_ids=config.ether_symbol_chain_ids,
        ),
        UniswapV3ActionsHandler(
            nft_position_manager=config.uniswap_v3_nft_position_manager,
            chain_ids=config.uniswap_v3_chain_ids,
            pools=pools,
            tokens=tokens,
            ether_chain_ids=config.ether_symbol_chain_ids,
        ),
        GolemBaseActionsHandler(chain_id=config.golembase_chain_id),
    ]

    return TransactionActionsParser(config=config, repository=repository, handlers=handlers)
