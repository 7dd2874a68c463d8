from __future__ import annotations

import logging
from typing import Any, Collection

from actions_indexer.app.application.services.actions.amounts import fractional
from actions_indexer.app.application.services.actions.assembler import (
    build_action,
    checksum,
    clarify_token_symbol,
)
from actions_indexer.app.application.services.actions.base import decode_log
from actions_indexer.app.application.services.actions.log_router import LogFilterRule, sanitize_first_topic
from actions_indexer.app.application.services.actions.token_metadata import (
    TokenMetadataResolver,
    complete_subset,
)
from actions_indexer.app.application.services.actions.uniswap_pools import PoolLegitimacyResolver
from actions_indexer.app.domain.models import (
    BURN_ADDRESS,
    ActionProtocol,
    ActionType,
    RawLog,
    TokenMetadata,
    TransactionAction,
)
from actions_indexer.app.domain.ports.out import EvmEventDecoder
from actions_indexer.app.infrastructure.decoders.uniswap_v3.event_decoder import (
    TRANSFER_TYPE,
    UNISWAP_V3_POOL_EVENTS,
    UNISWAP_V3_TRANSFER_NFT_EVENT,
    UniswapV3EventDecoder,
)

logger = logging.getLogger(__name__)

POSITIONS_NFT_NAME = "Uniswap V3: Positions NFT"
POSITIONS_NFT_SYMBOL = "UNI-V3-POS"


class UniswapV3ActionsHandler:
    """
    Uniswap V3 actions: mint, burn, collect, swap and mint_nft.

    Pool events are handled only for pools confirmed by the factory
    (see PoolLegitimacyResolver). Position NFTs minted in one transaction are
    aggregated into a single mint_nft action per recipient.
    """

    protocol = ActionProtocol.UNISWAP_V3

    def __init__(
        self,
        *,
        nft_position_manager: str | None,
        chain_ids: Collection[int],
        pools: PoolLegitimacyResolver | None,
        tokens: TokenMetadataResolver,
        ether_chain_ids: Collection[int] = (),
        decoder: EvmEventDecoder | None = None,
    ) -> None:
        self._nft_position_manager = nft_position_manager.lower() if nft_position_manager else None
        self._chain_ids = chain_ids
        self._pools = pools
        self._tokens = tokens
        self._ether_chain_ids = ether_chain_ids
        self._decoder = decoder or UniswapV3EventDecoder()

    def is_eligible(self, chain_id: int) -> bool:
        return chain_id in self._chain_ids and self._nft_position_manager is not None and self._pools is not None

    def filter_rules(self) -> list[LogFilterRule]:
        return [
            LogFilterRule(signatures=UNISWAP_V3_POOL_EVENTS),
            LogFilterRule(
                signatures=frozenset({UNISWAP_V3_TRANSFER_NFT_EVENT}),
                address=self._nft_position_manager,
            ),
        ]

    async def handle(
        self,
        logs_grouped: dict[str, list[RawLog]],
        *,
        chain_id: int,
    ) -> list[TransactionAction]:
        legitimate = await self._legitimate_pools(logs_grouped)
        # tokens of all legitimate pools are resolved in one pass
        token_data = await self._tokens.lookup(address for tokens in legitimate.values() for address in tokens)

        actions: list[TransactionAction] = []
        for transaction_hash, transaction_logs in logs_grouped.items():
            actions.extend(self._mint_nft_actions(transaction_hash, transaction_logs))

            for log in transaction_logs:
                actions.extend(self._handle_action(log, legitimate, token_data, chain_id))

        return actions

    async def _legitimate_pools(self, logs_grouped: dict[str, list[RawLog]]) -> dict[str, list[str]]:
        pool_addresses = [
            log.address_hash
            for transaction_logs in logs_grouped.values()
            for log in transaction_logs
            if sanitize_first_topic(log.first_topic) != UNISWAP_V3_TRANSFER_NFT_EVENT
        ]
        if not pool_addresses or self._pools is None:
            return {}
        return await self._pools.resolve(pool_addresses)

    def _mint_nft_actions(self, transaction_hash: str, transaction_logs: list[RawLog]) -> list[TransactionAction]:
        if not transaction_logs:
            return []

        first_log = transaction_logs[0]
        minted: dict[str, dict[str, Any]] = {}

        for log in transaction_logs:
            if sanitize_first_topic(log.first_topic) != UNISWAP_V3_TRANSFER_NFT_EVENT:
                continue

            decoded = decode_log(self._decoder, log)
            if not decoded or decoded["type"] != TRANSFER_TYPE or decoded["from"] != BURN_ADDRESS:
                continue

            recipient = minted.setdefault(decoded["to"], {"ids": [], "log_index": log.index})
            recipient["ids"].append(str(decoded["token_id"]))

        return [
            build_action(
                transaction_hash=transaction_hash,
                protocol=self.protocol,
                action_type=ActionType.MINT_NFT,
                data={
                    "name": POSITIONS_NFT_NAME,
                    "symbol": POSITIONS_NFT_SYMBOL,
                    "address": self._nft_position_manager,
                    "to": checksum(to),
                    "ids": recipient["ids"],
                    "block_number": first_log.block_number,
                },
                log_index=recipient["log_index"],
            )
            for to, recipient in minted.items()
        ]

    def _handle_action(
        self,
        log: RawLog,
        legitimate: dict[str, list[str]],
        token_data: dict[str, TokenMetadata],
        chain_id: int,
    ) -> list[TransactionAction]:
        if sanitize_first_topic(log.first_topic) == UNISWAP_V3_TRANSFER_NFT_EVENT:
            return []

        token_addresses = legitimate.get((log.address_hash or "").lower())
        if not token_addresses:
            return []

        decoded = decode_log(self._decoder, log)
        if not decoded:
            return []

        tokens = complete_subset(token_data, token_addresses)
        if tokens is None:
            return []

        action_type: ActionType = decoded["type"]
        address0, address1 = token_addresses
        token0, token1 = tokens[address0], tokens[address1]

        slots = [
            {
                "raw": decoded["amount0"],
                "decimals": token0.decimals,
                "symbol": clarify_token_symbol(token0.symbol, chain_id, self._ether_chain_ids),
                "address": address0,
            },
            {
                "raw": decoded["amount1"],
                "decimals": token1.decimals,
                "symbol": clarify_token_symbol(token1.symbol, chain_id, self._ether_chain_ids),
                "address": address1,
            },
        ]

        if action_type == ActionType.SWAP:
            in_slot = _swap_in_slot(decoded["amount0"], decoded["amount1"])
            if in_slot is None:
                logger.error(
                    "TransactionActions: Invalid Swap event in transaction %s. Log index: %s. amount0 = %s, amount1 = %s",
                    log.transaction_hash,
                    log.index,
                    fractional(decoded["amount0"], token0.decimals),
                    fractional(decoded["amount1"], token1.decimals),
                )
                return []
            slots = [slots[in_slot], slots[1 - in_slot]]

        first, second = slots
        data = {
            "amount0": fractional(abs(first["raw"]), first["decimals"]),
            "symbol0": first["symbol"],
            "address0": checksum(first["address"]),
            "amount1": fractional(abs(second["raw"]), second["decimals"]),
            "symbol1": second["symbol"],
            "address1": checksum(second["address"]),
            "block_number": log.block_number,
        }

        return [
            build_action(
                transaction_hash=log.transaction_hash,
                protocol=self.protocol,
                action_type=action_type,
                data=data,
                log_index=log.index,
            )
        ]


def _swap_in_slot(amount0: int, amount1: int) -> int | None:
    """
    Index (0 or 1) of the token flowing into the pool, None for an invalid sign combination.

    Exactly one amount is negative (the pool's outflow), or one amount is zero
    and the other non-negative.
    """
    if amount0 < 0 <= amount1:
        return 1
    if amount1 < 0 <= amount0:
        return 0
    if amount1 == 0 and amount0 >= 0:
        return 0
    if amount0 == 0 and amount1 >= 0:
        return 1
    return None
