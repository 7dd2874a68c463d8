from __future__ import annotations

from typing import Any, Collection

from actions_indexer.app.application.services.actions.amounts import fractional
from actions_indexer.app.application.services.actions.assembler import (
    build_action,
    checksum,
    clarify_token_symbol,
)
from actions_indexer.app.application.services.actions.base import decode_log
from actions_indexer.app.application.services.actions.log_router import LogFilterRule
from actions_indexer.app.application.services.actions.token_metadata import (
    TokenMetadataResolver,
    complete_subset,
)
from actions_indexer.app.domain.models import (
    ActionProtocol,
    ActionType,
    RawLog,
    TokenMetadata,
    TransactionAction,
)
from actions_indexer.app.domain.ports.out import EvmEventDecoder
from actions_indexer.app.infrastructure.decoders.aave_v3.event_decoder import (
    AAVE_V3_EVENTS,
    AaveV3EventDecoder,
)

_COLLATERAL_TYPES = (ActionType.ENABLE_COLLATERAL, ActionType.DISABLE_COLLATERAL)


class AaveV3ActionsHandler:
    """
    Aave V3 lending actions: borrow, supply, withdraw, repay, flash_loan,
    liquidation_call, enable_collateral, disable_collateral.

    Only logs emitted by the configured Aave V3 Pool contract are considered.
    A log whose reserve token metadata cannot be resolved yields no action.
    """

    protocol = ActionProtocol.AAVE_V3

    def __init__(
        self,
        *,
        pool_address: str | None,
        tokens: TokenMetadataResolver,
        ether_chain_ids: Collection[int] = (),
        decoder: EvmEventDecoder | None = None,
    ) -> None:
        self._pool_address = pool_address.lower() if pool_address else None
        self._tokens = tokens
        self._ether_chain_ids = ether_chain_ids
        self._decoder = decoder or AaveV3EventDecoder()

    def is_eligible(self, chain_id: int) -> bool:
        _ = chain_id  # gated by pool address only
        return self._pool_address is not None

    def filter_rules(self) -> list[LogFilterRule]:
        return [LogFilterRule(signatures=AAVE_V3_EVENTS, address=self._pool_address)]

    async def handle(
        self,
        logs_grouped: dict[str, list[RawLog]],
        *,
        chain_id: int,
    ) -> list[TransactionAction]:
        decoded_logs: list[tuple[RawLog, dict[str, Any]]] = []
        for transaction_logs in logs_grouped.values():
            for log in transaction_logs:
                decoded = decode_log(self._decoder, log)
                if decoded:
                    decoded_logs.append((log, decoded))

        # reserve tokens of the whole batch are resolved in one pass
        token_data = await self._tokens.lookup(
            address for _, decoded in decoded_logs for address in _token_addresses(decoded)
        )

        actions: list[TransactionAction] = []
        for log, decoded in decoded_logs:
            actions.extend(self._handle_action(log, decoded, token_data, chain_id))
        return actions

    def _handle_action(
        self,
        log: RawLog,
        decoded: dict[str, Any],
        token_data: dict[str, TokenMetadata],
        chain_id: int,
    ) -> list[TransactionAction]:
        tokens = complete_subset(token_data, _token_addresses(decoded))
        if tokens is None:
            return []

        action_type: ActionType = decoded["type"]

        if action_type == ActionType.LIQUIDATION_CALL:
            data = self._liquidation_call_data(decoded, tokens, chain_id)
        elif action_type in _COLLATERAL_TYPES:
            data = self._collateral_data(decoded, tokens, chain_id)
        else:
            data = self._amount_data(decoded, tokens, chain_id)

        data["block_number"] = log.block_number

        return [
            build_action(
                transaction_hash=log.transaction_hash,
                protocol=self.protocol,
                action_type=action_type,
                data=data,
                log_index=log.index,
            )
        ]

    def _amount_data(
        self,
        decoded: dict[str, Any],
        tokens: dict[str, TokenMetadata],
        chain_id: int,
    ) -> dict[str, Any]:
        address = decoded["asset"]
        token = tokens[address]
        return {
            "amount": fractional(decoded["amount"], token.decimals),
            "symbol": clarify_token_symbol(token.symbol, chain_id, self._ether_chain_ids),
            "address": checksum(address),
        }

    def _collateral_data(
        self,
        decoded: dict[str, Any],
        tokens: dict[str, TokenMetadata],
        chain_id: int,
    ) -> dict[str, Any]:
        address = decoded["asset"]
        return {
            "symbol": clarify_token_symbol(tokens[address].symbol, chain_id, self._ether_chain_ids),
            "address": checksum(address),
        }

    def _liquidation_call_data(
        self,
        decoded: dict[str, Any],
        tokens: dict[str, TokenMetadata],
        chain_id: int,
    ) -> dict[str, Any]:
        debt_address = decoded["debt_asset"]
        collateral_address = decoded["collateral_asset"]

        debt = tokens[debt_address]
        collateral = tokens[collateral_address]

        return {
            "debt_amount": fractional(decoded["debt_amount"], debt.decimals),
            "debt_symbol": clarify_token_symbol(debt.symbol, chain_id, self._ether_chain_ids),
            "debt_address": checksum(debt_address),
            "collateral_amount": fractional(decoded["collateral_amount"], collateral.decimals),
            "collateral_symbol": clarify_token_symbol(collateral.symbol, chain_id, self._ether_chain_ids),
            "collateral_address": checksum(collateral_address),
        }


def _token_addresses(decoded: dict[str, Any]) -> list[str]:
    if decoded["type"] == ActionType.LIQUIDATION_CALL:
        return [decoded["debt_asset"], decoded["collateral_asset"]]
    return [decoded["asset"]]
