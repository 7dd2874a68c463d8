from __future__ import annotations

from typing import Any, Collection

from eth_utils import to_checksum_address

from actions_indexer.app.domain.models import ActionProtocol, ActionType, TransactionAction


def build_action(
    *,
    transaction_hash: str,
    protocol: ActionProtocol,
    action_type: ActionType,
    data: dict[str, Any],
    log_index: int,
) -> TransactionAction:
    return TransactionAction(
        hash=transaction_hash,
        protocol=protocol,
        type=action_type,
        data=data,
        log_index=log_index,
    )


def checksum(address: str) -> str:
    return to_checksum_address(address)


def clarify_token_symbol(symbol: str, chain_id: int, ether_chain_ids: Collection[int]) -> str:
    """Display WETH as Ether on chains where that is the native currency name."""
    if symbol == "WETH" and chain_id in ether_chain_ids:
        return "Ether"
    return symbol
