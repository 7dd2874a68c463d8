from __future__ import annotations

from typing import Any

from actions_indexer.app.domain.models import ActionType
from actions_indexer.app.domain.ports.out import EvmEventDecoder
from actions_indexer.app.infrastructure.decoders.evm_abi import (
    decode_data,
    topic_as_address,
    topic_as_uint256,
)

# Transfer(address indexed from, address indexed to, uint256 indexed tokenId)
UNISWAP_V3_TRANSFER_NFT_EVENT = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"

# Mint(address sender, address indexed owner, int24 indexed tickLower, int24 indexed tickUpper,
#      uint128 amount, uint256 amount0, uint256 amount1)
UNISWAP_V3_MINT_EVENT = "0x7a53080ba414158be7ec69b987b5fb7d07dee101fe85488f0853ae16239d0bde"

# Burn(address indexed owner, int24 indexed tickLower, int24 indexed tickUpper, uint128 amount, uint256 amount0, uint256 amount1)
UNISWAP_V3_BURN_EVENT = "0x0c396cd989a39f4459b5fa1aed6a9a8dcdbc45908acfd67e028cd568da98982c"

# Collect(address indexed owner, address recipient, int24 indexed tickLower, int24 indexed tickUpper,
#         uint128 amount0, uint128 amount1)
UNISWAP_V3_COLLECT_EVENT = "0x70935338e69775456a85ddef226c395fb668b63fa0115f5f20610b388e6ca9c0"

# Swap(address indexed sender, address indexed recipient, int256 amount0, int256 amount1,
#      uint160 sqrtPriceX96, uint128 liquidity, int24 tick)
UNISWAP_V3_SWAP_EVENT = "0xc42079f94a6350d7e6235f29174924f928cc2ac818eb64fed8004e115fbcca67"

TRANSFER_TYPE = "transfer"

_POOL_EVENTS: dict[str, tuple[ActionType, tuple[str, ...], tuple[str, ...]]] = {
    UNISWAP_V3_MINT_EVENT: (
        ActionType.MINT,
        ("address", "uint128", "uint256", "uint256"),
        ("sender", "amount", "amount0", "amount1"),
    ),
    UNISWAP_V3_BURN_EVENT: (
        ActionType.BURN,
        ("uint128", "uint256", "uint256"),
        ("amount", "amount0", "amount1"),
    ),
    UNISWAP_V3_COLLECT_EVENT: (
        ActionType.COLLECT,
        ("address", "uint128", "uint128"),
        ("recipient", "amount0", "amount1"),
    ),
    UNISWAP_V3_SWAP_EVENT: (
        ActionType.SWAP,
        ("int256", "int256", "uint160", "uint128", "int24"),
        ("amount0", "amount1", "sqrt_price_x96", "liquidity", "tick"),
    ),
}

UNISWAP_V3_POOL_EVENTS: frozenset[str] = frozenset(_POOL_EVENTS)


class UniswapV3EventDecoder(EvmEventDecoder):
    """
    Decoder for Uniswap V3 pool events and position-manager NFT transfers.

    Pool events (Mint/Burn/Collect/Swap) -> {"type", "amount0", "amount1", ...}.
    Swap amounts keep their int256 sign.

    NFT Transfer -> {"type": "transfer", "from", "to", "token_id"}; the token id
    is the fourth topic.
    """

    def decode(
        self,
        *,
        topic0: str | None,
        topic1: str | None,
        topic2: str | None,
        topic3: str | None,
        data: str,
    ) -> dict[str, Any] | None:
        if topic0 is None:
            return None

        topic0 = topic0.lower()

        if topic0 == UNISWAP_V3_TRANSFER_NFT_EVENT:
            if topic3 is None:
                return None
            return {
                "type": TRANSFER_TYPE,
                "from": topic_as_address(topic1),
                "to": topic_as_address(topic2),
                "token_id": topic_as_uint256(topic3),
            }

        event = _POOL_EVENTS.get(topic0)
        if event is None:
            return None

        action_type, data_types, data_names = event
        out: dict[str, Any] = {"type": action_type}
        out.update(decode_data(data, data_types, data_names))
        return out
