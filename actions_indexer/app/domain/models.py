from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

BURN_ADDRESS = "0x0000000000000000000000000000000000000000"

# max number of token decimals
DECIMALS_MAX = 0xFF


class ActionProtocol(str, Enum):
    AAVE_V3 = "aave_v3"
    UNISWAP_V3 = "uniswap_v3"
    GOLEMBASE = "golembase"


class ActionType(str, Enum):
    # aave_v3
    BORROW = "borrow"
    SUPPLY = "supply"
    WITHDRAW = "withdraw"
    REPAY = "repay"
    FLASH_LOAN = "flash_loan"
    LIQUIDATION_CALL = "liquidation_call"
    ENABLE_COLLATERAL = "enable_collateral"
    DISABLE_COLLATERAL = "disable_collateral"

    # uniswap_v3
    MINT = "mint"
    BURN = "burn"
    COLLECT = "collect"
    SWAP = "swap"
    MINT_NFT = "mint_nft"

    # golembase (stored with the protocol prefix)
    ENTITY_CREATED = "golembase_entity_created"
    ENTITY_UPDATED = "golembase_entity_updated"
    ENTITY_DELETED = "golembase_entity_deleted"
    ENTITY_TTL_EXTENDED = "golembase_entity_ttl_extended"


@dataclass(frozen=True)
class RawLog:
    """
    One EVM event log as supplied by the log source.

    Topics and data are 0x-prefixed hex strings; a missing topic is None.
    Logs of a transaction are expected in on-chain emission order.
    """

    transaction_hash: str
    index: int
    address_hash: str
    first_topic: str | None
    second_topic: str | None
    third_topic: str | None
    fourth_topic: str | None
    data: str
    block_number: int


@dataclass(frozen=True)
class TransactionAction:
    """
    Normalized protocol action derived from one log (or one group of NFT mint logs).

    Identity: (hash, log_index).
    """

    hash: str
    protocol: ActionProtocol
    type: ActionType
    data: dict[str, Any]
    log_index: int


@dataclass(frozen=True)
class TokenMetadata:
    symbol: str | None = None
    decimals: int | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.symbol) and self.decimals is not None and 0 <= self.decimals <= DECIMALS_MAX


@dataclass(frozen=True)
class ContractCallRequest:
    """
    One read-only contract call inside a batch.

    method_id is the 4-byte selector as hex without 0x prefix. `key` is an
    opaque correlation value carried back to the caller untouched.
    """

    contract_address: str
    method_id: str
    args: tuple[Any, ...] = ()
    key: Any = None


@dataclass(frozen=True)
class ContractCallResponse:
    ok: bool
    value: Any = None
    error: str | None = None


@dataclass(frozen=True)
class TransactionActionsConfig:
    """
    Static configuration for the transaction actions parser.

    Built from Settings by the factories; the core never reads settings directly.
    """

    enabled: bool = True
    aave_v3_pool: str | None = None
    uniswap_v3_factory: str | None = None
    uniswap_v3_nft_position_manager: str | None = None
    uniswap_v3_chain_ids: frozenset[int] = field(
        default_factory=lambda: frozenset({1, 5, 10, 137, 8453, 84531})
    )
    ether_symbol_chain_ids: frozenset[int] = field(default_factory=lambda: frozenset({1, 5, 10}))
    golembase_chain_id: int = 1337
    max_retries: int = 3
