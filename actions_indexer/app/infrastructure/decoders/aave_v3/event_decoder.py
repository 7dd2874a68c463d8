from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from actions_indexer.app.domain.models import ActionType
from actions_indexer.app.domain.ports.out import EvmEventDecoder
from actions_indexer.app.infrastructure.decoders.evm_abi import decode_data, topic_as_address

# Borrow(address indexed reserve, address user, address indexed onBehalfOf, uint256 amount,
#        uint8 interestRateMode, uint256 borrowRate, uint16 indexed referralCode)
AAVE_V3_BORROW_EVENT = "0xb3d084820fb1a9decffb176436bd02558d15fac9b0ddfed8c465bc7359d7dce0"

# Supply(address indexed reserve, address user, address indexed onBehalfOf, uint256 amount, uint16 indexed referralCode)
AAVE_V3_SUPPLY_EVENT = "0x2b627736bca15cd5381dcf80b0bf11fd197d01a037c52b927a881a10fb73ba61"

# Withdraw(address indexed reserve, address indexed user, address indexed to, uint256 amount)
AAVE_V3_WITHDRAW_EVENT = "0x3115d1449a7b732c986cba18244e897a450f61e1bb8d589cd2e69e6c8924f9f7"

# Repay(address indexed reserve, address indexed user, address indexed repayer, uint256 amount, bool useATokens)
AAVE_V3_REPAY_EVENT = "0xa534c8dbe71f871f9f3530e97a74601fea17b426cae02e1c5aee42c96c784051"

# FlashLoan(address indexed target, address initiator, address indexed asset, uint256 amount,
#           uint8 interestRateMode, uint256 premium, uint16 indexed referralCode)
AAVE_V3_FLASH_LOAN_EVENT = "0xefefaba5e921573100900a3ad9cf29f222d995fb3b6045797eaea7521bd8d6f0"

# ReserveUsedAsCollateralEnabled(address indexed reserve, address indexed user)
AAVE_V3_ENABLE_COLLATERAL_EVENT = "0x00058a56ea94653cdf4f152d227ace22d4c00ad99e2a43f58cb7d9e3feb295f2"

# ReserveUsedAsCollateralDisabled(address indexed reserve, address indexed user)
AAVE_V3_DISABLE_COLLATERAL_EVENT = "0x44c58d81365b66dd4b1a7f36c25aa97b8c71c361ee4937adc1a00000227db5dd"

# LiquidationCall(address indexed collateralAsset, address indexed debtAsset, address indexed user,
#                 uint256 debtToCover, uint256 liquidatedCollateralAmount, address liquidator, bool receiveAToken)
AAVE_V3_LIQUIDATION_CALL_EVENT = "0xe413a321e8681d831f4dbccbca790d2952b56f977908e45be37335533e005286"


@dataclass(frozen=True)
class _AaveEvent:
    action_type: ActionType
    data_types: tuple[str, ...]
    data_names: tuple[str, ...]
    # which topic carries the reserve asset: 1 = second topic, 2 = third topic
    asset_topic: int = 1


_EVENTS: dict[str, _AaveEvent] = {
    AAVE_V3_BORROW_EVENT: _AaveEvent(
        ActionType.BORROW,
        ("address", "uint256", "uint8", "uint256"),
        ("user", "amount", "interest_rate_mode", "borrow_rate"),
    ),
    AAVE_V3_SUPPLY_EVENT: _AaveEvent(
        ActionType.SUPPLY,
        ("address", "uint256"),
        ("user", "amount"),
    ),
    AAVE_V3_WITHDRAW_EVENT: _AaveEvent(
        ActionType.WITHDRAW,
        ("uint256",),
        ("amount",),
    ),
    AAVE_V3_REPAY_EVENT: _AaveEvent(
        ActionType.REPAY,
        ("uint256", "bool"),
        ("amount", "use_a_tokens"),
    ),
    AAVE_V3_FLASH_LOAN_EVENT: _AaveEvent(
        ActionType.FLASH_LOAN,
        ("address", "uint256", "uint8", "uint256"),
        ("initiator", "amount", "interest_rate_mode", "premium"),
        asset_topic=2,
    ),
    AAVE_V3_ENABLE_COLLATERAL_EVENT: _AaveEvent(ActionType.ENABLE_COLLATERAL, (), ()),
    AAVE_V3_DISABLE_COLLATERAL_EVENT: _AaveEvent(ActionType.DISABLE_COLLATERAL, (), ()),
    AAVE_V3_LIQUIDATION_CALL_EVENT: _AaveEvent(
        ActionType.LIQUIDATION_CALL,
        ("uint256", "uint256", "address", "bool"),
        ("debt_amount", "collateral_amount", "liquidator", "receive_a_token"),
    ),
}

AAVE_V3_EVENTS: frozenset[str] = frozenset(_EVENTS)


class AaveV3EventDecoder(EvmEventDecoder):
    """
    Decoder for Aave V3 Pool events.

    Output:
      - "type": ActionType,
      - "asset": reserve address (lower-case) for single-asset events,
      - "debt_asset" / "collateral_asset" for LiquidationCall,
      - every non-indexed field under a snake_case name (amount, debt_amount, ...).
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

        event = _EVENTS.get(topic0.lower())
        if event is None:
            return None

        out: dict[str, Any] = {"type": event.action_type}
        out.update(decode_data(data, event.data_types, event.data_names))

        if event.action_type == ActionType.LIQUIDATION_CALL:
            out["collateral_asset"] = topic_as_address(topic1)
            out["debt_asset"] = topic_as_address(topic2)
        else:
            out["asset"] = topic_as_address(topic1 if event.asset_topic == 1 else topic2)

        return out
