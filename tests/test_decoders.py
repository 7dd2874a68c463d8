import pytest
from eth_abi.exceptions import DecodingError

from actions_indexer.app.domain.models import BURN_ADDRESS, ActionType
from actions_indexer.app.infrastructure.decoders.aave_v3.event_decoder import (
    AAVE_V3_BORROW_EVENT,
    AAVE_V3_DISABLE_COLLATERAL_EVENT,
    AAVE_V3_ENABLE_COLLATERAL_EVENT,
    AAVE_V3_EVENTS,
    AAVE_V3_FLASH_LOAN_EVENT,
    AAVE_V3_LIQUIDATION_CALL_EVENT,
    AAVE_V3_REPAY_EVENT,
    AAVE_V3_SUPPLY_EVENT,
    AAVE_V3_WITHDRAW_EVENT,
    AaveV3EventDecoder,
)
from actions_indexer.app.infrastructure.decoders.evm_abi import (
    decode_data,
    topic_as_address,
    topic_as_hex32,
)
from actions_indexer.app.infrastructure.decoders.golembase.event_decoder import (
    GOLEMBASE_ENTITY_CREATED,
    GOLEMBASE_ENTITY_DELETED,
    GOLEMBASE_ENTITY_TTL_EXTENDED,
    GOLEMBASE_ENTITY_UPDATED,
    GOLEMBASE_EVENTS,
    GolemBaseEventDecoder,
)
from actions_indexer.app.infrastructure.decoders.uniswap_v3.event_decoder import (
    TRANSFER_TYPE,
    UNISWAP_V3_BURN_EVENT,
    UNISWAP_V3_COLLECT_EVENT,
    UNISWAP_V3_MINT_EVENT,
    UNISWAP_V3_POOL_EVENTS,
    UNISWAP_V3_SWAP_EVENT,
    UNISWAP_V3_TRANSFER_NFT_EVENT,
    UniswapV3EventDecoder,
)

from conftest import DAI, USDC, USER, WETH, abi_data, topic_address, topic_uint

UNKNOWN_TOPIC = "0x" + "12" * 32
ENTITY_KEY = "0x" + "5a" * 32


def _decode(decoder, topic0, topic1=None, topic2=None, topic3=None, data="0x"):
    return decoder.decode(topic0=topic0, topic1=topic1, topic2=topic2, topic3=topic3, data=data)


class TestTopicHelpers:
    def test_address_from_padded_topic(self):
        assert topic_as_address(topic_address(USDC)) == USDC

    def test_missing_address_topic_is_burn_address(self):
        assert topic_as_address(None) == BURN_ADDRESS

    def test_short_topic_rejected(self):
        with pytest.raises(ValueError):
            topic_as_address("0x1234")

    def test_hex32_keeps_full_value(self):
        assert topic_as_hex32(ENTITY_KEY.upper().replace("0X", "0x")) == ENTITY_KEY

    def test_decoded_data_normalized(self):
        data = abi_data(["address", "int256", "uint128", "bool"], [USER, -5, 7, True])

        decoded = decode_data(data, ["address", "int256", "uint128", "bool"], ["who", "delta", "liquidity", "flag"])

        assert decoded == {"who": USER, "delta": -5, "liquidity": 7, "flag": True}


class TestEventSets:
    def test_constants_are_lowercase_32_byte_hex(self):
        for topic in AAVE_V3_EVENTS | UNISWAP_V3_POOL_EVENTS | GOLEMBASE_EVENTS | {UNISWAP_V3_TRANSFER_NFT_EVENT}:
            assert topic == topic.lower()
            assert topic.startswith("0x") and len(topic) == 66

    def test_sizes(self):
        assert len(AAVE_V3_EVENTS) == 8
        assert len(UNISWAP_V3_POOL_EVENTS) == 4
        assert len(GOLEMBASE_EVENTS) == 4


class TestAaveV3EventDecoder:
    decoder = AaveV3EventDecoder()

    def test_borrow(self):
        out = _decode(
            self.decoder,
            AAVE_V3_BORROW_EVENT,
            topic_address(USDC),
            topic_address(USER),
            topic_uint(0),
            abi_data(["address", "uint256", "uint8", "uint256"], [USER, 5_000_000, 2, 123]),
        )

        assert out["type"] == ActionType.BORROW
        assert out["asset"] == USDC
        assert out["amount"] == 5_000_000
        assert out["user"] == USER

    def test_supply(self):
        out = _decode(
            self.decoder,
            AAVE_V3_SUPPLY_EVENT,
            topic_address(WETH),
            topic_address(USER),
            topic_uint(0),
            abi_data(["address", "uint256"], [USER, 10**18]),
        )

        assert out["type"] == ActionType.SUPPLY
        assert out["asset"] == WETH
        assert out["amount"] == 10**18

    def test_withdraw(self):
        out = _decode(
            self.decoder,
            AAVE_V3_WITHDRAW_EVENT,
            topic_address(DAI),
            topic_address(USER),
            topic_address(USER),
            abi_data(["uint256"], [7]),
        )

        assert out == {"type": ActionType.WITHDRAW, "asset": DAI, "amount": 7}

    def test_repay(self):
        out = _decode(
            self.decoder,
            AAVE_V3_REPAY_EVENT,
            topic_address(DAI),
            topic_address(USER),
            topic_address(USER),
            abi_data(["uint256", "bool"], [11, True]),
        )

        assert out["type"] == ActionType.REPAY
        assert out["asset"] == DAI
        assert out["amount"] == 11

    def test_flash_loan_asset_is_third_topic(self):
        out = _decode(
            self.decoder,
            AAVE_V3_FLASH_LOAN_EVENT,
            topic_address(USER),
            topic_address(USDC),
            topic_uint(0),
            abi_data(["address", "uint256", "uint8", "uint256"], [USER, 1_000, 0, 9]),
        )

        assert out["type"] == ActionType.FLASH_LOAN
        assert out["asset"] == USDC
        assert out["amount"] == 1_000

    @pytest.mark.parametrize(
        "topic0, action_type",
        [
            (AAVE_V3_ENABLE_COLLATERAL_EVENT, ActionType.ENABLE_COLLATERAL),
            (AAVE_V3_DISABLE_COLLATERAL_EVENT, ActionType.DISABLE_COLLATERAL),
        ],
    )
    def test_collateral_toggles(self, topic0, action_type):
        out = _decode(self.decoder, topic0, topic_address(WETH), topic_address(USER))

        assert out == {"type": action_type, "asset": WETH}

    def test_liquidation_call(self):
        out = _decode(
            self.decoder,
            AAVE_V3_LIQUIDATION_CALL_EVENT,
            topic_address(WETH),
            topic_address(USDC),
            topic_address(USER),
            abi_data(["uint256", "uint256", "address", "bool"], [100, 200, USER, False]),
        )

        assert out["type"] == ActionType.LIQUIDATION_CALL
        assert out["collateral_asset"] == WETH
        assert out["debt_asset"] == USDC
        assert out["debt_amount"] == 100
        assert out["collateral_amount"] == 200

    def test_unknown_topic(self):
        assert _decode(self.decoder, UNKNOWN_TOPIC) is None
        assert _decode(self.decoder, None) is None

    def test_truncated_data_raises_decoding_error(self):
        with pytest.raises(DecodingError):
            _decode(self.decoder, AAVE_V3_WITHDRAW_EVENT, topic_address(DAI), data="0x01")


class TestUniswapV3EventDecoder:
    decoder = UniswapV3EventDecoder()

    def test_transfer(self):
        out = _decode(
            self.decoder,
            UNISWAP_V3_TRANSFER_NFT_EVENT,
            topic_address(BURN_ADDRESS),
            topic_address(USER),
            topic_uint(4242),
        )

        assert out == {"type": TRANSFER_TYPE, "from": BURN_ADDRESS, "to": USER, "token_id": 4242}

    def test_erc20_style_transfer_without_token_id_is_ignored(self):
        assert _decode(
            self.decoder,
            UNISWAP_V3_TRANSFER_NFT_EVENT,
            topic_address(BURN_ADDRESS),
            topic_address(USER),
            None,
            abi_data(["uint256"], [1]),
        ) is None

    def test_mint(self):
        out = _decode(
            self.decoder,
            UNISWAP_V3_MINT_EVENT,
            topic_address(USER),
            topic_uint(1),
            topic_uint(2),
            abi_data(["address", "uint128", "uint256", "uint256"], [USER, 10, 20, 30]),
        )

        assert out["type"] == ActionType.MINT
        assert (out["amount0"], out["amount1"]) == (20, 30)

    def test_burn(self):
        out = _decode(
            self.decoder,
            UNISWAP_V3_BURN_EVENT,
            topic_address(USER),
            topic_uint(1),
            topic_uint(2),
            abi_data(["uint128", "uint256", "uint256"], [10, 21, 31]),
        )

        assert out["type"] == ActionType.BURN
        assert (out["amount0"], out["amount1"]) == (21, 31)

    def test_collect(self):
        out = _decode(
            self.decoder,
            UNISWAP_V3_COLLECT_EVENT,
            topic_address(USER),
            topic_uint(1),
            topic_uint(2),
            abi_data(["address", "uint128", "uint128"], [USER, 5, 6]),
        )

        assert out["type"] == ActionType.COLLECT
        assert (out["amount0"], out["amount1"]) == (5, 6)

    def test_swap_keeps_signs(self):
        out = _decode(
            self.decoder,
            UNISWAP_V3_SWAP_EVENT,
            topic_address(USER),
            topic_address(USER),
            None,
            abi_data(["int256", "int256", "uint160", "uint128", "int24"], [-500, 1000, 2**96, 10, -7]),
        )

        assert out["type"] == ActionType.SWAP
        assert (out["amount0"], out["amount1"]) == (-500, 1000)
        assert out["tick"] == -7

    def test_unknown_topic(self):
        assert _decode(self.decoder, UNKNOWN_TOPIC) is None


class TestGolemBaseEventDecoder:
    decoder = GolemBaseEventDecoder()

    def test_created(self):
        out = _decode(self.decoder, GOLEMBASE_ENTITY_CREATED, ENTITY_KEY, data=abi_data(["uint256"], [500]))

        assert out == {"type": ActionType.ENTITY_CREATED, "entity_id": ENTITY_KEY, "expiration_block": 500}

    def test_updated(self):
        out = _decode(self.decoder, GOLEMBASE_ENTITY_UPDATED, ENTITY_KEY, data=abi_data(["uint256"], [600]))

        assert out == {"type": ActionType.ENTITY_UPDATED, "entity_id": ENTITY_KEY, "expiration_block": 600}

    def test_deleted(self):
        out = _decode(self.decoder, GOLEMBASE_ENTITY_DELETED, ENTITY_KEY)

        assert out == {"type": ActionType.ENTITY_DELETED, "entity_id": ENTITY_KEY}

    def test_ttl_extended(self):
        out = _decode(
            self.decoder,
            GOLEMBASE_ENTITY_TTL_EXTENDED,
            ENTITY_KEY,
            data=abi_data(["uint256", "uint256"], [600, 900]),
        )

        assert out == {
            "type": ActionType.ENTITY_TTL_EXTENDED,
            "entity_id": ENTITY_KEY,
            "old_expiration_block": 600,
            "new_expiration_block": 900,
        }

    def test_missing_entity_key(self):
        assert _decode(self.decoder, GOLEMBASE_ENTITY_DELETED, None) is None

    def test_unknown_topic(self):
        assert _decode(self.decoder, UNKNOWN_TOPIC, ENTITY_KEY) is None
