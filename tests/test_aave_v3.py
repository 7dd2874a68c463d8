import pytest
from eth_utils import to_checksum_address

from actions_indexer.app.application.services.actions.aave_v3 import AaveV3ActionsHandler
from actions_indexer.app.application.services.actions.log_router import filter_logs, group_logs_by_transaction
from actions_indexer.app.application.services.actions.token_metadata import TokenMetadataResolver
from actions_indexer.app.domain.models import ActionProtocol, ActionType
from actions_indexer.app.infrastructure.decoders.aave_v3.event_decoder import (
    AAVE_V3_BORROW_EVENT,
    AAVE_V3_ENABLE_COLLATERAL_EVENT,
    AAVE_V3_LIQUIDATION_CALL_EVENT,
    AAVE_V3_SUPPLY_EVENT,
    AAVE_V3_WITHDRAW_EVENT,
)

from conftest import (
    AAVE_POOL,
    POOL,
    USDC,
    USER,
    WETH,
    FakeContractReader,
    abi_data,
    erc20_answers,
    make_log,
    topic_address,
    topic_uint,
    tx_hash,
)

UNKNOWN = "0x" + "77" * 20


@pytest.fixture
def handler(token_cache, repository, reader):
    tokens = TokenMetadataResolver(cache=token_cache, repository=repository, reader=reader)
    return AaveV3ActionsHandler(pool_address=AAVE_POOL, tokens=tokens, ether_chain_ids={1, 5, 10})


def _supply(asset, amount, *, index=0, transaction_hash=None, address=AAVE_POOL):
    return make_log(
        topic0=AAVE_V3_SUPPLY_EVENT,
        topic1=topic_address(asset),
        topic2=topic_address(USER),
        topic3=topic_uint(0),
        data=abi_data(["address", "uint256"], [USER, amount]),
        index=index,
        transaction_hash=transaction_hash,
        address=address,
    )


async def _handle(handler, logs, chain_id=1):
    grouped = group_logs_by_transaction(filter_logs(logs, handler.filter_rules()))
    return await handler.handle(grouped, chain_id=chain_id)


class TestAaveV3Eligibility:
    def test_requires_pool_address(self, token_cache, repository, reader):
        tokens = TokenMetadataResolver(cache=token_cache, repository=repository, reader=reader)

        assert AaveV3ActionsHandler(pool_address=AAVE_POOL, tokens=tokens).is_eligible(137)
        assert not AaveV3ActionsHandler(pool_address=None, tokens=tokens).is_eligible(1)


class TestAaveV3Actions:
    """Tests for Aave V3 action payloads."""

    @pytest.mark.asyncio
    async def test_supply_payload(self, handler):
        actions = await _handle(handler, [_supply(USDC, 1_500_000, index=3)], chain_id=137)

        assert len(actions) == 1
        action = actions[0]
        assert action.protocol == ActionProtocol.AAVE_V3
        assert action.type == ActionType.SUPPLY
        assert action.hash == tx_hash(1)
        assert action.log_index == 3
        assert action.data == {
            "amount": "1.5",
            "symbol": "USDC",
            "address": to_checksum_address(USDC),
            "block_number": 100,
        }

    @pytest.mark.asyncio
    async def test_weth_shown_as_ether_on_mainnet(self, handler):
        actions = await _handle(handler, [_supply(WETH, 10**18)], chain_id=1)

        assert actions[0].data["symbol"] == "Ether"
        assert actions[0].data["amount"] == "1"

    @pytest.mark.asyncio
    async def test_weth_kept_on_other_chains(self, handler):
        actions = await _handle(handler, [_supply(WETH, 10**18)], chain_id=137)

        assert actions[0].data["symbol"] == "WETH"

    @pytest.mark.asyncio
    async def test_logs_from_other_contracts_are_ignored(self, handler):
        assert await _handle(handler, [_supply(USDC, 1, address=POOL)]) == []

    @pytest.mark.asyncio
    async def test_borrow_and_withdraw(self, handler):
        logs = [
            make_log(
                topic0=AAVE_V3_BORROW_EVENT,
                topic1=topic_address(USDC),
                topic2=topic_address(USER),
                topic3=topic_uint(0),
                data=abi_data(["address", "uint256", "uint8", "uint256"], [USER, 2_000_000, 2, 1]),
                index=0,
            ),
            make_log(
                topic0=AAVE_V3_WITHDRAW_EVENT,
                topic1=topic_address(USDC),
                topic2=topic_address(USER),
                topic3=topic_address(USER),
                data=abi_data(["uint256"], [250_000]),
                index=1,
            ),
        ]

        actions = await _handle(handler, logs, chain_id=137)

        assert [(a.type, a.data["amount"]) for a in actions] == [
            (ActionType.BORROW, "2"),
            (ActionType.WITHDRAW, "0.25"),
        ]

    @pytest.mark.asyncio
    async def test_enable_collateral_has_no_amount(self, handler):
        log = make_log(
            topic0=AAVE_V3_ENABLE_COLLATERAL_EVENT,
            topic1=topic_address(USDC),
            topic2=topic_address(USER),
        )

        actions = await _handle(handler, [log])

        assert actions[0].type == ActionType.ENABLE_COLLATERAL
        assert actions[0].data == {"symbol": "USDC", "address": to_checksum_address(USDC), "block_number": 100}

    @pytest.mark.asyncio
    async def test_liquidation_call(self, handler):
        log = make_log(
            topic0=AAVE_V3_LIQUIDATION_CALL_EVENT,
            topic1=topic_address(WETH),
            topic2=topic_address(USDC),
            topic3=topic_address(USER),
            data=abi_data(["uint256", "uint256", "address", "bool"], [3_000_000, 2 * 10**18, USER, False]),
        )

        actions = await _handle(handler, [log], chain_id=1)

        assert actions[0].type == ActionType.LIQUIDATION_CALL
        assert actions[0].data == {
            "debt_amount": "3",
            "debt_symbol": "USDC",
            "debt_address": to_checksum_address(USDC),
            "collateral_amount": "2",
            "collateral_symbol": "Ether",
            "collateral_address": to_checksum_address(WETH),
            "block_number": 100,
        }

    @pytest.mark.asyncio
    async def test_unresolvable_token_drops_only_that_action(self, handler):
        logs = [_supply(UNKNOWN, 1, index=0), _supply(USDC, 1_000_000, index=1)]

        actions = await _handle(handler, logs, chain_id=137)

        assert [a.log_index for a in actions] == [1]

    @pytest.mark.asyncio
    async def test_malformed_log_is_skipped(self, handler):
        broken = make_log(topic0=AAVE_V3_WITHDRAW_EVENT, topic1=topic_address(USDC), data="0x01", index=0)

        actions = await _handle(handler, [broken, _supply(USDC, 1_000_000, index=1)], chain_id=137)

        assert [a.log_index for a in actions] == [1]


class TestAaveV3TokenResolution:
    """Tests for batch-wide reserve token resolution."""

    @pytest.mark.asyncio
    async def test_reserve_tokens_resolved_in_one_pass(self, token_cache, repository):
        reserves = ["0x" + "a1" * 20, "0x" + "a2" * 20, "0x" + "a3" * 20]
        answers = {}
        for n, reserve in enumerate(reserves):
            answers.update(erc20_answers(reserve, f"R{n}", 6))
        reader = FakeContractReader(answers)
        tokens = TokenMetadataResolver(cache=token_cache, repository=repository, reader=reader)
        handler = AaveV3ActionsHandler(pool_address=AAVE_POOL, tokens=tokens)

        logs = [_supply(reserve, 1_000_000, transaction_hash=tx_hash(n + 1)) for n, reserve in enumerate(reserves)]
        logs.append(_supply(USDC, 2_000_000, index=1, transaction_hash=tx_hash(1)))

        actions = await _handle(handler, logs, chain_id=137)

        assert sorted(a.data["symbol"] for a in actions) == ["R0", "R1", "R2", "USDC"]
        assert len(repository.token_lookups) == 1
        assert len(reader.calls) == 1
        assert sorted(r.contract_address for r in reader.calls[0]) == sorted(reserves * 2)
