import pytest

from actions_indexer.app.application.services.actions.golembase import GolemBaseActionsHandler
from actions_indexer.app.application.services.actions.log_router import filter_logs, group_logs_by_transaction
from actions_indexer.app.domain.models import ActionProtocol, ActionType
from actions_indexer.app.infrastructure.decoders.golembase.event_decoder import (
    GOLEMBASE_ENTITY_CREATED,
    GOLEMBASE_ENTITY_DELETED,
    GOLEMBASE_ENTITY_TTL_EXTENDED,
    GOLEMBASE_ENTITY_UPDATED,
)

from conftest import abi_data, make_log

ENTITY_KEY = "0x" + "5a" * 32
STORAGE = "0x" + "00" * 19 + "61"


def _log(topic0, data="0x", index=0):
    return make_log(topic0=topic0, topic1=ENTITY_KEY, data=data, address=STORAGE, index=index, block_number=777)


async def _handle(handler, logs, chain_id=1337):
    grouped = group_logs_by_transaction(filter_logs(logs, handler.filter_rules()))
    return await handler.handle(grouped, chain_id=chain_id)


class TestGolemBaseActions:
    """Tests for Golem Base storage entity actions."""

    def test_single_chain_eligibility(self):
        handler = GolemBaseActionsHandler(chain_id=1337)

        assert handler.is_eligible(1337)
        assert not handler.is_eligible(1)

    @pytest.mark.asyncio
    async def test_all_event_kinds(self):
        logs = [
            _log(GOLEMBASE_ENTITY_CREATED, abi_data(["uint256"], [1000]), index=0),
            _log(GOLEMBASE_ENTITY_UPDATED, abi_data(["uint256"], [2000]), index=1),
            _log(GOLEMBASE_ENTITY_TTL_EXTENDED, abi_data(["uint256", "uint256"], [2000, 3000]), index=2),
            _log(GOLEMBASE_ENTITY_DELETED, index=3),
        ]

        actions = await _handle(GolemBaseActionsHandler(chain_id=1337), logs)

        assert [a.protocol for a in actions] == [ActionProtocol.GOLEMBASE] * 4
        assert [a.type for a in actions] == [
            ActionType.ENTITY_CREATED,
            ActionType.ENTITY_UPDATED,
            ActionType.ENTITY_TTL_EXTENDED,
            ActionType.ENTITY_DELETED,
        ]
        assert actions[0].data == {"entity_id": ENTITY_KEY, "expiration_block": 1000, "block_number": 777}
        assert actions[1].data == {"entity_id": ENTITY_KEY, "expiration_block": 2000, "block_number": 777}
        assert actions[2].data == {
            "entity_id": ENTITY_KEY,
            "old_expiration_block": 2000,
            "new_expiration_block": 3000,
            "block_number": 777,
        }
        assert actions[3].data == {"entity_id": ENTITY_KEY, "block_number": 777}

    def test_action_type_values_carry_protocol_prefix(self):
        assert ActionType.ENTITY_CREATED.value == "golembase_entity_created"
        assert ActionType.ENTITY_TTL_EXTENDED.value == "golembase_entity_ttl_extended"

    @pytest.mark.asyncio
    async def test_entity_key_is_not_truncated(self):
        actions = await _handle(GolemBaseActionsHandler(chain_id=1337), [_log(GOLEMBASE_ENTITY_DELETED)])

        assert len(actions[0].data["entity_id"]) == 66
