from __future__ import annotations

from typing import Any

from actions_indexer.app.domain.models import ActionType
from actions_indexer.app.domain.ports.out import EvmEventDecoder
from actions_indexer.app.infrastructure.decoders.evm_abi import decode_data, topic_as_hex32

# GolemBaseStorageEntityCreated(bytes32 indexed entityKey, uint256 expirationBlock)
GOLEMBASE_ENTITY_CREATED = "0xce4b4ad6891d716d0b1fba2b4aeb05ec20edadb01df512263d0dde423736bbb9"

# GolemBaseStorageEntityUpdated(bytes32 indexed entityKey, uint256 newExpirationBlock)
GOLEMBASE_ENTITY_UPDATED = "0xf371f40aa6932ad9dacbee236e5f3b93d478afe3934b5cfec5ea0d800a41d165"

# GolemBaseStorageEntityDeleted(bytes32 indexed entityKey)
GOLEMBASE_ENTITY_DELETED = "0x0297b0e6eaf1bc2289906a8123b8ff5b19e568a60d002d47df44f8294422af93"

# GolemBaseStorageEntityTTLExtended(bytes32 indexed entityKey, uint256 oldExpirationBlock, uint256 newExpirationBlock)
GOLEMBASE_ENTITY_TTL_EXTENDED = "0x49f78ff301f2020db26cdf781a7e801d1015e0b851fe4117c7740837ed6724e9"

_EVENTS: dict[str, tuple[ActionType, tuple[str, ...], tuple[str, ...]]] = {
    GOLEMBASE_ENTITY_CREATED: (ActionType.ENTITY_CREATED, ("uint256",), ("expiration_block",)),
    # stored under the same key as for created entities
    GOLEMBASE_ENTITY_UPDATED: (ActionType.ENTITY_UPDATED, ("uint256",), ("expiration_block",)),
    GOLEMBASE_ENTITY_DELETED: (ActionType.ENTITY_DELETED, (), ()),
    GOLEMBASE_ENTITY_TTL_EXTENDED: (
        ActionType.ENTITY_TTL_EXTENDED,
        ("uint256", "uint256"),
        ("old_expiration_block", "new_expiration_block"),
    ),
}

GOLEMBASE_EVENTS: frozenset[str] = frozenset(_EVENTS)


class GolemBaseEventDecoder(EvmEventDecoder):
    """
    Decoder for Golem Base storage entity events.

    The entity key is the second topic kept as the full 32-byte hex value
    (entity keys are not addresses and are never truncated).
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
        if topic0 is None or topic1 is None:
            return None

        event = _EVENTS.get(topic0.lower())
        if event is None:
            return None

        action_type, data_types, data_names = event
        out: dict[str, Any] = {"type": action_type, "entity_id": topic_as_hex32(topic1)}
        out.update(decode_data(data, data_types, data_names))
        return out
