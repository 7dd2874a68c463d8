from __future__ import annotations

import logging
from typing import Any, Protocol, Sequence

from eth_abi.exceptions import DecodingError

from actions_indexer.app.application.services.actions.log_router import LogFilterRule
from actions_indexer.app.domain.models import ActionProtocol, RawLog, TransactionAction
from actions_indexer.app.domain.ports.out import EvmEventDecoder

logger = logging.getLogger(__name__)


class ProtocolActionsHandler(Protocol):
    protocol: ActionProtocol

    def is_eligible(self, chain_id: int) -> bool: ...

    def filter_rules(self) -> Sequence[LogFilterRule]: ...

    async def handle(
        self,
        logs_grouped: dict[str, list[RawLog]],
        *,
        chain_id: int,
    ) -> list[TransactionAction]: ...


def decode_log(decoder: EvmEventDecoder, log: RawLog) -> dict[str, Any] | None:
    """Decode one log; a malformed payload is logged and skipped."""
    try:
        return decoder.decode(
            topic0=log.first_topic,
            topic1=log.second_topic,
            topic2=log.third_topic,
            topic3=log.fourth_topic,
            data=log.data,
        )
    except (DecodingError, ValueError) as exc:
        logger.warning(
            "TransactionActions: cannot decode log in transaction %s. Log index: %s. Error: %s",
            log.transaction_hash,
            log.index,
            exc,
        )
        return None
