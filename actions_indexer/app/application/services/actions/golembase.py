from __future__ import annotations

from actions_indexer.app.application.services.actions.assembler import build_action
from actions_indexer.app.application.services.actions.base import decode_log
from actions_indexer.app.application.services.actions.log_router import LogFilterRule
from actions_indexer.app.domain.models import ActionProtocol, RawLog, TransactionAction
from actions_indexer.app.domain.ports.out import EvmEventDecoder
from actions_indexer.app.infrastructure.decoders.golembase.event_decoder import (
    GOLEMBASE_EVENTS,
    GolemBaseEventDecoder,
)


class GolemBaseActionsHandler:
    """
    Golem Base storage entity actions.

    Enabled on a single configured chain; no contract address allow-list and
    no token resolution, the entity key and block numbers are re-emitted as-is.
    """

    protocol = ActionProtocol.GOLEMBASE

    def __init__(self, *, chain_id: int, decoder: EvmEventDecoder | None = None) -> None:
        self._chain_id = chain_id
        self._decoder = decoder or GolemBaseEventDecoder()

    def is_eligible(self, chain_id: int) -> bool:
        return chain_id == self._chain_id

    def filter_rules(self) -> list[LogFilterRule]:
        return [LogFilterRule(signatures=GOLEMBASE_EVENTS)]

    async def handle(
        self,
        logs_grouped: dict[str, list[RawLog]],
        *,
        chain_id: int,
    ) -> list[TransactionAction]:
        actions: list[TransactionAction] = []

        for transaction_logs in logs_grouped.values():
            for log in transaction_logs:
                decoded = decode_log(self._decoder, log)
                if not decoded:
                    continue

                action_type = decoded.pop("type")
                decoded["block_number"] = log.block_number

                actions.append(
                    build_action(
                        transaction_hash=log.transaction_hash,
                        protocol=self.protocol,
                        action_type=action_type,
                        data=decoded,
                        log_index=log.index,
                    )
                )

        return actions
