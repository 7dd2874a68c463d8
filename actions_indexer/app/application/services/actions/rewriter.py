from __future__ import annotations

import logging
from typing import Iterable, Sequence

from actions_indexer.app.application.services.actions.log_router import group_logs_by_transaction
from actions_indexer.app.domain.models import RawLog
from actions_indexer.app.domain.ports.out import TransactionActionsRepository

logger = logging.getLogger(__name__)


async def clear_actions(
    *,
    repository: TransactionActionsRepository,
    logs: Iterable[RawLog],
    protocols: Sequence[str],
) -> None:
    """
    Delete stored actions of every transaction present in `logs`.

    Scoped to `protocols` when non-empty, otherwise all protocols are cleared.
    Runs before re-derivation so the following parse produces the complete
    replacement set for those transactions.
    """
    transaction_hashes = list(group_logs_by_transaction(logs))
    if not transaction_hashes:
        return

    logger.info(
        "Clearing transaction actions: transactions=%s, protocols=%s",
        len(transaction_hashes),
        list(protocols) or "all",
    )

    await repository.delete_for_transactions(
        transaction_hashes=transaction_hashes,
        protocols=list(protocols),
    )
