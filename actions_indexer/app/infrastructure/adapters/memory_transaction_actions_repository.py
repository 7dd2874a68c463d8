from __future__ import annotations

from typing import Mapping, Sequence

from actions_indexer.app.domain.models import TokenMetadata, TransactionAction


class InMemoryTransactionActionsRepository:
    """
    Dict-backed store with the same contract as the SQLAlchemy repository.

    Used by the "memory" backend (dry runs) and in tests.
    """

    def __init__(self, tokens: Mapping[str, TokenMetadata] | None = None) -> None:
        self.tokens: dict[str, TokenMetadata] = {k.lower(): v for k, v in (tokens or {}).items()}
        self.actions: dict[tuple[str, int], TransactionAction] = {}
        self.token_lookups: list[list[str]] = []

    async def delete_for_transactions(
        self,
        *,
        transaction_hashes: Sequence[str],
        protocols: Sequence[str],
    ) -> None:
        hashes = {h.lower() for h in transaction_hashes}
        for key, action in list(self.actions.items()):
            if action.hash.lower() not in hashes:
                continue
            if protocols and action.protocol.value not in protocols:
                continue
            del self.actions[key]

    async def fetch_token_metadata(
        self,
        *,
        addresses: Sequence[str],
    ) -> dict[str, TokenMetadata]:
        self.token_lookups.append(list(addresses))
        return {a.lower(): self.tokens[a.lower()] for a in addresses if a.lower() in self.tokens}

    async def insert_actions(self, actions: Sequence[TransactionAction]) -> None:
        for action in actions:
            # ON CONFLICT DO NOTHING
            self.actions.setdefault((action.hash.lower(), action.log_index), action)
