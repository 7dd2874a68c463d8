from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Sequence

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncEngine

from actions_indexer.app.domain.models import TokenMetadata, TransactionAction
from actions_indexer.app.infrastructure.decoders.evm_abi import hex_to_bytes

logger = logging.getLogger(__name__)


_DELETE_ACTIONS_SQL = text(
    """
    DELETE FROM domain.transaction_actions
    WHERE hash IN :hashes
    """
).bindparams(bindparam("hashes", expanding=True))

_DELETE_PROTOCOL_ACTIONS_SQL = text(
    """
    DELETE FROM domain.transaction_actions
    WHERE hash IN :hashes
      AND protocol::text IN :protocols
    """
).bindparams(
    bindparam("hashes", expanding=True),
    bindparam("protocols", expanding=True),
)

_SELECT_TOKENS_SQL = text(
    """
    SELECT
        t.token_address,
        t.symbol,
        t.decimals
    FROM domain.tokens t
    WHERE t.chain_id = :chain_id
      AND t.token_address IN :addresses
    """
).bindparams(bindparam("addresses", expanding=True))

_INSERT_ACTIONS_SQL = text(
    """
    INSERT INTO domain.transaction_actions (
        hash,
        log_index,
        protocol,
        type,
        data,
        inserted_at,
        updated_at
    )
    VALUES (
        :hash,
        :log_index,
        CAST(:protocol AS transaction_actions_protocol),
        CAST(:type AS transaction_actions_type),
        CAST(:data AS JSONB),
        :inserted_at,
        :updated_at
    )
    ON CONFLICT (hash, log_index) DO NOTHING
    """
)


class SqlAlchemyTransactionActionsRepository:
    """
    PostgreSQL/SQLAlchemy persistent store for transaction actions.

    - domain.transaction_actions: delete by transaction (optionally per protocol), append,
    - domain.tokens: symbol/decimals lookup for token metadata resolution.

    Hashes and addresses are stored as BYTEA; the core works with 0x-hex strings.
    """

    def __init__(self, engine: AsyncEngine, *, chain_id: int) -> None:
        self._engine = engine
        self._chain_id = chain_id

    async def delete_for_transactions(
        self,
        *,
        transaction_hashes: Sequence[str],
        protocols: Sequence[str],
    ) -> None:
        if not transaction_hashes:
            return

        params: dict[str, Any] = {"hashes": [hex_to_bytes(h) for h in transaction_hashes]}
        if protocols:
            stmt = _DELETE_PROTOCOL_ACTIONS_SQL
            params["protocols"] = list(protocols)
        else:
            stmt = _DELETE_ACTIONS_SQL

        async with self._engine.begin() as conn:
            result = await conn.execute(stmt, params)

        logger.debug(
            "Deleted transaction actions: transactions=%s, protocols=%s, deleted_rowcount=%s",
            len(transaction_hashes),
            list(protocols) or "all",
            getattr(result, "rowcount", None),
        )

    async def fetch_token_metadata(
        self,
        *,
        addresses: Sequence[str],
    ) -> dict[str, TokenMetadata]:
        if not addresses:
            return {}

        async with self._engine.connect() as conn:
            result = await conn.execute(
                _SELECT_TOKENS_SQL,
                {
                    "chain_id": self._chain_id,
                    "addresses": [hex_to_bytes(a) for a in addresses],
                },
            )
            rows = result.mappings().all()

        out: dict[str, TokenMetadata] = {}
        for r in rows:
            token_address = r["token_address"]
            # asyncpg might return memoryview; normalize to bytes
            if isinstance(token_address, memoryview):
                token_address = token_address.tobytes()
            out["0x" + bytes(token_address).hex()] = TokenMetadata(symbol=r["symbol"], decimals=r["decimals"])
        return out

    async def insert_actions(self, actions: Sequence[TransactionAction]) -> None:
        if not actions:
            return

        ts = datetime.now(timezone.utc)
        payload = [
            {
                "hash": hex_to_bytes(action.hash),
                "log_index": action.log_index,
                "protocol": action.protocol.value,
                "type": action.type.value,
                "data": json.dumps(action.data),
                "inserted_at": ts,
                "updated_at": ts,
            }
            for action in actions
        ]

        async with self._engine.begin() as conn:
            await conn.execute(_INSERT_ACTIONS_SQL, payload)

        logger.info("Inserted %s transaction actions", len(payload))
