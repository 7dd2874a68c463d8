from __future__ import annotations

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from actions_indexer.app.domain.models import RawLog


_SELECT_LOGS_SQL = text(
    """
    SELECT
        l.block_number,
        l.transaction_hash,
        l.log_index,
        l.address,
        l.topic0,
        l.topic1,
        l.topic2,
        l.topic3,
        l.data
    FROM staging.evm_event_logs l
    WHERE l.chain_id = :chain_id
      AND l.block_number BETWEEN :from_block AND :to_block
    ORDER BY l.block_number, l.transaction_index, l.log_index
    """
)


def _hex_or_none(value: Any) -> str | None:
    if value is None:
        return None
    # asyncpg might return memoryview; normalize to bytes
    if isinstance(value, memoryview):
        value = value.tobytes()
    return "0x" + bytes(value).hex()


class SqlAlchemyEvmLogsSource:
    """
    Reads raw logs from staging.evm_event_logs for a block range.

    BYTEA columns are mapped to 0x-hex strings; rows keep on-chain emission order.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def fetch_logs(
        self,
        *,
        chain_id: int,
        from_block: int,
        to_block: int,
    ) -> list[RawLog]:
        async with self._engine.connect() as conn:
            result = await conn.execute(
                _SELECT_LOGS_SQL,
                {
                    "chain_id": chain_id,
                    "from_block": from_block,
                    "to_block": to_block,
                },
            )
            rows = result.mappings().all()

        return [
            RawLog(
                transaction_hash=_hex_or_none(r["transaction_hash"]) or "",
                index=r["log_index"],
                address_hash=_hex_or_none(r["address"]) or "",
                first_topic=_hex_or_none(r["topic0"]),
                second_topic=_hex_or_none(r["topic1"]),
                third_topic=_hex_or_none(r["topic2"]),
                fourth_topic=_hex_or_none(r["topic3"]),
                data=_hex_or_none(r["data"]) or "0x",
                block_number=r["block_number"],
            )
            for r in rows
        ]
