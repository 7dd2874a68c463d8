from __future__ import annotations

from typing import Literal

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine


BlockSelector = int | str
_EARLIEST: Literal["earliest"] = "earliest"
_LATEST: Literal["latest"] = "latest"

_DEFAULT_SOURCE_TABLE = "staging.evm_event_logs"


def _resolve_selector(value: BlockSelector, *, keyword: str, fallback: int, label: str) -> int:
    if isinstance(value, int):
        return value

    normalized = value.strip().lower()
    if normalized in ("", keyword):
        return fallback
    if normalized.isdigit():
        return int(normalized)
    raise ValueError(f"Unsupported {label} value: {value!r}")


async def resolve_block_bounds_from_table(
    *,
    engine: AsyncEngine,
    chain_id: int,
    from_block: BlockSelector,
    to_block: BlockSelector,
    source_table: str = _DEFAULT_SOURCE_TABLE,
) -> tuple[int, int]:
    """
    Turn CLI block selectors into concrete block numbers.

    Accepted selectors: an int, a decimal string, "earliest"/"" for
    from_block and "latest"/"" for to_block. Keywords are looked up as
    MIN/MAX(block_number) of ``source_table`` for ``chain_id``.
    """
    if isinstance(from_block, int) and isinstance(to_block, int):
        return from_block, to_block

    sql = text(
        f"""
        SELECT
            MIN(block_number) AS min_block,
            MAX(block_number) AS max_block
        FROM {source_table}
        WHERE chain_id = :chain_id
        """
    )

    async with engine.connect() as conn:
        result = await conn.execute(sql, {"chain_id": chain_id})
        row = result.one_or_none()

    if row is None or row.min_block is None or row.max_block is None:
        raise RuntimeError(f"No logs found in {source_table!r} for chain_id={chain_id}")

    return (
        _resolve_selector(from_block, keyword=_EARLIEST, fallback=row.min_block, label="from_block"),
        _resolve_selector(to_block, keyword=_LATEST, fallback=row.max_block, label="to_block"),
    )
