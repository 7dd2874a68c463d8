from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from actions_indexer.app.domain.models import ActionProtocol
from actions_indexer.app.domain.ports.out import TransactionActionsIndexer


@dataclass(frozen=True)
class BlockRange:
    from_block: int
    to_block: int

    def validate(self) -> None:
        if self.from_block < 0 or self.to_block < 0:
            raise ValueError("Block numbers must be non-negative")
        if self.from_block > self.to_block:
            raise ValueError("from_block must be <= to_block")


def parse_protocols_to_rewrite(raw: str | Sequence[str] | None) -> list[str] | None:
    """
    Normalize the protocols-to-rewrite option.

    None keeps existing actions untouched, an empty list rewrites every
    protocol, otherwise only the named protocols are rewritten.
    """
    if raw is None:
        return None

    items = raw.split(",") if isinstance(raw, str) else list(raw)
    protocols = [item.strip().lower() for item in items if item and item.strip()]

    known = {p.value for p in ActionProtocol}
    unknown = [p for p in protocols if p not in known]
    if unknown:
        raise ValueError(f"Unsupported protocols to rewrite: {unknown!r}")

    return protocols


async def index_transaction_actions_for_block_range(
    *,
    indexer: TransactionActionsIndexer,
    chain_id: int,
    block_range: BlockRange,
    protocols_to_rewrite: list[str] | None = None,
) -> None:
    """
    Application-level use case for deriving transaction actions from staged logs.
    """
    block_range.validate()
    await indexer.index_actions_for_block_range(
        chain_id=chain_id,
        from_block=block_range.from_block,
        to_block=block_range.to_block,
        protocols_to_rewrite=protocols_to_rewrite,
    )
