from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    DateTime,
    Enum,
    Index,
    Integer,
    PrimaryKeyConstraint,
)
from sqlalchemy.dialects.postgresql import BYTEA, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from actions_indexer.app.domain.models import ActionProtocol, ActionType
from actions_indexer.app.infrastructure.db.db_base import BaseDB


class TransactionActionsDB(BaseDB):
    """
    Protocol-level actions derived from transaction logs.

    One row = one action (borrow, swap, mint_nft, golembase_entity_created, ...)
    with a protocol/type specific JSON payload.

    Idempotency:
      - PK is the originating log identity: (hash, log_index)
      - rewrites delete by hash (optionally per protocol) before re-inserting
    """

    __tablename__ = "transaction_actions"
    __table_args__ = (
        PrimaryKeyConstraint("hash", "log_index"),
        Index("ix_transaction_actions_protocol_type", "protocol", "type"),
        {"schema": "domain"},
    )

    hash: Mapped[bytes] = mapped_column(BYTEA, nullable=False)
    log_index: Mapped[int] = mapped_column(Integer, nullable=False)

    protocol: Mapped[str] = mapped_column(
        Enum(
            *(p.value for p in ActionProtocol),
            name="transaction_actions_protocol",
        ),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(
        Enum(
            *(t.value for t in ActionType),
            name="transaction_actions_type",
        ),
        nullable=False,
    )

    data: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)

    inserted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
