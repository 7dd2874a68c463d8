from __future__ import annotations

from sqlalchemy import Integer, PrimaryKeyConstraint, Text
from sqlalchemy.dialects.postgresql import BYTEA
from sqlalchemy.orm import Mapped, mapped_column

from actions_indexer.app.infrastructure.db.db_base import BaseDB


class TokensDB(BaseDB):
    """
    Persistent tier of token metadata lookups.

    The table is filled outside this project; only the columns read by
    SqlAlchemyTransactionActionsRepository.fetch_token_metadata are mapped.
    Either field may be NULL, in which case RPC fills the gap.
    """

    __tablename__ = "tokens"
    __table_args__ = (
        PrimaryKeyConstraint("chain_id", "token_address"),
        {"schema": "domain"},
    )

    chain_id: Mapped[int] = mapped_column(Integer, nullable=False)
    token_address: Mapped[bytes] = mapped_column(BYTEA, nullable=False)

    symbol: Mapped[str | None] = mapped_column(Text, nullable=True)
    decimals: Mapped[int | None] = mapped_column(Integer, nullable=True)
