from __future__ import annotations


from sqlalchemy import (
    BigInteger,
    Integer,
    Index,
    PrimaryKeyConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import BYTEA

from actions_indexer.app.infrastructure.db.db_base import BaseDB


class EvmEventLogsDB(BaseDB):
    """
    Staged EVM event logs, the input of the transaction actions pipeline.

    Only the log payload and its position in the chain are mapped here;
    the table is populated upstream and read by SqlAlchemyEvmLogsSource
    in (block_number, transaction_index, log_index) order.
    """

    __tablename__ = "evm_event_logs"
    __table_args__ = (
        PrimaryKeyConstraint("chain_id", "block_number", "log_index"),
        # actions are grouped per transaction
        Index(
            "ix_logs_chain_txhash",
            "chain_id",
            "transaction_hash",
        ),
        {"schema": "staging"},
    )

    chain_id: Mapped[int] = mapped_column(Integer, nullable=False)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)

    transaction_hash: Mapped[bytes] = mapped_column(BYTEA, nullable=False)
    transaction_index: Mapped[int] = mapped_column(Integer, nullable=False)
    log_index: Mapped[int] = mapped_column(Integer, nullable=False)

    """Emitting contract; pool/manager filters match against it."""
    address: Mapped[bytes] = mapped_column(BYTEA, nullable=False)

    """topic0 selects the protocol decoder; topic1..3 carry indexed args."""
    topic0: Mapped[bytes | None] = mapped_column(BYTEA, nullable=True)
    topic1: Mapped[bytes | None] = mapped_column(BYTEA, nullable=True)
    topic2: Mapped[bytes | None] = mapped_column(BYTEA, nullable=True)
    topic3: Mapped[bytes | None] = mapped_column(BYTEA, nullable=True)

    data: Mapped[bytes] = mapped_column(BYTEA, nullable=False)
