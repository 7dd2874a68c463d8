"""create_transaction_actions

Revision ID: 2026_10_19_120000
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '2026_10_19_120000'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_PROTOCOLS = ('aave_v3', 'uniswap_v3', 'golembase')
_TYPES = (
    'borrow',
    'supply',
    'withdraw',
    'repay',
    'flash_loan',
    'liquidation_call',
    'enable_collateral',
    'disable_collateral',
    'mint',
    'burn',
    'collect',
    'swap',
    'mint_nft',
    'golembase_entity_created',
    'golembase_entity_updated',
    'golembase_entity_deleted',
    'golembase_entity_ttl_extended',
)

protocol_enum = postgresql.ENUM(*_PROTOCOLS, name='transaction_actions_protocol', create_type=False)
type_enum = postgresql.ENUM(*_TYPES, name='transaction_actions_type', create_type=False)


def upgrade() -> None:
    op.execute('CREATE SCHEMA IF NOT EXISTS domain')

    bind = op.get_bind()
    protocol_enum.create(bind, checkfirst=True)
    type_enum.create(bind, checkfirst=True)

    op.create_table(
        'transaction_actions',
        sa.Column('hash', postgresql.BYTEA(), nullable=False),
        sa.Column('log_index', sa.Integer(), nullable=False),
        sa.Column('protocol', protocol_enum, nullable=False),
        sa.Column('type', type_enum, nullable=False),
        sa.Column('data', postgresql.JSONB(), server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.Column('inserted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('hash', 'log_index'),
        schema='domain',
    )
    op.create_index(
        'ix_transaction_actions_protocol_type',
        'transaction_actions',
        ['protocol', 'type'],
        unique=False,
        schema='domain',
    )


def downgrade() -> None:
    op.drop_index('ix_transaction_actions_protocol_type', table_name='transaction_actions', schema='domain')
    op.drop_table('transaction_actions', schema='domain')

    bind = op.get_bind()
    type_enum.drop(bind, checkfirst=True)
    protocol_enum.drop(bind, checkfirst=True)
