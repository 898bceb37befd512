"""Add ledger transactions table

Revision ID: 002_ledger_transactions
Revises: 001_create_documents
Create Date: 2026-10-18

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '002_ledger_transactions'
down_revision: Union[str, None] = '001_create_documents'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    if 'ledger_transactions' in inspector.get_table_names():
        return

    op.create_table(
        'ledger_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('request_id', sa.String(length=64), nullable=True),
        sa.Column('bucket', sa.String(length=10), nullable=False),
        sa.Column('delta', sa.Numeric(6, 2), nullable=False),
        sa.Column('action', sa.String(length=30), nullable=False),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('actor_id', sa.String(length=64), nullable=True),
        sa.Column('actor_name', sa.String(length=255), nullable=True),
        sa.Column(
            'action_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('CURRENT_TIMESTAMP'),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_ledger_transactions_id'), 'ledger_transactions', ['id'], unique=False)
    op.create_index(op.f('ix_ledger_transactions_user_id'), 'ledger_transactions', ['user_id'], unique=False)
    op.create_index(op.f('ix_ledger_transactions_request_id'), 'ledger_transactions', ['request_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_ledger_transactions_request_id'), table_name='ledger_transactions')
    op.drop_index(op.f('ix_ledger_transactions_user_id'), table_name='ledger_transactions')
    op.drop_index(op.f('ix_ledger_transactions_id'), table_name='ledger_transactions')
    op.drop_table('ledger_transactions')
