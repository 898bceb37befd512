"""Create documents table

Revision ID: 001_create_documents
Revises: 
Create Date: 2026-10-18

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_create_documents'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Skip if the table already exists (created by the app's create_all() on SQLite)
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    if 'documents' in inspector.get_table_names():
        return

    op.create_table(
        'documents',
        sa.Column('key', sa.String(length=64), nullable=False),
        sa.Column('body', sa.JSON(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False, server_default='0'),
        sa.Column(
            'updated_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('CURRENT_TIMESTAMP'),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint('key')
    )


def downgrade() -> None:
    op.drop_table('documents')
