"""create_txn_cursor_table

Revision ID: 3f1c2a9d7b4e
Revises:
Create Date: 2026-10-19 09:12:41.518203

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f1c2a9d7b4e'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # One cursor per arrangement
    op.create_table(
        'txn_cursor',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('arrangement_id', sa.String(length=36), nullable=False),
        sa.Column('ext_arrangement_id', sa.String(length=50), nullable=True),
        sa.Column('legal_entity_id', sa.String(length=36), nullable=True),
        sa.Column('last_txn_date', sa.DateTime(), nullable=True),
        sa.Column('status', sa.String(length=45), nullable=True),
        sa.Column('last_txn_ids', sa.Text(), nullable=True),
        sa.Column('additions', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('modified_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('arrangement_id', name='uq_txn_cursor_arrangement_id')
    )


def downgrade():
    op.drop_table('txn_cursor')
