"""create shared_links table

Revision ID: 5f2c9a1d7b30
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '5f2c9a1d7b30'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Share links: slug -> board with absolute expiry
    op.create_table(
        'shared_links',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('board_id', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('expires_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('access_count', sa.Integer(), server_default='0', nullable=False),
        sa.PrimaryKeyConstraint('id'),
        # Uniqueness check and insert happen atomically through this constraint
        sa.UniqueConstraint('slug', name='uq_shared_links_slug'),
    )
    # Index for expiry sweeps and active-link lookups
    op.create_index('idx_shared_links_expires', 'shared_links', ['expires_at'])


def downgrade() -> None:
    op.drop_index('idx_shared_links_expires', table_name='shared_links')
    op.drop_table('shared_links')
