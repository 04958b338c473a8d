# sendlink/models/share_link_table.py
# Model for share links (slug -> board mapping with absolute expiry)

from sqlalchemy import Table, Column, Integer, String, TIMESTAMP, Index, UniqueConstraint

from sendlink.db.base import metadata


shared_links = Table(
    'shared_links',
    metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('slug', String(255), nullable=False),
    Column('board_id', String(255), nullable=False),  # weak reference, never validated
    Column('created_at', TIMESTAMP(timezone=True), nullable=False),
    Column('expires_at', TIMESTAMP(timezone=True), nullable=False),
    Column('access_count', Integer, nullable=False, server_default='0'),
    UniqueConstraint('slug', name='uq_shared_links_slug'),
    Index('idx_shared_links_expires', 'expires_at'),
)
