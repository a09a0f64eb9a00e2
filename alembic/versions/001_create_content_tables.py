"""Create content and series_details tables

Revision ID: 001_create_content_tables
Revises:
Create Date: 2026-10-19

Migration Strategy:
1. Enable pg_trgm (PostgreSQL only)
2. Create content with the (provider_name, provider_id) unique key
3. Create series_details, one row per SERIES content
4. GIN trigram indexes on the searched text columns (PostgreSQL only)
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_create_content_tables'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TRIGRAM_COLUMNS = ('title', 'original_title', 'overview', 'tagline')


def _is_postgres() -> bool:
    return op.get_bind().dialect.name == 'postgresql'


def upgrade() -> None:
    """Upgrade schema - content catalogue."""

    # 1. Trigram support
    if _is_postgres():
        op.execute("CREATE EXTENSION IF NOT EXISTS pg_trgm")

    # 2. Content
    op.create_table('content',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('provider_name', sa.String(length=20), nullable=False, server_default='TMDB'),
        sa.Column('provider_id', sa.String(length=64), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('original_title', sa.String(length=500), nullable=True),
        sa.Column('kind', sa.Enum('MOVIE', 'SERIES', name='content_kind'), nullable=False),
        sa.Column('overview', sa.Text(), nullable=True),
        sa.Column('tagline', sa.String(length=500), nullable=True),
        sa.Column('genres', sa.JSON(), nullable=True),
        sa.Column('original_language', sa.String(length=10), nullable=True),
        sa.Column('release_date', sa.String(length=10), nullable=True),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('runtime', sa.Integer(), nullable=True),
        sa.Column('poster_path', sa.String(length=255), nullable=True),
        sa.Column('backdrop_path', sa.String(length=255), nullable=True),
        sa.Column('imdb_id', sa.String(length=20), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('provider_name', 'provider_id', name='uq_content_provider_key')
    )
    op.create_index(op.f('ix_content_title'), 'content', ['title'], unique=False)
    op.create_index(op.f('ix_content_year'), 'content', ['year'], unique=False)
    op.create_index('idx_content_kind_year', 'content', ['kind', 'year'], unique=False)

    # 3. Season summaries
    op.create_table('series_details',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('content_id', sa.String(length=36), nullable=False),
        sa.Column('season_count', sa.Integer(), nullable=True),
        sa.Column('episode_count', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=True),
        sa.Column('last_air_date', sa.String(length=10), nullable=True),
        sa.ForeignKeyConstraint(['content_id'], ['content.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('content_id')
    )

    # 4. Trigram indexes
    if _is_postgres():
        for column in TRIGRAM_COLUMNS:
            op.execute(
                f"CREATE INDEX IF NOT EXISTS idx_content_{column}_trgm "
                f"ON content USING gin ({column} gin_trgm_ops)"
            )


def downgrade() -> None:
    """Downgrade schema - drop content catalogue."""
    if _is_postgres():
        for column in TRIGRAM_COLUMNS:
            op.execute(f"DROP INDEX IF EXISTS idx_content_{column}_trgm")

    op.drop_table('series_details')
    op.drop_index('idx_content_kind_year', table_name='content')
    op.drop_index(op.f('ix_content_year'), table_name='content')
    op.drop_index(op.f('ix_content_title'), table_name='content')
    op.drop_table('content')
    sa.Enum(name='content_kind').drop(op.get_bind(), checkfirst=True)
