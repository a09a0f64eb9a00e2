"""
================================================================================
CouchQueue v1.0 - Database Models
================================================================================
SQLAlchemy models for the cached content catalogue.

ARCHITECTURE:
  - Content: one row per provider title, unique on
    (provider_name, provider_id). The primary key is the stable local id that
    list items reference.
  - SeriesDetails: optional season summary for a SERIES row (at most one per
    content, unique on content_id).

List items, positions and status history belong to list management and are
not modelled here.
================================================================================
"""

from datetime import datetime, timezone
import uuid
import os
from sqlalchemy import (
    Column, String, Integer, DateTime, ForeignKey, Text, JSON, Enum,
    UniqueConstraint, Index
)
from sqlalchemy.orm import relationship, declarative_base, declared_attr
from sqlalchemy.dialects.postgresql import UUID as PG_UUID

# UUID type - use String for SQLite, UUID for PostgreSQL
def UUIDType():
    """Returns appropriate UUID column type for current database."""
    db_url = os.environ.get('DATABASE_URL', '')
    if db_url.startswith('postgres://') or db_url.startswith('postgresql://'):
        return PG_UUID(as_uuid=False)
    return String(36)  # SQLite fallback - stores UUID as string

Base = declarative_base()

# =============================================================================
# MIXINS
# =============================================================================

class TimestampMixin:
    """Adds created_at and updated_at timestamps to models."""
    @declared_attr
    def created_at(cls):
        return Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    @declared_attr
    def updated_at(cls):
        return Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)

# =============================================================================
# CONTENT CATALOGUE
# =============================================================================

class Content(Base, TimestampMixin):
    """
    Cached title metadata.
    Created on the first successful provider detail fetch, updated in place
    on every later fetch of the same (provider_name, provider_id).
    """
    __tablename__ = 'content'

    id = Column(UUIDType(), primary_key=True, default=lambda: str(uuid.uuid4()))
    provider_name = Column(String(20), nullable=False, default='TMDB')  # e.g. 'TMDB'
    provider_id = Column(String(64), nullable=False)  # e.g. '27205'

    title = Column(String(500), nullable=False, index=True)
    original_title = Column(String(500))
    kind = Column(Enum('MOVIE', 'SERIES', name='content_kind'), nullable=False)
    overview = Column(Text)
    tagline = Column(String(500))
    genres = Column(JSON, default=list)
    original_language = Column(String(10))
    release_date = Column(String(10))  # ISO date string as supplied by provider
    year = Column(Integer, nullable=False, index=True)
    runtime = Column(Integer)  # minutes (mean episode runtime for series)
    poster_path = Column(String(255))
    backdrop_path = Column(String(255))
    imdb_id = Column(String(20))

    # Relationships
    series_details = relationship(
        "SeriesDetails",
        back_populates="content",
        uselist=False,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint('provider_name', 'provider_id', name='uq_content_provider_key'),
        Index('idx_content_kind_year', 'kind', 'year'),
    )


class SeriesDetails(Base):
    """Season summary for a SERIES content row."""
    __tablename__ = 'series_details'

    id = Column(UUIDType(), primary_key=True, default=lambda: str(uuid.uuid4()))
    content_id = Column(UUIDType(), ForeignKey('content.id', ondelete='CASCADE'), nullable=False, unique=True)

    season_count = Column(Integer)
    episode_count = Column(Integer)
    status = Column(String(50))  # free-text provider status, e.g. 'Returning Series'
    last_air_date = Column(String(10))

    content = relationship("Content", back_populates="series_details")
