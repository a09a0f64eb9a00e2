"""
================================================================================
CouchQueue v1.0 - Local Content Store
================================================================================
Fuzzy full-text search and upsert-by-provider-key over the content tables.

  - search_trigram(): pg_trgm similarity across title / original title /
    overview / tagline, with overview and tagline discounted.
  - upsert_content(): single INSERT ... ON CONFLICT DO UPDATE keyed by
    (provider_name, provider_id). The local id is never rewritten.
  - upsert_season_summary(): same pattern for the series_details row.

All methods are synchronous; the async pipeline runs them in an executor.
Query failures propagate unchanged.
================================================================================
"""

from datetime import datetime, timezone
from typing import Optional, List, Dict, Any
import logging
import uuid

from sqlalchemy import select, func, or_, cast, String
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .database import get_db_session, get_session_factory
from .models import Content, SeriesDetails
from .metadata.models import (
    ContentRecord, ContentKind, ProviderName, SearchCandidate, Provenance
)
from .search.trigram import DEFAULT_THRESHOLD

logger = logging.getLogger(__name__)

# Channel weights for the combined similarity score
OVERVIEW_WEIGHT = 0.3
TAGLINE_WEIGHT = 0.5

# Columns rewritten on every upsert of an existing key
_DESCRIPTIVE_COLUMNS = (
    'title', 'original_title', 'kind', 'overview', 'tagline', 'genres',
    'original_language', 'release_date', 'year', 'runtime', 'poster_path',
    'backdrop_path', 'imdb_id',
)


def _row_values(record: ContentRecord) -> Dict[str, Any]:
    """Map a ContentRecord onto content table columns."""
    return {
        'provider_name': ProviderName(record.provider_name).value,
        'provider_id': str(record.provider_id),
        'title': record.title,
        'original_title': record.original_title,
        'kind': ContentKind(record.kind).value,
        'overview': record.overview,
        'tagline': record.tagline,
        'genres': list(record.genres or []),
        'original_language': record.original_language,
        'release_date': record.release_date,
        'year': record.year,
        'runtime': record.runtime_minutes,
        'poster_path': record.poster_path,
        'backdrop_path': record.backdrop_path,
        'imdb_id': record.external_cross_id,
    }


def record_from_row(row: Content) -> ContentRecord:
    """Convert a Content row (and its season summary) to a ContentRecord."""
    details = row.series_details
    return ContentRecord(
        local_id=str(row.id),
        provider_name=ProviderName(row.provider_name),
        provider_id=row.provider_id,
        title=row.title,
        original_title=row.original_title,
        kind=ContentKind(row.kind),
        overview=row.overview,
        tagline=row.tagline,
        genres=list(row.genres or []),
        original_language=row.original_language,
        release_date=row.release_date,
        year=row.year,
        runtime_minutes=row.runtime,
        poster_path=row.poster_path,
        backdrop_path=row.backdrop_path,
        external_cross_id=row.imdb_id,
        season_count=details.season_count if details else None,
        episode_count=details.episode_count if details else None,
        air_status=details.status if details else None,
        last_air_date=details.last_air_date if details else None,
    )


class ContentStore:
    """
    Local Store backed by SQLAlchemy.

    Works on PostgreSQL (pg_trgm) and SQLite (similarity() registered by
    database.create_db_engine()).
    """

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self._session_factory = session_factory

    @property
    def session_factory(self) -> sessionmaker:
        return self._session_factory or get_session_factory()

    @property
    def engine(self) -> Engine:
        return self.session_factory.kw['bind']

    def _dialect(self) -> str:
        return self.engine.dialect.name

    # =========================================================================
    # SEARCH
    # =========================================================================

    def _similarity(self, column, query: str):
        return func.coalesce(func.similarity(column, query), 0.0)

    def _trigram_match(self, column, query: str, dialect: str):
        """`column % query` on PostgreSQL, explicit threshold elsewhere."""
        if dialect == 'postgresql':
            return column.op('%')(query)
        return func.similarity(column, query) >= DEFAULT_THRESHOLD

    def search_trigram(
        self,
        query: str,
        filters: Optional[Dict[str, Any]] = None,
        limit: int = 10,
        min_similarity: float = 0.3
    ) -> List[SearchCandidate]:
        """
        Fuzzy search by trigram similarity.

        Args:
            query: Search text
            filters: Optional {'kind', 'year', 'genres', 'include_ids'}.
                genres match on any overlap, but a row whose title or
                original title matches the query is never excluded by them.
                include_ids are local ids that bypass the trigram, similarity
                and genre cut-offs (rows just cached for this query).
            limit: Maximum rows to return
            min_similarity: Floor for the combined score

        Returns:
            Candidates ordered by similarity desc, then year desc
        """
        filters = filters or {}
        dialect = self._dialect()
        greatest = func.greatest if dialect == 'postgresql' else func.max

        score = greatest(
            self._similarity(Content.title, query),
            self._similarity(Content.original_title, query),
            self._similarity(Content.overview, query) * OVERVIEW_WEIGHT,
            self._similarity(Content.tagline, query) * TAGLINE_WEIGHT,
        )

        title_match = or_(
            self._trigram_match(Content.title, query, dialect),
            self._trigram_match(Content.original_title, query, dialect),
        )
        eligible = or_(
            title_match,
            self._trigram_match(Content.overview, query, dialect),
            self._trigram_match(Content.tagline, query, dialect),
        )
        above_floor = score >= min_similarity

        title_or_included = title_match
        include_ids = [str(i) for i in (filters.get('include_ids') or []) if i]
        if include_ids:
            included = Content.id.in_(include_ids)
            eligible = or_(eligible, included)
            above_floor = or_(above_floor, included)
            title_or_included = or_(title_match, included)

        stmt = (
            select(Content, score.label('similarity'))
            .where(eligible)
            .where(above_floor)
        )

        kind = filters.get('kind')
        if kind:
            stmt = stmt.where(Content.kind == ContentKind(kind).value)

        year = filters.get('year')
        if year:
            stmt = stmt.where(Content.year == int(year))

        genres = [g for g in (filters.get('genres') or []) if g]
        if genres:
            # Genres are stored as a JSON list; any overlap qualifies
            genre_match = or_(*[
                cast(Content.genres, String).ilike(f'%"{genre}"%')
                for genre in genres
            ])
            stmt = stmt.where(or_(genre_match, title_or_included))

        stmt = stmt.order_by(score.desc(), Content.year.desc()).limit(limit)

        with get_db_session(self.session_factory) as session:
            rows = session.execute(stmt).all()
            return [
                SearchCandidate(
                    record=record_from_row(row),
                    similarity=float(sim or 0.0),
                    provenance=Provenance.LOCAL,
                )
                for row, sim in rows
            ]

    # =========================================================================
    # UPSERTS
    # =========================================================================

    def _insert(self):
        if self._dialect() == 'postgresql':
            return postgresql.insert
        return sqlite.insert

    def upsert_content(self, record: ContentRecord) -> ContentRecord:
        """
        Insert or update a content row keyed by (provider_name, provider_id).

        Returns the stored record with its stable local_id. Season data on a
        SERIES record is written through upsert_season_summary().
        """
        values = _row_values(record)
        now = datetime.now(timezone.utc)
        insert = self._insert()

        stmt = insert(Content.__table__).values(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            **values
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=['provider_name', 'provider_id'],
            set_={
                **{column: stmt.excluded[column] for column in _DESCRIPTIVE_COLUMNS},
                'updated_at': now,
            }
        )

        with get_db_session(self.session_factory) as session:
            session.execute(stmt)
            row = session.execute(
                select(Content).where(
                    Content.provider_name == values['provider_name'],
                    Content.provider_id == values['provider_id'],
                )
            ).scalar_one()
            local_id = str(row.id)

        if record.has_season_data:
            self.upsert_season_summary(
                local_id,
                record.season_count,
                record.episode_count,
                record.air_status,
                record.last_air_date,
            )

        stored = self.get_by_key(values['provider_name'], values['provider_id'])
        logger.debug(f"Upserted {values['provider_name']}:{values['provider_id']} as {local_id}")
        return stored

    def upsert_season_summary(
        self,
        local_id: str,
        season_count: Optional[int],
        episode_count: Optional[int],
        air_status: Optional[str],
        last_air_date: Optional[str]
    ) -> None:
        """Insert or update the single season summary row of a series."""
        insert = self._insert()
        stmt = insert(SeriesDetails.__table__).values(
            id=str(uuid.uuid4()),
            content_id=local_id,
            season_count=season_count,
            episode_count=episode_count,
            status=air_status,
            last_air_date=last_air_date,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=['content_id'],
            set_={
                'season_count': stmt.excluded.season_count,
                'episode_count': stmt.excluded.episode_count,
                'status': stmt.excluded.status,
                'last_air_date': stmt.excluded.last_air_date,
            }
        )
        with get_db_session(self.session_factory) as session:
            session.execute(stmt)

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def get_by_key(self, provider_name, provider_id: str) -> Optional[ContentRecord]:
        """Fetch a stored record by its provider identity."""
        with get_db_session(self.session_factory) as session:
            row = session.execute(
                select(Content).where(
                    Content.provider_name == ProviderName(provider_name).value,
                    Content.provider_id == str(provider_id),
                )
            ).scalar_one_or_none()
            return record_from_row(row) if row else None

    def count(self) -> int:
        """Total number of cached content rows."""
        with get_db_session(self.session_factory) as session:
            return session.execute(select(func.count(Content.id))).scalar_one()

    def count_season_summaries(self, local_id: str) -> int:
        """Number of season summary rows attached to a content row."""
        with get_db_session(self.session_factory) as session:
            return session.execute(
                select(func.count(SeriesDetails.id)).where(SeriesDetails.content_id == local_id)
            ).scalar_one()
