"""
Seed the Local Store with a starter catalogue.

Runs through the same upsert path as provider results, so re-running is
harmless: existing rows are updated in place and keep their local ids.

Usage:
    python scripts/seed_content.py
"""

import os
import sys

# Add the app directory to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from couchqueue_app.database import get_engine, init_database
from couchqueue_app.metadata.mapping import series_provider_id
from couchqueue_app.metadata.models import ContentRecord, ContentKind, ProviderName
from couchqueue_app.store import ContentStore


def _movie(provider_id, title, genres, year, runtime):
    return ContentRecord(
        provider_name=ProviderName.TMDB,
        provider_id=provider_id,
        title=title,
        kind=ContentKind.MOVIE,
        genres=genres,
        year=year,
        runtime_minutes=runtime,
    )


def _series(tmdb_id, title, genres, year, season_count, episode_count, air_status):
    return ContentRecord(
        provider_name=ProviderName.TMDB,
        provider_id=series_provider_id(tmdb_id),
        title=title,
        kind=ContentKind.SERIES,
        genres=genres,
        year=year,
        season_count=season_count,
        episode_count=episode_count,
        air_status=air_status,
    )


SEED_CATALOGUE = [
    _movie('11036', 'The Notebook', ['Romance', 'Drama'], 2004, 123),
    _movie('313369', 'La La Land', ['Comedy', 'Drama', 'Music', 'Romance'], 2016, 128),
    _movie('372058', 'Your Name', ['Romance', 'Animation', 'Drama'], 2016, 106),
    _movie('4348', 'Pride & Prejudice', ['Drama', 'Romance'], 2005, 127),
    _movie('38', 'Eternal Sunshine of the Spotless Mind', ['Science Fiction', 'Drama', 'Romance'], 2004, 108),
    _movie('127380', 'About Time', ['Drama', 'Romance', 'Fantasy'], 2013, 123),
    _movie('2132', 'Before Sunrise', ['Drama', 'Romance'], 1995, 101),
    _movie('129', 'Spirited Away', ['Animation', 'Family', 'Fantasy'], 2001, 125),
    _movie('120467', 'The Grand Budapest Hotel', ['Comedy', 'Drama'], 2014, 99),
    _movie('194', 'Amélie', ['Comedy', 'Romance'], 2001, 122),
    _series('1396', 'Breaking Bad', ['Drama', 'Crime'], 2008, 5, 62, 'Ended'),
    _series('60625', 'Rick and Morty', ['Animation', 'Comedy', 'Sci-Fi & Fantasy'], 2013, 7, 71, 'Returning Series'),
]


def seed(store: ContentStore) -> int:
    """Upsert every catalogue entry. Returns the number written."""
    written = 0
    for record in SEED_CATALOGUE:
        stored = store.upsert_content(record)
        print(f"   ✅ {stored.kind.value:<6} {stored.title} ({stored.year}) -> {stored.local_id}")
        written += 1
    return written


if __name__ == "__main__":
    print("🎬 Seeding CouchQueue content catalogue...")

    engine = get_engine()
    print(f"📡 Using database at: {engine.url}")
    init_database(engine=engine)

    count = seed(ContentStore())
    print(f"✅ Seeded {count} titles ({ContentStore().count()} in store)")
