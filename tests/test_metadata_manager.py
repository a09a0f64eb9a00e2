import asyncio

import pytest

from couchqueue_app.metadata.genres import GenreCache
from couchqueue_app.metadata.manager import MetadataManager
from couchqueue_app.metadata.models import ContentKind, ParsedQuery
from couchqueue_app.metadata.providers.base import ProviderError

DUNE_SEARCH = [
    {'id': 841, 'media_type': 'movie', 'title': 'Dune', 'release_date': '1984-12-14', 'genre_ids': [878]},
    {'id': 438631, 'media_type': 'movie', 'title': 'Dune', 'release_date': '2021-09-15', 'genre_ids': [878]},
    {'id': 90228, 'media_type': 'tv', 'name': 'Dune: Prophecy', 'first_air_date': '2024-11-17', 'genre_ids': [18]},
]


def _fetch(fake_tmdb, query, genre_cache=None, **kwargs):
    manager = MetadataManager(fake_tmdb.provider(), genre_cache=genre_cache)

    async def _go():
        try:
            return await manager.fetch_candidates(query, **kwargs)
        finally:
            await manager.close()

    return asyncio.run(_go())


def test_fetches_details_for_movies_and_skips_people(fake_tmdb):
    records = _fetch(fake_tmdb, "inception")

    assert [r.title for r in records] == ["Inception", "Inception: The Cobol Job"]
    assert fake_tmdb.count('/3/search/multi') == 1
    assert sorted(fake_tmdb.detail_paths()) == ['/3/movie/27205', '/3/movie/64956']


def test_zero_budget_makes_no_calls(fake_tmdb):
    records = _fetch(fake_tmdb, "inception", max_results=10, already_have=10)

    assert records == []
    assert fake_tmdb.requests == []


def test_budget_truncates_detail_fetches(fake_tmdb):
    records = _fetch(fake_tmdb, "inception", max_results=10, already_have=9)

    assert [r.provider_id for r in records] == ["27205"]
    assert fake_tmdb.detail_paths() == ['/3/movie/27205']


def test_kind_filter(fake_tmdb):
    records = _fetch(fake_tmdb, "breaking bad", kinds=[ContentKind.SERIES])

    assert [r.kind for r in records] == [ContentKind.SERIES]
    assert fake_tmdb.detail_paths() == ['/3/tv/1396']
    assert records[0].season_count == 5


def test_failed_detail_is_dropped(fake_tmdb):
    fake_tmdb.fail_details.add(('movie', '27205'))

    records = _fetch(fake_tmdb, "inception")

    assert [r.provider_id for r in records] == ["64956"]


def test_search_failure_raises(fake_tmdb):
    fake_tmdb.fail_search = True

    with pytest.raises(ProviderError):
        _fetch(fake_tmdb, "inception")


def test_year_hint_orders_candidates(fake_tmdb):
    fake_tmdb.search_results['dune'] = DUNE_SEARCH

    records = _fetch(
        fake_tmdb, "dune",
        kinds=[ContentKind.MOVIE], max_results=1,
        hints=ParsedQuery(text="dune", year=2021),
    )

    assert fake_tmdb.detail_paths() == ['/3/movie/438631']
    assert records == []  # no detail fixture for 438631, so the item is dropped


def test_genre_hint_uses_genre_cache(fake_tmdb):
    fake_tmdb.search_results['dune'] = DUNE_SEARCH
    cache = GenreCache()

    _fetch(
        fake_tmdb, "dune", genre_cache=cache, max_results=1,
        hints=ParsedQuery(text="dune drama", genres=["Drama"]),
    )

    assert cache.is_initialized
    assert fake_tmdb.detail_paths() == ['/3/tv/90228']


def test_genre_cache_initialize_and_invalidate(fake_tmdb):
    cache = GenreCache()
    provider = fake_tmdb.provider()

    async def _go():
        try:
            loaded = await cache.initialize(provider)
            again = await cache.initialize(provider)
            return loaded, again
        finally:
            await provider.close()

    loaded, again = asyncio.run(_go())

    assert loaded and again
    assert fake_tmdb.count('/3/genre/movie/list') == 1
    assert cache.names_for(ContentKind.MOVIE, [878, 27, 99999]) == ['Science Fiction', 'Horror']
    assert cache.names_for(ContentKind.SERIES, [878]) == []

    cache.invalidate()

    assert not cache.is_initialized
    assert cache.names_for(ContentKind.MOVIE, [878]) == []
