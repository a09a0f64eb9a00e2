import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from couchqueue_app.metadata.manager import MetadataManager
from couchqueue_app.metadata.models import ContentKind
from couchqueue_app.search.config import DiscoveryConfig
from couchqueue_app.search.smart_search import DiscoverySearch

from .conftest import INCEPTION_SEARCH

INCEPTION_HIT = INCEPTION_SEARCH[0]


def _search(store, fake_tmdb, text, kind=None, config=None, api_key='a' * 32):
    manager = MetadataManager(fake_tmdb.provider(api_key=api_key))
    search = DiscoverySearch(store, manager, config)

    async def _go():
        try:
            return await search.search(text, kind=kind)
        finally:
            await manager.close()

    return asyncio.run(_go())


def test_inception_end_to_end(store, fake_tmdb):
    first = _search(store, fake_tmdb, "inception")

    assert [r.title for r in first] == ["Inception", "Inception: The Cobol Job"]
    assert all(r.local_id for r in first)
    assert fake_tmdb.count('/3/search/multi') == 1
    assert len(fake_tmdb.detail_paths()) == 2
    assert store.count() == 2

    second = _search(store, fake_tmdb, "inception")

    assert second[0].local_id == first[0].local_id
    assert fake_tmdb.count('/3/search/multi') == 1
    assert len(fake_tmdb.detail_paths()) == 2
    assert store.count() == 2


def test_confident_local_hit_skips_provider(store, fake_tmdb, make_record):
    store.upsert_content(make_record(27205, "Inception"))

    results = _search(store, fake_tmdb, "Inception")

    assert [r.provider_id for r in results] == ["27205"]
    assert fake_tmdb.requests == []


def test_provider_failure_degrades_to_local(store, fake_tmdb, make_record):
    store.upsert_content(make_record(1, "Inception Dreams", year=1999))
    fake_tmdb.fail_search = True

    results = _search(store, fake_tmdb, "inception")

    assert [r.title for r in results] == ["Inception Dreams"]
    assert store.count() == 1


def test_missing_credential_degrades_to_local(store, fake_tmdb, make_record):
    store.upsert_content(make_record(1, "Inception Dreams", year=1999))

    results = _search(store, fake_tmdb, "inception", api_key='')

    assert [r.title for r in results] == ["Inception Dreams"]
    assert fake_tmdb.requests == []


def test_provider_failure_with_empty_store_returns_nothing(store, fake_tmdb):
    fake_tmdb.fail_search = True

    assert _search(store, fake_tmdb, "inception") == []


def test_failed_detail_does_not_block_siblings(store, fake_tmdb):
    fake_tmdb.fail_details.add(('movie', '64956'))

    results = _search(store, fake_tmdb, "inception")

    assert [r.provider_id for r in results] == ["27205"]
    assert store.count() == 1


def test_cached_results_are_not_duplicated(store, fake_tmdb, make_record):
    store.upsert_content(make_record(27205, "Inception Old Title", year=2010))

    results = _search(store, fake_tmdb, "inception")

    ids = [r.provider_id for r in results]
    assert sorted(ids) == ["27205", "64956"]
    assert len(ids) == len(set(ids))
    assert store.count() == 2
    assert store.get_by_key("TMDB", "27205").title == "Inception"


def test_kind_filter_limits_provider_and_local(store, fake_tmdb, make_record):
    store.upsert_content(make_record(99, "Breaking Bad Movie Night", year=2001))

    results = _search(store, fake_tmdb, "breaking bad", kind=ContentKind.SERIES)

    assert [r.provider_id for r in results] == ["tv/1396"]
    assert results[0].season_count == 5
    assert fake_tmdb.detail_paths() == ['/3/tv/1396']


def test_union_strategy_merges_local_and_fresh(store, fake_tmdb, make_record):
    store.upsert_content(make_record(1, "Inception Dreams", year=1999))
    config = DiscoveryConfig(merge_strategy='union')

    results = _search(store, fake_tmdb, "inception", config=config)

    titles = [r.title for r in results]
    assert titles[0] == "Inception Dreams"
    assert set(titles) == {"Inception Dreams", "Inception", "Inception: The Cobol Job"}


def test_page_size_caps_results(store, fake_tmdb):
    config = DiscoveryConfig(page_size=1)

    results = _search(store, fake_tmdb, "inception", config=config)

    assert [r.title for r in results] == ["Inception"]
    assert len(fake_tmdb.detail_paths()) == 1


def test_local_store_errors_propagate(store, fake_tmdb, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(store, "search_trigram", broken)

    with pytest.raises(OperationalError):
        _search(store, fake_tmdb, "inception")


def test_config_rejects_unknown_strategy():
    with pytest.raises(ValueError):
        DiscoveryConfig(merge_strategy='interleave')


def test_config_from_env(monkeypatch):
    monkeypatch.setenv('SEARCH_PAGE_SIZE', '5')
    monkeypatch.setenv('SEARCH_CONFIDENCE_FLOOR', '0.8')
    monkeypatch.setenv('SEARCH_MERGE_STRATEGY', 'UNION')

    config = DiscoveryConfig.from_env()

    assert config.page_size == 5
    assert config.confidence_floor == 0.8
    assert config.merge_strategy == 'union'
    assert config.requery_min_similarity == 0.0


def test_cache_writer_drops_failed_upserts(store, make_record, monkeypatch):
    from couchqueue_app.search.reconcile import CacheWriter

    real_upsert = store.upsert_content

    def flaky(record):
        if record.provider_id == "2":
            raise OperationalError("INSERT", {}, Exception("constraint failed"))
        return real_upsert(record)

    monkeypatch.setattr(store, "upsert_content", flaky)

    stored = asyncio.run(CacheWriter(store).upsert_many([
        make_record(1, "One"), make_record(2, "Two"), make_record(3, "Three"),
    ]))

    assert [r.provider_id for r in stored] == ["1", "3"]
    assert all(r.local_id for r in stored)
    assert store.count() == 2


def test_concurrent_upserts_of_one_title_share_a_row(store, make_record):
    from couchqueue_app.search.reconcile import CacheWriter

    writer = CacheWriter(store)

    async def _race():
        return await asyncio.gather(
            writer.upsert(make_record(27205, "Inception")),
            writer.upsert(make_record(27205, "Inception")),
        )

    first, second = asyncio.run(_race())

    assert first.local_id == second.local_id
    assert store.count() == 1


WAR_DOGS_DETAIL = {
    'id': 308266,
    'title': 'War Dogs',
    'original_title': 'War Dogs',
    'overview': 'Two friends in their early 20s become international arms dealers.',
    'genres': [{'id': 35, 'name': 'Comedy'}, {'id': 80, 'name': 'Crime'}, {'id': 18, 'name': 'Drama'}],
    'release_date': '2016-08-17',
    'runtime': 114,
}


def test_title_with_genre_word_is_returned_and_cached_once(store, fake_tmdb):
    fake_tmdb.search_results['war dogs'] = [{
        'id': 308266, 'media_type': 'movie', 'title': 'War Dogs',
        'original_title': 'War Dogs', 'release_date': '2016-08-17', 'genre_ids': [35, 80, 18],
    }]
    fake_tmdb.details[('movie', '308266')] = WAR_DOGS_DETAIL

    first = _search(store, fake_tmdb, "War Dogs")
    second = _search(store, fake_tmdb, "War Dogs")

    assert [r.title for r in first] == ["War Dogs"]
    assert [r.local_id for r in second] == [first[0].local_id]
    assert fake_tmdb.count('/3/search/multi') == 1
    assert store.count() == 1


def test_requery_keeps_titles_matched_by_alternate_name(store, fake_tmdb):
    fake_tmdb.search_results['sen to chihiro'] = [{
        'id': 129, 'media_type': 'movie', 'title': 'Spirited Away',
        'original_title': '千と千尋の神隠し', 'release_date': '2001-07-20', 'genre_ids': [16],
    }]
    fake_tmdb.details[('movie', '129')] = {
        'id': 129,
        'title': 'Spirited Away',
        'original_title': '千と千尋の神隠し',
        'overview': 'A young girl wanders into a world ruled by gods and witches.',
        'genres': [{'id': 16, 'name': 'Animation'}],
        'release_date': '2001-07-20',
        'runtime': 125,
    }

    results = _search(store, fake_tmdb, "sen to chihiro")

    assert [r.title for r in results] == ["Spirited Away"]
    assert results[0].local_id
    assert store.count() == 1


def test_movie_and_series_sharing_a_tmdb_id_are_both_cached(store, fake_tmdb):
    fake_tmdb.search_results['dark'] = [
        {'id': 70523, 'media_type': 'tv', 'name': 'Dark', 'first_air_date': '2017-12-01'},
        {'id': 70523, 'media_type': 'movie', 'title': 'Dark Movie', 'release_date': '2015-03-01'},
    ]
    fake_tmdb.details[('tv', '70523')] = {
        'id': 70523, 'name': 'Dark', 'first_air_date': '2017-12-01',
        'episode_run_time': [60], 'number_of_seasons': 3, 'number_of_episodes': 26, 'status': 'Ended',
    }
    fake_tmdb.details[('movie', '70523')] = {
        'id': 70523, 'title': 'Dark Movie', 'release_date': '2015-03-01', 'runtime': 90,
    }

    results = _search(store, fake_tmdb, "dark")

    assert sorted((r.title, r.kind) for r in results) == [
        ("Dark", ContentKind.SERIES), ("Dark Movie", ContentKind.MOVIE),
    ]
    assert store.count() == 2
    assert store.get_by_key("TMDB", "tv/70523").season_count == 3
    assert store.get_by_key("TMDB", "70523").season_count is None
    assert sorted(fake_tmdb.detail_paths()) == ['/3/movie/70523', '/3/tv/70523']


def test_malformed_provider_hit_is_skipped(store, fake_tmdb):
    fake_tmdb.search_results['inception'] = [
        dict(INCEPTION_HIT, genre_ids=7),
        {'id': 1, 'media_type': 'movie', 'title': None},
    ]

    results = _search(store, fake_tmdb, "inception")

    assert [r.provider_id for r in results] == ["27205"]
    assert fake_tmdb.detail_paths() == ['/3/movie/27205']


def test_unexpected_search_payload_degrades_to_local(store, fake_tmdb, make_record):
    store.upsert_content(make_record(1, "Inception Dreams", year=1999))
    fake_tmdb.search_results['inception'] = "not a list"

    results = _search(store, fake_tmdb, "inception")

    assert [r.title for r in results] == ["Inception Dreams"]
    assert fake_tmdb.detail_paths() == []
