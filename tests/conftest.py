import re

import httpx
import pytest

from couchqueue_app.database import create_db_engine, make_session_factory, init_database
from couchqueue_app.metadata.models import ContentRecord, ContentKind, ProviderName
from couchqueue_app.metadata.providers.tmdb import TMDBProvider
from couchqueue_app.store import ContentStore


INCEPTION_DETAIL = {
    'id': 27205,
    'title': 'Inception',
    'original_title': 'Inception',
    'overview': 'Cobb, a skilled thief who commits corporate espionage by infiltrating the subconscious of his targets.',
    'tagline': 'Your mind is the scene of the crime.',
    'genres': [
        {'id': 28, 'name': 'Action'},
        {'id': 878, 'name': 'Science Fiction'},
        {'id': 12, 'name': 'Adventure'},
    ],
    'original_language': 'en',
    'release_date': '2010-07-15',
    'runtime': 148,
    'poster_path': '/oYuLEt3zVCKq57qu2F8dT7NIa6f.jpg',
    'backdrop_path': '/s3TBrRGB1iav7gFOCNx3H31MoES.jpg',
    'imdb_id': 'tt1375666',
}

COBOL_JOB_DETAIL = {
    'id': 64956,
    'title': 'Inception: The Cobol Job',
    'original_title': 'Inception: The Cobol Job',
    'overview': 'A motion comic prequel to Inception.',
    'tagline': '',
    'genres': [{'id': 16, 'name': 'Animation'}],
    'original_language': 'en',
    'release_date': '2010-12-07',
    'runtime': 15,
    'poster_path': None,
    'backdrop_path': None,
    'imdb_id': None,
}

INCEPTION_SEARCH = [
    {
        'id': 27205, 'media_type': 'movie', 'title': 'Inception',
        'original_title': 'Inception', 'release_date': '2010-07-15', 'genre_ids': [28, 878, 12],
    },
    {
        'id': 525, 'media_type': 'person', 'name': 'Christopher Nolan',
    },
    {
        'id': 64956, 'media_type': 'movie', 'title': 'Inception: The Cobol Job',
        'original_title': 'Inception: The Cobol Job', 'release_date': '2010-12-07', 'genre_ids': [16],
    },
]

BREAKING_BAD_DETAIL = {
    'id': 1396,
    'name': 'Breaking Bad',
    'original_name': 'Breaking Bad',
    'overview': 'A chemistry teacher diagnosed with inoperable lung cancer turns to manufacturing methamphetamine.',
    'tagline': 'Change the equation.',
    'genres': [{'id': 18, 'name': 'Drama'}, {'id': 80, 'name': 'Crime'}],
    'original_language': 'en',
    'first_air_date': '2008-01-20',
    'last_air_date': '2013-09-29',
    'episode_run_time': [45, 47, 49],
    'number_of_seasons': 5,
    'number_of_episodes': 62,
    'status': 'Ended',
    'poster_path': '/ztkUQFLlC19CCMYHW9o1zWhJRNq.jpg',
    'backdrop_path': '/tsRy63Mu5cu8etL1X7ZLyf7UP1M.jpg',
    'external_ids': {'imdb_id': 'tt0903747', 'tvdb_id': 81189},
}

BREAKING_BAD_SEARCH = [
    {
        'id': 1396, 'media_type': 'tv', 'name': 'Breaking Bad', 'original_name': 'Breaking Bad',
        'first_air_date': '2008-01-20', 'genre_ids': [18, 80],
    },
    {
        'id': 559969, 'media_type': 'movie', 'title': 'El Camino: A Breaking Bad Movie',
        'original_title': 'El Camino: A Breaking Bad Movie', 'release_date': '2019-10-11', 'genre_ids': [80, 18],
    },
]

GENRES = {
    'movie': [
        {'id': 28, 'name': 'Action'},
        {'id': 27, 'name': 'Horror'},
        {'id': 878, 'name': 'Science Fiction'},
    ],
    'tv': [
        {'id': 18, 'name': 'Drama'},
        {'id': 80, 'name': 'Crime'},
    ],
}

_DETAIL_RE = re.compile(r'^/3/(movie|tv)/(\d+)$')


class FakeTMDB:
    """In-memory TMDB API served through httpx.MockTransport."""

    def __init__(self):
        self.search_results = {
            'inception': list(INCEPTION_SEARCH),
            'breaking bad': list(BREAKING_BAD_SEARCH),
        }
        self.details = {
            ('movie', '27205'): INCEPTION_DETAIL,
            ('movie', '64956'): COBOL_JOB_DETAIL,
            ('tv', '1396'): BREAKING_BAD_DETAIL,
        }
        self.genres = GENRES
        self.fail_search = False
        self.fail_details = set()
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == '/3/search/multi':
            if self.fail_search:
                return httpx.Response(503, json={'status_message': 'Service unavailable'})
            query = request.url.params.get('query', '').lower()
            return httpx.Response(200, json={
                'page': 1,
                'results': self.search_results.get(query, []),
            })

        match = _DETAIL_RE.match(path)
        if match:
            key = (match.group(1), match.group(2))
            if key in self.fail_details:
                return httpx.Response(500, json={'status_message': 'Internal error'})
            if key in self.details:
                return httpx.Response(200, json=self.details[key])

        if path in ('/3/genre/movie/list', '/3/genre/tv/list'):
            return httpx.Response(200, json={'genres': self.genres[path.split('/')[3]]})

        return httpx.Response(404, json={'status_message': 'The resource you requested could not be found.'})

    def provider(self, api_key: str = 'a' * 32) -> TMDBProvider:
        return TMDBProvider(api_key=api_key, transport=httpx.MockTransport(self.handler))

    def count(self, path: str) -> int:
        return sum(1 for r in self.requests if r.url.path == path)

    def detail_paths(self):
        return [r.url.path for r in self.requests if _DETAIL_RE.match(r.url.path)]


@pytest.fixture
def fake_tmdb():
    return FakeTMDB()


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'couchqueue-test.db'}")
    init_database(engine=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return ContentStore(make_session_factory(engine))


@pytest.fixture
def make_record():
    def _make(provider_id, title, kind=ContentKind.MOVIE, year=2010, **kwargs):
        return ContentRecord(
            provider_name=ProviderName.TMDB,
            provider_id=str(provider_id),
            title=title,
            kind=kind,
            year=year,
            **kwargs
        )
    return _make
