"""
================================================================================
CouchQueue v1.0 - Content API Routes
================================================================================
Flask blueprint for content discovery.

ENDPOINTS:
  GET /api/content/search?q=<text>&type=MOVIE|SERIES

Searches the local catalogue first and falls through to TMDB when local
results are thin; anything fetched from TMDB is cached for next time.
================================================================================
"""

import asyncio
import logging

from flask import Blueprint, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import get_services
from ..log import log
from ..metadata.manager import MetadataManager
from ..rate_limit import limit_heavy
from ..search.smart_search import DiscoverySearch
from .validators import validate_search_query, validate_content_kind

content_bp = Blueprint('content_api', __name__, url_prefix='/api/content')


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _error(message: str, detail: str = None, code: str = 'invalid_request', status: int = 400):
    payload = {'error': message, 'code': code}
    if detail:
        payload['detail'] = detail
    return jsonify(payload), status


def run_async(coro):
    """
    Run async coroutine in sync Flask context.

    Flask routes are sync, but the discovery pipeline is async.
    """
    try:
        loop = asyncio.get_event_loop()
    except RuntimeError:
        loop = None

    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)

    return loop.run_until_complete(coro)


async def _discover(services, query: str, kind):
    manager = MetadataManager(services.provider_factory(), genre_cache=services.genre_cache)
    try:
        search = DiscoverySearch(services.store, manager, services.config)
        return await search.search(query, kind=kind)
    finally:
        await manager.close()


# =============================================================================
# ROUTES
# =============================================================================

@content_bp.route('/search', methods=['GET'])
@limit_heavy
def search_content():
    """
    Search for movies and series.

    Query params:
        q: Search text (at least 2 characters)
        type: Optional MOVIE or SERIES

    Returns:
        {"results": [ContentRecord...], "count": n}
    """
    query, error = validate_search_query(request.args.get('q'))
    if error:
        return _error(error)

    kind, error = validate_content_kind(request.args.get('type'))
    if error:
        return _error(error, code='invalid_type')

    services = get_services()
    try:
        results = run_async(_discover(services, query, kind))
    except SQLAlchemyError as exc:
        log(f"❌ Content search failed for '{query}': {exc}", logging.ERROR)
        return _error('Failed to search for content', code='search_failed', status=500)

    log(f"🔍 '{query}' -> {len(results)} results")
    return jsonify({
        'results': [record.to_dict() for record in results],
        'count': len(results),
    })
