"""
Rate limiting configuration for CouchQueue API.

Uses Flask-Limiter to protect API endpoints from abuse.

Rate Limit Tiers:
- Heavy: /api/content/search (may fan out to TMDB)
- Light: /api/health (cheap operations)
"""

import os
from flask import jsonify
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Initialize limiter (will be attached to app in create_app)
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000 per day", "200 per hour"],
    storage_uri=os.environ.get("RATELIMIT_STORAGE_URI", "memory://"),
    strategy="fixed-window",
    headers_enabled=True,  # Add X-RateLimit-* headers to responses
)


# ==============================================================================
# RATE LIMIT TIERS
# ==============================================================================

# Heavy operations - local search plus possible TMDB search and detail calls
HEAVY_LIMIT = "30 per minute"

# Light operations - fast reads
LIGHT_LIMIT = "120 per minute"


# ==============================================================================
# RATE LIMIT DECORATORS
# ==============================================================================

def limit_heavy(f):
    """Apply heavy rate limit to expensive operations like search."""
    return limiter.limit(HEAVY_LIMIT)(f)


def limit_light(f):
    """Apply light rate limit to cheap operations."""
    return limiter.limit(LIGHT_LIMIT)(f)


# ==============================================================================
# ERROR HANDLER
# ==============================================================================

def rate_limit_exceeded_handler(e):
    """JSON body for 429 responses (the API has no HTML pages)."""
    retry_after = e.retry_after if hasattr(e, 'retry_after') else 60

    response = jsonify({
        "error": "Rate limit exceeded",
        "message": str(e.description),
        "retry_after": retry_after
    })
    response.status_code = 429
    response.headers['Retry-After'] = str(retry_after)
    return response


# ==============================================================================
# INITIALIZATION
# ==============================================================================

def init_rate_limiting(app):
    """
    Initialize rate limiting for a Flask app.

    Call this in create_app() after app configuration.
    """
    limiter.init_app(app)

    # Register custom error handler
    app.errorhandler(429)(rate_limit_exceeded_handler)

    if app.config.get('DISABLE_RATE_LIMITING'):
        limiter.enabled = False

    return limiter
