# Load environment variables FIRST before any other imports
from dotenv import load_dotenv
load_dotenv()

import os
import time
import secrets
import uuid
from typing import Any, Dict, Optional
from flask import Flask, request
from flask import g


def create_app(test_config: Optional[Dict[str, Any]] = None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__, instance_relative_config=True)

    # =============================================================================
    # CONFIGURATION
    # =============================================================================
    BASE_DIR = os.path.dirname(os.path.abspath(__file__))

    def get_or_create_secret_key() -> str:
        env_key = os.environ.get('SECRET_KEY')
        if env_key:
            return env_key
        key_file = os.path.join(BASE_DIR, '..', '.secret_key')
        if os.path.exists(key_file):
            with open(key_file, 'r') as f:
                return f.read().strip()
        new_key = secrets.token_hex(32)
        with open(key_file, 'w') as f:
            f.write(new_key)
        return new_key

    def env_flag(name: str, default: str = 'false') -> bool:
        return os.environ.get(name, default).lower() in ('true', '1', 'yes')

    from .database import get_database_url

    app.config.from_mapping(
        SECRET_KEY=get_or_create_secret_key(),
        DATABASE_URL=get_database_url(),
        DISABLE_RATE_LIMITING=env_flag('DISABLE_RATE_LIMITING'),
        HOST=os.environ.get('FLASK_HOST', '127.0.0.1'),
        PORT=int(os.environ.get('FLASK_PORT', '5000')),
        DEBUG=env_flag('FLASK_DEBUG'),
    )
    if test_config:
        app.config.update(test_config)
    app.json.sort_keys = False

    # Ensure instance folder exists
    os.makedirs(app.instance_path, exist_ok=True)

    # =============================================================================
    # LOGGING and RATE LIMITING
    # =============================================================================
    from .log import log, debug_log_event
    from .rate_limit import init_rate_limiting

    init_rate_limiting(app)

    @app.before_request
    def assign_request_id():
        g.request_id = uuid.uuid4().hex[:12]
        g.request_start = time.time()

    @app.after_request
    def debug_request_log(response):
        path = request.path or ''
        if path.startswith('/static') or path.startswith('/favicon'):
            return response
        duration_ms = None
        start_time = getattr(g, 'request_start', None)
        if start_time:
            duration_ms = int((time.time() - start_time) * 1000)
        debug_log_event({
            'event': 'request',
            'request_id': getattr(g, 'request_id', None),
            'method': request.method,
            'path': path,
            'query': request.query_string.decode('utf-8', errors='ignore'),
            'status': response.status_code,
            'duration_ms': duration_ms,
            'remote_addr': request.remote_addr,
        })
        return response

    @app.teardown_request
    def debug_exception_log(error=None):
        if not error:
            return
        debug_log_event({
            'event': 'exception',
            'request_id': getattr(g, 'request_id', None),
            'method': request.method if request else None,
            'path': request.path if request else None,
            'error_type': error.__class__.__name__,
            'error': str(error)
        })

    # =============================================================================
    # DISCOVERY SERVICES (Local Store, genre cache, provider factory)
    # =============================================================================
    from .database import create_db_engine, make_session_factory, init_database
    from .extensions import DiscoveryServices, EXTENSION_KEY
    from .search.config import DiscoveryConfig
    from .store import ContentStore

    engine = create_db_engine(app.config['DATABASE_URL'])
    init_database(engine=engine)
    services = DiscoveryServices(
        store=ContentStore(make_session_factory(engine)),
        config=app.config.get('DISCOVERY_CONFIG') or DiscoveryConfig.from_env(),
    )
    if app.config.get('PROVIDER_FACTORY'):
        services.provider_factory = app.config['PROVIDER_FACTORY']
    app.extensions[EXTENSION_KEY] = services

    # =============================================================================
    # BLUEPRINTS & ROUTES
    # =============================================================================
    from .routes.main_api import main_bp
    from .routes.content_api import content_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(content_bp)

    log(
        f"🎬 CouchQueue ready: page_size={services.config.page_size}, "
        f"merge={services.config.merge_strategy}, "
        f"tmdb_key={'set' if os.environ.get('TMDB_API_KEY') else 'MISSING'}"
    )
    if app.config['DEBUG']:
        log("⚠️  Debug mode is ON - do not use in production!")

    return app

# App instance should be created by the caller (run.py or WSGI entrypoint)
