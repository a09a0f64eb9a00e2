from datetime import datetime, timezone

from flask import Blueprint, jsonify

from ..database import check_database_connection
from ..extensions import get_services
from ..rate_limit import limit_light

main_bp = Blueprint('main_api', __name__)


@main_bp.route('/api/health')
@limit_light
def health():
    """API and database status; 503 when the database is unreachable."""
    timestamp = datetime.now(timezone.utc).isoformat()
    engine = get_services().store.engine

    if check_database_connection(engine):
        return jsonify({
            'status': 'ok',
            'timestamp': timestamp,
            'database': 'connected',
        })

    return jsonify({
        'status': 'error',
        'timestamp': timestamp,
        'database': 'disconnected',
    }), 503
