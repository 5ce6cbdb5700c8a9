"""
Cluster Health Dashboard - Flask Application
Serves the dashboard's static files and the report parsing API.
"""
import os
from flask import Flask, request, jsonify, send_from_directory, g, abort
from werkzeug.exceptions import HTTPException

from config_logging import get_config, get_logger, StructuredLogger, APP_NAME
from report_summary.routes import rs_blueprint

config = get_config()
logger = get_logger('app')

app = Flask(__name__, static_folder=None)
app.config['MAX_CONTENT_LENGTH'] = config.max_content_length
app.config['STATIC_DIR'] = str(config.static_dir)
app.config['DEBUG_MODE'] = config.debug
app.register_blueprint(rs_blueprint)


def _static_dir() -> str:
    return app.config['STATIC_DIR']


def _index_path() -> str:
    return os.path.join(_static_dir(), 'index.html')


@app.before_request
def assign_correlation_id():
    """Tag every request with a correlation ID for log tracing."""
    g.correlation_id = StructuredLogger.new_correlation_id()
    if app.config.get('DEBUG_MODE'):
        logger.debug(f"{request.remote_addr} - {request.method} {request.path}")


@app.after_request
def add_headers(response):
    """Disable caching and echo the correlation ID."""
    response.headers['Cache-Control'] = 'no-cache, no-store, must-revalidate'
    response.headers['Pragma'] = 'no-cache'
    response.headers['Expires'] = '0'
    response.headers['X-Correlation-ID'] = getattr(g, 'correlation_id', '')
    return response


@app.errorhandler(HTTPException)
def handle_http_error(e):
    """Return JSON errors for API paths."""
    if not request.path.startswith('/api/'):
        return e
    return jsonify({
        'success': False,
        'error': {
            'code': e.name.upper().replace(' ', '_'),
            'message': e.description,
            'correlation_id': getattr(g, 'correlation_id', 'unknown')
        }
    }), e.code


@app.route('/healthz')
def healthz():
    """Liveness probe."""
    return jsonify({'status': 'ok'})


@app.route('/readyz')
def readyz():
    """Readiness probe: ready once the dashboard's index.html is present."""
    if os.path.isfile(_index_path()):
        return jsonify({'status': 'ready'})
    return jsonify({'status': 'not ready'}), 503


@app.route('/', defaults={'path': ''})
@app.route('/<path:path>')
def serve_dashboard(path):
    """Serve static files, falling back to index.html for client-side routes."""
    if path.startswith('api/'):
        abort(404)

    static_dir = _static_dir()
    if path and os.path.isfile(os.path.join(static_dir, path)):
        return send_from_directory(static_dir, path)

    if path and os.path.splitext(path)[1]:
        return jsonify({'error': 'Not found'}), 404

    if os.path.isfile(_index_path()):
        return send_from_directory(static_dir, 'index.html')
    return jsonify({'error': 'Dashboard not installed'}), 404


if __name__ == '__main__':
    is_valid, errors = config.validate()
    for error in errors:
        logger.warning(f"Configuration problem: {error}")
    logger.info(f"Starting {APP_NAME} on {config.host}:{config.port}",
                static_dir=str(config.static_dir))
    app.run(host=config.host, port=config.port, debug=config.debug)
