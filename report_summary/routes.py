"""
Report Summary Flask Routes
===========================
API endpoint that accepts an uploaded report and returns its summary.
"""

import os
import tempfile
import time
from functools import wraps

from flask import Blueprint, request, jsonify, current_app, g
from werkzeug.exceptions import HTTPException
from werkzeug.utils import secure_filename

from config_logging import (
    get_logger, get_config, validate_file_extension,
    DashboardError, ValidationError, ProcessingError
)
from .assembler import parse_report
from .scoring import ScoringPolicy

logger = get_logger('report_summary.routes')

rs_blueprint = Blueprint('report_summary', __name__)

UPLOAD_FIELD = 'report'


def _cors(response):
    response.headers['Access-Control-Allow-Origin'] = '*'
    response.headers['Access-Control-Allow-Methods'] = 'POST, OPTIONS'
    response.headers['Access-Control-Allow-Headers'] = 'Content-Type'
    return response


def _error_response(error: DashboardError):
    payload = error.to_dict()
    payload['error']['correlation_id'] = getattr(g, 'correlation_id', 'unknown')
    return _cors(jsonify(payload)), error.status_code


def handle_rs_errors(f):
    """Decorator for standardized API error handling in report routes."""
    @wraps(f)
    def decorated(*args, **kwargs):
        start_time = time.time()
        try:
            result = f(*args, **kwargs)

            elapsed = time.time() - start_time
            if elapsed > 5.0:
                logger.warning(f"Slow report API call: {f.__name__} took {elapsed:.1f}s")

            return result

        except ValidationError as e:
            logger.warning(f"Validation error in {f.__name__}: {e}")
            return _error_response(e)
        except DashboardError as e:
            logger.error(f"{e.code} in {f.__name__}: {e}")
            return _error_response(e)
        except HTTPException:
            raise
        except Exception as e:
            logger.exception(f"Unexpected error in {f.__name__}: {e}")
            return _error_response(ProcessingError('An unexpected error occurred', stage='parse'))

    return decorated


def _policy_from_config() -> ScoringPolicy:
    return ScoringPolicy(neutral_category_score=get_config().neutral_category_score)


@rs_blueprint.route('/api/parse-report', methods=['POST', 'OPTIONS'])
@handle_rs_errors
def parse_report_upload():
    """Parse an uploaded .adoc report into a ReportSummary."""
    if request.method == 'OPTIONS':
        return _cors(current_app.make_default_options_response())

    upload = request.files.get(UPLOAD_FIELD)
    if upload is None or not upload.filename:
        raise ValidationError('No report file provided', field=UPLOAD_FIELD)

    filename = secure_filename(upload.filename)
    allowed = get_config().allowed_extensions
    if not validate_file_extension(filename, allowed):
        raise ValidationError(
            f'Invalid file type. Only {" or ".join(allowed)} files are allowed',
            field=UPLOAD_FIELD, filename=filename
        )

    logger.info(f"Received report {filename}", filename=filename)

    fd, temp_path = tempfile.mkstemp(prefix='report-', suffix='.adoc')
    try:
        with os.fdopen(fd, 'wb') as temp_file:
            upload.save(temp_file)
        summary = parse_report(temp_path, policy=_policy_from_config())
    finally:
        if os.path.exists(temp_path):
            os.remove(temp_path)

    include_details = request.args.get('details', 'false').lower() == 'true'
    return _cors(jsonify(summary.to_dict(include_details=include_details)))
