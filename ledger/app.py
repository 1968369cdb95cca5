"""
Autoledger - Vehicle cost history API

Read-only analytics over an owner's maintenance services and fuel purchases:
unified timeline, period statistics and multi-vehicle comparison.
"""

import logging

from flask import Flask, jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

import database
from config import Config
from database import SessionLocal, engine  # noqa: F401  (re-exported for tests and scripts)
from exceptions import AutoledgerError
from extensions import limiter
from routes import register_blueprints
from utils.error_codes import ErrorCode, StructuredError

# Configure logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__)
app.config.from_object(Config)

database.init_app(app)
limiter.init_app(app)
register_blueprints(app)


@app.errorhandler(AutoledgerError)
def handle_autoledger_error(error: AutoledgerError):
    """Known failures carry their own status and error code."""
    structured = StructuredError(error.error_code, error.message, exception=error, **error.details)
    if error.status_code >= 500:
        logger.error(f"{error.error_code.value}: {error}")
    else:
        logger.info(f"Rejected request: {error.error_code.value} {error}")
    return jsonify(structured.to_response()), error.status_code


@app.errorhandler(SQLAlchemyError)
def handle_database_error(error: SQLAlchemyError):
    logger.exception("Unhandled database error")
    structured = StructuredError(ErrorCode.E200_DB_QUERY_FAILED, "Database query failed", exception=error)
    return jsonify(structured.to_response()), 500


@app.errorhandler(HTTPException)
def handle_http_error(error: HTTPException):
    """Routing and rate limit errors keep their status but use the JSON error body."""
    return jsonify({
        'success': False,
        'error': {
            'code': error.name.upper().replace(' ', '_'),
            'category': 'http',
            'message': error.description,
            'details': {},
        },
    }), error.code


@app.errorhandler(Exception)
def handle_unexpected_error(error: Exception):
    logger.exception("Unhandled error")
    structured = StructuredError(ErrorCode.E500_INTERNAL_SERVER_ERROR, "Internal server error", exception=error)
    return jsonify(structured.to_response()), 500


if __name__ == '__main__':
    app.run(host=Config.FLASK_HOST, port=Config.FLASK_PORT, debug=Config.DEBUG)
