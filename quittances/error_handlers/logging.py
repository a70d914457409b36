"""
Logging setup and global error handlers for the rent receipt service
"""
import logging
import traceback
from datetime import datetime
from flask import jsonify, request
import os


def setup_logging(app):
    """Configure application logging"""
    log_level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO').upper())
    log_file = app.config.get('LOG_FILE', 'quittances.log')

    # Make log file path absolute if it's not
    if not os.path.isabs(log_file):
        basedir = os.path.abspath(os.path.dirname(os.path.dirname(os.path.dirname(__file__))))
        log_file = os.path.join(basedir, log_file)

    log_dir = os.path.dirname(log_file)
    os.makedirs(log_dir, exist_ok=True)

    formatter = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
    )

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)

    app.logger.setLevel(log_level)
    app.logger.addHandler(file_handler)
    app.logger.addHandler(console_handler)

    # Engine and service modules log under the package logger
    package_logger = logging.getLogger('quittances')
    package_logger.setLevel(log_level)
    if not package_logger.handlers:
        package_logger.addHandler(file_handler)
        package_logger.addHandler(console_handler)

    werkzeug_logger = logging.getLogger('werkzeug')
    werkzeug_logger.setLevel(log_level)

    return app.logger


def register_error_handlers(app):
    """Register global error handlers for the Flask app"""

    @app.errorhandler(400)
    def bad_request_error(error):
        """Handle 400 Bad Request errors"""
        app.logger.warning(f"Bad request from {request.remote_addr}: {request.url}")
        return jsonify({
            'error': 'Bad Request',
            'message': 'The request could not be understood by the server',
            'status_code': 400
        }), 400

    @app.errorhandler(404)
    def not_found_error(error):
        """Handle 404 Not Found errors"""
        app.logger.info(f"404 Not Found: {request.url} from {request.remote_addr}")
        return jsonify({
            'error': 'Not Found',
            'message': 'The requested resource was not found',
            'status_code': 404
        }), 404

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        """Handle 405 Method Not Allowed errors"""
        app.logger.warning(f"Method not allowed: {request.method} {request.url} from {request.remote_addr}")
        return jsonify({
            'error': 'Method Not Allowed',
            'message': f'The {request.method} method is not allowed for this endpoint',
            'status_code': 405
        }), 405

    @app.errorhandler(413)
    def payload_too_large_error(error):
        """Handle uploads above MAX_CONTENT_LENGTH"""
        app.logger.warning(f"Upload too large from {request.remote_addr}: {request.url}")
        return jsonify({
            'error': 'Payload Too Large',
            'message': 'Uploaded file exceeds the size limit',
            'status_code': 413
        }), 413

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 Internal Server Error"""
        from quittances.utils.validators import sanitize_request_data

        error_id = datetime.utcnow().strftime('%Y%m%d_%H%M%S_%f')
        app.logger.error(f"Internal Server Error [{error_id}]: {str(error)}")
        app.logger.error(f"Traceback [{error_id}]: {traceback.format_exc()}")

        app.logger.error(f"Request details [{error_id}]: {request.method} {request.url}")
        request_data = sanitize_request_data(request.get_data(as_text=True)[:1000])
        app.logger.error(f"Request data [{error_id}]: {request_data}")

        return jsonify({
            'error': 'Internal Server Error',
            'message': 'An unexpected error occurred',
            'error_id': error_id,
            'status_code': 500
        }), 500
