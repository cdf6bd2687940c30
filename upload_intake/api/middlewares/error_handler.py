# upload_intake/api/middlewares/error_handler.py
import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from upload_intake.config.flask_config import get_settings
from upload_intake.core.exceptions import AppError, UploadError

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(AppError)
    def handle_app_error(err: AppError):
        payload = {"error": str(err)}
        if isinstance(err, UploadError) and err.processed:
            # files written before the failure stay on disk
            payload["stored_before_failure"] = [r.stored_name for r in err.processed]
        return jsonify(payload), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return jsonify({"error": err.description}), err.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        logger.exception("Unhandled error")

        if get_settings(app).debug:
            return jsonify({"error": str(err)}), 500

        return jsonify({"error": "Internal server error"}), 500
