# upload_intake/main.py
from __future__ import annotations

import logging

from flask import Flask
from flask_cors import CORS

from upload_intake.api.middlewares.error_handler import register_error_handlers
from upload_intake.api.routes import register_routes
from upload_intake.config.flask_config import configure_app
from upload_intake.config.settings import Settings, settings as default_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def create_app(settings: Settings | None = None) -> Flask:
    settings = settings or default_settings
    configure_logging(settings.log_level)

    app = Flask(__name__)

    api_prefix = settings.api_prefix
    CORS(
        app,
        resources={rf"{api_prefix}/*": {"origins": settings.cors_origins}},
        allow_headers=["Content-Type"],
        methods=["GET", "POST", "OPTIONS"],
    )

    configure_app(app, settings)
    register_routes(app, api_prefix=api_prefix, app_prefix=settings.app_prefix.rstrip("/"))
    register_error_handlers(app)

    return app


if __name__ == "__main__":
    # dev server only; run behind gunicorn in production
    app = create_app()
    app.run(host="0.0.0.0", port=8080, debug=default_settings.debug)
