# upload_intake/api/routes/__init__.py

from flask import Flask

from upload_intake.api.routes.health_routes import bp_health
from upload_intake.api.routes.upload_routes import bp_uploads


def register_routes(app: Flask, *, api_prefix: str, app_prefix: str) -> None:
    app.register_blueprint(bp_health, url_prefix=f"{app_prefix}/health")
    app.register_blueprint(bp_uploads, url_prefix=api_prefix or None)
