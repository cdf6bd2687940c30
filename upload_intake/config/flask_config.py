from flask import Flask

from upload_intake.config.settings import Settings


def configure_app(app: Flask, settings: Settings) -> None:
    app.config["ENV"] = settings.environment
    app.config["DEBUG"] = settings.debug
    app.extensions["upload_intake.settings"] = settings


def get_settings(app: Flask) -> Settings:
    return app.extensions["upload_intake.settings"]
