"""
Shared pytest fixtures for upload-intake tests.

Provides:
- Sample payloads with real magic numbers (JPEG, PNG, GIF)
- A werkzeug request factory for multipart bodies
- Flask app / test client wired to a temporary upload directory
"""

import io
from pathlib import Path
from typing import Callable

import pytest
from werkzeug.test import EnvironBuilder
from werkzeug.wrappers import Request

from upload_intake.config.settings import Settings
from upload_intake.main import create_app


JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01" + b"\x00" * 2034  # ~2 KB
PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR" + b"\x00" * 200
GIF_BYTES = b"GIF89a\x01\x00\x01\x00\x80\x00\x00" + b"\x00" * 50
TEXT_BYTES = b"just some notes, definitely not an image\n"


# ============================================================================
# Request factory
# ============================================================================

@pytest.fixture
def make_request() -> Callable[..., Request]:
    """
    Build an unconsumed multipart werkzeug Request.

    Usage:
        make_request([(b"...", "a.png")])
        make_request([(b"...", "a.png", "image/png")], field="file")
        make_request(form={"note": "x"})  # multipart without files
    """

    def _make(
        files: list[tuple] | None = None,
        *,
        field: str = "files",
        form: dict | None = None,
        content_type: str = "multipart/form-data",
    ) -> Request:
        data: dict = dict(form or {})
        if files:
            data[field] = [
                (io.BytesIO(item[0]), *item[1:])
                for item in files
            ]
        builder = EnvironBuilder(method="POST", data=data, content_type=content_type)
        try:
            return builder.get_request()
        finally:
            builder.close()

    return _make


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    """Destination directory that does not exist yet."""
    return tmp_path / "uploads"


# ============================================================================
# Flask fixtures
# ============================================================================

@pytest.fixture
def app_settings(upload_dir: Path) -> Settings:
    return Settings(
        upload_dir=str(upload_dir),
        allowed_mime_types_raw="image/jpeg,image/png,image/gif",
        debug=False,
        log_level="DEBUG",
    )


@pytest.fixture
def app(app_settings: Settings):
    return create_app(app_settings)


@pytest.fixture
def client(app):
    return app.test_client()
