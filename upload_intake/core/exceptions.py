# upload_intake/core/exceptions.py
from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from upload_intake.infrastructure.storage.file_storage import StoredFileRecord


class AppError(Exception):
    def __init__(self, message: str, *, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


class UploadError(AppError):
    """
    Base for every error that ends an upload batch.

    `processed` holds the records written before the failure. They stay on
    disk (no rollback) and are only exposed for diagnostics.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 400,
        processed: Sequence["StoredFileRecord"] | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.processed: list["StoredFileRecord"] = list(processed or [])


class StorageUnavailableError(UploadError):
    def __init__(self, message: str = "Upload directory is unavailable") -> None:
        super().__init__(message, status_code=503)


class PayloadTooLargeError(UploadError):
    def __init__(self, message: str = "The uploaded file is too big") -> None:
        super().__init__(message, status_code=413)


class UnsupportedFileTypeError(UploadError):
    def __init__(
        self,
        message: str = "The uploaded file type is not permitted",
        *,
        content_type: str | None = None,
    ) -> None:
        super().__init__(message, status_code=415)
        self.content_type = content_type


class StorageWriteFailedError(UploadError):
    def __init__(self, message: str = "Failed to store the uploaded file") -> None:
        super().__init__(message, status_code=500)


class NoFileProvidedError(UploadError):
    def __init__(self, message: str = "No file was provided") -> None:
        super().__init__(message, status_code=400)


class InvalidMultipartError(UploadError):
    def __init__(self, message: str = "Request body is not a valid multipart form") -> None:
        super().__init__(message, status_code=400)
