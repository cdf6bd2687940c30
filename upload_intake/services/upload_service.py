# upload_intake/services/upload_service.py
from __future__ import annotations

import io
import logging
import os
from typing import BinaryIO, Callable

from werkzeug.datastructures import FileStorage as WzFileStorage
from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import ClientDisconnected, RequestEntityTooLarge
from werkzeug.formparser import FormDataParser
from werkzeug.wrappers import Request
from werkzeug.wsgi import get_input_stream

from upload_intake.core.exceptions import (
    InvalidMultipartError,
    NoFileProvidedError,
    PayloadTooLargeError,
    StorageWriteFailedError,
    UnsupportedFileTypeError,
    UploadError,
)
from upload_intake.core.upload_policy import UploadPolicy
from upload_intake.infrastructure.storage.file_storage import FileStorage, StoredFileRecord
from upload_intake.infrastructure.storage.local_file_storage import (
    LocalFileStorage,
    LocalFileStorageConfig,
)
from upload_intake.services.content_sniffer import SNIFF_LEN, detect_content_type, is_allowed
from upload_intake.services.naming import assign_stored_name

logger = logging.getLogger(__name__)


class _BoundedInput(io.RawIOBase):
    """
    Length-less request body capped at `limit` bytes. A body of exactly
    `limit` bytes reads through to EOF; one more byte raises
    RequestEntityTooLarge.
    """

    def __init__(self, stream: BinaryIO, limit: int) -> None:
        self._stream = stream
        self._limit = limit
        self._consumed = 0

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        # ask for at most one byte past the limit
        want = min(len(buffer), self._limit + 1 - self._consumed)
        data = self._stream.read(want)
        n = len(data)
        buffer[:n] = data
        self._consumed += n
        if self._consumed > self._limit:
            raise RequestEntityTooLarge()
        return n


class IncomingFilePart:
    """
    One file part of the multipart body. Owns the part's stream and closes it
    on exit from the `with` block.
    """

    def __init__(self, *, field_name: str, upload: WzFileStorage) -> None:
        self.field_name = field_name
        self.original_name: str = upload.filename or ""
        self._upload = upload
        self._window: bytes | None = None

    @property
    def stream(self) -> BinaryIO:
        return self._upload.stream

    def sniff_window(self) -> bytes:
        # lazy: read once, at most SNIFF_LEN bytes
        if self._window is None:
            buf = bytearray()
            while len(buf) < SNIFF_LEN:
                chunk = self.stream.read(SNIFF_LEN - len(buf))
                if not chunk:
                    break
                buf += chunk
            self._window = bytes(buf)
        return self._window

    def rewind(self) -> None:
        self.stream.seek(0)

    def close(self) -> None:
        self._upload.close()

    def __enter__(self) -> "IncomingFilePart":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class UploadService:
    def __init__(
        self,
        *,
        sniffer: Callable[[bytes], str] = detect_content_type,
        storage_factory: Callable[[LocalFileStorageConfig], FileStorage] | None = None,
    ) -> None:
        self._sniff = sniffer
        self._storage_factory = storage_factory or (lambda config: LocalFileStorage(config=config))

    def process_batch(
        self,
        request: Request,
        destination_dir: str | os.PathLike[str],
        policy: UploadPolicy | None = None,
    ) -> list[StoredFileRecord]:
        """
        Stores every file part of `request` under `destination_dir`.

        The request body must not have been consumed yet (do not touch
        request.files / request.form before calling this).

        Stops at the first failing file. Files already written stay on disk;
        their records travel on the raised UploadError as `processed`.
        """
        policy = policy or UploadPolicy()

        storage = self._storage_factory(
            LocalFileStorageConfig(
                base_path=destination_dir,
                overwrite_existing=policy.overwrite_existing,
            )
        )
        files = self._decode_files(request, policy)
        parts = [
            IncomingFilePart(field_name=name, upload=upload)
            for name, upload in files.items(multi=True)
        ]

        logger.info("Processing upload batch of %d part(s) into %s", len(parts), destination_dir)

        processed: list[StoredFileRecord] = []
        try:
            for part in parts:
                if not part.original_name:
                    # empty filename => plain form value, like a browser's untouched file input
                    logger.debug("Skipping part %r without a file name", part.field_name)
                    continue
                try:
                    processed.append(self._process_part(part, storage, policy))
                except UploadError as e:
                    e.processed = list(processed)
                    raise
        finally:
            for part in parts:
                part.close()

        logger.info("Stored %d file(s) into %s", len(processed), destination_dir)
        return processed

    def process_single(
        self,
        request: Request,
        destination_dir: str | os.PathLike[str],
        policy: UploadPolicy | None = None,
    ) -> StoredFileRecord:
        """Same as process_batch, but returns only the first stored file."""
        records = self.process_batch(request, destination_dir, policy)
        if not records:
            raise NoFileProvidedError("No file was found in the request.")
        return records[0]

    def _decode_files(self, request: Request, policy: UploadPolicy) -> MultiDict[str, WzFileStorage]:
        if request.mimetype != "multipart/form-data":
            logger.warning("Rejected upload with content type %r", request.mimetype)
            raise InvalidMultipartError("Use multipart/form-data to upload files.")

        parser = FormDataParser(
            max_content_length=policy.max_total_size,
            max_form_parts=policy.max_form_parts,
            silent=False,
        )

        try:
            stream = self._input_stream(request, policy)
            _, _, files = parser.parse(
                stream,
                request.mimetype,
                request.content_length,
                request.mimetype_params,
            )
        except RequestEntityTooLarge as e:
            logger.warning(
                "Rejected upload of %s bytes (limit %d)", request.content_length, policy.max_total_size
            )
            raise PayloadTooLargeError(
                f"The uploaded file is too big (limit is {policy.max_total_size} bytes)."
            ) from e
        except ClientDisconnected as e:
            logger.warning("Request body ended before its declared Content-Length")
            raise InvalidMultipartError("Request body is shorter than its declared length.") from e
        except ValueError as e:
            logger.warning("Malformed multipart body: %s", e)
            raise InvalidMultipartError(f"Malformed multipart body: {e}") from e

        return files

    @staticmethod
    def _input_stream(request: Request, policy: UploadPolicy) -> BinaryIO:
        environ = request.environ
        if request.content_length is None and environ.get("wsgi.input_terminated"):
            # streamed body: count what is actually read
            return _BoundedInput(environ["wsgi.input"], policy.max_total_size)  # type: ignore[return-value]
        return get_input_stream(environ, max_content_length=policy.max_total_size)

    def _process_part(
        self,
        part: IncomingFilePart,
        storage: FileStorage,
        policy: UploadPolicy,
    ) -> StoredFileRecord:
        with part:
            try:
                window = part.sniff_window()
                part.rewind()
            except OSError as e:
                raise StorageWriteFailedError(
                    f"Failed to read uploaded file {part.original_name!r}: {e}"
                ) from e

            content_type = self._sniff(window)
            if not is_allowed(content_type, policy.allowed_mime_types):
                logger.warning(
                    "Rejected %r: sniffed type %r is not allowed", part.original_name, content_type
                )
                raise UnsupportedFileTypeError(
                    f"The uploaded file type is not permitted: '{content_type}'.",
                    content_type=content_type,
                )

            stored_name = assign_stored_name(part.original_name, policy)
            record = storage.save(
                fileobj=part.stream,
                original_name=part.original_name,
                stored_name=stored_name,
                content_type=content_type,
            )

        logger.debug(
            "Stored %r as %s (%d bytes, %s)",
            record.original_name,
            record.stored_name,
            record.byte_count,
            record.content_type,
        )
        return record
