# upload_intake/infrastructure/storage/local_file_storage.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from upload_intake.core.exceptions import StorageUnavailableError, StorageWriteFailedError
from upload_intake.infrastructure.storage.file_storage import FileStorage, StoredFileRecord

logger = logging.getLogger(__name__)

DIR_MODE = 0o755
CHUNK_SIZE = 1024 * 1024  # 1MB


def ensure_directory(path: str | os.PathLike[str]) -> Path:
    """
    Creates `path` and any missing parents (rwxr-xr-x).
    Succeeds silently when it already is a directory.
    """
    target = Path(path).expanduser()

    try:
        target.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
    except FileExistsError as e:
        raise StorageUnavailableError(
            f"Upload path '{target}' exists and is not a directory."
        ) from e
    except PermissionError as e:
        raise StorageUnavailableError(
            f"No permission to create/access the upload directory '{target}'."
        ) from e
    except OSError as e:
        raise StorageUnavailableError(
            f"Failed to prepare upload directory '{target}': {e}"
        ) from e

    if not target.is_dir():
        raise StorageUnavailableError(f"Upload path '{target}' is not a directory.")

    if not os.access(target, os.W_OK):
        raise StorageUnavailableError(f"Upload directory '{target}' is not writable.")

    return target.resolve()


@dataclass(frozen=True)
class LocalFileStorageConfig:
    base_path: str | os.PathLike[str]
    overwrite_existing: bool = True


class LocalFileStorage(FileStorage):
    def __init__(self, *, config: LocalFileStorageConfig) -> None:
        raw = str(config.base_path or "").strip()
        if not raw:
            raise StorageUnavailableError("Upload directory is not configured.")

        self._base = ensure_directory(raw)
        self._overwrite = config.overwrite_existing

    @property
    def base_path(self) -> Path:
        return self._base

    def _abs_path_from_stored(self, stored_name: str) -> Path:
        if not stored_name or "\x00" in stored_name:
            raise StorageWriteFailedError(f"Invalid stored name {stored_name!r}.")

        try:
            abs_path = (self._base / stored_name).resolve()
        except (ValueError, OSError) as e:
            raise StorageWriteFailedError(f"Invalid stored name {stored_name!r}.") from e

        # anti path traversal: the target must live strictly inside base
        base_str = str(self._base)
        if not str(abs_path).startswith(base_str + os.sep):
            raise StorageWriteFailedError(
                f"Stored name {stored_name!r} resolves outside the upload directory."
            )

        return abs_path

    def save(
        self,
        *,
        fileobj: BinaryIO,
        original_name: str,
        stored_name: str,
        content_type: str | None,
    ) -> StoredFileRecord:
        abs_path = self._abs_path_from_stored(stored_name)
        mode = "wb" if self._overwrite else "xb"

        size = 0
        try:
            with open(abs_path, mode) as out:
                while True:
                    chunk = fileobj.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    out.write(chunk)
                    size += len(chunk)
                out.flush()
                os.fsync(out.fileno())
        except FileExistsError as e:
            # exclusive create: the existing file belongs to someone else, keep it
            raise StorageWriteFailedError(
                f"File '{stored_name}' already exists in the upload directory."
            ) from e
        except OSError as e:
            logger.exception("Failed writing upload %r to %s", original_name, abs_path)
            self._remove_partial(abs_path)
            raise StorageWriteFailedError(f"Failed to save file: {e}") from e

        return StoredFileRecord(
            original_name=original_name,
            stored_name=stored_name,
            byte_count=size,
            content_type=content_type,
        )

    @staticmethod
    def _remove_partial(abs_path: Path) -> None:
        try:
            if abs_path.is_file():
                abs_path.unlink()
        except OSError:
            logger.warning("Could not remove partial upload %s", abs_path)
