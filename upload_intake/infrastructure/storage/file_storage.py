# upload_intake/infrastructure/storage/file_storage.py
from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Protocol


@dataclass(frozen=True)
class StoredFileRecord:
    original_name: str
    stored_name: str
    byte_count: int
    content_type: str | None = None


class FileStorage(Protocol):
    def save(
        self,
        *,
        fileobj: BinaryIO,
        original_name: str,
        stored_name: str,
        content_type: str | None,
    ) -> StoredFileRecord:
        """Streams fileobj to stored_name and returns the record once every byte is on disk."""
        raise NotImplementedError
