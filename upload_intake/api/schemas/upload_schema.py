# upload_intake/api/schemas/upload_schema.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from upload_intake.infrastructure.storage.file_storage import StoredFileRecord


class UploadFileResponse(BaseModel):
    original_name: str = Field(min_length=1)
    stored_name: str = Field(min_length=1)
    content_type: Optional[str] = Field(default=None, max_length=100)
    byte_count: int = Field(ge=0)

    @classmethod
    def from_record(cls, record: StoredFileRecord) -> "UploadFileResponse":
        return cls(
            original_name=record.original_name,
            stored_name=record.stored_name,
            content_type=record.content_type,
            byte_count=record.byte_count,
        )


class UploadFilesResponse(BaseModel):
    files: list[UploadFileResponse]
