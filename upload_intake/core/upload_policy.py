# upload_intake/core/upload_policy.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from upload_intake.config.settings import Settings

DEFAULT_MAX_TOTAL_SIZE = 1024 * 1024 * 1024  # 1 GiB
MIN_NAME_LENGTH = 25


@dataclass(frozen=True)
class UploadPolicy:
    """
    Rules applied to one upload batch.

    max_total_size bounds the whole request body, not each file.
    An empty allowed_mime_types means every sniffed type is accepted.
    """

    max_total_size: int = DEFAULT_MAX_TOTAL_SIZE
    allowed_mime_types: frozenset[str] = field(default_factory=frozenset)
    rename_on_store: bool = True
    name_length: int = MIN_NAME_LENGTH
    sanitize_extension: bool = False
    overwrite_existing: bool = True
    max_form_parts: int | None = 1000

    def __post_init__(self) -> None:
        if self.max_total_size <= 0:
            raise ValueError("max_total_size must be positive.")
        if self.name_length < MIN_NAME_LENGTH:
            raise ValueError(f"name_length must be at least {MIN_NAME_LENGTH}.")
        # lists/sets coming from config are frozen here
        if not isinstance(self.allowed_mime_types, frozenset):
            object.__setattr__(self, "allowed_mime_types", _normalize(self.allowed_mime_types))

    @classmethod
    def from_settings(cls, settings: "Settings") -> "UploadPolicy":
        return cls(
            max_total_size=settings.max_upload_size,
            allowed_mime_types=_normalize(settings.allowed_mime_types),
            rename_on_store=settings.rename_on_store,
            name_length=settings.name_length,
            sanitize_extension=settings.sanitize_extension,
            overwrite_existing=settings.overwrite_existing,
            max_form_parts=settings.max_form_parts,
        )


def _normalize(types: Iterable[str]) -> frozenset[str]:
    return frozenset(t.strip() for t in types if t and t.strip())
