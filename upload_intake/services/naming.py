# upload_intake/services/naming.py
from __future__ import annotations

import os
import secrets

from upload_intake.core.upload_policy import UploadPolicy

RANDOM_STRING_SOURCE = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_+"

_SEPARATORS = {s for s in (os.sep, os.altsep) if s}


def random_string(n: int) -> str:
    """n characters from RANDOM_STRING_SOURCE, drawn with the system CSPRNG."""
    return "".join(secrets.choice(RANDOM_STRING_SOURCE) for _ in range(n))


def safe_extension(original_name: str, *, sanitize: bool = False) -> str:
    """
    Extension of the client-declared name, dot included ("photo.PNG" -> ".PNG").

    Taken from the last dot of the final path element; empty if there is none.
    The value is returned verbatim unless `sanitize` is set, in which case only
    ASCII letters and digits survive after the dot.
    """
    for i in range(len(original_name) - 1, -1, -1):
        ch = original_name[i]
        if ch in _SEPARATORS:
            break
        if ch == ".":
            ext = original_name[i:]
            if not sanitize:
                return ext
            cleaned = "".join(c for c in ext[1:] if c.isascii() and c.isalnum())
            return f".{cleaned}" if cleaned else ""
    return ""


def assign_stored_name(original_name: str, policy: UploadPolicy) -> str:
    if not policy.rename_on_store:
        return original_name

    ext = safe_extension(original_name, sanitize=policy.sanitize_extension)
    while True:
        stored = f"{random_string(policy.name_length)}{ext}"
        if stored != original_name:
            return stored
