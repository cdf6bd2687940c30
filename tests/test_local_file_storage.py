"""
Tests for the directory-ensure primitive and LocalFileStorage.
"""

import io
import os
import stat

import pytest

from upload_intake.core.exceptions import StorageUnavailableError, StorageWriteFailedError
from upload_intake.infrastructure.storage.local_file_storage import (
    CHUNK_SIZE,
    LocalFileStorage,
    LocalFileStorageConfig,
    ensure_directory,
)


class _BrokenStream:
    """Yields one chunk, then fails like a dropped connection."""

    def __init__(self) -> None:
        self._calls = 0

    def read(self, n: int = -1) -> bytes:
        self._calls += 1
        if self._calls == 1:
            return b"partial"
        raise OSError("connection reset")


class TestEnsureDirectory:
    """Tests for ensure_directory"""

    def test_creates_missing_ancestors(self, tmp_path):
        target = tmp_path / "a" / "b" / "c"

        result = ensure_directory(target)

        assert target.is_dir()
        assert result == target.resolve()

    def test_existing_directory_is_fine(self, tmp_path):
        ensure_directory(tmp_path)
        ensure_directory(tmp_path)

        assert tmp_path.is_dir()

    def test_no_group_or_other_write(self, tmp_path):
        target = tmp_path / "uploads"

        ensure_directory(target)

        assert stat.S_IMODE(target.stat().st_mode) & 0o022 == 0

    def test_existing_file_is_rejected(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")

        with pytest.raises(StorageUnavailableError):
            ensure_directory(blocker)

    def test_file_in_ancestor_chain_is_rejected(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")

        with pytest.raises(StorageUnavailableError):
            ensure_directory(blocker / "child")


class TestLocalFileStorage:
    """Tests for LocalFileStorage"""

    @pytest.fixture
    def storage(self, tmp_path):
        return LocalFileStorage(config=LocalFileStorageConfig(base_path=tmp_path / "store"))

    def test_init_creates_base(self, tmp_path):
        LocalFileStorage(config=LocalFileStorageConfig(base_path=tmp_path / "new"))

        assert (tmp_path / "new").is_dir()

    def test_empty_base_path_is_rejected(self):
        with pytest.raises(StorageUnavailableError):
            LocalFileStorage(config=LocalFileStorageConfig(base_path=""))

    def test_save_streams_and_counts(self, storage):
        payload = os.urandom(CHUNK_SIZE * 2 + 17)

        record = storage.save(
            fileobj=io.BytesIO(payload),
            original_name="blob.bin",
            stored_name="stored.bin",
            content_type="application/octet-stream",
        )

        assert record.byte_count == len(payload)
        assert record.stored_name == "stored.bin"
        assert record.original_name == "blob.bin"
        assert (storage.base_path / "stored.bin").read_bytes() == payload

    def test_save_empty_file(self, storage):
        record = storage.save(
            fileobj=io.BytesIO(b""),
            original_name="empty.txt",
            stored_name="empty.txt",
            content_type=None,
        )

        assert record.byte_count == 0
        assert (storage.base_path / "empty.txt").read_bytes() == b""

    @pytest.mark.parametrize("stored_name", ["../escape.txt", "a/../../escape.txt", ".", ".."])
    def test_rejects_names_outside_base(self, storage, stored_name):
        with pytest.raises(StorageWriteFailedError):
            storage.save(
                fileobj=io.BytesIO(b"x"),
                original_name=stored_name,
                stored_name=stored_name,
                content_type=None,
            )

        assert not (storage.base_path.parent / "escape.txt").exists()

    def test_overwrites_by_default(self, storage):
        for content in (b"first", b"second"):
            storage.save(
                fileobj=io.BytesIO(content),
                original_name="same.txt",
                stored_name="same.txt",
                content_type=None,
            )

        assert (storage.base_path / "same.txt").read_bytes() == b"second"

    def test_exclusive_create_keeps_existing_file(self, tmp_path):
        storage = LocalFileStorage(
            config=LocalFileStorageConfig(base_path=tmp_path, overwrite_existing=False)
        )
        (tmp_path / "same.txt").write_bytes(b"original")

        with pytest.raises(StorageWriteFailedError):
            storage.save(
                fileobj=io.BytesIO(b"intruder"),
                original_name="same.txt",
                stored_name="same.txt",
                content_type=None,
            )

        assert (tmp_path / "same.txt").read_bytes() == b"original"

    def test_copy_failure_removes_partial_file(self, storage):
        with pytest.raises(StorageWriteFailedError) as exc_info:
            storage.save(
                fileobj=_BrokenStream(),
                original_name="broken.bin",
                stored_name="broken.bin",
                content_type=None,
            )

        assert isinstance(exc_info.value.__cause__, OSError)
        assert not (storage.base_path / "broken.bin").exists()

    def test_rejects_nul_byte_in_name(self, storage):
        with pytest.raises(StorageWriteFailedError):
            storage.save(
                fileobj=io.BytesIO(b"x"),
                original_name="a.p\x00ng",
                stored_name="a.p\x00ng",
                content_type=None,
            )
