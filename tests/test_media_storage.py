"""Tests for local media storage."""

import pytest

from goodchoice.infra.media_storage import MediaStorage

from tests.helpers import PNG_BYTES


class TestSave:
    def test_writes_file_and_returns_public_ref(self, tmp_path):
        storage = MediaStorage(tmp_path)

        ref = storage.save(PNG_BYTES)

        assert ref.startswith("/uploads/generated/")
        assert ref.endswith(".png")
        assert storage.resolve(ref).read_bytes() == PNG_BYTES

    def test_folder_and_extension(self, tmp_path):
        ref = MediaStorage(tmp_path).save(b"jpegdata", "image/jpeg", folder="user")
        assert ref.startswith("/uploads/user/")
        assert ref.endswith(".jpg")

    def test_names_are_unique(self, tmp_path):
        storage = MediaStorage(tmp_path)
        assert storage.save(PNG_BYTES) != storage.save(PNG_BYTES)

    def test_empty_data_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            MediaStorage(tmp_path).save(b"")

    def test_custom_prefix(self, tmp_path):
        ref = MediaStorage(tmp_path, public_prefix="/media/").save(PNG_BYTES)
        assert ref.startswith("/media/generated/")


class TestResolve:
    def test_foreign_ref_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            MediaStorage(tmp_path).resolve("https://cdn.test/x.png")


class TestDelete:
    def test_removes_file(self, tmp_path):
        storage = MediaStorage(tmp_path)
        ref = storage.save(PNG_BYTES)

        assert storage.delete(ref) is True
        assert not storage.resolve(ref).exists()

    def test_missing_file(self, tmp_path):
        assert MediaStorage(tmp_path).delete("/uploads/generated/gone.png") is False

    def test_foreign_ref(self, tmp_path):
        assert MediaStorage(tmp_path).delete("https://cdn.test/x.png") is False


def test_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("MEDIA_ROOT", str(tmp_path / "m"))
    assert MediaStorage.from_env().root == tmp_path / "m"
