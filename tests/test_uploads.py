"""
Tests for upload name handling.
"""

import io
from pathlib import Path

import pytest
from fastapi import UploadFile

from catalog.config import get_settings
from catalog.services.exceptions import InvalidUploadError, UploadTooLargeError
from catalog.services.uploads import (
    MAX_FILENAME_LENGTH,
    delete_upload,
    resolve_upload,
    sanitize_filename,
    save_upload,
)

settings = get_settings()


class TestSanitizeFilename:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("cover.png", "cover.png"),
            ("../../../etc/passwd", "passwd"),
            ("C:\\Users\\me\\book.pdf", "book.pdf"),
            ("test@file#name$.pdf", "test_file_name_.pdf"),
            ("my book.final..pdf", "my_book.final.pdf"),
            ("war and peace.epub", "war_and_peace.epub"),
        ],
    )
    def test_sanitize(self, raw, expected):
        assert sanitize_filename(raw) == expected

    def test_empty_name_gets_generated(self):
        assert sanitize_filename("...").startswith("file_")

    def test_long_name_keeps_extension(self):
        name = sanitize_filename("a" * 300 + ".pdf")

        assert len(name) == MAX_FILENAME_LENGTH
        assert name.endswith(".pdf")


class TestResolveUpload:
    @pytest.mark.parametrize("name", ["../secret", "a/b.txt", "a\\b.txt", "..", ""])
    def test_rejects_unsafe_names(self, name):
        with pytest.raises(InvalidUploadError):
            resolve_upload(name)

    def test_missing_file(self):
        assert resolve_upload("nothing-here.pdf") is None

    def test_existing_file(self, upload_dir: Path):
        upload_dir.mkdir(parents=True, exist_ok=True)
        (upload_dir / "book.txt").write_text("text")

        assert resolve_upload("book.txt") == (upload_dir / "book.txt").resolve()

    def test_delete_upload(self, upload_dir: Path):
        upload_dir.mkdir(parents=True, exist_ok=True)
        (upload_dir / "old.png").write_bytes(b"x")

        delete_upload("old.png")
        delete_upload("../old.png")
        delete_upload(None)

        assert not (upload_dir / "old.png").exists()


class TestSaveUpload:
    def test_existing_file_never_overwritten(self, upload_dir: Path):
        upload_dir.mkdir(parents=True, exist_ok=True)
        (upload_dir / "report.pdf").write_bytes(b"original")
        (upload_dir / "report_1.pdf").write_bytes(b"second")

        stored = save_upload(UploadFile(file=io.BytesIO(b"third"), filename="report.pdf"))

        assert stored == "report_2.pdf"
        assert (upload_dir / "report.pdf").read_bytes() == b"original"
        assert (upload_dir / "report_1.pdf").read_bytes() == b"second"
        assert (upload_dir / "report_2.pdf").read_bytes() == b"third"

    def test_same_name_saved_twice(self, upload_dir: Path):
        first = save_upload(UploadFile(file=io.BytesIO(b"a"), filename="notes.txt"))
        second = save_upload(UploadFile(file=io.BytesIO(b"b"), filename="notes.txt"))

        assert (first, second) == ("notes.txt", "notes_1.txt")
        assert (upload_dir / first).read_bytes() == b"a"
        assert (upload_dir / second).read_bytes() == b"b"

    def test_oversized_upload_removed(self, upload_dir: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(settings, "max_upload_size", 4)

        with pytest.raises(UploadTooLargeError):
            save_upload(UploadFile(file=io.BytesIO(b"too many bytes"), filename="big.txt"))

        assert not (upload_dir / "big.txt").exists()
