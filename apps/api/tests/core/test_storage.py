"""
Tests for upload storage naming and writing.
"""

import re
from io import BytesIO
from unittest.mock import patch

from fastapi import UploadFile

from admissions.core.storage import build_stored_filename, remove_upload, save_upload


class TestBuildStoredFilename:
    def test_format(self):
        name = build_stored_filename("resume.pdf")
        assert re.fullmatch(r"\d{13}-\d+-resume\.pdf", name)

    def test_directory_components_are_dropped(self):
        assert build_stored_filename("../../etc/passwd").endswith("-passwd")
        assert build_stored_filename("C:\\docs\\tor.pdf").endswith("-tor.pdf")

    def test_missing_name(self):
        assert build_stored_filename(None).endswith("-upload")


class TestSaveUpload:
    def test_writes_file_and_returns_forward_slash_path(self, tmp_path):
        upload = UploadFile(file=BytesIO(b"content"), filename="picture.png")

        with patch("admissions.core.storage.settings.upload_dir", str(tmp_path / "uploads")):
            stored = save_upload(upload)

        assert "\\" not in stored
        assert stored.endswith("-picture.png")
        with open(stored, "rb") as f:
            assert f.read() == b"content"

    def test_subdirectory(self, tmp_path):
        upload = UploadFile(file=BytesIO(b"img"), filename="me.jpg")

        with patch("admissions.core.storage.settings.upload_dir", str(tmp_path / "uploads")):
            stored = save_upload(upload, subdir="profile")

        assert "/profile/" in stored


class TestRemoveUpload:
    def test_removes_stored_file(self, tmp_path):
        upload = UploadFile(file=BytesIO(b"content"), filename="resume.pdf")

        with patch("admissions.core.storage.settings.upload_dir", str(tmp_path / "uploads")):
            stored = save_upload(upload)

        assert remove_upload(stored) is True
        assert not (tmp_path / "uploads" / stored.rsplit("/", 1)[-1]).exists()

    def test_missing_file(self, tmp_path):
        assert remove_upload(str(tmp_path / "uploads" / "gone.pdf")) is False
