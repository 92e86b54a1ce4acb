import os
from io import BytesIO

import pytest

from gallery.exceptions import FilesystemError


class BrokenStream:
    """Yields one chunk, then fails like a dropped connection."""

    def __init__(self):
        self._reads = 0

    def seek(self, offset, whence=0):
        return 0

    def read(self, size=-1):
        self._reads += 1
        if self._reads > 1:
            raise OSError("connection reset")
        return b"x" * 1024


def test_save_upload_keeps_extension_and_size(storage):
    stored = storage.save_upload("Photo.JPG", BytesIO(b"abc"))
    assert stored.filename.endswith(".JPG")
    assert stored.size == 3
    assert os.path.isfile(stored.path)


def test_failed_write_leaves_no_partial_file(storage):
    with pytest.raises(FilesystemError) as exc_info:
        storage.save_upload("a.jpg", BrokenStream())

    assert not os.path.exists(exc_info.value.path)
    assert [n for n in os.listdir(storage.upload_dir) if n != storage.thumbnail_dirname] == []


def test_remove_reports_missing_file(storage):
    outcome = storage.remove(storage.original_path("nope.jpg"))
    assert outcome.removed is False
    assert outcome.error == "not found"
