import io

import pytest
import pytest_asyncio
from PIL import Image

from gallery.config import Settings
from gallery.database import RecordStore
from gallery.infrastructure.storage.local_storage import LocalStorageRepository
from gallery.infrastructure.persistence.sqlalchemy.repositories.picture_repository_sql import SqlPictureRepository


@pytest.fixture
def image_bytes():
    def _make(width: int = 640, height: int = 480, fmt: str = "JPEG") -> bytes:
        buf = io.BytesIO()
        if fmt == "PNG":
            img = Image.new("RGBA", (width, height), (200, 30, 30, 128))
        else:
            img = Image.new("RGB", (width, height), (200, 30, 30))
        img.save(buf, format=fmt)
        return buf.getvalue()
    return _make


@pytest_asyncio.fixture
async def store(tmp_path):
    s = RecordStore(str(tmp_path / "db" / "pictures.db"))
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def storage(tmp_path):
    s = LocalStorageRepository(str(tmp_path / "uploads"))
    s.ensure_directories()
    return s


@pytest.fixture
def repo(store, storage):
    return SqlPictureRepository(store, storage)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_PATH=str(tmp_path / "db" / "pictures.db"),
        UPLOAD_DIR=str(tmp_path / "uploads"),
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def client(settings):
    from fastapi.testclient import TestClient
    from gallery.main import create_app

    with TestClient(create_app(settings)) as c:
        yield c
