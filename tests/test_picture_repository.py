import os
from datetime import datetime

import pytest

from gallery.application.ports.picture_repo import ListOptions, NewPicture
from gallery.exceptions import StoreError, ValidationError


def new_picture(filename: str, **overrides) -> NewPicture:
    data = dict(filename=filename, original_name=f"orig-{filename}", file_size=1234, mime_type="image/jpeg")
    data.update(overrides)
    return NewPicture(**data)


def write_files(storage, filename: str) -> None:
    for path in (storage.original_path(filename), storage.thumbnail_path(filename)):
        with open(path, "wb") as f:
            f.write(b"x")


@pytest.mark.asyncio
async def test_insert_applies_defaults_and_returns_stored_row(repo):
    picture = await repo.insert(new_picture("a.jpg"))
    assert picture.id == 1
    assert picture.description == ""
    assert picture.width is None and picture.height is None
    assert isinstance(picture.upload_date, datetime)
    assert isinstance(picture.updated_date, datetime)
    assert picture.handle.id == 1 and picture.handle.filename == "a.jpg"


@pytest.mark.asyncio
async def test_insert_rejects_duplicate_filename(repo):
    await repo.insert(new_picture("same.jpg"))
    with pytest.raises(StoreError):
        await repo.insert(new_picture("same.jpg"))
    assert await repo.get_total_count() == 1


@pytest.mark.asyncio
async def test_lookups_return_none_when_absent(repo):
    await repo.insert(new_picture("here.png", mime_type="image/png", width=10, height=20))
    found = await repo.get_by_filename("here.png")
    assert found is not None and (found.width, found.height) == (10, 20)
    assert await repo.get_by_filename("missing.png") is None
    assert await repo.get_by_id(404) is None


@pytest.mark.asyncio
async def test_get_all_orders_newest_first_and_paginates(repo):
    for name in ("1.jpg", "2.jpg", "3.jpg"):
        await repo.insert(new_picture(name))

    assert [p.filename for p in await repo.get_all()] == ["3.jpg", "2.jpg", "1.jpg"]
    page = await repo.get_all(ListOptions(limit=2, offset=1))
    assert [p.filename for p in page] == ["2.jpg", "1.jpg"]
    oldest_first = await repo.get_all(ListOptions(order_by="id", order_direction="asc"))
    assert [p.filename for p in oldest_first] == ["1.jpg", "2.jpg", "3.jpg"]


@pytest.mark.asyncio
async def test_get_all_rejects_unknown_order(repo):
    with pytest.raises(ValidationError):
        await repo.get_all(ListOptions(order_by="id; DROP TABLE pictures"))
    with pytest.raises(ValidationError):
        await repo.get_all(ListOptions(order_direction="sideways"))


@pytest.mark.asyncio
async def test_search_matches_description_or_name_case_insensitively(repo):
    await repo.insert(new_picture("1.jpg", original_name="Sunset.JPG"))
    await repo.insert(new_picture("2.jpg", original_name="dog.jpg"))
    await repo.insert(new_picture("3.jpg", original_name="x.jpg", description="Beach at SUNSET"))

    results = await repo.search("sunset")
    assert [p.filename for p in results] == ["3.jpg", "1.jpg"]
    assert [p.filename for p in await repo.search("sunset", ListOptions(limit=1))] == ["3.jpg"]
    assert await repo.search("cat") == []


@pytest.mark.asyncio
async def test_search_passes_like_wildcards_through(repo):
    await repo.insert(new_picture("1.jpg", original_name="abc.jpg"))
    await repo.insert(new_picture("2.jpg", original_name="zzz.jpg"))

    assert [p.filename for p in await repo.search("a_c")] == ["1.jpg"]
    assert len(await repo.search("%")) == 2


@pytest.mark.asyncio
async def test_update_description_only_touches_description_and_updated_date(repo, store):
    original = await repo.insert(new_picture("a.jpg", width=5, height=6))
    await store.run("UPDATE pictures SET updated_date = '2000-01-01 00:00:00' WHERE id = :id", {"id": original.id})
    before = await repo.get_by_id(original.id)

    updated = await repo.update_description(original.id, "new words")

    assert updated.description == "new words"
    assert updated.updated_date > before.updated_date
    for attr in ("id", "filename", "original_name", "file_size", "mime_type", "width", "height", "upload_date"):
        assert getattr(updated, attr) == getattr(before, attr)


@pytest.mark.asyncio
async def test_update_description_missing_returns_none(repo):
    assert await repo.update_description(12, "nothing") is None


@pytest.mark.asyncio
async def test_delete_removes_row_and_both_files(repo, storage):
    picture = await repo.insert(new_picture("gone.jpg"))
    write_files(storage, "gone.jpg")
    assert picture.handle.exists_on_disk(storage.upload_dir)

    report = await repo.delete_with_report(picture.id)

    assert report.complete
    assert [r.removed for r in report.removals] == [True, True]
    assert not os.path.exists(storage.original_path("gone.jpg"))
    assert not os.path.exists(storage.thumbnail_path("gone.jpg"))
    assert await repo.get_by_id(picture.id) is None


@pytest.mark.asyncio
async def test_delete_succeeds_when_files_are_missing(repo):
    first = await repo.insert(new_picture("a.jpg"))
    second = await repo.insert(new_picture("b.jpg"))

    assert await repo.delete(first.id) is True
    assert await repo.get_by_id(first.id) is None

    report = await repo.delete_with_report(second.id)
    assert report is not None
    assert not report.complete
    assert all(r.error == "not found" for r in report.removals)
    assert await repo.get_total_count() == 0


@pytest.mark.asyncio
async def test_delete_missing_returns_false(repo):
    assert await repo.delete(7) is False
    assert await repo.delete_with_report(7) is None


@pytest.mark.asyncio
async def test_count_and_mime_filter(repo):
    await repo.insert(new_picture("1.png", mime_type="image/png"))
    await repo.insert(new_picture("2.jpg"))
    await repo.insert(new_picture("3.png", mime_type="image/png"))

    assert await repo.get_total_count() == 3
    assert [p.filename for p in await repo.get_by_mime_type("image/png")] == ["3.png", "1.png"]
    assert await repo.get_by_mime_type("image/gif") == []
