import io

import pytest
from fastapi import UploadFile

from assets import service
from core import errors, storage
from editor import document
from editor.session import EditorMode, EditorSession

AUTHOR_ID = "11111111-1111-1111-1111-111111111111"


def upload(name: str, data: bytes = b"\x89PNG fake") -> UploadFile:
    return UploadFile(file=io.BytesIO(data), filename=name)


class FakeStorage:
    def __init__(self) -> None:
        self.keys: list[str] = []
        self.fail_next = 0

    async def put_object(self, key, data, *, content_type=None, timeout_s=60.0):
        self.keys.append(key)
        if self.fail_next:
            self.fail_next -= 1
            raise storage.StorageError("Storage upload failed: 503 unavailable")


@pytest.fixture
def blobs(monkeypatch) -> FakeStorage:
    fake = FakeStorage()
    monkeypatch.setattr(storage, "put_object", fake.put_object)
    monkeypatch.setattr(storage, "public_url", lambda key: f"https://cdn.test/{key}")
    return fake


def images(session: EditorSession) -> list[str]:
    return [node.attrs["src"] for node in session.document.content if node.type == "image"]


@pytest.mark.asyncio
async def test_first_failure_does_not_abort_the_batch(blobs):
    blobs.fail_next = 1
    session = EditorSession.for_new_post(AUTHOR_ID)

    report = await service.upload_and_insert(session, [upload("one.png"), upload("two.jpg")], AUTHOR_ID)

    assert len(blobs.keys) == 2
    assert len(report.inserted) == 1
    assert [f.filename for f in report.failures] == ["one.png"]
    assert images(session) == [report.inserted[0].url]
    assert report.inserted[0].key.startswith(f"{AUTHOR_ID}/")
    assert report.inserted[0].key.endswith(".jpg")


@pytest.mark.asyncio
async def test_images_are_inserted_in_upload_order(blobs):
    session = EditorSession.for_new_post(AUTHOR_ID)

    report = await service.upload_and_insert(session, [upload("a.png"), upload("b.gif")], AUTHOR_ID)

    assert images(session) == [item.url for item in report.inserted]
    assert session.canonical == document.to_html(session.document)


@pytest.mark.asyncio
async def test_unsupported_extension_is_reported_without_uploading(blobs):
    session = EditorSession.for_new_post(AUTHOR_ID)

    report = await service.upload_and_insert(session, [upload("notes.pdf")], AUTHOR_ID)

    assert blobs.keys == []
    assert report.failures[0].filename == "notes.pdf"


@pytest.mark.asyncio
async def test_oversized_file_is_reported(blobs, monkeypatch):
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "4")
    session = EditorSession.for_new_post(AUTHOR_ID)

    report = await service.upload_and_insert(session, [upload("big.png", b"123456")], AUTHOR_ID)

    assert not report.inserted
    assert "too large" in report.failures[0].error


@pytest.mark.asyncio
async def test_missing_author_uploads_nothing(blobs):
    session = EditorSession.for_new_post(AUTHOR_ID)

    with pytest.raises(errors.AuthorizationError):
        await service.upload_and_insert(session, [upload("a.png")], None)
    assert blobs.keys == []


@pytest.mark.asyncio
async def test_uploads_need_structured_view(blobs):
    session = EditorSession.for_new_post(AUTHOR_ID)
    session.switch_mode(EditorMode.MARKDOWN)

    with pytest.raises(errors.ValidationError):
        await service.upload_and_insert(session, [upload("a.png")], AUTHOR_ID)
    assert blobs.keys == []
