import pytest

from core import errors
from tags import service

POST_ID = "seed-post"


def test_parse_tag_field_keeps_order_and_duplicates():
    assert service.parse_tag_field(" a, b ,, a ,") == ["a", "b", "a"]
    assert service.parse_tag_field(None) == []


@pytest.mark.asyncio
async def test_repeated_tag_is_created_once(tag_store):
    report = await service.sync_tags(POST_ID, "a, b, a")

    assert tag_store.count("delete_links") == 1
    assert tag_store.count("insert_link") == 3
    assert tag_store.count("insert_tag") == 2
    assert sorted(tag_store.tags) == ["a", "b"]
    assert [step.action for step in report.steps] == [
        "delete_links",
        "create_tag",
        "link",
        "create_tag",
        "link",
        "link_skipped",
    ]
    assert report.link_attempts == 3
    assert report.ok


@pytest.mark.asyncio
async def test_old_links_are_replaced(tag_store):
    await service.sync_tags(POST_ID, "Python")
    assert tag_store.links == {(POST_ID, tag_store.tags["python"]["id"])}


@pytest.mark.asyncio
async def test_existing_tag_is_reused(tag_store):
    existing = await tag_store.insert_tag(name="Rust", slug="rust")
    tag_store.calls.clear()

    report = await service.sync_tags(POST_ID, "rust")

    assert tag_store.count("insert_tag") == 0
    assert report.steps[-1].tag_id == existing["id"]


@pytest.mark.asyncio
async def test_failed_link_is_reported_and_the_rest_continue(tag_store):
    tag_store.fail_link_for = {"b"}

    report = await service.sync_tags(POST_ID, "a, b, c")

    assert not report.ok
    assert [(f.action, f.name) for f in report.failures] == [("link", "b")]
    # The tag row for "b" stays behind without a link.
    assert "b" in tag_store.tags
    assert {step.name for step in report.steps if step.action == "link"} == {"a", "c"}
    details = report.as_details()
    assert details["post_id"] == POST_ID
    assert details["failed_steps"][0]["name"] == "b"


@pytest.mark.asyncio
async def test_tag_with_empty_slug_is_rejected_before_any_write(tag_store):
    with pytest.raises(errors.ValidationError):
        await service.sync_tags(POST_ID, "fine, ???")
    assert tag_store.calls == []


@pytest.mark.asyncio
async def test_blank_field_does_nothing(tag_store):
    report = await service.sync_tags(POST_ID, " , ")
    assert report.steps == []
    assert tag_store.calls == []
