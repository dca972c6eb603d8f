import pytest

from admin import repository, schemas, service
from core import errors
from posts.schemas import Category


@pytest.fixture
def links(monkeypatch):
    rows = []

    async def count_links(category):
        return sum(1 for row in rows if row["category"] == category)

    async def insert_link(category, *, title, url, display_order):
        row = {"id": str(len(rows)), "category": category, "title": title, "url": url, "display_order": display_order}
        rows.append(row)
        return row

    async def list_links():
        return list(rows)

    monkeypatch.setattr(repository, "count_links", count_links)
    monkeypatch.setattr(repository, "insert_link", insert_link)
    monkeypatch.setattr(repository, "list_links", list_links)
    return rows


@pytest.mark.asyncio
async def test_links_are_appended_in_order(links):
    first = await service.add_link(Category.YEGGE, schemas.CreateLinkRequest(title=" Home ", url="https://a.test"))
    second = await service.add_link(Category.YEGGE, schemas.CreateLinkRequest(title="About", url="https://b.test"))

    assert first["title"] == "Home"
    assert (first["display_order"], second["display_order"]) == (1, 2)


@pytest.mark.asyncio
async def test_tenth_link_in_a_category_is_rejected(links):
    request = schemas.CreateLinkRequest(title="x", url="https://x.test")
    for _ in range(service.MAX_LINKS_PER_CATEGORY):
        await service.add_link(Category.ANGERSHADE, request)

    with pytest.raises(errors.ValidationError):
        await service.add_link(Category.ANGERSHADE, request)

    # Other categories have their own limit.
    await service.add_link(Category.THE_CORRUPTIVE, request)


@pytest.mark.asyncio
async def test_links_grouped_by_category(links):
    await service.add_link(Category.YEGGE, schemas.CreateLinkRequest(title="x", url="https://x.test"))

    grouped = await service.get_links()

    assert set(grouped) == {"Angershade", "The Corruptive", "Yegge"}
    assert len(grouped["Yegge"]) == 1
    assert grouped["Angershade"] == []
