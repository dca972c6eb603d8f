"""
Shared fixtures: viewers for each role and in-memory stand-ins for the
repository modules, patched in with monkeypatch so no database is needed.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

import pytest

from core import errors
from posts import repository as posts_repository
from roles import gate
from tags import repository as tags_repository

AUTHOR_ID = "11111111-1111-1111-1111-111111111111"
OTHER_AUTHOR_ID = "22222222-2222-2222-2222-222222222222"
ADMIN_ID = "33333333-3333-3333-3333-333333333333"
READER_ID = "44444444-4444-4444-4444-444444444444"


@pytest.fixture
def author() -> gate.Viewer:
    return gate.Viewer(user_id=AUTHOR_ID, role=gate.Role.AUTHOR)


@pytest.fixture
def other_author() -> gate.Viewer:
    return gate.Viewer(user_id=OTHER_AUTHOR_ID, role=gate.Role.AUTHOR)


@pytest.fixture
def admin() -> gate.Viewer:
    return gate.Viewer(user_id=ADMIN_ID, role=gate.Role.ADMIN)


@pytest.fixture
def reader() -> gate.Viewer:
    return gate.Viewer(user_id=READER_ID, role=gate.Role.READER)


class FakeTagStore:
    def __init__(self) -> None:
        self.tags: dict[str, dict[str, Any]] = {}
        self.links: set[tuple[str, str]] = {("seed-post", "old-tag")}
        self.calls: list[tuple[str, Any]] = []
        self.fail_link_for: set[str] = set()

    async def delete_links_for_post(self, post_id: str) -> int:
        self.calls.append(("delete_links", post_id))
        before = len(self.links)
        self.links = {link for link in self.links if link[0] != post_id}
        return before - len(self.links)

    async def get_tag_by_slug(self, slug: str) -> dict[str, Any] | None:
        self.calls.append(("get_tag", slug))
        return self.tags.get(slug)

    async def insert_tag(self, *, name: str, slug: str) -> dict[str, Any]:
        self.calls.append(("insert_tag", slug))
        row = {"id": str(uuid.uuid4()), "name": name, "slug": slug}
        self.tags[slug] = row
        return row

    async def insert_link(self, *, post_id: str, tag_id: str) -> bool:
        self.calls.append(("insert_link", tag_id))
        slug = next(slug for slug, row in self.tags.items() if row["id"] == tag_id)
        if slug in self.fail_link_for:
            raise errors.PersistenceError("Database error: ConnectionDoesNotExistError")
        if (post_id, tag_id) in self.links:
            return False
        self.links.add((post_id, tag_id))
        return True

    def count(self, action: str) -> int:
        return sum(1 for name, _ in self.calls if name == action)


@pytest.fixture
def tag_store(monkeypatch) -> FakeTagStore:
    store = FakeTagStore()
    for name in ("delete_links_for_post", "get_tag_by_slug", "insert_tag", "insert_link"):
        monkeypatch.setattr(tags_repository, name, getattr(store, name))
    return store


class FakePostStore:
    def __init__(self) -> None:
        self.posts: dict[str, dict[str, Any]] = {}
        self.inserts: list[dict[str, Any]] = []
        self.updates: list[tuple[str, dict[str, Any]]] = []
        self.draft_queries: list[str | None] = []

    def add(self, *, author_id: str, status: str = "draft", published_at: datetime | None = None) -> str:
        post_id = str(uuid.uuid4())
        self.posts[post_id] = {
            "id": post_id,
            "title": "Existing",
            "slug": "existing",
            "excerpt": None,
            "category": "Yegge",
            "status": status,
            "content_html": "<p>Body</p>",
            "author_id": author_id,
            "published_at": published_at,
            "created_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
            "updated_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
        }
        return post_id

    async def insert_post(self, **values: Any) -> dict[str, Any]:
        self.inserts.append(values)
        post_id = str(uuid.uuid4())
        self.posts[post_id] = {"id": post_id, **values}
        return {"id": post_id, "slug": values["slug"], "status": values["status"], "published_at": values["published_at"]}

    async def update_post(self, post_id: str, **values: Any) -> dict[str, Any] | None:
        self.updates.append((post_id, values))
        if post_id not in self.posts:
            return None
        self.posts[post_id].update(values)
        row = self.posts[post_id]
        return {"id": post_id, "slug": row["slug"], "status": row["status"], "published_at": row["published_at"]}

    async def get_post(self, post_id: str) -> dict[str, Any] | None:
        return self.posts.get(post_id)

    async def get_post_for_edit(self, post_id: str) -> dict[str, Any] | None:
        row = self.posts.get(post_id)
        return {**row, "tag_names": ["alpha"]} if row else None

    async def delete_draft(self, post_id: str) -> bool:
        row = self.posts.get(post_id)
        if row is None or row["status"] != "draft":
            return False
        del self.posts[post_id]
        return True

    async def list_drafts(self, *, author_id: str | None = None, limit: int = 100, offset: int = 0) -> list[dict[str, Any]]:
        self.draft_queries.append(author_id)
        return [
            row
            for row in self.posts.values()
            if row["status"] == "draft" and (author_id is None or row["author_id"] == author_id)
        ]


@pytest.fixture
def post_store(monkeypatch) -> FakePostStore:
    store = FakePostStore()
    for name in ("insert_post", "update_post", "get_post", "get_post_for_edit", "delete_draft", "list_drafts"):
        monkeypatch.setattr(posts_repository, name, getattr(store, name))
    return store
