"""
Pydantic schemas for post authoring endpoints.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class Category(StrEnum):
    ANGERSHADE = "Angershade"
    THE_CORRUPTIVE = "The Corruptive"
    YEGGE = "Yegge"


class PostStatus(StrEnum):
    DRAFT = "draft"
    PUBLISHED = "published"
    # Valid in the schema; the save pipeline never assigns it.
    SCHEDULED = "scheduled"


class SaveTarget(StrEnum):
    DRAFT = "draft"
    PUBLISH = "publish"


class PostFields(BaseModel):
    title: str = Field(default="", max_length=300)
    excerpt: str | None = Field(default=None, max_length=1000)
    category: Category = Category.ANGERSHADE
    tags: str = Field(default="", max_length=2000, description="Comma-separated tag names.")
    schedule: datetime | None = None


class SavePostRequest(PostFields):
    target: SaveTarget = SaveTarget.DRAFT
    content_html: str = ""
    content: dict | None = None


class EditorSaveRequest(PostFields):
    target: SaveTarget = SaveTarget.DRAFT


class PostForEdit(BaseModel):
    id: str
    title: str
    excerpt: str | None
    category: Category
    status: PostStatus
    tag_names: list[str]
    schedule: datetime | None
    content_html: str
    content: dict | None = None
    author_id: str


class SaveResponse(BaseModel):
    post_id: str
    slug: str
    status: PostStatus
    published_at: datetime | None
