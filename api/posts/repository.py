"""
Post persistence (raw SQL).
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from core import db, errors

_POST_COLUMNS = """
    p.id::text AS id, p.title, p.slug, p.excerpt, p.category, p.status,
    p.content_html, p.author_id::text AS author_id,
    p.published_at, p.created_at, p.updated_at
"""


async def insert_post(
    *,
    title: str,
    slug: str,
    excerpt: str | None,
    category: str,
    status: str,
    published_at: datetime | None,
    content_html: str,
    content: dict[str, Any] | None,
    author_id: str,
) -> dict[str, Any]:
    row = await db.fetch_one(
        """
        INSERT INTO posts (title, slug, excerpt, category, status, published_at, content_html, content, author_id)
        VALUES ($1, $2, $3, $4, $5, $6, $7, $8::jsonb, $9::uuid)
        RETURNING id::text AS id, slug, status, published_at
        """,
        title,
        slug,
        excerpt,
        category,
        status,
        published_at,
        content_html,
        json.dumps(content) if content is not None else None,
        author_id,
    )
    if row is None:
        raise errors.PersistenceError("Failed to create post.")
    return row


async def update_post(
    post_id: str,
    *,
    title: str,
    slug: str,
    excerpt: str | None,
    category: str,
    status: str,
    published_at: datetime | None,
    content_html: str,
    content: dict[str, Any] | None,
) -> dict[str, Any] | None:
    """
    Overwrite the editable fields of a post. `author_id` is never touched.
    """
    return await db.fetch_one(
        """
        UPDATE posts
        SET title = $2,
            slug = $3,
            excerpt = $4,
            category = $5,
            status = $6,
            published_at = $7,
            content_html = $8,
            content = $9::jsonb,
            updated_at = now()
        WHERE id = $1::uuid
        RETURNING id::text AS id, slug, status, published_at
        """,
        post_id,
        title,
        slug,
        excerpt,
        category,
        status,
        published_at,
        content_html,
        json.dumps(content) if content is not None else None,
    )


async def get_post(post_id: str) -> dict[str, Any] | None:
    return await db.fetch_one(f"SELECT {_POST_COLUMNS} FROM posts p WHERE p.id = $1::uuid", post_id)


async def get_post_for_edit(post_id: str) -> dict[str, Any] | None:
    """
    The post plus its structured blob and tag names (in the order they were
    linked), in one round trip.
    """
    return await db.fetch_one(
        f"""
        SELECT {_POST_COLUMNS},
               p.content,
               COALESCE(
                   array_agg(t.name ORDER BY pt.created_at, t.name) FILTER (WHERE t.id IS NOT NULL),
                   ARRAY[]::text[]
               ) AS tag_names
        FROM posts p
        LEFT JOIN post_tags pt ON pt.post_id = p.id
        LEFT JOIN tags t ON t.id = pt.tag_id
        WHERE p.id = $1::uuid
        GROUP BY p.id
        """,
        post_id,
    )


async def delete_draft(post_id: str) -> bool:
    status = await db.execute("DELETE FROM posts WHERE id = $1::uuid AND status = 'draft'", post_id)
    return db.affected_rows(status) > 0


async def list_drafts(*, author_id: str | None = None, limit: int = 100, offset: int = 0) -> list[dict[str, Any]]:
    """
    Drafts newest first, with author username and tag names.

    `author_id=None` lists every author's drafts.
    """
    return await db.fetch_all(
        f"""
        SELECT {_POST_COLUMNS},
               pr.username,
               COALESCE(
                   array_agg(t.name ORDER BY pt.created_at, t.name) FILTER (WHERE t.id IS NOT NULL),
                   ARRAY[]::text[]
               ) AS tag_names
        FROM posts p
        LEFT JOIN profiles pr ON pr.id = p.author_id
        LEFT JOIN post_tags pt ON pt.post_id = p.id
        LEFT JOIN tags t ON t.id = pt.tag_id
        WHERE p.status = 'draft'
          AND ($1::uuid IS NULL OR p.author_id = $1::uuid)
        GROUP BY p.id, pr.username
        ORDER BY p.updated_at DESC
        LIMIT $2 OFFSET $3
        """,
        author_id,
        limit,
        offset,
    )
