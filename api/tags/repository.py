"""
Tag and post-tag link persistence.
"""

from __future__ import annotations

from typing import Any

from core import db, errors


async def delete_links_for_post(post_id: str) -> int:
    status = await db.execute("DELETE FROM post_tags WHERE post_id = $1::uuid", post_id)
    return db.affected_rows(status)


async def get_tag_by_slug(slug: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        "SELECT id::text AS id, name, slug FROM tags WHERE slug = $1",
        slug,
    )


async def insert_tag(*, name: str, slug: str) -> dict[str, Any]:
    row = await db.fetch_one(
        """
        INSERT INTO tags (name, slug)
        VALUES ($1, $2)
        RETURNING id::text AS id, name, slug
        """,
        name,
        slug,
    )
    if row is None:
        raise errors.PersistenceError("Failed to create tag.")
    return row


async def insert_link(*, post_id: str, tag_id: str) -> bool:
    """
    Link a post to a tag. Returns False when the link already existed.
    """
    row = await db.fetch_one(
        """
        INSERT INTO post_tags (post_id, tag_id)
        VALUES ($1::uuid, $2::uuid)
        ON CONFLICT (post_id, tag_id) DO NOTHING
        RETURNING post_id
        """,
        post_id,
        tag_id,
    )
    return row is not None

