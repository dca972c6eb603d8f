"""
Site settings and navigation link persistence.
"""

from __future__ import annotations

from typing import Any

from core import db

_SETTINGS_COLUMNS = "category, logo_url, logo_link, tag_cloud_count, updated_at"
_LINK_COLUMNS = "id::text AS id, category, title, url, display_order, created_at"


async def list_settings() -> list[dict[str, Any]]:
    return await db.fetch_all(f"SELECT {_SETTINGS_COLUMNS} FROM site_settings ORDER BY category")


async def upsert_settings(category: str, *, logo_url: str | None, logo_link: str | None, tag_cloud_count: int) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        INSERT INTO site_settings (category, logo_url, logo_link, tag_cloud_count)
        VALUES ($1, $2, $3, $4)
        ON CONFLICT (category) DO UPDATE
        SET logo_url = EXCLUDED.logo_url,
            logo_link = EXCLUDED.logo_link,
            tag_cloud_count = EXCLUDED.tag_cloud_count,
            updated_at = now()
        RETURNING {_SETTINGS_COLUMNS}
        """,
        category,
        logo_url,
        logo_link,
        tag_cloud_count,
    )


async def list_links() -> list[dict[str, Any]]:
    return await db.fetch_all(f"SELECT {_LINK_COLUMNS} FROM site_links ORDER BY category, display_order")


async def count_links(category: str) -> int:
    row = await db.fetch_one("SELECT count(*) AS n FROM site_links WHERE category = $1", category)
    return int(row["n"]) if row else 0


async def insert_link(category: str, *, title: str, url: str, display_order: int) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        INSERT INTO site_links (category, title, url, display_order)
        VALUES ($1, $2, $3, $4)
        RETURNING {_LINK_COLUMNS}
        """,
        category,
        title,
        url,
        display_order,
    )


async def update_link(link_id: str, *, title: str, url: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        UPDATE site_links
        SET title = $2, url = $3
        WHERE id = $1::uuid
        RETURNING {_LINK_COLUMNS}
        """,
        link_id,
        title,
        url,
    )


async def delete_link(link_id: str) -> bool:
    status = await db.execute("DELETE FROM site_links WHERE id = $1::uuid", link_id)
    return db.affected_rows(status) > 0
