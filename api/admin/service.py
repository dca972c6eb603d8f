"""
Admin-only site settings: per-category logo, tag cloud size and up to
`MAX_LINKS_PER_CATEGORY` navigation links.
"""

from __future__ import annotations

import logging
from typing import Any

from core import errors
from posts.schemas import Category

from . import repository, schemas

logger = logging.getLogger(__name__)

MAX_LINKS_PER_CATEGORY = 9


def _group_by_category(rows: list[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    grouped: dict[str, list[dict[str, Any]]] = {category.value: [] for category in Category}
    for row in rows:
        grouped.setdefault(row["category"], []).append(row)
    return grouped


async def get_settings() -> dict[str, Any]:
    rows = await repository.list_settings()
    return {row["category"]: row for row in rows}


async def update_settings(category: Category, request: schemas.UpdateSettingsRequest) -> dict[str, Any]:
    row = await repository.upsert_settings(
        category.value,
        logo_url=(request.logo_url or "").strip() or None,
        logo_link=(request.logo_link or "").strip() or None,
        tag_cloud_count=request.tag_cloud_count,
    )
    if row is None:
        raise errors.PersistenceError("Failed to update settings.")
    logger.info("site_settings_updated category=%s", category.value)
    return row


async def get_links() -> dict[str, list[dict[str, Any]]]:
    return _group_by_category(await repository.list_links())


async def add_link(category: Category, request: schemas.CreateLinkRequest) -> dict[str, Any]:
    count = await repository.count_links(category.value)
    if count >= MAX_LINKS_PER_CATEGORY:
        raise errors.ValidationError(f"Maximum {MAX_LINKS_PER_CATEGORY} links allowed per category.")
    row = await repository.insert_link(
        category.value,
        title=request.title.strip(),
        url=request.url.strip(),
        display_order=count + 1,
    )
    if row is None:
        raise errors.PersistenceError("Failed to add link.")
    return row


async def update_link(link_id: str, request: schemas.UpdateLinkRequest) -> dict[str, Any]:
    row = await repository.update_link(link_id, title=request.title.strip(), url=request.url.strip())
    if row is None:
        raise errors.NotFoundError("Link not found.")
    return row


async def delete_link(link_id: str) -> None:
    if not await repository.delete_link(link_id):
        raise errors.NotFoundError("Link not found.")
