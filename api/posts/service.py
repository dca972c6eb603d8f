"""
Post save orchestration.

`save_post` runs: validate -> authorize -> compute publication state ->
insert or update -> tag sync. Validation and authorization failures raise
before any write. Tag sync runs after the post row is written and is not
part of a transaction, so its failures surface as `PartialFailure` carrying
the saved post id.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from core import errors, slugs
from roles import gate
from tags import service as tags_service

from . import publishing, repository
from .schemas import PostFields, PostForEdit, PostStatus, SaveResponse, SaveTarget

logger = logging.getLogger(__name__)


def validate_fields(fields: PostFields, content_html: str) -> str:
    """
    Check the form and return the derived slug.
    """
    if not fields.title.strip():
        raise errors.ValidationError("Title is required.")
    if not (content_html or "").strip():
        raise errors.ValidationError("Content is required.")
    slug = slugs.normalize(fields.title)
    if not slug:
        raise errors.ValidationError("Title must contain at least one letter or digit.")
    tags_service.validate_tag_names(tags_service.parse_tag_field(fields.tags))
    return slug


async def _load_post(post_id: str) -> dict[str, Any]:
    row = await repository.get_post(post_id)
    if row is None:
        raise errors.NotFoundError("Post not found.")
    return row


async def save_post(
    viewer: gate.Viewer,
    target: SaveTarget | str,
    fields: PostFields,
    *,
    content_html: str,
    content: dict[str, Any] | None = None,
    post_id: str | None = None,
) -> SaveResponse:
    if not viewer.authenticated:
        raise errors.AuthorizationError("You must be signed in to save a post.")
    slug = validate_fields(fields, content_html)

    gate.require_authoring_area(viewer)
    existing = None
    if post_id is not None:
        existing = await _load_post(post_id)
        gate.require_edit(viewer, existing["author_id"])

    publication = publishing.compute_publication(
        target,
        schedule=fields.schedule,
        prior_published_at=existing["published_at"] if existing else None,
    )
    values = {
        "title": fields.title.strip(),
        "slug": slug,
        "excerpt": (fields.excerpt or "").strip() or None,
        "category": fields.category.value,
        "status": publication.status.value,
        "published_at": publication.published_at,
        "content_html": content_html,
        "content": content,
    }

    if existing is None:
        row = await repository.insert_post(**values, author_id=str(viewer.user_id))
    else:
        row = await repository.update_post(post_id, **values)
        if row is None:
            raise errors.NotFoundError("Post not found.")

    saved_id = str(row["id"])
    logger.info(
        "post_saved post_id=%s status=%s created=%s",
        saved_id,
        publication.status,
        existing is None,
    )

    if fields.tags.strip():
        report = await tags_service.sync_tags(saved_id, fields.tags)
        if not report.ok:
            raise errors.PartialFailure(
                "The post was saved but some tags could not be updated.",
                details=report.as_details(),
            )

    return SaveResponse(
        post_id=saved_id,
        slug=str(row["slug"]),
        status=PostStatus(row["status"]),
        published_at=row["published_at"],
    )


def _decode_content(raw: Any) -> dict | None:
    # asyncpg hands jsonb back as text unless a codec is registered.
    if isinstance(raw, str):
        raw = json.loads(raw)
    return raw if isinstance(raw, dict) else None


async def load_for_edit(viewer: gate.Viewer, post_id: str) -> PostForEdit:
    row = await repository.get_post_for_edit(post_id)
    if row is None:
        raise errors.NotFoundError("Post not found.")
    gate.require_edit(viewer, row["author_id"])
    return PostForEdit(
        id=str(row["id"]),
        title=row["title"],
        excerpt=row["excerpt"],
        category=row["category"],
        status=row["status"],
        tag_names=list(row["tag_names"] or []),
        schedule=row["published_at"],
        content_html=row["content_html"] or "",
        content=_decode_content(row.get("content")),
        author_id=str(row["author_id"]),
    )


async def delete_draft(viewer: gate.Viewer, post_id: str) -> None:
    row = await _load_post(post_id)
    gate.require_edit(viewer, row["author_id"])
    if row["status"] != PostStatus.DRAFT:
        raise errors.ConflictError("Only drafts can be deleted.")
    if not await repository.delete_draft(post_id):
        # Published between the read and the delete.
        raise errors.ConflictError("Only drafts can be deleted.")
    logger.info("draft_deleted post_id=%s", post_id)


async def list_drafts(viewer: gate.Viewer, *, limit: int = 100, offset: int = 0) -> list[dict[str, Any]]:
    gate.require_authoring_area(viewer)
    author_id = None if viewer.role == gate.Role.ADMIN else viewer.user_id
    return await repository.list_drafts(author_id=author_id, limit=limit, offset=offset)


async def permissions(viewer: gate.Viewer, post_id: str) -> dict[str, bool]:
    row = await _load_post(post_id)
    return {"can_edit": gate.can_edit(viewer, row["author_id"])}
