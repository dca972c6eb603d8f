"""
Tag reconciliation for a post.

`sync_tags` replaces a post's links with the tags named in a comma-separated
field. The sequence is not transactional: links are deleted first, then each
name is resolved (or created) and linked in order. A failing step is recorded
and the remaining names are still processed; nothing is rolled back or
retried. The returned report lists every completed step so the caller can
tell the user exactly what happened.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from core import errors, slugs

from . import repository

logger = logging.getLogger(__name__)


@dataclass
class TagStep:
    action: str  # "delete_links" | "create_tag" | "link" | "link_skipped"
    name: str | None = None
    slug: str | None = None
    tag_id: str | None = None
    count: int | None = None


@dataclass
class TagFailure:
    action: str
    name: str | None
    error: str


@dataclass
class TagSyncReport:
    post_id: str
    requested: list[str]
    steps: list[TagStep] = field(default_factory=list)
    failures: list[TagFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def link_attempts(self) -> int:
        return sum(1 for step in self.steps if step.action in ("link", "link_skipped")) + sum(
            1 for f in self.failures if f.action == "link"
        )

    def as_details(self) -> dict:
        return {
            "post_id": self.post_id,
            "completed_steps": [step.__dict__ for step in self.steps],
            "failed_steps": [failure.__dict__ for failure in self.failures],
        }


def parse_tag_field(raw: str | None) -> list[str]:
    """
    Split on commas, trim, drop empties. Order and duplicates are kept.
    """
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


def validate_tag_names(names: list[str]) -> None:
    invalid = [name for name in names if not slugs.normalize(name)]
    if invalid:
        raise errors.ValidationError(
            "Tags must contain at least one letter or digit.",
            details={"invalid_tags": invalid},
        )


async def _resolve_tag(name: str, slug: str, report: TagSyncReport) -> str:
    existing = await repository.get_tag_by_slug(slug)
    if existing is not None:
        return str(existing["id"])
    created = await repository.insert_tag(name=name, slug=slug)
    report.steps.append(TagStep("create_tag", name=name, slug=slug, tag_id=str(created["id"])))
    return str(created["id"])


async def sync_tags(post_id: str, raw_tag_field: str) -> TagSyncReport:
    """
    Replace the post's tag links with the tags named in `raw_tag_field`.

    A repeated name resolves to the tag created earlier in the same batch, and
    its second link attempt is recorded as skipped.
    """
    names = parse_tag_field(raw_tag_field)
    report = TagSyncReport(post_id=post_id, requested=names)
    if not names:
        return report
    validate_tag_names(names)

    try:
        deleted = await repository.delete_links_for_post(post_id)
        report.steps.append(TagStep("delete_links", count=deleted))
    except errors.InkwellError as exc:
        logger.warning("tag_links_delete_failed post_id=%s error=%s", post_id, exc.message)
        report.failures.append(TagFailure("delete_links", None, exc.message))

    for name in names:
        slug = slugs.normalize(name)
        try:
            tag_id = await _resolve_tag(name, slug, report)
        except errors.InkwellError as exc:
            logger.warning("tag_resolve_failed post_id=%s tag=%s error=%s", post_id, name, exc.message)
            report.failures.append(TagFailure("create_tag", name, exc.message))
            continue

        try:
            inserted = await repository.insert_link(post_id=post_id, tag_id=tag_id)
        except errors.InkwellError as exc:
            logger.warning("tag_link_failed post_id=%s tag=%s error=%s", post_id, name, exc.message)
            report.failures.append(TagFailure("link", name, exc.message))
            continue
        report.steps.append(TagStep("link" if inserted else "link_skipped", name=name, slug=slug, tag_id=tag_id))

    logger.info(
        "tags_synced post_id=%s requested=%s failures=%s",
        post_id,
        len(names),
        len(report.failures),
    )
    return report
