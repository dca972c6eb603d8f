"""
Publication state rules.

Only `draft` and `published` are ever written. Scheduling works through a
future `published_at` on a published post: the row is stored immediately and
becomes publicly visible once the timestamp passes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from .schemas import PostStatus, SaveTarget


@dataclass(frozen=True)
class Publication:
    status: PostStatus
    published_at: datetime | None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def compute_publication(
    target: SaveTarget | str,
    *,
    schedule: datetime | None = None,
    prior_published_at: datetime | None = None,
    now: datetime | None = None,
) -> Publication:
    """
    Status and `published_at` for a save.

    A supplied schedule always wins, even on a draft. Publishing without a
    schedule keeps an earlier `published_at` and otherwise stamps `now`.
    Everything else clears the timestamp.
    """
    target = SaveTarget(target)
    status = PostStatus.PUBLISHED if target == SaveTarget.PUBLISH else PostStatus.DRAFT

    if schedule is not None:
        return Publication(status, as_utc(schedule))
    if target == SaveTarget.PUBLISH:
        return Publication(status, prior_published_at or now or utcnow())
    return Publication(status, None)


def as_utc(value: datetime | None) -> datetime | None:
    """Naive timestamps are taken to be UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def is_publicly_visible(status: str, published_at: datetime | None, *, now: datetime | None = None) -> bool:
    if status != PostStatus.PUBLISHED or published_at is None:
        return False
    return as_utc(published_at) <= as_utc(now or utcnow())
