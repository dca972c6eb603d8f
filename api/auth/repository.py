"""
Auth persistence helpers.
"""

from __future__ import annotations

from datetime import datetime, timezone

import asyncpg

from core import db, errors


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


async def create_user(*, email: str, password_hash: str, username: str) -> dict:
    """
    Insert a user and its public profile in a single transaction.
    """
    try:
        async with db.pool().acquire() as conn:  # type: asyncpg.Connection
            async with conn.transaction():
                row = await conn.fetchrow(
                    """
                    INSERT INTO users (email, password_hash)
                    VALUES ($1, $2)
                    RETURNING id::text AS id, email, is_active, created_at
                    """,
                    normalize_email(email),
                    password_hash,
                )
                if row is None:
                    raise errors.PersistenceError("Failed to create user.")
                await conn.execute(
                    "INSERT INTO profiles (id, username) VALUES ($1::uuid, $2)",
                    row["id"],
                    username.strip(),
                )
    except db.DRIVER_ERRORS as exc:
        raise db.translate_error(exc) from exc
    return {**dict(row), "username": username.strip()}


async def get_user_by_email(email: str) -> dict | None:
    return await db.fetch_one(
        """
        SELECT u.id::text AS id, u.email, u.password_hash, u.is_active, u.created_at, p.username
        FROM users u
        LEFT JOIN profiles p ON p.id = u.id
        WHERE lower(u.email) = lower($1)
        """,
        normalize_email(email),
    )


async def get_user_by_id(user_id: str) -> dict | None:
    return await db.fetch_one(
        """
        SELECT u.id::text AS id, u.email, u.password_hash, u.is_active, u.created_at, p.username
        FROM users u
        LEFT JOIN profiles p ON p.id = u.id
        WHERE u.id = $1::uuid
        """,
        user_id,
    )


async def insert_refresh_token(
    *,
    user_id: str,
    token_hash: str,
    expires_at: datetime,
    user_agent: str | None = None,
) -> dict:
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)

    row = await db.fetch_one(
        """
        INSERT INTO refresh_tokens (user_id, token_hash, expires_at, user_agent)
        VALUES ($1::uuid, $2, $3, $4)
        RETURNING id, user_id::text AS user_id, expires_at, revoked_at
        """,
        user_id,
        token_hash,
        expires_at,
        user_agent,
    )
    if row is None:
        raise errors.PersistenceError("Failed to insert refresh token.")
    return row


async def get_refresh_token_by_hash(token_hash: str) -> dict | None:
    return await db.fetch_one(
        """
        SELECT id, user_id::text AS user_id, expires_at, revoked_at
        FROM refresh_tokens
        WHERE token_hash = $1
        """,
        token_hash,
    )


async def revoke_refresh_token(token_id: int, *, replaced_by: int | None = None) -> None:
    await db.execute(
        """
        UPDATE refresh_tokens
        SET revoked_at = now(),
            replaced_by_token_id = COALESCE($2, replaced_by_token_id)
        WHERE id = $1
          AND revoked_at IS NULL
        """,
        token_id,
        replaced_by,
    )


async def revoke_refresh_token_by_hash(token_hash: str) -> str | None:
    """
    Revoke one token. Returns the owning user id, or None if nothing was revoked.
    """
    row = await db.fetch_one(
        """
        UPDATE refresh_tokens
        SET revoked_at = now()
        WHERE token_hash = $1
          AND revoked_at IS NULL
        RETURNING user_id::text AS user_id
        """,
        token_hash,
    )
    return row["user_id"] if row else None


async def revoke_all_refresh_tokens_for_user(user_id: str) -> None:
    await db.execute(
        """
        UPDATE refresh_tokens
        SET revoked_at = now()
        WHERE user_id = $1::uuid
          AND revoked_at IS NULL
        """,
        user_id,
    )
