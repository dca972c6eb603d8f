"""
Auth business logic.

Every change of session state is published on `events.hub` so per-user
derived state (effective roles held by editing sessions) can re-evaluate.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, status

from . import events, repository, schemas, security

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _to_user_response(user_row: dict) -> schemas.UserResponse:
    return schemas.UserResponse(
        id=str(user_row["id"]),
        email=str(user_row["email"]),
        username=user_row.get("username"),
        created_at=user_row["created_at"],
    )


async def _issue_token_pair(
    *,
    user_row: dict,
    user_agent: str | None = None,
) -> tuple[schemas.TokenPairResponse, int]:
    user_id = str(user_row["id"])

    access_token = security.build_access_token(user_id=user_id, email=str(user_row["email"]))
    raw_refresh_token = security.build_refresh_token()
    refresh_row = await repository.insert_refresh_token(
        user_id=user_id,
        token_hash=security.hash_refresh_token(raw_refresh_token),
        expires_at=_utc_now() + timedelta(days=security.refresh_token_expire_days()),
        user_agent=user_agent,
    )
    tokens = schemas.TokenPairResponse(access_token=access_token, refresh_token=raw_refresh_token)
    return tokens, int(refresh_row["id"])


async def register(payload: schemas.RegisterRequest, *, user_agent: str | None = None) -> schemas.AuthResponse:
    existing = await repository.get_user_by_email(payload.email)
    if existing is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email is already registered.",
        )

    user_row = await repository.create_user(
        email=payload.email,
        password_hash=security.hash_password(payload.password),
        username=payload.username,
    )
    tokens, _ = await _issue_token_pair(user_row=user_row, user_agent=user_agent)
    logger.info("user_registered user_id=%s", user_row["id"])
    await events.hub.publish(events.AuthEvent(events.AuthEventType.SIGNED_IN, str(user_row["id"])))
    return schemas.AuthResponse(user=_to_user_response(user_row), tokens=tokens)


async def login(payload: schemas.LoginRequest, *, user_agent: str | None = None) -> schemas.AuthResponse:
    user_row = await repository.get_user_by_email(payload.email)
    if user_row is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password.",
        )

    if not bool(user_row.get("is_active", False)):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is inactive.",
        )

    if not security.verify_password(payload.password, str(user_row.get("password_hash") or "")):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password.",
        )

    tokens, _ = await _issue_token_pair(user_row=user_row, user_agent=user_agent)
    await events.hub.publish(events.AuthEvent(events.AuthEventType.SIGNED_IN, str(user_row["id"])))
    return schemas.AuthResponse(user=_to_user_response(user_row), tokens=tokens)


async def refresh_tokens(
    payload: schemas.RefreshRequest,
    *,
    user_agent: str | None = None,
) -> schemas.TokenPairResponse:
    incoming_hash = security.hash_refresh_token(payload.refresh_token.strip())
    old_token_row = await repository.get_refresh_token_by_hash(incoming_hash)
    if old_token_row is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token.",
        )

    if old_token_row.get("revoked_at") is not None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token is revoked.",
        )

    old_token_id = int(old_token_row["id"])
    expires_at = old_token_row.get("expires_at")
    if not isinstance(expires_at, datetime) or expires_at <= _utc_now():
        # Revoke expired token as cleanup.
        await repository.revoke_refresh_token(old_token_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token is expired.",
        )

    user_row = await repository.get_user_by_id(str(old_token_row["user_id"]))
    if user_row is None or not bool(user_row.get("is_active", False)):
        await repository.revoke_refresh_token(old_token_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token owner.",
        )

    tokens, new_token_id = await _issue_token_pair(user_row=user_row, user_agent=user_agent)
    await repository.revoke_refresh_token(old_token_id, replaced_by=new_token_id)
    await events.hub.publish(events.AuthEvent(events.AuthEventType.TOKEN_REFRESHED, str(user_row["id"])))
    return tokens


async def logout(payload: schemas.LogoutRequest, *, current_user_id: str | None = None) -> dict[str, bool]:
    # A specific refresh token revokes only that session.
    refresh_token = (payload.refresh_token or "").strip()
    if refresh_token:
        owner_id = await repository.revoke_refresh_token_by_hash(security.hash_refresh_token(refresh_token))
        if owner_id is not None:
            await events.hub.publish(events.AuthEvent(events.AuthEventType.SESSION_REVOKED, owner_id))
        return {"ok": True}

    if current_user_id is not None:
        await repository.revoke_all_refresh_tokens_for_user(current_user_id)
        await events.hub.publish(events.AuthEvent(events.AuthEventType.SIGNED_OUT, current_user_id))
        return {"ok": True}

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Provide refresh_token or authenticated user.",
    )


async def get_user_from_access_token(access_token: str) -> dict:
    try:
        user_id = security.decode_access_token(access_token)
    except security.AuthSecurityError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc

    user_row = await repository.get_user_by_id(user_id)
    if user_row is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found.",
        )
    if not bool(user_row.get("is_active", False)):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is inactive.",
        )
    return user_row


def me(user_row: dict) -> schemas.UserResponse:
    return _to_user_response(user_row)
