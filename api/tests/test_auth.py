import uuid

import jwt
import pytest

from auth import events, repository, schemas, security, service

USER_ID = str(uuid.uuid4())


def test_password_hash_round_trip():
    hashed = security.hash_password("correct horse battery")
    assert security.verify_password("correct horse battery", hashed)
    assert not security.verify_password("wrong", hashed)


def test_access_token_subject_is_the_user_id():
    token = security.build_access_token(user_id=USER_ID, email="a@example.com")
    assert security.decode_access_token(token) == USER_ID


def test_refresh_token_is_not_an_access_token(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    forged = jwt.encode({"sub": USER_ID, "type": "refresh"}, "test-secret", algorithm="HS256")
    with pytest.raises(security.AuthSecurityError):
        security.decode_access_token(forged)


def test_non_uuid_subject_is_rejected(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    token = jwt.encode({"sub": "42", "type": "access"}, "test-secret", algorithm="HS256")
    with pytest.raises(security.AuthSecurityError):
        security.decode_access_token(token)


@pytest.mark.asyncio
async def test_logout_notifies_subscribers(monkeypatch):
    received = []

    async def listener(event):
        received.append(event)

    async def fake_revoke_all(user_id):
        return None

    monkeypatch.setattr(repository, "revoke_all_refresh_tokens_for_user", fake_revoke_all)
    subscription = events.hub.subscribe(listener)
    try:
        result = await service.logout(schemas.LogoutRequest(), current_user_id=USER_ID)
    finally:
        subscription.unsubscribe()

    assert result == {"ok": True}
    assert received == [events.AuthEvent(events.AuthEventType.SIGNED_OUT, USER_ID)]


@pytest.mark.asyncio
async def test_logout_with_unknown_refresh_token_is_silent(monkeypatch):
    received = []

    async def listener(event):
        received.append(event)

    async def fake_revoke(token_hash):
        return None

    monkeypatch.setattr(repository, "revoke_refresh_token_by_hash", fake_revoke)
    subscription = events.hub.subscribe(listener)
    try:
        await service.logout(schemas.LogoutRequest(refresh_token="x" * 40))
    finally:
        subscription.unsubscribe()

    assert received == []
