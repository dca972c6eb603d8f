"""
Auth API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header

from . import dependencies, schemas, service

router = APIRouter(prefix="/auth")


@router.post("/register")
async def register(
    payload: schemas.RegisterRequest,
    user_agent: str | None = Header(default=None),
) -> schemas.AuthResponse:
    return await service.register(payload, user_agent=user_agent)


@router.post("/login")
async def login(
    payload: schemas.LoginRequest,
    user_agent: str | None = Header(default=None),
) -> schemas.AuthResponse:
    return await service.login(payload, user_agent=user_agent)


@router.post("/refresh")
async def refresh(
    payload: schemas.RefreshRequest,
    user_agent: str | None = Header(default=None),
) -> schemas.TokenPairResponse:
    return await service.refresh_tokens(payload, user_agent=user_agent)


@router.post("/logout")
async def logout(
    payload: schemas.LogoutRequest,
    current_user: dict | None = Depends(dependencies.get_optional_user),
) -> dict:
    current_user_id = str(current_user["id"]) if current_user else None
    return await service.logout(payload, current_user_id=current_user_id)


@router.get("/me")
async def me(current_user: dict = Depends(dependencies.get_current_user)) -> schemas.UserResponse:
    return service.me(current_user)
