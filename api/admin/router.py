"""
Admin site-settings API endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from posts.schemas import Category
from roles import dependencies as role_dependencies
from roles import gate

from . import schemas, service

router = APIRouter(prefix="/site")


@router.get("/settings")
async def get_settings(_: gate.Viewer = Depends(role_dependencies.get_admin)) -> dict:
    return {"settings": await service.get_settings()}


@router.put("/settings/{category}")
async def update_settings(
    category: Category,
    payload: schemas.UpdateSettingsRequest,
    _: gate.Viewer = Depends(role_dependencies.get_admin),
) -> dict:
    return {"settings": await service.update_settings(category, payload)}


@router.get("/links")
async def get_links(_: gate.Viewer = Depends(role_dependencies.get_admin)) -> dict:
    return {"links": await service.get_links()}


@router.post("/links/{category}", status_code=201)
async def add_link(
    category: Category,
    payload: schemas.CreateLinkRequest,
    _: gate.Viewer = Depends(role_dependencies.get_admin),
) -> dict:
    return {"link": await service.add_link(category, payload)}


@router.put("/links/{link_id}")
async def update_link(
    link_id: UUID,
    payload: schemas.UpdateLinkRequest,
    _: gate.Viewer = Depends(role_dependencies.get_admin),
) -> dict:
    return {"link": await service.update_link(str(link_id), payload)}


@router.delete("/links/{link_id}")
async def delete_link(link_id: UUID, _: gate.Viewer = Depends(role_dependencies.get_admin)) -> dict:
    await service.delete_link(str(link_id))
    return {"ok": True}
