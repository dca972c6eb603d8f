"""
Post authoring API endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from roles import dependencies as role_dependencies
from roles import gate

from . import schemas, service

router = APIRouter()


@router.get("/posts/{post_id}/edit")
async def load_for_edit(
    post_id: UUID,
    viewer: gate.Viewer = Depends(role_dependencies.get_author),
) -> schemas.PostForEdit:
    return await service.load_for_edit(viewer, str(post_id))


@router.post("/posts", status_code=201)
async def create_post(
    payload: schemas.SavePostRequest,
    viewer: gate.Viewer = Depends(role_dependencies.get_author),
) -> schemas.SaveResponse:
    return await service.save_post(
        viewer,
        payload.target,
        payload,
        content_html=payload.content_html,
        content=payload.content,
    )


@router.put("/posts/{post_id}")
async def update_post(
    post_id: UUID,
    payload: schemas.SavePostRequest,
    viewer: gate.Viewer = Depends(role_dependencies.get_author),
) -> schemas.SaveResponse:
    return await service.save_post(
        viewer,
        payload.target,
        payload,
        content_html=payload.content_html,
        content=payload.content,
        post_id=str(post_id),
    )


@router.delete("/posts/{post_id}")
async def delete_draft(
    post_id: UUID,
    viewer: gate.Viewer = Depends(role_dependencies.get_author),
) -> dict:
    await service.delete_draft(viewer, str(post_id))
    return {"ok": True, "post_id": str(post_id)}


@router.get("/posts/{post_id}/permissions")
async def post_permissions(
    post_id: UUID,
    viewer: gate.Viewer = Depends(role_dependencies.get_viewer),
) -> dict:
    return await service.permissions(viewer, str(post_id))


@router.get("/drafts")
async def list_drafts(
    viewer: gate.Viewer = Depends(role_dependencies.get_author),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
) -> dict:
    drafts = await service.list_drafts(viewer, limit=limit, offset=offset)
    return {"drafts": drafts, "limit": limit, "offset": offset, "count": len(drafts)}
