"""
Editor session API endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile

from assets import service as assets_service
from core import errors
from posts import schemas as post_schemas
from posts import service as posts_service
from roles import dependencies as role_dependencies
from roles import gate

from . import schemas
from .registry import registry
from .session import EditorSession
from .transforms import Selection

router = APIRouter(prefix="/editor")


def _session(session_id: UUID, viewer: gate.Viewer) -> EditorSession:
    return registry.get(str(session_id), owner_id=str(viewer.user_id))


@router.post("/sessions", status_code=201)
async def open_session(
    payload: schemas.OpenSessionRequest,
    viewer: gate.Viewer = Depends(role_dependencies.get_author),
) -> dict:
    post = None
    if payload.post_id:
        post = await posts_service.load_for_edit(viewer, payload.post_id)
        session = EditorSession.for_existing_post(str(viewer.user_id), post.id, post.content_html, post.content)
    else:
        session = EditorSession.for_new_post(str(viewer.user_id))
    await registry.open(session, role=viewer.role)
    return {"session": session.snapshot(), "post": post}


@router.get("/sessions/{session_id}")
async def get_session(session_id: UUID, viewer: gate.Viewer = Depends(role_dependencies.get_author)) -> dict:
    return {"session": _session(session_id, viewer).snapshot()}


@router.delete("/sessions/{session_id}")
async def close_session(session_id: UUID, viewer: gate.Viewer = Depends(role_dependencies.get_author)) -> dict:
    registry.close(str(session_id), owner_id=str(viewer.user_id))
    return {"ok": True}


@router.post("/sessions/{session_id}/mode")
async def switch_mode(
    session_id: UUID,
    payload: schemas.SwitchModeRequest,
    viewer: gate.Viewer = Depends(role_dependencies.get_author),
) -> dict:
    session = _session(session_id, viewer)
    session.switch_mode(payload.mode)
    return {"session": session.snapshot()}


@router.put("/sessions/{session_id}/text")
async def edit_text(
    session_id: UUID,
    payload: schemas.EditTextRequest,
    viewer: gate.Viewer = Depends(role_dependencies.get_author),
) -> dict:
    session = _session(session_id, viewer)
    session.edit_text(payload.text)
    return {"session": session.snapshot()}


@router.post("/sessions/{session_id}/commands")
async def run_command(
    session_id: UUID,
    payload: schemas.CommandRequest,
    viewer: gate.Viewer = Depends(role_dependencies.get_author),
) -> dict:
    session = _session(session_id, viewer)
    selection = None
    if payload.selection is not None:
        selection = Selection(payload.selection.block, payload.selection.start, payload.selection.end)
    result = session.run_command(
        payload.command,
        selection=selection,
        text=payload.text,
        href=payload.href,
        start=payload.start,
        end=payload.end,
    )
    result.pop("selection", None)
    return {"session": session.snapshot(), **result}


@router.get("/sessions/{session_id}/preview")
async def preview(session_id: UUID, viewer: gate.Viewer = Depends(role_dependencies.get_author)) -> dict:
    session = _session(session_id, viewer)
    return {"mode": session.mode.value, "html": session.preview()}


@router.post("/sessions/{session_id}/images")
async def upload_images(
    session_id: UUID,
    files: list[UploadFile] = File(...),
    viewer: gate.Viewer = Depends(role_dependencies.get_author),
) -> dict:
    session = _session(session_id, viewer)
    report = await assets_service.upload_and_insert(session, files, viewer.user_id)
    return {
        "session": session.snapshot(),
        "inserted": report.inserted,
        "failures": report.failures,
    }


@router.post("/sessions/{session_id}/save")
async def save(
    session_id: UUID,
    payload: post_schemas.EditorSaveRequest,
    viewer: gate.Viewer = Depends(role_dependencies.get_author),
) -> post_schemas.SaveResponse:
    """
    Persist whatever the last edit emitted, regardless of the view on screen.
    """
    session = _session(session_id, viewer)
    session.begin_save()
    saved_post_id = None
    try:
        result = await posts_service.save_post(
            viewer,
            payload.target,
            payload,
            content_html=session.canonical,
            content=session.structured_blob(),
            post_id=session.post_id,
        )
        saved_post_id = result.post_id
    except errors.PartialFailure as exc:
        # The post row exists even though tag sync did not finish.
        saved_post_id = exc.details.get("post_id")
        raise
    finally:
        session.end_save(saved_post_id)
    return result
