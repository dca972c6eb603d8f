"""
Role introspection for the current viewer.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from . import dependencies, gate

router = APIRouter()


@router.get("/me/role")
async def my_role(viewer: gate.Viewer = Depends(dependencies.get_viewer)) -> dict:
    return {
        "role": viewer.role.value if viewer.role else None,
        "is_admin": gate.can_access_settings(viewer),
        "is_author": gate.can_access_authoring_area(viewer),
    }
