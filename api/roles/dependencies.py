"""
Viewer dependencies: resolve the effective role for every request.
"""

from __future__ import annotations

from fastapi import Depends

from auth import dependencies as auth_dependencies

from . import gate, service


async def get_viewer(
    current_user: dict | None = Depends(auth_dependencies.get_optional_user),
) -> gate.Viewer:
    return await service.resolve_viewer(current_user)


async def get_author(
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> gate.Viewer:
    viewer = await service.resolve_viewer(current_user)
    gate.require_authoring_area(viewer)
    return viewer


async def get_admin(
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> gate.Viewer:
    viewer = await service.resolve_viewer(current_user)
    gate.require_settings(viewer)
    return viewer
