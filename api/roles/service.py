"""
Role resolution against the role store.
"""

from __future__ import annotations

from . import gate, repository


async def fetch_effective_role(user_id: str | None) -> gate.Role | None:
    if user_id is None:
        return None
    rows = await repository.list_roles(user_id)
    return gate.effective_role(rows)


async def resolve_viewer(user_row: dict | None) -> gate.Viewer:
    if user_row is None:
        return gate.ANONYMOUS
    user_id = str(user_row["id"])
    return gate.Viewer(user_id=user_id, role=await fetch_effective_role(user_id))
