"""
Role assignment reads. Assignments are managed elsewhere; this core only reads them.
"""

from __future__ import annotations

from core import db


async def list_roles(user_id: str) -> list[str]:
    rows = await db.fetch_all(
        """
        SELECT role::text AS role
        FROM user_roles
        WHERE user_id = $1::uuid
        ORDER BY role
        """,
        user_id,
    )
    return [str(row["role"]) for row in rows]
