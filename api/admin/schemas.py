"""
Pydantic schemas for the admin settings area.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class UpdateSettingsRequest(BaseModel):
    logo_url: str | None = Field(default=None, max_length=2000)
    logo_link: str | None = Field(default=None, max_length=2000)
    tag_cloud_count: int = Field(default=10, ge=1, le=100)


class CreateLinkRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    url: str = Field(..., min_length=1, max_length=2000)


class UpdateLinkRequest(CreateLinkRequest):
    pass
