"""
Pydantic schemas for editor session endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from .session import EditorMode


class OpenSessionRequest(BaseModel):
    post_id: str | None = None


class SwitchModeRequest(BaseModel):
    mode: EditorMode


class EditTextRequest(BaseModel):
    text: str = Field(default="", max_length=2_000_000)


class SelectionModel(BaseModel):
    block: int = Field(default=0, ge=0)
    start: int = Field(default=0, ge=0)
    end: int | None = Field(default=None, ge=0)


class CommandRequest(BaseModel):
    command: str = Field(..., min_length=1, max_length=50)
    selection: SelectionModel | None = None
    text: str | None = None
    href: str | None = Field(default=None, max_length=2000)
    start: int | None = Field(default=None, ge=0)
    end: int | None = Field(default=None, ge=0)
