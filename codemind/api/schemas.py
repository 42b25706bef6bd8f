from typing import Literal

from pydantic import BaseModel, Field


class NoteCreate(BaseModel):
    """Request body for adding a note."""

    file: str = Field(..., description="Source file the note is attached to")
    content: str = Field(..., description="Note text, one content line per text line")
    parent_id: str | None = Field(default=None, description="Id of the parent note")
    note_id: str | None = Field(default=None, description="Preferred id, used if not taken")
    author: str | None = None
    line: int | None = None
    tags: list[str] | None = None
    type: Literal["note", "memory"] | None = None
    related: list[str] | None = Field(default=None, description="Ids of notes this one links to")


class NoteUpdate(BaseModel):
    content: str


class NoteMove(BaseModel):
    file: str
    line: int | None = None
