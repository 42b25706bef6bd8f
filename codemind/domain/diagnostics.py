"""Parse diagnostics and parse result models."""

from typing import Literal

from pydantic import BaseModel

from codemind.domain.note import Note, ProjectRoot


class ParseError(BaseModel):
    """A structural problem in the notes file. Parsing continues past it."""

    type: Literal["duplicate_id", "invalid_format", "missing_required"]
    line: int = 0
    message: str
    note_id: str | None = None


class ParseWarning(BaseModel):
    """A suspicious but recoverable construct in the notes file."""

    type: Literal["orphan_reference", "nesting_mismatch"]
    line: int = 0
    message: str
    note_id: str | None = None


class ParseResult(BaseModel):
    """Output of parsing a notes file.

    Attributes:
        project_root: Project metadata, synthesized with defaults if the text declares none
        notes: Every note in the file keyed by id, children included
        forward_links: Note id to the ids it references
        backward_links: Note id to the ids referencing it
        errors: Structural errors such as duplicate ids
        warnings: References to missing notes and nesting problems
    """

    project_root: ProjectRoot | None = None
    notes: dict[str, Note] = {}
    forward_links: dict[str, list[str]] = {}
    backward_links: dict[str, list[str]] = {}
    errors: list[ParseError] = []
    warnings: list[ParseWarning] = []
