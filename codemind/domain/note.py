"""Note domain models."""

from typing import Literal

from pydantic import BaseModel, Field, PrivateAttr, computed_field

from codemind.parsing.references import extract_references

PROJECT_ROOT_ID = "project-root"
NOTE_ID_PREFIX = "cm."


def id_hash(note_id: str) -> str:
    """Strip the `cm.` prefix from a note id."""
    return note_id.removeprefix(NOTE_ID_PREFIX)


class NoteLine(BaseModel):
    """A single content line of a note.

    Attributes:
        indent: Indent level relative to the note's own content indent
        content: Raw line text
    """

    indent: int = Field(default=0, ge=0)
    content: str

    @property
    def references(self) -> list[str]:
        """Note ids referenced in this line, in order of first appearance."""
        return extract_references(self.content)


class NoteProperties(BaseModel):
    """Properties of a note.

    `backlink_count` and `backlinks` mirror the backlink manager and are only
    written by the store. They are None when the note has no backlinks.
    """

    id: str
    type: Literal["note", "memory"] | None = None
    file: str | None = None
    line: int | None = None
    author: str = "human"
    created: str
    parent: str | None = None
    related: list[str] | None = None
    tags: list[str] | None = None
    title: str | None = None
    backlink_count: int | None = None
    backlinks: list[str] | None = None


class Note(BaseModel):
    """An annotation attached to a location in a source file."""

    properties: NoteProperties
    content: list[NoteLine] = []
    children: list["Note"] = []

    _source_line: int = PrivateAttr(default=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display_path(self) -> str:
        """`file/hash` for top-level notes, `file/parentHash/hash` for children."""
        file = self.properties.file or "unknown"
        note_hash = id_hash(self.properties.id)
        if self.properties.parent:
            return f"{file}/{id_hash(self.properties.parent)}/{note_hash}"
        return f"{file}/{note_hash}"

    @property
    def id(self) -> str:
        return self.properties.id

    @property
    def text(self) -> str:
        """Content lines joined with newlines, indentation dropped."""
        return "\n".join(line.content for line in self.content)


class ProjectRoot(BaseModel):
    """Project-level metadata, one per notes file."""

    id: Literal["project-root"] = PROJECT_ROOT_ID
    type: Literal["project"] = "project"
    name: str = "Unnamed"
    created: str
    project_notes: list[NoteLine] = []
