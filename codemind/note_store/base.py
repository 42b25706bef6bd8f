from typing import Any, List, Protocol

from codemind.domain.diagnostics import ParseResult
from codemind.domain.graph import LinkGraph, RelatedNote, SearchResult
from codemind.domain.note import Note, ProjectRoot
from codemind.domain.page import Page


class NoteStore(Protocol):
    def get_note(self, note_id: str) -> Note | None:
        """Get a note by its ID."""
        ...

    def get_note_by_path(self, display_path: str) -> Note | None:
        """Get a note by its display path (`file/hash` or `file/parentHash/hash`)."""
        ...

    def get_all_notes(self) -> List[Note]:
        """Get every note, children included."""
        ...

    def get_notes_in_file(self, file: str) -> List[Note]:
        """Get all notes attached to a source file."""
        ...

    def get_notes_by_tag(self, tag: str) -> List[Note]:
        """Get all notes carrying a tag."""
        ...

    def get_notes_by_type(self, note_type: str) -> List[Note]:
        """Get all notes of a type (`note` or `memory`)."""
        ...

    def get_notes_by_date(self, created: str) -> List[Note]:
        """Get all notes created on a date (YYYY-MM-DD)."""
        ...

    def get_all_tags(self) -> List[str]:
        """Get every tag in use, sorted."""
        ...

    def get_all_types(self) -> List[str]:
        """Get every note type in use, sorted."""
        ...

    def get_notes_page(
        self, page: int = 0, page_size: int = 20, file: str | None = None
    ) -> Page[Note]:
        """Get one page of all notes, or of the notes in a file."""
        ...

    def get_children(self, parent_id: str) -> List[Note]:
        """Get the direct children of a note."""
        ...

    def get_backlinks(self, note_id: str) -> List[Note]:
        """Get the notes referencing the given note."""
        ...

    def get_related(self, note_id: str, depth: int = 1) -> List[RelatedNote]:
        """Get notes reachable through links within `depth` hops, in both directions."""
        ...

    def get_orphans(self) -> List[Note]:
        """Get top-level notes without incoming or outgoing links."""
        ...

    def get_popular(self, limit: int = 10) -> List[Note]:
        """Get the most referenced notes."""
        ...

    def get_link_graph(self) -> LinkGraph:
        """Get a snapshot of the link graph."""
        ...

    def search(self, query: str, limit: int = 20) -> List[SearchResult]:
        """Search note content and paths, best matches first."""
        ...

    def search_page(self, query: str, page: int = 0, page_size: int = 20) -> Page[SearchResult]:
        """Get one page of search results."""
        ...

    def add_note(
        self,
        file: str,
        content: str,
        parent_id: str | None = None,
        note_id: str | None = None,
        extra_properties: dict[str, Any] | None = None,
    ) -> Note:
        """Add a new note, optionally as a child of another note."""
        ...

    def update_note(self, note_id: str, content: str) -> Note:
        """Replace the content of a note."""
        ...

    def delete_note(self, note_id: str) -> None:
        """Delete a note and all its descendants."""
        ...

    def move_note(self, note_id: str, new_file: str, new_line: int | None = None) -> Note:
        """Attach a note and its descendants to another file or line."""
        ...

    def reload(self) -> None:
        """Discard in-memory state and load the notes file again."""
        ...

    def save(self) -> None:
        """Write the notes file to disk."""
        ...

    def get_project_root(self) -> ProjectRoot | None:
        """Get the project metadata, None for a store with no notes file yet."""
        ...

    def get_parse_result(self) -> ParseResult | None:
        """Get the result of the last parse, including diagnostics."""
        ...
