import os
import stat
import tempfile
from collections import deque
from datetime import date
from pathlib import Path
from typing import Any, Callable, Iterator, List

from loguru import logger

from codemind.backlinks import BacklinkManager
from codemind.domain.diagnostics import ParseResult
from codemind.domain.graph import LinkGraph, RelatedNote, SearchMatch, SearchResult
from codemind.domain.note import Note, NoteLine, NoteProperties, ProjectRoot
from codemind.domain.page import Page, paginate
from codemind.errors import ErrorCode, NoteNotFoundError
from codemind.ids import generate_id as default_generate_id
from codemind.ids import generate_unique_id
from codemind.note_store.base import NoteStore
from codemind.note_store.index import NoteIndex
from codemind.parsing.parser import parse
from codemind.writer import SUMMARY_MAX_LENGTH, write

# Properties add_note always sets itself, or that mirror the backlink manager
_RESERVED_PROPERTIES = {"id", "file", "parent", "backlink_count", "backlinks"}


class LocalNoteStore(NoteStore):
    """Note store persisted to a single human-editable notes file.

    Single-threaded and single-writer: the store takes no file locks. Saves are
    atomic (temporary sibling file, then rename), but two processes saving the
    same file still overwrite each other, so callers sharing a notes file must
    serialize their access, for example through one long-running process.
    """

    def __init__(
        self,
        filepath: str | Path | None = None,
        *,
        generate_id: Callable[[], str] | None = None,
        auto_save: bool = True,
        sort_notes: bool = True,
        summary_max_length: int = SUMMARY_MAX_LENGTH,
    ) -> None:
        """Initialize LocalNoteStore.

        Args:
            filepath: Path to the notes file. If it exists it is loaded, otherwise the
                     store starts empty and creates it on the first save.
                     If not provided, the store lives in memory only.
            generate_id: Id generator for new notes, retried until it returns an unused id
            auto_save: Write the notes file after every mutation
            sort_notes: Sort notes by file and id when writing
            summary_max_length: Maximum length of the summary written after note titles
        """
        self._filepath = Path(filepath) if filepath else None
        self._generate_id = generate_id or default_generate_id
        self._auto_save = auto_save
        self._sort_notes = sort_notes
        self._summary_max_length = summary_max_length

        self._project_root: ProjectRoot | None = None
        self._notes: dict[str, Note] = {}
        self._parse_result: ParseResult | None = None
        self._backlinks = BacklinkManager()
        self._index = NoteIndex()
        self._source_text: str | None = None
        self._dirty = False

        self.load()

    @classmethod
    def from_text(cls, text: str, **kwargs: Any) -> "LocalNoteStore":
        """Create an in-memory store from notes file text (useful for testing).

        `reload()` on such a store parses the same text again.

        Args:
            text: Notes file text in either dialect
            **kwargs: Keyword options accepted by the constructor

        Returns:
            LocalNoteStore instance without a backing file
        """
        instance = cls(filepath=None, **kwargs)
        instance._source_text = text
        instance.load()
        return instance

    # Loading and persistence

    def load(self) -> None:
        """Load the notes file, or reset to an empty graph if there is none."""
        if not self._filepath:
            if self._source_text is not None:
                self._adopt(parse(self._source_text))
            else:
                self._reset()
            return

        if not self._filepath.exists():
            self._reset()
            return

        # newline="" keeps lone carriage returns inside content lines
        with open(self._filepath, encoding="utf-8", newline="") as f:
            text = f.read()
        self._adopt(parse(text))
        logger.info(f"Loaded {len(self._notes)} notes from {self._filepath}")

    def _reset(self) -> None:
        self._project_root = None
        self._notes = {}
        self._parse_result = None
        self._backlinks = BacklinkManager()
        self._index = NoteIndex()
        self._dirty = False

    def _adopt(self, result: ParseResult) -> None:
        for error in result.errors:
            logger.warning(f"{error.type} (line {error.line}): {error.message}")
        for warning in result.warnings:
            logger.debug(f"{warning.type} (line {warning.line}): {warning.message}")

        self._parse_result = result
        self._project_root = result.project_root
        self._notes = dict(result.notes)
        self._backlinks = BacklinkManager()
        self._backlinks.rebuild_all(self._top_level_notes())
        self._index = NoteIndex()
        self._index.build(self._notes.values())
        self._update_backlink_fields()
        self._dirty = False

    def reload(self) -> None:
        self.load()

    def save(self, filepath: str | Path | None = None) -> None:
        """Write the notes file.

        Args:
            filepath: Path to save to. If not provided, uses the filepath from initialization.
        """
        save_path = Path(filepath) if filepath else self._filepath
        if not save_path:
            raise ValueError(
                "No filepath provided and no default filepath set during initialization"
            )
        self._save_to_file(save_path)

    def _save_to_file(self, path: Path) -> None:
        text = write(
            self._project_root,
            self._top_level_notes(),
            sort_notes=self._sort_notes,
            summary_max_length=self._summary_max_length,
        )

        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(text)
            if path.exists():
                os.chmod(tmp_name, stat.S_IMODE(path.stat().st_mode))
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        self._dirty = False
        logger.debug(f"Saved {len(self._notes)} notes to {path}")

    def _mark_dirty(self) -> None:
        self._dirty = True
        if self._auto_save and self._filepath:
            self._save_to_file(self._filepath)

    # Internal helpers

    def _top_level_notes(self) -> List[Note]:
        return [note for note in self._notes.values() if not note.properties.parent]

    def _require(self, note_id: str) -> Note:
        note = self._notes.get(note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        return note

    def _update_backlink_fields(self) -> None:
        """Mirror the backward links into each note's derived backlink fields."""
        for note_id, note in self._notes.items():
            backlinks = self._backlinks.get_backward_links(note_id)
            if backlinks:
                note.properties.backlink_count = len(backlinks)
                note.properties.backlinks = backlinks
            else:
                note.properties.backlink_count = None
                note.properties.backlinks = None

    @staticmethod
    def _to_lines(content: str) -> List[NoteLine]:
        return [NoteLine(indent=0, content=line) for line in content.split("\n")]

    # Queries

    def get_note(self, note_id: str) -> Note | None:
        return self._notes.get(note_id)

    def get_note_by_path(self, display_path: str) -> Note | None:
        for note in self._notes.values():
            if note.display_path == display_path:
                return note
        return None

    def get_all_notes(self) -> List[Note]:
        return list(self._notes.values())

    def get_notes_in_file(self, file: str) -> List[Note]:
        return self._lookup(self._index.get_by_file(file))

    def get_notes_by_tag(self, tag: str) -> List[Note]:
        return self._lookup(self._index.get_by_tag(tag))

    def get_notes_by_type(self, note_type: str) -> List[Note]:
        return self._lookup(self._index.get_by_type(note_type))

    def get_notes_by_date(self, created: str) -> List[Note]:
        return self._lookup(self._index.get_by_date(created))

    def get_all_tags(self) -> List[str]:
        return self._index.get_all_tags()

    def get_all_types(self) -> List[str]:
        return self._index.get_all_types()

    def get_notes_page(
        self, page: int = 0, page_size: int = 20, file: str | None = None
    ) -> Page[Note]:
        notes = self.get_notes_in_file(file) if file is not None else self.get_all_notes()
        return paginate(notes, page, page_size)

    def _lookup(self, note_ids: List[str]) -> List[Note]:
        return [self._notes[note_id] for note_id in note_ids if note_id in self._notes]

    def get_children(self, parent_id: str) -> List[Note]:
        parent = self._notes.get(parent_id)
        return list(parent.children) if parent else []

    def get_backlinks(self, note_id: str) -> List[Note]:
        return [
            self._notes[source_id]
            for source_id in self._backlinks.get_backward_links(note_id)
            if source_id in self._notes
        ]

    def get_related(self, note_id: str, depth: int = 1) -> List[RelatedNote]:
        """Breadth-first walk over links, outgoing first, then incoming.

        Both walks share one visited set, so a note reached through outgoing
        links is not reported again as incoming.
        """
        related = []
        visited = {note_id}

        for direction in ("outgoing", "incoming"):
            get_links = (
                self._backlinks.get_forward_links
                if direction == "outgoing"
                else self._backlinks.get_backward_links
            )
            queue = deque([(note_id, 0)])  # (note_id, depth)
            while queue:
                current_id, current_depth = queue.popleft()
                if current_depth >= depth:
                    continue
                for linked_id in get_links(current_id):
                    if linked_id in visited:
                        continue
                    visited.add(linked_id)
                    linked_note = self._notes.get(linked_id)
                    if linked_note:
                        related.append(
                            RelatedNote(
                                note=linked_note, direction=direction, depth=current_depth + 1
                            )
                        )
                        queue.append((linked_id, current_depth + 1))

        return related

    def get_orphans(self) -> List[Note]:
        return [
            note
            for note in self._notes.values()
            if not note.properties.parent
            and self._backlinks.get_backlink_count(note.id) == 0
            and not self._backlinks.get_forward_links(note.id)
        ]

    def get_popular(self, limit: int = 10) -> List[Note]:
        counted = [
            (self._backlinks.get_backlink_count(note.id), note) for note in self._notes.values()
        ]
        counted = [item for item in counted if item[0] > 0]
        counted.sort(key=lambda item: item[0], reverse=True)
        return [note for _, note in counted[:limit]]

    def get_link_graph(self) -> LinkGraph:
        return self._backlinks.get_link_graph()

    def search(self, query: str, limit: int = 20) -> List[SearchResult]:
        """Score notes against whitespace-separated query terms.

        Any term may match (OR semantics). Per content line and term, a substring
        hit scores 1, plus 2 when the whole line equals the term. Each term found
        in the file path or in the display path adds 0.5. Matching notes get
        0.1 per backlink as a tie-breaker.
        """
        return self._rank(query)[:limit]

    def search_page(self, query: str, page: int = 0, page_size: int = 20) -> Page[SearchResult]:
        """Like `search`, but returns one page of the full ranking."""
        return paginate(self._rank(query), page, page_size)

    def _rank(self, query: str) -> List[SearchResult]:
        terms = query.lower().split()
        results = []

        for note in self._notes.values():
            matches = []
            score = 0.0

            for line_index, line in enumerate(note.content):
                line_lower = line.content.lower()
                for term in terms:
                    position = line_lower.find(term)
                    if position == -1:
                        continue
                    matches.append(
                        SearchMatch(
                            line=line_index,
                            content=line.content,
                            highlight=(position, position + len(term)),
                        )
                    )
                    score += 1
                    if line_lower == term:
                        score += 2

            path_matched = False
            file_lower = (note.properties.file or "").lower()
            path_lower = note.display_path.lower()
            for term in terms:
                if file_lower and term in file_lower:
                    score += 0.5
                    path_matched = True
                if term in path_lower:
                    score += 0.5
                    path_matched = True

            if matches or path_matched:
                score += self._backlinks.get_backlink_count(note.id) * 0.1
                results.append(SearchResult(note=note, matches=matches, score=score))

        results.sort(key=lambda result: result.score, reverse=True)
        return results

    # Mutations

    def add_note(
        self,
        file: str,
        content: str,
        parent_id: str | None = None,
        note_id: str | None = None,
        extra_properties: dict[str, Any] | None = None,
    ) -> Note:
        """Add a note and persist it if auto-save is on.

        Args:
            file: Source file the note is attached to
            content: Note text, one content line per text line
            parent_id: Id of the note to nest this one under
            note_id: Preferred id, used unless it is already taken
            extra_properties: Additional properties such as author, line, created or tags

        Returns:
            The new note

        Raises:
            NoteNotFoundError: If `parent_id` is not in the store
            IdGenerationError: If no unused id could be generated
        """
        parent = None
        if parent_id is not None:
            parent = self._notes.get(parent_id)
            if parent is None:
                raise NoteNotFoundError(parent_id, ErrorCode.NOTE_PARENT_NOT_FOUND)

        if note_id and note_id not in self._notes:
            new_id = note_id
        else:
            if note_id:
                logger.warning(f"Note id {note_id} already exists, generating a new one")
            new_id = generate_unique_id(self._generate_id, self._notes)

        extra = {
            key: value
            for key, value in (extra_properties or {}).items()
            if key not in _RESERVED_PROPERTIES and value is not None
        }
        properties = NoteProperties(
            **{
                "author": "human",
                "created": date.today().isoformat(),
                **extra,
                "id": new_id,
                "file": file,
                "parent": parent_id,
            }
        )
        note = Note(properties=properties, content=self._to_lines(content))

        self._notes[new_id] = note
        self._index.add_note(note)
        if parent is not None:
            parent.children.append(note)

        self._backlinks.update_for_note(note, "", content)
        self._update_backlink_fields()
        logger.info(f"Added note {new_id} ({note.display_path})")

        self._mark_dirty()
        return note

    def update_note(self, note_id: str, content: str) -> Note:
        note = self._require(note_id)

        old_content = note.text
        note.content = self._to_lines(content)

        affected = self._backlinks.update_for_note(note, old_content, content)
        self._update_backlink_fields()
        logger.info(f"Updated note {note_id}, {len(affected)} linked notes affected")

        self._mark_dirty()
        return note

    def delete_note(self, note_id: str) -> None:
        """Delete a note and, before it, all of its descendants."""
        note = self._require(note_id)

        removed = self._delete_subtree(note)
        self._update_backlink_fields()
        logger.info(f"Deleted note {note_id} and {removed - 1} descendants")

        self._mark_dirty()

    def _delete_subtree(self, note: Note) -> int:
        removed = 0
        for child in list(note.children):
            removed += self._delete_subtree(child)

        parent_id = note.properties.parent
        parent = self._notes.get(parent_id) if parent_id else None
        if parent is not None:
            parent.children = [child for child in parent.children if child.id != note.id]

        self._backlinks.remove_note(note.id)
        self._index.remove_note(note.id)
        self._notes.pop(note.id, None)
        return removed + 1

    def move_note(self, note_id: str, new_file: str, new_line: int | None = None) -> Note:
        """Attach a note to another file (and line); descendants follow to the new file."""
        note = self._require(note_id)

        note.properties.file = new_file
        if new_line is not None:
            note.properties.line = new_line
        for moved in [note, *_descendants(note)]:
            moved.properties.file = new_file
            self._index.remove_note(moved.id)
            self._index.add_note(moved)

        logger.info(f"Moved note {note_id} to {note.display_path}")

        self._mark_dirty()
        return note

    # Internal state access

    def get_project_root(self) -> ProjectRoot | None:
        return self._project_root

    def get_parse_result(self) -> ParseResult | None:
        return self._parse_result


def _descendants(note: Note) -> Iterator[Note]:
    stack = list(note.children)
    while stack:
        current = stack.pop()
        yield current
        stack.extend(current.children)
