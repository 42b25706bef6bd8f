"""Parser for the legacy `key:: value` notes format.

    - # CodeMind
      id:: project-root
      name:: my-project
      created:: 2024-12-01

    - [[cm.abc123|src/app.ts/abc123]]
      id:: cm.abc123
      file:: src/app.ts
      line:: 42
      author:: human
      created:: 2024-12-01
      - First line of the note
        - nested content

This format is only read. Notes are written back in the current dialect.
"""

import logging
from datetime import date

from codemind.domain.diagnostics import ParseError, ParseWarning
from codemind.domain.note import Note, NoteLine, NoteProperties, ProjectRoot

from .patterns import INDENT_WIDTH, LEGACY_BULLET, LEGACY_NOTE_START, LEGACY_PROPERTY
from .references import extract_references

logger = logging.getLogger(__name__)

# Project attributes are looked up this many lines below `id:: project-root`
PROJECT_ROOT_LOOKAHEAD = 10


def parse_legacy(
    lines: list[str],
) -> tuple[ProjectRoot, list[Note], list[ParseError], list[ParseWarning]]:
    """Parse legacy-dialect lines.

    Notes carrying a `parent::` attribute are nested under their parent. A
    parent that does not exist or would form a cycle is dropped, leaving the
    note at the top level with a `nesting_mismatch` warning.

    Args:
        lines: Lines of the notes file without line terminators

    Returns:
        Tuple of (project root, top-level notes, errors, warnings)
    """
    today = date.today().isoformat()
    errors: list[ParseError] = []
    warnings: list[ParseWarning] = []

    project_root = _parse_project_root(lines, today)

    notes: list[Note] = []
    i = 0
    while i < len(lines):
        note_match = LEGACY_NOTE_START.match(lines[i].rstrip())
        if not note_match:
            i += 1
            continue
        note, i = _parse_note_block(lines, i, note_match.group(1), today, errors)
        notes.append(note)

    return project_root, _nest_children(notes, warnings), errors, warnings


def _parse_project_root(lines: list[str], today: str) -> ProjectRoot:
    for i, line in enumerate(lines):
        if "id:: project-root" not in line:
            continue
        name = "Unnamed"
        created = today
        for prop_line in lines[i + 1 : i + 1 + PROJECT_ROOT_LOOKAHEAD]:
            prop = LEGACY_PROPERTY.match(prop_line.strip())
            if not prop or not prop.group(2).strip():
                continue
            if prop.group(1) == "name":
                name = prop.group(2).strip()
            elif prop.group(1) == "created":
                created = prop.group(2).strip()
        return ProjectRoot(name=name, created=created)

    logger.debug("No project-root block found, using defaults")
    return ProjectRoot(created=today)


def _parse_note_block(
    lines: list[str], start: int, note_id: str, today: str, errors: list[ParseError]
) -> tuple[Note, int]:
    note = Note(properties=NoteProperties(id=note_id, created=today))
    note._source_line = start + 1

    # Attributes run until the first content bullet or the next note
    i = start + 1
    while i < len(lines):
        prop_line = lines[i]
        stripped = prop_line.strip()
        if stripped == "-" or stripped.startswith("- "):
            break
        if LEGACY_NOTE_START.match(prop_line.rstrip()):
            break
        prop = LEGACY_PROPERTY.match(stripped)
        if prop:
            _apply_property(note, prop.group(1), prop.group(2).strip(), i + 1, errors)
        i += 1

    while i < len(lines):
        content_line = lines[i].rstrip()
        if LEGACY_NOTE_START.match(content_line):
            break
        bullet = LEGACY_BULLET.match(content_line)
        if bullet:
            indent = len(bullet.group(1).expandtabs(INDENT_WIDTH)) // INDENT_WIDTH - 1
            if indent >= 0:
                note.content.append(NoteLine(indent=indent, content=bullet.group(2) or ""))
        i += 1

    return note, i


def _apply_property(
    note: Note, key: str, value: str, line_number: int, errors: list[ParseError]
) -> None:
    properties = note.properties
    if key == "file":
        properties.file = value or None
    elif key == "line":
        if value.isdigit():
            properties.line = int(value)
        elif value:
            errors.append(
                ParseError(
                    type="invalid_format",
                    line=line_number,
                    message=f"Invalid line number for {note.id}: {value}",
                    note_id=note.id,
                )
            )
    elif key == "author":
        properties.author = value or "human"
    elif key == "created":
        properties.created = value or properties.created
    elif key == "parent":
        properties.parent = value or None
    elif key == "type" and value in ("note", "memory"):
        properties.type = value
    elif key == "title":
        properties.title = value or None
    elif key == "tags":
        tags = [tag.strip() for tag in value.split(",") if tag.strip()]
        properties.tags = tags or None
    elif key == "related":
        related = extract_references(value) or [
            ref.strip() for ref in value.split(",") if ref.strip().startswith("cm.")
        ]
        properties.related = related or None


def _nest_children(notes: list[Note], warnings: list[ParseWarning]) -> list[Note]:
    """Move notes with a `parent::` attribute into their parent's children."""
    by_id: dict[str, Note] = {}
    for note in notes:
        by_id.setdefault(note.id, note)

    top_level = []
    for note in notes:
        parent_id = note.properties.parent
        if not parent_id:
            top_level.append(note)
            continue

        parent = by_id.get(parent_id)
        if parent is None or _would_cycle(note, parent_id, by_id):
            warnings.append(
                ParseWarning(
                    type="nesting_mismatch",
                    line=note._source_line,
                    message=f"Note {note.id} has unresolvable parent {parent_id}",
                    note_id=note.id,
                )
            )
            note.properties.parent = None
            top_level.append(note)
            continue

        parent.children.append(note)

    return top_level


def _would_cycle(note: Note, parent_id: str, by_id: dict[str, Note]) -> bool:
    seen = set()
    current: str | None = parent_id
    while current and current not in seen:
        if current == note.id:
            return True
        seen.add(current)
        ancestor = by_id.get(current)
        current = ancestor.properties.parent if ancestor else None
    return False
