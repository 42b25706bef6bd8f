"""Parser for the bullet and indent notes format.

    # Code-Mind Notes
    - Project: my-project
    - Created: 2024-12-01

    - ## src/app.ts
      - [[cm.abc123]] First line of the note
        - human · 2024-12-01 · line 42
        - First line of the note
          - nested content
        - [[cm.def456]] A child note
          - ai · 2024-12-02 · type memory · tags api, auth
          - A child note
"""

from datetime import date

from codemind.domain.note import Note, NoteLine, NoteProperties, ProjectRoot

from .patterns import (
    BULLET_LINE,
    DOCUMENT_TITLE,
    FILE_SECTION,
    NOTE_META,
    NOTE_TITLE,
    PROJECT_CREATED,
    PROJECT_NAME,
    PROJECT_NOTES,
    indent_level,
)


def parse_current(lines: list[str]) -> tuple[ProjectRoot, list[Note]]:
    """Parse current-dialect lines into a project root and top-level notes.

    Args:
        lines: Lines of the notes file without line terminators

    Returns:
        Tuple of (project root, top-level notes with their children nested)
    """
    today = date.today().isoformat()
    project_name = "Unnamed"
    project_created = today
    project_notes: list[NoteLine] = []
    notes: list[Note] = []
    current_file: str | None = None

    i = 0
    while i < len(lines):
        line = lines[i]
        stripped = line.strip()
        level = indent_level(line)

        if not stripped:
            i += 1
            continue

        if level == 0 and DOCUMENT_TITLE.match(stripped):
            i += 1
            continue

        name_match = PROJECT_NAME.match(stripped)
        if name_match:
            project_name = name_match.group(1).strip() or "Unnamed"
            i += 1
            continue

        created_match = PROJECT_CREATED.match(stripped)
        if created_match:
            project_created = created_match.group(1).strip()
            i += 1
            continue

        if level == 0 and PROJECT_NOTES.match(stripped):
            project_notes, i = _parse_project_notes(lines, i + 1)
            continue

        file_match = FILE_SECTION.match(stripped)
        if file_match:
            current_file = file_match.group(1).strip()
            i += 1
            continue

        note_match = NOTE_TITLE.match(stripped)
        if note_match and level >= 1:
            note, i = _parse_note_block(
                lines,
                start=i,
                note_id=note_match.group(1),
                base_indent=level,
                file=current_file,
                parent=None,
                today=today,
            )
            notes.append(note)
            continue

        i += 1

    project_root = ProjectRoot(
        name=project_name, created=project_created, project_notes=project_notes
    )
    return project_root, notes


def _parse_project_notes(lines: list[str], start: int) -> tuple[list[NoteLine], int]:
    """Consume the bullets nested under `- Project Notes`."""
    project_notes = []
    i = start
    while i < len(lines):
        line = lines[i]
        stripped = line.strip()
        if not stripped:
            i += 1
            continue
        level = indent_level(line)
        if level == 0:
            break
        bullet = BULLET_LINE.match(stripped)
        if bullet:
            project_notes.append(NoteLine(indent=level - 1, content=bullet.group(1) or ""))
        i += 1
    return project_notes, i


def _parse_note_block(
    lines: list[str],
    *,
    start: int,
    note_id: str,
    base_indent: int,
    file: str | None,
    parent: str | None,
    today: str,
) -> tuple[Note, int]:
    """Parse a note opened by the title line at `start`, children included.

    The block ends at the first non-blank line indented at or above the title.

    Returns:
        Tuple of (note, index of the first line after the block)
    """
    note = Note(
        properties=NoteProperties(id=note_id, file=file, created=today, parent=parent)
    )
    note._source_line = start + 1

    i = start + 1
    first_line = True
    while i < len(lines):
        line = lines[i]
        stripped = line.strip()
        if not stripped:
            i += 1
            continue

        level = indent_level(line)
        if level <= base_indent:
            break

        # Metadata is only read directly below the title
        expect_meta, first_line = first_line, False

        if level == base_indent + 1:
            meta = NOTE_META.match(stripped) if expect_meta else None
            if meta:
                note.properties.author = meta.group(1)
                note.properties.created = meta.group(2)
                if meta.group(3):
                    note.properties.line = int(meta.group(3))
                _apply_meta_extras(note.properties, meta.group(4))
                i += 1
                continue

            child_match = NOTE_TITLE.match(stripped)
            if child_match and _opens_child_note(lines, i, level):
                child, i = _parse_note_block(
                    lines,
                    start=i,
                    note_id=child_match.group(1),
                    base_indent=level,
                    file=file,
                    parent=note_id,
                    today=today,
                )
                note.children.append(child)
                continue

        bullet = BULLET_LINE.match(stripped)
        if bullet:
            note.content.append(
                NoteLine(indent=max(0, level - base_indent - 1), content=bullet.group(1) or "")
            )
        i += 1

    return note, i


def _apply_meta_extras(properties: NoteProperties, extras: str) -> None:
    """Read the `· key value` segments trailing a metadata line."""
    segments, _, title = extras.partition("· title ")
    if title.strip():
        properties.title = title.strip()

    for segment in segments.split("·"):
        key, _, value = segment.strip().partition(" ")
        value = value.strip()
        if key == "type" and value in ("note", "memory"):
            properties.type = value
        elif key == "tags":
            properties.tags = [tag.strip() for tag in value.split(",") if tag.strip()] or None
        elif key == "related":
            related = [ref.strip() for ref in value.split(",") if ref.strip().startswith("cm.")]
            properties.related = related or None


def _opens_child_note(lines: list[str], start: int, level: int) -> bool:
    """A `[[cm.x]]` bullet is a child title only when a metadata line follows it.

    Otherwise it is a content line that happens to begin with a reference.
    """
    for line in lines[start + 1 :]:
        stripped = line.strip()
        if not stripped:
            continue
        return indent_level(line) == level + 1 and bool(NOTE_META.match(stripped))
    return False
