"""Serialization of the note graph back into the current notes dialect."""

from collections.abc import Iterable

from codemind.domain.note import Note, NoteLine, NoteProperties, ProjectRoot

DOCUMENT_TITLE = "# Code-Mind Notes"
UNKNOWN_FILE = "unknown"
SUMMARY_MAX_LENGTH = 50


def _indent(level: int) -> str:
    return "  " * level


def get_summary(note: Note, max_length: int = SUMMARY_MAX_LENGTH) -> str:
    """First content line of a note, truncated with an ellipsis."""
    if not note.content:
        return ""
    first_line = note.content[0].content
    if len(first_line) <= max_length:
        return first_line
    return first_line[: max_length - 3] + "..."


def format_metadata(properties: NoteProperties) -> str:
    """`author · date` with optional `line`, `type`, `tags`, `related` and `title` segments.

    The free-text title is always the last segment.
    """
    parts = [properties.author, properties.created]
    if properties.line is not None:
        parts.append(f"line {properties.line}")
    if properties.type:
        parts.append(f"type {properties.type}")
    if properties.tags:
        parts.append(f"tags {', '.join(properties.tags)}")
    if properties.related:
        parts.append(f"related {', '.join(properties.related)}")
    if properties.title:
        parts.append(f"title {properties.title}")
    return " · ".join(parts)


def serialize_content(content: Iterable[NoteLine], base_indent: int) -> list[str]:
    return [f"{_indent(base_indent + line.indent)}- {line.content}".rstrip() for line in content]


def serialize_note(
    note: Note, base_indent: int = 1, summary_max_length: int = SUMMARY_MAX_LENGTH
) -> list[str]:
    """Serialize a note and, inline, its descendants one indent level deeper each.

    Args:
        note: Note to serialize
        base_indent: Indent level of the note's title bullet
        summary_max_length: Maximum length of the summary after the title

    Returns:
        Lines of the serialized note
    """
    summary = get_summary(note, summary_max_length)
    title = f"{_indent(base_indent)}- [[{note.id}]]"
    lines = [f"{title} {summary}".rstrip() if summary else title]
    lines.append(f"{_indent(base_indent + 1)}- {format_metadata(note.properties)}")
    lines.extend(serialize_content(note.content, base_indent + 1))
    for child in note.children:
        lines.extend(serialize_note(child, base_indent + 1, summary_max_length))
    return lines


def serialize_project_header(project_root: ProjectRoot) -> list[str]:
    lines = [
        DOCUMENT_TITLE,
        f"- Project: {project_root.name}",
        f"- Created: {project_root.created}",
    ]
    if project_root.project_notes:
        lines.append("")
        lines.append("- Project Notes")
        lines.extend(serialize_content(project_root.project_notes, 1))
    return lines


def group_notes_by_file(notes: Iterable[Note]) -> dict[str, list[Note]]:
    grouped: dict[str, list[Note]] = {}
    for note in notes:
        grouped.setdefault(note.properties.file or UNKNOWN_FILE, []).append(note)
    return grouped


def write(
    project_root: ProjectRoot | None,
    notes: Iterable[Note],
    *,
    sort_notes: bool = True,
    summary_max_length: int = SUMMARY_MAX_LENGTH,
) -> str:
    """Render the notes file text.

    Notes with a parent are skipped here, they are written inline under their
    parent. Output ends with exactly one newline.

    Args:
        project_root: Project metadata, or None for a bare title line
        notes: Notes to write; only top-level ones are used
        sort_notes: Sort notes by file path, then by id
        summary_max_length: Maximum length of the summary after each note title

    Returns:
        Notes file text in the current dialect
    """
    top_level = [note for note in notes if not note.properties.parent]
    if sort_notes:
        top_level.sort(key=lambda note: (note.properties.file or UNKNOWN_FILE, note.id))

    lines = serialize_project_header(project_root) if project_root else [DOCUMENT_TITLE]

    grouped = group_notes_by_file(top_level)
    files = sorted(grouped) if sort_notes else list(grouped)
    for file in files:
        lines.append("")
        lines.append(f"- ## {file}")
        for note in grouped[file]:
            lines.extend(serialize_note(note, 1, summary_max_length))

    return "\n".join(lines).strip() + "\n"
