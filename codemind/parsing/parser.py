"""Parsing of notes files into a note graph."""

import logging

from codemind.domain.diagnostics import ParseError, ParseResult, ParseWarning
from codemind.domain.note import Note

from .current_dialect import parse_current
from .dialects import Dialect, detect_dialect
from .legacy_dialect import parse_legacy

logger = logging.getLogger(__name__)


def parse(text: str) -> ParseResult:
    """Parse the text of a notes file.

    Never raises on malformed input. Duplicate ids are reported as errors
    (the first occurrence is kept), references to missing notes as warnings.

    Args:
        text: Full contents of the notes file, in either dialect

    Returns:
        ParseResult with the project root, every note keyed by id, the link maps
        and the diagnostics
    """
    dialect = detect_dialect(text)
    lines = [line.removesuffix("\r") for line in text.split("\n")]

    errors: list[ParseError] = []
    warnings: list[ParseWarning] = []
    if dialect is Dialect.LEGACY:
        project_root, forest, errors, warnings = parse_legacy(lines)
    else:
        project_root, forest = parse_current(lines)

    notes: dict[str, Note] = {}
    _collect_notes(forest, notes, errors)

    forward_links = build_forward_links(notes)
    backward_links = build_backward_links(forward_links)
    warnings.extend(_check_orphan_references(notes, forward_links))

    logger.debug(
        f"Parsed {len(notes)} notes ({dialect.value} dialect), "
        f"{len(errors)} errors, {len(warnings)} warnings"
    )

    return ParseResult(
        project_root=project_root,
        notes=notes,
        forward_links=forward_links,
        backward_links=backward_links,
        errors=errors,
        warnings=warnings,
    )


def _collect_notes(forest: list[Note], target: dict[str, Note], errors: list[ParseError]) -> None:
    """Flatten the note forest into `target`, depth first.

    Later notes reusing an id are reported and dropped from their parent's
    children so that every nested note is also reachable by id.
    """
    for note in forest:
        if note.id in target:
            errors.append(
                ParseError(
                    type="duplicate_id",
                    line=note._source_line,
                    message=f"Duplicate note ID: {note.id}",
                    note_id=note.id,
                )
            )
            continue
        target[note.id] = note
        if note.children:
            _collect_notes(note.children, target, errors)
            note.children = [child for child in note.children if target.get(child.id) is child]


def collect_references(note: Note) -> list[str]:
    """All ids a note links to: its `related` property plus content references."""
    refs = list(dict.fromkeys(note.properties.related or []))
    for line in note.content:
        for ref in line.references:
            if ref not in refs:
                refs.append(ref)
    return refs


def build_forward_links(notes: dict[str, Note]) -> dict[str, list[str]]:
    forward_links = {}
    for note_id, note in notes.items():
        refs = collect_references(note)
        if refs:
            forward_links[note_id] = refs
    return forward_links


def build_backward_links(forward_links: dict[str, list[str]]) -> dict[str, list[str]]:
    backward_links: dict[str, list[str]] = {}
    for from_id, to_ids in forward_links.items():
        for to_id in to_ids:
            sources = backward_links.setdefault(to_id, [])
            if from_id not in sources:
                sources.append(from_id)
    return backward_links


def _check_orphan_references(
    notes: dict[str, Note], forward_links: dict[str, list[str]]
) -> list[ParseWarning]:
    warnings = []
    for from_id, to_ids in forward_links.items():
        for to_id in to_ids:
            if to_id not in notes:
                warnings.append(
                    ParseWarning(
                        type="orphan_reference",
                        line=notes[from_id]._source_line,
                        message=f"Note {from_id} references non-existent note {to_id}",
                        note_id=to_id,
                    )
                )
    return warnings
