"""Bidirectional link index between notes."""

from collections.abc import Iterable

from codemind.domain.graph import LinkEdge, LinkGraph
from codemind.domain.note import Note
from codemind.parsing.parser import collect_references
from codemind.parsing.references import extract_references


def _append_unique(items: list[str], value: str) -> bool:
    if value in items:
        return False
    items.append(value)
    return True


class BacklinkManager:
    """Keeps forward and backward links between note ids as exact inverses.

    `b in forward[a]` holds exactly when `a in backward[b]` after every public
    call. Link targets do not have to be known notes.
    """

    def __init__(self) -> None:
        self._forward: dict[str, list[str]] = {}
        self._backward: dict[str, list[str]] = {}
        self._known: set[str] = set()

    def _add_link(self, from_id: str, to_id: str) -> None:
        _append_unique(self._forward.setdefault(from_id, []), to_id)
        _append_unique(self._backward.setdefault(to_id, []), from_id)

    def _remove_link(self, from_id: str, to_id: str) -> None:
        targets = self._forward.get(from_id)
        if targets and to_id in targets:
            targets.remove(to_id)
            if not targets:
                del self._forward[from_id]
        sources = self._backward.get(to_id)
        if sources and from_id in sources:
            sources.remove(from_id)
            if not sources:
                del self._backward[to_id]

    def rebuild_all(self, notes: Iterable[Note]) -> None:
        """Drop all state and rebuild it from a note forest, children included."""
        self._forward.clear()
        self._backward.clear()
        self._known.clear()

        all_notes = list(_walk(notes))
        self._known.update(note.id for note in all_notes)
        for note in all_notes:
            for ref in collect_references(note):
                self._add_link(note.id, ref)

    def update_for_note(self, note: Note, old_content: str, new_content: str) -> list[str]:
        """Apply the link changes of an edited note.

        The old reference set is parsed from `old_content`, the new one is taken
        from the note's current state (related ids and content lines).
        `new_content` is accepted for symmetry with callers that track both texts.

        Returns:
            Ids whose backlinks changed, deduplicated
        """
        self._known.add(note.id)
        old_refs = extract_references(old_content)
        new_refs = collect_references(note)
        affected: list[str] = []

        for ref in old_refs:
            if ref not in new_refs:
                self._remove_link(note.id, ref)
                _append_unique(affected, ref)

        for ref in new_refs:
            if ref not in old_refs:
                self._add_link(note.id, ref)
                _append_unique(affected, ref)

        return affected

    def remove_note(self, note_id: str) -> list[str]:
        """Remove every link from and to a note.

        Returns:
            Former forward and backward neighbours of the note, deduplicated
        """
        forwards = list(self._forward.get(note_id, []))
        backwards = list(self._backward.get(note_id, []))
        affected = list(dict.fromkeys(forwards + backwards))

        for to_id in forwards:
            self._remove_link(note_id, to_id)
        for from_id in backwards:
            self._remove_link(from_id, note_id)
        self._known.discard(note_id)

        return affected

    def get_forward_links(self, note_id: str) -> list[str]:
        return list(self._forward.get(note_id, []))

    def get_backward_links(self, note_id: str) -> list[str]:
        return list(self._backward.get(note_id, []))

    def get_backlink_count(self, note_id: str) -> int:
        return len(self._backward.get(note_id, []))

    def get_link_graph(self) -> LinkGraph:
        """Snapshot of known notes and every forward edge."""
        edges = [
            LinkEdge(from_id=from_id, to_id=to_id)
            for from_id, to_ids in self._forward.items()
            for to_id in to_ids
        ]
        return LinkGraph(nodes=sorted(self._known), edges=edges)


def _walk(notes: Iterable[Note]) -> Iterable[Note]:
    """Yield notes and all their descendants, parents first."""
    stack = list(reversed(list(notes)))
    while stack:
        note = stack.pop()
        yield note
        stack.extend(reversed(note.children))
