from collections.abc import Iterable

from codemind.domain.note import Note


def _add(buckets: dict[str, list[str]], key: str, note_id: str) -> None:
    ids = buckets.setdefault(key, [])
    if note_id not in ids:
        ids.append(note_id)


class NoteIndex:
    """Lookup tables from file, tag, type and creation date to note ids.

    Ids within a bucket keep insertion order. Empty buckets are dropped, so
    `get_all_tags` and `get_all_types` only list values still in use.
    """

    def __init__(self) -> None:
        self._by_file: dict[str, list[str]] = {}
        self._by_tag: dict[str, list[str]] = {}
        self._by_type: dict[str, list[str]] = {}
        self._by_date: dict[str, list[str]] = {}

    def clear(self) -> None:
        for buckets in self._all_buckets():
            buckets.clear()

    def build(self, notes: Iterable[Note]) -> None:
        self.clear()
        for note in notes:
            self.add_note(note)

    def add_note(self, note: Note) -> None:
        properties = note.properties
        if properties.file:
            _add(self._by_file, properties.file, note.id)
        for tag in properties.tags or []:
            _add(self._by_tag, tag, note.id)
        if properties.type:
            _add(self._by_type, properties.type, note.id)
        if properties.created:
            # Full timestamps are bucketed by their date part
            _add(self._by_date, properties.created.split("T")[0], note.id)

    def remove_note(self, note_id: str) -> None:
        for buckets in self._all_buckets():
            for key in list(buckets):
                ids = buckets[key]
                if note_id in ids:
                    ids.remove(note_id)
                    if not ids:
                        del buckets[key]

    def get_by_file(self, file: str) -> list[str]:
        return list(self._by_file.get(file, []))

    def get_by_tag(self, tag: str) -> list[str]:
        return list(self._by_tag.get(tag, []))

    def get_by_type(self, note_type: str) -> list[str]:
        return list(self._by_type.get(note_type, []))

    def get_by_date(self, created: str) -> list[str]:
        return list(self._by_date.get(created, []))

    def get_all_tags(self) -> list[str]:
        return sorted(self._by_tag)

    def get_all_types(self) -> list[str]:
        return sorted(self._by_type)

    def _all_buckets(self) -> tuple[dict[str, list[str]], ...]:
        return (self._by_file, self._by_tag, self._by_type, self._by_date)
