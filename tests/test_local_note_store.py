from pathlib import Path

import pytest

from codemind.errors import ErrorCode, IdGenerationError, NoteNotFoundError
from codemind.note_store.local import LocalNoteStore
from tests.fakes import FixedIdGenerator, SequentialIdGenerator


def test_load_legacy_file(note_store: LocalNoteStore) -> None:
    """Test loading a legacy notes file."""
    assert note_store.get_project_root().name == "Test Project"
    assert {note.id for note in note_store.get_all_notes()} == {
        "cm.abc123",
        "cm.def456",
        "cm.orphan",
    }
    assert note_store.get_parse_result().errors == []


def test_missing_file_starts_empty(tmp_path: Path) -> None:
    """Test that a store on a missing file is empty and does not create the file."""
    path = tmp_path / "missing.md"
    store = LocalNoteStore(path)

    assert store.get_all_notes() == []
    assert store.get_project_root() is None
    assert store.get_parse_result() is None
    assert not path.exists()


def test_get_note_and_by_path(note_store: LocalNoteStore) -> None:
    """Test lookups by id and by display path."""
    note = note_store.get_note("cm.abc123")
    assert note is not None
    assert note_store.get_note_by_path("test.ts/abc123") is note
    assert note_store.get_note("cm.nothere") is None
    assert note_store.get_note_by_path("test.ts/nothere") is None


def test_get_notes_in_file(note_store: LocalNoteStore) -> None:
    """Test filtering notes by source file."""
    assert {note.id for note in note_store.get_notes_in_file("test.ts")} == {
        "cm.abc123",
        "cm.def456",
    }
    assert note_store.get_notes_in_file("nothere.ts") == []


def test_backlink_fields_on_load(note_store: LocalNoteStore) -> None:
    """Test that derived backlink fields are filled on load and absent without backlinks."""
    referenced = note_store.get_note("cm.def456")
    assert referenced.properties.backlink_count == 1
    assert referenced.properties.backlinks == ["cm.abc123"]

    referencing = note_store.get_note("cm.abc123")
    assert referencing.properties.backlink_count is None
    assert referencing.properties.backlinks is None

    assert [note.id for note in note_store.get_backlinks("cm.def456")] == ["cm.abc123"]


def test_add_note_becomes_orphan(note_store: LocalNoteStore) -> None:
    """Test that a new note without links is listed as an orphan."""
    note = note_store.add_note("other.ts", "orphan text")

    assert note.id == "cm.000001"
    assert note.properties.author == "human"
    assert note.properties.created
    assert note.display_path == "other.ts/000001"
    assert note.id in {orphan.id for orphan in note_store.get_orphans()}


def test_orphans(note_store: LocalNoteStore) -> None:
    """Test that linked notes are not orphans."""
    assert [note.id for note in note_store.get_orphans()] == ["cm.orphan"]


def test_add_note_updates_backlinks(note_store: LocalNoteStore) -> None:
    """Test that adding a linking note updates the target's derived fields."""
    note = note_store.add_note("new.ts", "Builds on [[cm.def456]]\nand [[cm.orphan]]")

    assert [line.content for line in note.content] == [
        "Builds on [[cm.def456]]",
        "and [[cm.orphan]]",
    ]
    assert note_store.get_note("cm.def456").properties.backlink_count == 2
    assert note_store.get_note("cm.orphan").properties.backlinks == [note.id]
    assert "cm.orphan" not in {orphan.id for orphan in note_store.get_orphans()}


def test_add_note_with_extra_properties(note_store: LocalNoteStore) -> None:
    """Test extra properties, and that reserved ones cannot be overridden."""
    note = note_store.add_note(
        "a.ts",
        "body",
        extra_properties={
            "author": "ai",
            "line": 12,
            "tags": ["todo"],
            "id": "cm.hijack",
            "backlink_count": 99,
            "title": None,
        },
    )

    assert note.id == "cm.000001"
    assert note.properties.author == "ai"
    assert note.properties.line == 12
    assert note.properties.tags == ["todo"]
    assert note.properties.backlink_count is None
    assert note.properties.title is None


def test_add_note_with_preferred_id(note_store: LocalNoteStore) -> None:
    """Test that a free preferred id is used and a taken one is replaced."""
    chosen = note_store.add_note("a.ts", "chosen", note_id="cm.chosen")
    assert chosen.id == "cm.chosen"

    replaced = note_store.add_note("a.ts", "replaced", note_id="cm.abc123")
    assert replaced.id == "cm.000001"
    assert note_store.get_note("cm.abc123").content[0].content == "This is a test note"


def test_add_note_skips_taken_generated_ids(notes_file: Path) -> None:
    """Test that generated ids colliding with existing notes are retried."""
    generator = SequentialIdGenerator()
    store = LocalNoteStore(notes_file, generate_id=generator)
    store.add_note("a.ts", "first")

    second_store = LocalNoteStore(notes_file, generate_id=SequentialIdGenerator())
    note = second_store.add_note("a.ts", "second")

    assert note.id == "cm.000002"


def test_add_note_id_exhausted(notes_file: Path) -> None:
    """Test that an id generator that only collides leaves the store unchanged."""
    store = LocalNoteStore(notes_file, generate_id=FixedIdGenerator("cm.abc123"))
    before = notes_file.read_text(encoding="utf-8")

    with pytest.raises(IdGenerationError):
        store.add_note("a.ts", "never stored")

    assert len(store.get_all_notes()) == 3
    assert notes_file.read_text(encoding="utf-8") == before


def test_add_child_note(note_store: LocalNoteStore) -> None:
    """Test nesting a new note under an existing one."""
    child = note_store.add_note("test.ts", "child", parent_id="cm.abc123")

    assert child.properties.parent == "cm.abc123"
    assert child.display_path == "test.ts/abc123/000001"
    assert [note.id for note in note_store.get_children("cm.abc123")] == [child.id]
    assert child.id not in {orphan.id for orphan in note_store.get_orphans()}


def test_add_note_unknown_parent(note_store: LocalNoteStore) -> None:
    """Test that a missing parent is an error and nothing is added."""
    with pytest.raises(NoteNotFoundError) as exc_info:
        note_store.add_note("a.ts", "lost", parent_id="cm.nothere")

    assert exc_info.value.code == ErrorCode.NOTE_PARENT_NOT_FOUND
    assert str(exc_info.value) == "Parent note not found: cm.nothere"
    assert len(note_store.get_all_notes()) == 3


def test_update_note_removes_backlink(note_store: LocalNoteStore) -> None:
    """Test that removing a reference clears the target's backlink fields."""
    note = note_store.update_note("cm.abc123", "no links now")

    assert note.text == "no links now"
    referenced = note_store.get_note("cm.def456")
    assert referenced.properties.backlink_count is None
    assert referenced.properties.backlinks is None
    assert note_store.get_backlinks("cm.def456") == []


def test_update_missing_note(note_store: LocalNoteStore) -> None:
    """Test that updating an unknown note raises a KeyError-compatible error."""
    with pytest.raises(KeyError):
        note_store.update_note("cm.nothere", "text")

    with pytest.raises(NoteNotFoundError) as exc_info:
        note_store.update_note("cm.nothere", "text")
    assert exc_info.value.code == ErrorCode.NOTE_NOT_FOUND
    assert exc_info.value.note_id == "cm.nothere"


def test_search_ranks_matches(note_store: LocalNoteStore) -> None:
    """Test that the note matching all terms in one line ranks first."""
    results = note_store.search("test note")

    assert results[0].note.id == "cm.abc123"
    assert results[0].score > 0
    assert results[0].score == pytest.approx(3.0)
    match = results[0].matches[0]
    assert match.line == 0
    assert match.content == "This is a test note"
    assert match.highlight == (10, 14)

    scores = [result.score for result in results]
    assert scores == sorted(scores, reverse=True)


def test_search_exact_line_bonus(note_store: LocalNoteStore) -> None:
    """Test that a line equal to the term outranks a partial hit."""
    note_store.add_note("z.ts", "widget")
    note_store.add_note("z.ts", "a widget factory")

    results = note_store.search("widget")

    assert [result.score for result in results] == [pytest.approx(3.0), pytest.approx(1.0)]
    assert results[0].note.text == "widget"


def test_search_backlink_tiebreak(note_store: LocalNoteStore) -> None:
    """Test that backlinks add a small bonus to matching notes."""
    results = {result.note.id: result.score for result in note_store.search("note")}

    assert results["cm.def456"] == pytest.approx(1.1)
    assert results["cm.orphan"] == pytest.approx(1.0)


def test_search_no_match(note_store: LocalNoteStore) -> None:
    """Test that a query without hits returns nothing."""
    assert note_store.search("zzz-nonexistent") == []


def test_search_limit(note_store: LocalNoteStore) -> None:
    """Test the result limit."""
    assert len(note_store.search("note", limit=2)) == 2


def test_delete_cascades_to_children(note_store: LocalNoteStore) -> None:
    """Test that deleting a parent deletes its whole subtree."""
    parent = note_store.add_note("a.ts", "parent")
    child = note_store.add_note("a.ts", "child", parent_id=parent.id)
    grandchild = note_store.add_note("a.ts", "grandchild [[cm.def456]]", parent_id=child.id)
    assert note_store.get_note("cm.def456").properties.backlink_count == 2

    note_store.delete_note(parent.id)

    for note_id in (parent.id, child.id, grandchild.id):
        assert note_store.get_note(note_id) is None
    assert len(note_store.get_all_notes()) == 3
    assert note_store.get_note("cm.def456").properties.backlink_count == 1
    assert note_store.get_link_graph().nodes == ["cm.abc123", "cm.def456", "cm.orphan"]


def test_delete_child_detaches_from_parent(note_store: LocalNoteStore) -> None:
    """Test that deleting a child leaves the parent in place."""
    child = note_store.add_note("test.ts", "child", parent_id="cm.abc123")

    note_store.delete_note(child.id)

    assert note_store.get_children("cm.abc123") == []
    assert note_store.get_note("cm.abc123") is not None


def test_delete_missing_note(note_store: LocalNoteStore) -> None:
    """Test that deleting an unknown note raises."""
    with pytest.raises(NoteNotFoundError):
        note_store.delete_note("cm.nothere")


def test_delete_clears_backlinks(note_store: LocalNoteStore) -> None:
    """Test that deleting a linking note clears the target's backlinks."""
    note_store.delete_note("cm.abc123")

    referenced = note_store.get_note("cm.def456")
    assert referenced.properties.backlink_count is None
    assert note_store.get_popular() == []


def test_move_note_with_children(note_store: LocalNoteStore) -> None:
    """Test that moving a note carries its descendants to the new file."""
    parent = note_store.add_note("a.ts", "parent")
    child = note_store.add_note("a.ts", "child", parent_id=parent.id)

    moved = note_store.move_note(parent.id, "b.ts", 5)

    assert moved.properties.file == "b.ts"
    assert moved.properties.line == 5
    assert moved.display_path == "b.ts/000001"
    assert child.properties.file == "b.ts"
    assert note_store.get_note_by_path("b.ts/000001/000002") is child
    assert note_store.get_notes_in_file("a.ts") == []


def test_move_note_keeps_line_when_omitted(note_store: LocalNoteStore) -> None:
    """Test that the line is only replaced when given."""
    moved = note_store.move_note("cm.abc123", "moved.ts")

    assert moved.properties.line == 42
    assert moved.display_path == "moved.ts/abc123"


def test_move_missing_note(note_store: LocalNoteStore) -> None:
    """Test that moving an unknown note raises."""
    with pytest.raises(NoteNotFoundError):
        note_store.move_note("cm.nothere", "b.ts")


def test_get_related(note_store: LocalNoteStore) -> None:
    """Test related notes in both directions and by depth."""
    note_store.add_note("c.ts", "Chain to [[cm.abc123]]")

    related = note_store.get_related("cm.abc123")
    assert [(item.note.id, item.direction, item.depth) for item in related] == [
        ("cm.def456", "outgoing", 1),
        ("cm.000001", "incoming", 1),
    ]

    from_new = note_store.get_related("cm.000001", depth=2)
    assert [(item.note.id, item.direction, item.depth) for item in from_new] == [
        ("cm.abc123", "outgoing", 1),
        ("cm.def456", "outgoing", 2),
    ]


def test_get_popular(note_store: LocalNoteStore) -> None:
    """Test ordering by backlink count."""
    note_store.add_note("p.ts", "[[cm.orphan]]")
    note_store.add_note("p.ts", "[[cm.orphan]] again")

    popular = note_store.get_popular()

    assert [note.id for note in popular] == ["cm.orphan", "cm.def456"]
    assert [note.id for note in note_store.get_popular(limit=1)] == ["cm.orphan"]


def test_link_graph(note_store: LocalNoteStore) -> None:
    """Test the link graph snapshot."""
    graph = note_store.get_link_graph()

    assert graph.nodes == ["cm.abc123", "cm.def456", "cm.orphan"]
    assert [(edge.from_id, edge.to_id) for edge in graph.edges] == [("cm.abc123", "cm.def456")]


def test_auto_save_writes_current_dialect(note_store: LocalNoteStore, notes_file: Path) -> None:
    """Test that a mutation rewrites the legacy file in the current dialect."""
    note_store.add_note("new.ts", "fresh note")

    text = notes_file.read_text(encoding="utf-8")
    assert text.startswith("# Code-Mind Notes\n- Project: Test Project\n")
    assert "- ## new.ts\n  - [[cm.000001]] fresh note\n" in text
    assert "id::" not in text
    assert text.endswith("\n") and not text.endswith("\n\n")


def test_auto_save_off(notes_file: Path) -> None:
    """Test that without auto-save the file only changes on save."""
    store = LocalNoteStore(notes_file, generate_id=SequentialIdGenerator(), auto_save=False)
    before = notes_file.read_text(encoding="utf-8")

    store.add_note("new.ts", "fresh note")
    assert notes_file.read_text(encoding="utf-8") == before

    store.save()
    assert "[[cm.000001]] fresh note" in notes_file.read_text(encoding="utf-8")


def test_reload_round_trip(note_store: LocalNoteStore, notes_file: Path) -> None:
    """Test that saved state survives a reload."""
    parent = note_store.add_note("a.ts", "parent [[cm.orphan]]", extra_properties={"line": 8})
    note_store.add_note("a.ts", "child", parent_id=parent.id, extra_properties={"author": "ai"})

    reloaded = LocalNoteStore(notes_file)

    assert {note.id for note in reloaded.get_all_notes()} == {
        note.id for note in note_store.get_all_notes()
    }
    reloaded_parent = reloaded.get_note(parent.id)
    assert reloaded_parent.properties.line == 8
    assert [child.properties.author for child in reloaded_parent.children] == ["ai"]
    assert reloaded.get_note("cm.orphan").properties.backlinks == [parent.id]
    assert reloaded.get_parse_result().errors == []


def test_reload_picks_up_external_edits(note_store: LocalNoteStore, notes_file: Path) -> None:
    """Test that reload replaces the in-memory graph with the file contents."""
    notes_file.write_text("# Code-Mind Notes\n\n- ## x.ts\n  - [[cm.xxx111]]\n    - only\n")

    note_store.reload()

    assert [note.id for note in note_store.get_all_notes()] == ["cm.xxx111"]
    assert note_store.get_link_graph().edges == []


def test_save_leaves_no_temporary_files(note_store: LocalNoteStore, notes_file: Path) -> None:
    """Test that the atomic save cleans up after itself."""
    note_store.add_note("a.ts", "one")
    note_store.update_note("cm.000001", "two")

    assert sorted(path.name for path in notes_file.parent.iterdir()) == [notes_file.name]


def test_save_creates_file(empty_store: LocalNoteStore, tmp_path: Path) -> None:
    """Test that the first mutation on a missing file creates it."""
    empty_store.add_note("a.ts", "first note")

    text = (tmp_path / "codemind.md").read_text(encoding="utf-8")
    assert text.startswith("# Code-Mind Notes\n\n- ## a.ts\n")


def test_save_to_other_path(note_store: LocalNoteStore, tmp_path: Path) -> None:
    """Test saving to an explicit path."""
    target = tmp_path / "export" / "notes.md"

    note_store.save(target)

    assert LocalNoteStore(target).get_note("cm.abc123") is not None


def test_save_without_path_raises(current_text: str) -> None:
    """Test that an in-memory store needs an explicit save path."""
    store = LocalNoteStore.from_text(current_text)

    with pytest.raises(ValueError):
        store.save()


def test_from_text(memory_store: LocalNoteStore) -> None:
    """Test building an in-memory store from text."""
    assert memory_store.get_project_root().name == "Demo"
    assert [note.id for note in memory_store.get_children("cm.aaa111")] == ["cm.ccc333"]
    assert memory_store.get_note("cm.bbb222").properties.backlinks == ["cm.aaa111"]

    memory_store.add_note("a.ts", "no file written")
    assert memory_store.get_note("cm.000001") is not None


def test_add_note_ids_are_unique(tmp_path: Path) -> None:
    """Test that the default random generator never hands out an id twice."""
    store = LocalNoteStore(tmp_path / "unique.md", auto_save=False)

    ids = [store.add_note("a.ts", f"note {i}").id for i in range(200)]

    assert len(set(ids)) == 200
    assert len(store.get_all_notes()) == 200


def test_delete_leaves_no_edges(note_store: LocalNoteStore) -> None:
    """Test that no link points to or from a deleted subtree."""
    parent = note_store.add_note("a.ts", "links [[cm.abc123]]")
    child = note_store.add_note("a.ts", "links [[cm.def456]]", parent_id=parent.id)
    note_store.update_note("cm.orphan", f"points at [[{child.id}]]")

    note_store.delete_note(parent.id)

    removed = {parent.id, child.id}
    for edge in note_store.get_link_graph().edges:
        assert edge.from_id not in removed
        assert edge.to_id not in removed
    assert note_store.get_note("cm.abc123").properties.backlinks is None


def test_add_note_with_related_links_target(note_store: LocalNoteStore, notes_file: Path) -> None:
    """Test that related ids given on creation become links and survive a reload."""
    target = note_store.add_note("a.ts", "target")
    source = note_store.add_note("b.ts", "plain", extra_properties={"related": [target.id]})

    assert note_store.get_note(target.id).properties.backlink_count == 1
    assert note_store.get_note(target.id).properties.backlinks == [source.id]
    assert (source.id, target.id) in {
        (edge.from_id, edge.to_id) for edge in note_store.get_link_graph().edges
    }

    reloaded = LocalNoteStore(notes_file)
    assert reloaded.get_note(source.id).properties.related == [target.id]
    assert reloaded.get_note(target.id).properties.backlink_count == 1


def test_reload_keeps_lines_that_look_like_structure(
    note_store: LocalNoteStore, notes_file: Path
) -> None:
    """Test that reference-led and metadata-like content lines survive save and reload."""
    content = "intro\n[[cm.def456]] explains this\nhuman · 2024-12-01\n  spaced"
    note = note_store.add_note("a.ts", content)

    reloaded = LocalNoteStore(notes_file)

    again = reloaded.get_note(note.id)
    assert again.text == content
    assert again.children == []
    assert reloaded.get_note("cm.def456").properties.parent is None
    assert reloaded.get_note("cm.def456").properties.backlink_count == 2
    assert reloaded.get_parse_result().errors == []


def test_reload_keeps_unusual_line_breaks(note_store: LocalNoteStore, notes_file: Path) -> None:
    """Test that unusual line break characters stay inside one content line."""
    content = "page\x0cbreak\nline\u2028separator\ncarriage\rreturn"
    note = note_store.add_note("a.ts", content)

    reloaded = LocalNoteStore(notes_file)

    assert [line.content for line in reloaded.get_note(note.id).content] == [
        "page\x0cbreak",
        "line\u2028separator",
        "carriage\rreturn",
    ]


def test_reload_in_memory_store_parses_text_again(memory_store: LocalNoteStore) -> None:
    """Test that reloading a store built from text restores that text's notes."""
    memory_store.add_note("a.ts", "temporary")
    memory_store.delete_note("cm.bbb222")

    memory_store.reload()

    assert {note.id for note in memory_store.get_all_notes()} == {
        "cm.aaa111",
        "cm.bbb222",
        "cm.ccc333",
    }
    assert memory_store.get_note("cm.bbb222").properties.backlinks == ["cm.aaa111"]
    assert memory_store.get_project_root().name == "Demo"


def test_reload_empty_store(tmp_path: Path) -> None:
    """Test that reloading a store without file or text leaves it empty."""
    store = LocalNoteStore()
    store.add_note("a.ts", "temporary")

    store.reload()

    assert store.get_all_notes() == []


def test_notes_by_tag_type_and_date(note_store: LocalNoteStore) -> None:
    """Test index lookups and the lists of tags and types in use."""
    first = note_store.add_note(
        "a.ts", "one", extra_properties={"tags": ["api", "auth"], "type": "memory"}
    )
    second = note_store.add_note(
        "a.ts", "two", extra_properties={"tags": ["api"], "created": "2025-01-02T10:00:00Z"}
    )

    assert note_store.get_notes_by_tag("api") == [first, second]
    assert note_store.get_notes_by_tag("auth") == [first]
    assert note_store.get_notes_by_tag("nothere") == []
    assert note_store.get_notes_by_type("memory") == [first]
    assert note_store.get_notes_by_date("2025-01-02") == [second]
    assert {note.id for note in note_store.get_notes_by_date("2024-12-01")} == {
        "cm.abc123",
        "cm.def456",
        "cm.orphan",
    }
    assert note_store.get_all_tags() == ["api", "auth"]
    assert note_store.get_all_types() == ["memory"]


def test_index_follows_delete_and_move(note_store: LocalNoteStore) -> None:
    """Test that deleted notes leave the index and moved subtrees change file."""
    parent = note_store.add_note("a.ts", "parent", extra_properties={"tags": ["gone"]})
    child = note_store.add_note("a.ts", "child", parent_id=parent.id)
    kept = note_store.add_note("c.ts", "kept", extra_properties={"tags": ["kept"]})

    note_store.move_note(parent.id, "b.ts")
    assert note_store.get_notes_in_file("b.ts") == [parent, child]
    assert note_store.get_notes_in_file("a.ts") == []

    note_store.delete_note(parent.id)
    assert note_store.get_notes_in_file("b.ts") == []
    assert note_store.get_notes_by_tag("gone") == []
    assert note_store.get_all_tags() == ["kept"]
    assert note_store.get_notes_by_tag("kept") == [kept]


def test_index_rebuilt_on_load(notes_file: Path) -> None:
    """Test that tags written to the file are indexed again on load."""
    store = LocalNoteStore(notes_file, generate_id=SequentialIdGenerator())
    note = store.add_note("a.ts", "tagged", extra_properties={"tags": ["api"], "type": "note"})

    reloaded = LocalNoteStore(notes_file)

    assert [found.id for found in reloaded.get_notes_by_tag("api")] == [note.id]
    assert [found.id for found in reloaded.get_notes_by_type("note")] == [note.id]


def test_get_notes_page(note_store: LocalNoteStore) -> None:
    """Test paging through all notes and through one file."""
    first = note_store.get_notes_page(page=0, page_size=2)
    assert [note.id for note in first.items] == ["cm.abc123", "cm.def456"]
    assert first.total == 3
    assert first.total_pages == 2
    assert first.has_next and not first.has_prev

    second = note_store.get_notes_page(page=1, page_size=2)
    assert [note.id for note in second.items] == ["cm.orphan"]
    assert second.has_prev and not second.has_next

    assert note_store.get_notes_page(page=5, page_size=2).items == []
    assert note_store.get_notes_page(file="other.ts").total == 1


def test_get_notes_page_rejects_bad_arguments(note_store: LocalNoteStore) -> None:
    """Test that negative pages and empty page sizes are errors."""
    with pytest.raises(ValueError):
        note_store.get_notes_page(page=-1)
    with pytest.raises(ValueError):
        note_store.get_notes_page(page_size=0)


def test_search_page(note_store: LocalNoteStore) -> None:
    """Test that search pages follow the ranked order."""
    ranked = [result.note.id for result in note_store.search("note")]

    page = note_store.search_page("note", page=1, page_size=1)

    assert page.total == len(ranked)
    assert [result.note.id for result in page.items] == ranked[1:2]
    assert page.has_prev
