"""CLI for browsing and editing a Code-Mind notes file."""

import argparse
import json
import sys
from pathlib import Path

from loguru import logger

from codemind.config import settings
from codemind.domain.note import Note
from codemind.errors import CodemindError
from codemind.ids import IdGenerator
from codemind.note_store.local import LocalNoteStore


def _format_note(note: Note) -> str:
    backlinks = note.properties.backlink_count or 0
    first_line = note.content[0].content if note.content else ""
    return f"{note.id}  {note.display_path}  [{backlinks}]  {first_line}"


def _print_note(note: Note) -> None:
    properties = note.properties
    print(f"{note.id} ({note.display_path})")
    location = properties.file or "unknown"
    if properties.line is not None:
        location += f":{properties.line}"
    print(f"  {properties.author} · {properties.created} · {location}")
    for line in note.content:
        print(f"  {'  ' * line.indent}{line.content}")
    if properties.backlinks:
        print(f"  backlinks: {', '.join(properties.backlinks)}")
    for child in note.children:
        print(f"  child: {_format_note(child)}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--notes-file",
        type=Path,
        required=False,
        help="Notes file to operate on",
        default=settings.notes_path,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List notes")
    list_parser.add_argument("--file", type=str, help="Only notes attached to this file")
    list_parser.add_argument("--tag", type=str, help="Only notes carrying this tag")
    list_parser.add_argument("--type", type=str, help="Only notes of this type")

    show_parser = subparsers.add_parser("show", help="Show a note by id or display path")
    show_parser.add_argument("note", type=str)

    search_parser = subparsers.add_parser("search", help="Search note content and paths")
    search_parser.add_argument("query", type=str)
    search_parser.add_argument("--limit", type=int, default=settings.search_limit)

    add_parser = subparsers.add_parser("add", help="Add a note")
    add_parser.add_argument("file", type=str)
    add_parser.add_argument("content", type=str)
    add_parser.add_argument("--parent", type=str, help="Parent note id")
    add_parser.add_argument("--line", type=int, help="Line in the source file")
    add_parser.add_argument("--author", type=str, default="human")

    update_parser = subparsers.add_parser("update", help="Replace the content of a note")
    update_parser.add_argument("note_id", type=str)
    update_parser.add_argument("content", type=str)

    delete_parser = subparsers.add_parser("delete", help="Delete a note and its children")
    delete_parser.add_argument("note_id", type=str)

    move_parser = subparsers.add_parser("move", help="Attach a note to another file")
    move_parser.add_argument("note_id", type=str)
    move_parser.add_argument("file", type=str)
    move_parser.add_argument("--line", type=int)

    subparsers.add_parser("orphans", help="List notes without links")
    subparsers.add_parser("tags", help="List the tags in use")

    popular_parser = subparsers.add_parser("popular", help="List the most referenced notes")
    popular_parser.add_argument("--limit", type=int, default=settings.popular_limit)

    subparsers.add_parser("graph", help="Print the link graph as JSON")

    args = parser.parse_args(argv)

    store = LocalNoteStore(
        args.notes_file,
        generate_id=IdGenerator(id_length=settings.id_length).generate_id,
        auto_save=True,
        sort_notes=settings.sort_notes,
        summary_max_length=settings.summary_max_length,
    )

    try:
        if args.command == "list":
            if args.file:
                notes = store.get_notes_in_file(args.file)
            elif args.tag:
                notes = store.get_notes_by_tag(args.tag)
            elif args.type:
                notes = store.get_notes_by_type(args.type)
            else:
                notes = store.get_all_notes()
            for note in notes:
                print(_format_note(note))
        elif args.command == "show":
            note = store.get_note(args.note) or store.get_note_by_path(args.note)
            if note is None:
                print(f"Note not found: {args.note}", file=sys.stderr)
                return 1
            _print_note(note)
        elif args.command == "search":
            for result in store.search(args.query, args.limit):
                print(f"{result.score:6.1f}  {_format_note(result.note)}")
        elif args.command == "add":
            note = store.add_note(
                args.file,
                args.content,
                parent_id=args.parent,
                extra_properties={"line": args.line, "author": args.author},
            )
            print(note.id)
        elif args.command == "update":
            store.update_note(args.note_id, args.content)
        elif args.command == "delete":
            store.delete_note(args.note_id)
        elif args.command == "move":
            note = store.move_note(args.note_id, args.file, args.line)
            print(note.display_path)
        elif args.command == "orphans":
            for note in store.get_orphans():
                print(_format_note(note))
        elif args.command == "tags":
            for tag in store.get_all_tags():
                print(f"{tag}  {len(store.get_notes_by_tag(tag))}")
        elif args.command == "popular":
            for note in store.get_popular(args.limit):
                print(_format_note(note))
        elif args.command == "graph":
            print(json.dumps(store.get_link_graph().model_dump(by_alias=True), indent=2))
    except CodemindError as err:
        logger.error(f"{err.code.value}: {err}")
        return 1

    return 0


if __name__ == "__main__":
    logger.configure(handlers=[{"sink": sys.stderr, "level": settings.log_level}])
    sys.exit(main())
