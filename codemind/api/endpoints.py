from fastapi import APIRouter, HTTPException, Response
from loguru import logger

from codemind.api.schemas import NoteCreate, NoteMove, NoteUpdate
from codemind.config import settings
from codemind.domain.graph import LinkGraph, RelatedNote, SearchResult
from codemind.domain.note import Note
from codemind.domain.page import Page
from codemind.errors import IdGenerationError, NoteNotFoundError
from codemind.note_store.base import NoteStore


def _create_add_note_endpoint(note_store: NoteStore):
    """Create the add note endpoint handler."""

    async def add_note(body: NoteCreate) -> Note:
        extra = body.model_dump(include={"author", "line", "tags", "type", "related"})
        try:
            return note_store.add_note(
                body.file,
                body.content,
                parent_id=body.parent_id,
                note_id=body.note_id,
                extra_properties=extra,
            )
        except NoteNotFoundError as err:
            raise HTTPException(status_code=404, detail=str(err)) from err
        except IdGenerationError as err:
            logger.error(f"Error adding note: {err}")
            raise HTTPException(status_code=503, detail=str(err)) from err

    return add_note


def _create_update_note_endpoint(note_store: NoteStore):
    """Create the update note endpoint handler."""

    async def update_note(note_id: str, body: NoteUpdate) -> Note:
        try:
            return note_store.update_note(note_id, body.content)
        except NoteNotFoundError as err:
            raise HTTPException(status_code=404, detail=str(err)) from err

    return update_note


def _create_delete_note_endpoint(note_store: NoteStore):
    """Create the delete note endpoint handler."""

    async def delete_note(note_id: str) -> Response:
        try:
            note_store.delete_note(note_id)
        except NoteNotFoundError as err:
            raise HTTPException(status_code=404, detail=str(err)) from err
        return Response(status_code=204)

    return delete_note


def _create_move_note_endpoint(note_store: NoteStore):
    """Create the move note endpoint handler."""

    async def move_note(note_id: str, body: NoteMove) -> Note:
        try:
            return note_store.move_note(note_id, body.file, body.line)
        except NoteNotFoundError as err:
            raise HTTPException(status_code=404, detail=str(err)) from err

    return move_note


def get_endpoints_router(*, note_store: NoteStore) -> APIRouter:  # noqa: C901
    router = APIRouter(prefix="/api")

    @router.get("/health")
    async def health_check():
        return {"status": "healthy"}

    @router.get("/project")
    async def project():
        project_root = note_store.get_project_root()
        if project_root is None:
            raise HTTPException(status_code=404, detail="No notes file loaded")
        return project_root

    @router.get("/notes")
    async def list_notes(file: str | None = None) -> list[Note]:
        if file is not None:
            return note_store.get_notes_in_file(file)
        return note_store.get_all_notes()

    @router.get("/notes/paged")
    async def notes_page(
        page: int = 0, page_size: int = settings.page_size, file: str | None = None
    ) -> Page[Note]:
        try:
            return note_store.get_notes_page(page, page_size, file)
        except ValueError as err:
            raise HTTPException(status_code=422, detail=str(err)) from err

    @router.get("/notes/by-path/{display_path:path}")
    async def note_by_path(display_path: str) -> Note:
        note = note_store.get_note_by_path(display_path)
        if note is None:
            raise HTTPException(status_code=404, detail="Note not found")
        return note

    @router.get("/notes/{note_id}")
    async def get_note(note_id: str) -> Note:
        note = note_store.get_note(note_id)
        if note is None:
            raise HTTPException(status_code=404, detail="Note not found")
        return note

    @router.get("/notes/{note_id}/children")
    async def children(note_id: str) -> list[Note]:
        if note_store.get_note(note_id) is None:
            raise HTTPException(status_code=404, detail="Note not found")
        return note_store.get_children(note_id)

    @router.get("/notes/{note_id}/backlinks")
    async def backlinks(note_id: str) -> list[Note]:
        if note_store.get_note(note_id) is None:
            raise HTTPException(status_code=404, detail="Note not found")
        return note_store.get_backlinks(note_id)

    @router.get("/notes/{note_id}/related")
    async def related(note_id: str, depth: int = settings.related_depth) -> list[RelatedNote]:
        if note_store.get_note(note_id) is None:
            raise HTTPException(status_code=404, detail="Note not found")
        return note_store.get_related(note_id, depth)

    @router.get("/search")
    async def search(q: str, limit: int = settings.search_limit) -> list[SearchResult]:
        return note_store.search(q, limit)

    @router.get("/search/paged")
    async def search_page(
        q: str, page: int = 0, page_size: int = settings.page_size
    ) -> Page[SearchResult]:
        try:
            return note_store.search_page(q, page, page_size)
        except ValueError as err:
            raise HTTPException(status_code=422, detail=str(err)) from err

    @router.get("/tags")
    async def tags() -> list[str]:
        return note_store.get_all_tags()

    @router.get("/tags/{tag}/notes")
    async def notes_by_tag(tag: str) -> list[Note]:
        return note_store.get_notes_by_tag(tag)

    @router.get("/types")
    async def types() -> list[str]:
        return note_store.get_all_types()

    @router.get("/types/{note_type}/notes")
    async def notes_by_type(note_type: str) -> list[Note]:
        return note_store.get_notes_by_type(note_type)

    @router.get("/orphans")
    async def orphans() -> list[Note]:
        return note_store.get_orphans()

    @router.get("/popular")
    async def popular(limit: int = settings.popular_limit) -> list[Note]:
        return note_store.get_popular(limit)

    @router.get("/graph")
    async def graph() -> LinkGraph:
        return note_store.get_link_graph()

    router.post("/notes", status_code=201)(_create_add_note_endpoint(note_store))
    router.put("/notes/{note_id}")(_create_update_note_endpoint(note_store))
    router.delete("/notes/{note_id}", status_code=204)(_create_delete_note_endpoint(note_store))
    router.post("/notes/{note_id}/move")(_create_move_note_endpoint(note_store))

    return router
