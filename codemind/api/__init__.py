from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from codemind.api.endpoints import get_endpoints_router
from codemind.note_store.base import NoteStore


def create_app(*, note_store: NoteStore) -> FastAPI:
    """Create FastAPI app."""
    app = FastAPI()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router=get_endpoints_router(note_store=note_store))

    return app
