import sys

from loguru import logger

from codemind.api import create_app
from codemind.config import settings
from codemind.ids import IdGenerator
from codemind.note_store.local import LocalNoteStore

logger.configure(handlers=[{"sink": sys.stderr, "level": settings.log_level}])

logger.info(f"Serving notes from {settings.notes_path}")
note_store = LocalNoteStore(
    settings.notes_path,
    generate_id=IdGenerator(id_length=settings.id_length).generate_id,
    auto_save=settings.auto_save,
    sort_notes=settings.sort_notes,
    summary_max_length=settings.summary_max_length,
)
app = create_app(note_store=note_store)
