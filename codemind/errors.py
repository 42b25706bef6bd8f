"""Exceptions raised by the note store and id generation."""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    PARSE_INVALID_FORMAT = "PARSE_INVALID_FORMAT"
    PARSE_DUPLICATE_ID = "PARSE_DUPLICATE_ID"
    PARSE_MISSING_REQUIRED = "PARSE_MISSING_REQUIRED"

    NOTE_NOT_FOUND = "NOTE_NOT_FOUND"
    NOTE_PARENT_NOT_FOUND = "NOTE_PARENT_NOT_FOUND"

    ID_EXHAUSTED = "ID_EXHAUSTED"

    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    FILE_WRITE_FAILED = "FILE_WRITE_FAILED"


class CodemindError(Exception):
    """Base error carrying a machine-readable code and optional details."""

    def __init__(
        self, message: str, code: ErrorCode, details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class NoteNotFoundError(CodemindError, KeyError):
    """A mutation or lookup addressed a note id that is not in the store."""

    def __init__(self, note_id: str, code: ErrorCode = ErrorCode.NOTE_NOT_FOUND) -> None:
        label = "Parent note" if code == ErrorCode.NOTE_PARENT_NOT_FOUND else "Note"
        super().__init__(f"{label} not found: {note_id}", code, {"note_id": note_id})
        self.note_id = note_id


class IdGenerationError(CodemindError):
    """No unused note id could be produced within the attempt limit."""

    def __init__(self, attempts: int) -> None:
        super().__init__(
            f"Unable to generate unique ID after {attempts} attempts",
            ErrorCode.ID_EXHAUSTED,
            {"attempts": attempts},
        )
