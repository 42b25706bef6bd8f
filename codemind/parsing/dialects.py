"""Detection of the notes file dialect."""

from enum import Enum

_LEGACY_ID_MARKER = "id:: cm."


class Dialect(str, Enum):
    """Notes file formats the parser understands.

    CURRENT is the bullet and indent format the writer produces. LEGACY is the
    older `key:: value` attribute format, which is read but never written.
    """

    CURRENT = "current"
    LEGACY = "legacy"


def detect_dialect(text: str) -> Dialect:
    """Pick the dialect of a notes file from its textual markers.

    An `id:: cm.` attribute line marks the legacy dialect even when current
    dialect bullets (`- ## path`, `- [[cm.x]]`) are also present. Text with
    neither marker is treated as the current dialect.
    """
    if _LEGACY_ID_MARKER in text:
        return Dialect.LEGACY
    return Dialect.CURRENT
