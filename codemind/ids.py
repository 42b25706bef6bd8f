"""Note id generation and display path helpers."""

import random
import re
import string
from typing import Callable, Collection

from codemind.errors import IdGenerationError

DEFAULT_ALPHABET = string.ascii_lowercase + string.digits
MAX_ATTEMPTS = 1000

REF_PATTERN = re.compile(r"^\[\[(cm\.[a-z0-9]+)(?:\|[^\]]+)?\]\]$")


def generate_unique_id(
    generate: Callable[[], str], existing: Collection[str], max_attempts: int = MAX_ATTEMPTS
) -> str:
    """Call `generate` until it returns an id not in `existing`.

    Args:
        generate: Id generator, possibly injected by the caller
        existing: Ids already in use
        max_attempts: Number of candidates to try before giving up

    Returns:
        An unused note id

    Raises:
        IdGenerationError: If every attempt collided
    """
    for _ in range(max_attempts):
        candidate = generate()
        if candidate not in existing:
            return candidate
    raise IdGenerationError(max_attempts)


class IdGenerator:
    """Produces `cm.<hash>` note ids."""

    def __init__(
        self,
        id_length: int = 6,
        alphabet: str = DEFAULT_ALPHABET,
        random_fn: Callable[[], float] = random.random,
    ):
        """
        Initialize IdGenerator.

        Args:
            id_length: Number of characters in the hash part of the id
            alphabet: Characters the hash is drawn from
            random_fn: Source of floats in [0, 1), replaceable in tests
        """
        self.id_length = id_length
        self.alphabet = alphabet
        self.random_fn = random_fn
        self._id_pattern = re.compile(rf"^cm\.[a-z0-9]{{{id_length}}}$")

    def _generate_hash(self) -> str:
        return "".join(
            self.alphabet[int(self.random_fn() * len(self.alphabet))]
            for _ in range(self.id_length)
        )

    def generate_id(self) -> str:
        return f"cm.{self._generate_hash()}"

    def generate_unique_id(self, existing: Collection[str]) -> str:
        return generate_unique_id(self.generate_id, existing)

    def is_valid_id(self, note_id: str) -> bool:
        return bool(self._id_pattern.match(note_id))

    @staticmethod
    def generate_display_path(file: str, note_id: str, parent_id: str | None = None) -> str:
        note_hash = note_id.removeprefix("cm.")
        if parent_id:
            return f"{file}/{parent_id.removeprefix('cm.')}/{note_hash}"
        return f"{file}/{note_hash}"

    @staticmethod
    def extract_id_from_ref(ref: str) -> str | None:
        """Extract the id from `[[cm.xxx]]` or `[[cm.xxx|display]]`."""
        match = REF_PATTERN.match(ref)
        return match.group(1) if match else None

    @staticmethod
    def parse_display_path(display_path: str) -> dict[str, str] | None:
        """Split a display path into file, id hash and optional parent hash.

        File names may contain slashes, so with three or more segments the last
        two are taken as `parentHash/hash` and everything before is the file.
        """
        parts = display_path.split("/")
        if len(parts) < 2:
            return None
        if len(parts) == 2:
            return {"file": parts[0], "id": parts[1]}
        return {
            "file": "/".join(parts[:-2]),
            "id": parts[-1],
            "parent_id": parts[-2],
        }


_default_generator = IdGenerator()

generate_id = _default_generator.generate_id
is_valid_id = _default_generator.is_valid_id
