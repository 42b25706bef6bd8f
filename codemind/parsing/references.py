"""Extraction of `[[cm.xxx]]` note references from text."""

import re

# Match [[cm.abc123]] and [[cm.abc123|display]]
NOTE_REF_PATTERN = re.compile(r"\[\[(cm\.[a-z0-9]+)(?:\|([^\]]+))?\]\]")


def extract_references(content: str) -> list[str]:
    """Extract note ids referenced in content.

    Returns ids in order of first appearance, deduplicated.
    """
    seen = set()
    result = []
    for match in NOTE_REF_PATTERN.finditer(content):
        note_id = match.group(1)
        if note_id not in seen:
            seen.add(note_id)
            result.append(note_id)
    return result
