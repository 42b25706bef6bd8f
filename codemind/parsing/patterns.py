"""Line patterns for both notes file dialects."""

import re

# Document title: # Code-Mind Notes
DOCUMENT_TITLE = re.compile(r"^#\s+.+$")

# Project metadata bullets: - Project: name / - Created: 2024-12-01
PROJECT_NAME = re.compile(r"^-\s*Project:\s*(.+)$")
PROJECT_CREATED = re.compile(r"^-\s*Created:\s*(.+)$")
PROJECT_NOTES = re.compile(r"^-\s*Project Notes\s*$")

# File section header: - ## path/to/file.ts
FILE_SECTION = re.compile(r"^-\s*##\s+(.+)$")

# Note title: - [[cm.xxx]] summary, or title only
NOTE_TITLE = re.compile(r"^-\s*\[\[(cm\.[a-z0-9]+)\]\](?:\s+(.*))?$")

# Metadata: - author · 2024-12-01 or - author · 2024-12-01 · line 42, optionally followed
# by attribute segments: · type memory · tags a, b · related cm.x, cm.y · title Some title
NOTE_META = re.compile(
    r"^-\s*([^\s·]+)\s*·\s*(\d{4}-\d{2}-\d{2}[^\s·]*)(?:\s*·\s*line\s*(\d+))?((?:\s*·.*)?)$"
)

# Content bullet, a bare "-" is an empty line
BULLET_LINE = re.compile(r"^-(?:\s(.*))?$")

# Legacy note start: - [[cm.xxx|display]]
LEGACY_NOTE_START = re.compile(r"^-\s*\[\[(cm\.[a-z0-9]+)(?:\|[^\]]+)?\]\]$")

# Legacy attribute: key:: value
LEGACY_PROPERTY = re.compile(r"^([a-z_]+)::\s*(.*)$")

# Legacy content bullet with its leading whitespace
LEGACY_BULLET = re.compile(r"^(\s*)-(?:\s(.*))?$")

INDENT_WIDTH = 2


def indent_level(line: str) -> int:
    """Indent level of a line, counted in units of two spaces."""
    return (len(line) - len(line.lstrip(" \t"))) // INDENT_WIDTH
