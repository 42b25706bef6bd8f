from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from codemind.api import create_app
from codemind.note_store.local import LocalNoteStore
from tests.fakes import SequentialIdGenerator

LEGACY_TEXT = """\
- # CodeMind
  id:: project-root
  type:: project
  name:: Test Project
  created:: 2024-12-01
  - ## Map
    collapsed:: true
    - test.ts
      - test.ts/abc123 Test note [1]

- [[cm.abc123|test.ts/abc123]]
  id:: cm.abc123
  file:: test.ts
  line:: 42
  author:: human
  created:: 2024-12-01
  - This is a test note
  - It references [[cm.def456]]

- [[cm.def456|test.ts/def456]]
  id:: cm.def456
  file:: test.ts
  line:: 100
  author:: ai
  created:: 2024-12-01
  - Another note
  - Referenced by abc123

- [[cm.orphan|other.ts/orphan]]
  id:: cm.orphan
  file:: other.ts
  author:: human
  created:: 2024-12-01
  - This is an orphan note
"""

CURRENT_TEXT = """\
# Code-Mind Notes
- Project: Demo
- Created: 2024-12-01

- Project Notes
  - Architecture overview
    - see [[cm.aaa111]]

- ## src/app.ts
  - [[cm.aaa111]] Entry point notes
    - human · 2024-12-01 · line 10
    - Entry point notes
    - Calls [[cm.bbb222]] on startup
      - nested detail
    - [[cm.ccc333]] Child note about config
      - ai · 2024-12-02
      - Child note about config

- ## src/util.ts
  - [[cm.bbb222]] Utility helpers
    - human · 2024-12-03
    - Utility helpers
"""


@pytest.fixture
def legacy_text() -> str:
    return LEGACY_TEXT


@pytest.fixture
def current_text() -> str:
    return CURRENT_TEXT


@pytest.fixture
def id_generator() -> SequentialIdGenerator:
    return SequentialIdGenerator()


@pytest.fixture
def notes_file(tmp_path: Path) -> Path:
    path = tmp_path / "codemind.md"
    path.write_text(LEGACY_TEXT, encoding="utf-8")
    return path


@pytest.fixture
def note_store(notes_file: Path, id_generator: SequentialIdGenerator) -> LocalNoteStore:
    return LocalNoteStore(notes_file, generate_id=id_generator)


@pytest.fixture
def empty_store(tmp_path: Path, id_generator: SequentialIdGenerator) -> LocalNoteStore:
    return LocalNoteStore(tmp_path / "codemind.md", generate_id=id_generator)


@pytest.fixture
def memory_store(id_generator: SequentialIdGenerator) -> LocalNoteStore:
    return LocalNoteStore.from_text(CURRENT_TEXT, generate_id=id_generator)


@pytest.fixture
def test_client(memory_store: LocalNoteStore) -> TestClient:
    return TestClient(create_app(note_store=memory_store))
