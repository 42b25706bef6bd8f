"""Link graph, traversal and search result models."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from codemind.domain.note import Note


class LinkEdge(BaseModel):
    """A directed reference from one note to another."""

    model_config = ConfigDict(populate_by_name=True)

    from_id: str = Field(alias="from")
    to_id: str = Field(alias="to")


class LinkGraph(BaseModel):
    """Snapshot of the link graph for visualization and export."""

    nodes: list[str] = []
    edges: list[LinkEdge] = []


class RelatedNote(BaseModel):
    """A note reached from another note by following links."""

    note: Note
    direction: Literal["outgoing", "incoming"]
    depth: int


class SearchMatch(BaseModel):
    """Position of a query term inside a content line.

    Attributes:
        line: Index of the content line within the note
        content: Text of the matched line
        highlight: Start and end offsets of the term in the line
    """

    line: int
    content: str
    highlight: tuple[int, int]


class SearchResult(BaseModel):
    """A note matching a search query together with its score."""

    note: Note
    matches: list[SearchMatch] = []
    score: float
