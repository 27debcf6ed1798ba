"""Data models for vector index entries."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(eq=False)
class IndexEntry:
    """A stored vector keyed by the content hash of its record.

    Note: eq=False ensures each instance is unique and hashable by identity,
    which is required for RavenDB's session entity tracking.

    Attributes:
        Id: RavenDB document ID ("<collection>/<entry_id>")
        entry_id: Content hash of the serialized record
        embedding: Vector embedding of the record's text
        metadata: Optional metadata (chunk position, selected record fields)
        namespace: Namespace the entry belongs to (None = default)
    """

    Id: str | None = None
    entry_id: str = ""
    embedding: list[float] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    namespace: str | None = None

    def __hash__(self) -> int:
        """Hash by object identity for RavenDB session tracking."""
        return id(self)


@dataclass(frozen=True)
class QueryMatch:
    """One nearest-neighbour result, in index ranking order."""

    entry_id: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)
