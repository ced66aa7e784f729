"""
Record types used by the vector index.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, Optional


@dataclass
class VectorMetadata:
    """Bookkeeping for one stored vector."""

    id: str
    """Caller-supplied identifier (the query id)"""

    position: int
    """Zero-based slot in the aligned vector collections"""

    norm: float
    """L2 norm of the raw vector at insertion/update time"""


@dataclass
class SearchHit:
    """Represents a search result from the vector index."""

    id: str
    """Identifier for the matching record"""

    score: float
    """Cosine similarity of the match (-1..1)"""

    distance: float
    """1 - score"""

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass
class IndexInfo:
    """Snapshot of the vector index state."""

    dimension: Optional[int]
    vector_count: int
    active_vectors: int
    index_type: str
    index_path: str
    is_initialized: bool
    memory_usage: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)
