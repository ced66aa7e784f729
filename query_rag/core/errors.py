"""
Error taxonomy shared by the vector index, embedding gateway and search service.
"""

from typing import Any, Dict, Optional


class QueryRAGError(Exception):
    """Base class for query-rag errors."""

    @property
    def details(self) -> Optional[Dict[str, Any]]:
        """Structured fields for API error bodies; None when there are none."""
        return None


class NotInitializedError(QueryRAGError):
    """An operation was called before initialize()/initialize_all()."""
    pass


class DimensionMismatchError(QueryRAGError, ValueError):
    """A vector's length does not equal the collection dimension."""

    def __init__(self, expected: int, actual: int, position: int = None, what: str = "Vector"):
        self.expected = expected
        self.actual = actual
        self.position = position
        if position is not None:
            message = f"{what} {position} has wrong dimension: expected {expected}, got {actual}"
        else:
            message = f"{what} has wrong dimension: expected {expected}, got {actual}"
        super().__init__(message)

    @property
    def details(self) -> Dict[str, Any]:
        return {"expected": self.expected, "actual": self.actual, "position": self.position}


class ArgumentMismatchError(QueryRAGError, ValueError):
    """Batch input sequences have inconsistent lengths."""
    pass


class NotFoundError(QueryRAGError, LookupError):
    """Referenced id does not exist."""

    def __init__(self, record_id: str, what: str = "Query ID"):
        self.record_id = record_id
        super().__init__(f"{what} not found: {record_id}")

    @property
    def details(self) -> Dict[str, Any]:
        return {"record_id": self.record_id}


class EmbeddingError(QueryRAGError):
    """The embedding model failed or returned malformed output."""
    pass
