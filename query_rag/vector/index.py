"""
In-memory vector index for cosine-similarity search over query descriptions.

The flat index keeps three aligned collections (raw vectors, normalized
vectors and metadata); position i in each always describes the same record.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
import numpy as np

from .types import VectorMetadata, SearchHit, IndexInfo
from .vector_math import VectorLike, as_vector, norm, normalize
from ..core.errors import ArgumentMismatchError, NotFoundError, NotInitializedError
from ..util.logging import logger

FLOAT_BYTES = 8
METADATA_BYTES = 100


class IVectorIndex(ABC):
    """Abstract interface for vector index operations."""

    @abstractmethod
    def initialize(self, dimension: int) -> None:
        """Fix the collection dimension. No-op once initialized."""
        pass

    @abstractmethod
    def add_vectors(self, vectors: Sequence[VectorLike], ids: Sequence[str]) -> None:
        """Append vectors under the given ids."""
        pass

    @abstractmethod
    def search(self, query_vector: VectorLike, k: int = 5) -> List[SearchHit]:
        """Return the k most similar stored vectors, best first."""
        pass

    @abstractmethod
    def remove_vector(self, record_id: str) -> None:
        """Delete the vector stored under record_id."""
        pass

    @abstractmethod
    def update_vector(self, record_id: str, vector: VectorLike) -> None:
        """Replace the vector stored under record_id."""
        pass

    @abstractmethod
    def get_info(self) -> IndexInfo:
        """Describe the current index state."""
        pass

    @abstractmethod
    def cleanup(self) -> None:
        """Discard all vectors and reset to uninitialized."""
        pass


class FlatVectorIndex(IVectorIndex):
    """Brute-force cosine similarity index held entirely in memory.

    Search is O(n*d), add and update are O(d), remove is O(n) because every
    later record's position shifts down by one. Ids are not deduplicated:
    duplicates coexist and remove/update act on the first match.
    """

    index_type = "flat"

    def __init__(self):
        self.vectors: List[np.ndarray] = []
        self.normalized_vectors: List[np.ndarray] = []
        self.metadata: List[VectorMetadata] = []
        self.dimension: Optional[int] = None
        self.is_initialized = False

    def initialize(self, dimension: int) -> None:
        if self.is_initialized:
            return

        if isinstance(dimension, bool) or not isinstance(dimension, (int, np.integer)) or dimension <= 0:
            raise ValueError(f"Dimension must be a positive integer, got {dimension!r}")

        self.dimension = int(dimension)
        self.is_initialized = True
        logger.log_vector_operation("initialized", details={
            "dimension": self.dimension,
            "index_type": self.index_type
        })

    def _require_initialized(self) -> None:
        if not self.is_initialized:
            raise NotInitializedError("Vector index not initialized. Call initialize() first.")

    def _find_position(self, record_id: str) -> int:
        for position, meta in enumerate(self.metadata):
            if meta.id == record_id:
                return position
        raise NotFoundError(record_id)

    def add_vectors(self, vectors: Sequence[VectorLike], ids: Sequence[str]) -> None:
        """Add vectors to the index.

        Each vector is checked before it is appended, so a dimension error
        leaves earlier vectors of the same batch in place and nothing of the
        offending one.

        Raises:
            ArgumentMismatchError: vectors and ids differ in length
            NotInitializedError: initialize() has not been called
            DimensionMismatchError: a vector's length is not the index dimension
        """
        if len(vectors) != len(ids):
            raise ArgumentMismatchError(
                f"Vector count must match query ID count: {len(vectors)} vectors, {len(ids)} ids"
            )
        self._require_initialized()

        for i, (vector, record_id) in enumerate(zip(vectors, ids)):
            raw = as_vector(vector, self.dimension, position=i)
            raw_norm = norm(raw)

            self.vectors.append(raw)
            self.normalized_vectors.append(normalize(raw))
            self.metadata.append(VectorMetadata(
                id=record_id,
                position=len(self.vectors) - 1,
                norm=raw_norm
            ))
            logger.log_vector_operation("added", record_id, {"norm": round(raw_norm, 6)})

        logger.log_vector_operation("batch_added", details={
            "count": len(ids),
            "total": len(self.vectors)
        })

    def search(self, query_vector: VectorLike, k: int = 5) -> List[SearchHit]:
        """Rank stored vectors by cosine similarity to query_vector.

        Ties keep insertion order. Returns min(k, len(self)) hits.
        """
        self._require_initialized()
        query = as_vector(query_vector, self.dimension, what="Query vector")

        if isinstance(k, bool) or not isinstance(k, (int, np.integer)) or k <= 0:
            raise ValueError(f"k must be a positive integer, got {k!r}")

        if not self.normalized_vectors:
            return []

        normalized_query = normalize(query)
        similarities = np.vstack(self.normalized_vectors) @ normalized_query

        return [
            SearchHit(
                id=self.metadata[position].id,
                score=float(similarities[position]),
                distance=1.0 - float(similarities[position])
            )
            for position in self._top_k(similarities, k)
        ]

    @staticmethod
    def _top_k(similarities: np.ndarray, k: int) -> np.ndarray:
        # Stable, so equal scores keep insertion order
        order = np.argsort(-similarities, kind="stable")
        return order[:k]

    def remove_vector(self, record_id: str) -> None:
        position = self._find_position(record_id)

        del self.vectors[position]
        del self.normalized_vectors[position]
        del self.metadata[position]

        for i in range(position, len(self.metadata)):
            self.metadata[i].position = i

        logger.log_vector_operation("removed", record_id, {"position": position})

    def update_vector(self, record_id: str, vector: VectorLike) -> None:
        position = self._find_position(record_id)
        raw = as_vector(vector, self.dimension, what="New vector")

        self.vectors[position] = raw
        self.normalized_vectors[position] = normalize(raw)
        self.metadata[position].norm = norm(raw)

        logger.log_vector_operation("updated", record_id, {"position": position})

    def get_metadata(self) -> List[VectorMetadata]:
        """Return a copy of the metadata records in position order."""
        return [VectorMetadata(m.id, m.position, m.norm) for m in self.metadata]

    def get_info(self) -> IndexInfo:
        dimension = self.dimension or 0
        return IndexInfo(
            dimension=self.dimension,
            vector_count=len(self.vectors),
            active_vectors=len(self.metadata),
            index_type=self.index_type,
            index_path="in-memory",
            is_initialized=self.is_initialized,
            memory_usage={
                "vectors": len(self.vectors) * dimension * FLOAT_BYTES,
                "normalized_vectors": len(self.normalized_vectors) * dimension * FLOAT_BYTES,
                "metadata": len(self.metadata) * METADATA_BYTES
            }
        )

    def cleanup(self) -> None:
        self.vectors = []
        self.normalized_vectors = []
        self.metadata = []
        self.is_initialized = False
        logger.log_vector_operation("cleanup")

    def __len__(self) -> int:
        return len(self.vectors)
