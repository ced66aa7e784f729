"""
Semantic search over the query catalog.

Coordinates the embedding gateway, the vector index and the query store.
Writes span two collaborators and are not transactional: a query persisted
before its embedding fails stays persisted, and a query deleted from the
store stays deleted if the index no longer holds it.
"""

import time
from typing import Any, Dict, List, Optional

from .config import DEFAULT_TOP_K, get_embedding_gateway, get_vector_index, get_query_store
from .dao import QueryStore
from .errors import NotInitializedError
from .schema import QueryRecord
from ..util.logging import logger
from ..vector.embeddings import EmbeddingGateway, PASSAGE_PREFIX
from ..vector.index import IVectorIndex


class QuerySearchService:
    """
    Natural-language search and maintenance of the query catalog.

    All collaborators are passed in, so independent instances (for example
    in tests) never share state.
    """

    def __init__(self, embedder: EmbeddingGateway, vector_index: IVectorIndex, query_store: QueryStore):
        self.embedder = embedder
        self.vector_index = vector_index
        self.query_store = query_store
        self.is_initialized = False

    def initialize_all(self) -> None:
        """Load the model and catalog, then index every stored query. Idempotent."""
        if self.is_initialized:
            return

        logger.info("Initializing query search service...")
        self.embedder.initialize()
        self.query_store.load()
        self.vector_index.initialize(self.embedder.get_dimension())
        self.index_queries()

        self.is_initialized = True
        logger.log_operation("search_service.initialize", "success", self.vector_index.get_info().to_dict())

    def index_queries(self) -> int:
        """Embed every stored description as a passage and add it to the index."""
        queries = self.query_store.load_all()
        if not queries:
            logger.warning("No queries to index")
            return 0

        embeddings = self.embedder.embed_batch([q.description for q in queries], PASSAGE_PREFIX)
        self.vector_index.add_vectors(embeddings, [q.id for q in queries])

        logger.log_operation("search_service.index", "success", {"query_count": len(queries)})
        return len(queries)

    def _require_initialized(self) -> None:
        if not self.is_initialized:
            raise NotInitializedError("Query search service not initialized. Call initialize_all() first.")

    def search_similar_queries(self, text: str, top_k: int = DEFAULT_TOP_K) -> List[Dict[str, Any]]:
        """
        Find stored queries whose descriptions best match text.

        Args:
            text: Natural-language search text
            top_k: Maximum number of results

        Returns:
            List of dicts with 'id', 'similarity', 'distance', 'description',
            'sql_script' and 'metadata', best match first. A hit whose record
            has vanished from the store keeps its id and score with empty fields.
        """
        self._require_initialized()
        if not isinstance(text, str) or not text.strip():
            raise ValueError("Natural language query must be a non-empty string")

        started = time.perf_counter()
        query_embedding = self.embedder.embed_query(text)
        hits = self.vector_index.search(query_embedding, top_k)

        results = []
        for hit in hits:
            record = self.query_store.get_query_by_id(hit.id)
            results.append({
                "id": hit.id,
                "similarity": hit.score,
                "distance": hit.distance,
                "description": record.description if record else "",
                "sql_script": record.sql_script if record else "",
                "metadata": record.metadata if record else {}
            })

        logger.log_search(text, top_k, len(results), (time.perf_counter() - started) * 1000)
        return results

    def add_query(self, description: str, sql_script: str, metadata: Dict[str, Any] = None) -> str:
        """Persist a new query, embed its description and index it. Returns the id."""
        self._require_initialized()

        query_id = self.query_store.add_query(description, sql_script, metadata)
        try:
            embedding = self.embedder.embed_document(description)
            self.vector_index.add_vectors([embedding], [query_id])
        except Exception:
            logger.log_query_operation("index", query_id, description, status="failed")
            raise

        return query_id

    def remove_query(self, query_id: str) -> None:
        """Delete a query from the store, then from the index."""
        self._require_initialized()

        self.query_store.remove_query(query_id)
        self.vector_index.remove_vector(query_id)

    def update_query(self, query_id: str, updates: Dict[str, Any]) -> QueryRecord:
        """Update stored fields; a new description is re-embedded."""
        self._require_initialized()

        record = self.query_store.update_query(query_id, updates)
        if updates.get("description"):
            embedding = self.embedder.embed_document(record.description)
            self.vector_index.update_vector(query_id, embedding)

        return record

    def get_query(self, query_id: str) -> Optional[QueryRecord]:
        return self.query_store.get_query_by_id(query_id)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "total_queries": self.query_store.get_query_count() if self.query_store.is_loaded else 0,
            "embedding_model": self.embedder.get_model_info(),
            "vector_store_info": self.vector_index.get_info().to_dict(),
            "is_initialized": self.is_initialized
        }

    def close(self) -> None:
        """Release the model, discard the index and close the store."""
        self.embedder.cleanup()
        self.vector_index.cleanup()
        self.query_store.close()
        self.is_initialized = False
        logger.info("Query search service closed")


def build_search_service(db_path: str = None, provider: str = None) -> QuerySearchService:
    """Wire a search service from configuration. Call initialize_all() before use."""
    return QuerySearchService(
        embedder=get_embedding_gateway(provider),
        vector_index=get_vector_index(),
        query_store=get_query_store(db_path)
    )
