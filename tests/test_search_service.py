"""
Tests for the query search service (embedding + index + catalog).
"""

import pytest
from unittest.mock import MagicMock, patch
from query_rag.core.dao import QueryStore
from query_rag.core.errors import EmbeddingError, NotFoundError, NotInitializedError
from query_rag.core.search_service import QuerySearchService, build_search_service
from query_rag.vector.embeddings import DeterministicHashEmbedding, EmbeddingGateway
from query_rag.vector.index import FlatVectorIndex

SEED_QUERIES = [
    ("Monthly sales totals by customer", "SELECT customer_id, SUM(total) FROM orders GROUP BY customer_id",
     {"category": "sales"}),
    ("Products with low stock levels", "SELECT * FROM products WHERE stock < 10", {"category": "inventory"}),
    ("Employee list ordered by hire date", "SELECT * FROM employees ORDER BY hired_at", {"category": "hr"}),
]


@pytest.fixture
def query_store(tmp_path):
    store = QueryStore(str(tmp_path / "queries.db"))
    store.load()
    for description, sql_script, metadata in SEED_QUERIES:
        store.add_query(description, sql_script, metadata)
    return store


@pytest.fixture
def service(query_store):
    """Initialized service over the hash embedding provider."""
    search_service = QuerySearchService(
        embedder=EmbeddingGateway(DeterministicHashEmbedding(dimension=256)),
        vector_index=FlatVectorIndex(),
        query_store=query_store
    )
    search_service.initialize_all()
    return search_service


def ids_by_description(store):
    return {q.description: q.id for q in store.load_all()}


def test_initialize_indexes_catalog(service):
    """Every stored query is embedded and indexed on startup."""
    info = service.vector_index.get_info()
    assert info.dimension == 256
    assert info.vector_count == 3
    assert [m.id for m in service.vector_index.get_metadata()] == [q.id for q in service.query_store.load_all()]


def test_initialize_all_is_idempotent(service):
    service.initialize_all()
    assert len(service.vector_index) == 3


def test_initialize_empty_catalog(tmp_path):
    store = QueryStore(str(tmp_path / "empty.db"))
    search_service = QuerySearchService(
        EmbeddingGateway(DeterministicHashEmbedding(dimension=32)), FlatVectorIndex(), store
    )
    search_service.initialize_all()

    assert search_service.is_initialized
    assert search_service.search_similar_queries("anything", top_k=3) == []


def test_search_requires_initialize(query_store):
    search_service = QuerySearchService(
        EmbeddingGateway(DeterministicHashEmbedding(dimension=32)), FlatVectorIndex(), query_store
    )
    with pytest.raises(NotInitializedError):
        search_service.search_similar_queries("sales", top_k=1)


def test_search_similar_queries(service):
    """The best match carries the stored record's fields."""
    results = service.search_similar_queries("sales by customer", top_k=2)

    assert len(results) == 2
    best = results[0]
    assert best["description"] == "Monthly sales totals by customer"
    assert best["sql_script"].startswith("SELECT customer_id")
    assert best["metadata"]["category"] == "sales"
    assert best["distance"] == pytest.approx(1.0 - best["similarity"])
    assert results[0]["similarity"] >= results[1]["similarity"]


def test_search_rejects_empty_text(service):
    with pytest.raises(ValueError):
        service.search_similar_queries("   ", top_k=1)


def test_search_uses_query_prefix(service):
    with patch.object(service.embedder, "embed", wraps=service.embedder.embed) as embed:
        service.search_similar_queries("low stock", top_k=1)
    embed.assert_called_once_with("low stock", "query: ")


def test_search_degrades_missing_records(service, query_store):
    """A hit whose record vanished from the store keeps id and score."""
    stock_id = ids_by_description(query_store)["Products with low stock levels"]
    query_store.remove_query(stock_id)

    results = service.search_similar_queries("products with low stock levels", top_k=1)

    assert results[0]["id"] == stock_id
    assert results[0]["description"] == ""
    assert results[0]["sql_script"] == ""
    assert results[0]["metadata"] == {}


def test_add_query(service):
    query_id = service.add_query("Warehouse inventory reorder report", "SELECT * FROM reorder_report",
                                 {"category": "inventory"})

    assert service.query_store.get_query_by_id(query_id) is not None
    assert len(service.vector_index) == 4

    results = service.search_similar_queries("warehouse inventory reorder", top_k=1)
    assert results[0]["id"] == query_id


def test_add_query_keeps_record_when_embedding_fails(service):
    """The persisted record is not rolled back if embedding fails."""
    with patch.object(service.embedder, "embed_document", side_effect=EmbeddingError("model unavailable")):
        with pytest.raises(EmbeddingError):
            service.add_query("Refund totals per region", "SELECT region, SUM(amount) FROM refunds GROUP BY region")

    assert service.query_store.get_query_count() == 4
    assert len(service.vector_index) == 3


def test_add_query_validates_input(service):
    with pytest.raises(ValueError):
        service.add_query("", "SELECT 1")
    assert len(service.vector_index) == 3


def test_remove_query(service, query_store):
    sales_id = ids_by_description(query_store)["Monthly sales totals by customer"]

    service.remove_query(sales_id)

    assert query_store.get_query_by_id(sales_id) is None
    assert len(service.vector_index) == 2
    assert [m.position for m in service.vector_index.get_metadata()] == [0, 1]
    results = service.search_similar_queries("sales by customer", top_k=5)
    assert sales_id not in [r["id"] for r in results]


def test_remove_query_missing(service):
    with pytest.raises(NotFoundError):
        service.remove_query("missing")
    assert len(service.vector_index) == 3


def test_remove_query_not_indexed(service, query_store):
    """Store deletion stands even when the index does not know the id."""
    orphan_id = query_store.add_query("Orphan query", "SELECT 1")

    with pytest.raises(NotFoundError):
        service.remove_query(orphan_id)
    assert query_store.get_query_by_id(orphan_id) is None


def test_update_query_reembeds_description(service, query_store):
    employee_id = ids_by_description(query_store)["Employee list ordered by hire date"]

    record = service.update_query(employee_id, {"description": "Warehouse inventory reorder report"})

    assert record.description == "Warehouse inventory reorder report"
    assert len(service.vector_index) == 3
    results = service.search_similar_queries("warehouse inventory reorder", top_k=1)
    assert results[0]["id"] == employee_id
    assert results[0]["description"] == "Warehouse inventory reorder report"


def test_update_query_without_description_keeps_vector(service, query_store):
    sales_id = ids_by_description(query_store)["Monthly sales totals by customer"]

    with patch.object(service.vector_index, "update_vector") as update_vector:
        record = service.update_query(sales_id, {"sql_script": "SELECT 1"})

    update_vector.assert_not_called()
    assert record.sql_script == "SELECT 1"


def test_update_query_missing(service):
    with pytest.raises(NotFoundError):
        service.update_query("missing", {"description": "anything"})


def test_get_stats(service):
    stats = service.get_stats()

    assert stats["total_queries"] == 3
    assert stats["is_initialized"]
    assert stats["embedding_model"]["name"] == "deterministic-hash"
    assert stats["vector_store_info"]["vector_count"] == 3


def test_close(service):
    service.close()

    assert not service.is_initialized
    assert not service.vector_index.is_initialized
    assert not service.embedder.is_initialized
    with pytest.raises(NotInitializedError):
        service.search_similar_queries("sales", top_k=1)


def test_initialize_with_mock_collaborators():
    """Collaborators are used in order: model, catalog, index."""
    embedder = MagicMock()
    embedder.get_dimension.return_value = 4
    vector_index = MagicMock()
    store = MagicMock()
    store.load_all.return_value = []

    search_service = QuerySearchService(embedder, vector_index, store)
    search_service.initialize_all()

    embedder.initialize.assert_called_once()
    store.load.assert_called_once()
    vector_index.initialize.assert_called_once_with(4)
    vector_index.add_vectors.assert_not_called()


def test_build_search_service(tmp_path):
    search_service = build_search_service(db_path=str(tmp_path / "built.db"), provider="hash")

    assert isinstance(search_service.vector_index, FlatVectorIndex)
    assert isinstance(search_service.embedder.provider, DeterministicHashEmbedding)
    assert search_service.query_store.db_path == str(tmp_path / "built.db")
    assert not search_service.is_initialized


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
