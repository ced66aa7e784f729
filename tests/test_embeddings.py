"""
Tests for embedding providers and the role-prefixing embedding gateway.
"""

import pytest
import numpy as np
from unittest.mock import MagicMock, patch
from query_rag.core.errors import EmbeddingError
from query_rag.vector.embeddings import (
    IEmbeddingProvider,
    DeterministicHashEmbedding,
    SentenceTransformerEmbedding,
    EmbeddingGateway,
    QUERY_PREFIX,
    PASSAGE_PREFIX
)
from query_rag.vector.vector_math import cosine_similarity


@pytest.fixture
def provider():
    """Mock provider returning 4-dimensional vectors."""
    mock = MagicMock(spec=IEmbeddingProvider)
    mock.name = "mock-model"
    mock.embed_text.return_value = [0.1, 0.2, 0.3, 0.4]
    mock.get_dimension.return_value = 4
    return mock


@pytest.fixture
def gateway(provider):
    embedder = EmbeddingGateway(provider, dimension=4)
    embedder.initialize()
    return embedder


def test_embedding_interface():
    """Test that the hash provider implements the interface correctly."""
    embedder = DeterministicHashEmbedding(dimension=384)

    assert isinstance(embedder, IEmbeddingProvider)
    assert embedder.get_dimension() == 384


def test_deterministic_embedding():
    """Test that the same input always produces the same output."""
    embedder1 = DeterministicHashEmbedding(dimension=128)
    embedder2 = DeterministicHashEmbedding(dimension=128)

    vector1 = embedder1.embed_text("Monthly sales by customer")
    vector2 = embedder2.embed_text("Monthly sales by customer")

    assert vector1 == vector2
    assert len(vector1) == 128
    assert np.linalg.norm(vector1) == pytest.approx(1.0)


def test_hash_embedding_shared_words_are_similar():
    """Texts sharing words score higher than unrelated texts."""
    embedder = DeterministicHashEmbedding(dimension=384)

    sales = embedder.embed_text("monthly sales by customer")
    similar = embedder.embed_text("sales by customer")
    unrelated = embedder.embed_text("products with low stock")

    assert cosine_similarity(sales, similar) > 0.5
    assert cosine_similarity(sales, similar) > cosine_similarity(sales, unrelated)


def test_hash_embedding_edge_cases():
    """Empty and punctuation-only text give a zero vector of full length."""
    embedder = DeterministicHashEmbedding(dimension=64)

    assert embedder.embed_text("") == [0.0] * 64
    assert embedder.embed_text("!@#$%") == [0.0] * 64
    assert len(embedder.embed_text("A" * 1000)) == 64


def test_gateway_requires_initialize(provider):
    embedder = EmbeddingGateway(provider, dimension=4)

    with pytest.raises(EmbeddingError):
        embedder.embed_query("anything")
    provider.embed_text.assert_not_called()


def test_gateway_initialize_is_idempotent(provider):
    embedder = EmbeddingGateway(provider, dimension=4)
    embedder.initialize()
    embedder.initialize()

    provider.load.assert_called_once()
    assert embedder.is_initialized


def test_gateway_role_prefixes(gateway, provider):
    """Queries and documents are embedded with their E5 role prefixes."""
    query_vector = gateway.embed_query("  sales by customer ")
    provider.embed_text.assert_called_with("query: sales by customer")

    gateway.embed_document("Monthly sales totals")
    provider.embed_text.assert_called_with("passage: Monthly sales totals")

    assert isinstance(query_vector, np.ndarray)
    assert query_vector.tolist() == pytest.approx([0.1, 0.2, 0.3, 0.4])
    assert QUERY_PREFIX == "query: "
    assert PASSAGE_PREFIX == "passage: "


def test_gateway_embed_batch(gateway, provider):
    vectors = gateway.embed_batch(["one", "two"], PASSAGE_PREFIX)

    assert len(vectors) == 2
    assert [c.args[0] for c in provider.embed_text.call_args_list] == ["passage: one", "passage: two"]

    with pytest.raises(ValueError):
        gateway.embed_batch("not a list")


@pytest.mark.parametrize("text", ["", "   ", None, 42])
def test_gateway_rejects_empty_text(gateway, text):
    with pytest.raises(ValueError):
        gateway.embed_query(text)


def test_gateway_rejects_wrong_dimension(gateway, provider):
    """Model output with the wrong length is an EmbeddingError."""
    provider.embed_text.return_value = [0.1, 0.2, 0.3]

    with pytest.raises(EmbeddingError):
        gateway.embed_document("short vector")


def test_gateway_wraps_provider_failure(gateway, provider):
    provider.embed_text.side_effect = RuntimeError("model crashed")

    with pytest.raises(EmbeddingError) as exc_info:
        gateway.embed_query("anything")
    assert "model crashed" in str(exc_info.value)


def test_gateway_initialize_failure(provider):
    provider.load.side_effect = OSError("model download failed")
    embedder = EmbeddingGateway(provider, dimension=4)

    with pytest.raises(EmbeddingError):
        embedder.initialize()
    assert not embedder.is_initialized


def test_gateway_dimension_from_provider(provider):
    provider.get_dimension.return_value = 8
    provider.embed_text.return_value = [0.0] * 8
    embedder = EmbeddingGateway(provider)
    embedder.initialize()

    assert embedder.get_dimension() == 8
    assert len(embedder.embed_query("text")) == 8
    assert embedder.get_model_info() == {"name": "mock-model", "dimension": 8, "is_initialized": True}


def test_gateway_cleanup(gateway, provider):
    gateway.cleanup()

    provider.unload.assert_called_once()
    assert not gateway.is_initialized
    with pytest.raises(EmbeddingError):
        gateway.embed_query("after cleanup")


@patch("query_rag.vector.embeddings.SentenceTransformer")
def test_sentence_transformer_provider(mock_cls):
    """The model loads lazily and embeddings are normalized by the model."""
    model = mock_cls.return_value
    model.encode.return_value = np.array([0.6, 0.8])
    model.get_sentence_embedding_dimension.return_value = 2

    embedder = SentenceTransformerEmbedding("intfloat/e5-small-v2")
    mock_cls.assert_not_called()

    assert embedder.embed_text("query: hello") == [0.6, 0.8]
    mock_cls.assert_called_once_with("intfloat/e5-small-v2")
    model.encode.assert_called_once_with("query: hello", convert_to_numpy=True, normalize_embeddings=True)
    assert embedder.get_dimension() == 2

    embedder.unload()
    assert embedder._model is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
