"""
Vector layer: math helpers, the flat cosine index and embedding providers.
"""

# Package initialization for vector module
from .index import IVectorIndex, FlatVectorIndex
from .types import VectorMetadata, SearchHit, IndexInfo
from .embeddings import (
    IEmbeddingProvider,
    DeterministicHashEmbedding,
    SentenceTransformerEmbedding,
    EmbeddingGateway,
    QUERY_PREFIX,
    PASSAGE_PREFIX
)

__all__ = [
    'IVectorIndex',
    'FlatVectorIndex',
    'VectorMetadata',
    'SearchHit',
    'IndexInfo',
    'IEmbeddingProvider',
    'DeterministicHashEmbedding',
    'SentenceTransformerEmbedding',
    'EmbeddingGateway',
    'QUERY_PREFIX',
    'PASSAGE_PREFIX'
]
