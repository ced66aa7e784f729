"""
Configuration from environment variables (a .env file is loaded if present).
"""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Query catalog storage
DB_PATH = os.getenv("DB_PATH", "./data/queries.db")

DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Embedding model configuration
EMBED_PROVIDER = os.getenv("EMBED_PROVIDER", "e5")  # e5|hash
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "intfloat/e5-large-v2")
EMBED_DIM = int(os.getenv("EMBED_DIM", "1024"))  # e5-large-v2 output size

# Vector index configuration
VECTOR_INDEX_TYPE = os.getenv("VECTOR_INDEX_TYPE", "flat")  # flat only
DEFAULT_TOP_K = int(os.getenv("DEFAULT_TOP_K", "5"))
MAX_TOP_K = int(os.getenv("MAX_TOP_K", "50"))

# HTTP server
HOST = os.getenv("HOST", "localhost")
PORT = int(os.getenv("PORT", "7979"))
SERVICE_NAME = "query-rag"

# Version string
VERSION = "1.0.0"


def get_embedding_provider(provider: str = None):
    """Get configured embedding provider implementation."""
    provider = provider or EMBED_PROVIDER

    if provider == "hash":
        from ..vector.embeddings import DeterministicHashEmbedding
        return DeterministicHashEmbedding(dimension=EMBED_DIM)
    else:
        from ..vector.embeddings import SentenceTransformerEmbedding
        return SentenceTransformerEmbedding(EMBEDDING_MODEL)


def get_embedding_gateway(provider: str = None):
    """Get an embedding gateway over the configured provider."""
    from ..vector.embeddings import EmbeddingGateway
    return EmbeddingGateway(get_embedding_provider(provider), dimension=EMBED_DIM)


def get_vector_index():
    """Get configured vector index implementation."""
    # Only "flat" is implemented; validate_config() reports other values
    from ..vector.index import FlatVectorIndex
    return FlatVectorIndex()


def get_query_store(db_path: str = None):
    """Get the SQLite-backed query catalog."""
    from .dao import QueryStore
    return QueryStore(db_path or DB_PATH)


def ensure_db_directory(db_path: str = None):
    """Ensure the database directory exists."""
    Path(db_path or DB_PATH).parent.mkdir(parents=True, exist_ok=True)


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if EMBED_PROVIDER not in ["e5", "hash"]:
        issues.append(f"Invalid EMBED_PROVIDER: {EMBED_PROVIDER}")

    if VECTOR_INDEX_TYPE != "flat":
        issues.append(f"Invalid VECTOR_INDEX_TYPE: {VECTOR_INDEX_TYPE} (only 'flat' is supported)")

    if EMBED_DIM < 1:
        issues.append("EMBED_DIM must be >= 1")

    if DEFAULT_TOP_K < 1:
        issues.append("DEFAULT_TOP_K must be >= 1")

    if MAX_TOP_K < DEFAULT_TOP_K:
        issues.append("MAX_TOP_K must be >= DEFAULT_TOP_K")

    return issues
