"""
Embedding providers and the gateway that applies E5 role prefixes.

E5-family models are trained with asymmetric inputs: search text is embedded
as "query: ..." and indexed documents as "passage: ...". Mixing them up
degrades ranking quality.
"""

from abc import ABC, abstractmethod
import hashlib
import re
from typing import Dict, List, Optional, Sequence, Tuple
import numpy as np
from sentence_transformers import SentenceTransformer

from ..core.errors import EmbeddingError
from ..util.logging import logger

QUERY_PREFIX = "query: "
PASSAGE_PREFIX = "passage: "

_TOKEN_PATTERN = re.compile(r"\w+", re.UNICODE)


class IEmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    name = "unknown"

    def load(self) -> None:
        """Load model weights. Providers without a model need not override."""
        pass

    def unload(self) -> None:
        """Release model weights."""
        pass

    @abstractmethod
    def embed_text(self, text: str) -> List[float]:
        """Generate embedding vector for given text."""
        pass

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        pass


class DeterministicHashEmbedding(IEmbeddingProvider):
    """Feature-hashing embedding provider for tests and offline use.

    Every lowercase word token is hashed to a signed bucket, so texts that
    share words get positive cosine similarity. Output is reproducible
    across processes and needs no model download.
    """

    name = "deterministic-hash"

    def __init__(self, dimension: int = 384):
        self.dimension = dimension

    def _bucket(self, token: str) -> Tuple[int, float]:
        digest = hashlib.md5(token.encode("utf-8")).digest()
        index = int.from_bytes(digest[:4], "little") % self.dimension
        sign = 1.0 if digest[4] & 1 else -1.0
        return index, sign

    def embed_text(self, text: str) -> List[float]:
        """Generate deterministic embedding vector from word hashes."""
        vector = np.zeros(self.dimension, dtype=np.float64)
        for token in _TOKEN_PATTERN.findall(text.lower()):
            index, sign = self._bucket(token)
            vector[index] += sign

        length = np.linalg.norm(vector)
        if length > 0:
            vector = vector / length
        return vector.tolist()

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        return self.dimension


class SentenceTransformerEmbedding(IEmbeddingProvider):
    """Sentence transformers embedding provider using pre-trained models.

    Defaults to intfloat/e5-large-v2 (1024 dimensions, mean pooling).
    """

    def __init__(self, model_name: str = "intfloat/e5-large-v2"):
        self.model_name = model_name
        self.name = model_name
        self._model = None

    @property
    def model(self):
        if self._model is None:
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def load(self) -> None:
        _ = self.model

    def embed_text(self, text: str) -> List[float]:
        """Generate a unit-length embedding vector using sentence transformers."""
        embedding = self.model.encode(text, convert_to_numpy=True, normalize_embeddings=True)
        return embedding.tolist()

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        return self.model.get_sentence_embedding_dimension()

    def unload(self) -> None:
        self._model = None


class EmbeddingGateway:
    """
    Turns text into vectors with the role prefix the model expects.

    The gateway's dimension is fixed for its lifetime: the value passed in,
    or else whatever the provider reports at initialize(). Any vector of a
    different length is rejected with EmbeddingError.
    """

    def __init__(self, provider: IEmbeddingProvider, dimension: Optional[int] = None):
        self.provider = provider
        self._dimension = dimension
        self.is_initialized = False

    def initialize(self) -> None:
        """Load the embedding model. Safe to call repeatedly."""
        if self.is_initialized:
            return

        logger.log_embedding_operation("initialize", {"model": self.provider.name}, status="started")
        try:
            self.provider.load()
            if self._dimension is None:
                self._dimension = int(self.provider.get_dimension())
        except Exception as e:
            logger.log_embedding_operation("initialize", {"model": self.provider.name, "error": str(e)}, status="failed")
            raise EmbeddingError(f"Embedding model initialization failed: {e}") from e

        self.is_initialized = True
        logger.log_embedding_operation("initialize", {
            "model": self.provider.name,
            "dimension": self._dimension
        })

    def embed(self, text: str, prefix: str = QUERY_PREFIX) -> np.ndarray:
        """
        Embed text with a role prefix.

        Args:
            text: Text to embed; must be a non-empty string
            prefix: QUERY_PREFIX for search text, PASSAGE_PREFIX for documents

        Returns:
            Vector of length get_dimension()

        Raises:
            EmbeddingError: gateway not initialized, model failure, or wrong-sized output
            ValueError: text is empty or not a string
        """
        if not self.is_initialized:
            raise EmbeddingError("Embedding gateway not initialized. Call initialize() first.")

        if not isinstance(text, str) or not text.strip():
            raise ValueError("Text must be a non-empty string")

        prefixed_text = f"{prefix}{text.strip()}"
        try:
            raw = self.provider.embed_text(prefixed_text)
            vector = np.asarray(raw, dtype=np.float64)
        except Exception as e:
            raise EmbeddingError(f"Failed to generate embedding: {e}") from e

        if vector.ndim != 1 or vector.shape[0] != self._dimension:
            actual = vector.shape[-1] if vector.ndim else vector.size
            raise EmbeddingError(
                f"Embedding has wrong dimension: expected {self._dimension}, got {actual}"
            )
        return vector

    def embed_batch(self, texts: Sequence[str], prefix: str = QUERY_PREFIX) -> List[np.ndarray]:
        """Embed several texts with the same prefix, in order."""
        if isinstance(texts, str):
            raise ValueError("Texts must be a sequence of strings")
        return [self.embed(text, prefix) for text in texts]

    def embed_query(self, query: str) -> np.ndarray:
        """Embedding for search text."""
        return self.embed(query, QUERY_PREFIX)

    def embed_document(self, document: str) -> np.ndarray:
        """Embedding for an indexed document (query description)."""
        return self.embed(document, PASSAGE_PREFIX)

    def get_dimension(self) -> int:
        if self._dimension is None:
            self._dimension = int(self.provider.get_dimension())
        return self._dimension

    def get_model_info(self) -> Dict[str, object]:
        return {
            "name": self.provider.name,
            "dimension": self._dimension,
            "is_initialized": self.is_initialized
        }

    def cleanup(self) -> None:
        self.provider.unload()
        self.is_initialized = False
        logger.log_embedding_operation("cleanup")
