"""
Vector Index

Durable semantic index over the document corpus. The index lives in a
directory holding two files:
- embeddings.npy: float32 matrix, one row per document
- documents.json: list of {"content", "metadata"} in row order

It is built offline (scripts/build_index.py) and loaded once at startup.
A missing store is fatal for anything that needs retrieval.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Tuple

import aiofiles
import numpy as np

from adaptive_rag.errors import IndexNotFoundError, IndexNotLoadedError, RetrievalError
from adaptive_rag.models.document import Document

logger = logging.getLogger("adaptive_rag.vector_store")

EMBEDDINGS_FILE = "embeddings.npy"
DOCUMENTS_FILE = "documents.json"


class Embedder(Protocol):
    async def batch_embed(self, texts: List[str]) -> List[List[float]]:
        ...


class VectorIndex:
    """
    Cosine-similarity index over a fixed set of documents.

    Ranking is by descending similarity; equal scores keep corpus order.
    """

    def __init__(self, embedder: Embedder):
        self.embedder = embedder
        self._documents: List[Document] = []
        self._matrix: Optional[np.ndarray] = None

    @property
    def is_loaded(self) -> bool:
        return self._matrix is not None

    def __len__(self) -> int:
        return len(self._documents)

    @staticmethod
    def _normalize(matrix: np.ndarray) -> np.ndarray:
        norms = np.linalg.norm(matrix, axis=1, keepdims=True)
        norms[norms == 0] = 1.0
        return matrix / norms

    @classmethod
    async def load(cls, path: str, embedder: Embedder) -> "VectorIndex":
        """
        Load a prebuilt index from disk.

        Raises:
            IndexNotFoundError: If the directory or either file is missing
        """
        store = Path(path)
        embeddings_path = store / EMBEDDINGS_FILE
        documents_path = store / DOCUMENTS_FILE
        if not embeddings_path.exists() or not documents_path.exists():
            raise IndexNotFoundError(
                f"Vector store not found at {store} - run scripts/build_index.py first"
            )

        async with aiofiles.open(documents_path, "r", encoding="utf-8") as f:
            raw_documents = json.loads(await f.read())
        matrix = np.load(embeddings_path).astype(np.float32)

        if matrix.ndim != 2 or matrix.shape[0] != len(raw_documents):
            raise RetrievalError(
                f"Corrupt vector store at {store}: {matrix.shape[0]} vectors "
                f"for {len(raw_documents)} documents"
            )

        index = cls(embedder)
        index._documents = [Document.model_validate(doc) for doc in raw_documents]
        index._matrix = cls._normalize(matrix)
        logger.info(f"Vector store loaded: {len(index)} documents from {store}")
        return index

    @classmethod
    async def from_documents(
        cls,
        documents: Sequence[Document],
        embedder: Embedder,
        batch_size: int = 100,
    ) -> "VectorIndex":
        """Embed documents and build an in-memory index."""
        documents = list(documents)
        if not documents:
            raise ValueError("Cannot build an index from an empty corpus")
        vectors: List[List[float]] = []
        for start in range(0, len(documents), batch_size):
            batch = documents[start:start + batch_size]
            vectors.extend(await embedder.batch_embed([doc.content for doc in batch]))

        index = cls(embedder)
        index._documents = documents
        index._matrix = cls._normalize(np.asarray(vectors, dtype=np.float32).reshape(len(documents), -1))
        return index

    async def save(self, path: str) -> None:
        if not self.is_loaded:
            raise IndexNotLoadedError("Nothing to save - index is empty")

        store = Path(path)
        store.mkdir(parents=True, exist_ok=True)
        np.save(store / EMBEDDINGS_FILE, self._matrix)
        payload = [doc.model_dump() for doc in self._documents]
        async with aiofiles.open(store / DOCUMENTS_FILE, "w", encoding="utf-8") as f:
            await f.write(json.dumps(payload, ensure_ascii=False))
        logger.info(f"Vector store saved: {len(self)} documents to {store}")

    async def similarity_search(self, query: str, k: int = 5) -> List[Tuple[Document, float]]:
        """
        Return the top-k documents for a query with their cosine similarity.

        Raises:
            IndexNotLoadedError: If called before load()/from_documents()
            RetrievalError: If embedding the query fails
        """
        if not self.is_loaded:
            raise IndexNotLoadedError("Vector store is not loaded")
        if k <= 0 or not self._documents:
            return []

        try:
            query_vector = (await self.embedder.batch_embed([query]))[0]
        except Exception as e:
            raise RetrievalError(f"Failed to embed query: {e}") from e

        query_array = np.asarray(query_vector, dtype=np.float32)
        norm = np.linalg.norm(query_array)
        if norm == 0:
            return []

        scores = self._matrix @ (query_array / norm)
        # Stable sort keeps corpus order among equal scores
        order = np.argsort(-scores, kind="stable")[:k]
        return [(self._documents[i], float(scores[i])) for i in order]
