"""
Unit Tests for the Vector Index

Uses a deterministic keyword embedder, so no embedding API is needed.
"""

import json

import pytest

from adaptive_rag.errors import IndexNotFoundError, IndexNotLoadedError, RetrievalError
from adaptive_rag.models.document import Document
from adaptive_rag.retrieval.vector_store import DOCUMENTS_FILE, VectorIndex

VOCABULARY = ["election", "weather", "sports"]


class KeywordEmbedder:
    """Embeds text as keyword counts over a tiny vocabulary."""

    def __init__(self):
        self.calls = []

    async def batch_embed(self, texts):
        self.calls.append(list(texts))
        return [[float(text.lower().count(word)) for word in VOCABULARY] for text in texts]


class FailingEmbedder:
    async def batch_embed(self, texts):
        raise RuntimeError("embedding service down")


CORPUS = [
    Document(content="Election night coverage", metadata={"source": "a", "type": "vector"}),
    Document(content="Weather warning issued", metadata={"source": "b", "type": "vector"}),
    Document(content="Election recount: election board meets", metadata={"source": "c", "type": "vector"}),
    Document(content="Sports and weather roundup", metadata={"source": "d", "type": "vector"}),
]


class TestVectorIndex:
    @pytest.mark.asyncio
    async def test_search_ranks_by_similarity(self):
        index = await VectorIndex.from_documents(CORPUS, KeywordEmbedder())

        results = await index.similarity_search("election", k=2)

        assert [doc.metadata["source"] for doc, _ in results] == ["a", "c"]
        assert results[0][1] == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_k_limits_results(self):
        index = await VectorIndex.from_documents(CORPUS, KeywordEmbedder())

        assert len(await index.similarity_search("weather", k=1)) == 1
        assert len(await index.similarity_search("weather", k=10)) == len(CORPUS)
        assert await index.similarity_search("weather", k=0) == []

    @pytest.mark.asyncio
    async def test_from_documents_batches_requests(self):
        embedder = KeywordEmbedder()

        await VectorIndex.from_documents(CORPUS, embedder, batch_size=3)

        assert [len(batch) for batch in embedder.calls] == [3, 1]

    @pytest.mark.asyncio
    async def test_from_documents_rejects_empty_corpus(self):
        with pytest.raises(ValueError):
            await VectorIndex.from_documents([], KeywordEmbedder())

    @pytest.mark.asyncio
    async def test_save_and_load(self, tmp_path):
        embedder = KeywordEmbedder()
        built = await VectorIndex.from_documents(CORPUS, embedder)
        await built.save(str(tmp_path / "store"))

        loaded = await VectorIndex.load(str(tmp_path / "store"), embedder)

        assert len(loaded) == len(CORPUS)
        results = await loaded.similarity_search("weather", k=1)
        assert results[0][0] == CORPUS[1]

    @pytest.mark.asyncio
    async def test_missing_store_raises(self, tmp_path):
        with pytest.raises(IndexNotFoundError):
            await VectorIndex.load(str(tmp_path / "missing"), KeywordEmbedder())

    @pytest.mark.asyncio
    async def test_mismatched_store_raises(self, tmp_path):
        built = await VectorIndex.from_documents(CORPUS, KeywordEmbedder())
        await built.save(str(tmp_path))
        (tmp_path / DOCUMENTS_FILE).write_text(json.dumps([CORPUS[0].model_dump()]))

        with pytest.raises(RetrievalError):
            await VectorIndex.load(str(tmp_path), KeywordEmbedder())

    @pytest.mark.asyncio
    async def test_search_before_load_raises(self):
        index = VectorIndex(KeywordEmbedder())

        assert index.is_loaded is False
        with pytest.raises(IndexNotLoadedError):
            await index.similarity_search("election")

    @pytest.mark.asyncio
    async def test_embedder_failure_is_retrieval_error(self):
        index = await VectorIndex.from_documents(CORPUS, KeywordEmbedder())
        index.embedder = FailingEmbedder()

        with pytest.raises(RetrievalError):
            await index.similarity_search("election")
