#!/usr/bin/env python3
"""
Build the Vector Index

Reads a JSONL news corpus (one {"content", "source", "title"} object per
line), splits articles into overlapping chunks, embeds them and writes
the index directory loaded by the API at startup.

Usage:
    python scripts/build_index.py --corpus embeddings/news_corpus.jsonl

Options:
    --output        Index directory (default: vector_store.path from config)
    --chunk-size    Characters per chunk (default: 1000)
    --chunk-overlap Overlap between chunks (default: 200)
    --batch-size    Chunks per embedding request (default: 50)
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List

from adaptive_rag.config import load_config
from adaptive_rag.llm.client import LLMClient
from adaptive_rag.models.document import Document
from adaptive_rag.retrieval.chunking import split_text
from adaptive_rag.retrieval.vector_store import VectorIndex

logger = logging.getLogger("adaptive_rag.build_index")


def load_corpus(path: Path, chunk_size: int, chunk_overlap: int) -> List[Document]:
    documents: List[Document] = []
    with open(path, encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                article = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning(f"Skipping line {line_number}: {e}")
                continue
            content = article.get("content") or ""
            for chunk in split_text(content, chunk_size, chunk_overlap):
                documents.append(
                    Document(
                        content=chunk,
                        metadata={
                            "source": article.get("source", ""),
                            "title": article.get("title", ""),
                            "type": "vector",
                        },
                    )
                )
    return documents


async def build_index(
    corpus: Path,
    output: str,
    chunk_size: int,
    chunk_overlap: int,
    batch_size: int,
) -> int:
    config = load_config()
    if not config.llm.api_key:
        logger.error("OPENAI_API_KEY not found in environment")
        return 1
    if not corpus.exists():
        logger.error(f"Corpus file not found: {corpus}")
        return 1

    documents = load_corpus(corpus, chunk_size, chunk_overlap)
    if not documents:
        logger.error("No documents found in the corpus file.")
        return 1
    logger.info(f"Created {len(documents)} chunks from {corpus}")

    llm = LLMClient(
        api_key=config.llm.api_key,
        base_url=config.llm.base_url,
        embedding_model=config.embedding.model,
        enable_embedding_cache=False,
    )
    try:
        index = await VectorIndex.from_documents(documents, llm, batch_size=batch_size)
        await index.save(output)
    finally:
        await llm.close()
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Build the vector index from a JSONL corpus")
    parser.add_argument("--corpus", type=Path, required=True)
    parser.add_argument("--output", default=None)
    parser.add_argument("--chunk-size", type=int, default=1000)
    parser.add_argument("--chunk-overlap", type=int, default=200)
    parser.add_argument("--batch-size", type=int, default=50)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    output = args.output or load_config().vector_store.path
    return asyncio.run(
        build_index(args.corpus, output, args.chunk_size, args.chunk_overlap, args.batch_size)
    )


if __name__ == "__main__":
    sys.exit(main())
