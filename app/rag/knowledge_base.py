"""
Knowledge base embedding and similarity ranking.

Documents are embedded in one batch as "{title} {text}", keyed by doc_id,
and persisted as a JSON object of vectors. Queries are matched against the
stored vectors by cosine similarity.
"""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Protocol, Sequence

from loguru import logger
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from scorecard_core.domain.exceptions import DatasetError

Embeddings = dict[str, list[float]]


class Embedder(Protocol):
    async def embed_many(self, texts: Sequence[str]) -> list[list[float]]:
        ...


class Document(BaseModel):
    """A knowledge-base entry."""

    doc_id: str = Field(..., min_length=1)
    title: str
    text: str

    def embedding_text(self) -> str:
        return f"{self.title} {self.text}"


_documents_adapter = TypeAdapter(list[Document])
_embeddings_adapter = TypeAdapter(dict[str, list[float]])


def load_documents(path: str | Path) -> list[Document]:
    """
    Raises:
        DatasetError: Missing file or records that are not valid documents.
    """
    path = Path(path)
    try:
        return _documents_adapter.validate_json(path.read_bytes())
    except FileNotFoundError as e:
        raise DatasetError(f"Knowledge base not found: {path}") from e
    except ValidationError as e:
        raise DatasetError(f"Invalid knowledge base {path}: {e.error_count()} errors") from e


def load_embeddings(path: str | Path) -> Embeddings:
    path = Path(path)
    try:
        return _embeddings_adapter.validate_json(path.read_bytes())
    except FileNotFoundError as e:
        raise DatasetError(f"Embeddings file not found: {path}") from e
    except ValidationError as e:
        raise DatasetError(f"Invalid embeddings file {path}") from e


async def embed_knowledge_base(
    documents: Sequence[Document],
    embedder: Embedder,
    output_path: str | Path | None = None,
) -> Embeddings:
    """
    Embed all documents in one batch call.

    Args:
        documents: Documents to embed; doc_ids must be unique.
        embedder: Object with ``embed_many(texts)`` (e.g. LLMClient).
        output_path: Where to write the JSON vectors, if anywhere.

    Returns:
        Mapping of doc_id to embedding vector.
    """
    ids = [d.doc_id for d in documents]
    if len(set(ids)) != len(ids):
        raise DatasetError("Knowledge base has duplicate doc_id values")

    vectors = await embedder.embed_many([d.embedding_text() for d in documents])
    if len(vectors) != len(documents):
        raise ValueError(f"Embedder returned {len(vectors)} vectors for {len(documents)} documents")

    embeddings: Embeddings = dict(zip(ids, vectors))

    if output_path is not None:
        output_path = Path(output_path)
        output_path.write_text(json.dumps(embeddings), encoding="utf-8")
        logger.info(f"Saved {len(embeddings)} embeddings to {output_path}")

    return embeddings


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine of the angle between two vectors; 0.0 if either is all zeros.

    Raises:
        ValueError: If the vectors differ in length.
    """
    if len(a) != len(b):
        raise ValueError(f"Vectors must have the same length ({len(a)} != {len(b)})")

    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def rank_documents(
    query_embedding: Sequence[float], embeddings: Embeddings, top_k: int = 3
) -> list[tuple[str, float]]:
    """Return the ``top_k`` (doc_id, similarity) pairs, best first."""
    scored = [
        (doc_id, cosine_similarity(query_embedding, vector))
        for doc_id, vector in embeddings.items()
    ]
    scored.sort(key=lambda item: item[1], reverse=True)
    return scored[:top_k]


async def search(
    query: str, embedder: Embedder, embeddings: Embeddings, top_k: int = 3
) -> list[tuple[str, float]]:
    """Embed a query and rank the stored documents against it."""
    if not embeddings:
        return []
    [query_embedding] = await embedder.embed_many([query])
    return rank_documents(query_embedding, embeddings, top_k=top_k)
