"""
Embed the knowledge base and optionally search it.

Usage:
    python -m app.scripts.embed_knowledge_base
    python -m app.scripts.embed_knowledge_base --query "how do I get my invoice?"
"""

import argparse
import asyncio
import sys
from pathlib import Path

from loguru import logger

from app.rag.knowledge_base import embed_knowledge_base, load_documents, load_embeddings, search
from scorecard_core.config import settings
from scorecard_core.domain.exceptions import DatasetError
from scorecard_core.infrastructure.llm import LLMClient
from scorecard_core.logging import setup_logging
from scorecard_core.runtime.errors import ServiceError


async def run(args: argparse.Namespace) -> int:
    client = LLMClient()
    output = Path(args.output)

    if args.query and output.exists() and not args.refresh:
        embeddings = load_embeddings(output)
    else:
        documents = load_documents(args.knowledge_base)
        print("Generating embeddings for knowledge base...")
        embeddings = await embed_knowledge_base(documents, client, output_path=output)
        print(f"Generated embeddings for {len(embeddings)} documents, saved to {output}")

    if args.query:
        for doc_id, similarity in await search(args.query, client, embeddings, top_k=args.top_k):
            print(f"{similarity:.3f}  {doc_id}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Embed and search the knowledge base")
    parser.add_argument("--knowledge-base", default=str(settings.DATA_DIR / "knowledge_base.json"))
    parser.add_argument("--output", default=str(settings.DATA_DIR / "embeddings.json"))
    parser.add_argument("--query", help="Rank documents against this query")
    parser.add_argument("--top-k", type=int, default=3)
    parser.add_argument("--refresh", action="store_true", help="Re-embed even if the output exists")
    args = parser.parse_args(argv)

    setup_logging()
    try:
        return asyncio.run(run(args))
    except (DatasetError, ServiceError) as e:
        logger.error(f"Error generating embeddings: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
