"""
Summarize text from the command line.

Usage:
    python -m app.scripts.summarize "<text to summarize>"
"""

import asyncio
import sys

from app.summarizer.service import SummarizerService
from scorecard_core.runtime.errors import ServiceError


def main(argv: list[str] | None = None) -> int:
    words = sys.argv[1:] if argv is None else argv
    if not words:
        print('Usage: python -m app.scripts.summarize "<text to summarize>"', file=sys.stderr)
        return 1

    print("Summarizing...\n")
    try:
        summary = asyncio.run(SummarizerService().summarize(" ".join(words)))
    except (ServiceError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("Summary:")
    print(summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
