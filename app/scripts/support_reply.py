"""
Draft a customer-support reply from the command line.

Usage:
    python -m app.scripts.support_reply "<customer support query>" [--context "<policy text>"]
"""

import argparse
import asyncio
import sys

from app.support.service import SupportBotService
from scorecard_core.runtime.errors import ServiceError


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Draft a support reply")
    parser.add_argument("query", nargs="+", help="Customer support query")
    parser.add_argument("--context", help="Policy / FAQ text the reply may rely on")
    args = parser.parse_args(argv)

    print("Responding...\n")
    try:
        reply = asyncio.run(SupportBotService().reply(" ".join(args.query), args.context))
    except (ServiceError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("Response:")
    print(reply)
    return 0


if __name__ == "__main__":
    sys.exit(main())
