"""
Run the Vibe Match API under uvicorn.

Usage:
    python -m vibematch [--host 0.0.0.0] [--port 8000] [--log-level info]
"""
from __future__ import annotations

import argparse
import logging
import os

import uvicorn

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vibematch", description="Serve the Vibe Match API.")
    parser.add_argument("--host", default=os.getenv("VIBEMATCH_HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.getenv("VIBEMATCH_PORT", "8000")))
    parser.add_argument(
        "--log-level",
        default=os.getenv("VIBEMATCH_LOG_LEVEL", "info"),
        choices=["critical", "error", "warning", "info", "debug"],
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = create_parser().parse_args(argv)
    logger.info("Starting server on %s:%d", args.host, args.port)
    uvicorn.run(
        "vibematch.app:app",
        host=args.host,
        port=args.port,
        reload=False,
        log_level=args.log_level,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
