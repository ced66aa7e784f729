#!/usr/bin/env python3
"""
Start the query search HTTP API.

The embedding model is loaded and every stored query is indexed before the
server starts accepting requests.
"""

import argparse
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from query_rag.core.config import HOST, PORT, LOG_LEVEL, validate_config


def main():
    parser = argparse.ArgumentParser(description="Query RAG API server")
    parser.add_argument("--host", default=HOST, help=f"Bind address (default: {HOST})")
    parser.add_argument("--port", type=int, default=PORT, help=f"Port (default: {PORT})")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development)")

    args = parser.parse_args()

    issues = validate_config()
    if issues:
        for issue in issues:
            print(f"ERROR: {issue}")
        return 1

    import uvicorn

    print(f"Starting HTTP server at http://{args.host}:{args.port}")
    uvicorn.run(
        "query_rag.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=LOG_LEVEL.lower()
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
