#!/usr/bin/env python3
"""
CASCADE Web Server - Serves the browser UI with uvicorn.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import uvicorn

from cascade.config import load_settings
from cascade.errors import ConfigError
from cascade.gateway import GeminiGateway
from cascade.web.app import create_app


def main() -> None:
    """Parse arguments, build the Gemini gateway and serve the app."""
    parser = argparse.ArgumentParser(description="Restoration Cascade browser UI (FastAPI)")
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to serve on (default: 8000)",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help=".env file to load (default: ./.env)",
    )
    args = parser.parse_args()

    settings = load_settings(args.env_file)
    try:
        gateway = GeminiGateway(settings)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    app = create_app(gateway)

    print(f"CASCADE Web Server")
    print(f"URL: http://{args.host}:{args.port}")
    print(f"Press Ctrl+C to stop\n")

    uvicorn.run(app, host=args.host, port=int(args.port), log_level="info")


if __name__ == "__main__":
    main()
