#!/usr/bin/env python3
"""
Budget Transparency Dashboard: launch the web interface.

Usage:
    python main.py                          # http://localhost:8000
    python main.py --port 9000              # http://localhost:9000
    python main.py --host 127.0.0.1         # bind to localhost only
    python main.py --config firebase.json   # backend credentials from a file
    python main.py --reload                 # auto-reload on code changes

Backend credentials can also come from the __firebase_config,
VITE_FIREBASE_CONFIG or FIREBASE_CONFIG environment variables.
"""

from __future__ import annotations

import argparse
import os
import sys
import webbrowser
from pathlib import Path


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Launch the budget transparency dashboard.",
    )
    parser.add_argument(
        "--host", default=os.getenv("APP_HOST", "127.0.0.1"),
        help="Bind address (default: 127.0.0.1 or APP_HOST env var)",
    )
    parser.add_argument(
        "--port", type=int, default=int(os.getenv("APP_PORT", "8000")),
        help="Port to listen on (default: 8000 or APP_PORT env var)",
    )
    parser.add_argument(
        "--config", type=Path, default=None,
        help="JSON file with the web-app credentials (sets FIREBASE_CONFIG_FILE)",
    )
    parser.add_argument(
        "--reload", action="store_true",
        help="Enable auto-reload on file changes (development mode)",
    )
    parser.add_argument(
        "--no-browser", action="store_true",
        help="Don't open a browser window automatically",
    )
    args = parser.parse_args()

    if args.config is not None:
        if not args.config.exists():
            print(f"Error: config file not found at {args.config}")
            sys.exit(1)
        os.environ["FIREBASE_CONFIG_FILE"] = str(args.config)

    import uvicorn

    url = f"http://{'localhost' if args.host == '0.0.0.0' else args.host}:{args.port}"
    print(f"Starting Budget Transparency Dashboard at {url}")
    print()

    if not args.no_browser:
        # Open browser after a short delay to let the server start
        import threading
        threading.Timer(1.5, webbrowser.open, args=(url,)).start()

    uvicorn.run(
        "api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
