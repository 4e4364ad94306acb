#!/usr/bin/env python3
"""
Inkpost -- a minimal multi-user markdown blog.

Usage:
  python main.py
  python main.py --port 8080
  python main.py --host 0.0.0.0 --port 3000
  python main.py --reload

Environment variables (see core/config.py):
  SECRET_KEY    Signs the session cookie. Required unless DEBUG=true.
  DEBUG         "true" generates a throwaway SECRET_KEY for local development.
  DATABASE_URL  SQLAlchemy URL. Defaults to SQLite file inkpost.db.
"""

import argparse

import uvicorn


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Inkpost -- a minimal multi-user markdown blog.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=3000, help="Port to listen on (default: 3000)")
    parser.add_argument("--reload", action="store_true", help="Restart the server on code changes (development)")
    args = parser.parse_args()

    print(f"  Serving Inkpost on http://{args.host}:{args.port}")
    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
