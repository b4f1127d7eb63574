#!/usr/bin/env python3
"""
bizdir -- Business directory API server and data tools.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080
  python main.py serve --reload
  python main.py seed data/companies.json
  python main.py seed data/companies.json --replace
  python main.py seed data/companies.json --database-url sqlite:///other.db

Environment variables (see core/config.py for the full list):
  DATABASE_URL          SQLAlchemy URL. Default: sqlite:///<repo>/bizdir.db
  SESSION_TTL_SECONDS   Bearer token lifetime. Default: 86400 (24 hours)
  MAX_BODY_BYTES        Largest accepted request body. Default: 1000000
"""

import argparse
import sys
from typing import Optional

from core.config import get_settings


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "api.main:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


def _seed(args: argparse.Namespace) -> int:
    """Load a JSON file of companies. Nothing is written if any record is invalid."""
    from auth.store import UserStore
    from directory.seed import SeedFileError, load_seed_file, seed_companies
    from directory.store import CompanyStore
    from directory.validation import CompanyValidationError

    db_url = args.database_url or get_settings().database_url

    try:
        payloads = load_seed_file(args.file)
    except SeedFileError as e:
        print(f"  [!] {e}")
        return 1

    store = CompanyStore(db_url)
    try:
        created = seed_companies(store, payloads, replace=args.replace)
    except CompanyValidationError as e:
        print(f"  [!] {e}")
        return 1
    finally:
        store.close()

    if args.replace:
        # Like a fresh install: nobody stays logged in across a reseed.
        user_store = UserStore(db_url)
        try:
            dropped = user_store.delete_all_sessions()
        finally:
            user_store.close()
        print(f"  Dropped {dropped} session(s).")

    print(f"  Seeded {len(created)} companies into {db_url}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bizdir",
        description="Business directory API server and data tools.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --reload
  python main.py seed data/companies.json --replace
        """,
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = subparsers.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST setting, 127.0.0.1)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: PORT setting, 4000)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    serve.set_defaults(handler=_serve)

    seed = subparsers.add_parser("seed", help="Load companies from a JSON file")
    seed.add_argument("file", metavar="PATH", help="JSON array of companies, or {\"companies\": [...]}")
    seed.add_argument(
        "--replace",
        action="store_true",
        help="Delete existing companies first (same transaction) and drop all sessions",
    )
    seed.add_argument("--database-url", default=None, metavar="URL", help="Override DATABASE_URL")
    seed.set_defaults(handler=_seed)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "handler", None):
        parser.print_help()
        return 0
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
