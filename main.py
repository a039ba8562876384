#!/usr/bin/env python3
"""
scaffold-api -- command-line entry point.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8000 --reload
  python main.py openapi
  python main.py openapi --output openapi.json

Environment variables (see core/config.py for the full list):
  SECRET_KEY    JWT signing secret, at least 32 characters. Required unless DEBUG=true.
  DEBUG         true to auto-generate a throwaway SECRET_KEY for local runs.
"""

import argparse
import json
import sys
from pathlib import Path


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _export_openapi(args: argparse.Namespace) -> int:
    """Write the generated OpenAPI document as JSON (stdout when no --output)."""
    from api.main import app

    document = json.dumps(app.openapi(), indent=2)
    if args.output:
        out_path = Path(args.output)
        out_path.write_text(document + "\n", encoding="utf-8")
        print(f"  OpenAPI document written to {out_path}")
    else:
        print(document)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scaffold-api",
        description="REST API scaffold with JWT auth, RBAC and structured errors.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the API with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only).")
    serve.set_defaults(func=_serve)

    openapi = sub.add_parser("openapi", help="Export the OpenAPI document.")
    openapi.add_argument("--output", "-o", help="File to write. Prints to stdout when omitted.")
    openapi.set_defaults(func=_export_openapi)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
