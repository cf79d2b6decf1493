from __future__ import annotations

import argparse
import json
import os
import sys
from typing import List, Sequence

from ..config import load_api_bind, load_fallback_policy, load_item_mode
from ..domain.models import ItemMode
from ..engine.parser import ReceiptParser
from ..engine.text import prepare_pages
from ..logging import get_logger

LOG = get_logger("cli-main")


def _expand_abs(path: str) -> str:
    """Expand env vars and ~ then return absolute path."""
    return os.path.abspath(os.path.expanduser(os.path.expandvars(path or "")))


def _read_sources(paths: Sequence[str]) -> List[str]:
    if not paths:
        return [sys.stdin.read()]
    pages: List[str] = []
    for p in paths:
        full = _expand_abs(p)
        with open(full, "r", encoding="utf-8", errors="replace") as f:
            pages.append(f.read())
        LOG.info(f"Read page {len(pages)} from {full}")
    return pages


def _add_parse_cli(subparsers: argparse._SubParsersAction) -> None:
    parse = subparsers.add_parser(
        "parse",
        help="Parse receipt text from files (one per page) or stdin and print JSON.",
    )
    parse.add_argument("files", nargs="*", help="Text files, one per page, in page order (default: stdin)")
    parse.add_argument(
        "--mode",
        choices=[m.value for m in ItemMode],
        help="Item extraction mode (defaults to RECEIPT_ITEM_MODE or 'line')",
    )
    parse.add_argument("--normalize", action="store_true", help="Normalize each page before parsing")
    parse.add_argument(
        "--merge-continuations",
        action="store_true",
        help="Also fold multi-line item descriptions (implies --normalize)",
    )
    parse.add_argument("--indent", type=int, default=None, help="Pretty-print JSON with this indent")

    def _parse(ns: argparse.Namespace) -> int:
        script_dir = os.getcwd()
        mode = ItemMode.parse(ns.mode) if ns.mode else load_item_mode(script_dir)
        policy = load_fallback_policy(script_dir)
        try:
            pages = _read_sources(ns.files)
        except OSError as exc:
            LOG.error(f"Could not read input: {exc}")
            return 2
        text = prepare_pages(pages, normalize=ns.normalize, merge_continuations=ns.merge_continuations)
        receipt = ReceiptParser(mode=mode, policy=policy).parse(text)
        print(json.dumps(receipt.to_dict(), ensure_ascii=False, indent=ns.indent))
        return 0

    parse.set_defaults(handler=_parse)


def _add_serve_cli(subparsers: argparse._SubParsersAction) -> None:
    serve = subparsers.add_parser("serve", help="Run the JSON parsing API.")
    serve.add_argument("--host", help="Bind host (defaults to RECEIPT_API_HOST or 127.0.0.1)")
    serve.add_argument("--port", type=int, help="Bind port (defaults to RECEIPT_API_PORT or 8001)")
    serve.add_argument("--reload", action="store_true", help="Enable auto-reload (development only)")
    serve.add_argument("--log-level", default="info")
    serve.add_argument(
        "--allow-origin",
        action="append",
        dest="allow_origins",
        help="Allowed CORS origin (can be provided multiple times, use '*' for any).",
    )

    def _serve(ns: argparse.Namespace) -> int:
        from ..api import create_app
        import uvicorn

        script_dir = os.getcwd()
        host, port = load_api_bind(script_dir)
        app = create_app(
            default_mode=load_item_mode(script_dir),
            policy=load_fallback_policy(script_dir),
            allow_origins=ns.allow_origins,
        )
        uvicorn.run(
            app,
            host=ns.host or host,
            port=ns.port or port,
            reload=ns.reload,
            log_level=ns.log_level,
        )
        return 0

    serve.set_defaults(handler=_serve)


def main(argv: Sequence[str] | None = None) -> int:
    provided = list(argv) if argv is not None else sys.argv[1:]
    LOG.debug(f"CLI invoked with arguments: {provided}")

    parser = argparse.ArgumentParser(
        prog="receipt-parser",
        description="Turn OCR/PDF receipt text into date, total and line items.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_parse_cli(subparsers)
    _add_serve_cli(subparsers)

    args = parser.parse_args(provided)
    code = args.handler(args)
    LOG.debug(f"Subcommand '{args.command}' finished with exit code {code}.")
    return code


if __name__ == "__main__":
    sys.exit(main())
