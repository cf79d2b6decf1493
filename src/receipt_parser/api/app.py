from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from ..domain.models import DEFAULT_FALLBACK_POLICY, FallbackPolicy, ItemMode
from ..engine.parser import PARSER_VERSION, ReceiptParser
from ..engine.text import prepare_pages
from ..logging import get_logger


LOG = get_logger("api")

MAX_TEXT_CHARS = 1_000_000


def _as_bool(value: Any, field: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    raise HTTPException(status_code=400, detail=f"'{field}' must be a boolean")


def _read_pages(body: Dict[str, Any]) -> List[str]:
    pages = body.get("pages")
    if pages is not None:
        if not isinstance(pages, list) or not all(isinstance(p, str) for p in pages):
            raise HTTPException(status_code=400, detail="'pages' must be a list of strings")
        return pages
    text = body.get("text")
    if not isinstance(text, str):
        raise HTTPException(status_code=400, detail="Provide 'text' (string) or 'pages' (list of strings)")
    return [text]


def create_app(
    *,
    default_mode: ItemMode = ItemMode.LINE,
    policy: Optional[FallbackPolicy] = None,
    allow_origins: Optional[List[str]] = None,
) -> Starlette:
    """Create a Starlette app exposing the receipt parser as a JSON API."""

    resolved_policy = policy or DEFAULT_FALLBACK_POLICY
    LOG.info(
        f"Receipt parser API ready (version={PARSER_VERSION}, default mode={default_mode.value}, "
        f"fallback tolerance={resolved_policy.tolerance})"
    )

    async def health(_: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "version": PARSER_VERSION})

    async def parse(request: Request) -> JSONResponse:
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise HTTPException(status_code=400, detail="Request body must be valid JSON") from exc
        if not isinstance(body, dict):
            raise HTTPException(status_code=400, detail="Request body must be a JSON object")

        try:
            mode = ItemMode.parse(body["mode"]) if body.get("mode") is not None else default_mode
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        pages = _read_pages(body)
        if sum(len(p) for p in pages) > MAX_TEXT_CHARS:
            raise HTTPException(status_code=413, detail="Text too large")
        normalize = _as_bool(body.get("normalize"), "normalize")
        merge = _as_bool(body.get("merge_continuations"), "merge_continuations")

        text = prepare_pages(pages, normalize=normalize, merge_continuations=merge)

        receipt = ReceiptParser(mode=mode, policy=resolved_policy).parse(text)
        LOG.info(f"Parsed {len(pages)} page(s) in {mode.value} mode: total={receipt.total} items={len(receipt.items)}")
        return JSONResponse(receipt.to_dict())

    routes = [
        Route("/api/health", health, methods=["GET"]),
        Route("/api/parse", parse, methods=["POST"]),
    ]

    app = Starlette(debug=False, routes=routes)

    origins = allow_origins or ["http://localhost:5173", "http://127.0.0.1:5173"]
    if "*" in origins:
        cors_allow_origins = ["*"]
    else:
        cors_allow_origins = origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


__all__ = ["create_app"]
