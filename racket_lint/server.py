"""
racket-lint Server: Design Recipe Checks over HTTP
==================================================
FastAPI application exposing the linter to editors and course tooling.

Launch:
    racket-lint serve --port 8000
    python -m racket_lint.server

Endpoints:
    GET  /api/health    → Liveness and version
    POST /api/lint      → Lint one source string
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from . import __version__
from .config import LintConfig
from .report import RacketSyntaxError, count_warnings, lint_source

logger = logging.getLogger(__name__)


app = FastAPI(title="racket-lint", version=__version__)


# ─────────────────────────────────────────────────────────────
#  Request / Response Models
# ─────────────────────────────────────────────────────────────

class LintRequest(BaseModel):
    source: str
    min_tests: Optional[int] = Field(default=None, ge=0)


class WarningGroupModel(BaseModel):
    title: str
    warnings: list[str]


class LintResponse(BaseModel):
    groups: list[WarningGroupModel]
    count: int


# ─────────────────────────────────────────────────────────────
#  Routes
# ─────────────────────────────────────────────────────────────

@app.get("/api/health")
async def api_health():
    return {"status": "ok", "version": __version__}


@app.post("/api/lint", response_model=LintResponse)
async def api_lint(req: LintRequest):
    """Lint the submitted source; syntax errors are reported as 422."""
    try:
        config = LintConfig.from_env().with_overrides(req.min_tests)
    except ValueError as e:
        logger.error("bad server configuration: %s", e)
        raise HTTPException(status_code=500, detail={"error": str(e)}) from None

    try:
        groups = lint_source(req.source, config)
    except RacketSyntaxError as e:
        raise HTTPException(
            status_code=422,
            detail={"error": str(e), "status": e.status.name},
        ) from None

    logger.debug("linted %d characters: %d warning(s)", len(req.source), count_warnings(groups))
    return LintResponse(
        groups=[WarningGroupModel(title=g.title, warnings=g.warnings) for g in groups],
        count=count_warnings(groups),
    )


# ─────────────────────────────────────────────────────────────
#  Startup
# ─────────────────────────────────────────────────────────────

def run_server(host: str = "127.0.0.1", port: int = 8000):
    """Launch the HTTP service with uvicorn."""
    import uvicorn

    print(f"\n─── racket-lint server ───")
    print(f"  http://{host}:{port}")
    print(f"  Press Ctrl+C to stop\n")

    uvicorn.run(app, host=host, port=port, log_level="warning")


if __name__ == "__main__":
    run_server()
