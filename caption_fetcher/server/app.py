"""FastAPI application exposing the transcript endpoint and OpenAPI docs.

WHY: Browser dashboards, curl and automation tools need one HTTP call that
turns a video ID into a transcript row. FastAPI provides automatic OpenAPI
documentation, query validation and async request handling.

HOW: GET /api/transcript hands the query parameters to
core.assembler.respond(), which validates, runs the TranscriptEngine and
assembles the row. The row is validated through TranscriptResponse and
returned with the assembler's status code and headers. OPTIONS answers CORS
preflight. GET /health is a liveness probe.

RULES:
- All endpoints have OpenAPI descriptions on every parameter and response
- The engine is a module-level singleton; it holds no per-request state
- Transcript responses always carry CORS and Cache-Control headers
- Unset optional fields (error, method) are omitted from the JSON
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import logging
from typing import Annotated, Optional

from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse, Response

from caption_fetcher import __version__
from caption_fetcher.core.assembler import CORS_HEADERS, AssembledResponse, respond
from caption_fetcher.core.engine import TranscriptEngine
from caption_fetcher.server.models import HealthResponse, TranscriptResponse

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and engine setup
# ---------------------------------------------------------------------------

engine = TranscriptEngine()

app = FastAPI(
    title="Caption Fetcher API",
    description=(
        "Fetch the caption transcript of a public YouTube video as timed "
        "segments plus joined text. Multiple fallback tiers and a secondary "
        "backend are tried before giving up."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _to_json_response(assembled: AssembledResponse) -> JSONResponse:
    """Serialize an assembled row through the public response model."""
    row = TranscriptResponse(**assembled.body)
    return JSONResponse(
        content=row.model_dump(exclude_none=True),
        status_code=assembled.status_code,
        headers=assembled.headers,
    )


# ---------------------------------------------------------------------------
# Endpoints: Transcripts
# ---------------------------------------------------------------------------


@app.get(
    "/api/transcript",
    response_model=TranscriptResponse,
    response_model_exclude_none=True,
    tags=["transcripts"],
    summary="Fetch a video transcript",
    description=(
        "Returns the transcript of one video. Missing or malformed videoId "
        "returns 400 with success=false. Every other outcome returns 200; when "
        "no transcript could be produced, segments is empty and error explains "
        "why. The X-Transcript-Status header is ok, empty or failed."
    ),
    responses={
        400: {"model": TranscriptResponse, "description": "Missing or malformed videoId"},
    },
)
async def get_transcript(
    video_id: Annotated[
        Optional[str],
        Query(alias="videoId", description="11-character YouTube video ID."),
    ] = None,
    lang: Annotated[
        Optional[str],
        Query(description="Preferred language code (e.g. 'en', 'es', 'pt-BR')."),
    ] = None,
) -> JSONResponse:
    assembled = await respond(engine, video_id, lang)
    return _to_json_response(assembled)


@app.options(
    "/api/transcript",
    status_code=204,
    tags=["transcripts"],
    summary="CORS preflight",
    description="Answers browser preflight requests with the allowed methods and headers.",
)
async def transcript_preflight() -> Response:
    return Response(status_code=204, headers=CORS_HEADERS)


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness and readiness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api():
    """Entry point for the caption-fetcher-api console script."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
