"""
Newline-delimited JSON framing for generation responses.

Every stream ends with exactly one terminal frame, ``done`` on success or
``error`` when generation fails, including failures after chunks were sent.
"""

import json
import threading
from typing import Any, Iterator, Optional

import structlog
from flask import Response, stream_with_context

from ..data.models import GenerateRequest
from ..engine import STREAM_CHUNK_SIZE, ArtifactResult, PromptArtifactEngine, split_into_stream_chunks
from ..errors import to_error_message

logger = structlog.get_logger(__name__)

NDJSON_CONTENT_TYPE = "application/x-ndjson; charset=utf-8"

# Blank lines are skipped by NDJSON readers
KEEPALIVE_LINE = "\n"
KEEPALIVE_SECONDS = 2.0


def encode_frame(frame: dict[str, Any]) -> str:
    return json.dumps(frame, ensure_ascii=False) + "\n"


def chunk_frame(text: str) -> dict[str, Any]:
    return {"type": "chunk", "text": text}


def meta_frame(result: ArtifactResult) -> dict[str, Any]:
    return {
        "type": "meta",
        "event": "auto_repair_applied",
        "stabilityProfile": result.stability_profile,
        "fallbackApplied": result.fallback_applied,
    }


def done_frame() -> dict[str, Any]:
    return {"type": "done"}


def error_frame(message: str) -> dict[str, Any]:
    return {"type": "error", "message": message}


def generation_frames(
    engine: PromptArtifactEngine,
    request: GenerateRequest,
    skill_instruction: str = "",
    cancel_event: Optional[threading.Event] = None,
    chunk_size: int = STREAM_CHUNK_SIZE,
    keepalive_seconds: float = KEEPALIVE_SECONDS,
) -> Iterator[str]:
    """
    Run one generation and yield its encoded frames.

    The engine runs on a worker thread while this generator yields blank
    keepalive lines. A client that disconnects makes the server close the
    generator at one of those yields, which sets cancel_event and aborts
    the in-flight provider call.
    """
    cancel_event = cancel_event or threading.Event()
    outcome: dict[str, Any] = {}
    finished = threading.Event()

    def run() -> None:
        try:
            outcome["result"] = engine.generate(
                request, skill_instruction=skill_instruction, cancel_event=cancel_event
            )
        except Exception as e:
            outcome["error"] = e
        finally:
            finished.set()

    threading.Thread(target=run, name="artifact-generation", daemon=True).start()

    try:
        while not finished.wait(keepalive_seconds):
            yield KEEPALIVE_LINE

        error = outcome.get("error")
        if error is not None:
            logger.error(
                "Generation failed",
                target_agent=request.target_agent,
                error=str(error),
                error_type=type(error).__name__,
            )
            yield encode_frame(error_frame(to_error_message(error)))
            return

        result: ArtifactResult = outcome["result"]
        for chunk in split_into_stream_chunks(result.output, chunk_size):
            yield encode_frame(chunk_frame(chunk))

        if result.repaired or result.fallback_applied:
            yield encode_frame(meta_frame(result))

        yield encode_frame(done_frame())
    finally:
        if not finished.is_set():
            logger.info("Client disconnected, cancelling generation", target_agent=request.target_agent)
            cancel_event.set()


def ndjson_response(frames: Iterator[str]) -> Response:
    return Response(
        stream_with_context(frames),
        status=200,
        content_type=NDJSON_CONTENT_TYPE,
        headers={"Cache-Control": "no-cache"},
    )
