"""
API routes.

Admission order for every POST endpoint: CORS reflection, OPTIONS
preflight, shared-secret auth, rate limit, method check, bounded body read,
JSON decode, payload shape.
"""

from typing import Any, Optional

import structlog
from flask import Blueprint, Response, g, jsonify, request

from .. import __version__
from ..data.payload import parse_generate_request, parse_json_body
from ..errors import BodyTooLargeError, PayloadError, to_error_message
from ..guard.auth import is_authorized
from ..guard.body import read_limited_body
from ..guard.cors import cors_headers
from ..guard.rate_limit import client_identity, rate_limit_key
from ..surprise import build_fallback_surprise_prompt
from .state import get_state
from .streaming import generation_frames, ndjson_response

logger = structlog.get_logger(__name__)

api_bp = Blueprint("api_bp", __name__, url_prefix="/api")

# Wrong methods must pass auth and rate limiting before being refused
ROUTED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def error_response(message: str, status_code: int) -> tuple[Response, int]:
    return jsonify({"error": message}), status_code


@api_bp.after_request
def apply_boundary_headers(response: Response) -> Response:
    state = get_state()
    for name, value in cors_headers(request.headers.get("Origin"), state.config.guard.cors_allowed_origins).items():
        if name == "Vary":
            response.vary.add(value)
        else:
            response.headers[name] = value

    decision = g.get("rate_limit_decision")
    if decision is not None:
        response.headers.update(decision.to_headers())
    return response


def admit(purpose: str) -> Optional[tuple[Response, int]]:
    """Auth and rate limit checks; returns a rejection response or None."""
    state = get_state()

    if not is_authorized(request.headers, state.config.guard.auth_token):
        return error_response("Unauthorized request.", 401)

    identity = client_identity(request.headers, request.remote_addr)
    decision = state.rate_limiters[purpose].check(rate_limit_key(purpose, identity))
    g.rate_limit_decision = decision
    if not decision.allowed:
        return error_response("Rate limit exceeded. Please retry later.", 429)

    return None


def read_json_payload(max_bytes: int) -> Any:
    raw_body = read_limited_body(request.stream, request.content_length, max_bytes)
    return parse_json_body(raw_body)


@api_bp.route("/generate", methods=ROUTED_METHODS)
def generate() -> Any:
    """Stream one contract-enforced prompt artifact as NDJSON frames."""
    if request.method == "OPTIONS":
        return Response(status=204)

    rejection = admit("generate")
    if rejection is not None:
        return rejection

    if request.method != "POST":
        return error_response("Method Not Allowed. Use POST.", 405)

    state = get_state()
    try:
        generate_request = parse_generate_request(read_json_payload(state.config.guard.max_body_bytes))
    except PayloadError as e:
        logger.info("Rejected generate payload", error=str(e), status_code=e.status_code)
        return error_response(str(e), e.status_code)

    try:
        skill_instruction = state.skill_instruction_for(generate_request)
        frames = generation_frames(
            state.engine,
            generate_request,
            skill_instruction=skill_instruction,
            chunk_size=state.config.generation.stream_chunk_size,
        )
    except Exception as e:
        logger.error("Generate request failed before streaming", error=str(e), error_type=type(e).__name__)
        return error_response(to_error_message(e), 500)

    return ndjson_response(frames)


def _parse_surprise_context(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    context = payload.get("context")
    if not isinstance(context, str):
        return None
    return context.strip() or None


@api_bp.route("/surprise", methods=ROUTED_METHODS)
def surprise() -> Any:
    """Return one fresh draft user prompt, falling back to a template draft."""
    if request.method == "OPTIONS":
        return Response(status=204)

    rejection = admit("surprise")
    if rejection is not None:
        return rejection

    if request.method != "POST":
        return error_response("Method Not Allowed. Use POST.", 405)

    state = get_state()
    try:
        payload = read_json_payload(state.config.surprise.max_body_bytes)
    except BodyTooLargeError as e:
        return error_response(str(e), e.status_code)
    except PayloadError:
        return error_response("Invalid JSON body.", 400)

    context = _parse_surprise_context(payload)
    try:
        prompt = state.surprise_engine.generate(context)
    except Exception as e:
        logger.warning("Surprise generation failed, using template draft", error=str(e),
                       error_type=type(e).__name__)
        return jsonify({
            "prompt": build_fallback_surprise_prompt(context),
            "source": "fallback",
            "warning": to_error_message(e),
        })

    return jsonify({"prompt": prompt, "source": "ai"})


@api_bp.route("/health", methods=["GET"])
def health() -> Any:
    state = get_state()
    return jsonify({
        "status": "ok",
        "version": __version__,
        "providerConfigured": bool(state.config.provider.url),
    })
