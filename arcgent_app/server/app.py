"""
Flask application factory.

Builds the app around a resolved configuration, one generation engine, one
surprise engine and a rate limiter per endpoint purpose.
"""

from typing import Optional

import structlog
from flask import Flask

from ..config.defaults import AppConfig, RateLimitParams
from ..config.loader import ConfigLoader
from ..engine import PromptArtifactEngine
from ..guard.rate_limit import RateLimiter
from ..logging.config import configure_logging
from ..surprise import SurprisePromptEngine
from .routes import api_bp
from .state import EXTENSION_KEY, ServerState, SkillInstructionProvider

logger = structlog.get_logger(__name__)


def _build_rate_limiter(params: RateLimitParams, prune_threshold: int) -> RateLimiter:
    return RateLimiter(
        max_requests=params.max_requests,
        window_seconds=params.window_seconds,
        prune_threshold=prune_threshold,
    )


def create_app(
    config: Optional[AppConfig] = None,
    engine: Optional[PromptArtifactEngine] = None,
    surprise_engine: Optional[SurprisePromptEngine] = None,
    skill_instruction_provider: Optional[SkillInstructionProvider] = None,
) -> Flask:
    """
    Create the HTTP application.

    Args:
        config: Resolved configuration; loaded from settings.yaml and the
            environment when omitted
        engine: Generation engine; built from config when omitted
        surprise_engine: Surprise draft engine; built from config when omitted
        skill_instruction_provider: Optional source of supplementary
            instructions appended to the generator system prompt

    Returns:
        Configured Flask application
    """
    if config is None:
        config = ConfigLoader.create().load()
        configure_logging(level=config.logging.level, format_json=config.logging.format_json)

    prune_threshold = config.guard.rate_limit_prune_threshold
    state = ServerState(
        config=config,
        engine=engine or PromptArtifactEngine(config),
        surprise_engine=surprise_engine or SurprisePromptEngine(config),
        rate_limiters={
            "generate": _build_rate_limiter(config.generate_rate_limit, prune_threshold),
            "surprise": _build_rate_limiter(config.surprise_rate_limit, prune_threshold),
        },
        skill_instruction_provider=skill_instruction_provider,
    )

    app = Flask(__name__)
    app.extensions[EXTENSION_KEY] = state
    app.register_blueprint(api_bp)

    logger.info(
        "Arcgent application created",
        provider_configured=bool(config.provider.url),
        auth_enabled=bool(config.guard.auth_token),
        auto_repair=config.generation.auto_repair,
    )
    return app
