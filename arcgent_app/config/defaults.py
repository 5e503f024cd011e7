"""Default configuration parameters for the prompt artifact service."""

from dataclasses import dataclass
from typing import Optional

DEFAULT_ALLOWED_CORS_ORIGINS = ("https://prompt-arcgent.vercel.app",)


@dataclass(frozen=True)
class ProviderConfig:
    """OpenAI-compatible completion provider settings."""
    url: Optional[str] = None                        # Full chat-completion endpoint
    model: str = "gpt-4o-mini"
    api_key: Optional[str] = None

    # Per-call deadline, not cumulative across retries
    timeout_seconds: float = 45.0

    # Retry policy
    max_retries: int = 1
    retry_base_delay_seconds: float = 0.35
    retry_max_delay_seconds: float = 2.0


@dataclass(frozen=True)
class GenerationParams:
    """Prompt artifact generation parameters."""
    temperature: Optional[float] = None              # Explicit override of per-mode temperature
    default_stability_profile: Optional[str] = None  # Explicit profile; beats force_strict when set
    force_strict: bool = False
    auto_repair: bool = True
    repair_temperature_cap: float = 0.15
    max_context_messages: int = 20
    stream_chunk_size: int = 700


@dataclass(frozen=True)
class RateLimitParams:
    """Fixed-window rate limit parameters."""
    max_requests: int = 30
    window_seconds: float = 60.0


@dataclass(frozen=True)
class GuardParams:
    """Request boundary guard parameters."""
    auth_token: Optional[str] = None                 # Shared secret; None disables auth
    cors_allowed_origins: tuple = DEFAULT_ALLOWED_CORS_ORIGINS
    max_body_bytes: int = 1_000_000
    rate_limit_prune_threshold: int = 2048


@dataclass(frozen=True)
class SurpriseParams:
    """Surprise draft prompt parameters."""
    timeout_seconds: float = 12.0
    max_retries: int = 0
    temperature: float = 0.95
    max_body_bytes: int = 20_000


@dataclass(frozen=True)
class LoggingParams:
    """Logging output parameters."""
    level: str = "INFO"
    format_json: bool = False


@dataclass(frozen=True)
class AppConfig:
    """Complete resolved configuration. Immutable once loaded."""
    provider: ProviderConfig
    generation: GenerationParams
    guard: GuardParams
    generate_rate_limit: RateLimitParams
    surprise_rate_limit: RateLimitParams
    surprise: SurpriseParams
    logging: LoggingParams


def get_default_config() -> AppConfig:
    """Get the default configuration instance."""
    return AppConfig(
        provider=ProviderConfig(),
        generation=GenerationParams(),
        guard=GuardParams(),
        generate_rate_limit=RateLimitParams(max_requests=30, window_seconds=60.0),
        surprise_rate_limit=RateLimitParams(max_requests=20, window_seconds=60.0),
        surprise=SurpriseParams(),
        logging=LoggingParams(),
    )
