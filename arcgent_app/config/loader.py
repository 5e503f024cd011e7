"""Configuration loader with 3-tier parameter precedence."""

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from ..errors import ConfigurationError
from .defaults import (
    AppConfig,
    GenerationParams,
    GuardParams,
    LoggingParams,
    ProviderConfig,
    RateLimitParams,
    SurpriseParams,
    get_default_config,
)
from .validation import ConfigValidator

CHAT_COMPLETIONS_PATH = "/v1/chat/completions"

_SECTION_TYPES = {
    "provider": ProviderConfig,
    "generation": GenerationParams,
    "guard": GuardParams,
    "generate_rate_limit": RateLimitParams,
    "surprise_rate_limit": RateLimitParams,
    "surprise": SurpriseParams,
    "logging": LoggingParams,
}


def read_env_value(env: Mapping[str, str], key: str) -> Optional[str]:
    """Trimmed environment value, or None when unset or blank."""
    raw = env.get(key)
    if not isinstance(raw, str):
        return None
    trimmed = raw.strip()
    return trimmed or None


def is_truthy(value: Optional[str]) -> bool:
    if not value:
        return False
    return value.strip().lower() in ("1", "true", "yes")


def read_int_env(env: Mapping[str, str], key: str, min_value: int = 1) -> Optional[int]:
    """Integer environment value, or None when missing or below min_value."""
    raw = read_env_value(env, key)
    if raw is None:
        return None
    try:
        parsed = int(raw)
    except ValueError:
        return None
    if parsed < min_value:
        return None
    return parsed


def read_float_env(env: Mapping[str, str], key: str) -> Optional[float]:
    raw = read_env_value(env, key)
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def resolve_provider_url(direct_url: Optional[str], base_url: Optional[str]) -> Optional[str]:
    """
    Resolve the chat-completion endpoint.

    A direct URL wins; otherwise the base URL gets the chat-completions path
    appended unless it already ends with it.
    """
    if direct_url:
        return direct_url
    if not base_url:
        return None

    normalized_base = base_url.rstrip("/")
    if normalized_base.endswith(CHAT_COMPLETIONS_PATH):
        return normalized_base
    return f"{normalized_base}{CHAT_COMPLETIONS_PATH}"


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_dir: Path
    defaults: AppConfig

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
        )

    def load_file_config(self) -> dict[str, Any]:
        """Load deployment overrides from settings.yaml, if present."""
        settings_file = self.config_dir / "settings.yaml"

        if not settings_file.exists():
            return {}

        with open(settings_file) as f:
            file_config = yaml.safe_load(f)

        if not isinstance(file_config, dict):
            return {}
        return file_config

    def load_env_overrides(self, env: Mapping[str, str]) -> dict[str, Any]:
        """Translate environment variables into a config override tree."""
        overrides: dict[str, Any] = {}

        def put(section: str, key: str, value: Any) -> None:
            if value is not None:
                overrides.setdefault(section, {})[key] = value

        def ms_to_seconds(value: Optional[int]) -> Optional[float]:
            return value / 1000.0 if value is not None else None

        # Provider
        put("provider", "url", read_env_value(env, "OPENAI_COMPATIBLE_URL"))
        put("provider", "base_url", read_env_value(env, "OPENAI_COMPATIBLE_BASE_URL"))
        put("provider", "api_key",
            read_env_value(env, "OPENAI_COMPATIBLE_API_KEY") or read_env_value(env, "OPENAI_API_KEY"))
        put("provider", "model",
            read_env_value(env, "OPENAI_COMPATIBLE_MODEL") or read_env_value(env, "OPENAI_MODEL"))
        put("provider", "timeout_seconds", ms_to_seconds(read_int_env(env, "OPENAI_COMPATIBLE_TIMEOUT_MS")))
        put("provider", "max_retries", read_int_env(env, "OPENAI_COMPATIBLE_MAX_RETRIES", min_value=0))
        put("provider", "retry_base_delay_seconds",
            ms_to_seconds(read_int_env(env, "OPENAI_COMPATIBLE_RETRY_BASE_DELAY_MS")))

        # Generation
        put("generation", "temperature", read_float_env(env, "OPENAI_COMPATIBLE_TEMPERATURE"))
        profile = read_env_value(env, "PROMPT_STABILITY_PROFILE")
        if profile in ("standard", "strict"):
            put("generation", "default_stability_profile", profile)
        if is_truthy(read_env_value(env, "PROMPT_FORCE_STRICT_MODE")):
            put("generation", "force_strict", True)
        if is_truthy(read_env_value(env, "PROMPT_AUTO_REPAIR_DISABLE")):
            put("generation", "auto_repair", False)

        # Boundary guard
        put("guard", "auth_token", read_env_value(env, "API_PROXY_AUTH_TOKEN"))
        put("guard", "max_body_bytes", read_int_env(env, "GENERATE_MAX_BODY_BYTES"))
        extra_origins = read_env_value(env, "CORS_ALLOWED_ORIGINS")
        if extra_origins:
            origins = [origin.strip() for origin in extra_origins.split(",") if origin.strip()]
            put("guard", "extra_cors_origins", origins)

        # Rate limits
        put("generate_rate_limit", "max_requests", read_int_env(env, "GENERATE_RATE_LIMIT_MAX_REQUESTS"))
        put("generate_rate_limit", "window_seconds",
            ms_to_seconds(read_int_env(env, "GENERATE_RATE_LIMIT_WINDOW_MS")))
        put("surprise_rate_limit", "max_requests", read_int_env(env, "SURPRISE_RATE_LIMIT_MAX_REQUESTS"))
        put("surprise_rate_limit", "window_seconds",
            ms_to_seconds(read_int_env(env, "SURPRISE_RATE_LIMIT_WINDOW_MS")))

        # Surprise drafts
        put("surprise", "timeout_seconds", ms_to_seconds(read_int_env(env, "SURPRISE_TIMEOUT_MS")))
        put("surprise", "max_retries", read_int_env(env, "SURPRISE_MAX_RETRIES", min_value=0))
        surprise_temperature = read_float_env(env, "SURPRISE_TEMPERATURE")
        if surprise_temperature is not None:
            put("surprise", "temperature", min(max(surprise_temperature, 0.0), 1.0))

        # Logging
        put("logging", "level", read_env_value(env, "LOG_LEVEL"))
        if read_env_value(env, "LOG_FORMAT_JSON") is not None:
            put("logging", "format_json", is_truthy(read_env_value(env, "LOG_FORMAT_JSON")))

        return overrides

    def merge_config(self, env: Optional[Mapping[str, str]] = None) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Environment variables (highest priority)
        2. settings.yaml in the config directory
        3. Built-in defaults (lowest priority)
        """
        if env is None:
            env = os.environ

        config = self._dataclass_to_dict(self.defaults)
        config = self._deep_merge(config, self.load_file_config())
        config = self._deep_merge(config, self.load_env_overrides(env))

        return config

    def load(self, env: Optional[Mapping[str, str]] = None) -> AppConfig:
        """Resolve, validate and freeze the application configuration."""
        merged = self.merge_config(env)

        provider = dict(merged.get("provider", {}))
        provider["url"] = resolve_provider_url(provider.get("url"), provider.pop("base_url", None))
        merged["provider"] = provider

        guard = dict(merged.get("guard", {}))
        origins = list(guard.get("cors_allowed_origins") or [])
        for origin in guard.pop("extra_cors_origins", None) or []:
            if origin not in origins:
                origins.append(origin)
        guard["cors_allowed_origins"] = tuple(origins)
        merged["guard"] = guard

        errors = ConfigValidator.validate_config(merged)
        if errors:
            messages = [f"{err.field}: {err.message} (got: {err.value})" for err in errors]
            raise ConfigurationError("Invalid configuration: " + "; ".join(messages), errors=errors)

        return AppConfig(**{
            section: self._build_section(section_type, merged.get(section, {}))
            for section, section_type in _SECTION_TYPES.items()
        })

    def _build_section(self, section_type: type, values: dict[str, Any]) -> Any:
        known = {field.name for field in dataclasses.fields(section_type)}
        return section_type(**{key: value for key, value in values.items() if key in known})

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name, _field in obj.__dataclass_fields__.items():
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = self._dataclass_to_dict(value)
                else:
                    result[field_name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
