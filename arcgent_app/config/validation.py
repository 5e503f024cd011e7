"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_provider_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate provider parameters."""
        errors = []

        if "timeout_seconds" in params:
            value = params["timeout_seconds"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field="provider.timeout_seconds",
                    message="Must be a positive number",
                    value=value
                ))

        if "max_retries" in params:
            value = params["max_retries"]
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                errors.append(ValidationError(
                    field="provider.max_retries",
                    message="Must be a non-negative integer",
                    value=value
                ))

        for key in ("retry_base_delay_seconds", "retry_max_delay_seconds"):
            if key in params:
                value = params[key]
                if not _is_number(value) or value < 0:
                    errors.append(ValidationError(
                        field=f"provider.{key}",
                        message="Must be a non-negative number",
                        value=value
                    ))

        if "model" in params:
            value = params["model"]
            if not isinstance(value, str) or not value.strip():
                errors.append(ValidationError(
                    field="provider.model",
                    message="Must be a non-empty string",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_generation_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate generation parameters."""
        errors = []

        if params.get("temperature") is not None:
            value = params["temperature"]
            if not _is_number(value):
                errors.append(ValidationError(
                    field="generation.temperature",
                    message="Must be a number",
                    value=value
                ))

        if params.get("default_stability_profile") is not None:
            value = params["default_stability_profile"]
            if value not in ("standard", "strict"):
                errors.append(ValidationError(
                    field="generation.default_stability_profile",
                    message="Must be 'standard' or 'strict'",
                    value=value
                ))

        for key in ("max_context_messages", "stream_chunk_size"):
            if key in params:
                value = params[key]
                if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                    errors.append(ValidationError(
                        field=f"generation.{key}",
                        message="Must be a positive integer",
                        value=value
                    ))

        if "repair_temperature_cap" in params:
            value = params["repair_temperature_cap"]
            if not _is_number(value) or not (0 <= value <= 1):
                errors.append(ValidationError(
                    field="generation.repair_temperature_cap",
                    message="Must be a number between 0 and 1",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_rate_limit_params(params: dict[str, Any], section: str) -> list[ValidationError]:
        """Validate one fixed-window rate limit section."""
        errors = []

        if "max_requests" in params:
            value = params["max_requests"]
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                errors.append(ValidationError(
                    field=f"{section}.max_requests",
                    message="Must be a positive integer",
                    value=value
                ))

        if "window_seconds" in params:
            value = params["window_seconds"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field=f"{section}.window_seconds",
                    message="Must be a positive number",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_guard_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate boundary guard parameters."""
        errors = []

        for key in ("max_body_bytes", "rate_limit_prune_threshold"):
            if key in params:
                value = params[key]
                if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                    errors.append(ValidationError(
                        field=f"guard.{key}",
                        message="Must be a positive integer",
                        value=value
                    ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        if "provider" in config:
            errors.extend(ConfigValidator.validate_provider_params(config["provider"]))

        if "generation" in config:
            errors.extend(ConfigValidator.validate_generation_params(config["generation"]))

        if "guard" in config:
            errors.extend(ConfigValidator.validate_guard_params(config["guard"]))

        for section in ("generate_rate_limit", "surprise_rate_limit"):
            if section in config:
                errors.extend(ConfigValidator.validate_rate_limit_params(config[section], section))

        return errors
