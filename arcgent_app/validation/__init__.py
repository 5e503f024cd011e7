"""Output contract validation and normalization."""
from .contract_schema import (
    CONTRACT_SCHEMA,
    ContractSchema,
    ContractValidator,
    ValidationResult,
    extract_core_prompt_text,
    format_validation_issues,
    normalize_output,
    validate_output,
)

__all__ = [
    "CONTRACT_SCHEMA",
    "ContractSchema",
    "ContractValidator",
    "ValidationResult",
    "extract_core_prompt_text",
    "format_validation_issues",
    "normalize_output",
    "validate_output",
]
