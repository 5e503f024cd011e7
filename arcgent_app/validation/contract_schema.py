"""
Structural contract for generated prompt artifacts.

Every artifact must carry four canonical section headings, and the fenced
block under the core heading must carry seven labeled contract fields.
Model output drifts in small ways (heading variants, missing fence tags,
stray whitespace), so normalization canonicalizes those before validation.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any

from ..data.models import TARGET_AGENT_LABELS

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n...[truncated]"

_CODE_BLOCK_PATTERN = re.compile(r"```(?:text|txt|markdown)?\n(.*?)```", re.IGNORECASE | re.DOTALL)
_CORE_SECTION_PATTERN = re.compile(
    r"##\s*Final Prompt\s*\(Universal Core\).*?(?=\n##\s+[^\n]+|\s*\Z)",
    re.IGNORECASE | re.DOTALL,
)
_CORE_HEADING_PATTERN = re.compile(r"##\s*Final Prompt\s*\(Universal Core\)\s*\n", re.IGNORECASE)
_TEXT_FENCE_TAG = re.compile(r"text|txt|markdown", re.IGNORECASE)


@dataclass(frozen=True)
class ContractSchema:
    """Required headings and contract labels. Constant for the process lifetime."""
    core_heading: str = "## Final Prompt (Universal Core)"
    adapter_heading_template: str = "## Adapter Block (Target: {label})"
    rationale_heading: str = "## Why This Prompt Is Powerful"
    checklist_heading: str = "## Prompt Contract Checklist"
    contract_items: tuple = (
        "Role",
        "Objective",
        "Context",
        "Constraints",
        "Output Format",
        "Quality Criteria",
        "Failure Handling",
    )

    def target_label(self, target_agent: str) -> str:
        return TARGET_AGENT_LABELS.get(target_agent, target_agent)

    def adapter_heading(self, target_agent: str) -> str:
        return self.adapter_heading_template.format(label=self.target_label(target_agent))

    def required_headings(self, target_agent: str) -> tuple[str, ...]:
        """The four canonical headings in schema order."""
        return (
            self.core_heading,
            self.adapter_heading(target_agent),
            self.rationale_heading,
            self.checklist_heading,
        )


CONTRACT_SCHEMA = ContractSchema()

# Heading variants rewritten to each canonical heading, matched case-insensitively
# on markdown headings of level 1 to 3.
_HEADING_VARIANTS = (
    ("core", re.compile(r"^#{1,3}\s*final prompt[^\n]*$", re.IGNORECASE | re.MULTILINE)),
    ("adapter", re.compile(
        r"^#{1,3}\s*(adapter block|target adapter|adapter)[^\n]*$", re.IGNORECASE | re.MULTILINE)),
    ("rationale", re.compile(
        r"^#{1,3}\s*(why this prompt is powerful|why this prompt works|optimization notes)[^\n]*$",
        re.IGNORECASE | re.MULTILINE)),
    ("checklist", re.compile(
        r"^#{1,3}\s*(prompt contract checklist|contract checklist|quality checklist)[^\n]*$",
        re.IGNORECASE | re.MULTILINE)),
)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a contract check. Valid exactly when nothing is missing."""
    missing_headings: tuple[str, ...] = ()
    missing_contract_items: tuple[str, ...] = ()
    missing_code_block: bool = False
    is_valid: bool = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "is_valid",
            not self.missing_headings and not self.missing_contract_items and not self.missing_code_block,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "missingHeadings": list(self.missing_headings),
            "missingContractItems": list(self.missing_contract_items),
            "missingCodeBlock": self.missing_code_block,
        }


def truncate(value: str, max_chars: int) -> str:
    """Cut text to max_chars, marking the cut."""
    if len(value) <= max_chars:
        return value
    return value[:max_chars] + TRUNCATION_MARKER


def normalize_line_endings(value: str) -> str:
    return re.sub(r"\r\n?", "\n", value)


def extract_core_section(output: str) -> str:
    """Text from the core heading up to the next heading or end of document."""
    match = _CORE_SECTION_PATTERN.search(output)
    return match.group(0) if match else ""


def extract_core_prompt_text(output: str) -> str:
    """
    Contents of the fenced block in the core section.

    Falls back to the whole core section, or the whole output when there is
    no core section.
    """
    source = extract_core_section(output) or output
    match = _CODE_BLOCK_PATTERN.search(source)
    if match and match.group(1):
        return match.group(1).strip()
    return source.strip()


def _tag_core_fence(output: str) -> str:
    """Retag the fence directly under the first core heading as a text fence."""
    heading = _CORE_HEADING_PATTERN.search(output)
    if heading is None or not output.startswith("```", heading.end()):
        return output

    tag_start = heading.end() + 3
    line_end = output.find("\n", tag_start)
    if line_end == -1 or _TEXT_FENCE_TAG.match(output, tag_start):
        return output
    return output[:heading.end()] + "```text" + output[line_end:]


def _contract_item_pattern(item: str) -> re.Pattern:
    return re.compile(
        r"(^|\n)\s*(?:[-*]|\d+[.)])?\s*" + re.escape(item) + r"\s*:",
        re.IGNORECASE,
    )


class ContractValidator:
    """Normalizes and validates generated artifacts against the contract schema."""

    def __init__(self, schema: ContractSchema = CONTRACT_SCHEMA):
        self.logger = logger
        self.schema = schema
        self._item_patterns = {item: _contract_item_pattern(item) for item in schema.contract_items}

    def normalize(self, raw_output: str, target_agent: str) -> str:
        """
        Canonicalize an artifact. Idempotent.

        Args:
            raw_output: Model output
            target_agent: Target agent used to label the adapter heading

        Returns:
            Normalized artifact text
        """
        output = normalize_line_endings(raw_output).strip()

        output = output.replace("\u00a0", " ")
        output = re.sub(r"[ \t]+\n", "\n", output)
        output = re.sub(r"\n{3,}", "\n\n", output).strip()

        canonical = {
            "core": self.schema.core_heading,
            "adapter": self.schema.adapter_heading(target_agent),
            "rationale": self.schema.rationale_heading,
            "checklist": self.schema.checklist_heading,
        }
        for name, pattern in _HEADING_VARIANTS:
            heading = canonical[name]
            output = pattern.sub(lambda _match, heading=heading: heading, output)

        return _tag_core_fence(output).strip()

    def validate(self, output: str, target_agent: str) -> ValidationResult:
        """
        Check headings, the core code block and the contract labels.

        Args:
            output: Artifact text (normally already normalized)
            target_agent: Target agent used to label the adapter heading

        Returns:
            ValidationResult with miss lists in schema order
        """
        missing_headings = tuple(
            heading for heading in self.schema.required_headings(target_agent)
            if not re.search(r"^" + re.escape(heading) + r"\s*$", output, re.IGNORECASE | re.MULTILINE)
        )

        core_section = extract_core_section(output)
        missing_code_block = _CODE_BLOCK_PATTERN.search(core_section) is None
        contract_body = extract_core_prompt_text(output)

        missing_items = tuple(
            item for item in self.schema.contract_items
            if not self._item_patterns[item].search(contract_body)
        )

        result = ValidationResult(
            missing_headings=missing_headings,
            missing_contract_items=missing_items,
            missing_code_block=missing_code_block,
        )
        if not result.is_valid:
            self.logger.debug(
                "Contract validation found issues: %s",
                format_validation_issues(result).replace("\n", "; "),
            )
        return result


def format_validation_issues(validation: ValidationResult) -> str:
    """Human-readable list of what a validation found missing."""
    issues = []
    if validation.missing_headings:
        issues.append(f"Missing headings: {', '.join(validation.missing_headings)}")
    if validation.missing_contract_items:
        issues.append(f"Missing prompt contract labels: {', '.join(validation.missing_contract_items)}")
    if validation.missing_code_block:
        issues.append("Final Prompt section must include a fenced code block using ```text.")
    return "\n".join(issues)


# Global validator instance
validator = ContractValidator()


def normalize_output(raw_output: str, target_agent: str) -> str:
    """Convenience function to normalize an artifact."""
    return validator.normalize(raw_output, target_agent)


def validate_output(output: str, target_agent: str) -> ValidationResult:
    """Convenience function to validate an artifact."""
    return validator.validate(output, target_agent)
