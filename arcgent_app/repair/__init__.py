"""Contract repair and canonical fallback synthesis."""
from .orchestrator import (
    EnforcementResult,
    RepairContext,
    RepairInstruction,
    RepairOrchestrator,
    build_fallback_output,
    build_repair_instruction,
)

__all__ = [
    "EnforcementResult",
    "RepairContext",
    "RepairInstruction",
    "RepairOrchestrator",
    "build_fallback_output",
    "build_repair_instruction",
]
