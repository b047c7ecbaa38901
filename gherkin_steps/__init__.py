"""Step definition lookup, validation and completion for Gherkin features."""

from __future__ import annotations

from .context import match_step_line, outline_bindings, resolve_step_type
from .gherkin import StepType
from .patterns import CompiledStep, StepCompilationError, compile_step, step_text_invariants
from .queries import complete, find_definition, resolve_completion, validate
from .registry import StepDefinition, StepRegistry, validate_configuration
from .settings import CustomParameter, Settings
from .usage import recount

__version__ = "0.1.0"

__all__ = [
    "CompiledStep",
    "CustomParameter",
    "Settings",
    "StepCompilationError",
    "StepDefinition",
    "StepRegistry",
    "StepType",
    "compile_step",
    "complete",
    "find_definition",
    "match_step_line",
    "outline_bindings",
    "recount",
    "resolve_completion",
    "resolve_step_type",
    "step_text_invariants",
    "validate",
    "validate_configuration",
]
