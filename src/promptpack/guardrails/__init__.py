"""Guardrail module.

This module provides built-in response guardrails, the registry that
reconciles declared guardrails with caller implementations, and the
pipeline that executes them.
"""

from promptpack.guardrails.builtin import (
    BUILTIN_GUARDRAILS,
    all_guardrails_passed,
    estimate_tokens,
    get_failed_guardrails,
    is_builtin_guardrail,
    run_builtin_guardrail,
    validate_response,
)
from promptpack.guardrails.pipeline import (
    GuardrailPipeline,
    create_guardrail_pipeline,
    create_strict_guardrail_pipeline,
    extract_content,
)
from promptpack.guardrails.registry import GuardrailRegistry, coerce_descriptors
from promptpack.guardrails.results import CustomGuardrailFn, GuardrailOutcome, GuardrailReport

__all__ = [
    "BUILTIN_GUARDRAILS",
    "CustomGuardrailFn",
    "GuardrailOutcome",
    "GuardrailPipeline",
    "GuardrailRegistry",
    "GuardrailReport",
    "all_guardrails_passed",
    "coerce_descriptors",
    "create_guardrail_pipeline",
    "create_strict_guardrail_pipeline",
    "estimate_tokens",
    "extract_content",
    "get_failed_guardrails",
    "is_builtin_guardrail",
    "run_builtin_guardrail",
    "validate_response",
]
