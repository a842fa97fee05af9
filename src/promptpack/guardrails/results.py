"""Result types produced by guardrail evaluation."""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from promptpack.models import GuardrailDescriptor


@dataclass
class GuardrailOutcome:
    """Outcome of evaluating one guardrail against a response.

    Attributes:
        passed: Whether the response satisfied the guardrail
        validator_type: Type tag of the guardrail that produced the outcome
        message: Optional human-readable description
        details: Optional structured details (matched words, bounds, ...)
    """

    passed: bool
    validator_type: str
    message: Optional[str] = None
    details: Optional[dict[str, Any]] = None


@dataclass
class GuardrailReport:
    """Aggregate result of running a guardrail pipeline.

    Attributes:
        content: The input the pipeline was invoked with
        passed: True only if every outcome passed
        results: One outcome per enabled guardrail, in declaration order
        failed: Failing outcomes, in declaration order
    """

    content: Any
    passed: bool
    results: list[GuardrailOutcome] = field(default_factory=list)
    failed: list[GuardrailOutcome] = field(default_factory=list)


# Contract for caller-supplied guardrails: (response_text, descriptor) -> outcome
CustomGuardrailFn = Callable[[str, GuardrailDescriptor], GuardrailOutcome]
