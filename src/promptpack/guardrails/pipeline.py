"""Guardrail execution pipeline for generated responses.

This module provides GuardrailPipeline, which runs every enabled guardrail
against a response in declaration order, aggregates the outcomes into a
report and, in strict mode, raises for the first failure whose guardrail
has ``fail_on_violation`` set. The full report is always computed before
anything is raised.
"""

import json
import logging
from collections.abc import Iterable, Mapping
from contextlib import nullcontext
from typing import Any, Optional

from promptpack.errors import GuardrailViolationError
from promptpack.guardrails.builtin import all_guardrails_passed, get_failed_guardrails
from promptpack.guardrails.registry import DescriptorInput, GuardrailRegistry
from promptpack.guardrails.results import CustomGuardrailFn, GuardrailOutcome, GuardrailReport
from promptpack.observability.logging import prompt_context

logger = logging.getLogger(__name__)


def extract_content(response: Any) -> str:
    """Extract response text from common model output shapes.

    Handles plain strings, mappings with a ``content`` or ``text`` key and
    message objects exposing a ``content`` or ``text`` attribute. Other
    mappings are serialized to JSON; anything else uses ``str()``.

    Args:
        response: Model output

    Returns:
        Response text to validate
    """
    if isinstance(response, str):
        return response

    if isinstance(response, Mapping):
        if "content" in response:
            return str(response["content"])
        if "text" in response:
            return str(response["text"])
        try:
            return json.dumps(response)
        except (TypeError, ValueError):
            return str(response)

    for attribute in ("content", "text"):
        value = getattr(response, attribute, None)
        if value is not None and not callable(value):
            return str(value)

    return str(response)


class GuardrailPipeline:
    """Runs a reconciled guardrail set against responses.

    The pipeline is constructed once and reused; it holds no per-call
    state. With ``throw_on_failure`` False it never raises for content
    failures and callers inspect the returned report.

    Attributes:
        throw_on_failure: Whether qualifying failures raise GuardrailViolationError

    Example:
        >>> pipeline = GuardrailPipeline(
        ...     [{"type": "max_length", "enabled": True, "params": {"max_characters": 10}}]
        ... )
        >>> report = pipeline.validate("12345678901")
        >>> report.passed, report.failed[0].details
        (False, {'length': 11, 'max_characters': 10})
    """

    def __init__(
        self,
        descriptors: Optional[Iterable[DescriptorInput]] = None,
        custom_guardrails: Optional[Mapping[str, CustomGuardrailFn]] = None,
        throw_on_failure: bool = False,
        registry: Optional[GuardrailRegistry] = None,
        pack_id: Optional[str] = None,
        prompt_id: Optional[str] = None,
    ) -> None:
        """Initialize and reconcile the pipeline.

        Args:
            descriptors: Guardrail descriptors
            custom_guardrails: Custom implementations keyed by guardrail type
            throw_on_failure: Raise for qualifying failures after evaluation
            registry: Pre-built registry to execute instead of building one
            pack_id: Pack id bound to log records emitted during validation
            prompt_id: Prompt id bound to log records emitted during validation

        Raises:
            ValueError: If a registry is given together with descriptors or
                custom guardrails
            MissingGuardrailImplementationError: If reconciliation fails
        """
        if registry is not None:
            if descriptors is not None or custom_guardrails is not None:
                raise ValueError(
                    "Pass either a registry or descriptors/custom_guardrails, not both"
                )
            self._registry = registry
        else:
            self._registry = GuardrailRegistry(descriptors or (), custom_guardrails)
        self.throw_on_failure = throw_on_failure
        self.pack_id = pack_id
        self.prompt_id = prompt_id

    @property
    def registry(self) -> GuardrailRegistry:
        """The reconciled registry executed by this pipeline."""
        return self._registry

    def validate(self, response: Any) -> GuardrailReport:
        """Run every enabled guardrail against a response.

        Args:
            response: Model output (string, message object or mapping)

        Returns:
            Report with one outcome per enabled guardrail

        Raises:
            GuardrailViolationError: In strict mode, for the first failing
                outcome (in declaration order) whose guardrail has
                fail_on_violation set
        """
        if self.pack_id is None:
            log_context = nullcontext()
        else:
            log_context = prompt_context(self.pack_id, self.prompt_id)

        with log_context:
            return self._run(response)

    def _run(self, response: Any) -> GuardrailReport:
        content = extract_content(response)

        evaluated: list[tuple[bool, GuardrailOutcome]] = []
        for descriptor in self._registry.enabled_descriptors:
            outcome = self._registry.evaluate(content, descriptor)
            evaluated.append((descriptor.fail_on_violation, outcome))

        results = [outcome for _, outcome in evaluated]
        report = GuardrailReport(
            content=response,
            passed=all_guardrails_passed(results),
            results=results,
            failed=get_failed_guardrails(results),
        )

        if report.failed:
            logger.info(
                "Guardrail failures: "
                f"{', '.join(outcome.validator_type for outcome in report.failed)}"
            )

        if not report.passed and self.throw_on_failure:
            for fail_on_violation, outcome in evaluated:
                if fail_on_violation and not outcome.passed:
                    raise GuardrailViolationError(
                        message=outcome.message or "Validation failed",
                        validator_type=outcome.validator_type,
                        details=outcome.details,
                        report=report,
                    )

        return report

    def __call__(self, response: Any) -> GuardrailReport:
        """Alias for validate so the pipeline can be used as a callable step."""
        return self.validate(response)


def create_guardrail_pipeline(
    descriptors: Iterable[DescriptorInput],
    custom_guardrails: Optional[Mapping[str, CustomGuardrailFn]] = None,
) -> GuardrailPipeline:
    """Create a report-only pipeline that never raises for content failures.

    Args:
        descriptors: Guardrail descriptors
        custom_guardrails: Custom implementations keyed by guardrail type

    Returns:
        Reconciled GuardrailPipeline
    """
    return GuardrailPipeline(descriptors, custom_guardrails, throw_on_failure=False)


def create_strict_guardrail_pipeline(
    descriptors: Iterable[DescriptorInput],
    custom_guardrails: Optional[Mapping[str, CustomGuardrailFn]] = None,
) -> GuardrailPipeline:
    """Create a strict pipeline that raises for fail_on_violation failures.

    Args:
        descriptors: Guardrail descriptors
        custom_guardrails: Custom implementations keyed by guardrail type

    Returns:
        Reconciled GuardrailPipeline with throw_on_failure enabled
    """
    return GuardrailPipeline(descriptors, custom_guardrails, throw_on_failure=True)
