"""Built-in guardrails for generated responses.

This module implements the guardrail kinds that need no caller-supplied
implementation: banned words, maximum length, minimum length and regex
match. It also provides the direct batch entry point, validate_response,
which raises on the first ``fail_on_violation`` failure without evaluating
the remaining guardrails.
"""

import logging
import math
import re
from collections.abc import Iterable, Sequence
from typing import Callable

from promptpack.enums import BuiltinGuardrail
from promptpack.errors import GuardrailViolationError
from promptpack.guardrails.results import GuardrailOutcome
from promptpack.models import GuardrailDescriptor

logger = logging.getLogger(__name__)

BUILTIN_GUARDRAILS: frozenset[str] = frozenset(kind.value for kind in BuiltinGuardrail)

# Rough token estimate: 4 characters per token
CHARS_PER_TOKEN = 4


def is_builtin_guardrail(guardrail_type: str) -> bool:
    """Check whether a guardrail type tag is implemented by the library.

    Args:
        guardrail_type: Guardrail type tag

    Returns:
        True for banned_words, max_length, min_length and regex_match
    """
    return guardrail_type in BUILTIN_GUARDRAILS


def estimate_tokens(text: str) -> int:
    """Estimate a token count as characters divided by four, rounded up."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def check_banned_words(response: str, descriptor: GuardrailDescriptor) -> GuardrailOutcome:
    """Fail if any configured phrase appears as a whole word, ignoring case.

    Matched phrases are reported in their configured casing. A single
    string is treated as one phrase.

    Args:
        response: Response text
        descriptor: Guardrail with ``params.words``

    Returns:
        Guardrail outcome
    """
    words = descriptor.params.get("words") or []
    if isinstance(words, str):
        words = [words]
    found_words = [
        word
        for word in words
        if re.search(rf"\b{re.escape(word)}\b", response, re.IGNORECASE)
    ]

    if found_words:
        return GuardrailOutcome(
            passed=False,
            validator_type=BuiltinGuardrail.BANNED_WORDS.value,
            message=f"Response contains banned words: {', '.join(found_words)}",
            details={"banned_words": found_words},
        )

    return GuardrailOutcome(passed=True, validator_type=BuiltinGuardrail.BANNED_WORDS.value)


def check_max_length(response: str, descriptor: GuardrailDescriptor) -> GuardrailOutcome:
    """Fail if the response exceeds a character or estimated token bound.

    The character bound is checked before the token bound.

    Args:
        response: Response text
        descriptor: Guardrail with ``params.max_characters`` and/or ``params.max_tokens``

    Returns:
        Guardrail outcome
    """
    max_chars = descriptor.params.get("max_characters")
    max_tokens = descriptor.params.get("max_tokens")
    length = len(response)

    if max_chars is not None and length > max_chars:
        return GuardrailOutcome(
            passed=False,
            validator_type=BuiltinGuardrail.MAX_LENGTH.value,
            message=f"Response exceeds maximum length: {length} > {max_chars} characters",
            details={"length": length, "max_characters": max_chars},
        )

    if max_tokens is not None:
        estimated_tokens = estimate_tokens(response)
        if estimated_tokens > max_tokens:
            return GuardrailOutcome(
                passed=False,
                validator_type=BuiltinGuardrail.MAX_LENGTH.value,
                message=(
                    f"Response exceeds maximum tokens: ~{estimated_tokens} > "
                    f"{max_tokens} tokens"
                ),
                details={"estimated_tokens": estimated_tokens, "max_tokens": max_tokens},
            )

    return GuardrailOutcome(passed=True, validator_type=BuiltinGuardrail.MAX_LENGTH.value)


def check_min_length(response: str, descriptor: GuardrailDescriptor) -> GuardrailOutcome:
    """Fail if the response is below a character or estimated token bound.

    The character bound is checked before the token bound.

    Args:
        response: Response text
        descriptor: Guardrail with ``params.min_characters`` and/or ``params.min_tokens``

    Returns:
        Guardrail outcome
    """
    min_chars = descriptor.params.get("min_characters")
    min_tokens = descriptor.params.get("min_tokens")
    length = len(response)

    if min_chars is not None and length < min_chars:
        return GuardrailOutcome(
            passed=False,
            validator_type=BuiltinGuardrail.MIN_LENGTH.value,
            message=f"Response below minimum length: {length} < {min_chars} characters",
            details={"length": length, "min_characters": min_chars},
        )

    if min_tokens is not None:
        estimated_tokens = estimate_tokens(response)
        if estimated_tokens < min_tokens:
            return GuardrailOutcome(
                passed=False,
                validator_type=BuiltinGuardrail.MIN_LENGTH.value,
                message=(
                    f"Response below minimum tokens: ~{estimated_tokens} < "
                    f"{min_tokens} tokens"
                ),
                details={"estimated_tokens": estimated_tokens, "min_tokens": min_tokens},
            )

    return GuardrailOutcome(passed=True, validator_type=BuiltinGuardrail.MIN_LENGTH.value)


def check_regex_match(response: str, descriptor: GuardrailDescriptor) -> GuardrailOutcome:
    """Require (or forbid) a regex match in the response.

    ``params.must_match`` defaults to True. With ``must_match`` False the
    pattern is forbidden. An invalid pattern yields a failing outcome that
    carries the compile error instead of raising.

    Args:
        response: Response text
        descriptor: Guardrail with ``params.pattern`` and optional ``params.must_match``

    Returns:
        Guardrail outcome
    """
    pattern = descriptor.params.get("pattern")
    must_match = descriptor.params.get("must_match") is not False

    if not pattern:
        return GuardrailOutcome(
            passed=True,
            validator_type=BuiltinGuardrail.REGEX_MATCH.value,
            message="No pattern specified",
        )

    try:
        compiled = re.compile(pattern)
    except re.error as e:
        return GuardrailOutcome(
            passed=False,
            validator_type=BuiltinGuardrail.REGEX_MATCH.value,
            message=f"Invalid regex pattern: {pattern}",
            details={"error": str(e)},
        )

    matches = compiled.search(response) is not None

    if must_match and not matches:
        return GuardrailOutcome(
            passed=False,
            validator_type=BuiltinGuardrail.REGEX_MATCH.value,
            message=f"Response does not match required pattern: {pattern}",
            details={"pattern": pattern},
        )

    if not must_match and matches:
        return GuardrailOutcome(
            passed=False,
            validator_type=BuiltinGuardrail.REGEX_MATCH.value,
            message=f"Response matches forbidden pattern: {pattern}",
            details={"pattern": pattern},
        )

    return GuardrailOutcome(passed=True, validator_type=BuiltinGuardrail.REGEX_MATCH.value)


_BUILTIN_EVALUATORS: dict[
    BuiltinGuardrail, Callable[[str, GuardrailDescriptor], GuardrailOutcome]
] = {
    BuiltinGuardrail.BANNED_WORDS: check_banned_words,
    BuiltinGuardrail.MAX_LENGTH: check_max_length,
    BuiltinGuardrail.MIN_LENGTH: check_min_length,
    BuiltinGuardrail.REGEX_MATCH: check_regex_match,
}


def run_builtin_guardrail(response: str, descriptor: GuardrailDescriptor) -> GuardrailOutcome:
    """Evaluate a single descriptor with the matching built-in guardrail.

    Unknown types pass with an explanatory message; reconciliation keeps
    them out of pipelines.

    Args:
        response: Response text
        descriptor: Guardrail descriptor

    Returns:
        Guardrail outcome
    """
    if not is_builtin_guardrail(descriptor.type):
        return GuardrailOutcome(
            passed=True,
            validator_type=descriptor.type,
            message=f"Unknown validator type: {descriptor.type}",
        )
    return _BUILTIN_EVALUATORS[BuiltinGuardrail(descriptor.type)](response, descriptor)


def validate_response(
    response: str, descriptors: Iterable[GuardrailDescriptor]
) -> list[GuardrailOutcome]:
    """Run built-in guardrails directly, stopping at the first hard failure.

    Disabled descriptors are skipped. When a failing descriptor has
    ``fail_on_violation`` set, GuardrailViolationError is raised immediately
    and later descriptors are not evaluated. Use GuardrailPipeline to always
    compute the full report first.

    Args:
        response: Response text
        descriptors: Guardrail descriptors in declaration order

    Returns:
        Outcomes for every enabled descriptor

    Raises:
        GuardrailViolationError: On the first failure with fail_on_violation
    """
    results: list[GuardrailOutcome] = []

    for descriptor in descriptors:
        if not descriptor.enabled:
            continue

        outcome = run_builtin_guardrail(response, descriptor)
        results.append(outcome)

        if not outcome.passed and descriptor.fail_on_violation:
            logger.info(f"Guardrail '{descriptor.type}' failed; stopping batch evaluation")
            raise GuardrailViolationError(
                message=outcome.message or "Validation failed",
                validator_type=descriptor.type,
                details=outcome.details,
            )

    return results


def all_guardrails_passed(results: Sequence[GuardrailOutcome]) -> bool:
    """Return True if every outcome passed."""
    return all(result.passed for result in results)


def get_failed_guardrails(results: Sequence[GuardrailOutcome]) -> list[GuardrailOutcome]:
    """Return the failing outcomes in their original order."""
    return [result for result in results if not result.passed]
