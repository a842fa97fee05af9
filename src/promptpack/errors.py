"""Custom exceptions for the promptpack library.

This module defines the exception hierarchy for pack loading, template
rendering, variable validation and guardrail errors. Every error carries a
human-readable message, a machine-readable error code and a context dict
so callers can handle failures programmatically.
"""

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from promptpack.guardrails.results import GuardrailReport


class PromptPackError(Exception):
    """Base exception for all promptpack errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code
        context: Additional structured information about the error
    """

    def __init__(
        self, message: str, error_code: str, context: Optional[dict[str, Any]] = None
    ) -> None:
        """Initialize promptpack error.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code
            context: Optional additional context information
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}


class PackLoadError(PromptPackError):
    """Raised when a pack document cannot be read, parsed or validated."""

    def __init__(self, message: str, source: Optional[str] = None) -> None:
        """Initialize pack load error.

        Args:
            message: Description of the load failure
            source: Optional file path or label of the document being loaded
        """
        if source:
            full_message = f"Failed to load PromptPack from {source}: {message}"
        else:
            full_message = f"Failed to load PromptPack: {message}"

        super().__init__(
            message=full_message,
            error_code="pack_load_error",
            context={"source": source} if source else {},
        )
        self.source = source


class PackNotFoundError(PromptPackError):
    """Raised when a pack is not present in the registry."""

    def __init__(self, pack_id: str) -> None:
        """Initialize pack not found error.

        Args:
            pack_id: The ID of the pack that was not found
        """
        super().__init__(
            message=f"PromptPack '{pack_id}' not found in registry",
            error_code="pack_not_found",
            context={"pack_id": pack_id},
        )
        self.pack_id = pack_id


class PromptNotFoundError(PromptPackError):
    """Raised when a prompt is not defined in a pack."""

    def __init__(self, prompt_id: str, pack_id: str) -> None:
        """Initialize prompt not found error.

        Args:
            prompt_id: The ID of the prompt that was not found
            pack_id: The ID of the pack that was searched
        """
        super().__init__(
            message=f"Prompt '{prompt_id}' not found in pack '{pack_id}'",
            error_code="prompt_not_found",
            context={"prompt_id": prompt_id, "pack_id": pack_id},
        )
        self.prompt_id = prompt_id
        self.pack_id = pack_id


class TemplateRenderError(PromptPackError):
    """Raised when a template cannot be fully rendered.

    Covers undefined placeholders (when undefined placeholders are not
    tolerated) and fragment expansion that hits the pass cap.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "template_render_error",
        placeholder: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """Initialize template render error.

        Args:
            message: Description of the render failure
            error_code: Machine-readable error code
            placeholder: Optional name of the offending placeholder
            details: Optional dictionary with additional render details
        """
        context: dict[str, Any] = dict(details or {})
        if placeholder:
            context["placeholder"] = placeholder

        super().__init__(message=message, error_code=error_code, context=context)
        self.placeholder = placeholder
        self.details = details or {}


class VariableValidationError(PromptPackError):
    """Raised when a caller-supplied variable violates its declared schema.

    Attributes:
        variable: Name of the offending variable
        rule: The rule that failed (required, type, pattern, min_length,
            max_length, minimum, maximum, enum)
        details: Concrete values involved (expected/actual type, bound, value)
    """

    def __init__(
        self,
        message: str,
        variable: str,
        rule: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """Initialize variable validation error.

        Args:
            message: Description of the validation failure
            variable: Name of the variable that failed validation
            rule: Name of the violated rule
            details: Optional dictionary with the concrete values involved
        """
        super().__init__(
            message=message,
            error_code="variable_validation_error",
            context={"variable": variable, "rule": rule, **(details or {})},
        )
        self.variable = variable
        self.rule = rule
        self.details = details or {}


class MissingGuardrailImplementationError(PromptPackError):
    """Raised when enabled custom guardrails have no implementation.

    The error lists every missing type at once so the whole implementation
    set can be fixed in a single pass.
    """

    def __init__(self, missing_types: list[str]) -> None:
        """Initialize missing guardrail implementation error.

        Args:
            missing_types: Every enabled guardrail type lacking an implementation
        """
        super().__init__(
            message=(
                f"Missing validator implementations: {', '.join(missing_types)}. "
                "These validators are required by the PromptPack but no "
                "implementation was provided."
            ),
            error_code="missing_guardrail_implementation",
            context={"missing_types": list(missing_types)},
        )
        self.missing_types = list(missing_types)


class GuardrailViolationError(PromptPackError):
    """Raised when a guardrail with ``fail_on_violation`` fails in strict mode.

    Attributes:
        validator_type: Type tag of the failing guardrail
        details: Structured details reported by the guardrail
        report: Full report when raised by a pipeline, None for direct batches
    """

    def __init__(
        self,
        message: str,
        validator_type: str,
        details: Optional[dict[str, Any]] = None,
        report: Optional["GuardrailReport"] = None,
    ) -> None:
        """Initialize guardrail violation error.

        Args:
            message: Message reported by the failing guardrail
            validator_type: Type tag of the failing guardrail
            details: Optional structured details from the outcome
            report: Optional aggregate report computed before raising
        """
        super().__init__(
            message=message,
            error_code="guardrail_violation",
            context={"validator_type": validator_type, **(details or {})},
        )
        self.validator_type = validator_type
        self.details = details or {}
        self.report = report
