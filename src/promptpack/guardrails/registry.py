"""Guardrail registry reconciling declared guardrails with implementations.

The registry is built once per (descriptors, implementations) pair. It
verifies at construction that every enabled guardrail whose type is not
built-in has a caller-supplied implementation, and reports every gap at
once. After construction it is read-only and safe to share.
"""

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any, Optional, Union

from promptpack.errors import MissingGuardrailImplementationError
from promptpack.guardrails.builtin import is_builtin_guardrail, run_builtin_guardrail
from promptpack.guardrails.results import CustomGuardrailFn, GuardrailOutcome
from promptpack.models import GuardrailDescriptor

logger = logging.getLogger(__name__)

DescriptorInput = Union[GuardrailDescriptor, Mapping[str, Any]]


def coerce_descriptors(descriptors: Iterable[DescriptorInput]) -> tuple[GuardrailDescriptor, ...]:
    """Convert raw descriptor mappings into GuardrailDescriptor models.

    Args:
        descriptors: Descriptors as models or plain mappings

    Returns:
        Tuple of GuardrailDescriptor models in the same order
    """
    return tuple(
        item if isinstance(item, GuardrailDescriptor) else GuardrailDescriptor.model_validate(item)
        for item in descriptors
    )


class GuardrailRegistry:
    """Reconciled set of guardrails ready for execution.

    Disabled descriptors are excluded from both reconciliation and
    execution. Custom implementations take precedence over built-in
    guardrails with the same type tag.

    Example:
        >>> registry = GuardrailRegistry(
        ...     [GuardrailDescriptor(type="sentiment")],
        ...     {"sentiment": lambda text, d: GuardrailOutcome(True, "sentiment")},
        ... )
        >>> [d.type for d in registry.enabled_descriptors]
        ['sentiment']
    """

    def __init__(
        self,
        descriptors: Iterable[DescriptorInput],
        implementations: Optional[Mapping[str, CustomGuardrailFn]] = None,
    ) -> None:
        """Build and reconcile the registry.

        Args:
            descriptors: Guardrail descriptors in declaration order
            implementations: Custom implementations keyed by guardrail type

        Raises:
            MissingGuardrailImplementationError: If any enabled non-built-in
                type has no implementation
        """
        self._descriptors = coerce_descriptors(descriptors)
        self._implementations: Mapping[str, CustomGuardrailFn] = MappingProxyType(
            dict(implementations or {})
        )
        self._enabled = tuple(d for d in self._descriptors if d.enabled)

        self._reconcile()

        logger.debug(
            f"GuardrailRegistry reconciled {len(self._enabled)} enabled guardrail(s), "
            f"{len(self._implementations)} custom implementation(s)"
        )

    def _reconcile(self) -> None:
        missing: list[str] = []
        for descriptor in self._enabled:
            if is_builtin_guardrail(descriptor.type):
                continue
            if descriptor.type in missing:
                continue
            # A None or other non-callable entry counts as missing
            if not callable(self._implementations.get(descriptor.type)):
                missing.append(descriptor.type)

        if missing:
            logger.error(f"Missing guardrail implementations: {', '.join(missing)}")
            raise MissingGuardrailImplementationError(missing)

    @property
    def descriptors(self) -> tuple[GuardrailDescriptor, ...]:
        """All descriptors, including disabled ones."""
        return self._descriptors

    @property
    def enabled_descriptors(self) -> tuple[GuardrailDescriptor, ...]:
        """Enabled descriptors in declaration order."""
        return self._enabled

    @property
    def implementations(self) -> Mapping[str, CustomGuardrailFn]:
        """Read-only view of the custom implementations."""
        return self._implementations

    def has_custom(self, guardrail_type: str) -> bool:
        """Check whether a custom implementation is registered for a type."""
        return callable(self._implementations.get(guardrail_type))

    def resolve(self, descriptor: GuardrailDescriptor) -> CustomGuardrailFn:
        """Return the function that evaluates a descriptor.

        The custom implementation wins when one is registered for the type,
        even if the type is also built-in.

        Args:
            descriptor: Guardrail descriptor

        Returns:
            Callable taking (response_text, descriptor)
        """
        custom = self._implementations.get(descriptor.type)
        if callable(custom):
            return custom
        return run_builtin_guardrail

    def evaluate(self, response: str, descriptor: GuardrailDescriptor) -> GuardrailOutcome:
        """Evaluate one descriptor against a response.

        Args:
            response: Response text
            descriptor: Guardrail descriptor

        Returns:
            Guardrail outcome
        """
        return self.resolve(descriptor)(response, descriptor)
