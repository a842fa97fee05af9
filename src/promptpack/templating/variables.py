"""Variable validation for prompt templates.

This module enforces declared variable descriptors against caller-supplied
values before rendering. Defaults are applied first; checks then run per
variable in declaration order and stop at the first violation.
"""

import re
from collections.abc import Mapping, Sequence
from typing import Any, Optional

from promptpack.enums import VariableType
from promptpack.errors import VariableValidationError
from promptpack.models import VariableConstraints, VariableDescriptor


def describe_type(value: Any) -> str:
    """Name a value's type using the variable schema vocabulary.

    Args:
        value: Any value

    Returns:
        One of string, number, boolean, object, array, null, or the Python
        type name for anything else
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


def _matches_type(value: Any, expected: VariableType) -> bool:
    if expected == VariableType.STRING:
        return isinstance(value, str)
    if expected == VariableType.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected == VariableType.BOOLEAN:
        return isinstance(value, bool)
    if expected == VariableType.OBJECT:
        return isinstance(value, Mapping)
    if expected == VariableType.ARRAY:
        return isinstance(value, Sequence) and not isinstance(value, (str, bytes))
    return True


def _same_value(value: Any, allowed: Any) -> bool:
    # True == 1 in Python; enum membership must not conflate booleans and numbers
    if isinstance(value, bool) or isinstance(allowed, bool):
        return type(value) is type(allowed) and value == allowed
    return bool(value == allowed)


class VariableValidator:
    """Validator for caller-supplied template variables.

    The validator is stateless and fail-fast: the first violated rule raises
    a VariableValidationError naming the variable and rule, and later
    variables are never checked.

    Example:
        >>> validator = VariableValidator()
        >>> descriptors = [VariableDescriptor(name="role", type="string", default="agent")]
        >>> validator.resolve(descriptors, {})
        {'role': 'agent'}
    """

    def apply_defaults(
        self,
        descriptors: Optional[Sequence[VariableDescriptor]],
        values: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Return a copy of values with declared defaults filled in.

        A default is applied only when the variable is absent from ``values``;
        falsy values such as ``""``, ``0`` or ``None`` are kept.

        Args:
            descriptors: Variable descriptors (None means no schema)
            values: Caller-supplied values

        Returns:
            New dictionary with defaults applied
        """
        result = dict(values)
        for descriptor in descriptors or ():
            if descriptor.name not in result and descriptor.has_default:
                result[descriptor.name] = descriptor.default
        return result

    def validate(
        self,
        descriptors: Optional[Sequence[VariableDescriptor]],
        values: Mapping[str, Any],
    ) -> None:
        """Validate values against descriptors in declaration order.

        Args:
            descriptors: Variable descriptors (None means no schema)
            values: Values to check, usually with defaults already applied

        Raises:
            VariableValidationError: On the first missing, mistyped or
                constraint-violating variable
        """
        for descriptor in descriptors or ():
            if descriptor.name not in values:
                if descriptor.required:
                    raise VariableValidationError(
                        message=f"Required variable '{descriptor.name}' is missing",
                        variable=descriptor.name,
                        rule="required",
                    )
                continue

            value = values[descriptor.name]
            self._validate_type(descriptor, value)

            if descriptor.validation is not None:
                self._validate_constraints(descriptor, value, descriptor.validation)

    def resolve(
        self,
        descriptors: Optional[Sequence[VariableDescriptor]],
        values: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Apply defaults and validate in one step.

        Args:
            descriptors: Variable descriptors
            values: Caller-supplied values

        Returns:
            Resolved variable map ready for rendering

        Raises:
            VariableValidationError: If any variable is invalid
        """
        resolved = self.apply_defaults(descriptors, values)
        self.validate(descriptors, resolved)
        return resolved

    def _validate_type(self, descriptor: VariableDescriptor, value: Any) -> None:
        expected = descriptor.type
        if not _matches_type(value, expected):
            actual = describe_type(value)
            article = "an" if expected.value[0] in "aeiou" else "a"
            raise VariableValidationError(
                message=(
                    f"Variable '{descriptor.name}' must be {article} {expected.value}, "
                    f"got {actual}"
                ),
                variable=descriptor.name,
                rule="type",
                details={"expected_type": expected.value, "actual_type": actual},
            )

    def _validate_constraints(
        self, descriptor: VariableDescriptor, value: Any, constraints: VariableConstraints
    ) -> None:
        if descriptor.type == VariableType.STRING and isinstance(value, str):
            self._validate_string_rules(descriptor.name, value, constraints)

        if (
            descriptor.type == VariableType.NUMBER
            and isinstance(value, (int, float))
            and not isinstance(value, bool)
        ):
            self._validate_number_rules(descriptor.name, value, constraints)

        if constraints.enum is not None:
            if not any(_same_value(value, allowed) for allowed in constraints.enum):
                raise VariableValidationError(
                    message=(
                        f"Variable '{descriptor.name}' must be one of: "
                        f"{', '.join(str(allowed) for allowed in constraints.enum)}"
                    ),
                    variable=descriptor.name,
                    rule="enum",
                    details={"value": value, "enum": list(constraints.enum)},
                )

    def _validate_string_rules(
        self, name: str, value: str, constraints: VariableConstraints
    ) -> None:
        if constraints.pattern:
            try:
                matched = re.search(constraints.pattern, value) is not None
            except re.error as e:
                raise VariableValidationError(
                    message=(
                        f"Variable '{name}' has an invalid pattern "
                        f"{constraints.pattern}: {e}"
                    ),
                    variable=name,
                    rule="pattern",
                    details={"pattern": constraints.pattern, "error": str(e)},
                ) from e
            if not matched:
                raise VariableValidationError(
                    message=f"Variable '{name}' does not match pattern {constraints.pattern}",
                    variable=name,
                    rule="pattern",
                    details={"pattern": constraints.pattern, "value": value},
                )

        if constraints.min_length is not None and len(value) < constraints.min_length:
            raise VariableValidationError(
                message=(
                    f"Variable '{name}' must be at least {constraints.min_length} "
                    f"characters, got {len(value)}"
                ),
                variable=name,
                rule="min_length",
                details={"length": len(value), "min_length": constraints.min_length},
            )

        if constraints.max_length is not None and len(value) > constraints.max_length:
            raise VariableValidationError(
                message=(
                    f"Variable '{name}' must be at most {constraints.max_length} "
                    f"characters, got {len(value)}"
                ),
                variable=name,
                rule="max_length",
                details={"length": len(value), "max_length": constraints.max_length},
            )

    def _validate_number_rules(
        self, name: str, value: float, constraints: VariableConstraints
    ) -> None:
        if constraints.minimum is not None and value < constraints.minimum:
            raise VariableValidationError(
                message=f"Variable '{name}' must be at least {constraints.minimum}, got {value}",
                variable=name,
                rule="minimum",
                details={"value": value, "minimum": constraints.minimum},
            )

        if constraints.maximum is not None and value > constraints.maximum:
            raise VariableValidationError(
                message=f"Variable '{name}' must be at most {constraints.maximum}, got {value}",
                variable=name,
                rule="maximum",
                details={"value": value, "maximum": constraints.maximum},
            )
