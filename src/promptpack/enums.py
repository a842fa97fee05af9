"""Enumerations for prompt packs.

This module defines enums for variable types, built-in guardrail kinds,
template engine features and tool choice modes.
"""

from enum import Enum


class VariableType(str, Enum):
    """Declared type of a template variable."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"


class BuiltinGuardrail(str, Enum):
    """Guardrail kinds implemented by the library itself.

    These types resolve without any caller-supplied implementation. Every
    other guardrail type tag is treated as custom.
    """

    BANNED_WORDS = "banned_words"
    MAX_LENGTH = "max_length"
    MIN_LENGTH = "min_length"
    REGEX_MATCH = "regex_match"


class TemplateFeature(str, Enum):
    """Features a pack's template engine may declare."""

    BASIC_SUBSTITUTION = "basic_substitution"
    FRAGMENTS = "fragments"
    CONDITIONALS = "conditionals"
    LOOPS = "loops"
    FILTERS = "filters"


class ToolChoice(str, Enum):
    """How a model is allowed to pick tools."""

    AUTO = "auto"
    REQUIRED = "required"
    NONE = "none"
