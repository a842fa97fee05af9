"""Template rendering module.

This module provides the placeholder renderer with bounded fragment
expansion and the variable validator used before rendering.
"""

from promptpack.templating.renderer import (
    RenderContext,
    TemplateRenderer,
    TemplateSpec,
    build_placeholder_pattern,
    value_to_string,
)
from promptpack.templating.variables import VariableValidator, describe_type

__all__ = [
    "RenderContext",
    "TemplateRenderer",
    "TemplateSpec",
    "VariableValidator",
    "build_placeholder_pattern",
    "describe_type",
    "value_to_string",
]
