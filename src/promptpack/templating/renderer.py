"""Placeholder template renderer with bounded fragment expansion.

This module renders pack templates in two phases. Fragment references are
expanded first, repeatedly, because fragments may reference other fragments.
Variable placeholders are substituted second. Fragments and variables share
one placeholder namespace and one placeholder pattern, derived from the
pack's configured delimiter syntax.
"""

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from promptpack.config import DEFAULT_MAX_FRAGMENT_PASSES, PromptPackConfig
from promptpack.errors import TemplateRenderError
from promptpack.models import DEFAULT_SYNTAX

logger = logging.getLogger(__name__)

# Capture group substituted for the sentinel word in a delimiter syntax
PLACEHOLDER_NAME_GROUP = "([a-zA-Z_][a-zA-Z0-9_]*)"

_SENTINEL_RE = re.compile("variable", re.IGNORECASE)


def build_placeholder_pattern(syntax: str = DEFAULT_SYNTAX) -> re.Pattern[str]:
    """Derive the placeholder regex from a delimiter syntax.

    Literal characters of the syntax are escaped and the sentinel word
    ``variable`` (any casing) becomes an identifier capture group.

    Args:
        syntax: Delimiter syntax such as ``{{variable}}`` or ``[[variable]]``

    Returns:
        Compiled pattern whose first group captures the placeholder name

    Raises:
        ValueError: If the syntax does not contain the sentinel word

    Example:
        >>> build_placeholder_pattern("[[variable]]").findall("Hi [[name]]")
        ['name']
    """
    escaped = re.escape(syntax)
    if not _SENTINEL_RE.search(escaped):
        raise ValueError(f"Template syntax '{syntax}' must contain the word 'variable'")
    return re.compile(_SENTINEL_RE.sub(lambda _: PLACEHOLDER_NAME_GROUP, escaped))


def value_to_string(value: Any) -> str:
    """Convert a variable value to the text substituted into a template.

    Strings pass through unchanged. ``None`` and booleans use their JSON
    spelling (``null``, ``true``, ``false``), integral floats drop the
    trailing ``.0`` and mappings serialize to compact JSON. Anything else
    falls back to ``str()``.

    Args:
        value: Variable value

    Returns:
        Canonical string form of the value
    """
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, Mapping):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    return str(value)


@dataclass(frozen=True)
class TemplateSpec:
    """Delimiter syntax plus the fragments that may be referenced.

    Attributes:
        syntax: Placeholder delimiter syntax
        fragments: Fragment name to raw fragment text
    """

    syntax: str = DEFAULT_SYNTAX
    fragments: Mapping[str, str] = field(default_factory=dict)


@dataclass
class RenderContext:
    """Inputs for a single render call.

    Attributes:
        variables: Resolved variable values
        fragments: Fragment name to raw fragment text
        allow_undefined: Leave unresolved placeholders untouched instead of raising
        max_fragment_passes: Fragment substitution pass cap
    """

    variables: dict[str, Any] = field(default_factory=dict)
    fragments: Mapping[str, str] = field(default_factory=dict)
    allow_undefined: bool = False
    max_fragment_passes: int = DEFAULT_MAX_FRAGMENT_PASSES


class TemplateRenderer:
    """Renderer for delimiter-based prompt templates.

    Rendering is a pure function of its inputs. A renderer can be shared by
    any number of callers; per-call state lives in a RenderContext.

    Example:
        >>> renderer = TemplateRenderer()
        >>> renderer.render(
        ...     "You are a {{role}} for {{company}}.",
        ...     variables={"role": "agent", "company": "Acme"},
        ... )
        'You are a agent for Acme.'
    """

    def __init__(
        self,
        syntax: Optional[str] = None,
        fragments: Optional[Mapping[str, str]] = None,
        config: Optional[PromptPackConfig] = None,
    ) -> None:
        """Initialize the renderer.

        Args:
            syntax: Delimiter syntax (defaults to the configured default syntax)
            fragments: Default fragments used when a call supplies none
            config: Optional configuration (defaults to PromptPackConfig())
        """
        self._config = config or PromptPackConfig()
        self._syntax = syntax or self._config.default_syntax
        self._pattern = build_placeholder_pattern(self._syntax)
        self._fragments: Mapping[str, str] = dict(fragments or {})

    @classmethod
    def from_template_spec(
        cls, spec: TemplateSpec, config: Optional[PromptPackConfig] = None
    ) -> "TemplateRenderer":
        """Create a renderer bound to a template spec's syntax and fragments.

        Args:
            spec: Template spec to bind
            config: Optional configuration

        Returns:
            A renderer using the spec's syntax and fragments by default
        """
        return cls(syntax=spec.syntax, fragments=spec.fragments, config=config)

    @property
    def syntax(self) -> str:
        """Delimiter syntax used by this renderer."""
        return self._syntax

    @property
    def pattern(self) -> re.Pattern[str]:
        """Compiled placeholder pattern."""
        return self._pattern

    def render(
        self,
        template: str,
        variables: Optional[dict[str, Any]] = None,
        fragments: Optional[Mapping[str, str]] = None,
        allow_undefined: Optional[bool] = None,
    ) -> str:
        """Render a template with fragments and variables.

        Args:
            template: Template text containing placeholders
            variables: Variable values (default: {})
            fragments: Fragments (default: the renderer's bound fragments)
            allow_undefined: Override the configured undefined-placeholder policy

        Returns:
            Fully rendered text

        Raises:
            TemplateRenderError: If a placeholder is undefined or fragment
                expansion reaches the pass cap
        """
        context = RenderContext(
            variables=dict(variables or {}),
            fragments=self._fragments if fragments is None else fragments,
            allow_undefined=(
                self._config.allow_undefined if allow_undefined is None else allow_undefined
            ),
            max_fragment_passes=self._config.max_fragment_passes,
        )
        return self.render_context(template, context)

    def render_context(self, template: str, context: RenderContext) -> str:
        """Render a template using an explicit render context.

        Args:
            template: Template text containing placeholders
            context: Variables, fragments and options for this call

        Returns:
            Fully rendered text

        Raises:
            TemplateRenderError: If rendering fails
        """
        expanded = self._substitute_fragments(
            template, context.fragments, context.max_fragment_passes
        )
        return self._substitute_variables(expanded, context.variables, context.allow_undefined)

    def extract_placeholders(self, template: str) -> list[str]:
        """Return placeholder names in order of first appearance.

        Args:
            template: Template text

        Returns:
            Unique placeholder names
        """
        names: list[str] = []
        for match in self._pattern.finditer(template):
            name = match.group(1)
            if name not in names:
                names.append(name)
        return names

    def _substitute_fragments(
        self, template: str, fragments: Mapping[str, str], max_passes: int
    ) -> str:
        """Expand fragment references until a pass makes no replacement.

        The pass counter is the only cycle guard: reaching the cap is an
        error whether or not the last pass still replaced anything.

        Args:
            template: Template text
            fragments: Fragment name to raw text
            max_passes: Pass cap

        Returns:
            Template text with all fragment references expanded

        Raises:
            TemplateRenderError: If the pass counter reaches the cap
        """
        result = template
        passes = 0
        replaced = True

        def replace_fragment(match: re.Match[str]) -> str:
            nonlocal replaced
            name = match.group(1)
            if name in fragments:
                replaced = True
                return fragments[name]
            return match.group(0)

        while replaced and passes < max_passes:
            replaced = False
            result = self._pattern.sub(replace_fragment, result)
            passes += 1

        if passes >= max_passes:
            raise TemplateRenderError(
                message=(
                    "Maximum fragment substitution depth exceeded "
                    "(possible circular reference)"
                ),
                error_code="fragment_depth_exceeded",
                details={"passes": passes, "max_passes": max_passes},
            )

        logger.debug(f"Fragment expansion finished after {passes} pass(es)")
        return result

    def _substitute_variables(
        self, template: str, variables: dict[str, Any], allow_undefined: bool
    ) -> str:
        """Substitute variable placeholders.

        Args:
            template: Fragment-expanded template text
            variables: Variable values
            allow_undefined: Leave unknown placeholders untouched

        Returns:
            Rendered text

        Raises:
            TemplateRenderError: If a placeholder is undefined and not tolerated
        """

        def replace_variable(match: re.Match[str]) -> str:
            name = match.group(1)
            if name not in variables:
                if allow_undefined:
                    return match.group(0)
                raise TemplateRenderError(
                    message=f"Variable '{name}' is not defined",
                    error_code="undefined_placeholder",
                    placeholder=name,
                    details={"available": sorted(variables)},
                )
            return value_to_string(variables[name])

        return self._pattern.sub(replace_variable, template)
