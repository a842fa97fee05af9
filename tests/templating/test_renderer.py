"""Tests for the placeholder template renderer."""

import pytest

from promptpack.config import PromptPackConfig
from promptpack.errors import TemplateRenderError
from promptpack.templating.renderer import (
    RenderContext,
    TemplateRenderer,
    TemplateSpec,
    build_placeholder_pattern,
    value_to_string,
)


def _fragment_chain(length: int) -> dict[str, str]:
    """Build f1 -> f2 -> ... -> f<length> -> 'done'."""
    fragments = {f"f{i}": f"{{{{f{i + 1}}}}}" for i in range(1, length)}
    fragments[f"f{length}"] = "done"
    return fragments


class TestBuildPlaceholderPattern:
    """Tests for build_placeholder_pattern function."""

    def test_default_syntax(self) -> None:
        """Default syntax should capture identifiers inside double braces."""
        pattern = build_placeholder_pattern()

        assert pattern.findall("Hello {{name}} and {{_other1}}") == ["name", "_other1"]

    def test_custom_syntax(self) -> None:
        """Custom delimiters should be escaped as literals."""
        pattern = build_placeholder_pattern("[[variable]]")

        assert pattern.findall("Hi [[name]], not {{name}}") == ["name"]

    def test_sentinel_is_case_insensitive(self) -> None:
        """The sentinel word should be recognized in any casing."""
        pattern = build_placeholder_pattern("<%VARIABLE%>")

        assert pattern.findall("<%first%> <%second%>") == ["first", "second"]

    def test_regex_metacharacters_are_literal(self) -> None:
        """Metacharacters in the syntax should not act as regex operators."""
        pattern = build_placeholder_pattern("${variable}")

        assert pattern.findall("cost: ${amount}") == ["amount"]
        assert pattern.findall("cost: $amount") == []

    def test_non_identifier_names_are_not_placeholders(self) -> None:
        """Names must start with a letter or underscore."""
        pattern = build_placeholder_pattern()

        assert pattern.findall("{{1abc}} {{with space}} {{a-b}}") == []

    def test_missing_sentinel_raises(self) -> None:
        """Syntax without the sentinel word should be rejected."""
        with pytest.raises(ValueError, match="must contain the word 'variable'"):
            build_placeholder_pattern("{{name}}")


class TestValueToString:
    """Tests for value_to_string function."""

    def test_string_unchanged(self) -> None:
        """Strings should be substituted verbatim."""
        assert value_to_string("plain {{text}}") == "plain {{text}}"

    def test_booleans(self) -> None:
        """Booleans should render in lowercase."""
        assert value_to_string(True) == "true"
        assert value_to_string(False) == "false"

    def test_numbers(self) -> None:
        """Numbers should render as their literal text."""
        assert value_to_string(42) == "42"
        assert value_to_string(3.5) == "3.5"

    def test_integral_float_drops_fraction(self) -> None:
        """Whole-number floats should render without a trailing .0."""
        assert value_to_string(1.0) == "1"
        assert value_to_string(-20.0) == "-20"

    def test_none_renders_as_null(self) -> None:
        """None should use the same JSON spelling as booleans."""
        assert value_to_string(None) == "null"

    def test_mapping_renders_compact_json(self) -> None:
        """Mappings should serialize to JSON without extra whitespace."""
        assert value_to_string({"a": 1, "b": [1, 2]}) == '{"a":1,"b":[1,2]}'

    def test_other_values_use_str(self) -> None:
        """Other values should fall back to str()."""
        assert value_to_string([1, 2]) == "[1, 2]"


class TestTemplateRenderer:
    """Tests for TemplateRenderer variable substitution."""

    def test_render_variables(self) -> None:
        """Renderer should substitute every variable placeholder."""
        renderer = TemplateRenderer()

        result = renderer.render(
            "You are a {{role}} for {{company}}.",
            variables={"role": "agent", "company": "Acme"},
        )

        assert result == "You are a agent for Acme."

    def test_render_without_placeholders(self) -> None:
        """Static text should be returned unchanged."""
        renderer = TemplateRenderer()

        assert renderer.render("Static text") == "Static text"

    def test_render_repeated_placeholder(self) -> None:
        """Every occurrence of a placeholder should be replaced."""
        renderer = TemplateRenderer()

        assert renderer.render("{{x}}-{{x}}", variables={"x": "a"}) == "a-a"

    def test_render_typed_values(self) -> None:
        """Non-string values should use their canonical string form."""
        renderer = TemplateRenderer()

        result = renderer.render(
            "{{flag}} {{count}} {{data}}",
            variables={"flag": True, "count": 3, "data": {"k": "v"}},
        )

        assert result == 'true 3 {"k":"v"}'

    def test_undefined_placeholder_raises(self) -> None:
        """A placeholder with no variable or fragment should raise."""
        renderer = TemplateRenderer()

        with pytest.raises(TemplateRenderError) as exc_info:
            renderer.render("Hello {{name}}", variables={"other": "x"})

        error = exc_info.value
        assert error.error_code == "undefined_placeholder"
        assert error.placeholder == "name"
        assert "name" in error.message
        assert error.details["available"] == ["other"]

    def test_allow_undefined_keeps_placeholder(self) -> None:
        """Tolerated undefined placeholders should remain verbatim."""
        renderer = TemplateRenderer()

        result = renderer.render("Hi {{name}}, {{missing}}", {"name": "Ann"}, allow_undefined=True)

        assert result == "Hi Ann, {{missing}}"

    def test_allow_undefined_from_config(self) -> None:
        """The config should supply the default undefined policy."""
        renderer = TemplateRenderer(config=PromptPackConfig(allow_undefined=True))

        assert renderer.render("{{missing}}") == "{{missing}}"

    def test_custom_syntax_render(self) -> None:
        """Renderer should honor a non-default syntax."""
        renderer = TemplateRenderer(syntax="[[variable]]")

        result = renderer.render("Hi [[name]] {{name}}", variables={"name": "Bob"})

        assert result == "Hi Bob {{name}}"

    def test_substituted_values_are_not_rendered_again(self) -> None:
        """Variable values containing placeholder text should be inserted verbatim."""
        renderer = TemplateRenderer()

        result = renderer.render("{{a}}", variables={"a": "{{b}}", "b": "nope"})

        assert result == "{{b}}"

    def test_extract_placeholders(self) -> None:
        """Placeholders should be listed once in order of first appearance."""
        renderer = TemplateRenderer()

        assert renderer.extract_placeholders("{{b}} {{a}} {{b}}") == ["b", "a"]


class TestFragmentExpansion:
    """Tests for TemplateRenderer fragment expansion."""

    def test_fragment_substitution(self) -> None:
        """Fragments should be expanded before variables."""
        renderer = TemplateRenderer()

        result = renderer.render(
            "Intro. {{rules}}",
            variables={"company": "Acme"},
            fragments={"rules": "Work for {{company}}."},
        )

        assert result == "Intro. Work for Acme."

    def test_fragment_wins_over_variable(self) -> None:
        """A name defined as both fragment and variable should resolve to the fragment."""
        renderer = TemplateRenderer()

        result = renderer.render(
            "{{name}}", variables={"name": "VAR"}, fragments={"name": "FRAG"}
        )

        assert result == "FRAG"

    def test_nested_fragments(self) -> None:
        """Fragments referencing fragments should expand fully."""
        renderer = TemplateRenderer()

        result = renderer.render("{{f1}}", fragments=_fragment_chain(3))

        assert result == "done"

    def test_bound_fragments_used_by_default(self) -> None:
        """Fragments given at construction should apply when a call supplies none."""
        renderer = TemplateRenderer(fragments={"sig": "-- Support"})

        assert renderer.render("Bye {{sig}}") == "Bye -- Support"
        assert renderer.render("Bye {{sig}}", fragments={"sig": "-- Sales"}) == "Bye -- Sales"

    def test_from_template_spec(self) -> None:
        """A renderer built from a TemplateSpec should use its syntax and fragments."""
        spec = TemplateSpec(syntax="[[variable]]", fragments={"greet": "Hello [[name]]"})
        renderer = TemplateRenderer.from_template_spec(spec)

        assert renderer.syntax == "[[variable]]"
        assert renderer.render("[[greet]]!", variables={"name": "Ann"}) == "Hello Ann!"

    def test_two_fragment_cycle_raises(self) -> None:
        """Mutually referencing fragments should hit the pass cap."""
        renderer = TemplateRenderer()

        with pytest.raises(TemplateRenderError) as exc_info:
            renderer.render("{{a}}", fragments={"a": "{{b}}", "b": "{{a}}"})

        error = exc_info.value
        assert error.error_code == "fragment_depth_exceeded"
        assert "circular" in error.message
        assert error.details["passes"] == 10

    def test_self_referencing_fragment_raises(self) -> None:
        """A fragment that includes itself should hit the pass cap."""
        renderer = TemplateRenderer()

        with pytest.raises(TemplateRenderError):
            renderer.render("{{loop}}", fragments={"loop": "again {{loop}}"})

    def test_chain_below_cap_succeeds(self) -> None:
        """A chain of eight fragments needs nine passes and should render."""
        renderer = TemplateRenderer()

        assert renderer.render("{{f1}}", fragments=_fragment_chain(8)) == "done"

    def test_chain_reaching_cap_is_reported_as_cycle(self) -> None:
        """A chain of nine fragments needs the full ten passes and should raise."""
        renderer = TemplateRenderer()

        with pytest.raises(TemplateRenderError) as exc_info:
            renderer.render("{{f1}}", fragments=_fragment_chain(9))

        assert exc_info.value.details == {"passes": 10, "max_passes": 10}

    def test_configured_pass_cap(self) -> None:
        """The pass cap should come from the config."""
        renderer = TemplateRenderer(config=PromptPackConfig(max_fragment_passes=3))

        assert renderer.render("{{f1}}", fragments=_fragment_chain(1)) == "done"
        with pytest.raises(TemplateRenderError):
            renderer.render("{{f1}}", fragments=_fragment_chain(2))

    def test_render_context(self) -> None:
        """An explicit RenderContext should drive a single render."""
        renderer = TemplateRenderer()
        context = RenderContext(
            variables={"name": "Ann"},
            fragments={"greet": "Hi {{name}}"},
            allow_undefined=True,
            max_fragment_passes=5,
        )

        assert renderer.render_context("{{greet}} {{x}}", context) == "Hi Ann {{x}}"


class TestRenderProperties:
    """Tests for whole-render properties."""

    def test_full_resolution_leaves_no_delimiters(self) -> None:
        """A fully resolvable template should render with no placeholder tokens left."""
        renderer = TemplateRenderer()

        result = renderer.render(
            "{{header}} Hello {{name}}, see {{footer}}",
            variables={"name": "Ann", "team": "Ops"},
            fragments={"header": "[{{team}}]", "footer": "docs"},
        )

        assert result == "[Ops] Hello Ann, see docs"
        assert "{{" not in result
        assert "}}" not in result

    def test_rendering_resolved_text_is_idempotent(self) -> None:
        """Rendering already-resolved text again should not change it."""
        renderer = TemplateRenderer()
        rendered = renderer.render("You are a {{role}}.", variables={"role": "agent"})

        assert renderer.render(rendered, variables={}, fragments={}) == rendered
