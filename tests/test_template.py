"""Tests for PromptPackTemplate."""

import logging
from types import SimpleNamespace

import pytest

from promptpack.config import PromptPackConfig
from promptpack.errors import (
    GuardrailViolationError,
    PromptNotFoundError,
    TemplateRenderError,
    VariableValidationError,
)
from promptpack.models import PromptPack
from promptpack.packs.registry import PromptPackRegistry
from promptpack.template import PromptPackTemplate, create_prompt_pack_template


class TestTemplateConstruction:
    """Tests for creating templates."""

    def test_unknown_prompt_raises(self, pack: PromptPack) -> None:
        """Binding to a prompt the pack does not define should fail."""
        with pytest.raises(PromptNotFoundError, match="Prompt 'missing' not found in pack"):
            PromptPackTemplate(pack, "missing")

    def test_input_variables(self, pack: PromptPack) -> None:
        """Input variables should list the declared variable names."""
        template = PromptPackTemplate(pack, "support")

        assert template.input_variables == ["role", "company", "tone"]

    def test_from_registry(self, pack: PromptPack) -> None:
        """Templates should be creatable from a registry."""
        registry = PromptPackRegistry()
        registry.register(pack)

        template = PromptPackTemplate.from_registry(registry, "customer-support", "summarize")

        assert template.prompt.name == "Summarizer"

    def test_factory(self, pack: PromptPack) -> None:
        """create_prompt_pack_template should forward options."""
        template = create_prompt_pack_template(pack, "support", model_id="claude")

        assert template.model_id == "claude"

    def test_serialize(self, pack: PromptPack) -> None:
        """serialize should return a reference to pack, prompt and model."""
        template = PromptPackTemplate(pack, "support", model_id="gpt-4")

        assert template.serialize() == {
            "_type": "promptpack",
            "pack_id": "customer-support",
            "prompt_id": "support",
            "model_id": "gpt-4",
        }


class TestModelOverrides:
    """Tests for model-specific template and parameter overrides."""

    def test_base_template_without_model(self, pack: PromptPack) -> None:
        """Without a model id the base template should be used."""
        template = PromptPackTemplate(pack, "support")

        assert template.get_system_template() == pack.prompts["support"].system_template

    def test_prefix_and_suffix(self, pack: PromptPack) -> None:
        """Prefix and suffix overrides should wrap the base template."""
        template = PromptPackTemplate(pack, "support", model_id="gpt-4")

        assert template.get_system_template() == (
            "[GPT-4] You are a {{role}} for {{company}}. {{guidelines}} [END]"
        )

    def test_full_replacement(self, pack: PromptPack) -> None:
        """A full override template should replace the base template."""
        template = PromptPackTemplate(pack, "support", model_id="claude")

        assert template.format(role="agent") == "Claude mode for Acme."

    def test_unknown_model_uses_base(self, pack: PromptPack) -> None:
        """A model without overrides should see the base template."""
        template = PromptPackTemplate(pack, "support", model_id="other")

        assert template.get_system_template() == pack.prompts["support"].system_template

    def test_parameters_merged(self, pack: PromptPack) -> None:
        """Override parameters should be merged over the base parameters."""
        base = PromptPackTemplate(pack, "support").get_parameters()
        merged = PromptPackTemplate(pack, "support", model_id="gpt-4").get_parameters()

        assert base.temperature == 0.7
        assert merged.temperature == 0.2
        assert merged.max_tokens == 500

    def test_parameters_absent(self, pack: PromptPack) -> None:
        """Prompts without parameters should return None."""
        assert PromptPackTemplate(pack, "summarize").get_parameters() is None


class TestFormat:
    """Tests for PromptPackTemplate.format."""

    def test_format_with_defaults_and_fragments(self, pack: PromptPack) -> None:
        """Defaults and fragments should be applied when rendering."""
        template = PromptPackTemplate(pack, "support")

        result = template.format(role="agent")

        assert result == "You are a agent for Acme. Be polite to Acme customers."

    def test_format_with_model_override(self, pack: PromptPack) -> None:
        """Rendering should use the overridden template."""
        template = PromptPackTemplate(pack, "support", model_id="gpt-4")

        result = template.format(role="agent", company="Globex")

        assert result == "[GPT-4] You are a agent for Globex. Be polite to Globex customers. [END]"

    def test_missing_required_variable(self, pack: PromptPack) -> None:
        """A missing required variable should fail validation."""
        template = PromptPackTemplate(pack, "support")

        with pytest.raises(VariableValidationError) as exc_info:
            template.format()

        assert exc_info.value.variable == "role"
        assert exc_info.value.rule == "required"

    def test_constraint_violation(self, pack: PromptPack) -> None:
        """Constraint violations should be reported before rendering."""
        template = PromptPackTemplate(pack, "summarize")

        assert template.format(max_words=50) == "Summarize in 50 words."
        with pytest.raises(VariableValidationError) as exc_info:
            template.format(max_words=5)

        assert exc_info.value.rule == "minimum"

    def test_validation_disabled(self, pack: PromptPack) -> None:
        """With validation off, missing variables should surface as render errors."""
        template = PromptPackTemplate(pack, "support", validate=False)

        assert template.format(role="agent", tone="loud").startswith("You are a agent")
        with pytest.raises(TemplateRenderError) as exc_info:
            template.format()

        assert exc_info.value.placeholder == "role"

    def test_validation_disabled_by_config(self, pack: PromptPack) -> None:
        """The config should supply the default validation policy."""
        config = PromptPackConfig(validate_variables=False, allow_undefined=True)
        template = PromptPackTemplate(pack, "support", config=config)

        assert template.format() == "You are a {{role}} for Acme. Be polite to Acme customers."


class TestPartial:
    """Tests for PromptPackTemplate.partial."""

    def test_partial_prefills_values(self, pack: PromptPack) -> None:
        """Partial values should be used by format and hidden from input variables."""
        template = PromptPackTemplate(pack, "support").partial(role="bot")

        assert template.input_variables == ["company", "tone"]
        assert template.format() == "You are a bot for Acme. Be polite to Acme customers."

    def test_format_values_override_partial(self, pack: PromptPack) -> None:
        """Values passed to format should win over partial values."""
        template = PromptPackTemplate(pack, "support").partial(role="bot")

        assert template.format(role="human").startswith("You are a human")

    def test_partial_returns_new_template(self, pack: PromptPack) -> None:
        """partial should not modify the original template."""
        original = PromptPackTemplate(pack, "support", model_id="gpt-4")

        partial = original.partial(role="bot")

        assert partial is not original
        assert original.partial_variables == {}
        assert partial.model_id == "gpt-4"


class TestToolsAndGuardrails:
    """Tests for tool and guardrail accessors."""

    def test_accessors(self, pack: PromptPack) -> None:
        """Tools, policy, validators and media should come from the prompt."""
        support = PromptPackTemplate(pack, "support")
        summarize = PromptPackTemplate(pack, "summarize")

        assert support.get_tools() == ["lookup_order", "refund"]
        assert support.get_tool_policy().max_rounds == 2
        assert [v.type for v in support.get_validators()] == ["banned_words", "max_length"]
        assert support.is_multimodal() is False
        assert summarize.is_multimodal() is True
        assert summarize.get_media_config()["supported_types"] == ["image"]

    def test_filter_tools(self, pack: PromptPack, caplog: pytest.LogCaptureFixture) -> None:
        """filter_tools should keep allowed tools and warn about mismatches."""
        template = PromptPackTemplate(pack, "support")
        tools = [
            SimpleNamespace(name="escalate"),
            {"name": "lookup_order"},
        ]

        with caplog.at_level(logging.WARNING, logger="promptpack.template"):
            filtered = template.filter_tools(tools)

        assert filtered == [{"name": "lookup_order"}]
        assert "not provided: refund" in caplog.text
        assert "Filtered out 1 tool(s)" in caplog.text
        assert "escalate" in caplog.text

    def test_filter_tools_without_warnings(
        self, pack: PromptPack, caplog: pytest.LogCaptureFixture
    ) -> None:
        """warn=False should filter silently."""
        template = PromptPackTemplate(pack, "support")

        with caplog.at_level(logging.WARNING, logger="promptpack.template"):
            filtered = template.filter_tools([{"name": "escalate"}], warn=False)

        assert filtered == []
        assert caplog.text == ""

    def test_filter_tools_without_allow_list(self, pack: PromptPack) -> None:
        """A prompt without tools should accept every tool."""
        template = PromptPackTemplate(pack, "summarize")
        tools = [{"name": "a"}, {"name": "b"}]

        assert template.filter_tools(tools) == tools

    def test_report_only_guardrail_pipeline(self, pack: PromptPack) -> None:
        """The default pipeline should report failures without raising."""
        pipeline = PromptPackTemplate(pack, "support").create_guardrail_pipeline()

        report = pipeline.validate("We guarantee a refund")

        assert report.passed is False
        assert report.failed[0].validator_type == "banned_words"

    def test_strict_guardrail_pipeline(self, pack: PromptPack) -> None:
        """A strict pipeline should raise for fail_on_violation guardrails."""
        pipeline = PromptPackTemplate(pack, "support").create_guardrail_pipeline(strict=True)

        with pytest.raises(GuardrailViolationError) as exc_info:
            pipeline.validate("We guarantee a refund")

        assert exc_info.value.validator_type == "banned_words"
