"""Prompt template bound to a single prompt of a pack.

PromptPackTemplate is the main entry point for rendering a pack prompt. It
applies model overrides, resolves variables against their descriptors,
renders the system template with the pack's fragments and exposes the
prompt's tools and guardrails.
"""

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional, Sequence

from promptpack.config import PromptPackConfig
from promptpack.errors import PromptNotFoundError
from promptpack.guardrails.pipeline import GuardrailPipeline
from promptpack.guardrails.results import CustomGuardrailFn
from promptpack.models import (
    GenerationParameters,
    GuardrailDescriptor,
    ModelOverride,
    PromptDefinition,
    PromptPack,
    ToolPolicy,
)
from promptpack.observability.logging import prompt_context
from promptpack.templating.renderer import TemplateRenderer
from promptpack.templating.variables import VariableValidator

if TYPE_CHECKING:
    from promptpack.packs.registry import PromptPackRegistry

logger = logging.getLogger(__name__)

PROMPT_TYPE = "promptpack"


def _tool_name(tool: Any) -> Optional[str]:
    if isinstance(tool, Mapping):
        return tool.get("name")
    return getattr(tool, "name", None)


class PromptPackTemplate:
    """Renderable view of one prompt in a pack.

    Attributes:
        pack: The pack containing the prompt
        prompt: The prompt definition
        model_id: Model id used to select model overrides
        partial_variables: Values pre-filled by partial()

    Example:
        >>> template = PromptPackTemplate(pack, "support")
        >>> template.format(role="agent", company="Acme")
        'You are a agent for Acme.'
    """

    def __init__(
        self,
        pack: PromptPack,
        prompt_id: str,
        model_id: Optional[str] = None,
        partial_variables: Optional[Mapping[str, Any]] = None,
        validate: Optional[bool] = None,
        allow_undefined: Optional[bool] = None,
        config: Optional[PromptPackConfig] = None,
    ) -> None:
        """Initialize the template.

        Args:
            pack: Pack containing the prompt
            prompt_id: Prompt id within the pack
            model_id: Optional model id for model overrides
            partial_variables: Pre-filled variable values
            validate: Validate variables before rendering (default from config)
            allow_undefined: Keep undefined placeholders (default from config)
            config: Optional configuration

        Raises:
            PromptNotFoundError: If the pack has no such prompt
        """
        prompt = pack.prompts.get(prompt_id)
        if prompt is None:
            raise PromptNotFoundError(prompt_id, pack.id)

        self.pack = pack
        self.prompt: PromptDefinition = prompt
        self.model_id = model_id
        self.partial_variables: dict[str, Any] = dict(partial_variables or {})

        self._config = config or PromptPackConfig()
        self._validate = self._config.validate_variables if validate is None else validate
        self._allow_undefined = allow_undefined
        self._renderer = TemplateRenderer(
            syntax=pack.template_engine.syntax,
            fragments=pack.fragments,
            config=self._config,
        )
        self._validator = VariableValidator()

    @classmethod
    def from_registry(
        cls,
        registry: "PromptPackRegistry",
        pack_id: str,
        prompt_id: str,
        **options: Any,
    ) -> "PromptPackTemplate":
        """Create a template for a prompt of a registered pack.

        Raises:
            PackNotFoundError: If the pack is not registered
            PromptNotFoundError: If the pack has no such prompt
        """
        return cls(registry.get_pack(pack_id), prompt_id, **options)

    @property
    def prompt_id(self) -> str:
        """Id of the bound prompt."""
        return self.prompt.id

    @property
    def input_variables(self) -> list[str]:
        """Declared variable names not already filled by partial()."""
        return [
            variable.name
            for variable in self.prompt.variables
            if variable.name not in self.partial_variables
        ]

    def _model_override(self) -> Optional[ModelOverride]:
        if self.model_id is None:
            return None
        return self.prompt.model_overrides.get(self.model_id)

    def get_system_template(self) -> str:
        """Return the system template with model overrides applied.

        A full replacement template wins over prefix and suffix.
        """
        template = self.prompt.system_template
        override = self._model_override()
        if override is None:
            return template

        if override.system_template:
            return override.system_template

        if override.system_template_prefix:
            template = override.system_template_prefix + template
        if override.system_template_suffix:
            template = template + override.system_template_suffix
        return template

    def get_parameters(self) -> Optional[GenerationParameters]:
        """Return generation parameters with override values merged over the base."""
        params = self.prompt.parameters
        override = self._model_override()
        if override is None or override.parameters is None:
            return params

        merged = params.model_dump(exclude_none=True) if params else {}
        merged.update(override.parameters.model_dump(exclude_none=True))
        return GenerationParameters(**merged)

    def format(self, **values: Any) -> str:
        """Render the system prompt.

        Partial values are merged under the supplied values, declared
        defaults fill what is still missing, and variables are validated
        unless validation is disabled.

        Args:
            **values: Variable values

        Returns:
            Rendered system prompt

        Raises:
            VariableValidationError: If a variable is missing or invalid
            TemplateRenderError: If rendering fails
        """
        merged = {**self.partial_variables, **values}

        with prompt_context(self.pack.id, self.prompt.id):
            resolved = self._validator.apply_defaults(self.prompt.variables, merged)

            if self._validate:
                self._validator.validate(self.prompt.variables, resolved)

            logger.debug(
                f"Formatting prompt '{self.prompt.id}' of pack '{self.pack.id}' "
                f"with {len(resolved)} variable(s)"
            )
            return self._renderer.render(
                self.get_system_template(),
                variables=resolved,
                allow_undefined=self._allow_undefined,
            )

    def partial(self, **values: Any) -> "PromptPackTemplate":
        """Return a new template with some variables pre-filled."""
        return PromptPackTemplate(
            self.pack,
            self.prompt.id,
            model_id=self.model_id,
            partial_variables={**self.partial_variables, **values},
            validate=self._validate,
            allow_undefined=self._allow_undefined,
            config=self._config,
        )

    def get_tools(self) -> list[str]:
        """Tool names the prompt allows."""
        return list(self.prompt.tools)

    def get_tool_policy(self) -> Optional[ToolPolicy]:
        """Tool policy of the prompt, if any."""
        return self.prompt.tool_policy

    def get_validators(self) -> list[GuardrailDescriptor]:
        """Guardrail descriptors of the prompt, in declaration order."""
        return list(self.prompt.validators)

    def filter_tools(self, tools: Sequence[Any], warn: bool = True) -> list[Any]:
        """Narrow a toolset to the tools this prompt allows.

        Tools are matched by their ``name`` attribute or ``"name"`` key. A
        prompt without an allow-list accepts every tool.

        Args:
            tools: Candidate tools
            warn: Log allowed tools that were not provided and tools that
                were filtered out

        Returns:
            Allowed tools in their original order
        """
        allowed_names = self.get_tools()
        if not allowed_names:
            return list(tools)

        filtered = [tool for tool in tools if _tool_name(tool) in allowed_names]

        if warn:
            provided = {_tool_name(tool) for tool in tools}
            missing = [name for name in allowed_names if name not in provided]
            if missing:
                logger.warning(
                    f"Tools defined in prompt '{self.prompt.id}' but not provided: "
                    f"{', '.join(missing)}"
                )

            filtered_out = [
                str(_tool_name(tool)) for tool in tools if _tool_name(tool) not in allowed_names
            ]
            if filtered_out:
                logger.warning(
                    f"Filtered out {len(filtered_out)} tool(s) not allowed by prompt "
                    f"'{self.prompt.id}': {', '.join(filtered_out)}"
                )

        return filtered

    def create_guardrail_pipeline(
        self,
        custom_guardrails: Optional[Mapping[str, CustomGuardrailFn]] = None,
        strict: bool = False,
    ) -> GuardrailPipeline:
        """Build a guardrail pipeline from this prompt's validators.

        Args:
            custom_guardrails: Custom implementations keyed by guardrail type
            strict: Raise for fail_on_violation failures

        Returns:
            Reconciled GuardrailPipeline

        Raises:
            MissingGuardrailImplementationError: If a custom guardrail type
                has no implementation
        """
        return GuardrailPipeline(
            self.prompt.validators,
            custom_guardrails,
            throw_on_failure=strict,
            pack_id=self.pack.id,
            prompt_id=self.prompt.id,
        )

    def get_media_config(self) -> Optional[dict[str, Any]]:
        """Media configuration of the prompt, if any."""
        return self.prompt.media

    def is_multimodal(self) -> bool:
        """Whether the prompt enables multimodal content."""
        return bool((self.prompt.media or {}).get("enabled", False))

    def serialize(self) -> dict[str, Any]:
        """Return a reference to this template that can be stored and resolved later."""
        return {
            "_type": PROMPT_TYPE,
            "pack_id": self.pack.id,
            "prompt_id": self.prompt.id,
            "model_id": self.model_id,
        }


def create_prompt_pack_template(
    pack: PromptPack, prompt_id: str, **options: Any
) -> PromptPackTemplate:
    """Create a PromptPackTemplate for a prompt of a pack."""
    return PromptPackTemplate(pack, prompt_id, **options)
