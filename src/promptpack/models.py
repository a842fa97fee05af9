"""Pydantic models for prompt pack documents.

This module defines data models for packs, prompts, variable descriptors,
guardrail descriptors, tools and model overrides. Models are frozen: a pack
is loaded once and never mutated for the lifetime of the process.
"""

import re
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from promptpack.enums import TemplateFeature, ToolChoice, VariableType

DEFAULT_SYNTAX = "{{variable}}"

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


class TemplateEngineConfig(BaseModel):
    """Template engine configuration for a pack.

    Attributes:
        version: Template engine version string
        syntax: Placeholder syntax; the word ``variable`` marks the name slot
        features: Engine features the pack relies on
    """

    model_config = ConfigDict(frozen=True)

    version: str = "v1"
    syntax: str = DEFAULT_SYNTAX
    features: list[TemplateFeature] = Field(default_factory=list)


class VariableConstraints(BaseModel):
    """Constraint set attached to a variable descriptor.

    Attributes:
        pattern: Regex a string value must match
        min_length: Minimum string length
        max_length: Maximum string length
        minimum: Minimum numeric value
        maximum: Maximum numeric value
        enum: Allowed values, checked for any type
    """

    model_config = ConfigDict(frozen=True)

    pattern: Optional[str] = None
    min_length: Optional[int] = Field(default=None, ge=0)
    max_length: Optional[int] = Field(default=None, ge=0)
    minimum: Optional[Union[int, float]] = None
    maximum: Optional[Union[int, float]] = None
    enum: Optional[list[Any]] = None


class VariableDescriptor(BaseModel):
    """Declared schema for a single template variable.

    Attributes:
        name: Variable name, unique within a prompt
        type: Declared value type
        required: Whether a value (or default) must be present
        default: Value applied when the caller omits the variable
        description: Optional human-readable description
        example: Optional example value
        validation: Optional constraint set
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    type: VariableType
    required: bool = False
    default: Any = None
    description: Optional[str] = None
    example: Any = None
    validation: Optional[VariableConstraints] = None

    @field_validator("name")
    @classmethod
    def validate_name_format(cls, value: str) -> str:
        """Validate that the variable name is a placeholder identifier.

        Args:
            value: The name to validate

        Returns:
            The validated name

        Raises:
            ValueError: If the name cannot appear in a placeholder
        """
        if not _IDENTIFIER_RE.match(value):
            raise ValueError(
                "Variable name must start with a letter or underscore and contain "
                "only letters, digits, and underscores"
            )
        return value

    @property
    def has_default(self) -> bool:
        """Whether a default was declared, including an explicit null."""
        return "default" in self.model_fields_set


class GuardrailDescriptor(BaseModel):
    """Declared guardrail (validator) applied to generated responses.

    Attributes:
        type: Guardrail type tag, built-in or custom
        enabled: Disabled guardrails are neither reconciled nor executed
        fail_on_violation: Whether a failure may escalate to an exception
        params: Parameters interpreted per guardrail type
    """

    model_config = ConfigDict(frozen=True)

    type: str = Field(..., min_length=1)
    enabled: bool = True
    fail_on_violation: bool = False
    params: dict[str, Any] = Field(default_factory=dict)


class ToolDefinition(BaseModel):
    """Tool definition in function-calling format."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    description: str = ""
    parameters: Optional[dict[str, Any]] = None


class ToolPolicy(BaseModel):
    """Tool usage policy for a prompt.

    Attributes:
        tool_choice: How the model may pick tools
        max_rounds: Maximum tool rounds per turn
        max_tool_calls_per_turn: Maximum tool calls per turn
        blocklist: Tool names that are never exposed
    """

    model_config = ConfigDict(frozen=True)

    tool_choice: Optional[ToolChoice] = None
    max_rounds: Optional[int] = Field(default=None, ge=0)
    max_tool_calls_per_turn: Optional[int] = Field(default=None, ge=0)
    blocklist: list[str] = Field(default_factory=list)


class GenerationParameters(BaseModel):
    """LLM generation parameters."""

    model_config = ConfigDict(frozen=True)

    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None


class ModelOverride(BaseModel):
    """Model-specific adjustments to a prompt.

    A full ``system_template`` replaces the base template; otherwise the
    prefix and suffix wrap it.
    """

    model_config = ConfigDict(frozen=True)

    system_template_prefix: Optional[str] = None
    system_template_suffix: Optional[str] = None
    system_template: Optional[str] = None
    parameters: Optional[GenerationParameters] = None


class PromptDefinition(BaseModel):
    """Single prompt (task type) within a pack.

    Attributes:
        id: Prompt identifier
        name: Human-readable prompt name
        description: Optional description
        version: Prompt version string
        system_template: Template rendered into the system prompt
        variables: Variable descriptors in declaration order
        tools: Names of tools the prompt may use
        tool_policy: Optional tool usage policy
        parameters: Optional generation parameters
        validators: Guardrail descriptors in declaration order
        model_overrides: Per-model adjustments keyed by model id
        media: Opaque multimodal configuration
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    version: str = Field(..., min_length=1)
    system_template: str
    variables: list[VariableDescriptor] = Field(default_factory=list)
    tools: list[str] = Field(default_factory=list)
    tool_policy: Optional[ToolPolicy] = None
    parameters: Optional[GenerationParameters] = None
    validators: list[GuardrailDescriptor] = Field(default_factory=list)
    model_overrides: dict[str, ModelOverride] = Field(default_factory=dict)
    media: Optional[dict[str, Any]] = None

    @field_validator("variables")
    @classmethod
    def validate_unique_variable_names(
        cls, value: list[VariableDescriptor]
    ) -> list[VariableDescriptor]:
        """Validate that variable names are unique within the prompt.

        Args:
            value: The variable descriptors to validate

        Returns:
            The validated descriptors

        Raises:
            ValueError: If duplicate variable names are found
        """
        names = [variable.name for variable in value]
        if len(names) != len(set(names)):
            duplicates = sorted({name for name in names if names.count(name) > 1})
            raise ValueError(f"Duplicate variable names found: {', '.join(duplicates)}")
        return value


class PromptPack(BaseModel):
    """Complete prompt pack document.

    Attributes:
        id: Pack identifier
        name: Human-readable pack name
        version: Pack version string
        description: Optional description
        template_engine: Placeholder syntax and features
        prompts: Prompt definitions keyed by prompt id
        fragments: Reusable template fragments keyed by name
        tools: Tool definitions keyed by tool name
        metadata: Free-form pack metadata
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    schema_url: Optional[str] = Field(default=None, alias="$schema")
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    version: str = Field(..., min_length=1)
    description: Optional[str] = None
    template_engine: TemplateEngineConfig = Field(default_factory=TemplateEngineConfig)
    prompts: dict[str, PromptDefinition] = Field(default_factory=dict)
    fragments: dict[str, str] = Field(default_factory=dict)
    tools: dict[str, ToolDefinition] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_tool_keys(self) -> "PromptPack":
        """Validate that tool map keys match the tool names.

        Returns:
            The validated pack

        Raises:
            ValueError: If a tool is registered under a different name
        """
        for key, tool in self.tools.items():
            if key != tool.name:
                raise ValueError(f"Tool key '{key}' does not match tool name '{tool.name}'")
        return self
