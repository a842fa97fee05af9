"""PromptPack runtime.

This package loads prompt packs, renders their templates with fragments
and validated variables, governs tool usage and runs response guardrails.
"""

from promptpack.config import PromptPackConfig, get_default_config, load_config_from_env
from promptpack.enums import BuiltinGuardrail, TemplateFeature, ToolChoice, VariableType
from promptpack.errors import (
    GuardrailViolationError,
    MissingGuardrailImplementationError,
    PackLoadError,
    PackNotFoundError,
    PromptNotFoundError,
    PromptPackError,
    TemplateRenderError,
    VariableValidationError,
)
from promptpack.guardrails import (
    BUILTIN_GUARDRAILS,
    GuardrailOutcome,
    GuardrailPipeline,
    GuardrailRegistry,
    GuardrailReport,
    all_guardrails_passed,
    create_guardrail_pipeline,
    create_strict_guardrail_pipeline,
    get_failed_guardrails,
    is_builtin_guardrail,
    validate_response,
)
from promptpack.models import (
    GenerationParameters,
    GuardrailDescriptor,
    ModelOverride,
    PromptDefinition,
    PromptPack,
    TemplateEngineConfig,
    ToolDefinition,
    ToolPolicy,
    VariableConstraints,
    VariableDescriptor,
)
from promptpack.packs import (
    PromptPackRegistry,
    load_pack_from_dict,
    load_pack_from_file,
    load_pack_from_string,
    load_packs_from_directory,
)
from promptpack.template import PromptPackTemplate, create_prompt_pack_template
from promptpack.templating import RenderContext, TemplateRenderer, TemplateSpec, VariableValidator
from promptpack.tools import (
    ToolExecutionManager,
    convert_tools,
    filter_tools_for_prompt,
    get_tool_choice,
)

__version__ = "0.1.0"

__all__ = [
    # Config
    "PromptPackConfig",
    "get_default_config",
    "load_config_from_env",
    # Enums
    "BuiltinGuardrail",
    "TemplateFeature",
    "ToolChoice",
    "VariableType",
    # Errors
    "GuardrailViolationError",
    "MissingGuardrailImplementationError",
    "PackLoadError",
    "PackNotFoundError",
    "PromptNotFoundError",
    "PromptPackError",
    "TemplateRenderError",
    "VariableValidationError",
    # Guardrails
    "BUILTIN_GUARDRAILS",
    "GuardrailOutcome",
    "GuardrailPipeline",
    "GuardrailRegistry",
    "GuardrailReport",
    "all_guardrails_passed",
    "create_guardrail_pipeline",
    "create_strict_guardrail_pipeline",
    "get_failed_guardrails",
    "is_builtin_guardrail",
    "validate_response",
    # Models
    "GenerationParameters",
    "GuardrailDescriptor",
    "ModelOverride",
    "PromptDefinition",
    "PromptPack",
    "TemplateEngineConfig",
    "ToolDefinition",
    "ToolPolicy",
    "VariableConstraints",
    "VariableDescriptor",
    # Packs
    "PromptPackRegistry",
    "load_pack_from_dict",
    "load_pack_from_file",
    "load_pack_from_string",
    "load_packs_from_directory",
    # Templates
    "PromptPackTemplate",
    "RenderContext",
    "TemplateRenderer",
    "TemplateSpec",
    "VariableValidator",
    "create_prompt_pack_template",
    # Tools
    "ToolExecutionManager",
    "convert_tools",
    "filter_tools_for_prompt",
    "get_tool_choice",
]
