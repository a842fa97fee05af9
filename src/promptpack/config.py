"""Library configuration models and utilities.

This module provides configuration for rendering and logging behavior,
with sensible defaults and loading from environment variables.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from promptpack.models import DEFAULT_SYNTAX

DEFAULT_MAX_FRAGMENT_PASSES = 10

_TRUE_VALUES = ("true", "1", "yes")


class PromptPackConfig(BaseModel):
    """Global promptpack configuration.

    Attributes:
        max_fragment_passes: Fragment substitution pass cap before a
            cycle/depth error is raised
        allow_undefined: Leave unresolved placeholders in place instead of raising
        validate_variables: Validate variables against their descriptors
            before rendering
        default_syntax: Placeholder syntax used when none is configured
        log_level: Logging level for setup_logging
        json_logs: Emit JSON logs instead of console output

    Example:
        >>> config = PromptPackConfig(max_fragment_passes=5, allow_undefined=True)
        >>> config.max_fragment_passes
        5
    """

    model_config = ConfigDict(frozen=True)

    max_fragment_passes: int = Field(
        default=DEFAULT_MAX_FRAGMENT_PASSES, ge=1, description="Fragment pass cap"
    )
    allow_undefined: bool = Field(default=False, description="Tolerate undefined placeholders")
    validate_variables: bool = Field(default=True, description="Validate variables on format")
    default_syntax: str = Field(default=DEFAULT_SYNTAX, description="Placeholder syntax")
    log_level: str = Field(default="INFO", description="Logging level")
    json_logs: bool = Field(default=True, description="JSON log output")

    @field_validator("default_syntax")
    @classmethod
    def validate_syntax_has_sentinel(cls, value: str) -> str:
        """Validate that the syntax marks where the placeholder name goes.

        Args:
            value: The syntax to validate

        Returns:
            The validated syntax

        Raises:
            ValueError: If the sentinel word is missing
        """
        if "variable" not in value.lower():
            raise ValueError("default_syntax must contain the word 'variable'")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Normalize and validate the logging level name.

        Args:
            value: The level name to validate

        Returns:
            The upper-cased level name

        Raises:
            ValueError: If the level is unknown
        """
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level


def get_default_config() -> PromptPackConfig:
    """Get the default configuration.

    Returns:
        PromptPackConfig with default values
    """
    return PromptPackConfig()


def load_config_from_env() -> PromptPackConfig:
    """Load configuration from environment variables.

    Automatically loads variables from a .env file if present.

    Reads:
    - PROMPTPACK_MAX_FRAGMENT_PASSES: Fragment substitution pass cap
    - PROMPTPACK_ALLOW_UNDEFINED: Tolerate undefined placeholders (true/false)
    - PROMPTPACK_VALIDATE_VARIABLES: Validate variables before rendering (true/false)
    - PROMPTPACK_DEFAULT_SYNTAX: Placeholder syntax
    - PROMPTPACK_LOG_LEVEL: Logging level
    - PROMPTPACK_JSON_LOGS: JSON log output (true/false)

    Returns:
        PromptPackConfig loaded from environment

    Example:
        >>> import os
        >>> os.environ["PROMPTPACK_MAX_FRAGMENT_PASSES"] = "20"
        >>> load_config_from_env().max_fragment_passes
        20
    """
    load_dotenv()

    max_fragment_passes = int(
        os.getenv("PROMPTPACK_MAX_FRAGMENT_PASSES", str(DEFAULT_MAX_FRAGMENT_PASSES))
    )
    allow_undefined = os.getenv("PROMPTPACK_ALLOW_UNDEFINED", "false").lower() in _TRUE_VALUES
    validate_variables = (
        os.getenv("PROMPTPACK_VALIDATE_VARIABLES", "true").lower() in _TRUE_VALUES
    )
    json_logs = os.getenv("PROMPTPACK_JSON_LOGS", "true").lower() in _TRUE_VALUES

    return PromptPackConfig(
        max_fragment_passes=max_fragment_passes,
        allow_undefined=allow_undefined,
        validate_variables=validate_variables,
        default_syntax=os.getenv("PROMPTPACK_DEFAULT_SYNTAX", DEFAULT_SYNTAX),
        log_level=os.getenv("PROMPTPACK_LOG_LEVEL", "INFO"),
        json_logs=json_logs,
    )
