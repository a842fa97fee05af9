"""Observability helpers: structured logging configuration."""

from promptpack.observability.logging import (
    add_prompt_context,
    bind_prompt_context,
    clear_prompt_context,
    get_logger,
    get_prompt_context,
    prompt_context,
    setup_logging,
)

__all__ = [
    "add_prompt_context",
    "bind_prompt_context",
    "clear_prompt_context",
    "get_logger",
    "get_prompt_context",
    "prompt_context",
    "setup_logging",
]
