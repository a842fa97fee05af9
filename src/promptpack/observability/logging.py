"""Structured logging configuration with prompt context support.

This module sets up structured logging using structlog with JSON or console
output. Library modules log through the standard ``logging`` module; the
root handler installed by setup_logging formats those records with the
same structlog processor chain and merges the pack/prompt context bound
for the current call.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Optional

import structlog

from promptpack.config import PromptPackConfig

# Pack and prompt being rendered or validated in the current context
_prompt_context_var: ContextVar[Optional[dict[str, str]]] = ContextVar(
    "promptpack_prompt_context", default=None
)


class _PromptPackHandler(logging.StreamHandler):
    """Root handler installed by setup_logging, replaced on reconfiguration."""


def add_prompt_context(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add bound pack/prompt identifiers to a log event.

    Args:
        logger: Logger instance
        method_name: Log method name (info, error, etc.)
        event_dict: Event dictionary to modify

    Returns:
        Modified event dictionary with pack_id/prompt_id when bound
    """
    prompt_context = _prompt_context_var.get()
    if prompt_context:
        for key, value in prompt_context.items():
            event_dict.setdefault(key, value)
    return event_dict


def setup_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    config: Optional[PromptPackConfig] = None,
) -> None:
    """Configure structured logging with structlog.

    Both structlog loggers and standard library loggers (including the
    package's own ``promptpack.*`` loggers) are rendered by a single
    handler on the root logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: If True, output logs in JSON format; otherwise use console format
        config: Optional configuration whose log settings override the arguments

    Example:
        >>> setup_logging(log_level="DEBUG", json_logs=False)
        >>> logger = get_logger(__name__)
        >>> logger.info("pack_registered", pack_id="support")
    """
    if config is not None:
        log_level = config.log_level
        json_logs = config.json_logs

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        add_prompt_context,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_logs:
        renderers = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta] + renderers,
    )
    handler = _PromptPackHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if isinstance(existing, _PromptPackHandler):
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper()))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def bind_prompt_context(pack_id: str, prompt_id: Optional[str] = None) -> None:
    """Bind the pack (and prompt) being processed to the current context.

    Args:
        pack_id: Identifier of the pack in use
        prompt_id: Optional identifier of the prompt in use
    """
    _prompt_context_var.set(_build_prompt_context(pack_id, prompt_id))


@contextmanager
def prompt_context(pack_id: str, prompt_id: Optional[str] = None) -> Iterator[None]:
    """Bind pack/prompt identifiers for the duration of a block.

    The previously bound context is restored on exit.

    Example:
        >>> with prompt_context("support-pack", "triage"):
        ...     logging.getLogger("promptpack").info("rendering")
    """
    token = _prompt_context_var.set(_build_prompt_context(pack_id, prompt_id))
    try:
        yield
    finally:
        _prompt_context_var.reset(token)


def _build_prompt_context(pack_id: str, prompt_id: Optional[str]) -> dict[str, str]:
    context = {"pack_id": pack_id}
    if prompt_id:
        context["prompt_id"] = prompt_id
    return context


def get_prompt_context() -> Optional[dict[str, str]]:
    """Return the pack/prompt identifiers bound to the current context."""
    return _prompt_context_var.get()


def clear_prompt_context() -> None:
    """Clear any pack/prompt identifiers from the current context."""
    _prompt_context_var.set(None)
