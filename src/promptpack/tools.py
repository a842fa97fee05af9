"""Tool governance for prompt packs.

This module converts pack tool definitions into function-calling dicts,
narrows a toolset to what a prompt allows, and tracks per-turn tool usage
against a prompt's ToolPolicy.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from promptpack.enums import ToolChoice
from promptpack.models import ToolDefinition, ToolPolicy

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROUNDS = 5
DEFAULT_MAX_TOOL_CALLS_PER_TURN = 10


def convert_tools(tools: Mapping[str, ToolDefinition]) -> list[dict[str, Any]]:
    """Convert pack tool definitions into function-calling dicts.

    Args:
        tools: Tool definitions keyed by name

    Returns:
        List of ``{"name", "description", "parameters"}`` dicts; ``parameters``
        is omitted when the tool declares none
    """
    converted: list[dict[str, Any]] = []
    for tool in tools.values():
        entry: dict[str, Any] = {"name": tool.name, "description": tool.description}
        if tool.parameters is not None:
            entry["parameters"] = tool.parameters
        converted.append(entry)
    return converted


def filter_tools_for_prompt(
    all_tools: Mapping[str, ToolDefinition],
    prompt_tools: Optional[Iterable[str]],
    policy: Optional[ToolPolicy] = None,
) -> list[dict[str, Any]]:
    """Select the pack tools a prompt may use.

    A prompt without an allow-list gets no tools. Names that the pack does
    not define are dropped, and the policy blocklist is applied last.

    Args:
        all_tools: Pack tool definitions keyed by name
        prompt_tools: Tool names the prompt allows, in order
        policy: Optional tool policy

    Returns:
        Converted tool dicts in allow-list order
    """
    names = list(prompt_tools or [])
    if not names:
        return []

    allowed = [all_tools[name] for name in names if name in all_tools]

    if policy is not None and policy.blocklist:
        blocked = set(policy.blocklist)
        allowed = [tool for tool in allowed if tool.name not in blocked]

    return convert_tools({tool.name: tool for tool in allowed})


def get_tool_choice(policy: Optional[ToolPolicy] = None) -> str:
    """Return the policy's tool choice, defaulting to ``auto``."""
    if policy is None or policy.tool_choice is None:
        return ToolChoice.AUTO.value
    return policy.tool_choice.value


class ToolExecutionManager:
    """Per-turn tool usage counter enforcing a ToolPolicy.

    One manager belongs to one conversation turn; call reset() before
    reusing it for the next turn.

    Example:
        >>> manager = ToolExecutionManager(ToolPolicy(max_rounds=1))
        >>> manager.can_execute_round()
        True
        >>> manager.start_round()
        >>> manager.can_execute_round()
        False
    """

    def __init__(self, policy: Optional[ToolPolicy] = None) -> None:
        """Initialize counters for a new turn.

        Args:
            policy: Tool policy (default: auto choice, 5 rounds, 10 calls)
        """
        self.policy = policy or ToolPolicy(
            tool_choice=ToolChoice.AUTO,
            max_rounds=DEFAULT_MAX_ROUNDS,
            max_tool_calls_per_turn=DEFAULT_MAX_TOOL_CALLS_PER_TURN,
        )
        self.round_count = 0
        self.call_count = 0

    @property
    def max_rounds(self) -> int:
        """Round limit from the policy, or the default."""
        if self.policy.max_rounds is None:
            return DEFAULT_MAX_ROUNDS
        return self.policy.max_rounds

    @property
    def max_calls(self) -> int:
        """Call limit from the policy, or the default."""
        if self.policy.max_tool_calls_per_turn is None:
            return DEFAULT_MAX_TOOL_CALLS_PER_TURN
        return self.policy.max_tool_calls_per_turn

    def can_execute_round(self) -> bool:
        """Check whether another tool round is allowed."""
        return self.round_count < self.max_rounds

    def can_execute_call(self) -> bool:
        """Check whether another tool call is allowed in this turn."""
        return self.call_count < self.max_calls

    def start_round(self) -> None:
        """Record the start of a tool round."""
        self.round_count += 1
        if self.round_count > self.max_rounds:
            logger.warning(
                f"Tool round {self.round_count} exceeds policy limit of {self.max_rounds}"
            )

    def record_call(self) -> None:
        """Record a tool call."""
        self.call_count += 1
        if self.call_count > self.max_calls:
            logger.warning(f"Tool call {self.call_count} exceeds policy limit of {self.max_calls}")

    def reset(self) -> None:
        """Reset counters for a new turn."""
        self.round_count = 0
        self.call_count = 0

    def get_status(self) -> dict[str, int]:
        """Return current counters and limits.

        Returns:
            Dictionary with round_count, call_count, max_rounds and max_calls
        """
        return {
            "round_count": self.round_count,
            "call_count": self.call_count,
            "max_rounds": self.max_rounds,
            "max_calls": self.max_calls,
        }
