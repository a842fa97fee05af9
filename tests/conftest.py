"""Pytest configuration and shared fixtures for the test suite."""

from typing import Any, Iterator

import pytest

from promptpack.models import PromptPack
from promptpack.observability.logging import clear_prompt_context


@pytest.fixture
def pack_data() -> dict[str, Any]:
    """Return a pack document exercising fragments, tools, overrides and guardrails."""
    return {
        "$schema": "https://promptpack.org/schema/v1.json",
        "id": "customer-support",
        "name": "Customer Support",
        "version": "1.0.0",
        "description": "Prompts for a customer support assistant",
        "template_engine": {
            "version": "v1",
            "syntax": "{{variable}}",
            "features": ["basic_substitution", "fragments"],
        },
        "fragments": {
            "guidelines": "Be polite to {{company}} customers.",
        },
        "tools": {
            "lookup_order": {
                "name": "lookup_order",
                "description": "Look up an order by id",
                "parameters": {
                    "type": "object",
                    "properties": {"order_id": {"type": "string"}},
                    "required": ["order_id"],
                },
            },
            "refund": {"name": "refund", "description": "Issue a refund"},
            "escalate": {"name": "escalate", "description": "Escalate to a human"},
        },
        "prompts": {
            "support": {
                "id": "support",
                "name": "Support Agent",
                "version": "1.0.0",
                "system_template": "You are a {{role}} for {{company}}. {{guidelines}}",
                "variables": [
                    {"name": "role", "type": "string", "required": True},
                    {
                        "name": "company",
                        "type": "string",
                        "required": True,
                        "default": "Acme",
                    },
                    {
                        "name": "tone",
                        "type": "string",
                        "validation": {"enum": ["formal", "casual"]},
                    },
                ],
                "tools": ["lookup_order", "refund"],
                "tool_policy": {
                    "tool_choice": "required",
                    "max_rounds": 2,
                    "max_tool_calls_per_turn": 3,
                    "blocklist": ["refund"],
                },
                "parameters": {"temperature": 0.7, "max_tokens": 500},
                "validators": [
                    {
                        "type": "banned_words",
                        "enabled": True,
                        "fail_on_violation": True,
                        "params": {"words": ["guarantee"]},
                    },
                    {
                        "type": "max_length",
                        "enabled": True,
                        "params": {"max_characters": 200},
                    },
                ],
                "model_overrides": {
                    "gpt-4": {
                        "system_template_prefix": "[GPT-4] ",
                        "system_template_suffix": " [END]",
                        "parameters": {"temperature": 0.2},
                    },
                    "claude": {"system_template": "Claude mode for {{company}}."},
                },
            },
            "summarize": {
                "id": "summarize",
                "name": "Summarizer",
                "version": "1.0.0",
                "system_template": "Summarize in {{max_words}} words.",
                "variables": [
                    {
                        "name": "max_words",
                        "type": "number",
                        "required": True,
                        "validation": {"minimum": 10, "maximum": 500},
                    }
                ],
                "media": {"enabled": True, "supported_types": ["image"]},
            },
        },
        "metadata": {"domain": "support"},
    }


@pytest.fixture
def pack(pack_data: dict[str, Any]) -> PromptPack:
    """Return the sample pack as a validated model."""
    return PromptPack.model_validate(pack_data)


@pytest.fixture(autouse=True)
def reset_prompt_context() -> Iterator[None]:
    """Clear prompt logging context after each test."""
    yield
    clear_prompt_context()
