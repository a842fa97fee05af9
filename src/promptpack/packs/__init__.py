"""Prompt pack loading and registry module."""

from promptpack.packs.loader import (
    load_pack_from_dict,
    load_pack_from_file,
    load_pack_from_string,
    load_packs_from_directory,
    validate_pack,
)
from promptpack.packs.registry import PromptPackRegistry

__all__ = [
    "PromptPackRegistry",
    "load_pack_from_dict",
    "load_pack_from_file",
    "load_pack_from_string",
    "load_packs_from_directory",
    "validate_pack",
]
