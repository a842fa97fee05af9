"""Prompt pack loading from JSON and YAML documents.

Loading turns a document into a validated, immutable PromptPack model.
Structural problems always raise PackLoadError; ``validate=True`` adds the
stricter pack-level checks in validate_pack.
"""

import json
import logging
from pathlib import Path
from typing import Any, Union

import yaml
from pydantic import ValidationError

from promptpack.errors import PackLoadError
from promptpack.models import PromptPack

logger = logging.getLogger(__name__)

JSON_SUFFIXES = (".json",)
YAML_SUFFIXES = (".yaml", ".yml")


def validate_pack(pack: PromptPack) -> None:
    """Run pack-level checks beyond the model schema.

    Args:
        pack: Pack to check

    Raises:
        PackLoadError: If the pack has no prompts, a prompt key does not
            match its id, a prompt has an empty template, or the template
            syntax has no placeholder sentinel
    """
    if not pack.prompts:
        raise PackLoadError("PromptPack must have at least one prompt", source=pack.id)

    if "variable" not in pack.template_engine.syntax.lower():
        raise PackLoadError(
            f"Template syntax '{pack.template_engine.syntax}' must contain the word 'variable'",
            source=pack.id,
        )

    for key, prompt in pack.prompts.items():
        if key != prompt.id:
            raise PackLoadError(
                f"Prompt key '{key}' does not match prompt id '{prompt.id}'", source=pack.id
            )
        if not prompt.system_template.strip():
            raise PackLoadError(f"Prompt '{key}' has an empty system_template", source=pack.id)


def load_pack_from_dict(
    data: dict[str, Any], validate: bool = False, source: str = "<dict>"
) -> PromptPack:
    """Build a PromptPack from an already-parsed document.

    Args:
        data: Parsed pack document
        validate: Run validate_pack after model validation
        source: Label used in error messages

    Returns:
        Validated PromptPack

    Raises:
        PackLoadError: If the document is not a valid pack
    """
    if not isinstance(data, dict):
        raise PackLoadError("Pack document must be a mapping", source=source)

    try:
        pack = PromptPack.model_validate(data)
    except ValidationError as e:
        raise PackLoadError(str(e), source=source) from e

    if validate:
        validate_pack(pack)

    return pack


def load_pack_from_string(
    text: str, format: str = "json", validate: bool = False, source: str = "<string>"
) -> PromptPack:
    """Parse a pack document from text.

    Args:
        text: Document text
        format: "json" or "yaml"
        validate: Run validate_pack after model validation
        source: Label used in error messages

    Returns:
        Validated PromptPack

    Raises:
        PackLoadError: If parsing or validation fails
        ValueError: If the format is not supported
    """
    if format == "json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise PackLoadError(f"Invalid JSON: {e}", source=source) from e
    elif format in ("yaml", "yml"):
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise PackLoadError(f"Invalid YAML: {e}", source=source) from e
    else:
        raise ValueError(f"Unsupported pack format: {format}")

    return load_pack_from_dict(data, validate=validate, source=source)


def load_pack_from_file(path: Union[str, Path], validate: bool = False) -> PromptPack:
    """Load a pack from a ``.json``, ``.yaml`` or ``.yml`` file.

    Args:
        path: File path
        validate: Run validate_pack after model validation

    Returns:
        Validated PromptPack

    Raises:
        PackLoadError: If the file cannot be read, parsed or validated
    """
    file_path = Path(path)
    suffix = file_path.suffix.lower()

    if suffix in JSON_SUFFIXES:
        format = "json"
    elif suffix in YAML_SUFFIXES:
        format = "yaml"
    else:
        raise PackLoadError(f"Unsupported file extension '{suffix}'", source=str(file_path))

    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise PackLoadError(str(e), source=str(file_path)) from e

    return load_pack_from_string(text, format=format, validate=validate, source=str(file_path))


def load_packs_from_directory(
    directory: Union[str, Path], validate: bool = False
) -> list[PromptPack]:
    """Load every pack file in a directory (non-recursive).

    Files that fail to load are skipped with a warning.

    Args:
        directory: Directory path
        validate: Run validate_pack for each pack

    Returns:
        Loaded packs, ordered by file name

    Raises:
        PackLoadError: If the directory does not exist
    """
    dir_path = Path(directory)
    if not dir_path.is_dir():
        raise PackLoadError("Not a directory", source=str(dir_path))

    packs: list[PromptPack] = []
    for file_path in sorted(dir_path.iterdir()):
        if file_path.suffix.lower() not in JSON_SUFFIXES + YAML_SUFFIXES:
            continue
        try:
            packs.append(load_pack_from_file(file_path, validate=validate))
        except PackLoadError as e:
            logger.warning(f"Skipping file {file_path.name}: {e.message}")

    return packs
