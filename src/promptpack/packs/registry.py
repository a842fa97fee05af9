"""Prompt pack registry for centralized pack management.

This module provides a thread-safe registry for storing and retrieving
loaded prompt packs and the prompts they define.
"""

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, Optional, Union

from promptpack.errors import PackNotFoundError, PromptNotFoundError
from promptpack.models import PromptDefinition, PromptPack
from promptpack.packs.loader import load_pack_from_file, load_packs_from_directory

if TYPE_CHECKING:
    from promptpack.template import PromptPackTemplate

logger = logging.getLogger(__name__)


class PromptPackRegistry:
    """Thread-safe registry of prompt packs.

    Example:
        >>> registry = PromptPackRegistry()
        >>> registry.register(pack)
        >>> registry.get_prompt("support", "triage").name
        'Triage'
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._packs: dict[str, PromptPack] = {}
        self._lock = threading.RLock()

    def register(self, pack: PromptPack) -> None:
        """Register a pack, replacing any pack with the same id.

        Args:
            pack: Pack to register
        """
        with self._lock:
            if pack.id in self._packs:
                logger.warning(f"Replacing registered PromptPack '{pack.id}'")
            self._packs[pack.id] = pack
        logger.debug(f"Registered PromptPack '{pack.id}' with {len(pack.prompts)} prompt(s)")

    def register_many(self, packs: Iterable[PromptPack]) -> None:
        """Register several packs."""
        for pack in packs:
            self.register(pack)

    def load_and_register(self, path: Union[str, Path], validate: bool = False) -> PromptPack:
        """Load a pack file and register it.

        Args:
            path: Pack file path
            validate: Run pack-level validation

        Returns:
            The registered pack

        Raises:
            PackLoadError: If the file cannot be loaded
        """
        pack = load_pack_from_file(path, validate=validate)
        self.register(pack)
        return pack

    def get_pack(self, pack_id: str) -> PromptPack:
        """Return a pack by id.

        Raises:
            PackNotFoundError: If the pack is not registered
        """
        with self._lock:
            pack = self._packs.get(pack_id)
        if pack is None:
            raise PackNotFoundError(pack_id)
        return pack

    def get_prompt(self, pack_id: str, prompt_id: str) -> PromptDefinition:
        """Return a prompt from a registered pack.

        Raises:
            PackNotFoundError: If the pack is not registered
            PromptNotFoundError: If the pack has no such prompt
        """
        pack = self.get_pack(pack_id)
        prompt = pack.prompts.get(prompt_id)
        if prompt is None:
            raise PromptNotFoundError(prompt_id, pack_id)
        return prompt

    def get_template(
        self, pack_id: str, prompt_id: str, model_id: Optional[str] = None, **options: Any
    ) -> "PromptPackTemplate":
        """Create a PromptPackTemplate for a registered prompt.

        Args:
            pack_id: Pack id
            prompt_id: Prompt id
            model_id: Optional model id for model overrides
            **options: Extra PromptPackTemplate keyword arguments

        Returns:
            Template bound to the prompt
        """
        from promptpack.template import PromptPackTemplate

        return PromptPackTemplate(self.get_pack(pack_id), prompt_id, model_id=model_id, **options)

    def has_pack(self, pack_id: str) -> bool:
        """Check whether a pack is registered."""
        with self._lock:
            return pack_id in self._packs

    def has_prompt(self, pack_id: str, prompt_id: str) -> bool:
        """Check whether a registered pack defines a prompt."""
        with self._lock:
            pack = self._packs.get(pack_id)
        return pack is not None and prompt_id in pack.prompts

    def list_packs(self) -> list[str]:
        """List registered pack ids in registration order."""
        with self._lock:
            return list(self._packs.keys())

    def list_prompts(self, pack_id: str) -> list[str]:
        """List prompt ids of a registered pack.

        Raises:
            PackNotFoundError: If the pack is not registered
        """
        return list(self.get_pack(pack_id).prompts.keys())

    def get_pack_metadata(self, pack_id: str) -> dict[str, Any]:
        """Summarize a registered pack.

        Returns:
            Dictionary with id, name, version, description and prompt_count
        """
        pack = self.get_pack(pack_id)
        return {
            "id": pack.id,
            "name": pack.name,
            "version": pack.version,
            "description": pack.description,
            "prompt_count": len(pack.prompts),
        }

    def unregister(self, pack_id: str) -> bool:
        """Remove a pack.

        Returns:
            True if a pack was removed, False if it was not registered
        """
        with self._lock:
            return self._packs.pop(pack_id, None) is not None

    def clear(self) -> None:
        """Remove all packs."""
        with self._lock:
            self._packs.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._packs)

    @classmethod
    def from_directory(
        cls, directory: Union[str, Path], validate: bool = False
    ) -> "PromptPackRegistry":
        """Create a registry populated from every pack file in a directory.

        Args:
            directory: Directory containing pack files
            validate: Run pack-level validation for each pack

        Returns:
            Populated registry
        """
        registry = cls()
        registry.register_many(load_packs_from_directory(directory, validate=validate))
        return registry
