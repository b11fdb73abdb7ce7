"""Modifier interface, registry and the ordered applier used by fetchers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from ctxgen.document.models import ModifierRef

logger = logging.getLogger(__name__)


class Modifier(ABC):
    """A named, stateless text transform.

    ``content_type`` is a file name, an extension or a URL; implementations
    decide from it whether they apply.
    """

    identifier: str = ""

    @abstractmethod
    def supports(self, content_type: str) -> bool:
        ...

    @abstractmethod
    def modify(self, content: str, options: dict[str, Any], content_type: str = "") -> str:
        ...


class ModifierRegistry:
    """Identifier -> Modifier lookup, owned by whoever runs the compile."""

    def __init__(self, modifiers: Iterable[Modifier] = ()) -> None:
        self._modifiers: dict[str, Modifier] = {}
        for modifier in modifiers:
            self.register(modifier)

    def register(self, modifier: Modifier) -> None:
        if not modifier.identifier:
            raise ValueError(f"{type(modifier).__name__} has no identifier")
        self._modifiers[modifier.identifier] = modifier

    def get(self, identifier: str) -> Modifier | None:
        return self._modifiers.get(identifier)

    def has(self, identifier: str) -> bool:
        return identifier in self._modifiers

    def identifiers(self) -> list[str]:
        return sorted(self._modifiers)


class ModifiersApplier:
    """Applies a fixed, ordered list of modifier references to content."""

    def __init__(self, registry: ModifierRegistry, refs: Iterable[ModifierRef] = ()) -> None:
        self._registry = registry
        self._refs: tuple[ModifierRef, ...] = tuple(refs)

    @property
    def refs(self) -> tuple[ModifierRef, ...]:
        return self._refs

    def with_modifiers(self, refs: Iterable[ModifierRef]) -> ModifiersApplier:
        """Return a new applier with *refs* appended after the current ones."""
        return ModifiersApplier(self._registry, (*self._refs, *refs))

    def apply(self, content: str, content_type: str) -> str:
        for ref in self._refs:
            if not self._registry.has(ref.name):
                logger.warning("unknown modifier '%s', content left unchanged", ref.name)
                continue
            modifier = self._registry.get(ref.name)
            if not modifier.supports(content_type):
                logger.debug("modifier '%s' skipped for %s", ref.name, content_type)
                continue
            content = modifier.modify(content, ref.options, content_type)
        return content
