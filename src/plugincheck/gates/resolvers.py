"""Plugin-to-indexer lookup strategies."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Protocol

from plugincheck.gates.types import Indexer


class IndexerResolver(Protocol):
    def resolve(self, plugin_name: str, indexers: Sequence[Indexer]) -> list[Indexer]: ...


class SubstringIndexerResolver:
    """Match when name or implementation contains the plugin name (case-insensitive)."""

    def resolve(self, plugin_name: str, indexers: Sequence[Indexer]) -> list[Indexer]:
        needle = plugin_name.casefold()
        return [
            indexer
            for indexer in indexers
            if needle in indexer.name.casefold() or needle in indexer.implementation.casefold()
        ]


class RegistryIndexerResolver:
    """Match on an explicit plugin -> implementation identifier mapping.

    Plugins missing from the mapping use their own name as the identifier.
    """

    def __init__(self, implementations: Mapping[str, str]) -> None:
        self.implementations = {k.casefold(): v for k, v in implementations.items()}

    def implementation_for(self, plugin_name: str) -> str:
        return self.implementations.get(plugin_name.casefold(), plugin_name)

    def resolve(self, plugin_name: str, indexers: Sequence[Indexer]) -> list[Indexer]:
        wanted = self.implementation_for(plugin_name).casefold()
        return [i for i in indexers if i.implementation.casefold() == wanted]
