"""Metadata key to target identifier cache."""

from __future__ import annotations

from typing import Dict, Mapping, Optional

from ..catalog.models import MetadataCategory


class MetadataKeyCache:
    """Maps catalog metadata keys to the identifiers a target assigned them.

    Rebuilt by every full metadata sync and cleared when a run ends.
    """

    def __init__(self) -> None:
        self._ids: Dict[MetadataCategory, Dict[str, str]] = {}

    def record(self, category: MetadataCategory, mapping: Mapping[str, str]) -> None:
        self._ids.setdefault(category, {}).update(mapping)

    def has_category(self, category: MetadataCategory) -> bool:
        return category in self._ids

    def get(self, category: MetadataCategory, key: str) -> Optional[str]:
        return self._ids.get(category, {}).get(key)

    def clear(self) -> None:
        self._ids.clear()

    @property
    def is_empty(self) -> bool:
        return not self._ids

    def __len__(self) -> int:
        return sum(len(ids) for ids in self._ids.values())


__all__ = ["MetadataKeyCache"]
