"""Feature flags a sync target declares at runtime."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SyncTargetCapability(str, Enum):
    MULTI_LANGUAGE = "multi_language"
    COMPOUND_ASSETS = "compound_assets"
    BINARY_UPDATES = "binary_updates"
    REUSE_HANDLING = "reuse_handling"


@dataclass(frozen=True)
class SyncTargetCapabilities:
    """What a target can store.

    Attributes:
        multi_language: More than one import language can be stored
        compound_assets: Assets made of several binaries can be stored
        binary_updates: New versions of an already delivered binary are accepted
        reuse_handling: The target tracks license reuse constraints
    """

    multi_language: bool = False
    compound_assets: bool = False
    binary_updates: bool = False
    reuse_handling: bool = False

    def supports(self, capability: SyncTargetCapability) -> bool:
        return bool(getattr(self, capability.value))

    @classmethod
    def all(cls) -> "SyncTargetCapabilities":
        return cls(
            multi_language=True,
            compound_assets=True,
            binary_updates=True,
            reuse_handling=True,
        )


__all__ = ["SyncTargetCapabilities", "SyncTargetCapability"]
