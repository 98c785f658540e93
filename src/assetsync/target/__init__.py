"""Sync target contract and the bundled in-memory target."""

from .assets import (
    AssetInfo,
    BinaryAsset,
    CompoundAsset,
    SyncAsset,
    SyncLicenseTerm,
    SyncReleaseDetails,
    asset_to_record,
)
from .base import SyncTarget
from .capabilities import SyncTargetCapabilities, SyncTargetCapability
from .memory import InMemorySyncTarget

__all__ = [
    "AssetInfo",
    "BinaryAsset",
    "CompoundAsset",
    "InMemorySyncTarget",
    "SyncAsset",
    "SyncLicenseTerm",
    "SyncReleaseDetails",
    "SyncTarget",
    "SyncTargetCapabilities",
    "SyncTargetCapability",
    "asset_to_record",
]
