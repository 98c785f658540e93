"""Sync pipeline, its run-scoped helpers and the client that drives it."""

from .client import SyncClient
from .metadata_cache import MetadataKeyCache
from .pipeline import SyncOrchestrator, SyncRunReport
from .transform import AssetTransformer, TransformedAsset, check_capabilities
from .workspace import SyncWorkspace

__all__ = [
    "AssetTransformer",
    "MetadataKeyCache",
    "SyncClient",
    "SyncOrchestrator",
    "SyncRunReport",
    "SyncWorkspace",
    "TransformedAsset",
    "check_capabilities",
]
