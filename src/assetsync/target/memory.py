"""Sync target keeping everything in process memory.

Used by the CLI for dry runs and by tests as a reference target.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

from ..catalog.models import MetadataCategory, MetadataElement
from ..errors import AuthenticationError, PipelineError
from .assets import BinaryAsset, CompoundAsset, SyncAsset, asset_to_record
from .base import SyncTarget
from .capabilities import SyncTargetCapabilities

if TYPE_CHECKING:  # pragma: no cover
    from ..sync.workspace import SyncWorkspace

logger = logging.getLogger(__name__)

AssetMapper = Callable[[SyncAsset], Dict[str, Any]]


class InMemorySyncTarget(SyncTarget):
    """Stores metadata and asset records in dictionaries.

    Args:
        capabilities: Declared capabilities (everything supported by default)
        mapper: Converts a transformed asset into the stored record
        download_binaries: Fetch every binary through the workspace on delivery
    """

    def __init__(
        self,
        *,
        capabilities: Optional[SyncTargetCapabilities] = None,
        mapper: AssetMapper = asset_to_record,
        download_binaries: bool = False,
    ) -> None:
        self._capabilities = capabilities or SyncTargetCapabilities.all()
        self._mapper = mapper
        self._download_binaries = download_binaries
        self.metadata: Dict[MetadataCategory, Dict[str, str]] = {}
        self.records: Dict[str, Dict[str, Any]] = {}
        self._asset_ids: Dict[str, str] = {}
        self.deliveries: List[Tuple[str, List[str]]] = []
        self.authentication_errors: List[AuthenticationError] = []
        self.pipeline_errors: List[PipelineError] = []

    def get_capabilities(self) -> SyncTargetCapabilities:
        return self._capabilities

    async def import_metadata(
        self, category: MetadataCategory, elements: List[MetadataElement]
    ) -> Dict[str, str]:
        known = self.metadata.setdefault(category, {})
        for element in elements:
            known.setdefault(element.key, f"{category.value}:{element.key}")
        return {element.key: known[element.key] for element in elements}

    async def get_metadata_ids(self, category: MetadataCategory) -> Dict[str, str]:
        return dict(self.metadata.get(category, {}))

    async def get_existing_binary_asset_id(self, asset: BinaryAsset) -> Optional[str]:
        return self._asset_ids.get(asset.worldwide_unique_binary_uuid)

    async def get_existing_compound_asset_id(self, asset: CompoundAsset) -> Optional[str]:
        return self._asset_ids.get(asset.worldwide_unique_compound_uuid)

    async def import_new_binary_assets(
        self, assets: List[BinaryAsset], workspace: "SyncWorkspace"
    ) -> None:
        await self._store("import_new_binary_assets", assets, workspace)

    async def update_binary_assets(
        self, assets: List[BinaryAsset], workspace: "SyncWorkspace"
    ) -> None:
        await self._store("update_binary_assets", assets, workspace)

    async def import_new_compound_assets(
        self, assets: List[CompoundAsset], workspace: "SyncWorkspace"
    ) -> None:
        await self._store("import_new_compound_assets", assets, workspace)

    async def update_compound_assets(
        self, assets: List[CompoundAsset], workspace: "SyncWorkspace"
    ) -> None:
        await self._store("update_compound_assets", assets, workspace)

    async def handle_authentication_error(self, error: AuthenticationError) -> None:
        self.authentication_errors.append(error)
        await super().handle_authentication_error(error)

    async def handle_pipeline_error(self, error: PipelineError) -> None:
        self.pipeline_errors.append(error)
        await super().handle_pipeline_error(error)

    async def _store(
        self, operation: str, assets: List[SyncAsset], workspace: "SyncWorkspace"
    ) -> None:
        stored: List[str] = []
        for asset in assets:
            if isinstance(asset, BinaryAsset):
                unique_id = asset.worldwide_unique_binary_uuid
                if self._download_binaries:
                    await workspace.fetch_binary(asset)
            else:
                unique_id = asset.worldwide_unique_compound_uuid

            target_id = asset.target_asset_uuid or self._asset_ids.get(unique_id) or str(uuid.uuid4())
            self._asset_ids[unique_id] = target_id
            record = self._mapper(asset)
            record["target_asset_uuid"] = target_id
            self.records[unique_id] = record
            stored.append(unique_id)

        self.deliveries.append((operation, stored))
        logger.debug("Stored %d assets", len(stored), extra={"sync_operation": operation})


__all__ = ["AssetMapper", "InMemorySyncTarget"]
