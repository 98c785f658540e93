"""Contract between the sync pipeline and a target store."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, List, Optional

from ..catalog.models import MetadataCategory, MetadataElement
from ..errors import AuthenticationError, PipelineError
from .assets import BinaryAsset, CompoundAsset
from .capabilities import SyncTargetCapabilities

if TYPE_CHECKING:  # pragma: no cover
    from ..sync.workspace import SyncWorkspace

logger = logging.getLogger(__name__)


class SyncTarget(ABC):
    """Base class for stores that receive catalog metadata and assets.

    Hooks returning ``bool`` gate the next pipeline stage: ``False`` skips it
    without being an error. Exceptions raised by any hook or delivery call
    abort the run and are routed to :meth:`handle_authentication_error` or
    :meth:`handle_pipeline_error`.
    """

    @abstractmethod
    def get_capabilities(self) -> SyncTargetCapabilities:
        """Must always return a capabilities instance."""

    # -- lifecycle hooks ----------------------------------------------------

    async def before_sync(self) -> bool:
        return True

    async def before_generic_metadata_sync(self) -> bool:
        return True

    async def after_generic_metadata_sync(self) -> None:
        return None

    async def before_assets_sync(self) -> bool:
        return True

    async def after_assets_sync(self) -> None:
        return None

    async def after_sync(self) -> None:
        """Runs after a completed run; failures here are logged and ignored."""
        return None

    def clear_generic_metadata_caches(self) -> None:
        """Release caches the target built during metadata import."""
        return None

    # -- metadata -----------------------------------------------------------

    @abstractmethod
    async def import_metadata(
        self, category: MetadataCategory, elements: List[MetadataElement]
    ) -> Dict[str, str]:
        """Import one metadata category.

        Returns:
            Mapping of every element key to the target's identifier for it
        """

    async def get_metadata_ids(self, category: MetadataCategory) -> Dict[str, str]:
        """Key to identifier mapping for metadata imported by an earlier run."""
        return {}

    # -- assets -------------------------------------------------------------

    @abstractmethod
    async def get_existing_binary_asset_id(self, asset: BinaryAsset) -> Optional[str]:
        ...

    @abstractmethod
    async def get_existing_compound_asset_id(self, asset: CompoundAsset) -> Optional[str]:
        ...

    @abstractmethod
    async def import_new_binary_assets(
        self, assets: List[BinaryAsset], workspace: "SyncWorkspace"
    ) -> None:
        ...

    @abstractmethod
    async def update_binary_assets(
        self, assets: List[BinaryAsset], workspace: "SyncWorkspace"
    ) -> None:
        ...

    async def import_new_compound_assets(
        self, assets: List[CompoundAsset], workspace: "SyncWorkspace"
    ) -> None:
        raise NotImplementedError("Target does not store compound assets")

    async def update_compound_assets(
        self, assets: List[CompoundAsset], workspace: "SyncWorkspace"
    ) -> None:
        raise NotImplementedError("Target does not store compound assets")

    # -- error handlers -----------------------------------------------------

    async def handle_authentication_error(self, error: AuthenticationError) -> None:
        logger.error("Authentication failed: %s", error.message, extra={"sync_reason": error.reason.value})

    async def handle_pipeline_error(self, error: PipelineError) -> None:
        logger.error("Sync failed: %s", error.message, extra={"sync_kind": error.kind.value})


__all__ = ["SyncTarget"]
