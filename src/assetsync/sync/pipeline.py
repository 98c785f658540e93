"""The sync pipeline: metadata import, paginated asset import, cursor commits.

One run goes through these stages, in order:

1. validate settings and target capabilities
2. ``before_sync`` hook (``False`` ends the run)
3. generic metadata import, for full runs and when ``before_generic_metadata_sync``
   allows it
4. ``before_assets_sync`` hook (``False`` ends the run)
5. page loop: fetch, transform, classify, deliver, commit cursor
6. ``after_assets_sync`` and ``after_sync`` hooks

A run never raises. Failures are classified and handed to the target's
error handlers, and the metadata key cache is cleared however the run ends.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, List, Optional, Protocol

import httpx

from ..catalog.models import AssetPage, GenericMetadata, MetadataCategory, RawAsset
from ..configuration.settings import SettingsProvider
from ..errors import (
    AssetSyncError,
    AuthenticationError,
    ConfigurationError,
    PipelineError,
    PipelineFailure,
    TargetDeliveryError,
)
from ..state.cursor_store import CursorStore, SyncCursor
from ..target.assets import BinaryAsset, CompoundAsset
from ..target.base import SyncTarget
from ..target.capabilities import SyncTargetCapabilities
from .metadata_cache import MetadataKeyCache
from .transform import AssetTransformer, check_capabilities
from .workspace import SyncWorkspace

logger = logging.getLogger(__name__)


class CatalogAccess(Protocol):
    async def fetch_metadata(self) -> GenericMetadata:
        ...

    async def fetch_asset_page(self, cursor: Optional[str]) -> AssetPage:
        ...


@dataclass
class ClassifiedPage:
    """Target assets of one page, partitioned by delivery call."""

    new_binaries: List[BinaryAsset] = field(default_factory=list)
    updated_binaries: List[BinaryAsset] = field(default_factory=list)
    new_compounds: List[CompoundAsset] = field(default_factory=list)
    updated_compounds: List[CompoundAsset] = field(default_factory=list)

    def __len__(self) -> int:
        return (
            len(self.new_binaries)
            + len(self.updated_binaries)
            + len(self.new_compounds)
            + len(self.updated_compounds)
        )


@dataclass
class SyncRunReport:
    """Outcome of one pipeline run."""

    full_metadata_sync: bool
    completed: bool = False
    aborted_at: Optional[str] = None
    metadata_categories: int = 0
    pages: int = 0
    raw_assets: int = 0
    new_binaries: int = 0
    updated_binaries: int = 0
    new_compounds: int = 0
    updated_compounds: int = 0
    error: Optional[AssetSyncError] = None

    @property
    def delivered(self) -> int:
        return self.new_binaries + self.updated_binaries + self.new_compounds + self.updated_compounds


class SyncOrchestrator:
    """Runs the sync pipeline against one target.

    Runs on the same instance never overlap; a second caller waits for the
    first run to finish.
    """

    def __init__(
        self,
        *,
        settings_provider: SettingsProvider,
        catalog: CatalogAccess,
        target: SyncTarget,
        cursor_store: CursorStore,
        metadata_cache: Optional[MetadataKeyCache] = None,
        download_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._settings_provider = settings_provider
        self._catalog = catalog
        self._target = target
        self._cursor_store = cursor_store
        self._cache = metadata_cache or MetadataKeyCache()
        self._download_client = download_client
        self._lock = asyncio.Lock()
        self._transformer = AssetTransformer(self._resolve_key)

    @property
    def metadata_cache(self) -> MetadataKeyCache:
        return self._cache

    async def run(self, full_metadata_sync: bool) -> SyncRunReport:
        """Run the pipeline once.

        Args:
            full_metadata_sync: Import the generic metadata before the assets

        Returns:
            Report of the run; failures are recorded in ``report.error``
        """
        async with self._lock:
            report = SyncRunReport(full_metadata_sync=full_metadata_sync)
            try:
                await self._synchronize(full_metadata_sync, report)
            except AuthenticationError as exc:
                report.error = exc
                logger.error(
                    "Authentication error in sync job: %s",
                    exc.message,
                    extra={"sync_error_code": exc.code, "sync_reason": exc.reason.value},
                )
                await self._route(self._target.handle_authentication_error, exc)
            except Exception as exc:  # noqa: BLE001
                error = self._classify(exc)
                report.error = error
                logger.error(
                    "Error in sync job: %s",
                    error.message,
                    exc_info=exc,
                    extra={"sync_error_code": error.code, "sync_kind": error.kind.value},
                )
                await self._route(self._target.handle_pipeline_error, error)
            finally:
                self._cache.clear()
                self._clear_target_caches()
            return report

    @staticmethod
    def _classify(exc: Exception) -> PipelineError:
        if isinstance(exc, PipelineError):
            return exc
        if isinstance(exc, ConfigurationError):
            kind = PipelineFailure.CONFIGURATION
        elif isinstance(exc, TargetDeliveryError):
            kind = PipelineFailure.DELIVERY
        else:
            kind = PipelineFailure.GENERIC
        error = PipelineError(kind, str(exc) or type(exc).__name__)
        error.__cause__ = exc
        return error

    async def _route(self, handler: Callable[[Any], Awaitable[None]], error: AssetSyncError) -> None:
        try:
            await handler(error)
        except Exception:  # noqa: BLE001
            logger.exception("Sync target error handler failed")

    def _clear_target_caches(self) -> None:
        try:
            self._target.clear_generic_metadata_caches()
        except Exception:  # noqa: BLE001
            logger.exception("Clearing sync target caches failed")

    # -- stages -------------------------------------------------------------

    async def _synchronize(self, full_metadata_sync: bool, report: SyncRunReport) -> None:
        settings = self._settings_provider.get_settings()
        settings.validate_for_sync()

        capabilities = self._target.get_capabilities()
        if not capabilities.multi_language and len(settings.import_languages) > 1:
            raise PipelineError(
                PipelineFailure.CAPABILITY,
                "Sync target supports only one language but multiple languages are set to be synced",
            )

        if not await self._target.before_sync():
            logger.info("'before_sync' returned False, aborting sync")
            report.aborted_at = "before_sync"
            return

        if full_metadata_sync:
            await self._synchronize_generic_metadata(report)

        if not await self._target.before_assets_sync():
            logger.info("'before_assets_sync' returned False, aborting sync")
            report.aborted_at = "before_assets_sync"
            return

        await self._synchronize_assets(capabilities, settings.temp_root, report)
        await self._target.after_assets_sync()

        try:
            await self._target.after_sync()
        except Exception:  # noqa: BLE001
            logger.exception("'after_sync' failed")

        report.completed = True

    async def _synchronize_generic_metadata(self, report: SyncRunReport) -> None:
        if not await self._target.before_generic_metadata_sync():
            logger.info("'before_generic_metadata_sync' returned False, skipping generic metadata")
            return

        logger.info("Starting generic metadata synchronization")
        self._cache.clear()

        metadata = await self._catalog.fetch_metadata()
        for category in MetadataCategory:
            elements = metadata.elements(category)
            mapping = await self._target.import_metadata(category, elements)

            missing = [element.key for element in elements if not (mapping or {}).get(element.key)]
            if missing:
                raise PipelineError(
                    PipelineFailure.METADATA_MAPPING,
                    f"Sync target returned no identifier for {category.value} keys: "
                    f"{', '.join(missing)}",
                )
            self._cache.record(category, {element.key: mapping[element.key] for element in elements})
            report.metadata_categories += 1

        await self._target.after_generic_metadata_sync()
        logger.info(
            "Finished generic metadata synchronization",
            extra={"sync_metadata_keys": len(self._cache)},
        )

    async def _synchronize_assets(
        self,
        capabilities: SyncTargetCapabilities,
        temp_root,
        report: SyncRunReport,
    ) -> None:
        # File-backed stores block on a file lock
        committed = await asyncio.to_thread(self._cursor_store.get_cursor)
        cursor = committed.token if committed else None
        logger.info("Starting asset synchronization", extra={"sync_cursor": cursor})

        async with SyncWorkspace.create(temp_root, http_client=self._download_client) as workspace:
            while True:
                page = await self._catalog.fetch_asset_page(cursor)
                report.pages += 1

                if page.assets:
                    classified = await self._classify_page(page.assets, capabilities)
                    await self._deliver(classified, workspace)
                    report.raw_assets += len(page.assets)
                    report.new_binaries += len(classified.new_binaries)
                    report.updated_binaries += len(classified.updated_binaries)
                    report.new_compounds += len(classified.new_compounds)
                    report.updated_compounds += len(classified.updated_compounds)

                # Only reached once every delivery of the page succeeded
                if page.next_cursor is not None and (page.assets or page.has_more):
                    await asyncio.to_thread(
                        self._cursor_store.set_cursor,
                        SyncCursor(token=page.next_cursor, has_more=page.has_more),
                    )
                    cursor = page.next_cursor
                    logger.info(
                        "Synchronized %d assets",
                        len(page.assets),
                        extra={"sync_cursor": cursor},
                    )

                if not page.has_more:
                    break

                if page.next_cursor is None:
                    logger.warning("Catalog reported more assets but no cursor, stopping")
                    break

        logger.info(
            "Finished asset synchronization",
            extra={"sync_pages": report.pages, "sync_delivered": report.delivered},
        )

    async def _classify_page(
        self, assets: List[RawAsset], capabilities: SyncTargetCapabilities
    ) -> ClassifiedPage:
        classified = ClassifiedPage()

        for raw in assets:
            check_capabilities(raw, capabilities)
            transformed = await self._transformer.transform(raw)

            parts: List[BinaryAsset] = []
            for binary in transformed.binaries:
                existing = await self._target.get_existing_binary_asset_id(binary)
                if existing:
                    binary = replace(binary, target_asset_uuid=existing)
                    classified.updated_binaries.append(binary)
                else:
                    classified.new_binaries.append(binary)
                parts.append(binary)

            if transformed.compound is not None:
                compound = replace(transformed.compound, parts=tuple(parts))
                existing = await self._target.get_existing_compound_asset_id(compound)
                if existing:
                    classified.updated_compounds.append(
                        replace(compound, target_asset_uuid=existing)
                    )
                else:
                    classified.new_compounds.append(compound)

        return classified

    async def _deliver(self, classified: ClassifiedPage, workspace: SyncWorkspace) -> None:
        if classified.new_binaries:
            await self._target.import_new_binary_assets(classified.new_binaries, workspace)
        if classified.updated_binaries:
            await self._target.update_binary_assets(classified.updated_binaries, workspace)
        if classified.new_compounds:
            await self._target.import_new_compound_assets(classified.new_compounds, workspace)
        if classified.updated_compounds:
            await self._target.update_compound_assets(classified.updated_compounds, workspace)

    async def _resolve_key(self, category: MetadataCategory, key: str) -> str:
        target_id = self._cache.get(category, key)
        if target_id is None and not self._cache.has_category(category):
            # Runs without a metadata sync rely on what the target already knows
            self._cache.record(category, await self._target.get_metadata_ids(category))
            target_id = self._cache.get(category, key)

        if target_id is None:
            raise PipelineError(
                PipelineFailure.METADATA_MAPPING,
                f"No sync target identifier for {category.value} key '{key}'",
            )
        return target_id


__all__ = ["CatalogAccess", "ClassifiedPage", "SyncOrchestrator", "SyncRunReport"]
