"""Tests for the sync pipeline run."""

from __future__ import annotations

import asyncio
import threading
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from assetsync.catalog.models import (
    AssetPage,
    GenericMetadata,
    MetadataCategory,
    MetadataElement,
    RawAsset,
    RawBinary,
)
from assetsync.configuration.settings import StaticSettingsProvider, SyncSettings
from assetsync.errors import (
    AuthenticationError,
    AuthenticationFailure,
    PipelineError,
    PipelineFailure,
    TargetDeliveryError,
)
from assetsync.state.cursor_store import MemoryCursorStore, SyncCursor
from assetsync.sync.pipeline import SyncOrchestrator
from assetsync.target.assets import BinaryAsset, CompoundAsset
from assetsync.target.capabilities import SyncTargetCapabilities
from assetsync.target.memory import InMemorySyncTarget

END = AssetPage(assets=[], next_cursor=None, has_more=False)


def make_metadata() -> GenericMetadata:
    return GenericMetadata(
        content_providers=[MetadataElement(key="getty", values={"en": "Getty"})],
        content_types=[MetadataElement(key="image", values={"en": "Image"})],
        binary_types=[MetadataElement(key="main"), MetadataElement(key="preview")],
    )


def make_asset(uuid: str, *, binaries: int = 1, version: int = 1, provider: str = "getty") -> RawAsset:
    return RawAsset(
        content_element_uuid=uuid,
        license_purchase_transaction_uuid=f"lpt-{uuid}",
        cart_purchase_transaction_uuid="cpt",
        provider=provider,
        content_type="image",
        binaries=[
            RawBinary(uuid=f"b{index}", binary_type="main", version=version)
            for index in range(1, binaries + 1)
        ],
    )


class StubCatalog:
    def __init__(
        self,
        pages: Dict[Optional[str], AssetPage],
        metadata: Optional[GenericMetadata] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.pages = pages
        self.metadata = metadata or make_metadata()
        self.error = error
        self.cursors: List[Optional[str]] = []
        self.metadata_calls = 0

    async def fetch_metadata(self) -> GenericMetadata:
        self.metadata_calls += 1
        if self.error is not None:
            raise self.error
        return self.metadata

    async def fetch_asset_page(self, cursor: Optional[str]) -> AssetPage:
        self.cursors.append(cursor)
        if self.error is not None:
            raise self.error
        return self.pages[cursor]


class RecordingTarget(InMemorySyncTarget):
    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.hooks: List[str] = []
        self.allow = {
            "before_sync": True,
            "before_generic_metadata_sync": True,
            "before_assets_sync": True,
        }
        self.fail_on: Optional[str] = None
        self.existing_binary_ids: Dict[str, str] = {}
        self.existing_compound_ids: Dict[str, str] = {}
        self.delivered: Dict[str, list] = {}
        self.workspace_roots: List[Path] = []
        self.metadata_id_calls: List[MetadataCategory] = []
        self.orchestrator: Optional[SyncOrchestrator] = None
        self.cache_sizes: Dict[str, object] = {}
        self.skip_mapping_for: Optional[MetadataCategory] = None
        self.after_sync_error: Optional[Exception] = None

    async def before_sync(self) -> bool:
        self.hooks.append("before_sync")
        return self.allow["before_sync"]

    async def before_generic_metadata_sync(self) -> bool:
        self.hooks.append("before_generic_metadata_sync")
        if self.orchestrator is not None:
            self.cache_sizes["before_metadata"] = len(self.orchestrator.metadata_cache)
        return self.allow["before_generic_metadata_sync"]

    async def after_generic_metadata_sync(self) -> None:
        self.hooks.append("after_generic_metadata_sync")

    async def before_assets_sync(self) -> bool:
        self.hooks.append("before_assets_sync")
        return self.allow["before_assets_sync"]

    async def after_assets_sync(self) -> None:
        self.hooks.append("after_assets_sync")

    async def after_sync(self) -> None:
        self.hooks.append("after_sync")
        if self.after_sync_error is not None:
            raise self.after_sync_error

    async def import_metadata(self, category, elements):
        mapping = await super().import_metadata(category, elements)
        if category == self.skip_mapping_for:
            return {}
        return mapping

    async def get_metadata_ids(self, category):
        self.metadata_id_calls.append(category)
        return await super().get_metadata_ids(category)

    async def get_existing_binary_asset_id(self, asset: BinaryAsset) -> Optional[str]:
        existing = self.existing_binary_ids.get(asset.worldwide_unique_binary_uuid)
        return existing or await super().get_existing_binary_asset_id(asset)

    async def get_existing_compound_asset_id(self, asset: CompoundAsset) -> Optional[str]:
        existing = self.existing_compound_ids.get(asset.worldwide_unique_compound_uuid)
        return existing or await super().get_existing_compound_asset_id(asset)

    async def _store(self, operation, assets, workspace) -> None:
        self.workspace_roots.append(workspace.root)
        assert workspace.root.exists()
        if self.orchestrator is not None:
            self.cache_sizes["delivery"] = len(self.orchestrator.metadata_cache)
        if operation == self.fail_on:
            raise TargetDeliveryError(f"{operation} failed")
        self.delivered.setdefault(operation, []).extend(assets)
        await super()._store(operation, assets, workspace)


def build(
    tmp_path: Path,
    pages: Dict[Optional[str], AssetPage],
    *,
    target: Optional[RecordingTarget] = None,
    cursor: Optional[str] = None,
    languages=("en",),
    tenant_id: Optional[str] = "acme",
    catalog: Optional[StubCatalog] = None,
):
    settings = SyncSettings(
        tenant_id=tenant_id, import_languages=list(languages), temp_root=tmp_path / "work"
    )
    catalog = catalog or StubCatalog(pages)
    target = target or RecordingTarget()
    store = MemoryCursorStore(SyncCursor(token=cursor) if cursor else None)
    orchestrator = SyncOrchestrator(
        settings_provider=StaticSettingsProvider(settings),
        catalog=catalog,
        target=target,
        cursor_store=store,
    )
    target.orchestrator = orchestrator
    return orchestrator, catalog, target, store


# -- pagination and cursor commits ---------------------------------------------


@pytest.mark.asyncio()
async def test_cursor_advances_after_page_is_delivered(tmp_path: Path) -> None:
    assets = [make_asset(f"A{index}") for index in range(10)]
    pages = {"c0": AssetPage(assets=assets, next_cursor="c1", has_more=True), "c1": END}
    orchestrator, catalog, target, store = build(tmp_path, pages, cursor="c0")

    report = await orchestrator.run(True)

    assert report.completed is True
    assert report.error is None
    assert catalog.cursors == ["c0", "c1"]
    assert store.get_cursor().token == "c1"
    assert len(target.records) == 10
    assert report.new_binaries == 10
    assert report.pages == 2


@pytest.mark.asyncio()
async def test_final_page_with_assets_commits_its_cursor(tmp_path: Path) -> None:
    pages = {"c0": AssetPage(assets=[make_asset("A")], next_cursor="c1", has_more=False)}
    orchestrator, catalog, target, store = build(tmp_path, pages, cursor="c0")

    report = await orchestrator.run(False)

    assert report.completed is True
    assert catalog.cursors == ["c0"]
    assert store.get_cursor().token == "c1"
    assert store.get_cursor().has_more is False

    catalog.pages["c1"] = END
    await orchestrator.run(False)

    assert catalog.cursors == ["c0", "c1"]
    assert target.deliveries == [("import_new_binary_assets", ["A_b1"])]


@pytest.mark.asyncio()
async def test_empty_final_page_keeps_last_cursor(tmp_path: Path) -> None:
    pages = {"c0": AssetPage(assets=[], next_cursor="c9", has_more=False)}
    orchestrator, _, _, store = build(tmp_path, pages, cursor="c0")

    await orchestrator.run(False)

    assert store.get_cursor().token == "c0"


@pytest.mark.asyncio()
async def test_filtered_empty_page_does_not_end_the_feed(tmp_path: Path) -> None:
    pages = {
        None: AssetPage(assets=[], next_cursor="c1", has_more=True),
        "c1": AssetPage(assets=[make_asset("A")], next_cursor="c2", has_more=True),
        "c2": END,
    }
    orchestrator, catalog, target, store = build(tmp_path, pages)

    await orchestrator.run(False)

    assert catalog.cursors == [None, "c1", "c2"]
    assert store.get_cursor().token == "c2"
    assert "A_b1" in target.records


@pytest.mark.asyncio()
async def test_failed_delivery_keeps_previous_cursor(tmp_path: Path) -> None:
    pages = {
        None: AssetPage(assets=[make_asset("A")], next_cursor="c1", has_more=True),
        "c1": AssetPage(assets=[make_asset("B", binaries=2)], next_cursor="c2", has_more=True),
        "c2": END,
    }
    target = RecordingTarget()
    # Page two: new binaries succeed, new compounds fail
    target.fail_on = "import_new_compound_assets"
    orchestrator, catalog, target, store = build(tmp_path, pages, target=target)

    report = await orchestrator.run(True)

    assert store.get_cursor().token == "c1"
    assert catalog.cursors == [None, "c1"]
    assert report.completed is False
    assert [error.kind for error in target.pipeline_errors] == [PipelineFailure.DELIVERY]
    assert "after_assets_sync" not in target.hooks
    assert "after_sync" not in target.hooks


@pytest.mark.asyncio()
async def test_rerun_resumes_from_last_committed_cursor(tmp_path: Path) -> None:
    pages = {
        None: AssetPage(assets=[make_asset("A")], next_cursor="c1", has_more=True),
        "c1": AssetPage(assets=[make_asset("B")], next_cursor="c2", has_more=True),
        "c2": END,
    }
    target = RecordingTarget()
    target.fail_on = "import_new_binary_assets"
    orchestrator, catalog, target, store = build(tmp_path, pages, target=target)

    await orchestrator.run(False)
    assert store.get_cursor() is None

    target.fail_on = None
    await orchestrator.run(False)

    assert catalog.cursors == [None, None, "c1", "c2"]
    assert store.get_cursor().token == "c2"


# -- classification ------------------------------------------------------------


@pytest.mark.asyncio()
async def test_existing_binaries_are_updated_and_unknown_ones_imported(tmp_path: Path) -> None:
    pages = {
        None: AssetPage(assets=[make_asset("X"), make_asset("Y")], next_cursor="c1", has_more=True),
        "c1": END,
    }
    target = RecordingTarget()
    target.existing_binary_ids["X_b1"] = "target-x"
    orchestrator, _, target, _ = build(tmp_path, pages, target=target)

    await orchestrator.run(True)

    assert target.deliveries == [
        ("import_new_binary_assets", ["Y_b1"]),
        ("update_binary_assets", ["X_b1"]),
    ]
    updated = target.delivered["update_binary_assets"][0]
    assert updated.target_asset_uuid == "target-x"
    assert updated.is_new is False
    assert target.records["X_b1"]["target_asset_uuid"] == "target-x"


@pytest.mark.asyncio()
async def test_multi_binary_asset_yields_compound(tmp_path: Path) -> None:
    pages = {None: AssetPage(assets=[make_asset("M", binaries=3)], next_cursor="c1", has_more=True), "c1": END}
    orchestrator, _, target, _ = build(tmp_path, pages)

    report = await orchestrator.run(True)

    binaries = target.delivered["import_new_binary_assets"]
    compounds = target.delivered["import_new_compound_assets"]
    assert len(binaries) == 3
    assert len(compounds) == 1
    assert compounds[0].is_compound is True
    assert len(compounds[0].parts) == 3
    assert report.new_compounds == 1
    assert target.records["M_compound"]["part_uuids"] == ["M_b1", "M_b2", "M_b3"]


@pytest.mark.asyncio()
async def test_compound_parts_carry_classified_binaries(tmp_path: Path) -> None:
    pages = {None: AssetPage(assets=[make_asset("M", binaries=2)], next_cursor="c1", has_more=True), "c1": END}
    target = RecordingTarget()
    target.existing_binary_ids["M_b2"] = "target-b2"
    target.existing_compound_ids["M_compound"] = "target-compound"
    orchestrator, _, target, _ = build(tmp_path, pages, target=target)

    await orchestrator.run(True)

    compound = target.delivered["update_compound_assets"][0]
    assert compound.target_asset_uuid == "target-compound"
    assert [part.target_asset_uuid for part in compound.parts] == [None, "target-b2"]
    assert [operation for operation, _ in target.deliveries] == [
        "import_new_binary_assets",
        "update_binary_assets",
        "update_compound_assets",
    ]


@pytest.mark.asyncio()
async def test_metadata_keys_are_resolved_to_target_ids(tmp_path: Path) -> None:
    pages = {None: AssetPage(assets=[make_asset("A")], next_cursor="c1", has_more=True), "c1": END}
    orchestrator, _, target, _ = build(tmp_path, pages)

    await orchestrator.run(True)

    binary = target.delivered["import_new_binary_assets"][0]
    assert binary.info.content_provider == "content_providers:getty"
    assert binary.info.content_type == "content_types:image"
    assert binary.binary_type == "binary_types:main"
    assert binary.info.content_category is None


# -- stage hooks ---------------------------------------------------------------


@pytest.mark.asyncio()
async def test_full_run_calls_hooks_in_order(tmp_path: Path) -> None:
    orchestrator, catalog, target, _ = build(tmp_path, {None: END})

    await orchestrator.run(True)

    assert target.hooks == [
        "before_sync",
        "before_generic_metadata_sync",
        "after_generic_metadata_sync",
        "before_assets_sync",
        "after_assets_sync",
        "after_sync",
    ]
    assert catalog.metadata_calls == 1
    assert set(target.metadata) == set(MetadataCategory)


@pytest.mark.asyncio()
async def test_push_run_skips_metadata(tmp_path: Path) -> None:
    orchestrator, catalog, target, _ = build(tmp_path, {None: END})

    await orchestrator.run(False)

    assert catalog.metadata_calls == 0
    assert "before_generic_metadata_sync" not in target.hooks
    assert target.hooks[-1] == "after_sync"


@pytest.mark.asyncio()
async def test_before_sync_false_aborts_everything(tmp_path: Path) -> None:
    target = RecordingTarget()
    target.allow["before_sync"] = False
    orchestrator, catalog, target, _ = build(tmp_path, {None: END}, target=target)

    report = await orchestrator.run(True)

    assert target.hooks == ["before_sync"]
    assert catalog.metadata_calls == 0
    assert catalog.cursors == []
    assert report.aborted_at == "before_sync"
    assert report.error is None
    assert target.pipeline_errors == []


@pytest.mark.asyncio()
async def test_skipped_metadata_still_syncs_assets(tmp_path: Path) -> None:
    target = RecordingTarget()
    # Metadata known from an earlier run
    await target.import_metadata(MetadataCategory.CONTENT_PROVIDERS, [MetadataElement(key="getty")])
    await target.import_metadata(MetadataCategory.CONTENT_TYPES, [MetadataElement(key="image")])
    await target.import_metadata(MetadataCategory.BINARY_TYPES, [MetadataElement(key="main")])
    target.allow["before_generic_metadata_sync"] = False
    pages = {None: AssetPage(assets=[make_asset("A")], next_cursor="c1", has_more=True), "c1": END}
    orchestrator, catalog, target, _ = build(tmp_path, pages, target=target)

    report = await orchestrator.run(True)

    assert catalog.metadata_calls == 0
    assert "after_generic_metadata_sync" not in target.hooks
    assert report.completed is True
    assert "A_b1" in target.records


@pytest.mark.asyncio()
async def test_before_assets_sync_false_skips_assets(tmp_path: Path) -> None:
    target = RecordingTarget()
    target.allow["before_assets_sync"] = False
    orchestrator, catalog, target, _ = build(tmp_path, {None: END}, target=target)

    report = await orchestrator.run(True)

    assert catalog.cursors == []
    assert "after_assets_sync" not in target.hooks
    assert "after_sync" not in target.hooks
    assert report.aborted_at == "before_assets_sync"


@pytest.mark.asyncio()
async def test_after_sync_errors_are_swallowed(tmp_path: Path) -> None:
    target = RecordingTarget()
    target.after_sync_error = RuntimeError("cleanup failed")
    orchestrator, _, target, _ = build(tmp_path, {None: END}, target=target)

    report = await orchestrator.run(True)

    assert report.completed is True
    assert report.error is None
    assert target.pipeline_errors == []


# -- metadata key cache --------------------------------------------------------


@pytest.mark.asyncio()
async def test_cache_is_empty_before_metadata_sync_and_after_run(tmp_path: Path) -> None:
    pages = {None: AssetPage(assets=[make_asset("A")], next_cursor="c1", has_more=True), "c1": END}
    orchestrator, _, target, _ = build(tmp_path, pages)

    await orchestrator.run(True)
    assert target.cache_sizes["before_metadata"] == 0
    assert target.cache_sizes["delivery"] == 4
    assert orchestrator.metadata_cache.is_empty

    await orchestrator.run(True)
    assert target.cache_sizes["before_metadata"] == 0
    assert orchestrator.metadata_cache.is_empty


@pytest.mark.asyncio()
async def test_cache_is_cleared_after_failed_run(tmp_path: Path) -> None:
    target = RecordingTarget()
    target.fail_on = "import_new_binary_assets"
    pages = {None: AssetPage(assets=[make_asset("A")], next_cursor="c1", has_more=True), "c1": END}
    orchestrator, _, target, _ = build(tmp_path, pages, target=target)

    await orchestrator.run(True)

    assert target.pipeline_errors
    assert orchestrator.metadata_cache.is_empty


@pytest.mark.asyncio()
async def test_missing_metadata_mapping_aborts_run(tmp_path: Path) -> None:
    target = RecordingTarget()
    target.skip_mapping_for = MetadataCategory.CONTENT_TYPES
    orchestrator, catalog, target, _ = build(tmp_path, {None: END}, target=target)

    await orchestrator.run(True)

    assert [error.kind for error in target.pipeline_errors] == [PipelineFailure.METADATA_MAPPING]
    assert "image" in target.pipeline_errors[0].message
    assert catalog.cursors == []


@pytest.mark.asyncio()
async def test_push_run_resolves_keys_from_target(tmp_path: Path) -> None:
    catalog = StubCatalog({None: END})
    orchestrator, catalog, target, _ = build(tmp_path, {}, catalog=catalog)
    await orchestrator.run(True)

    catalog.pages = {
        None: AssetPage(assets=[make_asset("A")], next_cursor="c1", has_more=True),
        "c1": END,
    }
    report = await orchestrator.run(False)

    assert report.error is None
    assert catalog.metadata_calls == 1
    assert target.records["A_b1"]["info"]["content_provider"] == "content_providers:getty"
    assert target.metadata_id_calls == [
        MetadataCategory.CONTENT_PROVIDERS,
        MetadataCategory.CONTENT_TYPES,
        MetadataCategory.BINARY_TYPES,
    ]


@pytest.mark.asyncio()
async def test_unknown_metadata_key_is_a_mapping_error(tmp_path: Path) -> None:
    pages = {
        None: AssetPage(assets=[make_asset("A", provider="unknown")], next_cursor="c1", has_more=True),
        "c1": END,
    }
    orchestrator, _, target, store = build(tmp_path, pages)

    await orchestrator.run(True)

    assert [error.kind for error in target.pipeline_errors] == [PipelineFailure.METADATA_MAPPING]
    assert store.get_cursor() is None
    assert target.records == {}
    assert target.metadata_id_calls == []


@pytest.mark.asyncio()
async def test_push_run_asks_target_once_per_category(tmp_path: Path) -> None:
    catalog = StubCatalog({None: END})
    orchestrator, catalog, target, _ = build(tmp_path, {}, catalog=catalog)
    await orchestrator.run(True)

    catalog.pages = {
        None: AssetPage(
            assets=[make_asset("A"), make_asset("B"), make_asset("C", provider="unknown")],
            next_cursor="c1",
            has_more=True,
        ),
        "c1": END,
    }
    await orchestrator.run(False)

    assert target.metadata_id_calls.count(MetadataCategory.CONTENT_PROVIDERS) == 1
    assert [error.kind for error in target.pipeline_errors] == [PipelineFailure.METADATA_MAPPING]
    assert "unknown" in target.pipeline_errors[0].message


@pytest.mark.asyncio()
async def test_cursor_store_is_used_off_the_event_loop_thread(tmp_path: Path) -> None:
    class ThreadRecordingStore(MemoryCursorStore):
        def __init__(self) -> None:
            super().__init__(SyncCursor(token="c0"))
            self.threads: List[threading.Thread] = []

        def get_cursor(self):
            self.threads.append(threading.current_thread())
            return super().get_cursor()

        def set_cursor(self, cursor: SyncCursor) -> None:
            self.threads.append(threading.current_thread())
            super().set_cursor(cursor)

    store = ThreadRecordingStore()
    pages = {"c0": AssetPage(assets=[make_asset("A")], next_cursor="c1", has_more=True), "c1": END}
    orchestrator, _, _, _ = build(tmp_path, pages)
    orchestrator._cursor_store = store

    await orchestrator.run(False)

    assert len(store.threads) == 2
    assert threading.current_thread() not in store.threads
    assert store.get_cursor().token == "c1"


# -- capabilities and error routing --------------------------------------------


@pytest.mark.asyncio()
async def test_multiple_languages_require_capability(tmp_path: Path) -> None:
    target = RecordingTarget(capabilities=replace(SyncTargetCapabilities.all(), multi_language=False))
    orchestrator, catalog, target, _ = build(tmp_path, {None: END}, target=target, languages=("en", "de"))

    await orchestrator.run(True)

    assert [error.kind for error in target.pipeline_errors] == [PipelineFailure.CAPABILITY]
    assert target.hooks == []
    assert catalog.metadata_calls == 0


@pytest.mark.asyncio()
async def test_compound_assets_require_capability(tmp_path: Path) -> None:
    target = RecordingTarget(capabilities=replace(SyncTargetCapabilities.all(), compound_assets=False))
    pages = {None: AssetPage(assets=[make_asset("M", binaries=2)], next_cursor="c1", has_more=True), "c1": END}
    orchestrator, _, target, _ = build(tmp_path, pages, target=target)

    await orchestrator.run(True)

    assert [error.kind for error in target.pipeline_errors] == [PipelineFailure.CAPABILITY]
    assert target.records == {}


@pytest.mark.asyncio()
async def test_binary_updates_require_capability(tmp_path: Path) -> None:
    target = RecordingTarget(capabilities=replace(SyncTargetCapabilities.all(), binary_updates=False))
    pages = {None: AssetPage(assets=[make_asset("A", version=2)], next_cursor="c1", has_more=True), "c1": END}
    orchestrator, _, target, _ = build(tmp_path, pages, target=target)

    await orchestrator.run(True)

    assert [error.kind for error in target.pipeline_errors] == [PipelineFailure.CAPABILITY]


@pytest.mark.asyncio()
async def test_missing_configuration_fails_before_any_call(tmp_path: Path) -> None:
    orchestrator, catalog, target, _ = build(tmp_path, {None: END}, tenant_id=None)

    report = await orchestrator.run(True)

    assert report.error.kind == PipelineFailure.CONFIGURATION
    assert [error.kind for error in target.pipeline_errors] == [PipelineFailure.CONFIGURATION]
    assert target.hooks == []
    assert catalog.metadata_calls == 0


@pytest.mark.asyncio()
async def test_authentication_errors_use_their_own_handler(tmp_path: Path) -> None:
    catalog = StubCatalog(
        {None: END},
        error=AuthenticationError(AuthenticationFailure.CANNOT_REFRESH_TOKEN, "refresh failed"),
    )
    orchestrator, _, target, _ = build(tmp_path, {}, catalog=catalog)

    await orchestrator.run(True)

    assert len(target.authentication_errors) == 1
    assert target.authentication_errors[0].reason == AuthenticationFailure.CANNOT_REFRESH_TOKEN
    assert target.pipeline_errors == []


@pytest.mark.asyncio()
async def test_pipeline_errors_are_passed_through(tmp_path: Path) -> None:
    error = PipelineError(PipelineFailure.TRANSPORT, "catalog unreachable")
    orchestrator, _, target, _ = build(tmp_path, {}, catalog=StubCatalog({}, error=error))

    await orchestrator.run(True)

    assert target.pipeline_errors == [error]


@pytest.mark.asyncio()
async def test_unexpected_errors_become_generic_pipeline_errors(tmp_path: Path) -> None:
    orchestrator, _, target, _ = build(
        tmp_path, {}, catalog=StubCatalog({}, error=KeyError("boom"))
    )

    report = await orchestrator.run(True)

    assert report.error.kind == PipelineFailure.GENERIC
    assert isinstance(report.error.__cause__, KeyError)
    assert target.pipeline_errors[0].kind == PipelineFailure.GENERIC


@pytest.mark.asyncio()
async def test_failing_error_handler_does_not_escape(tmp_path: Path) -> None:
    class BrokenHandlerTarget(RecordingTarget):
        async def handle_pipeline_error(self, error: PipelineError) -> None:
            raise RuntimeError("handler crashed")

    orchestrator, _, _, _ = build(
        tmp_path, {}, target=BrokenHandlerTarget(), catalog=StubCatalog({}, error=KeyError("x"))
    )

    report = await orchestrator.run(True)

    assert report.error is not None


# -- run scope -----------------------------------------------------------------


@pytest.mark.asyncio()
async def test_workspace_is_removed_after_run(tmp_path: Path) -> None:
    target = RecordingTarget()
    target.fail_on = "update_binary_assets"
    target.existing_binary_ids["B_b1"] = "target-b"
    pages = {
        None: AssetPage(assets=[make_asset("A"), make_asset("B")], next_cursor="c1", has_more=True),
        "c1": END,
    }
    orchestrator, _, target, _ = build(tmp_path, pages, target=target)

    await orchestrator.run(True)

    assert target.workspace_roots
    assert all(not root.exists() for root in target.workspace_roots)


@pytest.mark.asyncio()
async def test_runs_never_overlap(tmp_path: Path) -> None:
    active = 0
    peak = 0

    class SlowTarget(RecordingTarget):
        async def before_sync(self) -> bool:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return False

    orchestrator, _, _, _ = build(tmp_path, {None: END}, target=SlowTarget())

    await asyncio.gather(orchestrator.run(True), orchestrator.run(False))

    assert peak == 1
