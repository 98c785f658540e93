"""Tests for raw asset transformation."""

from __future__ import annotations

from dataclasses import replace

import pytest

from assetsync.catalog.models import (
    LicenseTerm,
    MetadataCategory,
    RawAsset,
    RawBinary,
    ReleaseDetails,
)
from assetsync.errors import PipelineError, PipelineFailure
from assetsync.sync.transform import AssetTransformer, check_capabilities
from assetsync.target.capabilities import SyncTargetCapabilities


async def resolve(category: MetadataCategory, key: str) -> str:
    return f"{category.value}/{key}"


def make_asset(*binaries: RawBinary, **values) -> RawAsset:
    return RawAsset(
        content_element_uuid="ce-1",
        license_purchase_transaction_uuid="lpt-1",
        provider="getty",
        content_type="image",
        binaries=list(binaries),
        **values,
    )


@pytest.mark.asyncio()
async def test_single_binary_has_no_compound() -> None:
    asset = make_asset(RawBinary(uuid="b1", binary_type="main", download_url="https://cdn/b1"))

    transformed = await AssetTransformer(resolve).transform(asset)

    assert transformed.compound is None
    assert len(transformed) == 1
    binary = transformed.binaries[0]
    assert binary.worldwide_unique_binary_uuid == "ce-1_b1"
    assert binary.binary_type == "binary_types/main"
    assert binary.download_url == "https://cdn/b1"
    assert binary.info.content_provider == "content_providers/getty"
    assert binary.is_compound is False
    assert binary.is_new is True


@pytest.mark.asyncio()
async def test_multiple_binaries_add_compound() -> None:
    asset = make_asset(RawBinary(uuid="b1"), RawBinary(uuid="b2"), RawBinary(uuid="b3"))

    transformed = await AssetTransformer(resolve).transform(asset)

    assert len(transformed) == 4
    compound = transformed.compound
    assert compound.is_compound is True
    assert compound.worldwide_unique_compound_uuid == "ce-1_compound"
    assert [part.binary_uuid for part in compound.parts] == ["b1", "b2", "b3"]
    assert compound.info is transformed.binaries[0].info


@pytest.mark.asyncio()
async def test_license_terms_and_release_states_are_resolved() -> None:
    asset = make_asset(
        RawBinary(uuid="b1"),
        license_type="rm",
        license_terms=[
            LicenseTerm(
                sequence_number=1,
                allowed_usages=["web", "print"],
                restricted_geographies=["us"],
                exclusivities=None,
            )
        ],
        release_details=ReleaseDetails(model_release_state="released"),
    )

    info = await AssetTransformer(resolve).asset_info(asset)

    term = info.license_terms[0]
    assert term.allowed_usages == ("license_usages/web", "license_usages/print")
    assert term.restricted_geographies == ("license_geographies/us",)
    assert term.exclusivities == ()
    assert info.license_type == "license_types/rm"
    assert info.release_details.model_release_state == "release_states/released"
    assert info.release_details.property_release_state is None


@pytest.mark.asyncio()
async def test_resolver_errors_propagate() -> None:
    async def failing(category: MetadataCategory, key: str) -> str:
        raise PipelineError(PipelineFailure.METADATA_MAPPING, f"unknown {key}")

    with pytest.raises(PipelineError) as exc_info:
        await AssetTransformer(failing).transform(make_asset(RawBinary(uuid="b1")))

    assert exc_info.value.kind == PipelineFailure.METADATA_MAPPING


def test_capability_checks() -> None:
    everything = SyncTargetCapabilities.all()
    compound = make_asset(RawBinary(uuid="b1"), RawBinary(uuid="b2"))
    updated = make_asset(RawBinary(uuid="b1", version=3))

    check_capabilities(compound, everything)
    check_capabilities(updated, everything)
    check_capabilities(make_asset(RawBinary(uuid="b1")), SyncTargetCapabilities())

    with pytest.raises(PipelineError, match="compound"):
        check_capabilities(compound, replace(everything, compound_assets=False))
    with pytest.raises(PipelineError, match="binary updates"):
        check_capabilities(updated, replace(everything, binary_updates=False))
