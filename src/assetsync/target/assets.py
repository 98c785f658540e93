"""Transformed assets handed to sync targets.

A raw catalog asset becomes one :class:`BinaryAsset` per binary and, when it
has more than one binary, an additional :class:`CompoundAsset` aggregating
those binaries. ``SyncAsset`` is the tagged union of both; ``kind`` is the
tag. All metadata keys are already resolved to target identifiers.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from ..catalog.models import DownloadConstraints, LocalizedList, LocalizedText


@dataclass(frozen=True)
class SyncLicenseTerm:
    sequence_number: Optional[int] = None
    name: Optional[LocalizedText] = None
    exclusivities: Tuple[str, ...] = ()
    allowed_usages: Tuple[str, ...] = ()
    restricted_usages: Tuple[str, ...] = ()
    allowed_sizes: Tuple[str, ...] = ()
    restricted_sizes: Tuple[str, ...] = ()
    allowed_placements: Tuple[str, ...] = ()
    restricted_placements: Tuple[str, ...] = ()
    allowed_distributions: Tuple[str, ...] = ()
    restricted_distributions: Tuple[str, ...] = ()
    allowed_geographies: Tuple[str, ...] = ()
    restricted_geographies: Tuple[str, ...] = ()
    allowed_industries: Tuple[str, ...] = ()
    restricted_industries: Tuple[str, ...] = ()
    allowed_languages: Tuple[str, ...] = ()
    restricted_languages: Tuple[str, ...] = ()
    usage_limits: Tuple[str, ...] = ()
    to_be_used_until: Optional[datetime] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_editorial_use: Optional[bool] = None


@dataclass(frozen=True)
class SyncReleaseDetails:
    model_release_state: Optional[str] = None
    property_release_state: Optional[str] = None
    provider_allowed_use_comment: Optional[LocalizedText] = None
    provider_release_comment: Optional[LocalizedText] = None
    provider_usage_constraints: Optional[LocalizedText] = None


@dataclass(frozen=True)
class AssetInfo:
    """Fields shared by every representation of one licensed content element."""

    content_element_uuid: str
    license_purchase_transaction_uuid: str
    cart_purchase_transaction_uuid: Optional[str] = None
    state: Optional[str] = None
    content_provider: Optional[str] = None
    content_type: Optional[str] = None
    content_category: Optional[str] = None
    license_type: Optional[str] = None
    name: Optional[LocalizedText] = None
    description: Optional[LocalizedText] = None
    keywords: Optional[LocalizedList] = None
    copyright_notices: Optional[LocalizedText] = None
    project_uuid: Optional[str] = None
    project_name: Optional[LocalizedText] = None
    collection_uuid: Optional[str] = None
    collection_name: Optional[LocalizedText] = None
    licensee_uuid: Optional[str] = None
    licensee_name: Optional[str] = None
    license_text: Optional[LocalizedText] = None
    license_urls: Optional[LocalizedList] = None
    license_terms: Tuple[SyncLicenseTerm, ...] = ()
    release_details: Optional[SyncReleaseDetails] = None
    download_constraints: Optional[DownloadConstraints] = None
    is_editorial_use: Optional[bool] = None
    has_restrictive_license_terms: bool = False
    catalog_url: Optional[str] = None
    purchased_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    last_updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class BinaryAsset:
    """One binary of a licensed content element."""

    info: AssetInfo
    binary_uuid: str
    binary_type: Optional[str] = None
    binary_culture: Optional[str] = None
    binary_version: int = 1
    binary_name: Optional[LocalizedText] = None
    binary_description: Optional[LocalizedText] = None
    binary_usage: Optional[LocalizedText] = None
    download_url: Optional[str] = None
    recommended_file_name: Optional[str] = None
    target_asset_uuid: Optional[str] = None
    kind: Literal["binary"] = field(default="binary", init=False)

    @property
    def worldwide_unique_binary_uuid(self) -> str:
        return f"{self.info.content_element_uuid}_{self.binary_uuid}"

    @property
    def is_compound(self) -> bool:
        return False

    @property
    def is_new(self) -> bool:
        return self.target_asset_uuid is None


@dataclass(frozen=True)
class CompoundAsset:
    """Aggregate of all binaries of a multi-binary content element."""

    info: AssetInfo
    parts: Tuple[BinaryAsset, ...]
    target_asset_uuid: Optional[str] = None
    kind: Literal["compound"] = field(default="compound", init=False)

    @property
    def worldwide_unique_compound_uuid(self) -> str:
        return f"{self.info.content_element_uuid}_compound"

    @property
    def is_compound(self) -> bool:
        return len(self.parts) > 1

    @property
    def is_new(self) -> bool:
        return self.target_asset_uuid is None


SyncAsset = Union[BinaryAsset, CompoundAsset]


def asset_to_record(asset: SyncAsset) -> Dict[str, Any]:
    """Default mapping of a transformed asset to a plain record."""
    record = asdict(asset)
    record["is_compound"] = asset.is_compound
    if isinstance(asset, BinaryAsset):
        record["worldwide_unique_binary_uuid"] = asset.worldwide_unique_binary_uuid
    else:
        record["part_uuids"] = [part.worldwide_unique_binary_uuid for part in asset.parts]
    return record


def unique_ids(assets: List[SyncAsset]) -> List[str]:
    return [
        asset.worldwide_unique_binary_uuid
        if isinstance(asset, BinaryAsset)
        else asset.worldwide_unique_compound_uuid
        for asset in assets
    ]


__all__ = [
    "AssetInfo",
    "BinaryAsset",
    "CompoundAsset",
    "SyncAsset",
    "SyncLicenseTerm",
    "SyncReleaseDetails",
    "asset_to_record",
    "unique_ids",
]
