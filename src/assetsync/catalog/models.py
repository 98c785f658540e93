"""Catalog-side contracts handed from the API layer to the sync pipeline.

These are the already-localized representations: every translatable value is
a ``culture -> value`` mapping restricted to the configured import languages.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

LocalizedText = Dict[str, str]
LocalizedList = Dict[str, List[str]]


class MetadataCategory(str, Enum):
    """Generic metadata categories, in import order."""

    CONTENT_PROVIDERS = "content_providers"
    CONTENT_TYPES = "content_types"
    BINARY_TYPES = "binary_types"
    CONTENT_CATEGORIES = "content_categories"
    LICENSE_TYPES = "license_types"
    RELEASE_STATES = "release_states"
    LICENSE_EXCLUSIVITIES = "license_exclusivities"
    LICENSE_USAGES = "license_usages"
    LICENSE_SIZES = "license_sizes"
    LICENSE_PLACEMENTS = "license_placements"
    LICENSE_DISTRIBUTIONS = "license_distributions"
    LICENSE_GEOGRAPHIES = "license_geographies"
    LICENSE_INDUSTRIES = "license_industries"
    LICENSE_LANGUAGES = "license_languages"
    LICENSE_USAGE_LIMITS = "license_usage_limits"


class MetadataElement(BaseModel):
    """One generic metadata element with its translated display names."""

    key: str
    values: Optional[LocalizedText] = None


class GenericMetadata(BaseModel):
    """All generic metadata categories of a tenant."""

    content_providers: List[MetadataElement] = Field(default_factory=list)
    content_types: List[MetadataElement] = Field(default_factory=list)
    binary_types: List[MetadataElement] = Field(default_factory=list)
    content_categories: List[MetadataElement] = Field(default_factory=list)
    license_types: List[MetadataElement] = Field(default_factory=list)
    release_states: List[MetadataElement] = Field(default_factory=list)
    license_exclusivities: List[MetadataElement] = Field(default_factory=list)
    license_usages: List[MetadataElement] = Field(default_factory=list)
    license_sizes: List[MetadataElement] = Field(default_factory=list)
    license_placements: List[MetadataElement] = Field(default_factory=list)
    license_distributions: List[MetadataElement] = Field(default_factory=list)
    license_geographies: List[MetadataElement] = Field(default_factory=list)
    license_industries: List[MetadataElement] = Field(default_factory=list)
    license_languages: List[MetadataElement] = Field(default_factory=list)
    license_usage_limits: List[MetadataElement] = Field(default_factory=list)

    def elements(self, category: MetadataCategory) -> List[MetadataElement]:
        return getattr(self, category.value)


class RawBinary(BaseModel):
    uuid: str
    content_type: Optional[str] = None
    binary_type: Optional[str] = None
    name: Optional[LocalizedText] = None
    description: Optional[LocalizedText] = None
    usage: Optional[LocalizedText] = None
    download_url: Optional[str] = None
    recommended_file_name: Optional[str] = None
    culture: Optional[str] = None
    version: int = 1


class LicenseTerm(BaseModel):
    sequence_number: Optional[int] = None
    name: Optional[LocalizedText] = None
    exclusivities: Optional[List[str]] = None
    allowed_usages: Optional[List[str]] = None
    restricted_usages: Optional[List[str]] = None
    allowed_sizes: Optional[List[str]] = None
    restricted_sizes: Optional[List[str]] = None
    allowed_placements: Optional[List[str]] = None
    restricted_placements: Optional[List[str]] = None
    allowed_distributions: Optional[List[str]] = None
    restricted_distributions: Optional[List[str]] = None
    allowed_geographies: Optional[List[str]] = None
    restricted_geographies: Optional[List[str]] = None
    allowed_industries: Optional[List[str]] = None
    restricted_industries: Optional[List[str]] = None
    allowed_languages: Optional[List[str]] = None
    restricted_languages: Optional[List[str]] = None
    usage_limits: Optional[List[str]] = None
    to_be_used_until: Optional[datetime] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_editorial_use: Optional[bool] = None


class ReleaseDetails(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_release_state: Optional[str] = None
    property_release_state: Optional[str] = None
    provider_allowed_use_comment: Optional[LocalizedText] = None
    provider_release_comment: Optional[LocalizedText] = None
    provider_usage_constraints: Optional[LocalizedText] = None


class DownloadConstraints(BaseModel):
    max_downloads: Optional[int] = None
    max_users: Optional[int] = None
    max_reuses: Optional[int] = None


class RawAsset(BaseModel):
    """A licensed content element as delivered by the catalog."""

    content_element_uuid: str
    license_purchase_transaction_uuid: str
    cart_purchase_transaction_uuid: Optional[str] = None
    state: Optional[str] = None
    provider: Optional[str] = None
    content_type: Optional[str] = None
    category: Optional[str] = None
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
    license_type: Optional[str] = None
    license_text: Optional[LocalizedText] = None
    license_urls: Optional[LocalizedList] = None
    license_terms: Optional[List[LicenseTerm]] = None
    release_details: Optional[ReleaseDetails] = None
    download_constraints: Optional[DownloadConstraints] = None
    is_editorial_use: Optional[bool] = None
    has_restrictive_license_terms: bool = False
    catalog_url: Optional[str] = None
    purchased_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    last_updated_at: Optional[datetime] = None
    binaries: List[RawBinary] = Field(default_factory=list)


class AssetPage(BaseModel):
    """One page of the asset feed.

    ``has_more`` is False only when the catalog returned no transactions at
    all; a page whose transactions were all filtered out is empty but still
    has more.
    """

    assets: List[RawAsset] = Field(default_factory=list)
    next_cursor: Optional[str] = None
    has_more: bool = False


__all__ = [
    "AssetPage",
    "DownloadConstraints",
    "GenericMetadata",
    "LicenseTerm",
    "LocalizedList",
    "LocalizedText",
    "MetadataCategory",
    "MetadataElement",
    "RawAsset",
    "RawBinary",
    "ReleaseDetails",
]
