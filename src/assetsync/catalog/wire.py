"""Pydantic models for the catalog's JSON payloads.

Only the fields the connector consumes are declared; unknown fields are
ignored so additive API changes do not break parsing.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", protected_namespaces=())


class LocalizedString(_Payload):
    culture: str
    value: Optional[str] = None


class WireMetadataElement(_Payload):
    key: str
    name: Optional[str] = None
    url: Optional[str] = None


class LocalizedMetadataElement(_Payload):
    culture: str
    metadata_element: WireMetadataElement


class GenericMetadataPayload(_Payload):
    providers: List[LocalizedMetadataElement] = Field(default_factory=list)
    content_types: List[LocalizedMetadataElement] = Field(default_factory=list)
    binary_types: List[LocalizedMetadataElement] = Field(default_factory=list)
    content_categories: List[LocalizedMetadataElement] = Field(default_factory=list)
    license_types: List[LocalizedMetadataElement] = Field(default_factory=list)
    release_states: List[LocalizedMetadataElement] = Field(default_factory=list)
    license_exclusivities: List[LocalizedMetadataElement] = Field(default_factory=list)
    license_usages: List[LocalizedMetadataElement] = Field(default_factory=list)
    license_sizes: List[LocalizedMetadataElement] = Field(default_factory=list)
    license_placements: List[LocalizedMetadataElement] = Field(default_factory=list)
    license_distributions: List[LocalizedMetadataElement] = Field(default_factory=list)
    license_geographies: List[LocalizedMetadataElement] = Field(default_factory=list)
    license_industries: List[LocalizedMetadataElement] = Field(default_factory=list)
    license_languages: List[LocalizedMetadataElement] = Field(default_factory=list)
    license_usage_limits: List[LocalizedMetadataElement] = Field(default_factory=list)


class WireReleaseDetails(_Payload):
    model_release_state: Optional[str] = None
    property_release_state: Optional[str] = None
    provider_allowed_use_comment: Optional[List[LocalizedString]] = None
    provider_release_comment: Optional[List[LocalizedString]] = None
    provider_usage_constraints: Optional[List[LocalizedString]] = None


class WireContentElement(_Payload):
    uuid: str
    provider: Optional[str] = None
    content_type: Optional[str] = None
    content_category: Optional[str] = None
    name: Optional[List[LocalizedString]] = None
    description: Optional[List[LocalizedString]] = None
    keywords: Optional[List[LocalizedMetadataElement]] = None
    copyright_notices: Optional[List[LocalizedString]] = None
    release_details: Optional[WireReleaseDetails] = None


class WireLicenseTerm(_Payload):
    sequence_number: Optional[int] = None
    name: Optional[List[LocalizedString]] = None
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


class WireDownloadConstraints(_Payload):
    effective_max_downloads: Optional[int] = None
    effective_max_users: Optional[int] = None
    effective_max_reuses: Optional[int] = None


class WireOffering(_Payload):
    license_type: Optional[str] = None
    license_urls: Optional[List[LocalizedMetadataElement]] = None


class WireLicenseText(_Payload):
    effective_text: Optional[List[LocalizedString]] = None


class LicensePurchaseTransaction(_Payload):
    uuid: str
    cart_purchase_transaction_uuid: Optional[str] = None
    state: Optional[str] = None
    content_element: WireContentElement
    project_uuid: Optional[str] = None
    project_name: Optional[List[LocalizedString]] = None
    collection_uuid: Optional[str] = None
    collection_name: Optional[List[LocalizedString]] = None
    licensee_uuid: Optional[str] = None
    licensee_name: Optional[str] = None
    offering: Optional[WireOffering] = None
    license_text: Optional[WireLicenseText] = None
    license_terms: Optional[List[WireLicenseTerm]] = None
    license_download_constraints: Optional[WireDownloadConstraints] = None
    has_potentially_restrictive_license_terms: Optional[bool] = None
    can_be_synced: Optional[bool] = None
    purchased_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    last_updated_at: Optional[datetime] = None


class LicensePurchaseTransactionPage(_Payload):
    count: int = 0
    continuation_uuid: Optional[str] = None
    license_purchase_transactions: List[LicensePurchaseTransaction] = Field(default_factory=list)


class WireBinary(_Payload):
    uuid: str
    content_type: Optional[str] = None
    binary_type: Optional[str] = None
    name: Optional[List[LocalizedString]] = None
    description: Optional[List[LocalizedString]] = None
    usage: Optional[List[LocalizedString]] = None
    download_url: Optional[str] = None
    recommended_file_name: Optional[str] = None
    culture: Optional[str] = None
    version: Optional[int] = None


__all__ = [
    "GenericMetadataPayload",
    "LicensePurchaseTransaction",
    "LicensePurchaseTransactionPage",
    "LocalizedMetadataElement",
    "LocalizedString",
    "WireBinary",
    "WireContentElement",
    "WireDownloadConstraints",
    "WireLicenseTerm",
    "WireLicenseText",
    "WireMetadataElement",
    "WireOffering",
    "WireReleaseDetails",
]
