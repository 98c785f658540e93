"""Catalog access: payload models, localization and the retrying API layer."""

from .api_client import CatalogApiClient
from .models import (
    AssetPage,
    DownloadConstraints,
    GenericMetadata,
    LicenseTerm,
    MetadataCategory,
    MetadataElement,
    RawAsset,
    RawBinary,
    ReleaseDetails,
)
from .resilient import ResilientApiAccess

__all__ = [
    "AssetPage",
    "CatalogApiClient",
    "DownloadConstraints",
    "GenericMetadata",
    "LicenseTerm",
    "MetadataCategory",
    "MetadataElement",
    "RawAsset",
    "RawBinary",
    "ReleaseDetails",
    "ResilientApiAccess",
]
