"""Transformation of raw catalog assets into target assets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from ..catalog.models import LicenseTerm, MetadataCategory, RawAsset, ReleaseDetails
from ..errors import PipelineError, PipelineFailure
from ..target.assets import (
    AssetInfo,
    BinaryAsset,
    CompoundAsset,
    SyncLicenseTerm,
    SyncReleaseDetails,
)
from ..target.capabilities import SyncTargetCapabilities

KeyResolver = Callable[[MetadataCategory, str], Awaitable[str]]

# License term list fields and the metadata category their keys belong to
_TERM_FIELDS: Tuple[Tuple[str, MetadataCategory], ...] = (
    ("exclusivities", MetadataCategory.LICENSE_EXCLUSIVITIES),
    ("allowed_usages", MetadataCategory.LICENSE_USAGES),
    ("restricted_usages", MetadataCategory.LICENSE_USAGES),
    ("allowed_sizes", MetadataCategory.LICENSE_SIZES),
    ("restricted_sizes", MetadataCategory.LICENSE_SIZES),
    ("allowed_placements", MetadataCategory.LICENSE_PLACEMENTS),
    ("restricted_placements", MetadataCategory.LICENSE_PLACEMENTS),
    ("allowed_distributions", MetadataCategory.LICENSE_DISTRIBUTIONS),
    ("restricted_distributions", MetadataCategory.LICENSE_DISTRIBUTIONS),
    ("allowed_geographies", MetadataCategory.LICENSE_GEOGRAPHIES),
    ("restricted_geographies", MetadataCategory.LICENSE_GEOGRAPHIES),
    ("allowed_industries", MetadataCategory.LICENSE_INDUSTRIES),
    ("restricted_industries", MetadataCategory.LICENSE_INDUSTRIES),
    ("allowed_languages", MetadataCategory.LICENSE_LANGUAGES),
    ("restricted_languages", MetadataCategory.LICENSE_LANGUAGES),
    ("usage_limits", MetadataCategory.LICENSE_USAGE_LIMITS),
)


@dataclass(frozen=True)
class TransformedAsset:
    """All target representations of one raw asset."""

    binaries: Tuple[BinaryAsset, ...]
    compound: Optional[CompoundAsset] = None

    def __len__(self) -> int:
        return len(self.binaries) + (1 if self.compound is not None else 0)


def check_capabilities(asset: RawAsset, capabilities: SyncTargetCapabilities) -> None:
    """Raise if the target cannot store ``asset``.

    Raises:
        PipelineError: CAPABILITY, for compound assets or binary updates the
            target does not support
    """
    if len(asset.binaries) > 1 and not capabilities.compound_assets:
        raise PipelineError(
            PipelineFailure.CAPABILITY, "Sync target does not support compound assets"
        )
    if not capabilities.binary_updates and any(binary.version > 1 for binary in asset.binaries):
        raise PipelineError(
            PipelineFailure.CAPABILITY, "Sync target does not support binary updates"
        )


class AssetTransformer:
    """Builds target assets, resolving metadata keys through ``resolve``."""

    def __init__(self, resolve: KeyResolver) -> None:
        self._resolve = resolve

    async def _key(self, category: MetadataCategory, key: Optional[str]) -> Optional[str]:
        if key is None:
            return None
        return await self._resolve(category, key)

    async def _keys(
        self, category: MetadataCategory, keys: Optional[Sequence[str]]
    ) -> Tuple[str, ...]:
        return tuple([await self._resolve(category, key) for key in keys or ()])

    async def _license_term(self, term: LicenseTerm) -> SyncLicenseTerm:
        resolved = {
            field_name: await self._keys(category, getattr(term, field_name))
            for field_name, category in _TERM_FIELDS
        }
        return SyncLicenseTerm(
            sequence_number=term.sequence_number,
            name=term.name,
            to_be_used_until=term.to_be_used_until,
            valid_from=term.valid_from,
            valid_until=term.valid_until,
            is_editorial_use=term.is_editorial_use,
            **resolved,
        )

    async def _release_details(
        self, details: Optional[ReleaseDetails]
    ) -> Optional[SyncReleaseDetails]:
        if details is None:
            return None
        return SyncReleaseDetails(
            model_release_state=await self._key(
                MetadataCategory.RELEASE_STATES, details.model_release_state
            ),
            property_release_state=await self._key(
                MetadataCategory.RELEASE_STATES, details.property_release_state
            ),
            provider_allowed_use_comment=details.provider_allowed_use_comment,
            provider_release_comment=details.provider_release_comment,
            provider_usage_constraints=details.provider_usage_constraints,
        )

    async def asset_info(self, raw: RawAsset) -> AssetInfo:
        return AssetInfo(
            content_element_uuid=raw.content_element_uuid,
            license_purchase_transaction_uuid=raw.license_purchase_transaction_uuid,
            cart_purchase_transaction_uuid=raw.cart_purchase_transaction_uuid,
            state=raw.state,
            content_provider=await self._key(MetadataCategory.CONTENT_PROVIDERS, raw.provider),
            content_type=await self._key(MetadataCategory.CONTENT_TYPES, raw.content_type),
            content_category=await self._key(MetadataCategory.CONTENT_CATEGORIES, raw.category),
            license_type=await self._key(MetadataCategory.LICENSE_TYPES, raw.license_type),
            name=raw.name,
            description=raw.description,
            keywords=raw.keywords,
            copyright_notices=raw.copyright_notices,
            project_uuid=raw.project_uuid,
            project_name=raw.project_name,
            collection_uuid=raw.collection_uuid,
            collection_name=raw.collection_name,
            licensee_uuid=raw.licensee_uuid,
            licensee_name=raw.licensee_name,
            license_text=raw.license_text,
            license_urls=raw.license_urls,
            license_terms=tuple(
                [await self._license_term(term) for term in raw.license_terms or ()]
            ),
            release_details=await self._release_details(raw.release_details),
            download_constraints=raw.download_constraints,
            is_editorial_use=raw.is_editorial_use,
            has_restrictive_license_terms=raw.has_restrictive_license_terms,
            catalog_url=raw.catalog_url,
            purchased_at=raw.purchased_at,
            created_at=raw.created_at,
            last_updated_at=raw.last_updated_at,
        )

    async def transform(self, raw: RawAsset) -> TransformedAsset:
        """One binary asset per binary, plus a compound asset for multi-binary assets."""
        info = await self.asset_info(raw)

        binaries: List[BinaryAsset] = []
        for binary in raw.binaries:
            binaries.append(
                BinaryAsset(
                    info=info,
                    binary_uuid=binary.uuid,
                    binary_type=await self._key(MetadataCategory.BINARY_TYPES, binary.binary_type),
                    binary_culture=binary.culture,
                    binary_version=binary.version,
                    binary_name=binary.name,
                    binary_description=binary.description,
                    binary_usage=binary.usage,
                    download_url=binary.download_url,
                    recommended_file_name=binary.recommended_file_name,
                )
            )

        compound = None
        if len(binaries) > 1:
            compound = CompoundAsset(info=info, parts=tuple(binaries))

        return TransformedAsset(binaries=tuple(binaries), compound=compound)


__all__ = ["AssetTransformer", "KeyResolver", "TransformedAsset", "check_capabilities"]
