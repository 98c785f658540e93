"""Conversion of catalog payloads into localized catalog contracts."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Sequence

from .localization import grouped_metadata_elements, grouped_names, localized_values
from .models import (
    DownloadConstraints,
    GenericMetadata,
    LicenseTerm,
    RawAsset,
    RawBinary,
    ReleaseDetails,
)
from .wire import (
    GenericMetadataPayload,
    LicensePurchaseTransaction,
    WireBinary,
    WireLicenseTerm,
)

DEFAULT_CATALOG_UI_URL_TEMPLATE = (
    "https://{tenant_id}.smint.io/project/{project_uuid}/content-element/{content_element_uuid}"
)


def convert_generic_metadata(
    payload: GenericMetadataPayload, import_languages: Sequence[str]
) -> GenericMetadata:
    def group(elements):
        return grouped_metadata_elements(import_languages, elements)

    return GenericMetadata(
        content_providers=group(payload.providers),
        content_types=group(payload.content_types),
        binary_types=group(payload.binary_types),
        content_categories=group(payload.content_categories),
        license_types=group(payload.license_types),
        release_states=group(payload.release_states),
        license_exclusivities=group(payload.license_exclusivities),
        license_usages=group(payload.license_usages),
        license_sizes=group(payload.license_sizes),
        license_placements=group(payload.license_placements),
        license_distributions=group(payload.license_distributions),
        license_geographies=group(payload.license_geographies),
        license_industries=group(payload.license_industries),
        license_languages=group(payload.license_languages),
        license_usage_limits=group(payload.license_usage_limits),
    )


def aggregate_editorial_use(terms: Optional[Sequence[WireLicenseTerm]]) -> Optional[bool]:
    """Combine the editorial-use flags of all license terms.

    Any restricting term wins. ``False`` is only reported when no term says
    otherwise, and None when no term carries the information at all.
    """
    result: Optional[bool] = None
    for term in terms or ():
        if term.is_editorial_use is True:
            return True
        if term.is_editorial_use is False and result is None:
            result = False
    return result


def convert_license_terms(
    terms: Optional[Sequence[WireLicenseTerm]], import_languages: Sequence[str]
) -> Optional[List[LicenseTerm]]:
    if not terms:
        return None

    converted = []
    for term in terms:
        data = term.model_dump(exclude={"name"})
        converted.append(
            LicenseTerm(name=localized_values(import_languages, term.name), **data)
        )
    return converted


def convert_transaction(
    transaction: LicensePurchaseTransaction,
    *,
    tenant_id: str,
    import_languages: Sequence[str],
    url_template: str = DEFAULT_CATALOG_UI_URL_TEMPLATE,
) -> RawAsset:
    """Convert a license purchase transaction, without its binaries."""
    element = transaction.content_element

    release_details = None
    if element.release_details is not None:
        details = element.release_details
        release_details = ReleaseDetails(
            model_release_state=details.model_release_state,
            property_release_state=details.property_release_state,
            provider_allowed_use_comment=localized_values(
                import_languages, details.provider_allowed_use_comment
            ),
            provider_release_comment=localized_values(
                import_languages, details.provider_release_comment
            ),
            provider_usage_constraints=localized_values(
                import_languages, details.provider_usage_constraints
            ),
        )

    download_constraints = None
    if transaction.license_download_constraints is not None:
        constraints = transaction.license_download_constraints
        download_constraints = DownloadConstraints(
            max_downloads=constraints.effective_max_downloads,
            max_users=constraints.effective_max_users,
            max_reuses=constraints.effective_max_reuses,
        )

    offering = transaction.offering
    license_text = transaction.license_text

    return RawAsset(
        content_element_uuid=element.uuid,
        license_purchase_transaction_uuid=transaction.uuid,
        cart_purchase_transaction_uuid=transaction.cart_purchase_transaction_uuid,
        state=transaction.state,
        provider=element.provider,
        content_type=element.content_type,
        category=element.content_category,
        name=localized_values(import_languages, element.name),
        description=localized_values(import_languages, element.description),
        keywords=grouped_names(import_languages, element.keywords),
        copyright_notices=localized_values(import_languages, element.copyright_notices),
        project_uuid=transaction.project_uuid,
        project_name=localized_values(import_languages, transaction.project_name),
        collection_uuid=transaction.collection_uuid,
        collection_name=localized_values(import_languages, transaction.collection_name),
        licensee_uuid=transaction.licensee_uuid,
        licensee_name=transaction.licensee_name,
        license_type=offering.license_type if offering else None,
        license_text=localized_values(
            import_languages, license_text.effective_text if license_text else None
        ),
        license_urls=grouped_names(
            import_languages, offering.license_urls if offering else None, use_url=True
        ),
        license_terms=convert_license_terms(transaction.license_terms, import_languages),
        release_details=release_details,
        download_constraints=download_constraints,
        is_editorial_use=aggregate_editorial_use(transaction.license_terms),
        has_restrictive_license_terms=bool(transaction.has_potentially_restrictive_license_terms),
        catalog_url=url_template.format(
            tenant_id=tenant_id,
            project_uuid=transaction.project_uuid,
            content_element_uuid=element.uuid,
        ),
        purchased_at=transaction.purchased_at,
        created_at=transaction.created_at,
        last_updated_at=(
            transaction.last_updated_at
            or transaction.created_at
            or datetime.now(timezone.utc)
        ),
    )


def convert_binaries(
    binaries: Sequence[WireBinary], import_languages: Sequence[str]
) -> List[RawBinary]:
    return [
        RawBinary(
            uuid=binary.uuid,
            content_type=binary.content_type,
            binary_type=binary.binary_type,
            name=localized_values(import_languages, binary.name),
            description=localized_values(import_languages, binary.description),
            usage=localized_values(import_languages, binary.usage),
            download_url=binary.download_url,
            recommended_file_name=binary.recommended_file_name,
            culture=binary.culture,
            version=binary.version or 1,
        )
        for binary in binaries
    ]


__all__ = [
    "DEFAULT_CATALOG_UI_URL_TEMPLATE",
    "aggregate_editorial_use",
    "convert_binaries",
    "convert_generic_metadata",
    "convert_license_terms",
    "convert_transaction",
]
