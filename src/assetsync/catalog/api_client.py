"""Raw HTTP calls against the catalog consumer API.

No retries happen here; every call is a single request. Non-success statuses
surface as :class:`CatalogApiError`, network failures as
:class:`TransientTransportError`, and the retry decisions are left to
:mod:`assetsync.catalog.resilient`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from ..errors import CatalogApiError, TransientTransportError
from .wire import GenericMetadataPayload, LicensePurchaseTransactionPage, WireBinary

logger = logging.getLogger(__name__)

_BINARIES_ADAPTER = TypeAdapter(List[WireBinary])


class CatalogApiClient:
    """Thin async client for the catalog's sync endpoints."""

    def __init__(
        self,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize client.

        Args:
            http_client: Shared client; one is created (and owned) when omitted
            timeout: Request timeout in seconds for an owned client
        """
        self._client = http_client
        self._owns_client = http_client is None
        self.timeout = timeout

    async def __aenter__(self) -> "CatalogApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def get_generic_metadata(
        self, base_url: str, access_token: str
    ) -> GenericMetadataPayload:
        data = await self._get_json(base_url, "/generic-metadata-for-sync", access_token)
        return self._parse(GenericMetadataPayload.model_validate, data)

    async def get_license_purchase_transactions(
        self,
        base_url: str,
        access_token: str,
        *,
        continuation_uuid: Optional[str],
        limit: int,
    ) -> LicensePurchaseTransactionPage:
        params: Dict[str, Any] = {"limit": limit}
        if continuation_uuid:
            params["continuation_uuid"] = continuation_uuid
        data = await self._get_json(
            base_url, "/license-purchase-transactions-for-sync", access_token, params=params
        )
        return self._parse(LicensePurchaseTransactionPage.model_validate, data)

    async def get_license_purchase_transaction_binaries(
        self,
        base_url: str,
        access_token: str,
        *,
        cart_purchase_transaction_uuid: str,
        license_purchase_transaction_uuid: str,
    ) -> List[WireBinary]:
        path = (
            f"/cart-purchase-transactions/{cart_purchase_transaction_uuid}"
            f"/license-purchase-transactions/{license_purchase_transaction_uuid}"
            "/binaries-for-sync"
        )
        data = await self._get_json(base_url, path, access_token)
        return self._parse(_BINARIES_ADAPTER.validate_python, data)

    async def _get_json(
        self,
        base_url: str,
        path: str,
        access_token: str,
        *,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = base_url.rstrip("/") + path
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }

        try:
            response = await self._http().get(url, params=params, headers=headers)
        except httpx.TransportError as exc:
            raise TransientTransportError(
                f"Request to {path} failed: {exc}", details={"path": path}
            ) from exc

        if response.status_code >= 400:
            logger.debug(
                "Catalog API returned an error",
                extra={"sync_path": path, "sync_status": response.status_code},
            )
            raise CatalogApiError(response.status_code, body=response.text)

        try:
            return response.json()
        except ValueError as exc:
            raise CatalogApiError(
                response.status_code, "Catalog API returned malformed JSON", body=response.text
            ) from exc

    @staticmethod
    def _parse(validator, data: Any):
        try:
            return validator(data)
        except ValidationError as exc:
            raise CatalogApiError(
                200, f"Unexpected catalog payload: {exc.error_count()} validation errors"
            ) from exc


__all__ = ["CatalogApiClient"]
