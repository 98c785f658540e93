"""Retrying access to the catalog API.

Every remote call goes through :meth:`ResilientApiAccess.execute`, which
applies the :class:`~assetsync.orchestrator.retry_policy.RetryPolicy`:

- 401/403: refresh the access token once, back off, try again
- 429, transport failures and 5xx: back off, try again
- any other API error: give up immediately and re-raise

When the attempts are used up on a retryable failure the last error is
surfaced as ``PipelineError(kind=TRANSPORT)``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from ..auth.refresher import AuthRefresher
from ..configuration.settings import SettingsProvider, SyncSettings
from ..errors import PipelineError, PipelineFailure
from ..orchestrator.retry_policy import FailureType, RetryPolicy, classify_failure
from .api_client import CatalogApiClient
from .converters import convert_binaries, convert_generic_metadata, convert_transaction
from .models import AssetPage, GenericMetadata, RawAsset

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResilientApiAccess:
    """Fetches generic metadata and asset pages with retry and reauthentication."""

    def __init__(
        self,
        settings_provider: SettingsProvider,
        auth: AuthRefresher,
        *,
        api_client: Optional[CatalogApiClient] = None,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the access layer.

        Args:
            settings_provider: Source of tenant, languages and page size
            auth: Token provider, refreshed on 401/403
            api_client: Raw catalog client (created when omitted)
            policy: Retry policy; defaults to the ``retry`` block of the settings
            sleep: Awaitable used for backoff delays
        """
        self._settings_provider = settings_provider
        self._auth = auth
        self._api = api_client or CatalogApiClient()
        self._policy = policy
        self._sleep = sleep

    async def aclose(self) -> None:
        await self._api.aclose()

    def _retry_policy(self, settings: SyncSettings) -> RetryPolicy:
        return self._policy or settings.retry

    async def execute(
        self,
        operation: str,
        call: Callable[[str], Awaitable[T]],
        *,
        policy: Optional[RetryPolicy] = None,
    ) -> T:
        """Run ``call`` with a fresh access token under the retry policy.

        Args:
            operation: Human readable name used in log records
            call: Coroutine function taking the access token
            policy: Retry policy for this call

        Returns:
            Whatever ``call`` returns on the first successful attempt

        Raises:
            PipelineError: When retryable failures used up all attempts
        """
        policy = policy or self._policy or RetryPolicy()
        attempt = 0

        while True:
            attempt += 1
            # Picks up a token refreshed after the previous attempt
            access_token = await self._auth.get_access_token()

            try:
                return await call(access_token)
            except Exception as exc:
                failure_type = classify_failure(exc)

                if not policy.should_retry(failure_type, attempt):
                    if failure_type == FailureType.PERMANENT or (
                        failure_type == FailureType.UNKNOWN
                        and not policy.retry_unknown_failures
                    ):
                        raise
                    logger.error(
                        "Giving up on %s after %d attempts",
                        operation,
                        attempt,
                        extra={"sync_attempt": attempt, "sync_failure": failure_type.value},
                    )
                    raise PipelineError(
                        PipelineFailure.TRANSPORT,
                        f"Error communicating with the catalog during {operation}: {exc}",
                    ) from exc

                if failure_type == FailureType.UNAUTHORIZED:
                    await self._auth.refresh_access_token()

                delay = policy.calculate_delay(attempt)
                logger.warning(
                    "Error communicating with the catalog during %s, retrying in %.1fs",
                    operation,
                    delay,
                    extra={
                        "sync_attempt": attempt,
                        "sync_failure": failure_type.value,
                        "sync_delay": delay,
                    },
                )
                await self._sleep(delay)

    async def fetch_metadata(self) -> GenericMetadata:
        """Fetch all generic metadata categories, localized for import."""
        settings = self._settings_provider.get_settings()
        logger.info("Receiving generic metadata from the catalog")

        payload = await self.execute(
            "generic metadata",
            lambda token: self._api.get_generic_metadata(settings.catalog_base_url, token),
            policy=self._retry_policy(settings),
        )
        metadata = convert_generic_metadata(payload, settings.import_languages)

        logger.info("Received generic metadata from the catalog")
        return metadata

    async def fetch_asset_page(self, cursor: Optional[str]) -> AssetPage:
        """Fetch the asset page following ``cursor``.

        Args:
            cursor: Continuation token of the last committed page, None to start over

        Returns:
            AssetPage with the syncable assets, the next cursor and ``has_more``
        """
        settings = self._settings_provider.get_settings()
        policy = self._retry_policy(settings)
        base_url = settings.catalog_base_url

        logger.info("Receiving assets from the catalog", extra={"sync_cursor": cursor})

        result = await self.execute(
            "asset page",
            lambda token: self._api.get_license_purchase_transactions(
                base_url, token, continuation_uuid=cursor, limit=settings.page_size
            ),
            policy=policy,
        )

        transactions = result.license_purchase_transactions
        if result.count == 0 or not transactions:
            return AssetPage(assets=[], next_cursor=result.continuation_uuid, has_more=False)

        assets: list[RawAsset] = []
        for transaction in transactions:
            if not transaction.can_be_synced:
                continue

            asset = convert_transaction(
                transaction,
                tenant_id=settings.tenant_id,
                import_languages=settings.import_languages,
                url_template=settings.catalog_ui_url_template,
            )

            if not asset.cart_purchase_transaction_uuid:
                logger.warning(
                    "Skipping license purchase transaction without cart purchase transaction",
                    extra={"sync_transaction": transaction.uuid},
                )
                continue

            binaries = await self.execute(
                "asset binaries",
                lambda token, asset=asset: self._api.get_license_purchase_transaction_binaries(
                    base_url,
                    token,
                    cart_purchase_transaction_uuid=asset.cart_purchase_transaction_uuid,
                    license_purchase_transaction_uuid=asset.license_purchase_transaction_uuid,
                ),
                policy=policy,
            )
            asset.binaries = convert_binaries(binaries, settings.import_languages)
            assets.append(asset)

        logger.info(
            "Received %d assets from the catalog",
            len(assets),
            extra={"sync_cursor": result.continuation_uuid},
        )
        # Filtered-out transactions still mean the feed continues
        return AssetPage(assets=assets, next_cursor=result.continuation_uuid, has_more=True)


__all__ = ["ResilientApiAccess"]
