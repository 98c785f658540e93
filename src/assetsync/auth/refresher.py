"""Access token handling for the catalog API.

Token acquisition (browser redirects, device flows) happens outside the
connector. What the sync engine needs is the current access token and a way
to refresh it when the catalog answers 401/403; that is the
:class:`AuthRefresher` contract.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

import httpx
from pydantic import BaseModel, Field

from ..configuration.settings import SettingsProvider
from ..errors import AuthenticationError, AuthenticationFailure

logger = logging.getLogger(__name__)


class TokenRecord(BaseModel):
    """Persisted OAuth token state."""

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    identity_token: Optional[str] = None
    success: bool = False
    error_message: Optional[str] = None
    refreshed_at: Optional[datetime] = Field(default=None)

    def validate_for_sync(self) -> None:
        if not self.success or not self.access_token:
            raise AuthenticationError(
                AuthenticationFailure.WRONG_STATE, "The access token is missing"
            )

    def validate_for_token_refresh(self) -> None:
        if not self.success or not self.refresh_token:
            raise AuthenticationError(
                AuthenticationFailure.WRONG_STATE, "The refresh token is missing"
            )


class TokenStore(Protocol):
    def get_token(self) -> Optional[TokenRecord]:
        ...

    def set_token(self, record: TokenRecord) -> None:
        ...


class MemoryTokenStore:
    """Keeps the token record in process memory."""

    def __init__(self, record: Optional[TokenRecord] = None) -> None:
        self._record = record

    @classmethod
    def from_tokens(
        cls, access_token: Optional[str], refresh_token: Optional[str] = None
    ) -> "MemoryTokenStore":
        if not access_token and not refresh_token:
            return cls()
        return cls(
            TokenRecord(access_token=access_token, refresh_token=refresh_token, success=True)
        )

    def get_token(self) -> Optional[TokenRecord]:
        return self._record.model_copy() if self._record else None

    def set_token(self, record: TokenRecord) -> None:
        self._record = record.model_copy()


class AuthRefresher(Protocol):
    """What the resilient API layer needs from authentication."""

    async def refresh_access_token(self) -> None:
        ...

    async def get_access_token(self) -> str:
        ...


class OAuthTokenRefresher:
    """Refreshes catalog access tokens with the OAuth refresh-token grant.

    Concurrent refresh requests are serialized so a burst of 401 responses
    results in one token request at a time.
    """

    def __init__(
        self,
        settings_provider: SettingsProvider,
        token_store: TokenStore,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ) -> None:
        self._settings_provider = settings_provider
        self._token_store = token_store
        self._http_client = http_client
        self._timeout = timeout
        self._lock = asyncio.Lock()

    async def get_access_token(self) -> str:
        record = self._token_store.get_token()
        if record is None:
            raise AuthenticationError(
                AuthenticationFailure.WRONG_STATE, "No access token is available"
            )
        record.validate_for_sync()
        return record.access_token

    async def refresh_access_token(self) -> None:
        """Exchange the stored refresh token for a new access token.

        Raises:
            ConfigurationError: If the authenticator settings are incomplete
            AuthenticationError: If the token endpoint rejects the refresh
        """
        settings = self._settings_provider.get_settings()
        settings.validate_for_authenticator()

        async with self._lock:
            logger.info("Refreshing catalog access token")

            record = self._token_store.get_token()
            if record is None:
                raise AuthenticationError(
                    AuthenticationFailure.WRONG_STATE, "No token data available to refresh"
                )
            record.validate_for_token_refresh()

            data = {
                "grant_type": "refresh_token",
                "refresh_token": record.refresh_token,
                "client_id": settings.client_id,
                "client_secret": settings.client_secret.get_secret_value(),
            }

            try:
                payload = await self._post(settings.token_url, data)
            except httpx.HTTPError as exc:
                logger.error("Error refreshing catalog access token: %s", exc)
                raise AuthenticationError(
                    AuthenticationFailure.CANNOT_REFRESH_TOKEN,
                    f"Refreshing the OAuth access token failed: {exc}",
                ) from exc

            error = payload.get("error")
            access_token = payload.get("access_token")
            updated = TokenRecord(
                access_token=access_token,
                refresh_token=payload.get("refresh_token") or record.refresh_token,
                identity_token=payload.get("id_token"),
                success=not error and bool(access_token),
                error_message=payload.get("error_description") or error,
                refreshed_at=datetime.now(timezone.utc),
            )
            self._token_store.set_token(updated)

            if not updated.success:
                raise AuthenticationError(
                    AuthenticationFailure.CANNOT_REFRESH_TOKEN,
                    f"Refreshing the OAuth access token failed: {updated.error_message}",
                )

            logger.info("Successfully refreshed catalog access token")

    async def _post(self, url: str, data: dict) -> dict[str, Any]:
        if self._http_client is not None:
            response = await self._http_client.post(
                url, data=data, headers={"Accept": "application/json"}
            )
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    url, data=data, headers={"Accept": "application/json"}
                )

        if response.status_code >= 400:
            raise AuthenticationError(
                AuthenticationFailure.CANNOT_REFRESH_TOKEN,
                f"Refreshing the OAuth access token failed: HTTP {response.status_code}",
            )
        try:
            return response.json()
        except ValueError as exc:
            raise AuthenticationError(
                AuthenticationFailure.CANNOT_REFRESH_TOKEN,
                "Token endpoint returned malformed JSON",
            ) from exc


__all__ = [
    "AuthRefresher",
    "MemoryTokenStore",
    "OAuthTokenRefresher",
    "TokenRecord",
    "TokenStore",
]
