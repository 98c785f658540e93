"""Catalog authentication collaborators."""

from .refresher import (
    AuthRefresher,
    MemoryTokenStore,
    OAuthTokenRefresher,
    TokenRecord,
    TokenStore,
)

__all__ = [
    "AuthRefresher",
    "MemoryTokenStore",
    "OAuthTokenRefresher",
    "TokenRecord",
    "TokenStore",
]
