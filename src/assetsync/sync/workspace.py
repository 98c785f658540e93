"""Per-run download folder for binaries."""

from __future__ import annotations

import asyncio
import logging
import re
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

from ..errors import CatalogApiError, PipelineError, PipelineFailure, TransientTransportError
from ..target.assets import BinaryAsset

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class SyncWorkspace:
    """Temporary folder of one sync run, removed when the run ends.

    Targets call :meth:`fetch_binary` for the binaries they actually need;
    each binary is downloaded at most once per run.
    """

    def __init__(
        self,
        root: Path,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 120.0,
    ) -> None:
        self.root = root
        self._client = http_client
        self._owns_client = http_client is None
        self._timeout = timeout
        self._downloads: Dict[str, Path] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    @classmethod
    def create(
        cls,
        temp_root: Optional[Path] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "SyncWorkspace":
        if temp_root is not None:
            temp_root.mkdir(parents=True, exist_ok=True)
        folder = tempfile.mkdtemp(prefix="assetsync-", dir=str(temp_root) if temp_root else None)
        return cls(Path(folder), http_client=http_client)

    async def __aenter__(self) -> "SyncWorkspace":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Remove the folder and release the owned HTTP client."""
        try:
            if self._client is not None and self._owns_client:
                await self._client.aclose()
                self._client = None
        finally:
            shutil.rmtree(self.root, ignore_errors=True)
            self._downloads.clear()

    async def fetch_binary(self, asset: BinaryAsset) -> Path:
        """Download the binary of ``asset`` into the workspace.

        Returns:
            Path of the downloaded file

        Raises:
            PipelineError: If the asset has no download URL
            CatalogApiError: If the download is answered with an error status
            TransientTransportError: On network failures
        """
        key = asset.worldwide_unique_binary_uuid
        lock = self._locks.setdefault(key, asyncio.Lock())

        async with lock:
            if key in self._downloads:
                return self._downloads[key]

            if not asset.download_url:
                raise PipelineError(
                    PipelineFailure.GENERIC, f"Binary {key} has no download URL"
                )

            file_name = _UNSAFE_CHARS.sub("_", asset.recommended_file_name or "binary")
            path = self.root / f"{key}_{file_name}"

            if self._client is None:
                self._client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)

            logger.debug("Downloading binary", extra={"sync_binary": key})
            try:
                async with self._client.stream("GET", asset.download_url) as response:
                    if response.status_code >= 400:
                        raise CatalogApiError(
                            response.status_code, f"Downloading binary {key} failed"
                        )
                    with open(path, "wb") as f:
                        async for chunk in response.aiter_bytes():
                            f.write(chunk)
            except httpx.TransportError as exc:
                path.unlink(missing_ok=True)
                raise TransientTransportError(f"Downloading binary {key} failed: {exc}") from exc

            self._downloads[key] = path
            return path


__all__ = ["SyncWorkspace"]
