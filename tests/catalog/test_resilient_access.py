"""Tests for retry and reauthentication around catalog calls."""

from __future__ import annotations

from typing import Callable, List

import httpx
import pytest

from assetsync.catalog.api_client import CatalogApiClient
from assetsync.catalog.models import MetadataCategory
from assetsync.catalog.resilient import ResilientApiAccess
from assetsync.configuration.settings import StaticSettingsProvider, SyncSettings
from assetsync.errors import (
    AuthenticationError,
    AuthenticationFailure,
    CatalogApiError,
    PipelineError,
    PipelineFailure,
)

METADATA = {
    "providers": [{"culture": "en", "metadata_element": {"key": "getty", "name": "Getty"}}]
}


class StubAuth:
    def __init__(self) -> None:
        self.refreshes = 0
        self.token = "t0"

    async def get_access_token(self) -> str:
        return self.token

    async def refresh_access_token(self) -> None:
        self.refreshes += 1
        self.token = f"t{self.refreshes}"


class FailingAuth(StubAuth):
    async def refresh_access_token(self) -> None:
        raise AuthenticationError(AuthenticationFailure.CANNOT_REFRESH_TOKEN, "refresh rejected")


def make_access(handler: Callable[[httpx.Request], httpx.Response], auth=None):
    sleeps: List[float] = []

    async def sleep(delay: float) -> None:
        sleeps.append(delay)

    settings = SyncSettings(tenant_id="acme", import_languages=["en"])
    api = CatalogApiClient(http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    access = ResilientApiAccess(
        StaticSettingsProvider(settings), auth or StubAuth(), api_client=api, sleep=sleep
    )
    return access, sleeps


class Responses:
    """Hands out the queued responses in order, recording each request."""

    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.mark.asyncio()
async def test_forbidden_once_then_success_refreshes_exactly_once() -> None:
    responses = Responses(httpx.Response(403), httpx.Response(200, json=METADATA))
    auth = StubAuth()
    access, sleeps = make_access(responses, auth)

    metadata = await access.fetch_metadata()

    assert auth.refreshes == 1
    assert len(responses.requests) == 2
    assert [r.headers["Authorization"] for r in responses.requests] == ["Bearer t0", "Bearer t1"]
    assert sleeps == [2.0]
    assert metadata.elements(MetadataCategory.CONTENT_PROVIDERS)[0].key == "getty"


@pytest.mark.asyncio()
async def test_rate_limit_and_network_errors_back_off() -> None:
    responses = Responses(
        httpx.Response(429),
        httpx.ConnectError("down"),
        httpx.Response(200, json=METADATA),
    )
    auth = StubAuth()
    access, sleeps = make_access(responses, auth)

    await access.fetch_metadata()

    assert auth.refreshes == 0
    assert sleeps == [2.0, 4.0]


@pytest.mark.asyncio()
async def test_other_api_errors_are_not_retried() -> None:
    responses = Responses(httpx.Response(400, text="bad request"))
    access, sleeps = make_access(responses)

    with pytest.raises(CatalogApiError) as exc_info:
        await access.fetch_metadata()

    assert exc_info.value.status_code == 400
    assert len(responses.requests) == 1
    assert sleeps == []


@pytest.mark.asyncio()
async def test_exhausted_retries_become_transport_pipeline_error() -> None:
    responses = Responses(httpx.Response(503))
    access, sleeps = make_access(responses)

    with pytest.raises(PipelineError) as exc_info:
        await access.fetch_metadata()

    assert exc_info.value.kind == PipelineFailure.TRANSPORT
    assert len(responses.requests) == 5
    assert sleeps == [2.0, 4.0, 8.0, 16.0]


@pytest.mark.asyncio()
async def test_failed_refresh_surfaces_authentication_error() -> None:
    responses = Responses(httpx.Response(401))
    access, _ = make_access(responses, FailingAuth())

    with pytest.raises(AuthenticationError) as exc_info:
        await access.fetch_metadata()

    assert exc_info.value.reason == AuthenticationFailure.CANNOT_REFRESH_TOKEN


def _transaction(uuid: str, *, cart="cpt", can_be_synced=True) -> dict:
    return {
        "uuid": uuid,
        "cart_purchase_transaction_uuid": cart,
        "content_element": {"uuid": f"ce-{uuid}"},
        "can_be_synced": can_be_synced,
    }


@pytest.mark.asyncio()
async def test_asset_page_skips_unsyncable_transactions() -> None:
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path.endswith("/license-purchase-transactions-for-sync"):
            return httpx.Response(
                200,
                json={
                    "count": 3,
                    "continuation_uuid": "c1",
                    "license_purchase_transactions": [
                        _transaction("a"),
                        _transaction("b", can_be_synced=False),
                        _transaction("c", cart=None),
                    ],
                },
            )
        return httpx.Response(200, json=[{"uuid": "bin-1"}, {"uuid": "bin-2", "version": 2}])

    access, _ = make_access(handler)
    page = await access.fetch_asset_page("c0")

    assert page.has_more is True
    assert page.next_cursor == "c1"
    assert [asset.license_purchase_transaction_uuid for asset in page.assets] == ["a"]
    assert [binary.uuid for binary in page.assets[0].binaries] == ["bin-1", "bin-2"]
    assert requests[0].url.params["continuation_uuid"] == "c0"
    assert requests[0].url.params["limit"] == "10"
    assert len(requests) == 2


@pytest.mark.asyncio()
async def test_fully_filtered_page_still_has_more() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "count": 1,
                "continuation_uuid": "c2",
                "license_purchase_transactions": [_transaction("x", can_be_synced=False)],
            },
        )

    access, _ = make_access(handler)
    page = await access.fetch_asset_page("c1")

    assert page.assets == []
    assert page.has_more is True
    assert page.next_cursor == "c2"


@pytest.mark.asyncio()
async def test_empty_feed_ends_pagination() -> None:
    access, _ = make_access(lambda request: httpx.Response(200, json={"count": 0}))

    page = await access.fetch_asset_page(None)

    assert page.assets == []
    assert page.has_more is False
