"""Tests for the QZone client's payload handling, paging and retries."""

from datetime import datetime
from unittest.mock import Mock

import aiohttp
import pytest

from qzone_sync.api.auth import CookieCredentials
from qzone_sync.api.client import QzoneAPIClient, check_response, decode_payload
from qzone_sync.exceptions import RemoteAPIError


def photo(lloc, **extra):
    return {"lloc": lloc, "shootTime": 0, "uploadTime": "2024-08-15 10:00:00", "url": f"http://x/{lloc}", **extra}


@pytest.fixture
def client():
    credentials = CookieCredentials.from_cookie_header("ptui_loginuin=1; skey=k")
    return QzoneAPIClient(credentials, max_retries=2, base_delay=0)


def stub_api(client, responses):
    calls = []

    async def fake_api_call(url, **params):
        calls.append((url, params))
        return responses[url]

    client.api_call = fake_api_call
    return calls


def test_decode_payload_strips_jsonp_wrapper():
    text = '_Callback(\n{"code": 0, "data": {"photos": []}}\n);'

    assert decode_payload(text) == {"code": 0, "data": {"photos": []}}


def test_decode_payload_accepts_plain_json():
    assert decode_payload('{"code": 0}') == {"code": 0}


def test_decode_payload_rejects_garbage():
    with pytest.raises(RemoteAPIError):
        decode_payload("<html>oops</html>")


def test_check_response_raises_on_error_code():
    with pytest.raises(RemoteAPIError) as excinfo:
        check_response({"code": -3000, "message": "please log in"})

    assert excinfo.value.code == -3000
    assert "please log in" in str(excinfo.value)


def test_check_response_returns_data_section():
    assert check_response({"code": 0, "data": {"albumList": []}}) == {"albumList": []}
    assert check_response({"code": 0}) == {}


@pytest.mark.asyncio
async def test_list_albums_parses_page(client):
    stub_api(
        client,
        {
            client.ALBUM_LIST_URL: {
                "albumList": [
                    {"id": "A1", "name": "Trip", "lastuploadtime": 100, "total": 3}
                ]
            }
        },
    )

    (album,) = await client.list_albums(0, 20)

    assert (album.id, album.name, album.last_modified_at, album.item_count) == (
        "A1",
        "Trip",
        100,
        3,
    )


@pytest.mark.asyncio
async def test_list_albums_past_last_page_is_empty(client):
    stub_api(client, {client.ALBUM_LIST_URL: {}})

    assert await client.list_albums(40, 20) == []


@pytest.mark.asyncio
async def test_first_item_page_starts_at_newest_item(client):
    calls = stub_api(
        client,
        {
            client.PHOTO_LIST_URL: {"photoList": [{"lloc": "L1"}]},
            client.FLOATVIEW_URL: {"photos": [photo("L1"), photo("L2")]},
        },
    )

    items = await client.list_items("A1", None, 20)

    assert [i.id for i in items] == ["L1", "L2"]
    assert calls[1][1]["picKey"] == "L1"
    assert calls[1][1]["postNum"] == 20


@pytest.mark.asyncio
async def test_following_page_drops_echoed_cursor(client):
    stub_api(client, {client.FLOATVIEW_URL: {"photos": [photo("L2"), photo("L3")]}})

    items = await client.list_items("A1", "L2", 20)

    assert [i.id for i in items] == ["L3"]


@pytest.mark.asyncio
async def test_empty_album_has_no_pages(client):
    calls = stub_api(client, {client.PHOTO_LIST_URL: {"photoList": None}})

    assert await client.list_items("A1", None, 20) == []
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_video_items_use_video_download_url(client):
    video = photo("V1", video_info={"download_url": "http://x/v.mp4"})
    stub_api(client, {client.FLOATVIEW_URL: {"photos": [video]}})

    (item,) = await client.list_items("A1", "L0", 20)

    assert item.download_url == "http://x/v.mp4"
    assert item.captured_at is None
    assert item.uploaded_at == datetime(2024, 8, 15, 10, 0, 0)


@pytest.mark.asyncio
async def test_malformed_item_raises_remote_error(client):
    stub_api(client, {client.FLOATVIEW_URL: {"photos": [{"lloc": "L9"}]}})

    with pytest.raises(RemoteAPIError):
        await client.list_items("A1", "L0", 20)


@pytest.mark.asyncio
async def test_transient_failures_are_retried(client):
    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise aiohttp.ClientConnectionError("reset")
        return "ok"

    assert await client._with_retries("test", flaky) == "ok"
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_retry_exhaustion_surfaces_last_error(client):
    attempts = []

    async def down():
        attempts.append(1)
        raise aiohttp.ClientConnectionError("down")

    with pytest.raises(aiohttp.ClientConnectionError):
        await client._with_retries("test", down)
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_error_envelope_is_not_retried(client):
    attempts = []

    async def rejected():
        attempts.append(1)
        raise RemoteAPIError("denied", code=-1)

    with pytest.raises(RemoteAPIError):
        await client._with_retries("test", rejected)
    assert len(attempts) == 1


def response_error(status):
    return aiohttp.ClientResponseError(
        request_info=Mock(real_url="https://cdn.example/x"),
        history=(),
        status=status,
        message="status",
    )


@pytest.mark.asyncio
async def test_client_errors_are_not_retried(client):
    attempts = []

    async def gone():
        attempts.append(1)
        raise response_error(404)

    with pytest.raises(aiohttp.ClientResponseError):
        await client._with_retries("test", gone)
    assert len(attempts) == 1


@pytest.mark.asyncio
async def test_server_errors_are_retried(client):
    attempts = []

    async def overloaded():
        attempts.append(1)
        if len(attempts) < 2:
            raise response_error(503)
        return "ok"

    assert await client._with_retries("test", overloaded) == "ok"
    assert len(attempts) == 2
