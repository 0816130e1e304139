"""
Async client for the QZone photo endpoints, with JSONP unwrapping, envelope
checks and transport-level retries.
"""

import asyncio
import json
import logging
import re
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

import aiohttp
from pydantic import ValidationError

from qzone_sync.exceptions import RemoteAPIError
from qzone_sync.models.album import Album, Item

from .auth import CookieCredentials

log = logging.getLogger(__name__)

T = TypeVar("T")

_JSONP_PATTERN = re.compile(r"^\s*[\w$.]+\s*\((.*)\)\s*;?\s*$", re.DOTALL)

# Query parameters shared by every photo endpoint.
_COMMON_PARAMS = {
    "inCharset": "utf-8",
    "outCharset": "utf-8",
    "source": "qzone",
    "plat": "qzone",
    "appid": 4,
}


def decode_payload(text: str) -> dict[str, Any]:
    """Decodes a JSON or JSONP (``callback({...});``) response body."""
    match = _JSONP_PATTERN.match(text)
    body = match.group(1) if match else text
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        raise RemoteAPIError(f"Malformed response body: {e}") from e
    if not isinstance(payload, dict):
        raise RemoteAPIError(f"Unexpected response payload: {payload!r:.200}")
    return payload


def check_response(payload: dict[str, Any]) -> dict[str, Any]:
    """Raises on an error envelope and returns its ``data`` section."""
    code = payload.get("code")
    if code != 0:
        message = payload.get("message") or payload.get("msg") or "unknown error"
        log.debug(f"Error envelope from photo service: {payload}")
        raise RemoteAPIError(f"Photo service error {code}: {message}", code=code)
    return payload.get("data") or {}


def _is_transient(error: BaseException) -> bool:
    """Server errors, throttling and connection or timeout failures are worth retrying."""
    if isinstance(error, aiohttp.ClientResponseError):
        return error.status >= 500 or error.status == 429
    return True


class ResponseMediaStream:
    """Adapts an open aiohttp response to the engine's media stream interface."""

    CHUNK_SIZE = 262144  # 256 KB

    def __init__(self, response: aiohttp.ClientResponse):
        self._response = response

    @property
    def content_type(self) -> str | None:
        return self._response.headers.get("Content-Type")

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        async for chunk in self._response.content.iter_chunked(self.CHUNK_SIZE):
            yield chunk


class QzoneAPIClient:
    """
    Async client for the QZone album and photo listing endpoints.

    Transient transport failures are retried ``max_retries`` times with
    exponential backoff; an error envelope from the service is raised
    immediately as :class:`RemoteAPIError`.
    """

    ALBUM_LIST_URL = "https://user.qzone.qq.com/proxy/domain/photo.qzone.qq.com/fcgi-bin/fcg_list_album_v3"
    PHOTO_LIST_URL = "https://h5.qzone.qq.com/proxy/domain/photo.qzone.qq.com/fcgi-bin/cgi_list_photo"
    FLOATVIEW_URL = "https://user.qzone.qq.com/proxy/domain/photo.qzone.qq.com/fcgi-bin/cgi_floatview_photo_list_v2"

    def __init__(
        self,
        credentials: CookieCredentials,
        max_workers: int = 8,
        max_retries: int = 5,
        base_delay: float = 1.0,
    ):
        """
        Initializes the API client.

        Args:
            credentials: The parsed session cookie.
            max_workers: The number of concurrent downloads, used to size the connection pool.
            max_retries: Retries for transient transport failures before giving up.
            base_delay: First backoff delay in seconds; doubles on every retry.
        """
        self.credentials = credentials
        self.uin = credentials.uin
        self.max_workers = max_workers
        self.max_retries = max_retries
        self.base_delay = base_delay
        self._session: aiohttp.ClientSession | None = None

    async def _initialize_session(self) -> None:
        """Ensures an active aiohttp session carrying the session cookie."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=self.max_workers * 2,
                limit_per_host=self.max_workers,
                ttl_dns_cache=300,
                enable_cleanup_closed=True,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                headers={
                    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
                    "Cookie": self.credentials.raw,
                    "Referer": "https://user.qzone.qq.com/",
                },
                timeout=aiohttp.ClientTimeout(total=None, sock_connect=15, sock_read=90),
            )

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "QzoneAPIClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _with_retries(
        self, description: str, operation: Callable[[], Awaitable[T]]
    ) -> T:
        """Runs ``operation``, retrying transient transport failures."""
        attempts = self.max_retries + 1
        last_exception: BaseException | None = None
        for attempt in range(1, attempts + 1):
            try:
                return await operation()
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                if not _is_transient(e):
                    raise
                last_exception = e
                log.debug(
                    f"{description} attempt {attempt}/{attempts} failed: {e}. Retrying..."
                )
                if attempt < attempts:
                    await asyncio.sleep(self.base_delay * (2 ** (attempt - 1)))
        raise last_exception

    async def api_call(self, url: str, **params: Any) -> dict[str, Any]:
        """
        GETs a photo endpoint with the common and auth parameters and returns
        the ``data`` section of its envelope.
        """
        await self._initialize_session()
        query = {
            **_COMMON_PARAMS,
            "g_tk": self.credentials.g_tk(url),
            "uin": self.uin,
            "hostUin": self.uin,
            **params,
        }

        async def _fetch() -> str:
            async with self._session.get(url, params=query) as r:
                r.raise_for_status()
                return await r.text()

        text = await self._with_retries(f"GET {url.rsplit('/', 1)[-1]}", _fetch)
        return check_response(decode_payload(text))

    async def list_albums(self, offset: int = 0, page_size: int = 20) -> list[Album]:
        """Returns one page of the account's albums; ``[]`` past the last page."""
        data = await self.api_call(
            self.ALBUM_LIST_URL,
            handset=4,
            idcNum=4,
            needUserInfo=1,
            filter=1,
            pageNumModeClass=15,
            pageNumModeSort=40,
            notice=0,
            mode=2,
            sortOrder=4,
            pageStart=offset,
            pageNum=page_size,
        )
        try:
            return [Album.model_validate(a) for a in data.get("albumList") or []]
        except ValidationError as e:
            raise RemoteAPIError(f"Malformed album listing: {e}") from e

    async def _first_item_locator(self, album_id: str) -> str | None:
        data = await self.api_call(
            self.PHOTO_LIST_URL,
            mode=0,
            idcNum=4,
            topicId=album_id,
            noTopic=0,
            pageStart=0,
            pageNum=1,
            skipCmtCount=0,
            singleurl=1,
            notice=0,
            outstyle="json",
            format="jsonp",
            json_esc=1,
        )
        photos = data.get("photoList") or []
        return photos[0].get("lloc") if photos else None

    async def list_items(
        self, album_id: str, cursor: str | None = None, page_size: int = 20
    ) -> list[Item]:
        """
        Returns the page of items following ``cursor`` (newest first), or the
        first page when ``cursor`` is None. ``[]`` means the album is exhausted.
        """
        start = cursor
        if start is None:
            start = await self._first_item_locator(album_id)
            if start is None:
                return []

        data = await self.api_call(
            self.FLOATVIEW_URL,
            topicId=album_id,
            picKey=start,
            shootTime=0,
            cmtOrder=1,
            fupdate=1,
            cmtNum=0,
            likeNum=0,
            sortOrder=1,
            showMode=1,
            need_private_comment=0,
            prevNum=0,
            postNum=page_size,
        )
        try:
            items = [Item.model_validate(p) for p in data.get("photos") or []]
        except ValidationError as e:
            raise RemoteAPIError(f"Malformed item listing for album {album_id}: {e}") from e

        # The floatview page starts at picKey itself; drop the echoed cursor.
        if cursor is not None and items and items[0].id == cursor:
            items = items[1:]
        return items

    @asynccontextmanager
    async def open_stream(self, url: str) -> AsyncIterator[ResponseMediaStream]:
        """Opens a download, retrying connection and status failures."""
        await self._initialize_session()

        async def _open() -> aiohttp.ClientResponse:
            response = await self._session.get(url, allow_redirects=True)
            try:
                response.raise_for_status()
            except aiohttp.ClientResponseError:
                response.release()
                raise
            return response

        response = await self._with_retries("Download", _open)
        try:
            yield ResponseMediaStream(response)
        finally:
            response.release()
