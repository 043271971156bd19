"""SSRF-safe HTML fetching."""

import asyncio
import ipaddress
import logging
import socket
from typing import Awaitable, Callable, List, Optional
from urllib.parse import urlparse

import httpx

from dishflow_ai.app.core.config import Settings, get_settings
from dishflow_ai.app.core.errors import BlockedHostError, FetchError, UnsupportedContentTypeError
from dishflow_ai.app.services.url_parsing.content_extractor import extract_content
from dishflow_ai.app.services.url_parsing.models import WebpageContent

logger = logging.getLogger(__name__)

Resolver = Callable[[str, int], Awaitable[List[str]]]

ALLOWED_CONTENT_TYPES = ("text/html", "application/xhtml")


async def resolve_host(host: str, port: int) -> List[str]:
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    return [info[4][0] for info in infos]


def is_blocked_address(address: str) -> bool:
    """Check if an IP address points at internal or otherwise unroutable space."""
    try:
        ip = ipaddress.ip_address(address.split("%", 1)[0])
    except ValueError:
        return True
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped
    return (
        ip.is_loopback
        or ip.is_private
        or ip.is_link_local
        or ip.is_unspecified
        or ip.is_multicast
        or ip.is_reserved
    )


class SafeResolvingTransport(httpx.AsyncBaseTransport):
    """Transport wrapper that refuses to connect to internal addresses.

    The host of every outgoing request, redirects included, is resolved
    first; if any resolved address is blocked the request never reaches the
    wrapped transport.
    """

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        resolver: Optional[Resolver] = None,
    ):
        self._transport = transport or httpx.AsyncHTTPTransport()
        self._resolver = resolver or resolve_host

    async def check_host(self, host: str, port: int) -> None:
        if not host:
            raise BlockedHostError("URL has no host")
        try:
            ipaddress.ip_address(host.split("%", 1)[0])
            addresses = [host]
        except ValueError:
            try:
                addresses = await self._resolver(host, port)
            except socket.gaierror as exc:
                raise FetchError(f"dns lookup failed for {host}: {exc}") from exc
        if not addresses:
            raise FetchError(f"no addresses found for {host}")
        for address in addresses:
            if is_blocked_address(address):
                logger.warning("Blocked request to %s (resolves to %s)", host, address)
                raise BlockedHostError(f"host {host} resolves to a blocked address")

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        url = request.url
        port = url.port or (443 if url.scheme == "https" else 80)
        await self.check_host(url.host, port)
        return await self._transport.handle_async_request(request)

    async def aclose(self) -> None:
        await self._transport.aclose()


def create_safe_http_client(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    resolver: Optional[Resolver] = None,
) -> httpx.AsyncClient:
    """Build the long-lived client used for every caller-supplied URL."""
    settings = settings or get_settings()
    headers = {
        "User-Agent": settings.scraper_user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    }
    timeout = httpx.Timeout(
        settings.web_fetch_timeout_seconds,
        connect=settings.web_fetch_connect_timeout_seconds,
    )
    return httpx.AsyncClient(
        transport=SafeResolvingTransport(transport, resolver),
        headers=headers,
        timeout=timeout,
        follow_redirects=True,
        max_redirects=settings.web_fetch_max_redirects,
    )


def is_html_content_type(content_type: str) -> bool:
    lowered = content_type.lower()
    return any(allowed in lowered for allowed in ALLOWED_CONTENT_TYPES)


async def _read_capped(response: httpx.Response, max_bytes: int) -> bytes:
    chunks: List[bytes] = []
    total = 0
    async for chunk in response.aiter_bytes():
        remaining = max_bytes - total
        if len(chunk) >= remaining:
            chunks.append(chunk[:remaining])
            logger.info("Response body from %s reached %d byte cap, truncating", response.url, max_bytes)
            break
        chunks.append(chunk)
        total += len(chunk)
    return b"".join(chunks)


def _decode_body(content: bytes, content_type: str) -> str:
    encoding = None
    if "charset=" in content_type.lower():
        try:
            encoding = content_type.lower().split("charset=")[1].split(";")[0].strip().strip("\"'")
        except IndexError:
            encoding = None
    try:
        return content.decode(encoding or "utf-8")
    except (UnicodeDecodeError, LookupError):
        return content.decode("utf-8", errors="replace")


async def fetch_html(client: httpx.AsyncClient, url: str, max_bytes: int) -> tuple[str, str]:
    """Fetch ``url`` and return ``(html, final_url)``.

    Non-200 statuses and non-HTML content types are rejected before the body
    is read.
    """
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise FetchError("invalid URL: must start with http or https")

    try:
        async with client.stream("GET", url) as response:
            if response.status_code != 200:
                raise FetchError(f"HTTP {response.status_code}", status_code=response.status_code)
            content_type = response.headers.get("content-type", "")
            if content_type and not is_html_content_type(content_type):
                raise UnsupportedContentTypeError(content_type)
            body = await _read_capped(response, max_bytes)
            final_url = str(response.url)
    except httpx.TooManyRedirects as exc:
        raise FetchError(f"too many redirects fetching {url}") from exc
    except httpx.TimeoutException as exc:
        raise FetchError(f"timed out fetching {url}") from exc
    except httpx.HTTPError as exc:
        raise FetchError(f"failed to fetch webpage: {exc}") from exc

    return _decode_body(body, content_type), final_url


async def fetch_webpage(
    client: httpx.AsyncClient, url: str, settings: Optional[Settings] = None
) -> WebpageContent:
    """Fetch a recipe page and reduce it to prompt-ready text and an image URL."""
    settings = settings or get_settings()
    html, final_url = await fetch_html(client, url, settings.web_fetch_max_bytes)
    content = extract_content(html, max_chars=settings.web_content_max_chars)
    logger.info(
        "Fetched %s: %d chars of content (structured=%s, image=%s)",
        final_url,
        len(content.text),
        content.used_structured_data,
        bool(content.image_url),
    )
    return WebpageContent(
        url=url,
        final_url=final_url,
        text=content.text,
        title=content.title,
        image_url=content.image_url,
    )
