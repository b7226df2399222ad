"""Link preview service: fetch a page and extract its image, favicon, title and description."""
import ipaddress
import logging
import socket
from dataclasses import dataclass
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

USER_AGENT = 'Mozilla/5.0 (compatible; PortfolioBot/1.0)'
DEFAULT_TIMEOUT = 10.0


class SSRFBlockedError(Exception):
    """Raised when a URL targets a private/internal network address."""

    pass


def is_private_ip(ip_str: str) -> bool:
    """
    Check if an IP address is private, loopback, or otherwise internal.

    Args:
        ip_str: IP address string (IPv4 or IPv6).

    Returns:
        True if the IP is private/internal, False if public.
    """
    try:
        ip = ipaddress.ip_address(ip_str)
    except ValueError:
        # Unparseable addresses are treated as internal
        return True
    return (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_multicast
        or ip.is_reserved
        or ip.is_unspecified
    )


def validate_url_not_private(url: str) -> None:
    """
    Validate that a URL does not target a private/internal network.

    Resolves the hostname to check the actual IP address, so a public-looking
    hostname that resolves to an internal IP is also blocked.

    Raises:
        SSRFBlockedError: If the URL targets a private network.
        ValueError: If the URL is malformed or the host does not resolve.
    """
    parsed = urlparse(url)
    if parsed.scheme not in ('http', 'https'):
        raise ValueError(f"Unsupported URL scheme: {url}")

    hostname = parsed.hostname
    if not hostname:
        raise ValueError(f"Invalid URL (no hostname): {url}")

    if hostname.lower() in ('localhost', 'localhost.localdomain'):
        raise SSRFBlockedError(f"Blocked request to localhost: {url}")

    try:
        addrinfo = socket.getaddrinfo(hostname, None, socket.AF_UNSPEC, socket.SOCK_STREAM)
    except socket.gaierror as e:
        raise ValueError(f"Could not resolve hostname: {hostname}") from e

    for _, _, _, _, sockaddr in addrinfo:
        ip_str = sockaddr[0]
        if is_private_ip(ip_str):
            raise SSRFBlockedError(
                f"Blocked request to private/internal address: {url} resolves to {ip_str}",
            )


@dataclass
class LinkPreview:
    """Preview of a linked page. Fields are None when not found; error is set on failure."""

    url: str
    image: str | None = None
    favicon: str | None = None
    title: str | None = None
    description: str | None = None
    error: str | None = None


def _meta_content(soup: BeautifulSoup, *keys: str) -> str | None:
    """First non-empty content of a <meta> whose property or name matches a key, in key order."""
    for key in keys:
        for attr in ('property', 'name'):
            tag = soup.find('meta', attrs={attr: key})
            if tag and tag.get('content') and tag['content'].strip():
                return tag['content'].strip()
    return None


def _find_favicon(soup: BeautifulSoup) -> str | None:
    for link in soup.find_all('link', href=True):
        rel = link.get('rel') or []
        rel_values = {value.lower() for value in (rel if isinstance(rel, list) else [rel])}
        if 'icon' in rel_values:
            return link['href'].strip()
    return None


def extract_preview(html: str, page_url: str) -> LinkPreview:
    """
    Extract preview fields from HTML.

    Pure function with no I/O. Relative URLs are resolved against page_url.

    Image priority: og:image, then twitter:image.
    Favicon: <link rel="icon"> (including "shortcut icon"), else /favicon.ico.
    Title priority: og:title, then <title>.
    Description priority: og:description, then <meta name="description">.
    """
    soup = BeautifulSoup(html, 'lxml')

    image = _meta_content(soup, 'og:image', 'twitter:image')
    favicon = _find_favicon(soup) or '/favicon.ico'

    title = _meta_content(soup, 'og:title')
    if not title:
        title_tag = soup.find('title')
        if title_tag and title_tag.string and title_tag.string.strip():
            title = title_tag.string.strip()

    description = _meta_content(soup, 'og:description', 'description')

    return LinkPreview(
        url=page_url,
        image=urljoin(page_url, image) if image else None,
        favicon=urljoin(page_url, favicon),
        title=title,
        description=description,
    )


async def fetch_link_preview(url: str, timeout: float = DEFAULT_TIMEOUT) -> LinkPreview:  # noqa: ASYNC109
    """
    Fetch a URL and build its preview.

    Best-effort: returns a LinkPreview with error set instead of raising, so a
    slow or broken link never fails the caller.

    Security: validates that neither the URL nor the final redirect target points
    at a private/internal network.
    """
    try:
        validate_url_not_private(url)
    except (SSRFBlockedError, ValueError) as e:
        logger.warning("Link preview blocked for %s: %s", url, e)
        return LinkPreview(url=url, error=str(e))

    try:
        async with httpx.AsyncClient(
            follow_redirects=True,
            timeout=timeout,
            headers={'User-Agent': USER_AGENT},
            http2=True,
        ) as client:
            response = await client.get(url)

            final_url = str(response.url)
            try:
                validate_url_not_private(final_url)
            except (SSRFBlockedError, ValueError) as e:
                logger.warning("Link preview redirect blocked for %s: %s", url, e)
                return LinkPreview(url=final_url, error=f"Redirect blocked: {e}")

            if not response.is_success:
                return LinkPreview(url=final_url, error=f"HTTP {response.status_code}")

            content_type = response.headers.get('content-type', '')
            if 'html' not in content_type.lower():
                return LinkPreview(url=final_url, error=f"Unsupported content type: {content_type}")

            return extract_preview(response.text, final_url)
    except httpx.TimeoutException:
        logger.warning("Link preview timed out for %s", url)
        return LinkPreview(url=url, error="Request timed out")
    except httpx.RequestError as e:
        logger.warning("Link preview failed for %s: %s", url, e)
        return LinkPreview(url=url, error=f"Request failed: {e}")
