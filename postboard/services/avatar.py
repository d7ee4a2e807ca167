"""Avatar image fetching."""

import logging

import httpx

from postboard.config import get_settings
from postboard.services.http_client import get_shared_client

logger = logging.getLogger(__name__)


class AvatarFetchError(Exception):
    """The avatar could not be downloaded."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Could not fetch avatar from {url}: {reason}")
        self.url = url
        self.reason = reason


async def fetch_avatar(url: str, *, client: httpx.AsyncClient | None = None) -> bytes | None:
    """Download the avatar at *url* with a single GET.

    Returns the response body, or None when the body is empty.  Transport
    failures (DNS, refused connections, timeouts, bad URLs) raise
    AvatarFetchError.  The response status is only logged unless
    ``avatar_reject_error_status`` is enabled, in which case 4xx/5xx
    responses raise as well.
    """
    client = client or get_shared_client()
    try:
        resp = await client.get(url)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise AvatarFetchError(url, str(e) or type(e).__name__) from e

    logger.debug("Got avatar data: %d (%d bytes)", resp.status_code, len(resp.content))

    if resp.is_error:
        logger.warning("Avatar URL %s returned %d", url, resp.status_code)
        if get_settings().avatar_reject_error_status:
            raise AvatarFetchError(url, f"HTTP {resp.status_code}")

    return resp.content or None
