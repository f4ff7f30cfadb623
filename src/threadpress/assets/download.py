"""Single-attempt downloads for page assets."""

from pathlib import Path

import httpx


class DownloadError(Exception):
    """Raised when an asset could not be fetched."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to download {url}: {reason}")
        self.url = url
        self.reason = reason


async def download_once(client: httpx.AsyncClient, url: str, dest_path: Path) -> int:
    """Fetch URL once and write the body to dest_path.

    There is no retry and no backoff: a CDN hiccup degrades one asset
    instead of stalling the whole page build.

    Args:
        client: The httpx async client to use for the request.
        url: The URL to fetch.
        dest_path: Where to write the response body. Parent directories
            are created as needed.

    Returns:
        The number of bytes written.

    Raises:
        DownloadError: On a transport failure or a non-success status.
    """
    try:
        response = await client.get(url, follow_redirects=True)
    except httpx.HTTPError as e:
        raise DownloadError(url, str(e) or type(e).__name__) from e

    if not response.is_success:
        raise DownloadError(url, f"HTTP {response.status_code}")

    dest_path.parent.mkdir(parents=True, exist_ok=True)
    dest_path.write_bytes(response.content)
    return len(response.content)
