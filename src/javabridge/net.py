"""HTTP helpers shared by version sources and installers.

Failures are classified the way the session layer needs them: connection
problems, timeouts, 429 and 5xx are transient (``SourceUnavailableError``);
any other non-success status is permanent (``MalformedResponseError``).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import httpx

from .errors import DownloadError, MalformedResponseError, SourceUnavailableError
from .util.log import Log

log = Log.create({"service": "net"})

USER_AGENT = "javabridge"


def _truthy_env(key: str) -> bool:
    value = os.environ.get(key, "").strip().lower()
    return value in {"1", "true"}


def download_disabled() -> bool:
    """Return whether all network fetches are disabled."""
    return _truthy_env("JAVABRIDGE_DISABLE_DOWNLOAD")


def create_client(transport: Optional[httpx.BaseTransport] = None) -> httpx.Client:
    return httpx.Client(
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
        transport=transport,
    )


def transient_status(code: int) -> bool:
    return code == 429 or 500 <= code <= 599


def fetch(client: httpx.Client, url: str) -> httpx.Response:
    """GET ``url`` and return the successful response."""
    if download_disabled():
        raise SourceUnavailableError("Network access disabled by JAVABRIDGE_DISABLE_DOWNLOAD", url=url)

    try:
        response = client.get(url)
    except httpx.HTTPError as e:
        raise SourceUnavailableError(f"Request to {url} failed: {e}", url=url) from e

    if response.is_success:
        return response
    if transient_status(response.status_code):
        raise SourceUnavailableError(f"HTTP {response.status_code} from {url}", url=url)
    raise MalformedResponseError(f"HTTP {response.status_code} from {url}", url=url)


def fetch_text(client: httpx.Client, url: str) -> str:
    response = fetch(client, url)
    try:
        return response.content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedResponseError(f"Response from {url} is not valid UTF-8: {e}", url=url) from e


def fetch_json(client: httpx.Client, url: str) -> Any:
    response = fetch(client, url)
    try:
        return response.json()
    except ValueError as e:
        raise MalformedResponseError(f"Failed to deserialize response from {url}: {e}", url=url) from e


def download(client: httpx.Client, url: str, target: Path) -> None:
    """Stream ``url`` into ``target``; a partial file is removed on failure."""
    if download_disabled():
        raise DownloadError(f"Network access disabled, cannot download {url}")

    target.parent.mkdir(parents=True, exist_ok=True)
    try:
        with client.stream("GET", url) as response:
            if not response.is_success:
                raise DownloadError(f"HTTP {response.status_code} while downloading {url}")
            with open(target, "wb") as out:
                for chunk in response.iter_bytes():
                    out.write(chunk)
    except (httpx.HTTPError, OSError) as e:
        target.unlink(missing_ok=True)
        log.error("failed to download file", {"url": url, "target": str(target), "error": str(e)})
        raise DownloadError(f"Failed to download {url}: {e}") from e
    except DownloadError:
        target.unlink(missing_ok=True)
        raise
