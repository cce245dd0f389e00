"""Downloading remote artifacts.

:func:`fetch` streams a URL to a file and reports the outcome as a value
rather than an exception: :class:`Saved`, :class:`NotFound` (HTTP 404) or
:class:`TransportError` (everything else that went wrong). A failed fetch
never leaves a file at the destination.

The HTTP machinery (TLS context and one opener per proxy setting) is built
once per process by :meth:`HttpClient.instance` and reused afterwards.
Proxy environment variables are ignored; only the configured proxy is used.
"""

from __future__ import annotations

import http.client
import os
import shutil
import ssl
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Dict, Optional, Union
from urllib.error import HTTPError, URLError
from urllib.request import HTTPSHandler, OpenerDirector, ProxyHandler, Request, build_opener

from erlboot import __version__
from erlboot.bootstrap.paths import ensure_directory
from erlboot.config.models import ProjectConfig
from erlboot.core.exceptions import ConfigError
from erlboot.core.logging import get_logger

LOGGER = get_logger(__name__)

USER_AGENT = f"erlboot/{__version__}"
DEFAULT_TIMEOUT_MS = 6000
DEFAULT_PROXY_PORT = "8080"
CHUNK_SIZE = 64 * 1024
PARTIAL_SUFFIX = ".part"


@dataclass(frozen=True)
class Saved:
    """The artifact was written to ``path``."""

    path: Path


@dataclass(frozen=True)
class NotFound:
    """The server answered 404 for ``url``."""

    url: str


@dataclass(frozen=True)
class TransportError:
    """Connection, timeout or protocol failure."""

    detail: str


FetchResult = Union[Saved, NotFound, TransportError]


@dataclass(frozen=True)
class FetchSettings:
    """Network options for :func:`fetch`."""

    timeout_ms: int = DEFAULT_TIMEOUT_MS
    proxy_host: Optional[str] = None
    proxy_port: str = DEFAULT_PROXY_PORT

    @property
    def timeout(self) -> float:
        """Timeout in seconds, as urllib expects it."""
        return self.timeout_ms / 1000.0

    @property
    def proxy_url(self) -> Optional[str]:
        if not self.proxy_host:
            return None
        return f"http://{self.proxy_host}:{self.proxy_port}"

    @classmethod
    def from_config(cls, config: ProjectConfig) -> "FetchSettings":
        """Read ``remote_net_timeout`` and ``remote_proxy_*`` settings.

        Raises:
            ConfigError: If the timeout is not a positive integer.
        """
        raw_timeout = config.get("remote_net_timeout", DEFAULT_TIMEOUT_MS)
        try:
            timeout_ms = int(raw_timeout)
        except (TypeError, ValueError):
            raise ConfigError(
                f"'remote_net_timeout' must be an integer, got {raw_timeout!r}",
                category="invalid_config",
            ) from None
        if timeout_ms <= 0:
            raise ConfigError(
                f"'remote_net_timeout' must be positive, got {timeout_ms}",
                category="invalid_config",
            )

        proxy_host = config.get("remote_proxy_host")
        proxy_port = config.get("remote_proxy_port", DEFAULT_PROXY_PORT)
        return cls(
            timeout_ms=timeout_ms,
            proxy_host=str(proxy_host) if proxy_host else None,
            proxy_port=str(proxy_port),
        )


class HttpClient:
    """Process-wide HTTP machinery.

    Use :meth:`instance` rather than the constructor so the TLS context and
    openers are only built once.
    """

    _instance: ClassVar[Optional["HttpClient"]] = None

    def __init__(self) -> None:
        self._ssl_context = ssl.create_default_context()
        self._openers: Dict[Optional[str], OpenerDirector] = {}

    @classmethod
    def instance(cls) -> "HttpClient":
        """Return the shared client, creating it on first use."""
        if cls._instance is None:
            LOGGER.debug("Initializing HTTP client")
            cls._instance = cls()
        return cls._instance

    def opener(self, proxy_url: Optional[str] = None) -> OpenerDirector:
        """Return the opener for a proxy setting (None for a direct connection)."""
        opener = self._openers.get(proxy_url)
        if opener is None:
            proxies = {"http": proxy_url, "https": proxy_url} if proxy_url else {}
            opener = build_opener(ProxyHandler(proxies), HTTPSHandler(context=self._ssl_context))
            self._openers[proxy_url] = opener
        return opener

    def get(self, url: str, settings: FetchSettings) -> http.client.HTTPResponse:
        """Send a GET request and return the open response.

        Raises:
            HTTPError: For HTTP error statuses.
            URLError: For connection failures.
        """
        request = Request(url, headers={"User-Agent": USER_AGENT}, method="GET")
        return self.opener(settings.proxy_url).open(request, timeout=settings.timeout)


def fetch(
    url: str,
    destination: Path,
    settings: Optional[FetchSettings] = None,
    client: Optional[HttpClient] = None,
) -> FetchResult:
    """Download ``url`` to ``destination``.

    The body is streamed to a ``.part`` file next to the destination and
    renamed into place once complete.

    Args:
        url: Artifact URL.
        destination: File to write.
        settings: Timeout and proxy options.
        client: HTTP client (default: the shared instance).

    Returns:
        Saved, NotFound or TransportError.

    Raises:
        FilesystemError: If the destination directory cannot be created.
    """
    settings = settings or FetchSettings()
    client = client or HttpClient.instance()
    destination = Path(destination)
    partial = destination.with_name(destination.name + PARTIAL_SUFFIX)

    ensure_directory(destination.parent)
    LOGGER.info(f"Downloading {url}")
    if settings.proxy_url:
        LOGGER.debug(f"Using proxy {settings.proxy_url}")

    try:
        with client.get(url, settings) as response:
            status = response.status
            if status != 200:
                _discard(destination, partial)
                return TransportError(f"Unexpected HTTP status {status} for {url}")
            with open(partial, "wb") as f:
                shutil.copyfileobj(response, f, CHUNK_SIZE)
        os.replace(partial, destination)
    except HTTPError as e:
        e.close()
        _discard(destination, partial)
        if e.code == 404:
            LOGGER.debug(f"Not found: {url}")
            return NotFound(url)
        return TransportError(f"HTTP {e.code} {e.reason} for {url}")
    except URLError as e:
        _discard(destination, partial)
        return TransportError(f"Cannot reach {url}: {e.reason}")
    except (OSError, http.client.HTTPException) as e:
        _discard(destination, partial)
        return TransportError(f"Download of {url} failed: {e}")

    LOGGER.info(f"Saved {url} to {destination}")
    return Saved(destination)


def _discard(*paths: Path) -> None:
    for path in paths:
        path.unlink(missing_ok=True)
